"""Error taxonomy shared by the access layer, services and routes.

Services raise these; the handlers registered in main.py turn them into
the `{"success": false, "error": ...}` envelope with the status code
carried by the class.
"""

from typing import Any, Optional


class TaskboardError(Exception):
    """Base class. Subclasses set the HTTP status they map to."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthenticated(TaskboardError):
    """No credential, or the credential is invalid or expired."""

    status_code = 401


class Forbidden(TaskboardError):
    """Valid identity, insufficient rights on an existing resource."""

    status_code = 403


class NotFound(TaskboardError):
    """Resource, chain link or membership does not exist."""

    status_code = 404


class InvalidInput(TaskboardError):
    status_code = 400


class InvalidOperation(TaskboardError):
    """Well-formed request that the rules forbid (e.g. removing the owner)."""

    status_code = 400


class Conflict(TaskboardError):
    status_code = 409
