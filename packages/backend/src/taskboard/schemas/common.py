"""Response envelope shared by every endpoint.

Learn: Success bodies are {"success": true, "data": ..., "message"?}.
Error bodies ({"success": false, "error": ..., "details"?}) are produced
by the exception handlers in main.py, never by route code.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: Optional[str] = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body
