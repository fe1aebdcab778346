"""Authorization over the project → board → column → task hierarchy.

Learn: Every route that touches a project-scoped resource asks the
AccessEvaluator first. The evaluator returns one of three outcomes
(authorized / forbidden / not_found) which the error handlers map to
200-ish / 403 / 404. Routes never collapse them.
"""

from taskboard.access.evaluator import AccessEvaluator, ResourceKind
from taskboard.access.rules import (
    ADMIN,
    MEMBER,
    MEMBER_ROLES,
    OWNER,
    AccessDecision,
    Level,
    Outcome,
)

__all__ = [
    "ADMIN",
    "MEMBER",
    "MEMBER_ROLES",
    "OWNER",
    "AccessDecision",
    "AccessEvaluator",
    "Level",
    "Outcome",
    "ResourceKind",
]
