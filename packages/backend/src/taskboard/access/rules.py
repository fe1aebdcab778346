"""Project roles and what each of them may do.

Pure functions, no I/O. The evaluator feeds them the three facts that
decide access to anything inside a project: who created it, the
caller's membership row (if any), and the caller's global role.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from taskboard.errors import Forbidden, InvalidInput, InvalidOperation

OWNER = "owner"
ADMIN = "admin"
MEMBER = "member"

# Roles a membership row may be set to.
MEMBER_ROLES = (OWNER, ADMIN, MEMBER)

ROLE_RANK: dict[str, int] = {OWNER: 3, ADMIN: 2, MEMBER: 1}


class Level(str, Enum):
    """What the caller wants to do.

    READ   — see the project and everything in it
    WRITE  — create/modify boards, columns, tasks, comments
    MANAGE — project settings and membership
    OWN    — delete the project, hand out the owner role
    """

    READ = "read"
    WRITE = "write"
    MANAGE = "manage"
    OWN = "own"


_MIN_RANK: dict[Level, int] = {
    Level.READ: ROLE_RANK[MEMBER],
    Level.WRITE: ROLE_RANK[MEMBER],
    Level.MANAGE: ROLE_RANK[ADMIN],
}


class Outcome(str, Enum):
    AUTHORIZED = "authorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def normalize_member_role(role: str) -> str:
    """Map a stored membership role onto owner/admin/member.

    Legacy rows use upper case and 'editor'; anything unrecognised is
    still a membership and counts as 'member'.
    """
    role = (role or "").strip().lower()
    if role in (OWNER, ADMIN):
        return role
    return MEMBER


def effective_role(
    user_id: uuid.UUID,
    global_role: str,
    creator_id: uuid.UUID,
    member_role: Optional[str],
) -> Optional[str]:
    """The caller's strongest claim on a project, or None for no access.

    Ownership comes from creator_id alone. A membership row that says
    'owner' for anyone else is worth 'admin'; a global admin is at
    least 'admin' everywhere.
    """
    if user_id == creator_id:
        return OWNER

    candidates = []
    if member_role is not None:
        role = normalize_member_role(member_role)
        candidates.append(ADMIN if role == OWNER else role)
    if global_role == ADMIN:
        candidates.append(ADMIN)

    if not candidates:
        return None
    return max(candidates, key=ROLE_RANK.__getitem__)


def allows(role: Optional[str], level: Level, is_global_admin: bool = False) -> bool:
    if role is None:
        return False
    if level is Level.OWN:
        return role == OWNER or is_global_admin
    return ROLE_RANK[role] >= _MIN_RANK[level]


@dataclass(frozen=True)
class AccessDecision:
    """Result of evaluating one identity against one resource."""

    outcome: Outcome
    project_id: Optional[uuid.UUID] = None
    role: Optional[str] = None
    is_global_admin: bool = False

    @property
    def authorized(self) -> bool:
        return self.outcome is Outcome.AUTHORIZED

    def allows(self, level: Level) -> bool:
        return allows(self.role, level, self.is_global_admin)

    @property
    def can_read(self) -> bool:
        return self.allows(Level.READ)

    @property
    def can_write(self) -> bool:
        return self.allows(Level.WRITE)

    @property
    def can_manage(self) -> bool:
        return self.allows(Level.MANAGE)

    @property
    def can_own(self) -> bool:
        return self.allows(Level.OWN)


def decide(
    project_id: uuid.UUID,
    role: Optional[str],
    level: Level,
    is_global_admin: bool = False,
) -> AccessDecision:
    """Decision for a resource that exists."""
    outcome = (
        Outcome.AUTHORIZED
        if allows(role, level, is_global_admin)
        else Outcome.FORBIDDEN
    )
    return AccessDecision(
        outcome=outcome,
        project_id=project_id,
        role=role,
        is_global_admin=is_global_admin,
    )


# ─── Membership guards ──────────────────────────────────


def check_member_role(role: str) -> str:
    """Return role if it is assignable, else raise InvalidInput."""
    if role not in MEMBER_ROLES:
        raise InvalidInput(
            "Invalid role", details={"allowed": list(MEMBER_ROLES), "role": role}
        )
    return role


def check_role_grant(role: str, decision: AccessDecision) -> None:
    """Handing out 'owner' takes the OWN level, everything else MANAGE."""
    needed = Level.OWN if role == OWNER else Level.MANAGE
    if not decision.allows(needed):
        raise Forbidden("Insufficient permissions to grant this role")


def check_not_owner(user_id: uuid.UUID, creator_id: uuid.UUID, action: str) -> None:
    """The creator's access is not a membership and cannot be edited."""
    if user_id == creator_id:
        raise InvalidOperation(f"Cannot {action} the project owner")
