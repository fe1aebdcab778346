"""Session resolution — credential → Identity.

Learn: Resolution is two layers. The JWT signature and `exp` are always
checked. Then, depending on settings.session_check, the persisted
sessions row is consulted:

- "required": the row must exist, be unexpired, belong to the token's
  subject, and point at an approved user (global admins skip approval).
- "optional": same checks when a row exists; no row → trust the claims.
- "off": claims only.

An expired row always wins over an unexpired token.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from taskboard.auth.jwt import TokenError, verify_token
from taskboard.config import settings
from taskboard.errors import Unauthenticated
from taskboard.services.user_service import UserService


@dataclass(frozen=True)
class Identity:
    """The authenticated user making the request."""

    user_id: uuid.UUID
    email: str
    role: str
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def extract_credential(
    cookies: Mapping[str, str],
    authorization: Optional[str],
    cookie_names: Optional[list[str]] = None,
) -> Optional[str]:
    """Pick the raw token: named cookies first, then the Bearer header."""
    for name in cookie_names or settings.session_cookie_names:
        value = cookies.get(name)
        if value:
            return value
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


class SessionResolver:
    """Turns a raw token into an Identity or raises Unauthenticated."""

    def __init__(self, users: UserService, mode: Optional[str] = None):
        self.users = users
        self.mode = mode or settings.session_check

    async def resolve(
        self, token: Optional[str], now: Optional[datetime] = None
    ) -> Identity:
        if not token:
            raise Unauthenticated("Authentication required")

        try:
            claims = verify_token(token)
        except TokenError as e:
            raise Unauthenticated(str(e))

        try:
            user_id = uuid.UUID(str(claims["sub"]))
        except ValueError:
            raise Unauthenticated("Invalid token subject")

        if self.mode == "off":
            return _identity_from_claims(user_id, claims)

        session = await self.users.get_session_by_token(token)
        if session is None:
            if self.mode == "required":
                raise Unauthenticated("Session not found or expired")
            return _identity_from_claims(user_id, claims)

        now = now or datetime.now(timezone.utc)
        if session.expires_at <= now:
            raise Unauthenticated("Session not found or expired")
        if session.user_id != user_id:
            raise Unauthenticated("Token does not match session")

        user = await self.users.get_user(session.user_id)
        if user is None:
            raise Unauthenticated("User not found")
        if not user.is_approved and user.role != "admin":
            raise Unauthenticated("User is not approved")

        return Identity(
            user_id=user.id, email=user.email, role=user.role, name=user.name
        )


def _identity_from_claims(user_id: uuid.UUID, claims: dict) -> Identity:
    return Identity(
        user_id=user_id,
        email=claims.get("email", ""),
        role=claims.get("role", "user"),
        name=claims.get("name", ""),
    )
