"""JWT token creation and verification.

Learn: The token is signed and self-describing (user id, email, role,
name) so the stateless mode can resolve an identity without a query.
In the default mode it is also the key of a persisted sessions row,
and that row's expiry wins over the token's own `exp`.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskboard.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    name: str = "",
    expires_hours: Optional[int] = None,
) -> str:
    """Create a signed access token."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "name": name,
        "type": "access",
        # Unique per token so two logins in the same second never collide
        # on the sessions.token unique index.
        "jti": uuid.uuid4().hex,
        "exp": now + timedelta(hours=expires_hours or settings.session_ttl_hours),
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != "access":
        raise TokenError("Not an access token")
    return payload
