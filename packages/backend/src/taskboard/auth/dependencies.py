"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (and at the
include_router level) to extract and validate the current identity.
FastAPI caches a dependency per request, so a router-level
get_current_user and a handler-level one resolve the session once.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.sessions import Identity, SessionResolver, extract_credential
from taskboard.db.engine import get_db
from taskboard.errors import Forbidden
from taskboard.services.user_service import UserService


def get_raw_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """The credential as sent, or None."""
    return extract_credential(request.cookies, authorization)


async def get_current_user(
    token: Optional[str] = Depends(get_raw_token),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """Resolve the current identity (required — 401 if missing or invalid)."""
    return await SessionResolver(UserService(db)).resolve(token)


async def require_global_admin(
    identity: Identity = Depends(get_current_user),
) -> Identity:
    if not identity.is_admin:
        raise Forbidden("Administrator role required")
    return identity
