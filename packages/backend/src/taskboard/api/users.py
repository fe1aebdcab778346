"""User directory and account approval.

Learn: The directory feeds member pickers, so it only lists approved
accounts. Global admins can see pending ones too and approve them.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import get_current_user, require_global_admin
from taskboard.auth.sessions import Identity
from taskboard.db.engine import get_db
from taskboard.schemas.common import ok
from taskboard.schemas.user import UserBrief, UserRead
from taskboard.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(
    include_pending: bool = False,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if include_pending and identity.is_admin:
        users = await UserService(db).list_users(approved_only=False)
        return ok([UserRead.model_validate(u) for u in users])
    users = await UserService(db).list_users()
    return ok([UserBrief.model_validate(u) for u in users])


@router.post("/{user_id}/approve")
async def approve_user(
    user_id: uuid.UUID,
    identity: Identity = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).approve_user(user_id)
    return ok(UserRead.model_validate(user), message="User approved")
