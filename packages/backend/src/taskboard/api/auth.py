"""Auth API — registration, login, logout, and the caller's profile.

Learn: Login mints a JWT *and* persists it in the sessions table. The
token is returned in the body and set as an HttpOnly cookie; clients
may send either the cookie or an `Authorization: Bearer` header.
Logout deletes the sessions row, so the token stops working at once
even though its signature is still valid.

- POST /auth/register → create a (pending) account
- POST /auth/login → email/password → token + cookie
- POST /auth/logout → end the current session
- GET /auth/me → current user
- PATCH /auth/me → change name and/or password
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import get_current_user, get_raw_token
from taskboard.auth.password import hash_password, needs_upgrade, verify_password
from taskboard.auth.sessions import Identity
from taskboard.config import settings
from taskboard.db.engine import get_db
from taskboard.errors import InvalidInput, NotFound, Unauthenticated
from taskboard.schemas.common import ok
from taskboard.schemas.user import (
    LoginRequest,
    LoginResult,
    ProfileUpdate,
    RegisterRequest,
    UserRead,
)
from taskboard.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Register ────────────────────────────────────────────


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new user account. It stays pending until an admin approves it."""
    user = await UserService(db).create_user(
        body.email,
        body.name,
        body.password,
        approved=settings.auto_approve_users,
    )
    message = (
        "Registration successful"
        if user.is_approved
        else "Registration successful, awaiting approval"
    )
    return ok(UserRead.model_validate(user), message=message)


# ─── Login / logout ──────────────────────────────────────


@router.post("/login")
async def login(
    body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)
):
    """Login with email and password → token, session row and cookie."""
    users = UserService(db)
    user = await users.get_user_by_email(body.email)

    if not user or not user.password_hash:
        logger.info("auth.login_failed", reason="unknown_user")
        raise Unauthenticated("Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        logger.info("auth.login_failed", reason="bad_password", user_id=str(user.id))
        raise Unauthenticated("Invalid credentials")
    if not user.is_approved and user.role != "admin":
        logger.info("auth.login_failed", reason="pending", user_id=str(user.id))
        raise Unauthenticated("Account is pending approval")

    # Upgrade legacy SHA-256 hashes to bcrypt on successful login
    if needs_upgrade(user.password_hash):
        user.password_hash = hash_password(body.password)
        logger.info("auth.password_upgraded", user_id=str(user.id))

    session = await users.create_session(user)
    response.set_cookie(
        settings.session_cookie_name,
        session.token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    logger.info("auth.login", user_id=str(user.id))

    result = LoginResult(
        token=session.token,
        expires_at=session.expires_at,
        user=UserRead.model_validate(user),
    )
    return ok(result, message="Login successful")


@router.post("/logout")
async def logout(
    response: Response,
    identity: Identity = Depends(get_current_user),
    token: Optional[str] = Depends(get_raw_token),
    db: AsyncSession = Depends(get_db),
):
    """Delete the current session row and clear the auth cookies."""
    await UserService(db).delete_session(token)
    for name in settings.session_cookie_names:
        response.delete_cookie(name)
    logger.info("auth.logout", user_id=str(identity.user_id))
    return ok(None, message="Logged out")


# ─── Profile ─────────────────────────────────────────────


@router.get("/me")
async def get_me(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).get_user(identity.user_id)
    if not user:
        raise NotFound("User not found")
    return ok(UserRead.model_validate(user))


@router.patch("/me")
async def update_me(
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update name and/or password. A new password needs the current one."""
    users = UserService(db)
    user = await users.get_user(identity.user_id)
    if not user:
        raise NotFound("User not found")

    if body.new_password is not None:
        if not body.current_password or not user.password_hash or not verify_password(
            body.current_password, user.password_hash
        ):
            raise InvalidInput("Current password is incorrect")

    user = await users.update_profile(user, name=body.name, password=body.new_password)
    if body.new_password is not None:
        logger.info("auth.password_changed", user_id=str(user.id))
    return ok(UserRead.model_validate(user), message="Profile updated")
