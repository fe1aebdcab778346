"""User service — users, approval, and persisted login sessions.

Learn: Service layer separates business logic from HTTP routing.
Routes (and the admin CLI) call services, services call the database.
Nothing here checks who is asking; callers authorize first.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.jwt import create_access_token
from taskboard.auth.password import hash_password
from taskboard.config import settings
from taskboard.db.models import AuthSession, User
from taskboard.errors import Conflict, NotFound

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Business logic for accounts and sessions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Users ──────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def get_users_by_emails(self, emails: list[str]) -> list[User]:
        if not emails:
            return []
        wanted = {normalize_email(e) for e in emails}
        result = await self.db.execute(select(User).where(User.email.in_(wanted)))
        return list(result.scalars().all())

    async def list_users(self, approved_only: bool = True) -> list[User]:
        query = select(User).order_by(User.name)
        if approved_only:
            query = query.where(User.approval_status == "approved")
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        role: str = "user",
        approved: bool = False,
    ) -> User:
        """Create an account. Raises Conflict if the email is taken."""
        if await self.get_user_by_email(email):
            raise Conflict("Email already registered")

        user = User(
            email=normalize_email(email),
            name=name.strip(),
            password_hash=hash_password(password),
            role=role,
            approval_status="approved" if approved else "pending",
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("users.created", user_id=str(user.id), role=role, approved=approved)
        return user

    async def update_profile(
        self,
        user: User,
        name: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        if name is not None:
            user.name = name.strip()
        if password is not None:
            user.password_hash = hash_password(password)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def set_password(self, user: User, password: str) -> None:
        user.password_hash = hash_password(password)
        await self.db.commit()

    async def approve_user(self, user_id: uuid.UUID) -> User:
        user = await self.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        user.approval_status = "approved"
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("users.approved", user_id=str(user.id))
        return user

    # ─── Sessions ───────────────────────────────────────

    async def create_session(self, user: User) -> AuthSession:
        """Mint a token for the user and persist it with its expiry."""
        expires_at = datetime.now(timezone.utc) + timedelta(
            hours=settings.session_ttl_hours
        )
        token = create_access_token(
            str(user.id), email=user.email, role=user.role, name=user.name
        )
        session = AuthSession(user_id=user.id, token=token, expires_at=expires_at)
        self.db.add(session)
        await self.db.commit()
        return session

    async def get_session_by_token(self, token: str) -> Optional[AuthSession]:
        """Return the row whether or not it has expired; callers decide."""
        result = await self.db.execute(
            select(AuthSession).where(AuthSession.token == token)
        )
        return result.scalars().first()

    async def delete_session(self, token: str) -> bool:
        result = await self.db.execute(
            delete(AuthSession).where(AuthSession.token == token)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def delete_user_sessions(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            delete(AuthSession).where(AuthSession.user_id == user_id)
        )
        await self.db.commit()
        return result.rowcount
