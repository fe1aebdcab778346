"""Test fixtures — isolated DB sessions that rollback after each test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + asyncpg:

1. Each test gets its own engine + connection + transaction (function-scoped)
2. The schema is created inside that transaction (Postgres DDL is
   transactional), so tests need a reachable database but no migrations.
3. The session uses join_transaction_mode="create_savepoint" so that
   when the service layer calls commit(), it creates a SAVEPOINT, not a real commit.
4. After the test, we rollback the outer transaction — all test data vanishes.

Tests that need the database are skipped when Postgres is not reachable.
Pure-logic tests (rules, tokens, passwords) never touch these fixtures.

Auth is NOT mocked: `make_user` creates real users with real session
rows, and requests carry their Bearer token through the full pipeline.
"""

import os
import uuid
from dataclasses import dataclass

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from taskboard.config import settings
from taskboard.db.engine import Database, get_db
from taskboard.db.models import Base, User
from taskboard.main import create_app
from taskboard.services.user_service import UserService

TEST_DB_URL = os.environ.get("TASKBOARD_TEST_DATABASE_URL", settings.database_url)

TEST_PASSWORD = "correct-horse-battery"


@dataclass
class TestUser:
    """A persisted user plus a live session token."""

    __test__ = False  # not a test class

    user: User
    token: str
    password: str = TEST_PASSWORD

    @property
    def id(self) -> str:
        return str(self.user.id)

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session with automatic rollback via savepoints.

    Creates a fresh engine+connection+transaction per test.
    join_transaction_mode="create_savepoint" means every session.commit()
    becomes a SAVEPOINT. After the test, the outer transaction rolls back.
    """
    engine = create_async_engine(TEST_DB_URL, echo=False)
    try:
        conn = await engine.connect()
    except (OSError, SQLAlchemyError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    trans = await conn.begin()
    await conn.run_sync(Base.metadata.create_all)
    session = AsyncSession(
        bind=conn,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        await session.close()
        await trans.rollback()
        await conn.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def app():
    """A fresh app per test so no engine outlives its event loop."""
    database = Database(TEST_DB_URL, pool_size=1, max_overflow=0)
    application = create_app(database=database)
    yield application
    await database.dispose()


@pytest_asyncio.fixture()
async def client(app, db_session):
    """HTTP client with the app's get_db bound to the test transaction.

    Learn: Only get_db is overridden. Authentication runs for real, so
    requests must carry a token from `make_user`.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(db_session):
    """Factory: create an approved (or pending) user with a live session."""

    async def _make(
        name: str = "User",
        role: str = "user",
        approved: bool = True,
        password: str = TEST_PASSWORD,
    ) -> TestUser:
        users = UserService(db_session)
        user = await users.create_user(
            f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            name,
            password,
            role=role,
            approved=approved,
        )
        session = await users.create_session(user)
        return TestUser(user=user, token=session.token, password=password)

    return _make


@pytest_asyncio.fixture()
async def owner(make_user):
    return await make_user("Owner")


@pytest_asyncio.fixture()
async def outsider(make_user):
    """An approved user with no relation to any project."""
    return await make_user("Outsider")


@pytest_asyncio.fixture()
async def project(client, owner):
    """A project owned by `owner`, with no boards."""
    r = await client.post(
        "/api/projects",
        json={"name": "Alpha", "description": "First project"},
        headers=owner.headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]
