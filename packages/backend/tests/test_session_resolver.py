"""Session resolution — the three check modes, with a mocked user store.

Learn: SessionResolver only needs two lookups (session by token, user
by id), so an AsyncMock standing in for UserService exercises every
branch without Postgres.
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from taskboard.auth.jwt import create_access_token
from taskboard.auth.sessions import SessionResolver, extract_credential
from taskboard.errors import Unauthenticated

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _user(role="user", approval_status="approved"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        email="dev@example.com",
        name="Dev",
        role=role,
        approval_status=approval_status,
        is_approved=approval_status == "approved",
    )


def _store(user, session=None):
    users = AsyncMock()
    users.get_session_by_token.return_value = session
    users.get_user.return_value = user
    return users


def _token(user, role=None):
    return create_access_token(
        str(user.id), email=user.email, role=role or user.role, name=user.name
    )


def _session(user, expires_at):
    return SimpleNamespace(user_id=user.id, expires_at=expires_at)


# ═══════════════════════════════════════════════════════════
# Credential extraction
# ═══════════════════════════════════════════════════════════


def test_cookie_wins_over_header():
    token = extract_credential({"auth-token": "from-cookie"}, "Bearer from-header")
    assert token == "from-cookie"


def test_client_cookie_is_second():
    token = extract_credential({"auth-token-client": "client"}, None)
    assert token == "client"


def test_bearer_header_fallback():
    assert extract_credential({}, "Bearer abc.def") == "abc.def"


def test_non_bearer_header_ignored():
    assert extract_credential({}, "Basic dXNlcjpwYXNz") is None
    assert extract_credential({}, None) is None


# ═══════════════════════════════════════════════════════════
# Required mode
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_missing_token_is_unauthenticated():
    with pytest.raises(Unauthenticated, match="Authentication required"):
        await SessionResolver(AsyncMock(), mode="required").resolve(None)


@pytest.mark.asyncio
async def test_valid_session_resolves_from_user_row():
    user = _user(role="admin")
    # Claims say "user"; the row is authoritative.
    token = _token(user, role="user")
    store = _store(user, _session(user, NOW + timedelta(hours=1)))

    identity = await SessionResolver(store, mode="required").resolve(token, now=NOW)

    assert identity.user_id == user.id
    assert identity.role == "admin"
    assert identity.is_admin
    store.get_session_by_token.assert_awaited_once_with(token)


@pytest.mark.asyncio
async def test_expired_session_rejected_even_with_valid_token():
    user = _user()
    store = _store(user, _session(user, NOW - timedelta(seconds=1)))
    with pytest.raises(Unauthenticated, match="expired"):
        await SessionResolver(store, mode="required").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_unknown_session_rejected():
    user = _user()
    with pytest.raises(Unauthenticated):
        await SessionResolver(_store(user), mode="required").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_session_of_other_user_rejected():
    user = _user()
    other = _user()
    store = _store(user, _session(other, NOW + timedelta(hours=1)))
    with pytest.raises(Unauthenticated, match="does not match"):
        await SessionResolver(store, mode="required").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_unapproved_user_rejected():
    user = _user(approval_status="pending")
    store = _store(user, _session(user, NOW + timedelta(hours=1)))
    with pytest.raises(Unauthenticated, match="not approved"):
        await SessionResolver(store, mode="required").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_unapproved_admin_allowed():
    user = _user(role="admin", approval_status="pending")
    store = _store(user, _session(user, NOW + timedelta(hours=1)))
    identity = await SessionResolver(store, mode="required").resolve(_token(user), now=NOW)
    assert identity.is_admin


@pytest.mark.asyncio
async def test_deleted_user_rejected():
    user = _user()
    store = _store(None, _session(user, NOW + timedelta(hours=1)))
    with pytest.raises(Unauthenticated, match="User not found"):
        await SessionResolver(store, mode="required").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_garbage_token_rejected():
    with pytest.raises(Unauthenticated, match="Invalid token"):
        await SessionResolver(AsyncMock(), mode="required").resolve("not-a-jwt")


# ═══════════════════════════════════════════════════════════
# Optional / off modes
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_optional_mode_trusts_claims_without_row():
    user = _user()
    identity = await SessionResolver(_store(user), mode="optional").resolve(
        _token(user), now=NOW
    )
    assert identity.user_id == user.id
    assert identity.email == user.email


@pytest.mark.asyncio
async def test_optional_mode_still_rejects_expired_row():
    user = _user()
    store = _store(user, _session(user, NOW - timedelta(minutes=5)))
    with pytest.raises(Unauthenticated):
        await SessionResolver(store, mode="optional").resolve(_token(user), now=NOW)


@pytest.mark.asyncio
async def test_off_mode_never_queries():
    user = _user()
    store = _store(user)
    identity = await SessionResolver(store, mode="off").resolve(_token(user), now=NOW)
    assert identity.user_id == user.id
    store.get_session_by_token.assert_not_awaited()
