"""AccessEvaluator against the database: every link of the containment chain.

Learn: The rules are covered without a database in test_access_rules.py.
These tests check the other half, that each resource kind resolves to
its owning project (comment → task → column → board → project) and
that a broken or unknown link reads as NOT_FOUND.
"""

import uuid

import pytest
import pytest_asyncio

from taskboard.access import AccessEvaluator, Level, Outcome, ResourceKind
from taskboard.auth.sessions import Identity
from taskboard.errors import Forbidden, NotFound
from taskboard.services.board_service import BoardService
from taskboard.services.project_service import ProjectService
from taskboard.services.task_service import TaskService


def _identity(test_user, role="user"):
    return Identity(user_id=test_user.user.id, email=test_user.email, role=role)


@pytest_asyncio.fixture()
async def chain(db_session, owner):
    """One project → board → column → task → comment, created through the services."""
    project = await ProjectService(db_session).create_project(
        owner.user.id, "Chain", boards=[{"name": "Main"}]
    )
    boards = BoardService(db_session)
    board = (await boards.list_boards(project.id))[0]
    column = (await boards.list_columns(board.id))[0]
    tasks = TaskService(db_session)
    task = await tasks.create_task(column.id, owner.user.id, "Linked")
    comment = await tasks.create_comment(task.id, owner.user.id, "hello")
    return {
        ResourceKind.PROJECT: project.id,
        ResourceKind.BOARD: board.id,
        ResourceKind.COLUMN: column.id,
        ResourceKind.TASK: task.id,
        ResourceKind.COMMENT: comment.id,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", list(ResourceKind))
async def test_owner_reaches_every_kind(db_session, owner, chain, kind):
    decision = await AccessEvaluator(db_session).evaluate(
        _identity(owner), kind, chain[kind], Level.OWN
    )
    assert decision.outcome is Outcome.AUTHORIZED
    assert decision.project_id == chain[ResourceKind.PROJECT]
    assert decision.role == "owner"


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", list(ResourceKind))
async def test_outsider_is_forbidden_at_every_kind(db_session, outsider, chain, kind):
    decision = await AccessEvaluator(db_session).evaluate(
        _identity(outsider), kind, chain[kind]
    )
    assert decision.outcome is Outcome.FORBIDDEN


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", list(ResourceKind))
async def test_unknown_id_is_not_found(db_session, owner, chain, kind):
    decision = await AccessEvaluator(db_session).evaluate(
        _identity(owner), kind, uuid.uuid4()
    )
    assert decision.outcome is Outcome.NOT_FOUND


@pytest.mark.asyncio
async def test_global_admin_reads_a_comment(db_session, make_user, chain):
    admin = await make_user("Admin", role="admin")
    decision = await AccessEvaluator(db_session).evaluate(
        _identity(admin, role="admin"), ResourceKind.COMMENT, chain[ResourceKind.COMMENT]
    )
    assert decision.authorized


@pytest.mark.asyncio
async def test_deleted_task_orphans_its_comment(db_session, owner, chain):
    tasks = TaskService(db_session)
    await tasks.delete_task(await tasks.get_task(chain[ResourceKind.TASK]))

    with pytest.raises(NotFound, match="Comment not found"):
        await AccessEvaluator(db_session).require(
            _identity(owner), ResourceKind.COMMENT, chain[ResourceKind.COMMENT]
        )


@pytest.mark.asyncio
async def test_require_raises_forbidden_for_outsider(db_session, outsider, chain):
    with pytest.raises(Forbidden, match="Access denied"):
        await AccessEvaluator(db_session).require(
            _identity(outsider), ResourceKind.COMMENT, chain[ResourceKind.COMMENT], Level.WRITE
        )
