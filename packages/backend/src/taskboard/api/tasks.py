"""Tasks and comments API.

Learn: A task may move to another column, but only within its own
project. The target column is resolved through the same evaluator so
a column the caller cannot see reads as "not found", and a column in
a different project is rejected with 400.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access import AccessEvaluator, Level, Outcome, ResourceKind
from taskboard.auth.dependencies import get_current_user
from taskboard.auth.sessions import Identity
from taskboard.db.engine import get_db
from taskboard.errors import InvalidInput, NotFound
from taskboard.schemas.board import ColumnRead
from taskboard.schemas.common import ok
from taskboard.schemas.task import (
    CommentCreate,
    CommentRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
    build_comment_tree,
)
from taskboard.services.board_service import BoardService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService

router = APIRouter()


async def _check_assignee(
    db: AsyncSession, project_id: uuid.UUID, assignee_id: Optional[uuid.UUID]
) -> None:
    """The assignee must exist and be able to read the project."""
    if assignee_id is None:
        return
    user = await UserService(db).get_user(assignee_id)
    if user is None:
        raise InvalidInput("Assignee not found")
    assignee = Identity(user_id=user.id, email=user.email, role=user.role, name=user.name)
    decision = await AccessEvaluator(db).evaluate(
        assignee, ResourceKind.PROJECT, project_id
    )
    if not decision.authorized:
        raise InvalidInput("Assignee is not a member of this project")


# ─── Tasks ──────────────────────────────────────────────


@router.get("/columns/{column_id}/tasks")
async def list_tasks(
    column_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The column and its tasks, ordered by position."""
    await AccessEvaluator(db).require(identity, ResourceKind.COLUMN, column_id)
    column = await BoardService(db).get_column(column_id)
    tasks = await TaskService(db).list_tasks(column_id)
    return ok({
        "column": ColumnRead.model_validate(column),
        "tasks": [TaskRead.model_validate(t) for t in tasks],
    })


@router.post("/columns/{column_id}/tasks", status_code=201)
async def create_task(
    column_id: uuid.UUID,
    body: TaskCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    decision = await AccessEvaluator(db).require(
        identity, ResourceKind.COLUMN, column_id, Level.WRITE
    )
    await _check_assignee(db, decision.project_id, body.assignee_id)

    task = await TaskService(db).create_task(
        column_id, identity.user_id, **body.model_dump()
    )
    return ok(TaskRead.model_validate(task), message="Task created")


@router.get("/tasks/{task_id}")
async def get_task(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(identity, ResourceKind.TASK, task_id)
    task = await TaskService(db).get_task(task_id)
    return ok(TaskRead.model_validate(task))


@router.api_route("/tasks/{task_id}", methods=["PATCH", "PUT"])
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update; column_id moves the task within the same project."""
    evaluator = AccessEvaluator(db)
    decision = await evaluator.require(
        identity, ResourceKind.TASK, task_id, Level.WRITE
    )
    changes = body.model_dump(exclude_unset=True)

    target = changes.get("column_id")
    if target is not None:
        placement = await evaluator.evaluate(
            identity, ResourceKind.COLUMN, target, Level.WRITE
        )
        # an unreadable column is reported exactly like a missing one
        if placement.outcome is not Outcome.AUTHORIZED:
            raise NotFound("Column not found")
        if placement.project_id != decision.project_id:
            raise InvalidInput("Cannot move a task to a column in another project")

    if "assignee_id" in changes:
        await _check_assignee(db, decision.project_id, changes["assignee_id"])

    service = TaskService(db)
    task = await service.get_task(task_id)
    task = await service.update_task(task, changes)
    return ok(TaskRead.model_validate(task), message="Task updated")


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.TASK, task_id, Level.WRITE
    )
    service = TaskService(db)
    await service.delete_task(await service.get_task(task_id))
    return ok(None, message="Task deleted")


# ─── Comments ───────────────────────────────────────────


@router.get("/tasks/{task_id}/comments")
async def list_comments(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Threaded: top-level comments oldest first, replies nested."""
    await AccessEvaluator(db).require(identity, ResourceKind.TASK, task_id)
    comments = await TaskService(db).list_comments(task_id)
    return ok(build_comment_tree(comments))


@router.post("/tasks/{task_id}/comments", status_code=201)
async def create_comment(
    task_id: uuid.UUID,
    body: CommentCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.TASK, task_id, Level.WRITE
    )
    comment = await TaskService(db).create_comment(
        task_id, identity.user_id, body.content, body.parent_id
    )
    return ok(CommentRead.from_comment(comment), message="Comment added")
