"""Boards and columns API.

Learn: Every handler follows the same sequence: resolve the caller
(router-level dependency), ask the AccessEvaluator about the target
resource at the level the operation needs, then call the service.
Boards and columns carry no ACL; the evaluator walks up to the project.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access import AccessEvaluator, Level, ResourceKind
from taskboard.auth.dependencies import get_current_user
from taskboard.auth.sessions import Identity
from taskboard.db.engine import get_db
from taskboard.db.models import Board
from taskboard.schemas.board import (
    BoardCreate,
    BoardDetail,
    BoardRead,
    BoardUpdate,
    ColumnCreate,
    ColumnRead,
    ColumnUpdate,
    ColumnWithTasks,
)
from taskboard.schemas.common import ok
from taskboard.schemas.task import TaskRead
from taskboard.services.board_service import BoardService
from taskboard.services.task_service import TaskService

router = APIRouter()


async def board_details(
    db: AsyncSession,
    boards: list[Board],
    include_columns: bool = False,
    include_tasks: bool = False,
) -> list[BoardDetail]:
    """Boards with, optionally, their columns and each column's tasks."""
    if not (include_columns or include_tasks):
        return [BoardDetail.model_validate(b) for b in boards]

    columns = await BoardService(db).list_columns_for_boards([b.id for b in boards])
    tasks = {}
    if include_tasks:
        column_ids = [c.id for cols in columns.values() for c in cols]
        tasks = await TaskService(db).list_tasks_for_columns(column_ids)

    details = []
    for board in boards:
        detail = BoardDetail.model_validate(board)
        detail.columns = []
        for column in columns[board.id]:
            view = ColumnWithTasks.model_validate(column)
            if include_tasks:
                view.tasks = [TaskRead.model_validate(t) for t in tasks[column.id]]
            detail.columns.append(view)
        details.append(detail)
    return details


# ─── Boards ─────────────────────────────────────────────


@router.get("/projects/{project_id}/boards")
async def list_boards(
    project_id: uuid.UUID,
    include_columns: bool = False,
    include_tasks: bool = False,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(identity, ResourceKind.PROJECT, project_id)
    boards = await BoardService(db).list_boards(project_id)
    return ok(await board_details(db, boards, include_columns, include_tasks))


@router.post("/projects/{project_id}/boards", status_code=201)
async def create_board(
    project_id: uuid.UUID,
    body: BoardCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a board, with its columns if given, in one transaction."""
    await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.WRITE
    )
    columns = [c.model_dump() for c in body.columns] if body.columns else None
    board, created = await BoardService(db).create_board(
        project_id,
        identity.user_id,
        body.name,
        body.description,
        body.color,
        columns,
    )
    detail = BoardDetail.model_validate(board)
    detail.columns = [ColumnWithTasks.model_validate(c) for c in created]
    return ok(detail, message="Board created")


@router.get("/boards/{board_id}")
async def get_board(
    board_id: uuid.UUID,
    include_tasks: bool = False,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """A board with its columns (and, on request, their tasks)."""
    await AccessEvaluator(db).require(identity, ResourceKind.BOARD, board_id)
    board = await BoardService(db).get_board(board_id)
    details = await board_details(db, [board], True, include_tasks)
    return ok(details[0])


@router.put("/boards/{board_id}")
async def update_board(
    board_id: uuid.UUID,
    body: BoardUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.BOARD, board_id, Level.WRITE
    )
    service = BoardService(db)
    board = await service.get_board(board_id)
    board = await service.update_board(board, **body.model_dump(exclude_unset=True))
    return ok(BoardRead.model_validate(board), message="Board updated")


@router.delete("/boards/{board_id}")
async def delete_board(
    board_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.BOARD, board_id, Level.MANAGE
    )
    service = BoardService(db)
    await service.delete_board(await service.get_board(board_id))
    return ok(None, message="Board deleted")


# ─── Columns ────────────────────────────────────────────


@router.get("/boards/{board_id}/columns")
async def list_columns(
    board_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(identity, ResourceKind.BOARD, board_id)
    columns = await BoardService(db).list_columns(board_id)
    return ok([ColumnRead.model_validate(c) for c in columns])


@router.post("/boards/{board_id}/columns", status_code=201)
async def create_column(
    board_id: uuid.UUID,
    body: ColumnCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.BOARD, board_id, Level.WRITE
    )
    column = await BoardService(db).create_column(
        board_id, body.name, body.color, body.position
    )
    return ok(ColumnRead.model_validate(column), message="Column created")


@router.put("/columns/{column_id}")
async def update_column(
    column_id: uuid.UUID,
    body: ColumnUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.COLUMN, column_id, Level.WRITE
    )
    service = BoardService(db)
    column = await service.get_column(column_id)
    column = await service.update_column(column, **body.model_dump(exclude_unset=True))
    return ok(ColumnRead.model_validate(column), message="Column updated")


@router.delete("/columns/{column_id}")
async def delete_column(
    column_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.COLUMN, column_id, Level.WRITE
    )
    service = BoardService(db)
    await service.delete_column(await service.get_column(column_id))
    return ok(None, message="Column deleted")
