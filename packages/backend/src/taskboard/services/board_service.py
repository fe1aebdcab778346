"""Board service — boards and their ordered columns.

Learn: Like every service here, this trusts its caller: routes run the
AccessEvaluator before calling in. List methods always return plain
lists, columns ordered by position then creation time.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Board, BoardColumn

logger = structlog.get_logger()


class BoardService:
    """Business logic for boards and columns."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Boards ─────────────────────────────────────────

    async def get_board(self, board_id: uuid.UUID) -> Optional[Board]:
        return await self.db.get(Board, board_id)

    async def list_boards(self, project_id: uuid.UUID) -> list[Board]:
        result = await self.db.execute(
            select(Board)
            .where(Board.project_id == project_id)
            .order_by(Board.created_at, Board.name)
        )
        return list(result.scalars().all())

    async def stage_board(
        self,
        project_id: uuid.UUID,
        creator_id: Optional[uuid.UUID],
        name: str,
        description: str = "",
        color: Optional[str] = None,
        columns: Optional[list[dict]] = None,
    ) -> tuple[Board, list[BoardColumn]]:
        """Add a board and its columns to the session without committing.

        Callers that build a larger hierarchy (project + boards) commit
        once at the end so the whole thing is one transaction.
        """
        board = Board(
            project_id=project_id,
            creator_id=creator_id,
            name=name,
            description=description or "",
        )
        if color:
            board.color = color
        self.db.add(board)
        await self.db.flush()  # get board.id

        created: list[BoardColumn] = []
        for index, entry in enumerate(columns or []):
            position = entry.get("position")
            column = BoardColumn(
                board_id=board.id,
                name=entry["name"],
                position=index if position is None else position,
            )
            if entry.get("color"):
                column.color = entry["color"]
            self.db.add(column)
            created.append(column)
        if created:
            await self.db.flush()

        created.sort(key=lambda c: c.position)
        return board, created

    async def create_board(
        self,
        project_id: uuid.UUID,
        creator_id: uuid.UUID,
        name: str,
        description: str = "",
        color: Optional[str] = None,
        columns: Optional[list[dict]] = None,
    ) -> tuple[Board, list[BoardColumn]]:
        """Create a board (and optional columns) in one transaction."""
        try:
            board, created = await self.stage_board(
                project_id, creator_id, name, description, color, columns
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(
            "boards.created",
            board_id=str(board.id),
            project_id=str(project_id),
            columns=len(created),
        )
        return board, created

    async def update_board(
        self,
        board: Board,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Board:
        if name is not None:
            board.name = name
        if description is not None:
            board.description = description
        if color is not None:
            board.color = color
        await self.db.commit()
        return board

    async def delete_board(self, board: Board) -> None:
        await self.db.delete(board)
        await self.db.commit()
        logger.info("boards.deleted", board_id=str(board.id))

    # ─── Columns ────────────────────────────────────────

    async def get_column(self, column_id: uuid.UUID) -> Optional[BoardColumn]:
        return await self.db.get(BoardColumn, column_id)

    async def list_columns(self, board_id: uuid.UUID) -> list[BoardColumn]:
        result = await self.db.execute(
            select(BoardColumn)
            .where(BoardColumn.board_id == board_id)
            .order_by(BoardColumn.position, BoardColumn.created_at)
        )
        return list(result.scalars().all())

    async def list_columns_for_boards(
        self, board_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[BoardColumn]]:
        """Columns grouped by board, each group ordered by position."""
        grouped: dict[uuid.UUID, list[BoardColumn]] = {bid: [] for bid in board_ids}
        if not board_ids:
            return grouped
        result = await self.db.execute(
            select(BoardColumn)
            .where(BoardColumn.board_id.in_(board_ids))
            .order_by(BoardColumn.position, BoardColumn.created_at)
        )
        for column in result.scalars().all():
            grouped[column.board_id].append(column)
        return grouped

    async def next_column_position(self, board_id: uuid.UUID) -> int:
        """0 for an empty board, otherwise one past the highest position."""
        result = await self.db.execute(
            select(func.coalesce(func.max(BoardColumn.position), -1) + 1).where(
                BoardColumn.board_id == board_id
            )
        )
        return int(result.scalar_one())

    async def create_column(
        self,
        board_id: uuid.UUID,
        name: str,
        color: Optional[str] = None,
        position: Optional[int] = None,
    ) -> BoardColumn:
        if position is None:
            position = await self.next_column_position(board_id)
        column = BoardColumn(board_id=board_id, name=name, position=position)
        if color:
            column.color = color
        self.db.add(column)
        await self.db.commit()
        return column

    async def update_column(
        self,
        column: BoardColumn,
        name: Optional[str] = None,
        color: Optional[str] = None,
        position: Optional[int] = None,
    ) -> BoardColumn:
        if name is not None:
            column.name = name
        if color is not None:
            column.color = color
        if position is not None:
            column.position = position
        await self.db.commit()
        return column

    async def delete_column(self, column: BoardColumn) -> None:
        await self.db.delete(column)
        await self.db.commit()
