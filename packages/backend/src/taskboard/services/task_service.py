"""Task service — tasks within columns, and their threaded comments.

Learn: Tasks are ordered by position inside a column. A new task with
no explicit position goes to the bottom (max + 1). Comments are stored
flat with an optional parent_id; schemas.task.build_comment_tree nests
them for the API.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Comment, Task
from taskboard.errors import InvalidInput

logger = structlog.get_logger()

# Fields a client may change with PATCH/PUT.
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "status",
    "priority",
    "position",
    "column_id",
    "assignee_id",
    "deadline",
    "estimated_hours",
    "actual_hours",
})

# Updatable fields that may be cleared with null.
NULLABLE_FIELDS = frozenset({"assignee_id", "deadline", "estimated_hours", "actual_hours"})


def _hours(value: Optional[float]) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


class TaskService:
    """Business logic for tasks and comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Tasks ──────────────────────────────────────────

    async def get_task(self, task_id: uuid.UUID) -> Optional[Task]:
        return await self.db.get(Task, task_id)

    async def list_tasks(self, column_id: uuid.UUID) -> list[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.column_id == column_id)
            .order_by(Task.position, Task.created_at)
        )
        return list(result.scalars().all())

    async def list_tasks_for_columns(
        self, column_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[Task]]:
        grouped: dict[uuid.UUID, list[Task]] = {cid: [] for cid in column_ids}
        if not column_ids:
            return grouped
        result = await self.db.execute(
            select(Task)
            .where(Task.column_id.in_(column_ids))
            .order_by(Task.position, Task.created_at)
        )
        for task in result.scalars().all():
            grouped[task.column_id].append(task)
        return grouped

    async def next_task_position(self, column_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(Task.position), -1) + 1).where(
                Task.column_id == column_id
            )
        )
        return int(result.scalar_one())

    async def create_task(
        self,
        column_id: uuid.UUID,
        creator_id: uuid.UUID,
        title: str,
        description: str = "",
        status: str = "todo",
        priority: str = "medium",
        assignee_id: Optional[uuid.UUID] = None,
        deadline: Optional[datetime] = None,
        estimated_hours: Optional[float] = None,
        actual_hours: Optional[float] = None,
        position: Optional[int] = None,
    ) -> Task:
        if position is None:
            position = await self.next_task_position(column_id)

        task = Task(
            column_id=column_id,
            creator_id=creator_id,
            title=title,
            description=description or "",
            status=status,
            priority=priority,
            position=position,
            assignee_id=assignee_id,
            deadline=deadline,
            estimated_hours=_hours(estimated_hours),
            actual_hours=_hours(actual_hours),
        )
        self.db.add(task)
        await self.db.commit()
        logger.info("tasks.created", task_id=str(task.id), column_id=str(column_id))
        return task

    async def update_task(self, task: Task, changes: dict[str, Any]) -> Task:
        """Apply a partial update. Unknown fields and illegal nulls are rejected."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidInput("Unknown task fields", details=sorted(unknown))
        cleared = sorted(
            f for f, v in changes.items() if v is None and f not in NULLABLE_FIELDS
        )
        if cleared:
            raise InvalidInput("These task fields cannot be null", details=cleared)

        for field, value in changes.items():
            if field in ("estimated_hours", "actual_hours"):
                value = _hours(value)
            setattr(task, field, value)
        await self.db.commit()
        return task

    async def delete_task(self, task: Task) -> None:
        await self.db.delete(task)
        await self.db.commit()
        logger.info("tasks.deleted", task_id=str(task.id))

    # ─── Comments ───────────────────────────────────────

    async def get_comment(self, comment_id: uuid.UUID) -> Optional[Comment]:
        return await self.db.get(Comment, comment_id)

    async def list_comments(self, task_id: uuid.UUID) -> list[Comment]:
        """All comments on a task, oldest first, unthreaded."""
        result = await self.db.execute(
            select(Comment)
            .where(Comment.task_id == task_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars().all())

    async def create_comment(
        self,
        task_id: uuid.UUID,
        author_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
    ) -> Comment:
        """Add a comment. A reply's parent must be on the same task."""
        if parent_id is not None:
            parent = await self.get_comment(parent_id)
            if parent is None or parent.task_id != task_id:
                raise InvalidInput("Parent comment does not belong to this task")

        comment = Comment(
            task_id=task_id, author_id=author_id, content=content, parent_id=parent_id
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment, attribute_names=["author"])
        return comment
