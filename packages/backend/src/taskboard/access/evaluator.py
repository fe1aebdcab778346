"""Access evaluator — walks the containment chain and applies the rules.

Learn: Boards, columns, tasks and comments have no ACL of their own.
For any of them we resolve the owning project with a single joined
query (comment → task → column → board → project). If any link is
missing the join yields nothing and the answer is NOT_FOUND, so a
dangling reference can never grant access.
"""

import uuid
from enum import Enum
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access.rules import (
    AccessDecision,
    Level,
    Outcome,
    decide,
    effective_role,
)
from taskboard.auth.sessions import Identity
from taskboard.db.models import Board, BoardColumn, Comment, Project, ProjectMember, Task
from taskboard.errors import Forbidden, NotFound

logger = structlog.get_logger()


class ResourceKind(str, Enum):
    PROJECT = "project"
    BOARD = "board"
    COLUMN = "column"
    TASK = "task"
    COMMENT = "comment"


_NOT_FOUND_MESSAGES = {
    ResourceKind.PROJECT: "Project not found",
    ResourceKind.BOARD: "Board not found",
    ResourceKind.COLUMN: "Column not found",
    ResourceKind.TASK: "Task not found",
    ResourceKind.COMMENT: "Comment not found",
}


class AccessEvaluator:
    """Answers "may this identity do X to that resource?"."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def evaluate(
        self,
        identity: Identity,
        kind: ResourceKind,
        resource_id: uuid.UUID,
        level: Level = Level.READ,
    ) -> AccessDecision:
        owner = await self._resolve_project(kind, resource_id)
        if owner is None:
            return AccessDecision(outcome=Outcome.NOT_FOUND)

        project_id, creator_id = owner
        member_role = await self._member_role(project_id, identity.user_id)
        role = effective_role(
            identity.user_id, identity.role, creator_id, member_role
        )
        return decide(project_id, role, level, is_global_admin=identity.is_admin)

    async def require(
        self,
        identity: Identity,
        kind: ResourceKind,
        resource_id: uuid.UUID,
        level: Level = Level.READ,
    ) -> AccessDecision:
        """Like evaluate(), but raises NotFound / Forbidden instead of returning them."""
        decision = await self.evaluate(identity, kind, resource_id, level)
        if decision.outcome is Outcome.NOT_FOUND:
            raise NotFound(_NOT_FOUND_MESSAGES[kind])
        if decision.outcome is Outcome.FORBIDDEN:
            logger.info(
                "access.denied",
                user_id=str(identity.user_id),
                kind=kind.value,
                resource_id=str(resource_id),
                level=level.value,
                role=decision.role,
            )
            raise Forbidden("Access denied")
        return decision

    # ─── Chain resolution ────────────────────────────────

    async def _resolve_project(
        self, kind: ResourceKind, resource_id: uuid.UUID
    ) -> Optional[tuple[uuid.UUID, uuid.UUID]]:
        """(project_id, creator_id) for the resource, or None if any link is missing."""
        query = select(Project.id, Project.creator_id).select_from(Project)

        if kind is ResourceKind.PROJECT:
            query = query.where(Project.id == resource_id)
        else:
            query = query.join(Board, Board.project_id == Project.id)
            if kind is ResourceKind.BOARD:
                query = query.where(Board.id == resource_id)
            else:
                query = query.join(BoardColumn, BoardColumn.board_id == Board.id)
                if kind is ResourceKind.COLUMN:
                    query = query.where(BoardColumn.id == resource_id)
                else:
                    query = query.join(Task, Task.column_id == BoardColumn.id)
                    if kind is ResourceKind.TASK:
                        query = query.where(Task.id == resource_id)
                    else:
                        query = query.join(Comment, Comment.task_id == Task.id).where(
                            Comment.id == resource_id
                        )

        row = (await self.db.execute(query)).first()
        if row is None:
            return None
        return row.id, row.creator_id

    async def _member_role(
        self, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[str]:
        result = await self.db.execute(
            select(ProjectMember.role).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        )
        return result.scalars().first()
