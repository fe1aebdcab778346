"""Project service — projects, their membership, and atomic setup.

Learn: create_project builds project + members + boards + columns in a
single transaction. Any failure rolls everything back; a half-created
project is never visible. The owner is never stored as a member row;
ownership is Project.creator_id.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access.rules import MEMBER
from taskboard.db.models import Board, BoardColumn, Project, ProjectMember, Task, User
from taskboard.errors import Conflict, NotFound
from taskboard.services.board_service import BoardService
from taskboard.services.user_service import UserService

logger = structlog.get_logger()

DEFAULT_COLUMNS = ("To do", "In progress", "Review", "Done")


class ProjectService:
    """Business logic for projects and project membership."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Projects ───────────────────────────────────────

    async def get_project(self, project_id: uuid.UUID) -> Optional[Project]:
        return await self.db.get(Project, project_id)

    async def list_projects(self, user_id: Optional[uuid.UUID] = None) -> list[Project]:
        """Projects visible to user_id (created or joined). None means all."""
        query = select(Project).order_by(Project.created_at.desc())
        if user_id is not None:
            joined = select(ProjectMember.project_id).where(
                ProjectMember.user_id == user_id
            )
            query = query.where(
                or_(Project.creator_id == user_id, Project.id.in_(joined))
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_project(
        self,
        creator_id: uuid.UUID,
        name: str,
        description: str = "",
        color: Optional[str] = None,
        member_emails: Optional[list[str]] = None,
        boards: Optional[list[dict]] = None,
    ) -> Project:
        """Create a project with its initial members and boards.

        Emails that match no account are skipped, as is the creator's own.
        A board without explicit columns gets the four default ones.
        """
        try:
            project = Project(
                name=name, description=description or "", creator_id=creator_id
            )
            if color:
                project.color = color
            self.db.add(project)
            await self.db.flush()

            added = await self._stage_members(project, member_emails or [])

            board_service = BoardService(self.db)
            for entry in boards or []:
                columns = entry.get("columns")
                if not columns:
                    columns = [{"name": title} for title in DEFAULT_COLUMNS]
                await board_service.stage_board(
                    project.id,
                    creator_id,
                    entry["name"],
                    entry.get("description") or "",
                    entry.get("color"),
                    columns,
                )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "projects.created",
            project_id=str(project.id),
            creator_id=str(creator_id),
            members=added,
            boards=len(boards or []),
        )
        return project

    async def _stage_members(self, project: Project, emails: list[str]) -> int:
        users = await UserService(self.db).get_users_by_emails(emails)
        count = 0
        for user in users:
            if user.id == project.creator_id:
                continue
            self.db.add(ProjectMember(project_id=project.id, user_id=user.id, role=MEMBER))
            count += 1
        if count:
            await self.db.flush()
        return count

    async def update_project(
        self,
        project: Project,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Project:
        if name is not None:
            project.name = name
        if description is not None:
            project.description = description
        if color is not None:
            project.color = color
        await self.db.commit()
        return project

    async def delete_project(self, project: Project) -> None:
        """Delete a project; boards, columns, tasks and comments cascade."""
        project_id = project.id
        await self.db.delete(project)
        await self.db.commit()
        logger.info("projects.deleted", project_id=str(project_id))

    async def project_stats(self, project_id: uuid.UUID) -> dict:
        boards = await self.db.execute(
            select(func.count(Board.id)).where(Board.project_id == project_id)
        )
        tasks = await self.db.execute(
            select(func.count(Task.id))
            .join(BoardColumn, Task.column_id == BoardColumn.id)
            .join(Board, BoardColumn.board_id == Board.id)
            .where(Board.project_id == project_id)
        )
        members = await self.db.execute(
            select(func.count(ProjectMember.id)).where(
                ProjectMember.project_id == project_id
            )
        )
        return {
            "boards_count": boards.scalar_one(),
            "tasks_count": tasks.scalar_one(),
            # +1 for the owner, who has no member row
            "members_count": members.scalar_one() + 1,
        }

    # ─── Membership ─────────────────────────────────────

    async def list_members(self, project_id: uuid.UUID) -> list[ProjectMember]:
        result = await self.db.execute(
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at)
        )
        return list(result.scalars().all())

    async def get_member(
        self, project_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[ProjectMember]:
        result = await self.db.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def member_roles_for_user(self, user_id: uuid.UUID) -> dict[uuid.UUID, str]:
        """project_id → stored membership role, for every project user_id joined."""
        result = await self.db.execute(
            select(ProjectMember.project_id, ProjectMember.role).where(
                ProjectMember.user_id == user_id
            )
        )
        return {row.project_id: row.role for row in result.all()}

    async def get_owner(self, project: Project) -> Optional[User]:
        return await self.db.get(User, project.creator_id)

    async def add_member(
        self, project: Project, user_id: uuid.UUID, role: str = MEMBER
    ) -> ProjectMember:
        """Add a user. NotFound for an unknown user, Conflict if already in."""
        if await self.db.get(User, user_id) is None:
            raise NotFound("User not found")
        if user_id == project.creator_id or await self.get_member(project.id, user_id):
            raise Conflict("User is already a member of this project")

        member = ProjectMember(project_id=project.id, user_id=user_id, role=role)
        self.db.add(member)
        await self.db.commit()
        await self.db.refresh(member, attribute_names=["user"])
        logger.info(
            "projects.member_added",
            project_id=str(project.id),
            user_id=str(user_id),
            role=role,
        )
        return member

    async def update_member_role(
        self, project: Project, user_id: uuid.UUID, role: str
    ) -> ProjectMember:
        member = await self.get_member(project.id, user_id)
        if member is None:
            raise NotFound("Member not found")
        member.role = role
        await self.db.commit()
        logger.info(
            "projects.member_role_changed",
            project_id=str(project.id),
            user_id=str(user_id),
            role=role,
        )
        return member

    async def remove_member(self, project: Project, user_id: uuid.UUID) -> None:
        member = await self.get_member(project.id, user_id)
        if member is None:
            raise NotFound("Member not found")
        await self.db.delete(member)
        await self.db.commit()
        logger.info(
            "projects.member_removed", project_id=str(project.id), user_id=str(user_id)
        )
