"""Projects API.

Learn: Projects are the unit of access control. Listing returns only
what the caller can read (everything for a global admin), each entry
tagged with the caller's effective role. Creation is atomic: project,
initial members and boards with their columns land together or not at
all.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access import AccessEvaluator, Level, ResourceKind
from taskboard.access.rules import effective_role
from taskboard.api.boards import board_details
from taskboard.auth.dependencies import get_current_user
from taskboard.auth.sessions import Identity
from taskboard.db.engine import get_db
from taskboard.db.models import Project
from taskboard.schemas.common import ok
from taskboard.schemas.project import (
    MemberRead,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectStats,
    ProjectSummary,
    ProjectUpdate,
)
from taskboard.services.board_service import BoardService
from taskboard.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


async def member_views(service: ProjectService, project: Project) -> list[MemberRead]:
    """Owner first (synthesized from creator_id), then members by join date."""
    views = []
    owner = await service.get_owner(project)
    if owner is not None:
        views.append(MemberRead.from_owner(owner, project))
    for member in await service.list_members(project.id):
        views.append(MemberRead.from_member(member))
    return views


async def project_detail(
    db: AsyncSession, project: Project, role: str, include_boards: bool = False
) -> ProjectDetail:
    service = ProjectService(db)
    detail = ProjectDetail(
        **ProjectRead.model_validate(project).model_dump(),
        user_role=role,
        members=await member_views(service, project),
        stats=ProjectStats(**await service.project_stats(project.id)),
    )
    if include_boards:
        boards = await BoardService(db).list_boards(project.id)
        detail.boards = await board_details(db, boards, include_columns=True)
    return detail


@router.get("")
async def list_projects(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ProjectService(db)
    projects = await service.list_projects(None if identity.is_admin else identity.user_id)
    roles = await service.member_roles_for_user(identity.user_id)

    summaries = []
    for project in projects:
        summary = ProjectSummary.model_validate(project)
        summary.user_role = effective_role(
            identity.user_id, identity.role, project.creator_id, roles.get(project.id)
        )
        summaries.append(summary)
    return ok(summaries)


@router.post("", status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a project with optional member emails and boards."""
    project = await ProjectService(db).create_project(
        identity.user_id,
        body.name,
        body.description,
        body.color,
        member_emails=body.members,
        boards=[b.model_dump() for b in body.boards],
    )
    detail = await project_detail(db, project, "owner", include_boards=True)
    return ok(detail, message="Project created")


@router.get("/{project_id}")
async def get_project(
    project_id: uuid.UUID,
    include_boards: bool = False,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    decision = await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id
    )
    project = await ProjectService(db).get_project(project_id)
    return ok(await project_detail(db, project, decision.role, include_boards))


@router.put("/{project_id}")
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.MANAGE
    )
    service = ProjectService(db)
    project = await service.get_project(project_id)
    project = await service.update_project(
        project, **body.model_dump(exclude_unset=True)
    )
    return ok(ProjectRead.model_validate(project), message="Project updated")


@router.delete("/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.OWN
    )
    service = ProjectService(db)
    await service.delete_project(await service.get_project(project_id))
    return ok(None, message="Project deleted")
