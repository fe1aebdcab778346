"""Project membership API.

Learn: The owner is not a membership row. They are listed first,
synthesized from Project.creator_id, and every mutation that targets
them fails with InvalidOperation. Role values are validated before the
access check so a malformed request never reaches the database.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.access import AccessEvaluator, Level, ResourceKind
from taskboard.access.rules import check_member_role, check_not_owner, check_role_grant
from taskboard.api.projects import member_views
from taskboard.auth.dependencies import get_current_user
from taskboard.auth.sessions import Identity
from taskboard.db.engine import get_db
from taskboard.schemas.common import ok
from taskboard.schemas.project import MemberAdd, MemberRead, MemberRoleUpdate
from taskboard.services.project_service import ProjectService

router = APIRouter(prefix="/projects/{project_id}/members")


@router.get("")
async def list_members(
    project_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(identity, ResourceKind.PROJECT, project_id)
    service = ProjectService(db)
    project = await service.get_project(project_id)
    return ok(await member_views(service, project))


@router.post("", status_code=201)
async def add_member(
    project_id: uuid.UUID,
    body: MemberAdd,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role = check_member_role(body.role)
    decision = await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.MANAGE
    )
    check_role_grant(role, decision)

    service = ProjectService(db)
    project = await service.get_project(project_id)
    member = await service.add_member(project, body.user_id, role)
    return ok(MemberRead.from_member(member), message="Member added")


@router.put("/{user_id}")
async def update_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    body: MemberRoleUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role = check_member_role(body.role)
    decision = await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.MANAGE
    )
    service = ProjectService(db)
    project = await service.get_project(project_id)
    check_not_owner(user_id, project.creator_id, "change the role of")
    check_role_grant(role, decision)

    member = await service.update_member_role(project, user_id, role)
    return ok(MemberRead.from_member(member), message="Member role updated")


@router.delete("/{user_id}")
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccessEvaluator(db).require(
        identity, ResourceKind.PROJECT, project_id, Level.MANAGE
    )
    service = ProjectService(db)
    project = await service.get_project(project_id)
    check_not_owner(user_id, project.creator_id, "remove")

    await service.remove_member(project, user_id)
    return ok(None, message="Member removed")
