"""Pydantic schemas for projects and their members.

Learn: ProjectCreate can carry member emails and whole boards (with
columns) so a project is set up in one request and one transaction.
Member roles are plain strings here; the access rules validate them so
an invalid role is an InvalidInput from the core, not a schema error.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.access.rules import normalize_member_role
from taskboard.schemas.board import BoardCreate, BoardDetail
from taskboard.schemas.common import HEX_COLOR


# ─── Projects ───────────────────────────────────────────

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    members: list[str] = Field(default_factory=list)  # emails
    boards: list[BoardCreate] = Field(default_factory=list)

    model_config = {"str_strip_whitespace": True}


class ProjectUpdate(BaseModel):
    """Partial update — only non-None fields are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    model_config = {"str_strip_whitespace": True}


class ProjectRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    color: str
    creator_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectSummary(ProjectRead):
    """List entry: the project plus the caller's role in it."""
    user_role: Optional[str] = None


class ProjectStats(BaseModel):
    boards_count: int = 0
    tasks_count: int = 0
    members_count: int = 0


class ProjectDetail(ProjectSummary):
    members: list["MemberRead"] = []
    stats: ProjectStats = ProjectStats()
    boards: Optional[list[BoardDetail]] = None


# ─── Members ────────────────────────────────────────────

class MemberAdd(BaseModel):
    user_id: uuid.UUID
    role: str = "member"


class MemberRoleUpdate(BaseModel):
    role: str


class MemberRead(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    role: str
    is_owner: bool = False
    joined_at: Optional[datetime] = None

    @classmethod
    def from_member(cls, member) -> "MemberRead":
        return cls(
            user_id=member.user_id,
            name=member.user.name,
            email=member.user.email,
            role=normalize_member_role(member.role),
            joined_at=member.joined_at,
        )

    @classmethod
    def from_owner(cls, user, project) -> "MemberRead":
        return cls(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role="owner",
            is_owner=True,
            joined_at=project.created_at,
        )


ProjectDetail.model_rebuild()
