"""Pydantic schemas for tasks and comments.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST into a column
- TaskUpdate: what you PATCH/PUT (all optional; column_id moves the task)
- CommentRead: nested — replies hang off their parent
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

PRIORITY = r"^(low|medium|high|urgent)$"
STATUS = r"^(todo|in_progress|review|done|blocked)$"


# ─── Tasks ───────────────────────────────────────────────

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(default="", max_length=5000)
    status: str = Field(default="todo", pattern=STATUS)
    priority: str = Field(default="medium", pattern=PRIORITY)
    assignee_id: Optional[uuid.UUID] = None
    deadline: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    position: Optional[int] = Field(None, ge=0)

    model_config = {"str_strip_whitespace": True}


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[str] = Field(None, pattern=STATUS)
    priority: Optional[str] = Field(None, pattern=PRIORITY)
    column_id: Optional[uuid.UUID] = None
    position: Optional[int] = Field(None, ge=0)
    assignee_id: Optional[uuid.UUID] = None
    deadline: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)

    model_config = {"str_strip_whitespace": True}


class TaskRead(BaseModel):
    id: uuid.UUID
    column_id: uuid.UUID
    title: str
    description: str
    status: str
    priority: str
    position: int
    assignee_id: Optional[uuid.UUID]
    creator_id: uuid.UUID
    deadline: Optional[datetime]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Comments ────────────────────────────────────────────

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[uuid.UUID] = None

    model_config = {"str_strip_whitespace": True}


class CommentRead(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    author_id: uuid.UUID
    author_name: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    content: str
    created_at: datetime
    updated_at: datetime
    replies: list["CommentRead"] = []

    @classmethod
    def from_comment(cls, comment) -> "CommentRead":
        return cls(
            id=comment.id,
            task_id=comment.task_id,
            author_id=comment.author_id,
            author_name=comment.author.name if comment.author else None,
            parent_id=comment.parent_id,
            content=comment.content,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


CommentRead.model_rebuild()


def build_comment_tree(comments) -> list[CommentRead]:
    """Nest a flat, oldest-first comment list into threads.

    Order is preserved at every level. A reply whose parent is not in
    the list is shown at the top level.
    """
    nodes = {c.id: CommentRead.from_comment(c) for c in comments}
    roots: list[CommentRead] = []
    for c in comments:
        parent = nodes.get(c.parent_id) if c.parent_id else None
        if parent is not None:
            parent.replies.append(nodes[c.id])
        else:
            roots.append(nodes[c.id])
    return roots
