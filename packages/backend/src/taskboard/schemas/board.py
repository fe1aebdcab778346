"""Pydantic schemas for boards and columns."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.schemas.common import HEX_COLOR
from taskboard.schemas.task import TaskRead


# ─── Columns ────────────────────────────────────────────

class ColumnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    position: Optional[int] = Field(None, ge=0)  # default: after the last column

    model_config = {"str_strip_whitespace": True}


class ColumnUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    position: Optional[int] = Field(None, ge=0)

    model_config = {"str_strip_whitespace": True}


class ColumnRead(BaseModel):
    id: uuid.UUID
    board_id: uuid.UUID
    name: str
    position: int
    color: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ColumnWithTasks(ColumnRead):
    tasks: Optional[list[TaskRead]] = None


# ─── Boards ─────────────────────────────────────────────

class BoardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    columns: Optional[list[ColumnCreate]] = None

    model_config = {"str_strip_whitespace": True}


class BoardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    model_config = {"str_strip_whitespace": True}


class BoardRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    description: str
    color: str
    creator_id: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BoardDetail(BoardRead):
    """Board with its columns (and optionally each column's tasks)."""
    columns: Optional[list[ColumnWithTasks]] = None
