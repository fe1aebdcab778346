"""Pydantic schemas for accounts and login."""

import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL)
    name: Name
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Name and/or password. Changing the password needs the current one."""
    name: Optional[Name] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=8, max_length=128)


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    approval_status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    id: uuid.UUID
    email: str
    name: str

    model_config = {"from_attributes": True}


class LoginResult(BaseModel):
    token: str
    expires_at: datetime
    user: UserRead
