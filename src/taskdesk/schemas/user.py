"""Pydantic schemas for accounts.

Three read views of the same row, each exposing less:
- UserAdmin: everything an admin manages (never the password hash)
- UserProfile: what a user sees about themselves
- UserSummary: what a manager needs to pick an assignee
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from taskdesk.db.models import Role


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Optional[Role] = None  # defaults to USER


class PasswordUpdate(BaseModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., min_length=8, alias="newPassword")

    model_config = {"populate_by_name": True}


class UserAdmin(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    role: Role

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}
