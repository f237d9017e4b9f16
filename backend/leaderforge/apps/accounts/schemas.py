# backend/leaderforge/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .models import UserRole


# -------------------------------------------------------------------
# USERS
# -------------------------------------------------------------------


class UserProfileIn(BaseModel):
    """
    Profile captured by the signup forms.

    `id` is the subject issued by the identity provider for the new account.
    """

    id: str
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class UserRead(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: str
    last_name: str
    role: UserRole
    company_name: Optional[str] = None
    supervisor_id: str = ""
    permissions: List[str] = Field(default_factory=list)
    completed_bold_actions: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class RoleChange(BaseModel):
    role: UserRole


class SupervisorAssignment(BaseModel):
    # "none" or "" clears the assignment
    supervisor_id: str = ""


class BatchUserUpdate(BaseModel):
    user_ids: List[str] = Field(min_length=1)
    role: Optional[UserRole] = None
    supervisor_id: Optional[str] = None


# -------------------------------------------------------------------
# COMPANIES
# -------------------------------------------------------------------


class CompanySetup(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    size: int = Field(gt=0)
    executive: UserProfileIn


class CompanySettings(BaseModel):
    trainingEnabled: bool = True
    worksheetsEnabled: bool = True
    standupNotesEnabled: bool = True


class CompanySettingsUpdate(BaseModel):
    trainingEnabled: Optional[bool] = None
    worksheetsEnabled: Optional[bool] = None
    standupNotesEnabled: Optional[bool] = None


class CompanyRead(BaseModel):
    name: str
    size: Optional[int] = None
    code: Optional[str] = None
    executive_user_id: Optional[str] = None
    settings: dict = Field(default_factory=dict)
    created_at: datetime

    class Config:
        from_attributes = True


class SupervisorJoin(BaseModel):
    company_name: str
    profile: UserProfileIn


class TeamMemberJoin(BaseModel):
    company_code: str
    supervisor_id: Optional[str] = None
    profile: UserProfileIn


class CompanyProgress(BaseModel):
    total_users: int
    total_completed_bold_actions: int
    remaining_actions: int


class LeaderboardEntry(BaseModel):
    user_id: str
    name: str
    score: int
