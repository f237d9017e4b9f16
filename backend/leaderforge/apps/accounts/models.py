# backend/leaderforge/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    JSON,
    String,
)

from leaderforge.database import Base
from leaderforge.user_id import generate_user_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    """Roles a person can hold inside a company."""

    TEAM_MEMBER = "team_member"
    SUPERVISOR = "supervisor"
    EXECUTIVE = "executive"


# Permissions granted on signup, per role.
ROLE_PERMISSIONS = {
    UserRole.EXECUTIVE: ["executive", "supervisor", "team_member"],
    UserRole.SUPERVISOR: ["supervisor", "team_member"],
    UserRole.TEAM_MEMBER: ["team_member"],
}


def default_company_settings() -> dict:
    return {
        "lastUpdated": _utcnow().isoformat(),
        "trainingEnabled": True,
        "worksheetsEnabled": True,
        "standupNotesEnabled": True,
    }


def default_training_progress() -> dict:
    return {
        "lastUpdated": _utcnow().isoformat(),
        "completedVideos": 0,
        "totalVideos": 0,
        "progress": 0,
    }


# ---------------------------------------------------------------------------
# COMPANY
# ---------------------------------------------------------------------------


class Company(Base):
    """
    A customer organisation.

    The company name is the key everything else hangs off: users carry a
    denormalised `company_name` rather than a foreign key.
    """

    __tablename__ = "companies"

    name = Column(String(255), primary_key=True)
    size = Column(Integer, nullable=True)
    code = Column(
        String(8),
        unique=True,
        nullable=True,
        index=True,
        doc="Five-digit invite code used by the team join link",
    )
    executive_user_id = Column(String(36), nullable=True)
    settings = Column(JSON, nullable=False, default=default_company_settings)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Company name={self.name!r} code={self.code}>"


# ---------------------------------------------------------------------------
# USER
# ---------------------------------------------------------------------------


class User(Base):
    """
    A person using LeaderForge.

    Identity lives with the external identity provider; `id` is the subject
    that provider issues. `supervisor_id` is an empty string when unassigned.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_company_role", "company_name", "role"),
        Index("ix_users_company_supervisor", "company_name", "supervisor_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    email = Column(String(255), nullable=True, index=True)
    first_name = Column(String(128), nullable=False, default="")
    last_name = Column(String(128), nullable=False, default="")

    role = Column(
        Enum(UserRole, name="user_role_enum", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.TEAM_MEMBER,
        index=True,
    )
    company_name = Column(String(255), nullable=True, index=True)
    supervisor_id = Column(String(36), nullable=False, default="", index=True)

    permissions = Column(JSON, nullable=False, default=list)
    training_progress = Column(JSON, nullable=False, default=default_training_progress)
    completed_bold_actions = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role} company={self.company_name!r}>"
