# backend/leaderforge/apps/training/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
)

from leaderforge.database import Base
from leaderforge.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class BoldActionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class StandupStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ---------------------------------------------------------------------------
# TRAINING CATALOGUE
# ---------------------------------------------------------------------------


class Training(Base):
    """
    Titles of training videos, keyed by the content provider's id.

    Video files and playback stay with the content provider; only what the
    dashboards display is kept here.
    """

    __tablename__ = "trainings"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    training_date = Column(Date, nullable=True)


# ---------------------------------------------------------------------------
# PER-USER PROGRESS
# ---------------------------------------------------------------------------


class TrainingProgressDocument(Base):
    """
    One row per user holding the progress map:

        {trainingId: {"videoCompleted": bool,
                      "worksheetCompleted": bool,
                      "lastUpdated": <timestamp>}}

    `lastUpdated` may be stored in any shape older writers used; readers
    normalise it with `leaderforge.utils.timestamps.to_instant`.
    """

    __tablename__ = "training_progress_documents"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    entries = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class BoldAction(Base):
    """
    A commitment a user makes after submitting a worksheet.

    Moves from ACTIVE to COMPLETED once; completion records when it happened
    and the user's reflection.
    """

    __tablename__ = "bold_actions"
    __table_args__ = (
        Index("ix_bold_actions_user_status", "user_id", "status"),
        Index("ix_bold_actions_user_completed", "user_id", "completed_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    training_id = Column(String(64), nullable=True)

    action = Column(Text, nullable=False)
    status = Column(
        Enum(BoldActionStatus, name="bold_action_status_enum", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=BoldActionStatus.ACTIVE,
    )
    timeframe = Column(String(255), nullable=True)
    actual_timeframe = Column(String(255), nullable=True)
    reflection_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<BoldAction id={self.id} user={self.user_id} status={self.status}>"


class Standup(Base):
    """
    A short check-in a supervisor schedules with one team member.

    The supervisor is stored on the row so standups stay attributed to the
    supervisor who held them after the member is reassigned.
    """

    __tablename__ = "standups"
    __table_args__ = (
        Index("ix_standups_user_supervisor", "user_id", "supervisor_id"),
        Index("ix_standups_supervisor_status", "supervisor_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    supervisor_id = Column(String(36), nullable=False)

    status = Column(
        Enum(StandupStatus, name="standup_status_enum", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=StandupStatus.SCHEDULED,
    )
    scheduled_for = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Standup id={self.id} user={self.user_id} status={self.status}>"
