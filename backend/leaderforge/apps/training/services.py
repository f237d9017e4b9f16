from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from sqlalchemy.orm import Session

from leaderforge.apps.accounts import models as account_models
from leaderforge.utils.timestamps import to_instant, to_storage

from . import models, schemas

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# TRAINING PROGRESS
# ---------------------------------------------------------------------------


def get_progress_entries(db: Session, user_id: str) -> Dict[str, dict]:
    """Raw progress map for a user; {} when the user has no progress yet."""
    document = db.get(models.TrainingProgressDocument, user_id)
    if document is None or not document.entries:
        return {}
    return dict(document.entries)


def _merge_progress(
    db: Session,
    *,
    user_id: str,
    training_id: str,
    updates: dict,
    now: Optional[datetime],
) -> schemas.ProgressEntry:
    if not training_id:
        raise ValueError("training_id is required.")
    stamp = to_instant(now) if now is not None else _utcnow()

    document = db.get(models.TrainingProgressDocument, user_id)
    if document is None:
        document = models.TrainingProgressDocument(user_id=user_id, entries={})

    entries = dict(document.entries or {})
    entry = dict(entries.get(training_id) or {})
    entry.update(updates)
    entry["lastUpdated"] = to_storage(stamp)
    entries[training_id] = entry
    # Reassign so the JSON column is marked dirty.
    document.entries = entries
    db.add(document)
    db.flush()

    return schemas.ProgressEntry(
        videoCompleted=bool(entry.get("videoCompleted")),
        worksheetCompleted=bool(entry.get("worksheetCompleted")),
        lastUpdated=stamp,
    )


def mark_video_completed(
    db: Session,
    *,
    user_id: str,
    training_id: str,
    now: Optional[datetime] = None,
) -> schemas.ProgressEntry:
    return _merge_progress(db, user_id=user_id, training_id=training_id, updates={"videoCompleted": True}, now=now)


def mark_worksheet_completed(
    db: Session,
    *,
    user_id: str,
    training_id: str,
    now: Optional[datetime] = None,
) -> schemas.ProgressEntry:
    return _merge_progress(db, user_id=user_id, training_id=training_id, updates={"worksheetCompleted": True}, now=now)


# ---------------------------------------------------------------------------
# BOLD ACTIONS
# ---------------------------------------------------------------------------


def create_bold_action(
    db: Session,
    *,
    user_id: str,
    data: schemas.BoldActionCreate,
    now: Optional[datetime] = None,
) -> models.BoldAction:
    bold_action = models.BoldAction(
        user_id=user_id,
        training_id=data.training_id,
        action=data.action.strip(),
        timeframe=data.timeframe.strip(),
        status=models.BoldActionStatus.ACTIVE,
        created_at=now or _utcnow(),
    )
    db.add(bold_action)
    db.flush()
    return bold_action


def complete_bold_action(
    db: Session,
    *,
    user_id: str,
    bold_action_id: str,
    data: schemas.BoldActionComplete,
    now: Optional[datetime] = None,
) -> models.BoldAction:
    """
    ACTIVE -> COMPLETED. Completing twice is rejected so the user's
    completed counter is only bumped once.
    """
    bold_action = (
        db.query(models.BoldAction)
        .filter(models.BoldAction.id == bold_action_id, models.BoldAction.user_id == user_id)
        .first()
    )
    if bold_action is None:
        raise LookupError("Bold action not found.")
    if bold_action.status != models.BoldActionStatus.ACTIVE:
        raise ValueError("Bold action is already completed.")

    bold_action.status = models.BoldActionStatus.COMPLETED
    bold_action.completed_at = now or _utcnow()
    bold_action.actual_timeframe = data.actual_timeframe
    bold_action.reflection_notes = data.reflection_notes
    db.add(bold_action)

    user = db.get(account_models.User, user_id)
    if user is not None:
        user.completed_bold_actions = (user.completed_bold_actions or 0) + 1
        db.add(user)
    db.flush()
    return bold_action


def list_bold_actions(
    db: Session,
    *,
    user_id: str,
    status: Optional[models.BoldActionStatus] = None,
) -> Sequence[models.BoldAction]:
    q = db.query(models.BoldAction).filter(models.BoldAction.user_id == user_id)
    if status is not None:
        q = q.filter(models.BoldAction.status == status)
    return q.order_by(models.BoldAction.created_at.desc()).all()


# ---------------------------------------------------------------------------
# STANDUPS
# ---------------------------------------------------------------------------


def schedule_standup(
    db: Session,
    *,
    supervisor: account_models.User,
    data: schemas.StandupCreate,
) -> models.Standup:
    member = db.get(account_models.User, data.member_id)
    if member is None or member.company_name != supervisor.company_name:
        raise LookupError("Team member not found.")
    if member.supervisor_id != supervisor.id:
        raise PermissionError("This person is not on your team.")

    standup = models.Standup(
        user_id=member.id,
        supervisor_id=supervisor.id,
        status=models.StandupStatus.SCHEDULED,
        scheduled_for=to_instant(data.scheduled_for),
    )
    db.add(standup)
    db.flush()
    logger.info(
        "Standup scheduled",
        extra={"standup_id": standup.id, "member_id": member.id, "supervisor_id": supervisor.id},
    )
    return standup


def complete_standup(
    db: Session,
    *,
    supervisor: account_models.User,
    standup_id: str,
    data: schemas.StandupComplete,
    now: Optional[datetime] = None,
) -> models.Standup:
    standup = db.get(models.Standup, standup_id)
    if standup is None:
        raise LookupError("Standup not found.")
    if standup.supervisor_id != supervisor.id:
        raise PermissionError("Only the supervisor who scheduled this standup can complete it.")
    if standup.status != models.StandupStatus.SCHEDULED:
        raise ValueError("Standup is already completed.")

    standup.status = models.StandupStatus.COMPLETED
    standup.completed_at = now or _utcnow()
    standup.notes = data.notes
    db.add(standup)
    db.flush()
    return standup


def list_upcoming_standups(
    db: Session,
    *,
    supervisor_id: str,
    now: Optional[datetime] = None,
) -> Sequence[models.Standup]:
    moment = now or _utcnow()
    return (
        db.query(models.Standup)
        .filter(
            models.Standup.supervisor_id == supervisor_id,
            models.Standup.status == models.StandupStatus.SCHEDULED,
            models.Standup.scheduled_for >= moment,
        )
        .order_by(models.Standup.scheduled_for.asc())
        .all()
    )
