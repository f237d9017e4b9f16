# backend/leaderforge/apps/dashboards/store.py

"""
Read-side access for the dashboards.

`ProgressStore` hands the aggregator plain records instead of ORM rows:
every timestamp is normalised with `to_instant` on the way out, and every
call opens and closes its own read session so member fetches can run on
worker threads without sharing a SQLAlchemy session.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from leaderforge.apps.accounts import models as account_models
from leaderforge.apps.training import models as training_models
from leaderforge.database import ReadSessionLocal
from leaderforge.utils.timestamps import to_instant


@dataclass(frozen=True)
class PersonRecord:
    id: str
    first_name: str
    last_name: str
    role: str
    supervisor_id: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ProgressRecord:
    training_id: str
    video_completed: bool
    worksheet_completed: bool
    last_updated: Optional[datetime]

    @property
    def completed(self) -> bool:
        return self.video_completed and self.worksheet_completed


@dataclass(frozen=True)
class BoldActionRecord:
    id: str
    action: str
    status: str
    created_at: Optional[datetime]
    completed_at: Optional[datetime] = None
    training_id: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == training_models.BoldActionStatus.COMPLETED.value


@dataclass(frozen=True)
class StandupRecord:
    id: str
    supervisor_id: str
    status: str
    scheduled_for: Optional[datetime]
    completed_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.status == training_models.StandupStatus.COMPLETED.value


def _enum_value(value) -> str:
    return getattr(value, "value", value) or ""


def _person(user: account_models.User) -> PersonRecord:
    return PersonRecord(
        id=user.id,
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        role=_enum_value(user.role),
        supervisor_id=user.supervisor_id or "",
    )


def _between(column, start: Optional[datetime], end: Optional[datetime]):
    clauses = []
    if start is not None:
        clauses.append(column >= start)
    if end is not None:
        clauses.append(column <= end)
    return and_(*clauses)


class ProgressStore:
    """SQL-backed store; one read session per call."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or ReadSessionLocal

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    # ------------------------------------------------------------------
    # PEOPLE
    # ------------------------------------------------------------------

    def list_supervisors(self, company_name: str) -> List[PersonRecord]:
        with self._session() as db:
            rows = (
                db.query(account_models.User)
                .filter(
                    account_models.User.company_name == company_name,
                    account_models.User.role == account_models.UserRole.SUPERVISOR,
                )
                .order_by(account_models.User.first_name.asc(), account_models.User.last_name.asc())
                .all()
            )
            return [_person(row) for row in rows]

    def list_team_members(self, company_name: str, supervisor_id: str) -> List[PersonRecord]:
        with self._session() as db:
            rows = (
                db.query(account_models.User)
                .filter(
                    account_models.User.company_name == company_name,
                    account_models.User.supervisor_id == supervisor_id,
                    account_models.User.role == account_models.UserRole.TEAM_MEMBER,
                )
                .order_by(account_models.User.first_name.asc(), account_models.User.last_name.asc())
                .all()
            )
            return [_person(row) for row in rows]

    # ------------------------------------------------------------------
    # ACTIVITY
    # ------------------------------------------------------------------

    def get_training_progress(self, user_id: str) -> Dict[str, ProgressRecord]:
        with self._session() as db:
            document = db.get(training_models.TrainingProgressDocument, user_id)
            entries = dict(document.entries or {}) if document is not None else {}

        progress: Dict[str, ProgressRecord] = {}
        for training_id, raw in entries.items():
            raw = raw or {}
            progress[training_id] = ProgressRecord(
                training_id=training_id,
                video_completed=bool(raw.get("videoCompleted")),
                worksheet_completed=bool(raw.get("worksheetCompleted")),
                last_updated=to_instant(raw.get("lastUpdated")),
            )
        return progress

    def list_bold_actions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[BoldActionRecord]:
        """
        Bold actions for a user, newest first. With bounds, only actions
        created or completed inside them are returned.
        """
        model = training_models.BoldAction
        with self._session() as db:
            q = db.query(model).filter(model.user_id == user_id)
            if start is not None or end is not None:
                q = q.filter(
                    or_(
                        _between(model.created_at, start, end),
                        _between(model.completed_at, start, end),
                    )
                )
            rows = q.order_by(model.created_at.desc()).all()
            return [
                BoldActionRecord(
                    id=row.id,
                    action=row.action or "",
                    status=_enum_value(row.status),
                    created_at=to_instant(row.created_at),
                    completed_at=to_instant(row.completed_at),
                    training_id=row.training_id,
                )
                for row in rows
            ]

    def list_standups(
        self,
        user_id: str,
        supervisor_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[StandupRecord]:
        model = training_models.Standup
        with self._session() as db:
            q = db.query(model).filter(model.user_id == user_id)
            if supervisor_id is not None:
                q = q.filter(model.supervisor_id == supervisor_id)
            if start is not None or end is not None:
                q = q.filter(
                    or_(
                        _between(model.scheduled_for, start, end),
                        _between(model.completed_at, start, end),
                    )
                )
            rows = q.order_by(model.scheduled_for.desc()).all()
            return [
                StandupRecord(
                    id=row.id,
                    supervisor_id=row.supervisor_id,
                    status=_enum_value(row.status),
                    scheduled_for=to_instant(row.scheduled_for),
                    completed_at=to_instant(row.completed_at),
                )
                for row in rows
            ]

    # ------------------------------------------------------------------
    # DIRECTORY
    # ------------------------------------------------------------------

    def list_company_people(self, company_name: str) -> List[PersonRecord]:
        """Supervisors and team members; executives are left out."""
        with self._session() as db:
            rows = (
                db.query(account_models.User)
                .filter(
                    account_models.User.company_name == company_name,
                    account_models.User.role.in_(
                        [account_models.UserRole.SUPERVISOR, account_models.UserRole.TEAM_MEMBER]
                    ),
                )
                .order_by(account_models.User.first_name.asc(), account_models.User.last_name.asc())
                .all()
            )
            return [_person(row) for row in rows]

    def get_training_titles(self, training_ids) -> Dict[str, str]:
        ids = [training_id for training_id in training_ids if training_id]
        if not ids:
            return {}
        with self._session() as db:
            rows = db.query(training_models.Training).filter(training_models.Training.id.in_(ids)).all()
            return {row.id: row.title for row in rows}
