# backend/leaderforge/apps/accounts/services.py

"""
Company and user management.

Services flush but never commit; routers and jobs own the transaction.

Errors:
- LookupError      -> the company / user does not exist (or is outside the company)
- ValueError       -> the request is invalid for the current state
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from leaderforge.user_id import generate_company_code

from . import models, schemas

logger = logging.getLogger(__name__)

# Each person is expected to complete one Bold Action a week for a year.
BOLD_ACTIONS_PER_USER = 48

_MAX_CODE_ATTEMPTS = 50

_CLEAR_SUPERVISOR_VALUES = {"", "none"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------------------------


def get_company(db: Session, name: str) -> Optional[models.Company]:
    return db.query(models.Company).filter(models.Company.name == name).first()


def get_company_by_code(db: Session, code: str) -> Optional[models.Company]:
    normalised = (code or "").strip()
    if not normalised:
        return None
    return db.query(models.Company).filter(models.Company.code == normalised).first()


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    if not user_id:
        return None
    return db.query(models.User).filter(models.User.id == str(user_id).strip()).first()


def get_company_user(db: Session, company_name: str, user_id: str) -> models.User:
    """Load a user that must belong to `company_name`."""
    user = get_user(db, user_id)
    if user is None or user.company_name != company_name:
        raise LookupError("User not found in this company.")
    return user


def list_company_users(
    db: Session,
    company_name: str,
    roles: Optional[Iterable[models.UserRole]] = None,
) -> List[models.User]:
    q = db.query(models.User).filter(models.User.company_name == company_name)
    if roles:
        q = q.filter(models.User.role.in_(list(roles)))
    return q.order_by(models.User.last_name.asc(), models.User.first_name.asc()).all()


def _require_company(db: Session, company_name: str) -> models.Company:
    company = get_company(db, company_name)
    if company is None:
        raise LookupError("Company not found.")
    return company


# ---------------------------------------------------------------------------
# COMPANY CODES
# ---------------------------------------------------------------------------


def allocate_company_code(db: Session) -> str:
    """
    Return an invite code not used by any company yet.
    """
    for _ in range(_MAX_CODE_ATTEMPTS):
        candidate = generate_company_code()
        if get_company_by_code(db, candidate) is None:
            return candidate
    raise RuntimeError("Could not allocate a unique company code.")


def backfill_company_codes(db: Session) -> Dict[str, object]:
    """
    Give every company without an invite code a fresh one.

    Returns a summary dict for logging/cron visibility.
    """
    companies = db.query(models.Company).order_by(models.Company.name.asc()).all()
    assigned: Dict[str, str] = {}
    for company in companies:
        if company.code:
            continue
        company.code = allocate_company_code(db)
        db.add(company)
        # Flush per company so the next uniqueness check sees this code.
        db.flush()
        assigned[company.name] = company.code
        logger.info("Assigned company code", extra={"company_name": company.name, "code": company.code})
    return {"companies_total": len(companies), "codes_assigned": len(assigned), "assigned": assigned}


# ---------------------------------------------------------------------------
# SIGNUP FLOWS
# ---------------------------------------------------------------------------


def _new_user(
    profile: schemas.UserProfileIn,
    *,
    role: models.UserRole,
    company_name: str,
    supervisor_id: str = "",
) -> models.User:
    now = _utcnow()
    return models.User(
        id=profile.id,
        email=str(profile.email).strip().lower(),
        first_name=profile.first_name.strip(),
        last_name=profile.last_name.strip(),
        role=role,
        company_name=company_name,
        supervisor_id=supervisor_id,
        permissions=list(models.ROLE_PERMISSIONS[role]),
        training_progress=models.default_training_progress(),
        created_at=now,
        updated_at=now,
        last_active_at=now,
    )


def _ensure_new_user_id(db: Session, user_id: str) -> None:
    if get_user(db, user_id) is not None:
        raise ValueError("An account with this id already exists.")


def create_company(db: Session, data: schemas.CompanySetup) -> models.Company:
    """
    Company setup flow: create the company and its executive.
    """
    name = data.name.strip()
    if not name:
        raise ValueError("Company name is required.")
    if get_company(db, name) is not None:
        raise ValueError("A company with this name already exists")
    _ensure_new_user_id(db, data.executive.id)

    company = models.Company(
        name=name,
        size=data.size,
        code=allocate_company_code(db),
        executive_user_id=data.executive.id,
        settings=models.default_company_settings(),
    )
    db.add(company)
    db.add(_new_user(data.executive, role=models.UserRole.EXECUTIVE, company_name=name))
    db.flush()
    logger.info("Company created", extra={"company_name": name, "executive_id": data.executive.id})
    return company


def join_company_as_supervisor(
    db: Session,
    *,
    company_name: str,
    profile: schemas.UserProfileIn,
) -> models.User:
    company = get_company(db, company_name)
    if company is None:
        raise LookupError("Company not found")
    _ensure_new_user_id(db, profile.id)

    user = _new_user(profile, role=models.UserRole.SUPERVISOR, company_name=company.name)
    db.add(user)
    db.flush()
    return user


def join_company_as_team_member(
    db: Session,
    *,
    company_code: str,
    profile: schemas.UserProfileIn,
    supervisor_id: Optional[str] = None,
) -> models.User:
    company = get_company_by_code(db, company_code)
    if company is None:
        raise LookupError("Invalid company code")
    _ensure_new_user_id(db, profile.id)

    resolved_supervisor = ""
    if supervisor_id:
        supervisor = get_user(db, supervisor_id)
        if supervisor is None or supervisor.company_name != company.name:
            raise ValueError("Supervisor does not belong to this company.")
        resolved_supervisor = supervisor.id

    user = _new_user(
        profile,
        role=models.UserRole.TEAM_MEMBER,
        company_name=company.name,
        supervisor_id=resolved_supervisor,
    )
    db.add(user)
    db.flush()
    return user


# ---------------------------------------------------------------------------
# ROLE / SUPERVISOR MANAGEMENT
# ---------------------------------------------------------------------------


def change_user_role(
    db: Session,
    *,
    company_name: str,
    user_id: str,
    role: models.UserRole,
) -> models.User:
    user = get_company_user(db, company_name, user_id)
    user.role = role
    if role == models.UserRole.EXECUTIVE:
        user.supervisor_id = ""
    db.add(user)
    db.flush()
    return user


def _resolve_supervisor_id(db: Session, company_name: str, supervisor_id: Optional[str]) -> str:
    raw = (supervisor_id or "").strip()
    if raw.lower() in _CLEAR_SUPERVISOR_VALUES:
        return ""
    supervisor = get_company_user(db, company_name, raw)
    if supervisor.role not in (models.UserRole.SUPERVISOR, models.UserRole.EXECUTIVE):
        raise ValueError("Assigned supervisor must be a supervisor or executive.")
    return supervisor.id


def assign_supervisor(
    db: Session,
    *,
    company_name: str,
    user_id: str,
    supervisor_id: Optional[str],
) -> models.User:
    user = get_company_user(db, company_name, user_id)
    if user.role == models.UserRole.EXECUTIVE:
        raise ValueError("Executives cannot be assigned supervisors.")

    resolved = _resolve_supervisor_id(db, company_name, supervisor_id)
    if resolved and resolved == user.id:
        raise ValueError("A user cannot supervise themselves.")
    user.supervisor_id = resolved
    db.add(user)
    db.flush()
    return user


def batch_update_users(
    db: Session,
    *,
    company_name: str,
    data: schemas.BatchUserUpdate,
) -> List[models.User]:
    """
    Apply one role and/or supervisor to several users at once.

    The supervisor is only applied when the batch role is not itself a
    supervising role. Every user is validated before anything changes.
    """
    if data.role is None and not data.supervisor_id:
        raise ValueError("Nothing to update.")

    users = [get_company_user(db, company_name, user_id) for user_id in data.user_ids]

    apply_supervisor = bool(data.supervisor_id) and data.role not in (
        models.UserRole.SUPERVISOR,
        models.UserRole.EXECUTIVE,
    )
    resolved_supervisor = _resolve_supervisor_id(db, company_name, data.supervisor_id) if apply_supervisor else None

    for user in users:
        if data.role is not None:
            user.role = data.role
        if resolved_supervisor is not None and user.role != models.UserRole.EXECUTIVE and user.id != resolved_supervisor:
            user.supervisor_id = resolved_supervisor
        db.add(user)
    db.flush()
    return users


# ---------------------------------------------------------------------------
# SETTINGS
# ---------------------------------------------------------------------------


def get_company_settings(db: Session, company_name: str) -> dict:
    company = _require_company(db, company_name)
    return dict(company.settings or {})


def update_company_settings(
    db: Session,
    *,
    company_name: str,
    data: schemas.CompanySettingsUpdate,
) -> dict:
    company = _require_company(db, company_name)
    settings = dict(company.settings or {})
    settings.update(data.model_dump(exclude_unset=True, exclude_none=True))
    settings["lastUpdated"] = _utcnow().isoformat()
    # Reassign so the JSON column is marked dirty.
    company.settings = settings
    db.add(company)
    db.flush()
    return settings


# ---------------------------------------------------------------------------
# COMPANY PROGRESS
# ---------------------------------------------------------------------------


def get_company_progress(db: Session, company_name: str) -> schemas.CompanyProgress:
    users = list_company_users(db, company_name)
    total_completed = sum(u.completed_bold_actions or 0 for u in users)
    return schemas.CompanyProgress(
        total_users=len(users),
        total_completed_bold_actions=total_completed,
        remaining_actions=len(users) * BOLD_ACTIONS_PER_USER - total_completed,
    )


def get_leaderboard(db: Session, company_name: str, limit: int = 3) -> List[schemas.LeaderboardEntry]:
    rows = (
        db.query(models.User)
        .filter(
            models.User.company_name == company_name,
            models.User.completed_bold_actions > 0,
        )
        .order_by(models.User.completed_bold_actions.desc(), models.User.last_name.asc())
        .limit(max(limit, 0))
        .all()
    )
    return [
        schemas.LeaderboardEntry(user_id=u.id, name=u.full_name, score=u.completed_bold_actions)
        for u in rows
    ]
