# backend/leaderforge/apps/accounts/router.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from leaderforge.database import get_db, get_read_db
from leaderforge.security import get_company_user, get_token_subject, require_roles
from . import models, schemas, services

router = APIRouter(prefix="/accounts", tags=["accounts"])

_require_executive = require_roles(models.UserRole.EXECUTIVE)


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------


def _ensure_subject_matches(subject: str, profile: schemas.UserProfileIn) -> None:
    if subject != profile.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile id does not match the signed-in account.",
        )


def _raise_http(exc: Exception) -> None:
    if isinstance(exc, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ---------------------------------------------------------------------------
# SIGNUP / JOIN
# ---------------------------------------------------------------------------


@router.post(
    "/companies",
    response_model=schemas.CompanyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Set up a new company and its executive",
)
def setup_company(
    payload: schemas.CompanySetup,
    db: Session = Depends(get_db),
    subject: str = Depends(get_token_subject),
):
    _ensure_subject_matches(subject, payload.executive)
    try:
        company = services.create_company(db, payload)
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(company)
    return company


@router.get(
    "/join/companies/{company_code}",
    summary="Resolve an invite code to a company name",
)
def lookup_company_code(company_code: str, db: Session = Depends(get_read_db)):
    company = services.get_company_by_code(db, company_code)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid company code")
    return {"name": company.name, "code": company.code}


@router.post(
    "/join/supervisor",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
)
def join_as_supervisor(
    payload: schemas.SupervisorJoin,
    db: Session = Depends(get_db),
    subject: str = Depends(get_token_subject),
):
    _ensure_subject_matches(subject, payload.profile)
    try:
        user = services.join_company_as_supervisor(db, company_name=payload.company_name, profile=payload.profile)
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(user)
    return user


@router.post(
    "/join/team",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
)
def join_as_team_member(
    payload: schemas.TeamMemberJoin,
    db: Session = Depends(get_db),
    subject: str = Depends(get_token_subject),
):
    _ensure_subject_matches(subject, payload.profile)
    try:
        user = services.join_company_as_team_member(
            db,
            company_code=payload.company_code,
            profile=payload.profile,
            supervisor_id=payload.supervisor_id,
        )
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# CURRENT USER
# ---------------------------------------------------------------------------


@router.get("/me", response_model=schemas.UserRead)
def read_me(current_user: models.User = Depends(get_company_user)):
    return current_user


# ---------------------------------------------------------------------------
# COMPANY SETTINGS (EXECUTIVE)
# ---------------------------------------------------------------------------


@router.get("/company", response_model=schemas.CompanyRead)
def read_company(
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(_require_executive),
):
    company = services.get_company(db, current_user.company_name)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found.")
    return company


@router.get("/company/settings", response_model=schemas.CompanySettings)
def read_company_settings(
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(_require_executive),
):
    try:
        return services.get_company_settings(db, current_user.company_name)
    except LookupError as exc:
        _raise_http(exc)


@router.put("/company/settings", response_model=schemas.CompanySettings)
def update_company_settings(
    payload: schemas.CompanySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(_require_executive),
):
    try:
        settings = services.update_company_settings(db, company_name=current_user.company_name, data=payload)
    except LookupError as exc:
        _raise_http(exc)
    db.commit()
    return settings


@router.get("/company/users", response_model=List[schemas.UserRead])
def list_company_users(
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(_require_executive),
):
    return services.list_company_users(db, current_user.company_name)


@router.put("/company/users/{user_id}/role", response_model=schemas.UserRead)
def change_role(
    user_id: str,
    payload: schemas.RoleChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(_require_executive),
):
    try:
        user = services.change_user_role(
            db,
            company_name=current_user.company_name,
            user_id=user_id,
            role=payload.role,
        )
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(user)
    return user


@router.put("/company/users/{user_id}/supervisor", response_model=schemas.UserRead)
def change_supervisor(
    user_id: str,
    payload: schemas.SupervisorAssignment,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(_require_executive),
):
    try:
        user = services.assign_supervisor(
            db,
            company_name=current_user.company_name,
            user_id=user_id,
            supervisor_id=payload.supervisor_id,
        )
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(user)
    return user


@router.post("/company/users/batch", response_model=List[schemas.UserRead])
def batch_update(
    payload: schemas.BatchUserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(_require_executive),
):
    try:
        users = services.batch_update_users(db, company_name=current_user.company_name, data=payload)
    except (LookupError, ValueError) as exc:
        db.rollback()
        _raise_http(exc)
    db.commit()
    for user in users:
        db.refresh(user)
    return users


# ---------------------------------------------------------------------------
# COMPANY PROGRESS
# ---------------------------------------------------------------------------


@router.get("/company/progress", response_model=schemas.CompanyProgress)
def company_progress(
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(get_company_user),
):
    return services.get_company_progress(db, current_user.company_name)


@router.get("/company/leaderboard", response_model=List[schemas.LeaderboardEntry])
def company_leaderboard(
    limit: int = 3,
    db: Session = Depends(get_read_db),
    current_user: models.User = Depends(get_company_user),
):
    return services.get_leaderboard(db, current_user.company_name, limit=min(max(limit, 1), 50))
