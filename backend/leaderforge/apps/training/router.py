from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from leaderforge.database import get_db, get_read_db
from leaderforge.security import get_company_user, require_roles
from leaderforge.utils.timestamps import to_instant
from ..accounts import models as accounts_models
from . import models as training_models
from . import schemas as training_schemas
from . import services

router = APIRouter(prefix="/training", tags=["training"])

_require_supervisor = require_roles(
    accounts_models.UserRole.SUPERVISOR,
    accounts_models.UserRole.EXECUTIVE,
)


def _raise_http(exc: Exception) -> None:
    if isinstance(exc, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ---------------------------------------------------------------------------
# PROGRESS
# ---------------------------------------------------------------------------


@router.get(
    "/progress",
    response_model=training_schemas.ProgressMap,
    summary="Training progress map for the current user",
)
def read_progress(
    db: Session = Depends(get_read_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    entries = {}
    for training_id, raw in services.get_progress_entries(db, current_user.id).items():
        entries[training_id] = training_schemas.ProgressEntry(
            videoCompleted=bool(raw.get("videoCompleted")),
            worksheetCompleted=bool(raw.get("worksheetCompleted")),
            lastUpdated=to_instant(raw.get("lastUpdated")),
        )
    return training_schemas.ProgressMap(entries=entries)


@router.post(
    "/progress/{training_id}/video",
    response_model=training_schemas.ProgressEntry,
    summary="Mark a training video as watched",
)
def complete_video(
    training_id: str,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    try:
        entry = services.mark_video_completed(db, user_id=current_user.id, training_id=training_id)
    except ValueError as exc:
        _raise_http(exc)
    db.commit()
    return entry


@router.post(
    "/progress/{training_id}/worksheet",
    response_model=training_schemas.ProgressEntry,
    summary="Mark a training worksheet as submitted",
)
def complete_worksheet(
    training_id: str,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    try:
        entry = services.mark_worksheet_completed(db, user_id=current_user.id, training_id=training_id)
    except ValueError as exc:
        _raise_http(exc)
    db.commit()
    return entry


# ---------------------------------------------------------------------------
# BOLD ACTIONS
# ---------------------------------------------------------------------------


@router.get("/bold-actions", response_model=List[training_schemas.BoldActionRead])
def list_bold_actions(
    status_filter: Optional[training_models.BoldActionStatus] = None,
    db: Session = Depends(get_read_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    return services.list_bold_actions(db, user_id=current_user.id, status=status_filter)


@router.post(
    "/bold-actions",
    response_model=training_schemas.BoldActionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_bold_action(
    payload: training_schemas.BoldActionCreate,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    bold_action = services.create_bold_action(db, user_id=current_user.id, data=payload)
    db.commit()
    db.refresh(bold_action)
    return bold_action


@router.post(
    "/bold-actions/{bold_action_id}/complete",
    response_model=training_schemas.BoldActionRead,
)
def complete_bold_action(
    bold_action_id: str,
    payload: training_schemas.BoldActionComplete,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(get_company_user),
):
    try:
        bold_action = services.complete_bold_action(
            db,
            user_id=current_user.id,
            bold_action_id=bold_action_id,
            data=payload,
        )
    except (LookupError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(bold_action)
    return bold_action


# ---------------------------------------------------------------------------
# STANDUPS
# ---------------------------------------------------------------------------


@router.get("/standups/upcoming", response_model=List[training_schemas.StandupRead])
def upcoming_standups(
    db: Session = Depends(get_read_db),
    current_user: accounts_models.User = Depends(_require_supervisor),
):
    return services.list_upcoming_standups(db, supervisor_id=current_user.id)


@router.post(
    "/standups",
    response_model=training_schemas.StandupRead,
    status_code=status.HTTP_201_CREATED,
)
def schedule_standup(
    payload: training_schemas.StandupCreate,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(_require_supervisor),
):
    try:
        standup = services.schedule_standup(db, supervisor=current_user, data=payload)
    except (LookupError, PermissionError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(standup)
    return standup


@router.post("/standups/{standup_id}/complete", response_model=training_schemas.StandupRead)
def complete_standup(
    standup_id: str,
    payload: training_schemas.StandupComplete,
    db: Session = Depends(get_db),
    current_user: accounts_models.User = Depends(_require_supervisor),
):
    try:
        standup = services.complete_standup(db, supervisor=current_user, standup_id=standup_id, data=payload)
    except (LookupError, PermissionError, ValueError) as exc:
        _raise_http(exc)
    db.commit()
    db.refresh(standup)
    return standup
