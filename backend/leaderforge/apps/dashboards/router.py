# backend/leaderforge/apps/dashboards/router.py

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from leaderforge.security import SessionContext, get_session_context, require_roles
from ..accounts import models as accounts_models
from . import schemas, services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboards", tags=["dashboards"])

_require_executive = require_roles(accounts_models.UserRole.EXECUTIVE)
_require_supervisor = require_roles(
    accounts_models.UserRole.SUPERVISOR,
    accounts_models.UserRole.EXECUTIVE,
)


@router.get(
    "/executive/metrics",
    response_model=schemas.WeeklyMetrics,
    summary="Weekly and four-week progress for every team in the company",
)
def executive_metrics(
    refresh: bool = False,
    current_user: accounts_models.User = Depends(_require_executive),
    context: SessionContext = Depends(get_session_context),
):
    try:
        return services.compute_company_weekly_metrics(context, force_refresh=refresh)
    except Exception:
        logger.exception(
            "Dashboard aggregation failed",
            extra={"company_name": context.company_name, "requesting_user_id": context.requesting_user_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard data",
        )


@router.get("/executive/directory", response_model=List[schemas.DirectoryEntry])
def company_directory(
    search: Optional[str] = None,
    current_user: accounts_models.User = Depends(_require_executive),
):
    return services.list_company_directory(current_user.company_name, search)


@router.get("/supervisor/team", response_model=List[schemas.DirectoryEntry])
def supervisor_team(
    search: Optional[str] = None,
    current_user: accounts_models.User = Depends(_require_supervisor),
):
    return services.list_supervisor_team(current_user.company_name, current_user.id, search)
