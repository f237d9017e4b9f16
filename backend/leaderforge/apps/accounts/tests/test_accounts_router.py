from __future__ import annotations

import pytest
from fastapi import HTTPException

from leaderforge.apps.accounts import models as account_models
from leaderforge.apps.accounts import router as accounts_router
from leaderforge.apps.accounts import schemas as account_schemas


def _profile(user_id: str) -> account_schemas.UserProfileIn:
    return account_schemas.UserProfileIn(
        id=user_id, email=f"{user_id.lower()}@acme.io", first_name="First", last_name="Last"
    )


def _setup(db_session) -> account_models.Company:
    return accounts_router.setup_company(
        account_schemas.CompanySetup(name="Acme", size=10, executive=_profile("EXEC-1")),
        db=db_session,
        subject="EXEC-1",
    )


def test_setup_company_requires_matching_token_subject(db_session):
    with pytest.raises(HTTPException) as exc:
        accounts_router.setup_company(
            account_schemas.CompanySetup(name="Acme", size=10, executive=_profile("EXEC-1")),
            db=db_session,
            subject="SOMEONE-ELSE",
        )
    assert exc.value.status_code == 403


def test_setup_company_duplicate_maps_to_400(db_session):
    _setup(db_session)
    with pytest.raises(HTTPException) as exc:
        accounts_router.setup_company(
            account_schemas.CompanySetup(name="Acme", size=10, executive=_profile("EXEC-2")),
            db=db_session,
            subject="EXEC-2",
        )
    assert exc.value.status_code == 400


def test_lookup_company_code(db_session):
    company = _setup(db_session)

    assert accounts_router.lookup_company_code(company.code, db=db_session) == {
        "name": "Acme",
        "code": company.code,
    }
    with pytest.raises(HTTPException) as exc:
        accounts_router.lookup_company_code("00000", db=db_session)
    assert exc.value.status_code == 404


def test_join_team_with_bad_code_maps_to_404(db_session):
    _setup(db_session)
    with pytest.raises(HTTPException) as exc:
        accounts_router.join_as_team_member(
            account_schemas.TeamMemberJoin(company_code="00000", profile=_profile("MEM-1")),
            db=db_session,
            subject="MEM-1",
        )
    assert exc.value.status_code == 404


def test_executive_manages_team(db_session):
    company = _setup(db_session)
    executive = db_session.get(account_models.User, "EXEC-1")
    accounts_router.join_as_supervisor(
        account_schemas.SupervisorJoin(company_name="Acme", profile=_profile("SUP-1")),
        db=db_session,
        subject="SUP-1",
    )
    accounts_router.join_as_team_member(
        account_schemas.TeamMemberJoin(company_code=company.code, profile=_profile("MEM-1")),
        db=db_session,
        subject="MEM-1",
    )

    member = accounts_router.change_supervisor(
        "MEM-1",
        account_schemas.SupervisorAssignment(supervisor_id="SUP-1"),
        db=db_session,
        current_user=executive,
    )
    assert member.supervisor_id == "SUP-1"

    with pytest.raises(HTTPException) as exc:
        accounts_router.change_supervisor(
            "EXEC-1",
            account_schemas.SupervisorAssignment(supervisor_id="SUP-1"),
            db=db_session,
            current_user=executive,
        )
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        accounts_router.change_role(
            "GHOST",
            account_schemas.RoleChange(role=account_models.UserRole.SUPERVISOR),
            db=db_session,
            current_user=executive,
        )
    assert exc.value.status_code == 404

    users = accounts_router.list_company_users(db=db_session, current_user=executive)
    assert {u.id for u in users} == {"EXEC-1", "SUP-1", "MEM-1"}
