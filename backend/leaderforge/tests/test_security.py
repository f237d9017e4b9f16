from __future__ import annotations

import pytest
from fastapi import HTTPException
from jose import jwt

from leaderforge import security
from leaderforge.apps.accounts import models as account_models


def _user(role: account_models.UserRole, company_name: str = "Acme") -> account_models.User:
    return account_models.User(
        id="USR-1",
        first_name="Pat",
        last_name="Lee",
        role=role,
        company_name=company_name,
        supervisor_id="",
    )


def _token(claims: dict) -> str:
    return jwt.encode(claims, security.SECRET_KEY, algorithm=security.JWT_ALGORITHM)


def test_token_subject_is_verified():
    assert security.get_token_subject(_token({"sub": "USR-1"})) == "USR-1"


def test_token_with_wrong_signature_is_rejected():
    forged = jwt.encode({"sub": "USR-1"}, "another-secret", algorithm=security.JWT_ALGORITHM)
    with pytest.raises(HTTPException) as exc:
        security.get_token_subject(forged)
    assert exc.value.status_code == 401


def test_current_user_is_loaded_by_subject(db_session):
    db_session.add(_user(account_models.UserRole.TEAM_MEMBER))
    db_session.commit()

    user = security.get_current_user(token=_token({"sub": "USR-1"}), db=db_session)
    assert user.id == "USR-1"

    with pytest.raises(HTTPException):
        security.get_current_user(token=_token({"sub": "USR-404"}), db=db_session)


def test_require_roles_blocks_other_roles():
    gate = security.require_roles(account_models.UserRole.EXECUTIVE)

    executive = _user(account_models.UserRole.EXECUTIVE)
    assert gate(current_user=executive) is executive

    with pytest.raises(HTTPException) as exc:
        gate(current_user=_user(account_models.UserRole.SUPERVISOR))
    assert exc.value.status_code == 403
    assert exc.value.detail == "You do not have permission to view this page."


def test_require_roles_rejects_unknown_role_names():
    with pytest.raises(ValueError):
        security.require_roles("pilot")


def test_company_user_and_session_context():
    with pytest.raises(HTTPException) as exc:
        security.get_company_user(current_user=_user(account_models.UserRole.TEAM_MEMBER, company_name=""))
    assert exc.value.status_code == 403

    context = security.get_session_context(current_user=_user(account_models.UserRole.EXECUTIVE))
    assert context == security.SessionContext(company_name="Acme", requesting_user_id="USR-1")
