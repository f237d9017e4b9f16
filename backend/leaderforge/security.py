# backend/leaderforge/security.py

"""
Security helpers for LeaderForge.

Responsibilities:
- Verify access tokens issued by the external identity provider
- FastAPI dependencies for the current user and role checks
- Build the explicit session context handed to dashboard services

Sign-in, password handling and token issuance live with the identity
provider; this module only verifies what it receives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, Set, Union

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .database import get_db
from leaderforge.apps.accounts import models as account_models
from leaderforge.apps.accounts.models import UserRole

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

# In production, ALWAYS override these via environment variables.
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None

# The identity provider owns the token endpoint; this only feeds OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=os.getenv("AUTH_TOKEN_URL", "/auth/token"))


@dataclass(frozen=True)
class SessionContext:
    """Who is asking, and for which company."""

    company_name: str
    requesting_user_id: str


# ---------------------------------------------------------------------------
# TOKENS
# ---------------------------------------------------------------------------


def decode_access_token(token: str) -> dict:
    """
    Verify the token signature and return its claims.

    Raises JWTError when the token is invalid or expired.
    """
    options = {"verify_aud": JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[JWT_ALGORITHM],
        audience=JWT_AUDIENCE,
        options=options,
    )


def get_user_by_id(
    db: Session,
    user_id: Union[str, int],
) -> Optional[account_models.User]:
    if user_id is None:
        return None

    normalised_id = str(user_id).strip()

    return (
        db.query(account_models.User)
        .filter(account_models.User.id == normalised_id)
        .first()
    )


# ---------------------------------------------------------------------------
# FASTAPI DEPENDENCIES
# ---------------------------------------------------------------------------


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_subject(token: str = Depends(oauth2_scheme)) -> str:
    """
    Return the verified `sub` claim without requiring a stored user.

    Signup flows use this: the account exists with the identity provider
    but has no user record yet.
    """
    try:
        subject = decode_access_token(token).get("sub")
    except JWTError:
        raise _credentials_exception()
    if not subject:
        raise _credentials_exception()
    return str(subject)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> account_models.User:
    """
    Decode the access token and return the corresponding User.

    The token is expected to carry the user id in its `sub` claim.
    """
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise _credentials_exception()
    except JWTError:
        raise _credentials_exception()

    user = get_user_by_id(db, user_id)
    if user is None:
        raise _credentials_exception()

    return user


def get_company_user(
    current_user: account_models.User = Depends(get_current_user),
) -> account_models.User:
    """
    Ensure the current user has finished signup and belongs to a company.
    """
    if not current_user.company_name:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No company is associated with this account.",
        )
    return current_user


def get_session_context(
    current_user: account_models.User = Depends(get_company_user),
) -> SessionContext:
    return SessionContext(
        company_name=current_user.company_name,
        requesting_user_id=current_user.id,
    )


# ---------------------------------------------------------------------------
# ROLE-BASED ACCESS HELPER
# ---------------------------------------------------------------------------


def require_roles(
    *allowed_roles: Union[UserRole, str],
) -> Callable[[account_models.User], account_models.User]:
    """
    Dependency factory to enforce that the current user has one of the given roles.

    Usage:
        @router.get(...)
        def endpoint(
            current_user: User = Depends(require_roles(UserRole.EXECUTIVE))
        ):
            ...

    Roles may be given as UserRole members or their string values
    ("executive", "supervisor", "team_member").
    """
    normalised_roles: Set[UserRole] = set()
    for r in allowed_roles:
        if isinstance(r, UserRole):
            normalised_roles.add(r)
        else:
            try:
                normalised_roles.add(UserRole(r))
            except ValueError:
                raise ValueError(f"Unknown role {r!r} passed to require_roles()")

    def dependency(
        current_user: account_models.User = Depends(get_company_user),
    ) -> account_models.User:
        if current_user.role not in normalised_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this page.",
            )
        return current_user

    return dependency
