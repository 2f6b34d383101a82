# app/api/v1/deps.py

from typing import List, Optional
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
import jwt

from app.core.constants import FACILITY_EMIRATES, NO_EMIRATE_SENTINEL
from app.core.logger import logger
from app.core.security import TOKEN_ACCESS, decode_token
from app.db.database import get_db
from app.db.models import EMIRATE_SCOPED_ROLES, User, UserRole
from app.utils.helpers import has_emirate_access, parse_emirates

security = HTTPBearer(auto_error=False)

# ============================================================================
# JWT Dependency
# ============================================================================

def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = decode_token(token, expected_type=TOKEN_ACCESS)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (jwt.PyJWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    try:
        user = db.query(User).filter(User.id == user_id).first()
    except OperationalError as exc:
        logger.error(f"Database unavailable during authentication: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database temporarily unavailable"
        )

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Validate the bearer access token and return the current user.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required"
        )
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user when a valid token is sent, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except HTTPException as exc:
        if exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
            raise
        return None


# ============================================================================
# Role gates
# ============================================================================

def require_roles(*roles: UserRole):
    allowed = set(roles)

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions."
            )
        return current_user

    return _checker


require_super_admin = require_roles(UserRole.super_admin)
require_coordinator = require_roles(UserRole.super_admin, UserRole.coordinator)
require_staff = require_roles(
    UserRole.super_admin, UserRole.coordinator, UserRole.counsellor, UserRole.lawyer
)


def require_self_or_admin(user_id: uuid.UUID, current_user: User = Depends(get_current_user)) -> User:
    """For routes with a {user_id} path parameter."""
    if UserRole(current_user.role) != UserRole.super_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Insufficient permissions."
        )
    return current_user


# ============================================================================
# Emirate scoping
# ============================================================================

def _canonical_emirate(name: str) -> str:
    target = name.strip().casefold()
    for candidate in FACILITY_EMIRATES:
        if candidate.casefold() == target:
            return candidate
    return name.strip()


def get_emirate_filter(user: User) -> Optional[List[str]]:
    """
    Emirates a user's queries are restricted to; None means unrestricted.
    Stored assignments are mapped onto the canonical spelling so the SQL
    filter agrees with has_emirate_access.
    """
    if UserRole(user.role) not in EMIRATE_SCOPED_ROLES:
        return None
    emirates = [_canonical_emirate(item) for item in parse_emirates(user.assigned_emirates) if item.strip()]
    return emirates or [NO_EMIRATE_SENTINEL]


def check_emirate_access(emirate: Optional[str], user: User) -> None:
    if not emirate or not str(emirate).strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Emirate is required"
        )
    if not has_emirate_access(user, emirate):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. You do not have access to {emirate}."
        )
