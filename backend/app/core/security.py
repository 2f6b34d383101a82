# app/core/security.py
"""
Password hashing and JWT helpers
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

TOKEN_ACCESS = "access"
TOKEN_REFRESH = "refresh"
TOKEN_RESET = "reset"
TOKEN_2FA_PENDING = "2fa_pending"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def _encode(payload: Dict[str, Any], expires_delta: timedelta, secret: str) -> str:
    to_encode = dict(payload)
    now = datetime.utcnow()
    to_encode.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Issue a bearer access token. `data` must carry `sub` (user id)."""
    delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode({**data, "type": TOKEN_ACCESS}, delta, settings.JWT_SECRET_KEY)


def create_refresh_token(user_id: str) -> str:
    delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode({"sub": user_id, "type": TOKEN_REFRESH}, delta, settings.refresh_secret_key)


def create_reset_token(user_id: str) -> str:
    delta = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    return _encode({"sub": user_id, "type": TOKEN_RESET}, delta, settings.JWT_SECRET_KEY)


def create_two_factor_pending_token(user_id: str) -> str:
    delta = timedelta(minutes=settings.TWO_FACTOR_PENDING_EXPIRE_MINUTES)
    return _encode({"sub": user_id, "type": TOKEN_2FA_PENDING}, delta, settings.JWT_SECRET_KEY)


def decode_token(token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode and validate a token.

    Raises jwt.PyJWTError on a bad signature, expiry, or a type mismatch.
    """
    secret = settings.refresh_secret_key if expected_type == TOKEN_REFRESH else settings.JWT_SECRET_KEY
    payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    token_type = payload.get("type", TOKEN_ACCESS)
    if expected_type and token_type != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token, got {token_type}")
    return payload


def issue_session_tokens(user_id: str) -> Dict[str, str]:
    return {
        "token": create_access_token({"sub": user_id}),
        "refresh_token": create_refresh_token(user_id),
    }
