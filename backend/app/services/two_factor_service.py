"""
TOTP two-factor authentication
"""
from datetime import datetime, timedelta
from typing import Optional

import pyotp

from app.core.config import settings
from app.core.constants import TWO_FACTOR_LOCK_MINUTES, TWO_FACTOR_MAX_ATTEMPTS
from app.core.logger import logger
from app.db.models import User


class TwoFactorService:

    def new_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, user: User, secret: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=user.email, issuer_name=settings.APP_NAME)

    def verify_code(self, secret: Optional[str], code: str) -> bool:
        if not secret or not code:
            return False
        return pyotp.TOTP(secret).verify(str(code).strip(), valid_window=1)

    def is_locked(self, user: User) -> bool:
        return bool(user.two_factor_lock_until and user.two_factor_lock_until > datetime.utcnow())

    def register_failure(self, user: User) -> None:
        """Counts a failed code; the last allowed failure locks the account."""
        attempts = (user.two_factor_failed_attempts or 0) + 1
        if attempts >= TWO_FACTOR_MAX_ATTEMPTS:
            user.two_factor_lock_until = datetime.utcnow() + timedelta(minutes=TWO_FACTOR_LOCK_MINUTES)
            user.two_factor_failed_attempts = 0
            logger.warning(f"2FA locked for user {user.id} after {attempts} failed attempts")
        else:
            user.two_factor_failed_attempts = attempts

    def reset_counters(self, user: User) -> None:
        user.two_factor_failed_attempts = 0
        user.two_factor_lock_until = None


two_factor_service = TwoFactorService()
