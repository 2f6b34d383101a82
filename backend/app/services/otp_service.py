from __future__ import annotations

from datetime import datetime, timedelta
import secrets
import time
from typing import Optional

from sqlalchemy.orm import Session

from app.core.constants import OTP_EXPIRY_SECONDS, OTP_LENGTH, OTP_MAX_ATTEMPTS
from app.core.logger import logger
from app.core.security import get_password_hash, verify_password
from app.db.models import OtpSession, User
from app.services.notification_service import notification_service


class OTPError(Exception):
    """Verification failed; message is safe to show the caller."""


class OTPService:
    """Phone login codes kept in the otp_sessions table."""

    def generate_code(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))

    def new_session_id(self) -> str:
        return f"otp_{int(time.time() * 1000)}_{secrets.token_hex(6)}"

    def start(self, db: Session, user: User, phone: str) -> OtpSession:
        code = self.generate_code()
        session = OtpSession(
            id=self.new_session_id(),
            user_id=user.id,
            phone=phone,
            otp_hash=get_password_hash(code),
            attempts=0,
            expires_at=datetime.utcnow() + timedelta(seconds=OTP_EXPIRY_SECONDS),
        )
        db.add(session)
        db.commit()

        minutes = OTP_EXPIRY_SECONDS // 60
        notification_service.send_sms(
            phone, f"Your verification code is {code}. Valid for {minutes} minutes."
        )
        logger.info("OTP session %s started for user %s", session.id, user.id)
        return session

    def verify(self, db: Session, session_id: str, otp: str) -> OtpSession:
        """
        Check a code against its session. A successful or exhausted session
        is deleted; the caller commits.
        """
        session: Optional[OtpSession] = db.query(OtpSession).filter(OtpSession.id == session_id).first()
        if not session:
            raise OTPError("Invalid or expired OTP session")

        if session.expires_at < datetime.utcnow():
            db.delete(session)
            db.commit()
            raise OTPError("OTP has expired")

        if not verify_password(otp, session.otp_hash):
            session.attempts = (session.attempts or 0) + 1
            if session.attempts > OTP_MAX_ATTEMPTS:
                db.delete(session)
                db.commit()
                raise OTPError("Too many failed attempts. Request a new OTP.")
            db.commit()
            raise OTPError("Invalid OTP")

        db.delete(session)
        return session

    def purge_expired(self, db: Session) -> int:
        removed = (
            db.query(OtpSession)
            .filter(OtpSession.expires_at < datetime.utcnow())
            .delete(synchronize_session=False)
        )
        db.commit()
        return removed


otp_service = OTPService()
