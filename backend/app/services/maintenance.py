"""
Periodic housekeeping run by the app's background loop
"""
from datetime import datetime
from typing import Dict

from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import PasswordResetRequest, PasswordResetStatus
from app.services.otp_service import otp_service


def expire_reset_requests(db: Session) -> int:
    """Reject pending password-reset requests past their expiry."""
    now = datetime.utcnow()
    stale = (
        db.query(PasswordResetRequest)
        .filter(
            PasswordResetRequest.status == PasswordResetStatus.pending,
            PasswordResetRequest.expires_at < now,
        )
        .all()
    )
    for req in stale:
        req.status = PasswordResetStatus.rejected
        req.rejection_reason = "Expired"
    db.commit()
    return len(stale)


def run_maintenance(db: Session) -> Dict[str, int]:
    result = {
        "otp_sessions_removed": otp_service.purge_expired(db),
        "reset_requests_expired": expire_reset_requests(db),
    }
    if any(result.values()):
        logger.info(f"Maintenance: {result}")
    return result
