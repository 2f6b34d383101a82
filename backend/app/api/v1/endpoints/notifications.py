"""
Outbound notification endpoints (staff only)

Every send is recorded in the notifications table; provider failures are
stored on the row rather than surfaced as server errors.
"""
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
import httpx
from sqlalchemy.orm import Session

from app.api.v1.deps import require_staff
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import NotificationStatus, NotificationType
from app.services.notification_service import notification_service

router = APIRouter()


def _deliver(
    db: Session,
    channel: NotificationType,
    user_id: Optional[UUID],
    message: str,
    meta: dict,
    send: Callable[[], dict],
) -> dict:
    notification = models.Notification(
        user_id=user_id,
        type=channel,
        message=message,
        status=NotificationStatus.pending,
        meta=meta,
    )
    try:
        result = send()
        notification.status = NotificationStatus.sent
        notification.sent_at = datetime.utcnow()
        notification.meta = {**meta, "provider": result.get("provider")}
    except (ValueError, httpx.HTTPError) as exc:
        logger.error(f"{channel.value} notification failed: {exc}")
        notification.status = NotificationStatus.failed
        notification.error_message = str(exc)

    db.add(notification)
    db.commit()
    db.refresh(notification)
    return {
        "success": notification.status == NotificationStatus.sent,
        "status": notification.status,
        "notification_id": notification.id,
    }


@router.post("/sms")
def send_sms(
    body: schemas.SMSRequest,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return _deliver(
        db, NotificationType.sms, body.user_id, body.message, {"phone": body.phone},
        lambda: notification_service.send_sms(body.phone, body.message),
    )


@router.post("/whatsapp")
def send_whatsapp(
    body: schemas.SMSRequest,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return _deliver(
        db, NotificationType.whatsapp, body.user_id, body.message, {"phone": body.phone},
        lambda: notification_service.send_whatsapp(body.phone, body.message),
    )


@router.post("/email")
def send_email(
    body: schemas.EmailNotificationRequest,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return _deliver(
        db, NotificationType.email, body.user_id, body.subject, {"email": body.email, "subject": body.subject},
        lambda: notification_service.send_email(body.email, body.subject, body.html),
    )
