"""
Client <-> firm messages
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_super_admin
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import MessageStatus, UserRole
from app.utils.helpers import model_to_dict, user_summary
from app.utils.validators import require_fields, validate_choice

router = APIRouter()

RECENT_CASES = 5


def _get_message(db: Session, message_id: UUID) -> models.Message:
    message = db.query(models.Message).filter(models.Message.id == message_id).first()
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


def _ensure_own(message: models.Message, user: models.User) -> None:
    if UserRole(user.role) == UserRole.client and message.client_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")


def _message_to_api(db: Session, message: models.Message) -> dict:
    data = model_to_dict(message)
    data["client"] = user_summary(message.client)
    data["replier"] = user_summary(message.replier)
    recent = (
        db.query(models.Case)
        .filter(models.Case.client_id == message.client_id)
        .order_by(models.Case.created_at.desc())
        .limit(RECENT_CASES)
        .all()
    )
    data["client_cases"] = [
        {"id": c.id, "case_number": c.case_number, "status": c.status, "emirate": c.emirate} for c in recent
    ]
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_message(
    body: schemas.MessageCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("subject", "message"), "Subject and message are required")
    message = models.Message(
        client_id=current_user.id,
        subject=body.subject.strip(),
        message=body.message,
        priority=body.priority,
        status=MessageStatus.pending,
        is_read=False,
        client_read=True,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(f"Message {message.id} sent by {current_user.email}")
    return {"success": True, "message": "Message sent successfully", "data": _message_to_api(db, message)}


@router.get("/")
def list_messages(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.Message)
    if UserRole(current_user.role) == UserRole.client:
        query = query.filter(models.Message.client_id == current_user.id)
    if status:
        query = query.filter(models.Message.status == status)
    if priority:
        query = query.filter(models.Message.priority == priority)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(models.Message.subject.ilike(term), models.Message.message.ilike(term)))

    messages = query.order_by(models.Message.created_at.desc()).all()
    return {"success": True, "data": [_message_to_api(db, m) for m in messages], "count": len(messages)}


@router.get("/unread-count")
def unread_count(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    role = UserRole(current_user.role)
    count = 0
    if role == UserRole.super_admin:
        count = db.query(func.count(models.Message.id)).filter(models.Message.is_read.is_(False)).scalar()
    elif role == UserRole.client:
        count = (
            db.query(func.count(models.Message.id))
            .filter(
                models.Message.client_id == current_user.id,
                models.Message.status == MessageStatus.replied,
                models.Message.client_read.is_(False),
            )
            .scalar()
        )
    return {"success": True, "data": {"count": count or 0}}


@router.get("/{message_id}")
def get_message(message_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    message = _get_message(db, message_id)
    _ensure_own(message, current_user)

    role = UserRole(current_user.role)
    if role == UserRole.super_admin and not message.is_read:
        message.is_read = True
        db.commit()
    elif role == UserRole.client and message.status == MessageStatus.replied and not message.client_read:
        message.client_read = True
        db.commit()

    return {"success": True, "data": _message_to_api(db, message)}


@router.post("/{message_id}/reply")
def reply_to_message(
    message_id: UUID,
    body: schemas.MessageReply,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("admin_reply",), "Reply is required")
    message = _get_message(db, message_id)
    message.admin_reply = body.admin_reply
    message.status = MessageStatus.replied
    message.replied_by = current_user.id
    message.replied_at = datetime.utcnow()
    message.is_read = True
    message.client_read = False
    db.commit()
    db.refresh(message)
    logger.info(f"Message {message.id} replied by {current_user.email}")
    return {"success": True, "message": "Reply sent successfully", "data": _message_to_api(db, message)}


@router.put("/{message_id}/status")
def update_message_status(
    message_id: UUID,
    body: schemas.MessageStatusUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    message = _get_message(db, message_id)
    message.status = validate_choice(body.status, MessageStatus, "status")
    db.commit()
    db.refresh(message)
    return {"success": True, "message": "Message status updated", "data": _message_to_api(db, message)}


@router.delete("/{message_id}")
def delete_message(
    message_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    db.delete(_get_message(db, message_id))
    db.commit()
    return {"success": True, "message": "Message deleted"}
