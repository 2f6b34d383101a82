"""
Consultation booking endpoints
"""
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, get_optional_user, require_staff
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import ConsultationStatus, UserRole
from app.utils.helpers import model_to_dict

router = APIRouter()

DEFAULT_CONSULTATION_PRICE = Decimal("400.00")


@router.post("/", status_code=status.HTTP_201_CREATED)
def book_consultation(
    body: schemas.ConsultationCreate,
    current_user: Optional[models.User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Anonymous bookings must carry client contact details."""
    data = body.model_dump()
    is_client = current_user is not None and current_user.role == UserRole.client

    if current_user is None and not (data.get("client_name") and data.get("client_email") and data.get("client_phone")):
        raise HTTPException(status_code=400, detail="Client name, email and phone are required")

    if is_client:
        data["client_name"] = data.get("client_name") or current_user.name
        data["client_email"] = data.get("client_email") or current_user.email
        data["client_phone"] = data.get("client_phone") or current_user.phone

    consultation = models.Consultation(
        **data,
        client_id=current_user.id if is_client else None,
        status=ConsultationStatus.pending,
    )
    if consultation.price is None:
        consultation.price = DEFAULT_CONSULTATION_PRICE
    if not consultation.payment_method:
        consultation.payment_method = "later"

    db.add(consultation)
    db.commit()
    db.refresh(consultation)
    logger.info(f"Consultation {consultation.id} booked for {consultation.client_email}")
    return {"success": True, "message": "Consultation booked", "data": model_to_dict(consultation)}


@router.get("/")
def list_consultations(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = db.query(models.Consultation)
    if current_user.role == UserRole.client:
        query = query.filter(models.Consultation.client_id == current_user.id)
    elif current_user.role == UserRole.counsellor:
        query = query.filter(models.Consultation.counsellor_id == current_user.id)
    elif current_user.role == UserRole.lawyer:
        query = query.filter(models.Consultation.lawyer_id == current_user.id)

    consultations = query.order_by(models.Consultation.scheduled_date.desc()).all()
    return {"success": True, "data": [model_to_dict(c) for c in consultations]}


@router.put("/{consultation_id}")
def update_consultation(
    consultation_id: UUID,
    body: schemas.ConsultationUpdate,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    consultation = db.query(models.Consultation).filter(models.Consultation.id == consultation_id).first()
    if not consultation:
        raise HTTPException(status_code=404, detail="Consultation not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(consultation, field, value)
    db.commit()
    db.refresh(consultation)
    return {"success": True, "message": "Consultation updated", "data": model_to_dict(consultation)}
