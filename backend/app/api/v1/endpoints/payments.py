"""
Payment endpoints
"""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.api.v1.endpoints.cases import ensure_case_visible, get_case_or_404
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import PaymentStatus, UserRole
from app.services.case_service import unique_invoice_number
from app.utils.helpers import model_to_dict

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_payment(
    body: schemas.PaymentCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if body.case_id is not None:
        get_case_or_404(db, body.case_id)
    if body.consultation_id is not None:
        exists = db.query(models.Consultation.id).filter(models.Consultation.id == body.consultation_id).first()
        if not exists:
            raise HTTPException(status_code=404, detail="Consultation not found")

    payment = models.Payment(
        **body.model_dump(),
        client_id=current_user.id,
        status=PaymentStatus.pending,
        invoice_number=unique_invoice_number(db),
        invoice_date=datetime.utcnow(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"Payment {payment.invoice_number} created by {current_user.email}")
    return {"success": True, "message": "Payment created", "data": model_to_dict(payment)}


@router.get("/")
def list_payments(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = db.query(models.Payment)
    if current_user.role == UserRole.client:
        query = query.filter(models.Payment.client_id == current_user.id)
    payments = query.order_by(models.Payment.created_at.desc()).all()
    return {"success": True, "data": [model_to_dict(p) for p in payments]}


@router.get("/case/{case_id}")
def list_payments_for_case(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    if current_user.role == UserRole.client:
        ensure_case_visible(case, current_user)
    payments = (
        db.query(models.Payment)
        .filter(models.Payment.case_id == case_id)
        .order_by(models.Payment.created_at.desc())
        .all()
    )
    return {"success": True, "data": [model_to_dict(p) for p in payments]}
