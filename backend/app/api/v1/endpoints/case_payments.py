"""
Case payment endpoints (/cases/{case_id}/payments)

Every change recalculates the case's paid / remaining amounts.
"""
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_staff
from app.api.v1.endpoints.cases import ensure_case_visible, get_case_or_404
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import PaymentStatus
from app.services.case_service import recalculate_case_payments, unique_invoice_number
from app.utils.helpers import model_to_dict
from app.utils.validators import require_fields

router = APIRouter()


NOTE_LABELS = (("being", "Being"), ("bank", "Bank"), ("cheque_date", "Cheque Date"))


def _payment_notes(being: Optional[str], bank: Optional[str], cheque_date: Optional[str]) -> str:
    return f"Being: {being or ''} | Bank: {bank or ''} | Cheque Date: {cheque_date or ''}"


def _parse_payment_notes(notes: Optional[str]) -> Dict[str, str]:
    labels = {label: key for key, label in NOTE_LABELS}
    values = {}
    for segment in (notes or "").split(" | "):
        label, sep, value = segment.partition(":")
        if sep and label.strip() in labels:
            values[labels[label.strip()]] = value.strip()
    return values


def _get_payment(db: Session, case_id: UUID, payment_id: UUID) -> models.Payment:
    payment = (
        db.query(models.Payment)
        .filter(models.Payment.id == payment_id, models.Payment.case_id == case_id)
        .first()
    )
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def _totals(case: models.Case) -> dict:
    return {"paid_amount": case.paid_amount, "remaining_amount": case.remaining_amount}


@router.get("/{case_id}/payments")
def list_case_payments(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    ensure_case_visible(case, current_user)
    payments = (
        db.query(models.Payment)
        .filter(models.Payment.case_id == case_id)
        .order_by(models.Payment.invoice_date.desc())
        .all()
    )
    return {"success": True, "data": [model_to_dict(p) for p in payments]}


@router.post("/{case_id}/payments", status_code=status.HTTP_201_CREATED)
def add_case_payment(
    case_id: UUID,
    body: schemas.CasePaymentIn,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    require_fields(body.model_dump(), ("date", "payment_type", "amount"), "Date, payment type and amount are required")

    payment = models.Payment(
        case_id=case.id,
        client_id=case.client_id,
        amount=body.amount,
        payment_method=body.payment_type,
        status=PaymentStatus.completed,
        transaction_id=body.cheque_number,
        invoice_number=unique_invoice_number(db),
        invoice_date=body.date,
        notes=_payment_notes(body.being, body.bank, body.cheque_date),
    )
    db.add(payment)
    recalculate_case_payments(db, case)
    db.commit()
    db.refresh(payment)
    db.refresh(case)
    return {
        "success": True,
        "message": "Payment added",
        "data": {"payment": model_to_dict(payment), "case": _totals(case)},
    }


@router.put("/{case_id}/payments/{payment_id}")
def update_case_payment(
    case_id: UUID,
    payment_id: UUID,
    body: schemas.CasePaymentIn,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    payment = _get_payment(db, case_id, payment_id)
    data = body.model_dump(exclude_unset=True)

    if data.get("amount") is not None:
        payment.amount = data["amount"]
    if data.get("payment_type"):
        payment.payment_method = data["payment_type"]
    if data.get("date"):
        payment.invoice_date = data["date"]
    if "cheque_number" in data:
        payment.transaction_id = data["cheque_number"]
    if {"being", "bank", "cheque_date"} & set(data):
        current = _parse_payment_notes(payment.notes)
        merged = {key: data[key] if key in data else current.get(key) for key, _ in NOTE_LABELS}
        payment.notes = _payment_notes(merged["being"], merged["bank"], merged["cheque_date"])

    recalculate_case_payments(db, case)
    db.commit()
    db.refresh(payment)
    db.refresh(case)
    return {
        "success": True,
        "message": "Payment updated",
        "data": {"payment": model_to_dict(payment), "case": _totals(case)},
    }


@router.delete("/{case_id}/payments/{payment_id}")
def delete_case_payment(
    case_id: UUID,
    payment_id: UUID,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    db.delete(_get_payment(db, case_id, payment_id))
    recalculate_case_payments(db, case)
    db.commit()
    db.refresh(case)
    return {"success": True, "message": "Payment deleted", "data": {"case": _totals(case)}}
