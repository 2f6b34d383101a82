"""
Court fee quotations
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_roles
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import CaseStatus, QuotationStatus, UserRole
from app.services.review_service import apply_decision, ensure_can_delete
from app.services.tracking_service import tracking_service
from app.utils.helpers import model_to_dict, user_summary
from app.utils.validators import require_fields

router = APIRouter()


def _get_quotation(db: Session, quotation_id: UUID) -> models.CourtQuotation:
    quotation = db.query(models.CourtQuotation).filter(models.CourtQuotation.id == quotation_id).first()
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return quotation


def _quotation_to_api(quotation: models.CourtQuotation) -> dict:
    data = model_to_dict(quotation)
    data["creator"] = user_summary(quotation.creator)
    data["approver"] = user_summary(quotation.approver)
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_quotation(
    body: schemas.CourtQuotationCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    require_fields(
        body.model_dump(),
        ("case_number", "emirate", "court", "client_name", "fee_amount"),
        "All required fields must be filled"
    )
    case_number = body.case_number.strip()
    if not db.query(models.Case.id).filter(models.Case.case_number == case_number).first():
        raise HTTPException(status_code=404, detail="Case not found")

    quotation = models.CourtQuotation(
        case_number=case_number,
        emirate=body.emirate.strip(),
        court=body.court.strip(),
        client_name=body.client_name.strip(),
        client_contact=body.client_contact,
        fee_amount=body.fee_amount,
        notes=body.notes,
        attachments=body.attachments,
        status=QuotationStatus.pending,
        created_by=current_user.id,
    )
    db.add(quotation)
    db.commit()
    db.refresh(quotation)
    logger.info(f"Court quotation for {case_number} created by {current_user.email}")
    return {"success": True, "message": "Quotation created", "data": _quotation_to_api(quotation)}


@router.get("/")
def list_quotations(
    status: Optional[str] = None,
    emirate: Optional[str] = None,
    created_by: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.CourtQuotation)
    if UserRole(current_user.role) == UserRole.counsellor:
        query = query.filter(models.CourtQuotation.created_by == current_user.id)
    elif created_by:
        query = query.filter(models.CourtQuotation.created_by == created_by)
    if status:
        query = query.filter(models.CourtQuotation.status == status)
    if emirate and emirate.lower() != "all":
        query = query.filter(models.CourtQuotation.emirate == emirate)
    if start_date and end_date:
        # whole days, end inclusive
        query = query.filter(
            models.CourtQuotation.created_at >= datetime.combine(start_date, time.min),
            models.CourtQuotation.created_at < datetime.combine(end_date + timedelta(days=1), time.min),
        )

    quotations = query.order_by(models.CourtQuotation.created_at.desc()).all()
    return {"success": True, "data": [_quotation_to_api(q) for q in quotations], "count": len(quotations)}


@router.get("/{quotation_id}")
def get_quotation(quotation_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    quotation = _get_quotation(db, quotation_id)
    if UserRole(current_user.role) == UserRole.counsellor and quotation.created_by != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to view this quotation")
    return {"success": True, "data": _quotation_to_api(quotation)}


@router.put("/{quotation_id}/status")
def update_quotation_status(
    quotation_id: UUID,
    body: schemas.ReviewDecision,
    current_user: models.User = Depends(require_roles(UserRole.super_admin, UserRole.lawyer)),
    db: Session = Depends(get_db)
):
    quotation = _get_quotation(db, quotation_id)
    apply_decision(
        quotation, body, current_user, QuotationStatus, (QuotationStatus.approved, QuotationStatus.rejected)
    )

    if quotation.status == QuotationStatus.approved:
        case = db.query(models.Case).filter(models.Case.case_number == quotation.case_number).first()
        if case:
            old_status = case.status
            case.status = CaseStatus.in_progress
            case.lawyer_id = current_user.id
            tracking_service.record(
                db,
                case.id,
                "quotation_approved",
                user_id=current_user.id,
                old_value=old_status,
                new_value=CaseStatus.in_progress,
                description=f"Court quotation approved by {current_user.name}",
            )

    db.commit()
    db.refresh(quotation)
    logger.info(f"Quotation {quotation.id} marked {quotation.status.value} by {current_user.email}")
    return {"success": True, "message": "Quotation updated", "data": _quotation_to_api(quotation)}


@router.delete("/{quotation_id}")
def delete_quotation(quotation_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    quotation = _get_quotation(db, quotation_id)
    ensure_can_delete(quotation, quotation.created_by, current_user)
    db.delete(quotation)
    db.commit()
    return {"success": True, "message": "Quotation deleted"}
