"""
Jail visit requests raised by counsellors and reviewed by lawyers / admin
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_roles
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import JailVisitStatus, UserRole
from app.services.review_service import apply_decision, ensure_can_delete
from app.utils.helpers import model_to_dict, user_summary
from app.utils.validators import require_fields

router = APIRouter()

REVIEW_STATUSES = (JailVisitStatus.approved, JailVisitStatus.rejected, JailVisitStatus.more_info_needed)


def _get_visit(db: Session, visit_id: UUID) -> models.JailVisit:
    visit = db.query(models.JailVisit).filter(models.JailVisit.id == visit_id).first()
    if not visit:
        raise HTTPException(status_code=404, detail="Jail visit not found")
    return visit


def _visit_to_api(visit: models.JailVisit) -> dict:
    data = model_to_dict(visit)
    data["jail"] = {"id": visit.jail.id, "name": visit.jail.name} if visit.jail else None
    data["counselor"] = user_summary(visit.counselor)
    data["approver"] = user_summary(visit.approver)
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_jail_visit(
    body: schemas.JailVisitCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    require_fields(
        body.model_dump(),
        ("case_number", "accused_name", "jail_id", "requested_date", "requested_time", "reason"),
        "All required fields must be filled"
    )
    jail = db.query(models.Jail).filter(models.Jail.id == body.jail_id).first()
    if not jail:
        raise HTTPException(status_code=404, detail="Jail not found")

    visit = models.JailVisit(
        case_number=body.case_number.strip(),
        accused_name=body.accused_name.strip(),
        jail_id=jail.id,
        emirate=jail.emirate,
        counselor_id=current_user.id,
        requested_date=body.requested_date,
        requested_time=body.requested_time,
        reason=body.reason,
        status=JailVisitStatus.pending,
    )
    db.add(visit)
    db.commit()
    db.refresh(visit)
    logger.info(f"Jail visit requested for {visit.case_number} by {current_user.email}")
    return {"success": True, "message": "Jail visit requested", "data": _visit_to_api(visit)}


@router.get("/")
def list_jail_visits(
    status: Optional[str] = None,
    emirate: Optional[str] = None,
    counselor_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.JailVisit)
    if UserRole(current_user.role) == UserRole.counsellor:
        query = query.filter(models.JailVisit.counselor_id == current_user.id)
    elif counselor_id:
        query = query.filter(models.JailVisit.counselor_id == counselor_id)
    if status:
        query = query.filter(models.JailVisit.status == status)
    if emirate and emirate.lower() != "all":
        query = query.filter(models.JailVisit.emirate == emirate)
    if start_date and end_date:
        query = query.filter(models.JailVisit.requested_date.between(start_date, end_date))

    visits = query.order_by(models.JailVisit.created_at.desc()).all()
    return {"success": True, "data": [_visit_to_api(v) for v in visits], "count": len(visits)}


@router.get("/{visit_id}")
def get_jail_visit(visit_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    visit = _get_visit(db, visit_id)
    if UserRole(current_user.role) == UserRole.counsellor and visit.counselor_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to view this visit")
    return {"success": True, "data": _visit_to_api(visit)}


@router.put("/{visit_id}/status")
def update_jail_visit_status(
    visit_id: UUID,
    body: schemas.ReviewDecision,
    current_user: models.User = Depends(require_roles(UserRole.super_admin, UserRole.lawyer)),
    db: Session = Depends(get_db)
):
    visit = _get_visit(db, visit_id)
    apply_decision(visit, body, current_user, JailVisitStatus, REVIEW_STATUSES)
    db.commit()
    db.refresh(visit)
    logger.info(f"Jail visit {visit.id} marked {visit.status.value} by {current_user.email}")
    return {"success": True, "message": "Jail visit updated", "data": _visit_to_api(visit)}


@router.delete("/{visit_id}")
def delete_jail_visit(visit_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    visit = _get_visit(db, visit_id)
    ensure_can_delete(visit, visit.counselor_id, current_user)
    db.delete(visit)
    db.commit()
    return {"success": True, "message": "Jail visit deleted"}
