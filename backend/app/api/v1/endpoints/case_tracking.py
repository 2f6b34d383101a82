"""
Case tracking endpoints (/cases/{case_id}/tracking)
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_staff, require_super_admin
from app.api.v1.endpoints.cases import ensure_case_visible, get_case_or_404
from app.db.database import get_db
from app.db import models, schemas
from app.services.tracking_service import ANNOTATION_FIELDS, MANUAL_ENTRY, tracking_service
from app.utils.helpers import model_to_dict

router = APIRouter()


def _tracking_to_api(entry: models.CaseTracking) -> dict:
    data = model_to_dict(entry)
    data["user_name"] = entry.user.name if entry.user else None
    return data


def _get_entry(db: Session, case_id: UUID, tracking_id: UUID) -> models.CaseTracking:
    entry = (
        db.query(models.CaseTracking)
        .filter(models.CaseTracking.id == tracking_id, models.CaseTracking.case_id == case_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Tracking record not found")
    return entry


@router.get("/{case_id}/tracking")
def list_tracking(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    ensure_case_visible(case, current_user)
    records = (
        db.query(models.CaseTracking)
        .filter(models.CaseTracking.case_id == case_id)
        .order_by(models.CaseTracking.change_number.desc())
        .all()
    )
    return {"success": True, "data": [_tracking_to_api(r) for r in records]}


@router.post("/{case_id}/tracking", status_code=status.HTTP_201_CREATED)
def add_tracking_entry(
    case_id: UUID,
    body: schemas.TrackingEntry,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    annotations = body.model_dump()
    if not annotations.get("staff_name"):
        annotations["staff_name"] = current_user.name
    entry = tracking_service.record(
        db,
        case_id,
        MANUAL_ENTRY,
        user_id=current_user.id,
        description=f"Manual entry by {current_user.name}",
        **annotations
    )
    db.commit()
    db.refresh(entry)
    return {"success": True, "message": "Tracking entry added", "data": _tracking_to_api(entry)}


@router.put("/{case_id}/tracking/{tracking_id}")
def update_tracking_entry(
    case_id: UUID,
    tracking_id: UUID,
    body: schemas.TrackingEntry,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    entry = _get_entry(db, case_id, tracking_id)
    if entry.change_type != MANUAL_ENTRY:
        raise HTTPException(status_code=400, detail="System-generated tracking records cannot be edited")

    for field, value in body.model_dump(exclude_unset=True).items():
        if field in ANNOTATION_FIELDS:
            setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return {"success": True, "message": "Tracking entry updated", "data": _tracking_to_api(entry)}


@router.delete("/{case_id}/tracking/{tracking_id}")
def delete_tracking_entry(
    case_id: UUID,
    tracking_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    entry = _get_entry(db, case_id, tracking_id)
    db.delete(entry)
    db.commit()
    return {"success": True, "message": "Tracking entry deleted"}
