"""
Case endpoints - registration, listing, updates with change tracking
"""
from datetime import datetime
import re
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.deps import (
    check_emirate_access,
    get_current_user,
    get_emirate_filter,
    require_coordinator,
    require_staff,
)
from app.core.constants import DEFAULT_CASE_PAGE_SIZE
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import CaseStatus, UserRole
from app.services import case_service
from app.services.email_templates import case_update_email
from app.services.notification_service import notification_service
from app.services.tracking_service import tracking_service
from app.utils.helpers import (
    get_pagination_params,
    model_to_dict,
    pagination_block,
    parse_limit,
    sanitize_user,
)
from app.utils.validators import validate_choice, validate_emirate

router = APIRouter()

# Collections managed through their own routes
NESTED_COLLECTIONS = ("tracking_records", "expenses", "payments")


def get_case_or_404(db: Session, case_id: UUID) -> models.Case:
    case = db.query(models.Case).filter(models.Case.id == case_id).first()
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


def ensure_case_visible(case: models.Case, user: models.User) -> None:
    if user.role == UserRole.client and case.client_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    if user.role == UserRole.coordinator and case.coordinator_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")


def _ensure_coordinator_owns(case: models.Case, user: models.User) -> None:
    if user.role == UserRole.coordinator and case.coordinator_id != user.id:
        raise HTTPException(status_code=403, detail="You can only manage cases you coordinate")


def _notify_client(case: models.Case, update: str) -> None:
    if not case.client_email:
        return
    subject, html = case_update_email(case.client_name, case.case_number, update)
    notification_service.try_send_email(case.client_email, subject, html)


# ============================================================================
# Client search
# ============================================================================

@router.get("/search-client")
def search_client(
    query: str = Query(""),
    current_user: models.User = Depends(require_coordinator),
    db: Session = Depends(get_db)
):
    """Find an existing client and their cases before registering a case."""
    term = (query or "").strip()
    if len(term) < 3:
        raise HTTPException(status_code=400, detail="Search query must be at least 3 characters")

    pattern = f"%{term}%"
    phone_term = re.sub(r"[\s\-()]", "", term)
    phone_pattern = f"%{phone_term}%"

    client = (
        db.query(models.User)
        .filter(models.User.role == UserRole.client)
        .filter(or_(
            models.User.email.ilike(pattern),
            models.User.phone.ilike(phone_pattern),
            models.User.name.ilike(pattern),
            models.User.client_number.ilike(pattern),
        ))
        .order_by(models.User.created_at.desc())
        .first()
    )

    cases = (
        db.query(models.Case)
        .filter(or_(
            models.Case.client_email.ilike(pattern),
            models.Case.client_phone.ilike(phone_pattern),
            models.Case.client_name.ilike(pattern),
            models.Case.case_number.ilike(pattern),
        ))
        .order_by(models.Case.created_at.desc())
        .all()
    )

    if client is None and not cases:
        return {"success": True, "data": {"found": False, "client": None, "cases": []}}

    merged = sanitize_user(client) if client else {}
    if cases:
        latest = cases[0]
        for field in ("client_name", "client_email", "client_phone", "emirates_id", "nationality",
                      "whatsapp_number", "landline_number", "company_address", "company_email",
                      "employer_name", "emirate"):
            value = getattr(latest, field)
            if value and not merged.get(field):
                merged[field] = value

    return {
        "success": True,
        "data": {
            "found": True,
            "client": merged,
            "cases": [case_service.case_search_summary(db, c) for c in cases],
        },
    }


# ============================================================================
# Registration
# ============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
def register_case(
    body: schemas.CaseRegister,
    current_user: models.User = Depends(require_coordinator),
    db: Session = Depends(get_db)
):
    data = body.model_dump(exclude_unset=True)
    data["client_phone"] = data.get("client_phone") or data.pop("client_mobile", None)
    data.pop("client_mobile", None)

    if not (data.get("client_email") and data.get("client_name") and data.get("client_phone")):
        raise HTTPException(status_code=400, detail="Client email, name and phone are required")
    check_emirate_access(data.get("emirate"), current_user)
    data["emirate"] = validate_emirate(data["emirate"])

    client, temporary_password = case_service.find_or_create_client(db, data, current_user.id)

    case_columns = {key: value for key, value in data.items() if key in schemas.CaseFields.model_fields}
    estimated = case_columns.get("estimated_cost") or 0
    case = models.Case(
        case_number=case_service.unique_case_number(db),
        client_id=client.id,
        coordinator_id=current_user.id,
        created_by=current_user.id,
        registration_date=datetime.utcnow(),
        paid_amount=0,
        remaining_amount=estimated,
        **case_columns
    )
    db.add(case)
    db.flush()

    tracking_service.record(
        db,
        case.id,
        "case_registered",
        user_id=current_user.id,
        new_value=case.case_number,
        description=f"Case registered by {current_user.name}",
    )
    db.commit()
    db.refresh(case)

    if temporary_password:
        case_service.send_welcome(client, temporary_password)

    logger.info(f"Case registered: {case.case_number} by {current_user.email}")
    data = {"case": model_to_dict(case), "client": sanitize_user(client)}
    if temporary_password:
        data["temporary_password"] = temporary_password
    return {"success": True, "message": "Case registered successfully", "data": data}


# ============================================================================
# Listing / detail
# ============================================================================

@router.get("/")
def list_cases(
    status_filter: Optional[str] = Query(None, alias="status"),
    emirate: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.Case)

    role = current_user.role
    if role == UserRole.client:
        query = query.filter(models.Case.client_id == current_user.id)
    elif role == UserRole.lawyer:
        query = query.filter(models.Case.lawyer_id == current_user.id)
    elif role == UserRole.counsellor:
        query = query.filter(models.Case.counsellor_id == current_user.id)
    elif role == UserRole.coordinator:
        query = query.filter(models.Case.coordinator_id == current_user.id)

    emirate_filter = get_emirate_filter(current_user)
    if emirate_filter is not None:
        query = query.filter(models.Case.emirate.in_(emirate_filter))

    if status_filter:
        query = query.filter(models.Case.status == validate_choice(status_filter, CaseStatus))
    if emirate and emirate != "all":
        query = query.filter(models.Case.emirate == emirate)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            models.Case.case_number.ilike(pattern),
            models.Case.client_name.ilike(pattern),
            models.Case.client_email.ilike(pattern),
        ))

    total = query.count()
    query = query.order_by(models.Case.created_at.desc())
    page_size = parse_limit(limit, DEFAULT_CASE_PAGE_SIZE)
    page_number = 1
    if page_size is not None:
        page_number, page_size, offset = get_pagination_params(page, page_size)
        query = query.offset(offset).limit(page_size)

    return {
        "success": True,
        "data": {
            "cases": [model_to_dict(c) for c in query.all()],
            "pagination": pagination_block(total, page_number, page_size),
        },
    }


@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    ensure_case_visible(case, current_user)
    return {"success": True, "data": case_service.case_to_api(case, include_people=True)}


# ============================================================================
# Updates
# ============================================================================

@router.put("/{case_id}")
def update_case(
    case_id: UUID,
    body: schemas.CaseUpdate,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    _ensure_coordinator_owns(case, current_user)

    changes = body.model_dump(exclude_unset=True)
    for key in NESTED_COLLECTIONS:
        changes.pop(key, None)
    if changes.get("emirate"):
        check_emirate_access(changes["emirate"], current_user)
        changes["emirate"] = validate_emirate(changes["emirate"])
    if changes.get("status") == CaseStatus.closed and case.status != CaseStatus.closed:
        case.closed_date = datetime.utcnow()

    changed = case_service.apply_case_update(db, case, changes, current_user)
    if "estimated_cost" in changed:
        case_service.recalculate_case_payments(db, case)
    db.commit()
    db.refresh(case)

    logger.info(f"Case {case.case_number} updated by {current_user.email}: {', '.join(changed) or 'no changes'}")
    return {
        "success": True,
        "message": "Case updated successfully",
        "data": {"case": model_to_dict(case), "changed_fields": changed},
    }


@router.delete("/{case_id}")
def delete_case(
    case_id: UUID,
    current_user: models.User = Depends(require_coordinator),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    _ensure_coordinator_owns(case, current_user)
    case_number = case.case_number
    db.delete(case)
    db.commit()
    logger.info(f"Case deleted: {case_number} by {current_user.email}")
    return {"success": True, "message": "Case deleted successfully"}


@router.put("/{case_id}/assign-lawyer")
def assign_lawyer(
    case_id: UUID,
    body: schemas.AssignLawyerRequest,
    current_user: models.User = Depends(require_coordinator),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    _ensure_coordinator_owns(case, current_user)
    lawyer = db.query(models.User).filter(models.User.id == body.lawyer_id).first()
    if not lawyer or lawyer.role != UserRole.lawyer:
        raise HTTPException(status_code=400, detail="Selected user is not a lawyer")

    previous = case.lawyer.name if case.lawyer else None
    case.lawyer_id = lawyer.id
    tracking_service.record(
        db,
        case.id,
        "lawyer_assigned",
        user_id=current_user.id,
        old_value=previous,
        new_value=lawyer.name,
        description=f"Lawyer {lawyer.name} assigned by {current_user.name}",
    )
    db.commit()
    db.refresh(case)
    return {"success": True, "message": "Lawyer assigned successfully", "data": model_to_dict(case)}


@router.put("/{case_id}/status")
def update_case_status(
    case_id: UUID,
    body: schemas.CaseStatusUpdate,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    new_status = validate_choice(body.status, CaseStatus)
    case = get_case_or_404(db, case_id)
    _ensure_coordinator_owns(case, current_user)

    old_status = case.status
    case.status = new_status
    if new_status == CaseStatus.closed:
        case.closed_date = datetime.utcnow()
    tracking_service.record(
        db,
        case.id,
        "status_change",
        user_id=current_user.id,
        old_value=old_status,
        new_value=new_status,
        description=f"Status changed by {current_user.name}",
    )
    db.commit()
    db.refresh(case)

    _notify_client(case, f"Case status changed to {new_status.value.replace('_', ' ')}.")
    return {"success": True, "message": "Case status updated", "data": model_to_dict(case)}


@router.post("/{case_id}/notes")
def add_case_note(
    case_id: UUID,
    body: schemas.CaseNoteCreate,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    _ensure_coordinator_owns(case, current_user)

    stamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M")
    entry = f"[{stamp}] {current_user.name}: {body.note.strip()}"
    case.notes = f"{case.notes}\n{entry}" if case.notes else entry
    tracking_service.record(
        db,
        case.id,
        "note_added",
        user_id=current_user.id,
        new_value=body.note.strip(),
        description=f"Note added by {current_user.name}",
    )
    db.commit()
    db.refresh(case)
    return {"success": True, "message": "Note added", "data": model_to_dict(case)}
