"""
User management endpoints
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_coordinator, require_self_or_admin, require_super_admin
from app.core.constants import DEFAULT_USER_PAGE_SIZE, EMIRATES
from app.core.logger import logger
from app.core.security import get_password_hash, verify_password
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import CaseStatus, EMIRATE_SCOPED_ROLES, UserRole
from app.services.case_service import send_welcome
from app.utils.helpers import (
    format_phone_number,
    generate_client_number,
    generate_random_password,
    get_pagination_params,
    pagination_block,
    parse_limit,
    sanitize_user,
)
from app.utils.validators import validate_emirate, validate_password

router = APIRouter()


def _get_user_or_404(db: Session, user_id: UUID) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _email_taken(db: Session, email: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(models.User.id).filter(func.lower(models.User.email) == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def _client_number_owner(db: Session, client_number: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.client_number == client_number).first()


# ============================================================================
# Create / list
# ============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    body: schemas.UserCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """Create a staff or client account."""
    if _email_taken(db, body.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    role = body.role
    temporary_password = None
    if role == UserRole.client:
        password = body.password or generate_random_password()
        if not body.password:
            temporary_password = password
    else:
        password = validate_password(body.password)

    user = models.User(
        email=body.email.strip().lower(),
        password_hash=get_password_hash(password),
        name=body.name.strip(),
        phone=format_phone_number(body.phone) or body.phone,
        role=role,
        created_by=current_user.id,
        is_active=True,
    )

    if role in EMIRATE_SCOPED_ROLES:
        user.assigned_emirates = [validate_emirate(e) for e in (body.assigned_emirates or [])]
    if role == UserRole.lawyer:
        user.specializations = body.specializations or []
    if role == UserRole.coordinator:
        user.permissions = body.permissions or {}

    if role == UserRole.client:
        for field in schemas.CLIENT_PROFILE_FIELDS:
            setattr(user, field, getattr(body, field))
        if body.client_number:
            if _client_number_owner(db, body.client_number):
                raise HTTPException(status_code=409, detail="Client number already in use")
            user.client_number = body.client_number
        else:
            user.client_number = generate_client_number(db)

    db.add(user)
    db.commit()
    db.refresh(user)

    email_sent = send_welcome(user, password)
    logger.info(f"User created: {user.email} ({role.value}) by {current_user.email}")

    data = {"user": sanitize_user(user), "email_sent": email_sent}
    if temporary_password:
        data["temporary_password"] = temporary_password
    return {"success": True, "message": "User created successfully", "data": data}


@router.get("/lawyers")
def list_lawyers(current_user: models.User = Depends(require_coordinator), db: Session = Depends(get_db)):
    lawyers = (
        db.query(models.User)
        .filter(models.User.role == UserRole.lawyer, models.User.is_active.is_(True))
        .order_by(models.User.name.asc())
        .all()
    )
    return {
        "success": True,
        "data": [
            {
                "id": lawyer.id,
                "name": lawyer.name,
                "email": lawyer.email,
                "phone": lawyer.phone,
                "specializations": lawyer.specializations or [],
            }
            for lawyer in lawyers
        ],
    }


@router.get("/case-statistics")
def lawyer_case_statistics(current_user: models.User = Depends(require_super_admin), db: Session = Depends(get_db)):
    """Assigned / completed case counts per lawyer."""
    rows = (
        db.query(models.Case.lawyer_id, models.Case.status, func.count(models.Case.id))
        .filter(models.Case.lawyer_id.isnot(None))
        .group_by(models.Case.lawyer_id, models.Case.status)
        .all()
    )
    stats = {}
    for lawyer_id, case_status, count in rows:
        entry = stats.setdefault(str(lawyer_id), {"assigned": 0, "completed": 0})
        entry["assigned"] += count
        if case_status == CaseStatus.closed:
            entry["completed"] += count
    return {"success": True, "data": stats}


@router.post("/import")
def import_clients(
    rows: List[dict] = Body(...),
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    """
    Bulk create or update clients. Rows are matched to existing users by
    email or phone; row numbers in errors are spreadsheet rows (index + 2).
    """
    created = updated = 0
    errors = []

    for index, raw in enumerate(rows):
        row_number = index + 2
        try:
            row = schemas.ClientImportRow(**raw)
        except ValueError as exc:
            errors.append({"row": row_number, "error": str(exc)})
            continue

        if not (row.name and row.email and row.phone):
            errors.append({"row": row_number, "error": "name, email and phone are required"})
            continue

        email = row.email.strip().lower()
        phone = format_phone_number(row.phone) or row.phone
        existing = (
            db.query(models.User)
            .filter(or_(func.lower(models.User.email) == email, models.User.phone == phone))
            .first()
        )

        if row.client_number:
            owner = _client_number_owner(db, row.client_number)
            if owner and (existing is None or owner.id != existing.id):
                errors.append({"row": row_number, "error": f"Client number {row.client_number} already in use"})
                continue

        profile = {field: getattr(row, field) for field in schemas.CLIENT_PROFILE_FIELDS if getattr(row, field)}
        is_active = None
        if row.is_active is not None:
            is_active = str(row.is_active).strip().lower() not in ("no", "false", "0", "inactive")

        if existing:
            existing.name = row.name.strip()
            existing.phone = phone
            if row.client_number:
                existing.client_number = row.client_number
            if row.case_number:
                existing.case_number = row.case_number
            if is_active is not None:
                existing.is_active = is_active
            for field, value in profile.items():
                setattr(existing, field, value)
            db.commit()
            updated += 1
            continue

        password = generate_random_password()
        client = models.User(
            email=email,
            password_hash=get_password_hash(password),
            name=row.name.strip(),
            phone=phone,
            role=UserRole.client,
            client_number=row.client_number or generate_client_number(db),
            case_number=row.case_number,
            created_by=current_user.id,
            is_active=True if is_active is None else is_active,
            **profile
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        send_welcome(client, password)
        created += 1

    logger.info(f"Client import by {current_user.email}: created={created} updated={updated} failed={len(errors)}")
    return {
        "success": True,
        "data": {
            "created": created,
            "updated": updated,
            "failed": len(errors),
            "errors": errors[:10],
            "total_errors": len(errors),
        },
    }


@router.get("/")
def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if is_active is not None:
        query = query.filter(models.User.is_active.is_(is_active))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            models.User.name.ilike(pattern),
            models.User.email.ilike(pattern),
            models.User.phone.ilike(pattern),
        ))

    total = query.count()
    query = query.order_by(models.User.created_at.desc())
    page_size = parse_limit(limit, DEFAULT_USER_PAGE_SIZE)
    page_number = 1
    if page_size is not None:
        page_number, page_size, offset = get_pagination_params(page, page_size)
        query = query.offset(offset).limit(page_size)

    return {
        "success": True,
        "data": {
            "users": [sanitize_user(u) for u in query.all()],
            "pagination": pagination_block(total, page_number, page_size),
        },
    }


# ============================================================================
# Self-service
# ============================================================================

@router.post("/change-password")
def change_password(
    body: schemas.ChangePasswordRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not verify_password(body.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    validate_password(body.new_password)
    current_user.password_hash = get_password_hash(body.new_password)
    db.commit()
    return {"success": True, "message": "Password changed successfully"}


# ============================================================================
# Single user
# ============================================================================

@router.get("/{user_id}")
def get_user(
    user_id: UUID,
    current_user: models.User = Depends(require_self_or_admin),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": sanitize_user(_get_user_or_404(db, user_id))}


@router.put("/{user_id}")
def update_user(
    user_id: UUID,
    body: schemas.UserUpdate,
    current_user: models.User = Depends(require_self_or_admin),
    db: Session = Depends(get_db)
):
    user = _get_user_or_404(db, user_id)
    update_data = body.model_dump(exclude_unset=True)

    if current_user.role != UserRole.super_admin:
        blocked = [field for field in schemas.ADMIN_ONLY_USER_FIELDS if field in update_data]
        if blocked:
            raise HTTPException(status_code=403, detail=f"Not allowed to change: {', '.join(blocked)}")

    if update_data.get("email"):
        if _email_taken(db, update_data["email"], exclude_id=user.id):
            raise HTTPException(status_code=409, detail="Email already registered")
        update_data["email"] = update_data["email"].strip().lower()
    if update_data.get("phone"):
        update_data["phone"] = format_phone_number(update_data["phone"]) or update_data["phone"]
    if update_data.get("client_number"):
        owner = _client_number_owner(db, update_data["client_number"])
        if owner and owner.id != user.id:
            raise HTTPException(status_code=409, detail="Client number already in use")
    if "assigned_emirates" in update_data and update_data["assigned_emirates"] is not None:
        update_data["assigned_emirates"] = [validate_emirate(e) for e in update_data["assigned_emirates"]]

    for field, value in update_data.items():
        if field in ("name", "email") and not value:
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return {"success": True, "message": "User updated successfully", "data": sanitize_user(user)}


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = _get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"User deleted: {user.email} by {current_user.email}")
    return {"success": True, "message": "User deleted successfully"}


@router.put("/{user_id}/emirates")
def assign_emirates(
    user_id: UUID,
    body: schemas.AssignEmiratesRequest,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    if not isinstance(body.emirates, list):
        raise HTTPException(status_code=400, detail="emirates must be an array")
    invalid = [e for e in body.emirates if e not in EMIRATES]
    if invalid:
        raise HTTPException(status_code=400, detail=f"Invalid emirates: {', '.join(map(str, invalid))}")

    user = _get_user_or_404(db, user_id)
    if user.role not in EMIRATE_SCOPED_ROLES:
        raise HTTPException(status_code=400, detail="Emirates can only be assigned to coordinators and counsellors")

    user.assigned_emirates = list(body.emirates)
    db.commit()
    db.refresh(user)
    return {"success": True, "message": "Emirates assigned successfully", "data": sanitize_user(user)}


@router.post("/{user_id}/reset-password")
def admin_reset_password(
    user_id: UUID,
    body: schemas.AdminPasswordReset,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    validate_password(body.new_password)
    user = _get_user_or_404(db, user_id)
    user.password_hash = get_password_hash(body.new_password)
    db.commit()
    logger.info(f"Password reset for {user.email} by {current_user.email}")
    return {"success": True, "message": "Password reset successfully"}
