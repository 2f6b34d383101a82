"""
Work occupation types and sub-types
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_super_admin
from app.db.database import get_db
from app.db import models, schemas
from app.utils.helpers import model_to_dict
from app.utils.validators import is_truthy_flag, require_fields

router = APIRouter()


def _get_type(db: Session, type_id: UUID) -> models.WorkOccupationType:
    row = db.query(models.WorkOccupationType).filter(models.WorkOccupationType.id == type_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Occupation type not found")
    return row


def _get_sub_type(db: Session, sub_type_id: UUID) -> models.WorkOccupationSubType:
    row = db.query(models.WorkOccupationSubType).filter(models.WorkOccupationSubType.id == sub_type_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Occupation sub-type not found")
    return row


def _name_taken(db: Session, name: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(models.WorkOccupationType.id).filter(
        func.lower(models.WorkOccupationType.name) == name.strip().lower()
    )
    if exclude_id is not None:
        query = query.filter(models.WorkOccupationType.id != exclude_id)
    return query.first() is not None


def _type_to_api(row: models.WorkOccupationType, include_inactive: bool) -> dict:
    data = model_to_dict(row)
    subs = sorted(row.sub_types, key=lambda s: s.name.lower())
    data["sub_types"] = [model_to_dict(s) for s in subs if include_inactive or s.is_active]
    return data


# ============================================================================
# Types
# ============================================================================

@router.get("/types")
def list_types(
    include_inactive: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    show_all = is_truthy_flag(include_inactive)
    query = db.query(models.WorkOccupationType)
    if not show_all:
        query = query.filter(models.WorkOccupationType.is_active.is_(True))
    rows = query.order_by(models.WorkOccupationType.name).all()
    return {"success": True, "data": [_type_to_api(r, show_all) for r in rows]}


@router.get("/types/{type_id}")
def get_type(type_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": _type_to_api(_get_type(db, type_id), include_inactive=True)}


@router.post("/types", status_code=status.HTTP_201_CREATED)
def create_type(
    body: schemas.OccupationTypeCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("name",), "Name is required")
    if _name_taken(db, body.name):
        raise HTTPException(status_code=400, detail="Occupation type already exists")
    row = models.WorkOccupationType(name=body.name.strip(), created_by=current_user.id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "message": "Occupation type created", "data": model_to_dict(row)}


@router.put("/types/{type_id}")
def update_type(
    type_id: UUID,
    body: schemas.OccupationTypeUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    row = _get_type(db, type_id)
    data = body.model_dump(exclude_unset=True)
    if data.get("name"):
        if _name_taken(db, data["name"], exclude_id=row.id):
            raise HTTPException(status_code=400, detail="Occupation type already exists")
        row.name = data["name"].strip()
    if data.get("is_active") is not None:
        row.is_active = data["is_active"]
    db.commit()
    db.refresh(row)
    return {"success": True, "message": "Occupation type updated", "data": model_to_dict(row)}


@router.delete("/types/{type_id}")
def delete_type(
    type_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    row = _get_type(db, type_id)
    deleted_sub_types = len(row.sub_types)
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Occupation type deleted", "data": {"deleted_sub_types": deleted_sub_types}}


# ============================================================================
# Sub-types
# ============================================================================

@router.get("/sub-types")
def list_sub_types(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.query(models.WorkOccupationSubType).order_by(models.WorkOccupationSubType.name).all()
    results = []
    for row in rows:
        data = model_to_dict(row)
        data["occupation_type"] = {"id": row.occupation_type.id, "name": row.occupation_type.name}
        results.append(data)
    return {"success": True, "data": results}


@router.get("/sub-types/by-type/{type_id}")
def list_sub_types_by_type(type_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = (
        db.query(models.WorkOccupationSubType)
        .filter(
            models.WorkOccupationSubType.occupation_type_id == type_id,
            models.WorkOccupationSubType.is_active.is_(True),
        )
        .order_by(models.WorkOccupationSubType.name)
        .all()
    )
    return {"success": True, "data": [model_to_dict(r) for r in rows]}


@router.post("/sub-types", status_code=status.HTTP_201_CREATED)
def create_sub_type(
    body: schemas.OccupationSubTypeCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("name", "occupation_type_id"), "Name and occupation type are required")
    _get_type(db, body.occupation_type_id)
    row = models.WorkOccupationSubType(name=body.name.strip(), occupation_type_id=body.occupation_type_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "message": "Occupation sub-type created", "data": model_to_dict(row)}


@router.put("/sub-types/{sub_type_id}")
def update_sub_type(
    sub_type_id: UUID,
    body: schemas.OccupationSubTypeUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    row = _get_sub_type(db, sub_type_id)
    data = body.model_dump(exclude_unset=True)
    if data.get("occupation_type_id"):
        _get_type(db, data["occupation_type_id"])
        row.occupation_type_id = data["occupation_type_id"]
    if data.get("name"):
        row.name = data["name"].strip()
    if data.get("is_active") is not None:
        row.is_active = data["is_active"]
    db.commit()
    db.refresh(row)
    return {"success": True, "message": "Occupation sub-type updated", "data": model_to_dict(row)}


@router.delete("/sub-types/{sub_type_id}")
def delete_sub_type(
    sub_type_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    db.delete(_get_sub_type(db, sub_type_id))
    db.commit()
    return {"success": True, "message": "Occupation sub-type deleted"}
