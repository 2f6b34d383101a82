"""
Case taxonomy endpoints: case types, categories, sub-categories,
plus flat export and bulk import.
"""
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_super_admin
from app.db.database import get_db
from app.db import models, schemas
from app.services import taxonomy_service
from app.services.export_service import export_response, require_import_rows
from app.utils.helpers import model_to_dict
from app.utils.validators import is_truthy_flag, require_fields

types_router = APIRouter()
categories_router = APIRouter()
sub_categories_router = APIRouter()
export_router = APIRouter()
import_router = APIRouter()


def _get_or_404(db: Session, model, row_id: UUID, label: str):
    row = db.query(model).filter(model.id == row_id).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


def _ensure_unique(db: Session, column, value: str, label: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(column.class_).filter(func.lower(column) == value.strip().lower())
    if exclude_id is not None:
        query = query.filter(column.class_.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"{label} already exists")


# ============================================================================
# Case types
# ============================================================================

@types_router.get("/")
def list_case_types(
    include_inactive: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    show_all = is_truthy_flag(include_inactive)
    query = db.query(models.CaseType)
    if not show_all:
        query = query.filter(models.CaseType.is_active.is_(True))
    types = query.order_by(models.CaseType.name).all()
    return {"success": True, "data": [taxonomy_service.case_type_tree(t, show_all) for t in types]}


@types_router.get("/{type_id}")
def get_case_type(type_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    case_type = _get_or_404(db, models.CaseType, type_id, "Case type")
    return {"success": True, "data": taxonomy_service.case_type_tree(case_type, include_inactive=True)}


@types_router.post("/", status_code=status.HTTP_201_CREATED)
def create_case_type(
    body: schemas.CaseTypeCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("name", "code"), "Name and code are required")
    _ensure_unique(db, models.CaseType.name, body.name, "Case type name")
    _ensure_unique(db, models.CaseType.code, body.code, "Case type code")
    case_type = models.CaseType(name=body.name.strip(), code=body.code.strip(), created_by=current_user.id)
    db.add(case_type)
    db.commit()
    db.refresh(case_type)
    return {"success": True, "message": "Case type created", "data": model_to_dict(case_type)}


@types_router.put("/{type_id}")
def update_case_type(
    type_id: UUID,
    body: schemas.CaseTypeUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    case_type = _get_or_404(db, models.CaseType, type_id, "Case type")
    data = body.model_dump(exclude_unset=True)
    if data.get("name"):
        _ensure_unique(db, models.CaseType.name, data["name"], "Case type name", exclude_id=case_type.id)
        case_type.name = data["name"].strip()
    if data.get("code"):
        _ensure_unique(db, models.CaseType.code, data["code"], "Case type code", exclude_id=case_type.id)
        case_type.code = data["code"].strip()
    if data.get("is_active") is not None:
        case_type.is_active = data["is_active"]
    db.commit()
    db.refresh(case_type)
    return {"success": True, "message": "Case type updated", "data": model_to_dict(case_type)}


@types_router.delete("/{type_id}")
def delete_case_type(
    type_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    case_type = _get_or_404(db, models.CaseType, type_id, "Case type")
    deleted_categories = len(case_type.categories)
    db.delete(case_type)
    db.commit()
    return {
        "success": True,
        "message": "Case type deleted",
        "data": {"deleted_categories": deleted_categories},
    }


# ============================================================================
# Categories
# ============================================================================

@categories_router.get("/")
def list_categories(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.query(models.CaseCategory).order_by(models.CaseCategory.name).all()
    return {"success": True, "data": [model_to_dict(c) for c in rows]}


@categories_router.get("/by-type/{type_id}")
def list_categories_by_type(
    type_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    rows = (
        db.query(models.CaseCategory)
        .filter(models.CaseCategory.case_type_id == type_id)
        .order_by(models.CaseCategory.name)
        .all()
    )
    return {"success": True, "data": [model_to_dict(c) for c in rows]}


@categories_router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    body: schemas.CaseCategoryCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("name", "case_type_id"), "Name and case type are required")
    _get_or_404(db, models.CaseType, body.case_type_id, "Case type")
    category = models.CaseCategory(name=body.name.strip(), case_type_id=body.case_type_id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return {"success": True, "message": "Category created", "data": model_to_dict(category)}


@categories_router.put("/{category_id}")
def update_category(
    category_id: UUID,
    body: schemas.CaseCategoryUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    category = _get_or_404(db, models.CaseCategory, category_id, "Category")
    data = body.model_dump(exclude_unset=True)
    if data.get("case_type_id"):
        _get_or_404(db, models.CaseType, data["case_type_id"], "Case type")
        category.case_type_id = data["case_type_id"]
    if data.get("name"):
        category.name = data["name"].strip()
    if data.get("is_active") is not None:
        category.is_active = data["is_active"]
    db.commit()
    db.refresh(category)
    return {"success": True, "message": "Category updated", "data": model_to_dict(category)}


@categories_router.delete("/{category_id}")
def delete_category(
    category_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    category = _get_or_404(db, models.CaseCategory, category_id, "Category")
    deleted_sub_categories = len(category.sub_categories)
    db.delete(category)
    db.commit()
    return {
        "success": True,
        "message": "Category deleted",
        "data": {"deleted_sub_categories": deleted_sub_categories},
    }


# ============================================================================
# Sub-categories
# ============================================================================

@sub_categories_router.get("/")
def list_sub_categories(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.query(models.CaseSubCategory).order_by(models.CaseSubCategory.name).all()
    return {"success": True, "data": [model_to_dict(s) for s in rows]}


@sub_categories_router.get("/by-category/{category_id}")
def list_sub_categories_by_category(
    category_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    rows = (
        db.query(models.CaseSubCategory)
        .filter(models.CaseSubCategory.category_id == category_id)
        .order_by(models.CaseSubCategory.name)
        .all()
    )
    return {"success": True, "data": [model_to_dict(s) for s in rows]}


@sub_categories_router.post("/", status_code=status.HTTP_201_CREATED)
def create_sub_category(
    body: schemas.CaseSubCategoryCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(body.model_dump(), ("name", "category_id"), "Name and category are required")
    _get_or_404(db, models.CaseCategory, body.category_id, "Category")
    sub = models.CaseSubCategory(name=body.name.strip(), category_id=body.category_id)
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return {"success": True, "message": "Sub-category created", "data": model_to_dict(sub)}


@sub_categories_router.put("/{sub_category_id}")
def update_sub_category(
    sub_category_id: UUID,
    body: schemas.CaseSubCategoryUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    sub = _get_or_404(db, models.CaseSubCategory, sub_category_id, "Sub-category")
    data = body.model_dump(exclude_unset=True)
    if data.get("category_id"):
        _get_or_404(db, models.CaseCategory, data["category_id"], "Category")
        sub.category_id = data["category_id"]
    if data.get("name"):
        sub.name = data["name"].strip()
    if data.get("is_active") is not None:
        sub.is_active = data["is_active"]
    db.commit()
    db.refresh(sub)
    return {"success": True, "message": "Sub-category updated", "data": model_to_dict(sub)}


@sub_categories_router.delete("/{sub_category_id}")
def delete_sub_category(
    sub_category_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    sub = _get_or_404(db, models.CaseSubCategory, sub_category_id, "Sub-category")
    db.delete(sub)
    db.commit()
    return {"success": True, "message": "Sub-category deleted"}


# ============================================================================
# Export / import
# ============================================================================

@export_router.get("/case-types")
def export_case_types(format: str = "json", current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return export_response(taxonomy_service.export_case_types(db), taxonomy_service.CASE_TYPE_COLUMNS, format, "case_types")


@export_router.get("/case-categories")
def export_case_categories(format: str = "json", current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return export_response(taxonomy_service.export_categories(db), taxonomy_service.CATEGORY_COLUMNS, format, "case_categories")


@export_router.get("/case-sub-categories")
def export_case_sub_categories(format: str = "json", current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return export_response(
        taxonomy_service.export_sub_categories(db), taxonomy_service.SUB_CATEGORY_COLUMNS, format, "case_sub_categories"
    )


@import_router.post("/case-types")
def import_case_types(
    rows: Any = Body(None),
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": taxonomy_service.import_case_types(db, require_import_rows(rows))}


@import_router.post("/case-categories")
def import_case_categories(
    rows: Any = Body(None),
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": taxonomy_service.import_categories(db, require_import_rows(rows))}


@import_router.post("/case-sub-categories")
def import_case_sub_categories(
    rows: Any = Body(None),
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": taxonomy_service.import_sub_categories(db, require_import_rows(rows))}
