"""
Case taxonomy (types > categories > sub-categories): serializers,
flat export rows and bulk import.
"""
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import CaseCategory, CaseSubCategory, CaseType
from app.services.export_service import import_summary, is_no, yes_no
from app.utils.helpers import model_to_dict

CASE_TYPE_COLUMNS = ("name", "code", "is_active")
CATEGORY_COLUMNS = ("name", "case_type_name", "case_type_code", "is_active")
SUB_CATEGORY_COLUMNS = ("name", "category_name", "case_type_name", "case_type_code", "is_active")


def _active(rows, include_inactive: bool):
    rows = sorted(rows, key=lambda r: (r.name or "").lower())
    return rows if include_inactive else [r for r in rows if r.is_active]


def case_type_tree(case_type: CaseType, include_inactive: bool = False) -> Dict[str, Any]:
    data = model_to_dict(case_type)
    data["categories"] = []
    for category in _active(case_type.categories, include_inactive):
        entry = model_to_dict(category)
        entry["sub_categories"] = [
            model_to_dict(sub) for sub in _active(category.sub_categories, include_inactive)
        ]
        data["categories"].append(entry)
    return data


# ============================================================================
# Export
# ============================================================================

def export_case_types(db: Session) -> List[Dict[str, Any]]:
    return [
        {"name": t.name, "code": t.code, "is_active": yes_no(t.is_active)}
        for t in db.query(CaseType).order_by(CaseType.name).all()
    ]


def export_categories(db: Session) -> List[Dict[str, Any]]:
    rows = db.query(CaseCategory).join(CaseType).order_by(CaseType.name, CaseCategory.name).all()
    return [
        {
            "name": c.name,
            "case_type_name": c.case_type.name,
            "case_type_code": c.case_type.code,
            "is_active": yes_no(c.is_active),
        }
        for c in rows
    ]


def export_sub_categories(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(CaseSubCategory)
        .join(CaseCategory)
        .join(CaseType)
        .order_by(CaseType.name, CaseCategory.name, CaseSubCategory.name)
        .all()
    )
    return [
        {
            "name": s.name,
            "category_name": s.category.name,
            "case_type_name": s.category.case_type.name,
            "case_type_code": s.category.case_type.code,
            "is_active": yes_no(s.is_active),
        }
        for s in rows
    ]


# ============================================================================
# Import
# ============================================================================

def _find_type(db: Session, row: Dict[str, Any]):
    code = (row.get("case_type_code") or "").strip()
    name = (row.get("case_type_name") or "").strip()
    if code:
        return db.query(CaseType).filter(CaseType.code == code).first()
    if name:
        return db.query(CaseType).filter(func.lower(CaseType.name) == name.lower()).first()
    return None


def import_case_types(db: Session, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Upsert by code."""
    success, errors = 0, []
    for row in rows:
        if not isinstance(row, dict):
            errors.append({"item": row, "error": "Row must be an object"})
            continue
        name = str(row.get("name") or "").strip()
        code = str(row.get("code") or "").strip()
        if not name or not code:
            errors.append({"item": row, "error": "name and code are required"})
            continue
        case_type = db.query(CaseType).filter(CaseType.code == code).first()
        clash = db.query(CaseType).filter(func.lower(CaseType.name) == name.lower()).first()
        if clash and (case_type is None or clash.id != case_type.id):
            errors.append({"item": row, "error": f"Case type name '{name}' already exists"})
            continue
        if case_type is None:
            case_type = CaseType(name=name, code=code, is_active=True)
            db.add(case_type)
        else:
            case_type.name = name
        if "is_active" in row:
            case_type.is_active = not is_no(row["is_active"])
        db.commit()
        success += 1
    logger.info(f"Case type import: {success} ok, {len(errors)} failed")
    return import_summary(success, errors)


def import_categories(db: Session, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Upsert by (name, case type)."""
    success, errors = 0, []
    for row in rows:
        if not isinstance(row, dict):
            errors.append({"item": row, "error": "Row must be an object"})
            continue
        name = str(row.get("name") or "").strip()
        if not name:
            errors.append({"item": row, "error": "name is required"})
            continue
        case_type = _find_type(db, row)
        if case_type is None:
            errors.append({"item": row, "error": "Case type not found"})
            continue
        category = (
            db.query(CaseCategory)
            .filter(CaseCategory.case_type_id == case_type.id, func.lower(CaseCategory.name) == name.lower())
            .first()
        )
        if category is None:
            category = CaseCategory(name=name, case_type_id=case_type.id, is_active=True)
            db.add(category)
        if "is_active" in row:
            category.is_active = not is_no(row["is_active"])
        db.commit()
        success += 1
    logger.info(f"Case category import: {success} ok, {len(errors)} failed")
    return import_summary(success, errors)


def import_sub_categories(db: Session, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Upsert by (name, category)."""
    success, errors = 0, []
    for row in rows:
        if not isinstance(row, dict):
            errors.append({"item": row, "error": "Row must be an object"})
            continue
        name = str(row.get("name") or "").strip()
        category_name = str(row.get("category_name") or "").strip()
        if not name or not category_name:
            errors.append({"item": row, "error": "name and category_name are required"})
            continue
        query = db.query(CaseCategory).filter(func.lower(CaseCategory.name) == category_name.lower())
        case_type = _find_type(db, row)
        if case_type is not None:
            query = query.filter(CaseCategory.case_type_id == case_type.id)
        category = query.first()
        if category is None:
            errors.append({"item": row, "error": "Category not found"})
            continue
        sub = (
            db.query(CaseSubCategory)
            .filter(CaseSubCategory.category_id == category.id, func.lower(CaseSubCategory.name) == name.lower())
            .first()
        )
        if sub is None:
            sub = CaseSubCategory(name=name, category_id=category.id, is_active=True)
            db.add(sub)
        if "is_active" in row:
            sub.is_active = not is_no(row["is_active"])
        db.commit()
        success += 1
    logger.info(f"Case sub-category import: {success} ok, {len(errors)} failed")
    return import_summary(success, errors)
