"""
Case expense endpoints (/cases/{case_id}/expenses)
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_staff
from app.api.v1.endpoints.cases import ensure_case_visible, get_case_or_404
from app.db.database import get_db
from app.db import models, schemas
from app.utils.helpers import model_to_dict
from app.utils.validators import require_fields

router = APIRouter()


def _get_expense(db: Session, case_id: UUID, expense_id: UUID) -> models.CaseExpense:
    expense = (
        db.query(models.CaseExpense)
        .filter(models.CaseExpense.id == expense_id, models.CaseExpense.case_id == case_id)
        .first()
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.get("/{case_id}/expenses")
def list_expenses(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)
    ensure_case_visible(case, current_user)
    expenses = (
        db.query(models.CaseExpense)
        .filter(models.CaseExpense.case_id == case_id)
        .order_by(models.CaseExpense.date.desc())
        .all()
    )
    return {"success": True, "data": [model_to_dict(e) for e in expenses]}


@router.post("/{case_id}/expenses", status_code=status.HTTP_201_CREATED)
def add_expense(
    case_id: UUID,
    body: schemas.ExpenseIn,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    data = body.model_dump()
    require_fields(data, ("date", "expense", "amount"), "Date, expense and amount are required")

    expense = models.CaseExpense(case_id=case_id, **data)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return {"success": True, "message": "Expense added", "data": model_to_dict(expense)}


@router.put("/{case_id}/expenses/{expense_id}")
def update_expense(
    case_id: UUID,
    expense_id: UUID,
    body: schemas.ExpenseIn,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    expense = _get_expense(db, case_id, expense_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(expense, field, value)
    db.commit()
    db.refresh(expense)
    return {"success": True, "message": "Expense updated", "data": model_to_dict(expense)}


@router.delete("/{case_id}/expenses/{expense_id}")
def delete_expense(
    case_id: UUID,
    expense_id: UUID,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    db.delete(_get_expense(db, case_id, expense_id))
    db.commit()
    return {"success": True, "message": "Expense deleted"}
