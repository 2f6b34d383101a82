"""
Approval workflow shared by jail visits and court quotations
"""
from datetime import datetime
from typing import Iterable

from fastapi import HTTPException

from app.db.models import User, UserRole
from app.db.schemas import ReviewDecision
from app.utils.validators import validate_choice


def apply_decision(record, decision: ReviewDecision, reviewer: User, choices, allowed: Iterable) -> None:
    """
    Stamp a status decision on record. Rejections keep a reason, falling
    back to the remarks when none is given.
    """
    new_status = validate_choice(decision.status, choices, "status", allowed)
    record.status = new_status
    record.approved_by = reviewer.id
    record.approved_date = datetime.utcnow()
    if decision.remarks is not None:
        record.remarks = decision.remarks
    if new_status.value == "rejected":
        record.rejection_reason = decision.rejection_reason or decision.remarks


def ensure_can_delete(record, owner_id, user: User) -> None:
    """Only pending requests may be deleted, and counsellors only their own."""
    role = UserRole(user.role)
    if record.status.value != "pending" and role != UserRole.super_admin:
        raise HTTPException(status_code=400, detail="Only pending requests can be deleted")
    if role == UserRole.counsellor and owner_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
