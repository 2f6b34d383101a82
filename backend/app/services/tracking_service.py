# app/services/tracking_service.py
"""
Case tracking - audit trail with per-case change numbers
"""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import CaseTracking

# Annotation columns on a manual entry
ANNOTATION_FIELDS = (
    "next_hearing",
    "reason",
    "action_required",
    "date_of_action_required",
    "work_undertaken",
    "other",
    "staff_name",
)

MANUAL_ENTRY = "manual_entry"


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class CaseTrackingService:
    """
    Service layer for case tracking records.
    """

    @staticmethod
    def next_change_number(db: Session, case_id: UUID) -> int:
        # Rows added earlier in this unit of work must count too.
        db.flush()
        current = (
            db.query(func.max(CaseTracking.change_number))
            .filter(CaseTracking.case_id == case_id)
            .scalar()
        )
        return (current or 0) + 1

    @staticmethod
    def record(
        db: Session,
        case_id: UUID,
        change_type: str,
        user_id: Optional[UUID] = None,
        old_value: Any = None,
        new_value: Any = None,
        description: Optional[str] = None,
        **annotations: Any
    ) -> CaseTracking:
        """
        Add a tracking row to the session; the caller commits.
        """
        unknown = set(annotations) - set(ANNOTATION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown tracking fields: {', '.join(sorted(unknown))}")

        entry = CaseTracking(
            case_id=case_id,
            user_id=user_id,
            change_number=CaseTrackingService.next_change_number(db, case_id),
            change_type=change_type,
            old_value=_text(old_value),
            new_value=_text(new_value),
            description=description,
            **annotations
        )
        db.add(entry)
        db.flush()
        logger.info(f"Tracking #{entry.change_number} ({change_type}) on case {case_id}")
        return entry


tracking_service = CaseTrackingService()
