# app/services/case_service.py
"""
Case service - registration, change tracking and payment totals
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.core.security import get_password_hash
from app.db.models import (
    Case,
    CaseCategory,
    CaseSubCategory,
    CaseType,
    Payment,
    PaymentStatus,
    User,
    UserRole,
)
from app.services.email_templates import welcome_email
from app.services.notification_service import notification_service
from app.services.tracking_service import tracking_service
from app.utils.helpers import (
    generate_case_number,
    format_phone_number,
    generate_client_number,
    generate_invoice_number,
    generate_random_password,
    model_to_dict,
    user_summary,
)

MAX_NUMBER_ATTEMPTS = 50

# Client profile columns copied from a case registration onto the client user
CLIENT_PROFILE_FROM_CASE = {
    "nationality": "nationality",
    "emirates_id": "emirates_id",
    "whatsapp_number": "whatsapp_number",
    "landline_number": "landline_number",
    "company_address": "company_address",
    "company_email": "company_email",
    "company_name": "company_name",
    "company_phone": "company_phone",
    "employer_name": "employer_name",
    "address": "address",
    "city": "city",
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def unique_case_number(db: Session) -> str:
    for _ in range(MAX_NUMBER_ATTEMPTS):
        candidate = generate_case_number()
        if not db.query(Case.id).filter(Case.case_number == candidate).first():
            return candidate
    raise RuntimeError("Could not allocate a unique case number")


def unique_invoice_number(db: Session) -> str:
    for _ in range(MAX_NUMBER_ATTEMPTS):
        candidate = generate_invoice_number()
        if not db.query(Payment.id).filter(Payment.invoice_number == candidate).first():
            return candidate
    raise RuntimeError("Could not allocate a unique invoice number")


# ============================================================================
# Client lookup / creation
# ============================================================================

def find_or_create_client(db: Session, data: Dict[str, Any], created_by: Optional[uuid.UUID]) -> Tuple[User, Optional[str]]:
    """
    Client user for a case registration, matched by email.

    Returns (client, temporary_password); the password is only set when the
    client was created here. The caller commits.
    """
    email = data["client_email"].strip().lower()
    client = db.query(User).filter(func.lower(User.email) == email).first()

    if client:
        for source, column in CLIENT_PROFILE_FROM_CASE.items():
            value = data.get(source)
            if not _is_blank(value):
                setattr(client, column, value)
        if data.get("occupation") and isinstance(data["occupation"], list):
            client.occupation = ", ".join(str(item) for item in data["occupation"])
        return client, None

    password = generate_random_password()
    client = User(
        email=email,
        password_hash=get_password_hash(password),
        name=data["client_name"].strip(),
        phone=format_phone_number(data.get("client_phone")) or data.get("client_phone"),
        role=UserRole.client,
        client_number=generate_client_number(db),
        created_by=created_by,
        is_active=True,
    )
    for source, column in CLIENT_PROFILE_FROM_CASE.items():
        value = data.get(source)
        if not _is_blank(value):
            setattr(client, column, value)
    db.add(client)
    db.flush()
    logger.info(f"Created client {client.email} ({client.client_number}) from case registration")
    return client, password


def send_welcome(user: User, password: str) -> bool:
    subject, html = welcome_email(user.name, user.email, password, user.client_number)
    return notification_service.try_send_email(user.email, subject, html)


# ============================================================================
# Change tracking
# ============================================================================

def comparable(value: Any) -> Any:
    """Normalize a value so trivially different spellings compare equal."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value)).normalize()
    if isinstance(value, str):
        # str-based enums land here too
        stripped = str(value.value if hasattr(value, "value") else value).strip()
        return stripped or None
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def values_differ(old_value: Any, new_value: Any) -> bool:
    old_cmp, new_cmp = comparable(old_value), comparable(new_value)
    if isinstance(old_cmp, Decimal) or isinstance(new_cmp, Decimal):
        try:
            return Decimal(str(old_cmp)) != Decimal(str(new_cmp))
        except InvalidOperation:
            return old_cmp != new_cmp
    return old_cmp != new_cmp


def apply_case_update(db: Session, case: Case, changes: Dict[str, Any], user: User) -> List[str]:
    """
    Apply column changes to a case, writing one tracking row per field that
    actually changed. Returns the changed field names.
    """
    changed = []
    for field, new_value in changes.items():
        old_value = getattr(case, field)
        if not values_differ(old_value, new_value):
            continue
        setattr(case, field, new_value)
        tracking_service.record(
            db,
            case.id,
            f"field_update_{field}",
            user_id=user.id,
            old_value=old_value,
            new_value=new_value,
            description=f"{field} updated by {user.name}",
        )
        changed.append(field)
    return changed


# ============================================================================
# Payments
# ============================================================================

def recalculate_case_payments(db: Session, case: Case) -> None:
    db.flush()
    paid = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.case_id == case.id, Payment.status == PaymentStatus.completed)
        .scalar()
    )
    paid = Decimal(str(paid or 0))
    estimated = Decimal(str(case.estimated_cost or 0))
    case.paid_amount = paid
    case.remaining_amount = max(estimated - paid, Decimal("0"))


# ============================================================================
# Serializers
# ============================================================================

def _lookup_name(db: Session, model, value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    try:
        key = uuid.UUID(str(value))
    except ValueError:
        return value
    row = db.query(model).filter(model.id == key).first()
    return row.name if row else value


def taxonomy_names(db: Session, case: Case) -> Dict[str, Optional[str]]:
    """Case type/category/sub-category ids resolved to names."""
    return {
        "case_type": _lookup_name(db, CaseType, case.case_type),
        "case_category": _lookup_name(db, CaseCategory, case.case_category),
        "case_sub_category": _lookup_name(db, CaseSubCategory, case.case_sub_category),
    }


def case_to_api(case: Case, include_people: bool = False) -> Dict[str, Any]:
    data = model_to_dict(case)
    if include_people:
        data["lawyer"] = user_summary(case.lawyer)
        data["coordinator"] = user_summary(case.coordinator)
        data["counsellor"] = user_summary(case.counsellor)
    return data


def case_search_summary(db: Session, case: Case) -> Dict[str, Any]:
    return {
        "id": case.id,
        "case_number": case.case_number,
        "status": case.status,
        "emirate": case.emirate,
        "registration_date": case.registration_date,
        **taxonomy_names(db, case),
        "lawyer_name": case.lawyer.name if case.lawyer else "Unassigned",
    }
