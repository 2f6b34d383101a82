"""
Utility helper functions
"""
from datetime import datetime
import json
import random
import re
import secrets
import string
import time
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import func, inspect
from sqlalchemy.orm import Session

from app.core.constants import CASE_NUMBER_PREFIX, CLIENT_NUMBER_PREFIX, INVOICE_PREFIX
from app.db.models import EMIRATE_SCOPED_ROLES, User, UserRole

# Never leave the process in a serialized user.
PRIVATE_USER_FIELDS = ("password_hash", "two_factor_secret")

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def _year_prefix(prefix: str) -> str:
    return f"{prefix}-{datetime.utcnow().year}-"


def generate_case_number() -> str:
    """CASE-YYYY-NNNN; callers retry until unique"""
    return f"{_year_prefix(CASE_NUMBER_PREFIX)}{random.randint(0, 9999):04d}"


def generate_invoice_number() -> str:
    """INV-YYYY-NNNN; callers retry until unique"""
    return f"{_year_prefix(INVOICE_PREFIX)}{random.randint(0, 9999):04d}"


def generate_client_number(db: Session) -> str:
    """
    Next free client number for the current year.

    Starts from (clients numbered this year + 1) and walks forward; after
    100 collisions falls back to a timestamp suffix.
    """
    prefix = _year_prefix(CLIENT_NUMBER_PREFIX)
    existing = (
        db.query(func.count(User.id))
        .filter(User.client_number.like(f"{prefix}%"))
        .scalar()
        or 0
    )
    for attempt in range(100):
        candidate = f"{prefix}{existing + 1 + attempt:04d}"
        taken = db.query(User.id).filter(User.client_number == candidate).first()
        if not taken:
            return candidate
    return f"{prefix}{str(int(time.time() * 1000))[-6:]}"


def format_phone_number(phone: Optional[str]) -> Optional[str]:
    """Normalize a UAE phone number to +971XXXXXXXXX"""
    if not phone:
        return None
    digits = re.sub(r"\D", "", str(phone))
    if not digits:
        return None
    if digits.startswith("0"):
        return "+971" + digits[1:]
    if digits.startswith("971"):
        return "+" + digits
    return "+971" + digits


def parse_emirates(value: Any) -> list:
    """assigned_emirates may arrive as a list or a JSON-encoded string"""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def has_emirate_access(user: User, emirate: Optional[str]) -> bool:
    role = UserRole(user.role)
    if role in (UserRole.super_admin, UserRole.lawyer, UserRole.client):
        return True
    if role not in EMIRATE_SCOPED_ROLES:
        return False
    if not emirate:
        return False
    target = str(emirate).strip().casefold()
    return any(item.strip().casefold() == target for item in parse_emirates(user.assigned_emirates))


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def get_pagination_params(page: Any = None, limit: Any = None) -> Tuple[int, int, int]:
    """Returns (page, limit, offset)"""
    page = _positive_int(page, 1)
    limit = _positive_int(limit, 10)
    return page, limit, (page - 1) * limit


def parse_limit(limit: Any, default: int) -> Optional[int]:
    """None means unlimited ("0" or "all")"""
    if limit is None or limit == "":
        return default
    if str(limit).lower() in ("0", "all"):
        return None
    return _positive_int(limit, default)


def pagination_block(total: int, page: int, limit: Optional[int]) -> Dict[str, Any]:
    if limit is None:
        return {"total": total, "page": 1, "limit": total, "pages": 1, "unlimited": True}
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": (total + limit - 1) // limit if total else 0,
        "unlimited": False,
    }


def model_to_dict(obj: Any, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Column values of an ORM row, keyed by attribute name"""
    if obj is None:
        return None
    skip = set(exclude)
    return {
        attr.key: getattr(obj, attr.key)
        for attr in inspect(obj).mapper.column_attrs
        if attr.key not in skip
    }


def sanitize_user(user: Optional[User]) -> Optional[Dict[str, Any]]:
    """User dict safe to return to a caller"""
    if user is None:
        return None
    data = model_to_dict(user, exclude=PRIVATE_USER_FIELDS + ("assigned_emirates",))
    if UserRole(user.role) in EMIRATE_SCOPED_ROLES:
        data["assigned_emirates"] = parse_emirates(user.assigned_emirates)
    return data


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "phone": user.phone}


def generate_random_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def sanitize_filename(name: str) -> str:
    name = (name or "").replace(" ", "_")
    return re.sub(r"[^A-Za-z0-9._-]", "", name)


def client_ip(request) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
