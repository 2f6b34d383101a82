"""
Custom validators
"""
import enum
from typing import Any, Iterable, Mapping, Optional, Type

from fastapi import HTTPException

from app.core.constants import EMIRATES, FACILITY_EMIRATES, MIN_PASSWORD_LENGTH


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data: Mapping[str, Any], fields: Iterable[str], message: Optional[str] = None) -> None:
    """
    Raise 400 naming the required fields when any of them is empty.
    """
    fields = list(fields)
    if any(_missing(data.get(field)) for field in fields):
        raise HTTPException(
            status_code=400,
            detail=message or f"{', '.join(fields)} are required"
        )


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


def validate_emirate(emirate: Optional[str], allowed: Iterable[str] = EMIRATES) -> str:
    """Return the canonical spelling of a known emirate"""
    if _missing(emirate):
        raise HTTPException(status_code=400, detail="Emirate is required")
    target = emirate.strip().casefold()
    for candidate in allowed:
        if candidate.casefold() == target:
            return candidate
    raise HTTPException(
        status_code=400,
        detail=f"Invalid emirate: {emirate}. Must be one of: {', '.join(allowed)}"
    )


def validate_facility_emirate(emirate: Optional[str]) -> str:
    """Police stations and jails accept Al Ain and Others as well"""
    return validate_emirate(emirate, FACILITY_EMIRATES)


def validate_choice(value: Any, choices: Type[enum.Enum], label: str = "status", allowed: Optional[Iterable[Any]] = None):
    """
    Coerce value to a member of choices, restricted to allowed when given.
    """
    members = list(allowed) if allowed is not None else list(choices)
    for member in members:
        if value == member or value == member.value:
            return member
    raise HTTPException(
        status_code=400,
        detail=f"Invalid {label}. Must be one of: {', '.join(m.value for m in members)}"
    )


def is_truthy_flag(value: Any) -> bool:
    """Query flags like include_inactive=true"""
    return str(value).strip().lower() in ("1", "true", "yes")
