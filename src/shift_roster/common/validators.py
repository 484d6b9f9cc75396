from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def require_positive_int(value: object, field_name: str) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_time_pair(start: Optional[datetime], end: Optional[datetime], field_name: str) -> bool:
    """Return True when both bounds are given, False when neither is.

    A half-filled pair is a validation error.
    """
    if start is None and end is None:
        return False
    if start is None or end is None:
        raise ValidationError(f"{field_name}: both start and end time are required")
    return True


def parse_enum(enum_cls: type[E], value: object, message: str) -> E:
    """Accept a member or its (case-insensitive) value."""
    if isinstance(value, enum_cls):
        return value
    raw = str(value or "").strip()
    for member in enum_cls:
        if str(member.value).lower() == raw.lower():
            return member
    raise ValidationError(message)
