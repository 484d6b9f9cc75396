"""Plain-JSON rendering of domain objects for the HTTP layer."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any

from ..attendance.model import ActualWorkHours
from ..requests.model import ShiftRequest
from ..shifts.model import FilledShift, PlaceholderShift, TimeRange

# Derived properties worth sending along with the stored fields.
_EXTRAS: dict[type, tuple[str, ...]] = {
    TimeRange: ("hours",),
    PlaceholderShift: ("is_placeholder", "hours_worked"),
    FilledShift: ("is_placeholder", "hours_worked"),
    ShiftRequest: ("requested_hours",),
    ActualWorkHours: ("actual_hours_worked",),
}


def to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return round(value, 4)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, Fraction)):
        return round(float(value), 4)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
        for name in _EXTRAS.get(type(value), ()):
            out[name] = to_json(getattr(value, name))
        return out
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    raise TypeError(f"Cannot serialize {type(value).__name__}")
