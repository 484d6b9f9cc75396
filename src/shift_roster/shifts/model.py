from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from fractions import Fraction
from typing import Optional, Union

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval ``[start, end)``; ``start < end`` always holds."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValidationError("End time must be later than start time")

    @property
    def seconds(self) -> int:
        return int((self.end - self.start).total_seconds())

    @property
    def exact_hours(self) -> Fraction:
        return Fraction(self.seconds, 3600)

    @property
    def hours(self) -> float:
        return self.seconds / 3600

    def overlaps(self, other: "TimeRange") -> bool:
        # Back-to-back ranges (end == start) do not overlap.
        return self.start < other.end and self.end > other.start

    def label(self) -> str:
        return f"{self.start:%H:%M} - {self.end:%H:%M}"


@dataclass(frozen=True)
class PlaceholderShift:
    """A user/day slot on the roster with no position or time assigned yet."""

    shift_id: int
    week_schedule_id: int
    user_id: int
    work_date: date
    notes: Optional[str] = None

    is_placeholder = True

    @property
    def hours_worked(self) -> None:
        return None


@dataclass(frozen=True)
class FilledShift:
    """A timed shift. Only filled shifts take part in overlap checks and payroll."""

    shift_id: int
    week_schedule_id: int
    user_id: int
    work_date: date
    interval: TimeRange
    position_id: Optional[int] = None
    notes: Optional[str] = None
    shift_request_id: Optional[int] = None

    is_placeholder = False

    @property
    def hours_worked(self) -> float:
        return self.interval.hours


Shift = Union[PlaceholderShift, FilledShift]
