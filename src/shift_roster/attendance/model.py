from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from fractions import Fraction
from typing import Optional

from ..core.enums import AttendanceStatus
from ..shifts.model import TimeRange


@dataclass(frozen=True)
class ActualWorkHours:
    """Domain entity: what really happened on a shift, recorded after it ended.

    ``actual`` is only set for PRESENT; sick or absent shifts count zero hours.
    """

    record_id: int
    shift_id: int
    user_id: int
    status: AttendanceStatus
    recorded_by: int
    recorded_at: datetime
    actual: Optional[TimeRange] = None
    notes: Optional[str] = None

    @property
    def exact_hours(self) -> Fraction:
        if self.status != AttendanceStatus.PRESENT or self.actual is None:
            return Fraction(0)
        return self.actual.exact_hours

    @property
    def actual_hours_worked(self) -> float:
        return float(self.exact_hours)
