from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ShiftRequestStatus, ShiftRequestType
from ..shifts.model import TimeRange


@dataclass(frozen=True)
class ShiftRequest:
    """Domain entity: an employee's wish for one day of a week schedule."""

    request_id: int
    week_schedule_id: int
    user_id: int
    request_type: ShiftRequestType
    work_date: date
    status: ShiftRequestStatus
    created_at: datetime
    preferred: Optional[TimeRange] = None
    position_id: Optional[int] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    vacation_days: Optional[int] = None
    deducted_from_balance: bool = False
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None

    @property
    def is_time_off(self) -> bool:
        return self.request_type == ShiftRequestType.TIME_OFF

    @property
    def requested_hours(self) -> float:
        return self.preferred.hours if self.preferred else 0.0


@dataclass(frozen=True)
class RequestPatch:
    """Fields an employee may change on a pending request. None means unchanged."""

    request_type: Optional[ShiftRequestType] = None
    work_date: Optional[date] = None
    preferred_start: Optional[datetime] = None
    preferred_end: Optional[datetime] = None
    notes: Optional[str] = None
    vacation_days: Optional[int] = None
