from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.enums import TimeOffStatus, TimeOffType


@dataclass(frozen=True)
class TimeOffRequest:
    """Domain entity: a multi-day vacation or sick-leave request."""

    request_id: int
    user_id: int
    time_off_type: TimeOffType
    start_date: date
    end_date: date
    days_count: int
    status: TimeOffStatus
    created_at: datetime
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    deducted_from_balance: bool = False
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None


@dataclass(frozen=True)
class VacationBalance:
    """Vacation days of one user in one vacation year.

    ``used`` and ``pending`` are derived from request statuses, so a review
    moves days between them in the same write that changes the status.
    """

    user_id: int
    vacation_year: int
    annual_days: int
    used_days: int
    pending_days: int

    @property
    def remaining_days(self) -> int:
        return self.annual_days - self.used_days

    @property
    def available_days(self) -> int:
        return self.remaining_days - self.pending_days

    @property
    def usage_percentage(self) -> int:
        if self.annual_days <= 0:
            return 0
        share = Decimal(self.used_days) * 100 / Decimal(self.annual_days)
        return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "vacation_year": self.vacation_year,
            "annual_vacation_days": self.annual_days,
            "used_vacation_days": self.used_days,
            "pending_days": self.pending_days,
            "remaining_days": self.remaining_days,
            "available_days": self.available_days,
            "usage_percentage": self.usage_percentage,
        }


@dataclass(frozen=True)
class TimeOffEntry:
    """One row of the combined time-off list (single-day shift requests and multi-day requests)."""

    source: str
    request_id: int
    user_id: int
    kind: str
    start_date: date
    end_date: date
    days_count: int
    status: str
    created_at: datetime
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
