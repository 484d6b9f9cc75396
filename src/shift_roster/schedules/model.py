from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class WeekSchedule:
    """Domain entity: one week's roster (Monday to Sunday)."""

    schedule_id: int
    week_start: date
    week_end: date
    created_by: int
    request_deadline: Optional[datetime] = None
    is_published: bool = False
    created_at: Optional[datetime] = None

    def contains(self, day: date) -> bool:
        return self.week_start <= day <= self.week_end

    def deadline_passed(self, now: datetime) -> bool:
        return self.request_deadline is not None and now > self.request_deadline
