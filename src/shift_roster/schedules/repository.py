from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import WeekSchedule


class ScheduleRepository(Protocol):
    def create_with_placeholders(
        self,
        *,
        week_start: date,
        week_end: date,
        request_deadline: Optional[datetime],
        created_by: int,
        created_at: datetime,
        user_ids: Sequence[int],
    ) -> WeekSchedule:
        """Insert the schedule and one placeholder shift per user per day atomically."""

        raise NotImplementedError

    def get_by_id(self, schedule_id: int) -> Optional[WeekSchedule]:
        raise NotImplementedError

    def get_by_week_start(self, week_start: date) -> Optional[WeekSchedule]:
        raise NotImplementedError

    def list_all(self) -> Sequence[WeekSchedule]:
        """Newest week first."""

        raise NotImplementedError

    def set_published(self, *, schedule_id: int, published: bool) -> bool:
        raise NotImplementedError
