from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import FilledShift, PlaceholderShift, Shift, TimeRange


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list_for_schedule(self, week_schedule_id: int, *, filled_only: bool = False) -> Sequence[Shift]:
        raise NotImplementedError

    def list_filled_for_user_and_date(self, *, user_id: int, work_date: date) -> Sequence[FilledShift]:
        raise NotImplementedError

    def list_filled_between(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[FilledShift]:
        """Filled shifts with ``start <= work_date <= end``, ordered by date and start time."""

        raise NotImplementedError

    def find_placeholder(self, *, week_schedule_id: int, user_id: int, work_date: date) -> Optional[PlaceholderShift]:
        raise NotImplementedError

    def insert(
        self,
        *,
        week_schedule_id: int,
        user_id: int,
        work_date: date,
        interval: Optional[TimeRange] = None,
        position_id: Optional[int] = None,
        notes: Optional[str] = None,
        shift_request_id: Optional[int] = None,
    ) -> Shift:
        raise NotImplementedError

    def update(self, shift: Shift) -> bool:
        """Overwrite the stored row with ``shift`` (matched by ``shift_id``)."""

        raise NotImplementedError

    def delete(self, *, shift_id: int) -> bool:
        """Delete the shift together with its attendance record."""

        raise NotImplementedError
