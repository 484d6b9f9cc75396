from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Optional, Protocol

from ..core.enums import AttendanceStatus
from ..shifts.model import TimeRange
from .model import ActualWorkHours


class AttendanceRepository(Protocol):
    def get_for_shift(self, shift_id: int) -> Optional[ActualWorkHours]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        shift_id: int,
        user_id: int,
        status: AttendanceStatus,
        actual: Optional[TimeRange],
        notes: Optional[str],
        recorded_by: int,
        recorded_at: datetime,
    ) -> ActualWorkHours:
        """Insert or overwrite the single record of a shift."""

        raise NotImplementedError

    def list_for_shifts(self, shift_ids: Iterable[int]) -> Mapping[int, ActualWorkHours]:
        """Records keyed by shift id; shifts without a record are absent from the mapping."""

        raise NotImplementedError
