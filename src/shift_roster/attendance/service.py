from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, now_local
from ..common.validators import optional_text, parse_enum, require_time_pair
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    TooEarlyError,
    ValidationError,
)
from ..shifts.model import FilledShift, PlaceholderShift, TimeRange
from ..shifts.repository import ShiftRepository
from ..users.model import SessionUser
from .model import ActualWorkHours
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_attendance_status(value: object) -> AttendanceStatus:
    return parse_enum(AttendanceStatus, value, "Status must be PRESENT, SICK or ABSENT")


class AttendanceService:
    """Use case: reconcile planned shifts with what actually happened."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        *,
        clock: Clock = now_local,
    ):
        self._attendance = attendance
        self._shifts = shifts
        self._clock = clock

    def record(
        self,
        *,
        actor: SessionUser,
        shift_id: int,
        status: object,
        actual_start: Optional[datetime] = None,
        actual_end: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ActualWorkHours:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can record attendance")

        parsed = parse_attendance_status(status)
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        if isinstance(shift, PlaceholderShift):
            raise InvalidStateError("Attendance can only be recorded for shifts with times")

        if self._clock() <= shift.interval.end:
            raise TooEarlyError("Attendance can only be recorded after the shift has ended")

        actual: Optional[TimeRange] = None
        if parsed == AttendanceStatus.PRESENT:
            if not require_time_pair(actual_start, actual_end, "Actual time"):
                raise ValidationError("Actual start and end time are required when present")
            actual = TimeRange(actual_start, actual_end)  # type: ignore[arg-type]

        record = self._attendance.upsert(
            shift_id=shift.shift_id,
            user_id=shift.user_id,
            status=parsed,
            actual=actual,
            notes=optional_text(notes),
            recorded_by=actor.user_id,
            recorded_at=self._clock(),
        )
        logger.info(
            "Recorded %s for shift %s (%.2f h) by %s",
            parsed.value,
            shift.shift_id,
            record.actual_hours_worked,
            actor.user_id,
        )
        return record

    def get_for_shift(self, *, shift_id: int) -> Optional[ActualWorkHours]:
        return self._attendance.get_for_shift(int(shift_id))

    def list_unrecorded(self, *, actor: SessionUser, week_schedule_id: int) -> Sequence[FilledShift]:
        """Ended shifts of the week that nobody has reconciled yet."""

        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can record attendance")

        now = self._clock()
        ended = [
            s
            for s in self._shifts.list_for_schedule(int(week_schedule_id), filled_only=True)
            if isinstance(s, FilledShift) and s.interval.end < now
        ]
        recorded = self._attendance.list_for_shifts(s.shift_id for s in ended)
        return [s for s in ended if s.shift_id not in recorded]
