from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, now_local
from ..common.validators import optional_text, require_time_pair
from ..core.constants import DAYS_PER_WEEK
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..database.locks import LockManager, ThreadLockManager, shift_slot_key
from ..positions.repository import PositionRepository
from ..shifts.conflicts import find_conflict
from ..shifts.model import FilledShift, PlaceholderShift, Shift, TimeRange
from ..shifts.repository import ShiftRepository
from ..users.model import SessionUser
from ..users.repository import UserRepository
from .model import WeekSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    """Result of placing a timed shift; ``replaced`` is the placeholder it filled."""

    shift: FilledShift
    replaced: Optional[PlaceholderShift] = None


class ScheduleService:
    """Use case: week rosters and the shifts on them.

    Every write that gives a shift a time runs the overlap check and the write
    under the ``(user_id, work_date)`` lock, so two callers cannot both pass
    the check and then both insert.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        shifts: ShiftRepository,
        users: UserRepository,
        positions: PositionRepository,
        *,
        locks: Optional[LockManager] = None,
        clock: Clock = now_local,
    ):
        self._schedules = schedules
        self._shifts = shifts
        self._users = users
        self._positions = positions
        self._locks = locks or ThreadLockManager()
        self._clock = clock

    # -------- Week schedules --------
    def create_week_schedule(
        self,
        *,
        actor: SessionUser,
        week_start: date,
        request_deadline: Optional[datetime] = None,
    ) -> WeekSchedule:
        if not actor.can_plan:
            raise AuthorizationError("Only managers can create schedules")

        if week_start.weekday() != 0:
            raise ValidationError("Week must start on Monday")

        if self._schedules.get_by_week_start(week_start):
            raise ConflictError("Schedule already exists for this week")

        active_ids = [u.user_id for u in self._users.list_active()]
        schedule = self._schedules.create_with_placeholders(
            week_start=week_start,
            week_end=week_start + timedelta(days=DAYS_PER_WEEK - 1),
            request_deadline=request_deadline,
            created_by=actor.user_id,
            created_at=self._clock(),
            user_ids=active_ids,
        )
        logger.info(
            "Created week schedule %s (%s) with %d placeholder shifts",
            schedule.schedule_id,
            week_start.isoformat(),
            len(active_ids) * DAYS_PER_WEEK,
        )
        return schedule

    def get_week_schedule(self, *, schedule_id: int) -> WeekSchedule:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def list_week_schedules(self) -> Sequence[WeekSchedule]:
        return self._schedules.list_all()

    def publish(self, *, actor: SessionUser, schedule_id: int, published: bool) -> WeekSchedule:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can publish schedules")

        if not self._schedules.set_published(schedule_id=int(schedule_id), published=bool(published)):
            raise NotFoundError("Schedule not found")

        logger.info("Schedule %s %s", schedule_id, "published" if published else "unpublished")
        return self.get_week_schedule(schedule_id=schedule_id)

    # -------- Shifts --------
    def get_shift(self, *, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def list_shifts(self, *, actor: SessionUser, week_schedule_id: int) -> Sequence[Shift]:
        schedule = self.get_week_schedule(schedule_id=week_schedule_id)
        if actor.can_review:
            return self._shifts.list_for_schedule(schedule.schedule_id)

        # Employees only see the filled shifts of published rosters.
        if not schedule.is_published:
            return []
        return self._shifts.list_for_schedule(schedule.schedule_id, filled_only=True)

    def place_shift(
        self,
        *,
        actor: SessionUser,
        week_schedule_id: int,
        user_id: int,
        work_date: date,
        position_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        notes: Optional[str] = None,
        shift_request_id: Optional[int] = None,
    ) -> Shift:
        """Create a shift, or fill the user's placeholder for that day.

        Without times a new placeholder is created.
        """

        if not require_time_pair(start, end, "Shift"):
            self._check_place(actor, week_schedule_id, user_id, work_date)
            return self._shifts.insert(
                week_schedule_id=int(week_schedule_id),
                user_id=int(user_id),
                work_date=work_date,
                notes=optional_text(notes),
            )

        return self.place(
            actor=actor,
            week_schedule_id=week_schedule_id,
            user_id=user_id,
            work_date=work_date,
            position_id=position_id,
            start=start,  # type: ignore[arg-type]
            end=end,  # type: ignore[arg-type]
            notes=notes,
            shift_request_id=shift_request_id,
        ).shift

    def place(
        self,
        *,
        actor: SessionUser,
        week_schedule_id: int,
        user_id: int,
        work_date: date,
        start: datetime,
        end: datetime,
        position_id: Optional[int] = None,
        notes: Optional[str] = None,
        shift_request_id: Optional[int] = None,
    ) -> Placement:
        """Place a timed shift; the result can be handed to ``undo_placement``."""

        interval = self._interval_on(work_date, start, end)
        schedule = self._check_place(actor, week_schedule_id, user_id, work_date)
        self._check_position(position_id)
        notes = optional_text(notes)

        with self._locks.hold(shift_slot_key(user_id, work_date)):
            self._ensure_no_overlap(user_id=int(user_id), work_date=work_date, interval=interval)

            placeholder = self._shifts.find_placeholder(
                week_schedule_id=schedule.schedule_id, user_id=int(user_id), work_date=work_date
            )
            if placeholder:
                shift = FilledShift(
                    shift_id=placeholder.shift_id,
                    week_schedule_id=schedule.schedule_id,
                    user_id=int(user_id),
                    work_date=work_date,
                    interval=interval,
                    position_id=position_id,
                    notes=notes or placeholder.notes,
                    shift_request_id=shift_request_id,
                )
                self._shifts.update(shift)
            else:
                shift = self._shifts.insert(
                    week_schedule_id=schedule.schedule_id,
                    user_id=int(user_id),
                    work_date=work_date,
                    interval=interval,
                    position_id=position_id,
                    notes=notes,
                    shift_request_id=shift_request_id,
                )

        logger.info("Placed shift %s for user %s on %s (%s)", shift.shift_id, user_id, work_date, interval.label())
        return Placement(shift=shift, replaced=placeholder)  # type: ignore[arg-type]

    def undo_placement(self, placement: Placement) -> None:
        """Put the roster back the way it was before ``place`` (used when a later step fails)."""

        if placement.replaced is not None:
            self._shifts.update(placement.replaced)
        else:
            self._shifts.delete(shift_id=placement.shift.shift_id)
        logger.info("Rolled back placement of shift %s", placement.shift.shift_id)

    def update_shift(
        self,
        *,
        actor: SessionUser,
        shift_id: int,
        position_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Shift:
        """Edit or resize a shift. Omitting both times keeps the current interval."""

        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can manage shifts")

        current = self.get_shift(shift_id=shift_id)
        has_times = require_time_pair(start, end, "Shift")
        self._check_position(position_id)
        notes = optional_text(notes)

        if not has_times:
            if isinstance(current, PlaceholderShift):
                updated: Shift = PlaceholderShift(
                    shift_id=current.shift_id,
                    week_schedule_id=current.week_schedule_id,
                    user_id=current.user_id,
                    work_date=current.work_date,
                    notes=notes,
                )
            else:
                updated = FilledShift(
                    shift_id=current.shift_id,
                    week_schedule_id=current.week_schedule_id,
                    user_id=current.user_id,
                    work_date=current.work_date,
                    interval=current.interval,
                    position_id=position_id if position_id is not None else current.position_id,
                    notes=notes,
                    shift_request_id=current.shift_request_id,
                )
            self._shifts.update(updated)
            return updated

        interval = self._interval_on(current.work_date, start, end)  # type: ignore[arg-type]
        with self._locks.hold(shift_slot_key(current.user_id, current.work_date)):
            self._ensure_no_overlap(
                user_id=current.user_id,
                work_date=current.work_date,
                interval=interval,
                exclude_shift_id=current.shift_id,
            )
            updated = FilledShift(
                shift_id=current.shift_id,
                week_schedule_id=current.week_schedule_id,
                user_id=current.user_id,
                work_date=current.work_date,
                interval=interval,
                position_id=position_id if position_id is not None else getattr(current, "position_id", None),
                notes=notes,
                shift_request_id=getattr(current, "shift_request_id", None),
            )
            self._shifts.update(updated)

        logger.info("Updated shift %s to %s", current.shift_id, interval.label())
        return updated

    def delete_shift(self, *, actor: SessionUser, shift_id: int) -> None:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can manage shifts")

        if not self._shifts.delete(shift_id=int(shift_id)):
            raise NotFoundError("Shift not found")
        logger.info("Deleted shift %s", shift_id)

    # -------- Helpers --------
    def _check_place(self, actor: SessionUser, week_schedule_id: int, user_id: int, work_date: date) -> WeekSchedule:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can manage shifts")

        schedule = self.get_week_schedule(schedule_id=week_schedule_id)
        if not schedule.contains(work_date):
            raise ValidationError("Shift date is outside the schedule's week")
        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("User not found")
        return schedule

    @staticmethod
    def _interval_on(work_date: date, start: datetime, end: datetime) -> TimeRange:
        interval = TimeRange(start, end)
        if interval.start.date() != work_date:
            raise ValidationError("Shift must start on its work date")
        return interval

    def _check_position(self, position_id: Optional[int]) -> None:
        if position_id is not None and not self._positions.get_by_id(int(position_id)):
            raise NotFoundError("Position not found")

    def _ensure_no_overlap(
        self,
        *,
        user_id: int,
        work_date: date,
        interval: TimeRange,
        exclude_shift_id: Optional[int] = None,
    ) -> None:
        existing = self._shifts.list_filled_for_user_and_date(user_id=user_id, work_date=work_date)
        conflict = find_conflict(existing, interval, exclude_shift_id=exclude_shift_id)
        if conflict:
            logger.warning(
                "Overlap for user %s on %s: %s collides with shift %s (%s)",
                user_id,
                work_date,
                interval.label(),
                conflict.shift_id,
                conflict.interval.label(),
            )
            raise ConflictError(f"User already has a shift at this time: {conflict.interval.label()}")
