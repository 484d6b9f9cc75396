from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, now_local
from ..common.validators import optional_text, parse_enum, require_non_empty, require_positive_int, require_time_pair
from ..core.constants import DEFAULT_VACATION_DAYS_PER_REQUEST
from ..core.enums import ReviewAction, ShiftRequestStatus, ShiftRequestType
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DeadlinePassedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..database.locks import LockManager, ThreadLockManager, shift_request_key, shift_slot_key
from ..schedules.model import WeekSchedule
from ..schedules.repository import ScheduleRepository
from ..schedules.service import ScheduleService
from ..shifts.model import FilledShift, TimeRange
from ..users.model import SessionUser
from ..users.repository import UserRepository
from . import transitions
from .model import RequestPatch, ShiftRequest
from .repository import RequestRepository

logger = logging.getLogger(__name__)


def parse_review_action(value: object) -> ReviewAction:
    return parse_enum(ReviewAction, value, "Action must be 'approve' or 'reject'")


class RequestService:
    """Use case: employees ask for shifts, managers review and convert them."""

    def __init__(
        self,
        requests: RequestRepository,
        schedules: ScheduleRepository,
        users: UserRepository,
        schedule_service: ScheduleService,
        *,
        locks: Optional[LockManager] = None,
        clock: Clock = now_local,
    ):
        self._requests = requests
        self._schedules = schedules
        self._users = users
        self._schedule_service = schedule_service
        self._locks = locks or ThreadLockManager()
        self._clock = clock

    # -------- Employee side --------
    def submit(
        self,
        *,
        actor: SessionUser,
        week_schedule_id: int,
        request_type: ShiftRequestType,
        work_date: date,
        preferred_start: Optional[datetime] = None,
        preferred_end: Optional[datetime] = None,
        notes: Optional[str] = None,
        vacation_days: Optional[int] = None,
    ) -> ShiftRequest:
        user = self._users.get_by_id(actor.user_id)
        if not user or not user.is_active:
            raise AuthorizationError("Only active employees can submit shift requests")
        if not user.position_ids:
            raise AuthorizationError("You have no positions assigned yet")

        schedule = self._schedule(week_schedule_id)
        self._ensure_before_deadline(schedule)
        self._ensure_in_week(schedule, work_date)

        preferred = self._preferred_for(request_type, work_date, preferred_start, preferred_end)
        days = self._vacation_days_for(request_type, vacation_days)

        with self._locks.hold(shift_slot_key(actor.user_id, work_date)):
            self._ensure_single_active(user_id=actor.user_id, work_date=work_date, request_type=request_type)
            request = self._requests.create(
                week_schedule_id=schedule.schedule_id,
                user_id=actor.user_id,
                request_type=request_type,
                work_date=work_date,
                preferred=preferred,
                notes=optional_text(notes),
                vacation_days=days,
                created_at=self._clock(),
            )

        logger.info(
            "User %s submitted %s request %s for %s",
            actor.user_id,
            request_type.value,
            request.request_id,
            work_date,
        )
        return request

    def edit(self, *, actor: SessionUser, request_id: int, patch: RequestPatch) -> ShiftRequest:
        with self._locks.hold(shift_request_key(request_id)):
            current = self._owned_pending(actor, request_id)
            schedule = self._schedule(current.week_schedule_id)
            self._ensure_before_deadline(schedule)

            request_type = patch.request_type or current.request_type
            work_date = patch.work_date or current.work_date
            self._ensure_in_week(schedule, work_date)

            start, end = patch.preferred_start, patch.preferred_end
            if start is None and end is None and current.preferred and request_type == ShiftRequestType.SPECIFIC_TIME:
                # Moving to another day keeps the clock times.
                delta = work_date - current.work_date
                start, end = current.preferred.start + delta, current.preferred.end + delta

            preferred = self._preferred_for(request_type, work_date, start, end)
            days = self._vacation_days_for(
                request_type, patch.vacation_days if patch.vacation_days is not None else current.vacation_days
            )
            updated = replace(
                current,
                request_type=request_type,
                work_date=work_date,
                preferred=preferred,
                vacation_days=days,
                notes=optional_text(patch.notes) if patch.notes is not None else current.notes,
            )

            with self._locks.hold(shift_slot_key(actor.user_id, work_date)):
                if work_date != current.work_date or request_type != current.request_type:
                    self._ensure_single_active(
                        user_id=actor.user_id,
                        work_date=work_date,
                        request_type=request_type,
                        exclude_request_id=current.request_id,
                    )
                if not self._requests.update_pending(updated):
                    raise InvalidStateError("Only pending requests can be changed")

        logger.info("User %s edited request %s", actor.user_id, current.request_id)
        return updated

    def withdraw(self, *, actor: SessionUser, request_id: int) -> None:
        with self._locks.hold(shift_request_key(request_id)):
            current = self._owned_pending(actor, request_id)
            self._ensure_before_deadline(self._schedule(current.week_schedule_id))
            if not self._requests.delete_pending(request_id=current.request_id):
                raise InvalidStateError("Only pending requests can be changed")

        logger.info("User %s withdrew request %s", actor.user_id, current.request_id)

    # -------- Manager side --------
    def review(
        self,
        *,
        actor: SessionUser,
        request_id: int,
        action: object,
        reason: Optional[str] = None,
    ) -> ShiftRequest:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can review requests")

        parsed = parse_review_action(action)
        if parsed == ReviewAction.REJECT:
            reason = require_non_empty(reason, "Rejection reason")
            target = ShiftRequestStatus.REJECTED
        else:
            reason = None
            target = ShiftRequestStatus.APPROVED

        with self._locks.hold(shift_request_key(request_id)):
            current = self.get_request(actor=actor, request_id=request_id)
            transitions.ensure_transition(current, target)

            deducted = True if (target == ShiftRequestStatus.APPROVED and current.is_time_off) else None
            ok = self._requests.transition(
                request_id=current.request_id,
                from_statuses=transitions.sources_for(target),
                to_status=target,
                reviewed_by=actor.user_id,
                reviewed_at=self._clock(),
                rejection_reason=reason,
                deducted_from_balance=deducted,
            )
            if not ok:
                raise InvalidStateError("Only pending requests can be reviewed")

        logger.info("Request %s %s by %s", current.request_id, target.value.lower(), actor.user_id)
        return self.get_request(actor=actor, request_id=current.request_id)

    def convert(
        self,
        *,
        actor: SessionUser,
        request_id: int,
        position_id: Optional[int],
        start: Optional[datetime],
        end: Optional[datetime],
        notes: Optional[str] = None,
    ) -> FilledShift:
        """Turn a request into a shift on its day.

        Either both the shift and the status change are stored, or neither is.
        """

        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can convert requests")
        if position_id is None:
            raise ValidationError("Position is required")
        if not require_time_pair(start, end, "Shift"):
            raise ValidationError("Shift: both start and end time are required")

        target = ShiftRequestStatus.CONVERTED_TO_SHIFT
        with self._locks.hold(shift_request_key(request_id)):
            current = self.get_request(actor=actor, request_id=request_id)
            transitions.ensure_transition(current, target)

            employee = self._users.get_by_id(current.user_id)
            if not employee:
                raise NotFoundError("User not found")
            if int(position_id) not in employee.position_ids:
                raise ValidationError("The employee does not hold this position")

            placement = self._schedule_service.place(
                actor=actor,
                week_schedule_id=current.week_schedule_id,
                user_id=current.user_id,
                work_date=current.work_date,
                start=start,  # type: ignore[arg-type]
                end=end,  # type: ignore[arg-type]
                position_id=int(position_id),
                notes=notes if notes is not None else current.notes,
                shift_request_id=current.request_id,
            )
            try:
                ok = self._requests.transition(
                    request_id=current.request_id,
                    from_statuses=transitions.sources_for(target),
                    to_status=target,
                    reviewed_by=actor.user_id,
                    reviewed_at=self._clock(),
                    position_id=int(position_id),
                )
            except Exception:
                self._schedule_service.undo_placement(placement)
                raise
            if not ok:
                self._schedule_service.undo_placement(placement)
                raise InvalidStateError("This request can no longer be converted (already rejected or converted)")

        logger.info(
            "Request %s converted into shift %s by %s",
            current.request_id,
            placement.shift.shift_id,
            actor.user_id,
        )
        return placement.shift

    # -------- Queries --------
    def get_request(self, *, actor: SessionUser, request_id: int) -> ShiftRequest:
        request = self._requests.get_by_id(int(request_id))
        if not request:
            raise NotFoundError("Shift request not found")
        if not actor.can_review and request.user_id != actor.user_id:
            raise AuthorizationError("You can only view your own requests")
        return request

    def list_requests(
        self,
        *,
        actor: SessionUser,
        week_schedule_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[ShiftRequestStatus] = None,
        request_type: Optional[ShiftRequestType] = None,
    ) -> Sequence[ShiftRequest]:
        if not actor.can_review:
            user_id = actor.user_id
        return self._requests.list_requests(
            week_schedule_id=week_schedule_id,
            user_id=user_id,
            status=status,
            request_type=request_type,
        )

    # -------- Helpers --------
    def _schedule(self, schedule_id: int) -> WeekSchedule:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def _ensure_before_deadline(self, schedule: WeekSchedule) -> None:
        if schedule.deadline_passed(self._clock()):
            raise DeadlinePassedError("The request deadline for this week has passed")

    @staticmethod
    def _ensure_in_week(schedule: WeekSchedule, work_date: date) -> None:
        if not schedule.contains(work_date):
            raise ValidationError("Date is outside the schedule's week")

    @staticmethod
    def _preferred_for(
        request_type: ShiftRequestType,
        work_date: date,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> Optional[TimeRange]:
        if request_type != ShiftRequestType.SPECIFIC_TIME:
            return None
        if not require_time_pair(start, end, "Preferred time"):
            raise ValidationError("Preferred start and end time are required")
        preferred = TimeRange(start, end)  # type: ignore[arg-type]
        if preferred.start.date() != work_date:
            raise ValidationError("Preferred time must start on the requested date")
        return preferred

    @staticmethod
    def _vacation_days_for(request_type: ShiftRequestType, value: Optional[int]) -> Optional[int]:
        if request_type != ShiftRequestType.TIME_OFF:
            return None
        if value is None:
            return DEFAULT_VACATION_DAYS_PER_REQUEST
        return require_positive_int(value, "Vacation days")

    def _owned_pending(self, actor: SessionUser, request_id: int) -> ShiftRequest:
        request = self._requests.get_by_id(int(request_id))
        if not request:
            raise NotFoundError("Shift request not found")
        if request.user_id != actor.user_id:
            raise AuthorizationError("You can only change your own requests")
        transitions.ensure_editable(request)
        return request

    def _ensure_single_active(
        self,
        *,
        user_id: int,
        work_date: date,
        request_type: ShiftRequestType,
        exclude_request_id: Optional[int] = None,
    ) -> None:
        existing = self._requests.find_active_for_day(
            user_id=user_id, work_date=work_date, exclude_request_id=exclude_request_id
        )
        if not existing:
            return
        if request_type == ShiftRequestType.TIME_OFF or existing.is_time_off:
            raise ConflictError("You already have a request for this day; time off cannot be combined with work")
        raise ConflictError("You already have an active request for this day")
