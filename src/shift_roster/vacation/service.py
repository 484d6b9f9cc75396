from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, count_weekdays, now_local, year_bounds
from ..common.validators import optional_text, parse_enum, require_non_empty
from ..core.constants import DEFAULT_VACATION_DAYS_PER_REQUEST
from ..core.enums import ReviewAction, ShiftRequestStatus, ShiftRequestType, TimeOffStatus, TimeOffType
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from ..database.locks import LockManager, ThreadLockManager, time_off_key, vacation_balance_key
from ..requests.repository import RequestRepository
from ..requests.service import parse_review_action
from ..users.model import SessionUser, User
from ..users.repository import UserRepository
from .model import TimeOffEntry, TimeOffRequest, VacationBalance
from .repository import TimeOffRepository

logger = logging.getLogger(__name__)


def parse_time_off_type(value: object) -> TimeOffType:
    return parse_enum(TimeOffType, value, "Type must be VACATION or SICK_LEAVE")


def parse_time_off_status(value: object) -> Optional[TimeOffStatus]:
    if value is None or value == "":
        return None
    return parse_enum(TimeOffStatus, value, "Status must be PENDING, APPROVED or REJECTED")


class VacationService:
    """Use case: vacation balances and multi-day time-off requests.

    Single-day TIME_OFF shift requests count against the same balance as
    VACATION requests; sick leave never does.
    """

    def __init__(
        self,
        time_off: TimeOffRepository,
        requests: RequestRepository,
        users: UserRepository,
        *,
        locks: Optional[LockManager] = None,
        clock: Clock = now_local,
    ):
        self._time_off = time_off
        self._requests = requests
        self._users = users
        self._locks = locks or ThreadLockManager()
        self._clock = clock

    # -------- Balance --------
    def balance(self, *, actor: SessionUser, user_id: Optional[int] = None) -> VacationBalance:
        target_id = actor.user_id if user_id is None else int(user_id)
        if target_id != actor.user_id and not actor.can_review:
            raise AuthorizationError("You can only view your own vacation balance")
        user = self._users.get_by_id(target_id)
        if not user:
            raise NotFoundError("User not found")
        return self._balance_for(user)

    def team_balances(self, *, actor: SessionUser) -> Sequence[VacationBalance]:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can view team balances")
        return [self._balance_for(u) for u in self._users.list_active()]

    def _balance_for(self, user: User) -> VacationBalance:
        year = user.vacation_year or self._clock().year
        first, last = year_bounds(year)
        used = pending = 0

        for r in self._requests.list_requests(user_id=user.user_id, request_type=ShiftRequestType.TIME_OFF):
            if not first <= r.work_date <= last:
                continue
            days = r.vacation_days or DEFAULT_VACATION_DAYS_PER_REQUEST
            if r.status == ShiftRequestStatus.APPROVED and r.deducted_from_balance:
                used += days
            elif r.status == ShiftRequestStatus.PENDING:
                pending += days

        for t in self._time_off.list_for_user(user_id=user.user_id, start=first, end=last):
            if t.time_off_type != TimeOffType.VACATION:
                continue
            if t.status == TimeOffStatus.APPROVED and t.deducted_from_balance:
                used += t.days_count
            elif t.status == TimeOffStatus.PENDING:
                pending += t.days_count

        return VacationBalance(
            user_id=user.user_id,
            vacation_year=year,
            annual_days=user.annual_vacation_days,
            used_days=used,
            pending_days=pending,
        )

    # -------- Time-off requests --------
    def submit_time_off(
        self,
        *,
        actor: SessionUser,
        time_off_type: object,
        start_date: date,
        end_date: date,
        notes: Optional[str] = None,
    ) -> TimeOffRequest:
        kind = parse_time_off_type(time_off_type)
        user = self._users.get_by_id(actor.user_id)
        if not user or not user.is_active:
            raise AuthorizationError("Only active employees can request time off")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        days = count_weekdays(start_date, end_date)
        if days < 1:
            raise ValidationError("The selected period contains no working days")

        with self._locks.hold(vacation_balance_key(user.user_id)):
            if kind == TimeOffType.VACATION:
                available = self._balance_for(user).available_days
                if days > available:
                    raise ValidationError(
                        f"Not enough vacation days: {days} requested, {available} available"
                    )
            request = self._time_off.create(
                user_id=user.user_id,
                time_off_type=kind,
                start_date=start_date,
                end_date=end_date,
                days_count=days,
                notes=optional_text(notes),
                created_at=self._clock(),
            )

        logger.info("User %s requested %s for %d day(s)", user.user_id, kind.value, days)
        return request

    def review_time_off(
        self,
        *,
        actor: SessionUser,
        request_id: int,
        action: object,
        reason: Optional[str] = None,
    ) -> TimeOffRequest:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can review requests")

        parsed = parse_review_action(action)
        if parsed == ReviewAction.REJECT:
            reason = require_non_empty(reason, "Rejection reason")
            target = TimeOffStatus.REJECTED
        else:
            reason = None
            target = TimeOffStatus.APPROVED

        with self._locks.hold(time_off_key(request_id)):
            current = self._time_off.get_by_id(int(request_id))
            if not current:
                raise NotFoundError("Time-off request not found")
            if current.status != TimeOffStatus.PENDING:
                raise InvalidStateError("Only pending requests can be reviewed")

            deduct = target == TimeOffStatus.APPROVED and current.time_off_type == TimeOffType.VACATION
            ok = self._time_off.transition(
                request_id=current.request_id,
                from_status=TimeOffStatus.PENDING,
                to_status=target,
                reviewed_by=actor.user_id,
                reviewed_at=self._clock(),
                rejection_reason=reason,
                deducted_from_balance=deduct,
            )
            if not ok:
                raise InvalidStateError("Only pending requests can be reviewed")

        logger.info("Time-off request %s %s by %s", current.request_id, target.value.lower(), actor.user_id)
        return self._time_off.get_by_id(current.request_id)  # type: ignore[return-value]

    def list_my_time_off(
        self,
        *,
        actor: SessionUser,
        status: object = None,
        year: Optional[int] = None,
    ) -> Sequence[TimeOffEntry]:
        """Single-day TIME_OFF shift requests and multi-day requests, newest first."""

        wanted = parse_time_off_status(status)
        first, last = year_bounds(int(year)) if year else (None, None)

        entries = []
        for r in self._requests.list_requests(user_id=actor.user_id, request_type=ShiftRequestType.TIME_OFF):
            if wanted and r.status.value != wanted.value:
                continue
            if first and not first <= r.work_date <= last:  # type: ignore[operator]
                continue
            entries.append(
                TimeOffEntry(
                    source="shift_request",
                    request_id=r.request_id,
                    user_id=r.user_id,
                    kind=ShiftRequestType.TIME_OFF.value,
                    start_date=r.work_date,
                    end_date=r.work_date,
                    days_count=r.vacation_days or DEFAULT_VACATION_DAYS_PER_REQUEST,
                    status=r.status.value,
                    created_at=r.created_at,
                    notes=r.notes,
                    rejection_reason=r.rejection_reason,
                )
            )

        for t in self._time_off.list_for_user(user_id=actor.user_id, status=wanted, start=first, end=last):
            entries.append(
                TimeOffEntry(
                    source="time_off_request",
                    request_id=t.request_id,
                    user_id=t.user_id,
                    kind=t.time_off_type.value,
                    start_date=t.start_date,
                    end_date=t.end_date,
                    days_count=t.days_count,
                    status=t.status.value,
                    created_at=t.created_at,
                    notes=t.notes,
                    rejection_reason=t.rejection_reason,
                )
            )

        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries
