from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, timedelta
from fractions import Fraction
from typing import Iterable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, iter_days, month_bounds, now_local, week_start_of, year_bounds
from ..core.constants import DAYS_PER_WEEK, WEEKS_PER_PAYROLL_MONTH
from ..core.enums import AttendanceStatus, ShiftRequestStatus, ShiftRequestType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..requests.repository import RequestRepository
from ..schedules.repository import ScheduleRepository
from ..shifts.model import FilledShift
from ..shifts.repository import ShiftRepository
from ..users.model import SessionUser, User
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    ZERO,
    DayCell,
    MonthlyReport,
    MonthRow,
    PayrollSummary,
    TeamReport,
    TeamRow,
    WeekBucket,
    WorkWeekSummary,
    YearlyReport,
)


class PayrollReportService:
    """Hours and gross pay per employee, computed from shifts and attendance."""

    def __init__(
        self,
        shifts: ShiftRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        schedules: ScheduleRepository,
        requests: RequestRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
        clock: Clock = now_local,
    ):
        self._shifts = shifts
        self._attendance = attendance
        self._users = users
        self._schedules = schedules
        self._requests = requests
        self._calculator = calculator or StandardPayrollCalculator()
        self._clock = clock

    def _target(self, actor: SessionUser, user_id: Optional[int]) -> User:
        target_id = actor.user_id if user_id is None else int(user_id)
        if target_id != actor.user_id and not actor.can_review:
            raise AuthorizationError("You can only view your own payroll data")
        user = self._users.get_by_id(target_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _payable(self, shifts: Iterable[FilledShift]) -> list[tuple[FilledShift, Fraction]]:
        shifts = list(shifts)
        records = self._attendance.list_for_shifts(s.shift_id for s in shifts)
        return [(s, self._calculator.hours_for(s, records.get(s.shift_id))) for s in shifts]

    @staticmethod
    def _check_period(year: int, month: Optional[int] = None) -> None:
        if not 1 <= int(year) <= 9999:
            raise ValidationError("Invalid year")
        if month is not None and not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")

    # -------- Per employee --------
    def monthly(self, *, actor: SessionUser, year: int, month: int, user_id: Optional[int] = None) -> MonthlyReport:
        self._check_period(year, month)
        user = self._target(actor, user_id)
        first, last = month_bounds(int(year), int(month))
        rate = Fraction(user.hourly_rate)

        weeks: list[WeekBucket] = []
        cells: dict[date, DayCell] = {}
        week_start = week_start_of(first)
        while week_start <= last:
            week_end = week_start + timedelta(days=DAYS_PER_WEEK - 1)
            days = [DayCell(day=d, in_month=first <= d <= last) for d in iter_days(week_start, week_end)]
            cells.update({c.day: c for c in days})
            weeks.append(WeekBucket(len(weeks) + 1, week_start, week_end, days))
            week_start += timedelta(days=DAYS_PER_WEEK)

        for shift, hours in self._payable(self._shifts.list_filled_between(start=first, end=last, user_id=user.user_id)):
            cell = cells[shift.work_date]
            cell.hours += hours
            cell.gross += hours * rate

        return MonthlyReport(user.user_id, int(year), int(month), user.hourly_rate, weeks)

    def yearly(self, *, actor: SessionUser, year: int, user_id: Optional[int] = None) -> YearlyReport:
        self._check_period(year)
        user = self._target(actor, user_id)
        first, last = year_bounds(int(year))
        rate = Fraction(user.hourly_rate)

        months = [MonthRow(month=m, month_name=calendar.month_name[m]) for m in range(1, 13)]
        for shift, hours in self._payable(self._shifts.list_filled_between(start=first, end=last, user_id=user.user_id)):
            row = months[shift.work_date.month - 1]
            row.hours += hours
            row.gross += hours * rate

        return YearlyReport(user.user_id, int(year), user.hourly_rate, months)

    def summary(self, *, actor: SessionUser) -> PayrollSummary:
        now = self._clock()
        report = self.monthly(actor=actor, year=now.year, month=now.month)
        user = self._target(actor, None)
        _, last = month_bounds(now.year, now.month)
        return PayrollSummary(
            user_id=user.user_id,
            year=now.year,
            month=now.month,
            hours=report.total_hours,
            expected_hours=user.weekly_required_hours * WEEKS_PER_PAYROLL_MONTH,
            hourly_rate=user.hourly_rate,
            gross=report.total_gross,
            days_remaining=max(0, last.day - now.day),
        )

    def employee(self, *, actor: SessionUser, user_id: int, year: int, month: int) -> MonthlyReport:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can view employee payroll")
        return self.monthly(actor=actor, year=year, month=month, user_id=user_id)

    # -------- Team --------
    def team(self, *, actor: SessionUser, year: int, month: int) -> TeamReport:
        if not actor.can_review:
            raise AuthorizationError("Only a General Manager or CEO can view team payroll")
        self._check_period(year, month)
        first, last = month_bounds(int(year), int(month))

        hours_by_user: dict[int, Fraction] = defaultdict(Fraction)
        for shift, hours in self._payable(self._shifts.list_filled_between(start=first, end=last)):
            hours_by_user[shift.user_id] += hours

        rows = []
        for user in self._users.list_active():
            hours = hours_by_user.get(user.user_id, ZERO)
            rows.append(
                TeamRow(
                    user_id=user.user_id,
                    name=user.full_name,
                    email=user.email,
                    role=user.role.value,
                    hourly_rate=user.hourly_rate,
                    hours=hours,
                    gross=hours * Fraction(user.hourly_rate),
                )
            )
        rows.sort(key=lambda r: r.gross, reverse=True)
        return TeamReport(year=int(year), month=int(month), employees=rows)

    # -------- Week view --------
    def work_week_summary(
        self,
        *,
        actor: SessionUser,
        week_schedule_id: int,
        user_id: Optional[int] = None,
    ) -> WorkWeekSummary:
        """Requested vs planned vs actual hours of one employee in one week."""

        user = self._target(actor, user_id)
        schedule = self._schedules.get_by_id(int(week_schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")

        requests = [
            r
            for r in self._requests.list_requests(week_schedule_id=schedule.schedule_id, user_id=user.user_id)
            if r.request_type == ShiftRequestType.SPECIFIC_TIME
            and r.preferred is not None
            and r.status != ShiftRequestStatus.REJECTED
        ]
        shifts = [
            s
            for s in self._shifts.list_for_schedule(schedule.schedule_id, filled_only=True)
            if isinstance(s, FilledShift) and s.user_id == user.user_id
        ]
        records = self._attendance.list_for_shifts(s.shift_id for s in shifts)
        statuses = [r.status for r in records.values()]

        return WorkWeekSummary(
            user_id=user.user_id,
            user_name=user.full_name,
            week_schedule_id=schedule.schedule_id,
            weekly_requirement=user.weekly_required_hours,
            requested_hours=sum((r.preferred.exact_hours for r in requests), ZERO),  # type: ignore[union-attr]
            requested_count=len(requests),
            planned_hours=sum((s.interval.exact_hours for s in shifts), ZERO),
            planned_count=len(shifts),
            actual_hours=sum((r.exact_hours for r in records.values()), ZERO),
            actual_count=len(records),
            present=statuses.count(AttendanceStatus.PRESENT),
            sick=statuses.count(AttendanceStatus.SICK),
            absent=statuses.count(AttendanceStatus.ABSENT),
        )
