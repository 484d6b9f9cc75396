"""In-process storage with the same contracts as the MySQL repositories.

Used with ``STORAGE=memory`` (development without a database server, and
the test suite). Every method runs under one re-entrant lock, so each call
is atomic the way a single SQL statement is.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from itertools import count
from typing import Collection, Iterable, Iterator, Mapping, Optional, Sequence

from ..attendance.model import ActualWorkHours
from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, ShiftRequestStatus, ShiftRequestType, TimeOffStatus, TimeOffType
from ..positions.model import Position
from ..positions.repository import PositionRepository
from ..requests.model import ShiftRequest
from ..requests.repository import RequestRepository
from ..requests.transitions import ACTIVE_STATUSES
from ..schedules.model import WeekSchedule
from ..schedules.repository import ScheduleRepository
from ..shifts.model import FilledShift, PlaceholderShift, Shift, TimeRange
from ..shifts.repository import ShiftRepository
from ..users.model import User
from ..users.repository import UserRepository
from ..vacation.model import TimeOffRequest
from ..vacation.repository import TimeOffRepository


@dataclass
class MemoryDatabase:
    users: dict[int, User] = field(default_factory=dict)
    positions: dict[int, Position] = field(default_factory=dict)
    schedules: dict[int, WeekSchedule] = field(default_factory=dict)
    shifts: dict[int, Shift] = field(default_factory=dict)
    requests: dict[int, ShiftRequest] = field(default_factory=dict)
    attendance: dict[int, ActualWorkHours] = field(default_factory=dict)
    time_off: dict[int, TimeOffRequest] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)
    _ids: dict[str, Iterator[int]] = field(default_factory=dict)

    def next_id(self, table: str) -> int:
        if table not in self._ids:
            self._ids[table] = count(1)
        return next(self._ids[table])

    # Seeding helpers: users and positions are owned by an external service.
    def add_user(self, user: User) -> User:
        with self.lock:
            self.users[user.user_id] = user
        return user

    def add_position(self, position: Position) -> Position:
        with self.lock:
            self.positions[position.position_id] = position
        return position


class MemoryUserRepository(UserRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._db.users.get(int(user_id))

    def list_active(self) -> Sequence[User]:
        return [u for u in self.list_all() if u.is_active]

    def list_all(self) -> Sequence[User]:
        with self._db.lock:
            return sorted(self._db.users.values(), key=lambda u: u.full_name)


class MemoryPositionRepository(PositionRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_by_id(self, position_id: int) -> Optional[Position]:
        return self._db.positions.get(int(position_id))

    def list_all(self) -> Sequence[Position]:
        with self._db.lock:
            return sorted(self._db.positions.values(), key=lambda p: p.name)


class MemoryScheduleRepository(ScheduleRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

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
        with self._db.lock:
            if any(s.week_start == week_start for s in self._db.schedules.values()):
                # Mirrors the UNIQUE(week_start) constraint.
                raise ValueError(f"Duplicate week_start {week_start}")
            schedule = WeekSchedule(
                schedule_id=self._db.next_id("schedules"),
                week_start=week_start,
                week_end=week_end,
                created_by=int(created_by),
                request_deadline=request_deadline,
                created_at=created_at,
            )
            self._db.schedules[schedule.schedule_id] = schedule
            for user_id in user_ids:
                day = week_start
                while day <= week_end:
                    shift_id = self._db.next_id("shifts")
                    self._db.shifts[shift_id] = PlaceholderShift(shift_id, schedule.schedule_id, int(user_id), day)
                    day += timedelta(days=1)
            return schedule

    def get_by_id(self, schedule_id: int) -> Optional[WeekSchedule]:
        return self._db.schedules.get(int(schedule_id))

    def get_by_week_start(self, week_start: date) -> Optional[WeekSchedule]:
        with self._db.lock:
            return next((s for s in self._db.schedules.values() if s.week_start == week_start), None)

    def list_all(self) -> Sequence[WeekSchedule]:
        with self._db.lock:
            return sorted(self._db.schedules.values(), key=lambda s: s.week_start, reverse=True)

    def set_published(self, *, schedule_id: int, published: bool) -> bool:
        with self._db.lock:
            current = self._db.schedules.get(int(schedule_id))
            if not current:
                return False
            self._db.schedules[current.schedule_id] = replace(current, is_published=bool(published))
            return True


def _shift_sort_key(shift: Shift):
    start = shift.interval.start if isinstance(shift, FilledShift) else datetime.min
    return (shift.work_date, start, shift.shift_id)


class MemoryShiftRepository(ShiftRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self._db.shifts.get(int(shift_id))

    def list_for_schedule(self, week_schedule_id: int, *, filled_only: bool = False) -> Sequence[Shift]:
        with self._db.lock:
            rows = [
                s
                for s in self._db.shifts.values()
                if s.week_schedule_id == int(week_schedule_id) and not (filled_only and s.is_placeholder)
            ]
        return sorted(rows, key=_shift_sort_key)

    def list_filled_for_user_and_date(self, *, user_id: int, work_date: date) -> Sequence[FilledShift]:
        with self._db.lock:
            rows = [
                s
                for s in self._db.shifts.values()
                if isinstance(s, FilledShift) and s.user_id == int(user_id) and s.work_date == work_date
            ]
        return sorted(rows, key=_shift_sort_key)

    def list_filled_between(self, *, start: date, end: date, user_id: Optional[int] = None) -> Sequence[FilledShift]:
        with self._db.lock:
            rows = [
                s
                for s in self._db.shifts.values()
                if isinstance(s, FilledShift)
                and start <= s.work_date <= end
                and (user_id is None or s.user_id == int(user_id))
            ]
        return sorted(rows, key=_shift_sort_key)

    def find_placeholder(self, *, week_schedule_id: int, user_id: int, work_date: date) -> Optional[PlaceholderShift]:
        with self._db.lock:
            for s in sorted(self._db.shifts.values(), key=lambda s: s.shift_id):
                if (
                    isinstance(s, PlaceholderShift)
                    and s.week_schedule_id == int(week_schedule_id)
                    and s.user_id == int(user_id)
                    and s.work_date == work_date
                ):
                    return s
        return None

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
        with self._db.lock:
            shift_id = self._db.next_id("shifts")
            shift: Shift
            if interval is None:
                shift = PlaceholderShift(shift_id, int(week_schedule_id), int(user_id), work_date, notes)
            else:
                shift = FilledShift(
                    shift_id,
                    int(week_schedule_id),
                    int(user_id),
                    work_date,
                    interval,
                    position_id=position_id,
                    notes=notes,
                    shift_request_id=shift_request_id,
                )
            self._db.shifts[shift_id] = shift
            return shift

    def update(self, shift: Shift) -> bool:
        with self._db.lock:
            if shift.shift_id not in self._db.shifts:
                return False
            self._db.shifts[shift.shift_id] = shift
            return True

    def delete(self, *, shift_id: int) -> bool:
        with self._db.lock:
            if self._db.shifts.pop(int(shift_id), None) is None:
                return False
            for record_id, record in list(self._db.attendance.items()):
                if record.shift_id == int(shift_id):
                    del self._db.attendance[record_id]
            return True


class MemoryRequestRepository(RequestRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def create(
        self,
        *,
        week_schedule_id: int,
        user_id: int,
        request_type: ShiftRequestType,
        work_date: date,
        preferred: Optional[TimeRange],
        notes: Optional[str],
        vacation_days: Optional[int],
        created_at: datetime,
    ) -> ShiftRequest:
        with self._db.lock:
            request = ShiftRequest(
                request_id=self._db.next_id("requests"),
                week_schedule_id=int(week_schedule_id),
                user_id=int(user_id),
                request_type=request_type,
                work_date=work_date,
                status=ShiftRequestStatus.PENDING,
                created_at=created_at,
                preferred=preferred,
                notes=notes,
                vacation_days=vacation_days,
            )
            self._db.requests[request.request_id] = request
            return request

    def get_by_id(self, request_id: int) -> Optional[ShiftRequest]:
        return self._db.requests.get(int(request_id))

    def find_active_for_day(
        self,
        *,
        user_id: int,
        work_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[ShiftRequest]:
        with self._db.lock:
            for r in self._db.requests.values():
                if (
                    r.user_id == int(user_id)
                    and r.work_date == work_date
                    and r.status in ACTIVE_STATUSES
                    and r.request_id != exclude_request_id
                ):
                    return r
        return None

    def update_pending(self, request: ShiftRequest) -> bool:
        with self._db.lock:
            current = self._db.requests.get(request.request_id)
            if not current or current.status != ShiftRequestStatus.PENDING:
                return False
            self._db.requests[request.request_id] = replace(
                current,
                request_type=request.request_type,
                work_date=request.work_date,
                preferred=request.preferred,
                notes=request.notes,
                vacation_days=request.vacation_days,
            )
            return True

    def delete_pending(self, *, request_id: int) -> bool:
        with self._db.lock:
            current = self._db.requests.get(int(request_id))
            if not current or current.status != ShiftRequestStatus.PENDING:
                return False
            del self._db.requests[current.request_id]
            return True

    def transition(
        self,
        *,
        request_id: int,
        from_statuses: Collection[ShiftRequestStatus],
        to_status: ShiftRequestStatus,
        reviewed_by: Optional[int] = None,
        reviewed_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
        deducted_from_balance: Optional[bool] = None,
        position_id: Optional[int] = None,
    ) -> bool:
        with self._db.lock:
            current = self._db.requests.get(int(request_id))
            if not current or current.status not in from_statuses:
                return False
            changes: dict[str, object] = {"status": to_status}
            if reviewed_by is not None:
                changes["reviewed_by"] = int(reviewed_by)
            if reviewed_at is not None:
                changes["reviewed_at"] = reviewed_at
            if rejection_reason is not None:
                changes["rejection_reason"] = rejection_reason
            if deducted_from_balance is not None:
                changes["deducted_from_balance"] = bool(deducted_from_balance)
            if position_id is not None:
                changes["position_id"] = int(position_id)
            self._db.requests[current.request_id] = replace(current, **changes)
            return True

    def list_requests(
        self,
        *,
        week_schedule_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[ShiftRequestStatus] = None,
        request_type: Optional[ShiftRequestType] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[ShiftRequest]:
        with self._db.lock:
            rows = [
                r
                for r in self._db.requests.values()
                if (week_schedule_id is None or r.week_schedule_id == int(week_schedule_id))
                and (user_id is None or r.user_id == int(user_id))
                and (status is None or r.status == status)
                and (request_type is None or r.request_type == request_type)
            ]
        rows.sort(key=lambda r: (r.work_date, r.created_at, r.request_id))
        return rows[: int(limit)]


class MemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_for_shift(self, shift_id: int) -> Optional[ActualWorkHours]:
        with self._db.lock:
            return next((r for r in self._db.attendance.values() if r.shift_id == int(shift_id)), None)

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
        with self._db.lock:
            if int(shift_id) not in self._db.shifts:
                # Mirrors the foreign key on actual_work_hours.shift_id.
                raise ValueError(f"Unknown shift {shift_id}")
            existing = self.get_for_shift(shift_id)
            record = ActualWorkHours(
                record_id=existing.record_id if existing else self._db.next_id("attendance"),
                shift_id=int(shift_id),
                user_id=int(user_id),
                status=status,
                recorded_by=int(recorded_by),
                recorded_at=recorded_at,
                actual=actual,
                notes=notes,
            )
            self._db.attendance[record.record_id] = record
            return record

    def list_for_shifts(self, shift_ids: Iterable[int]) -> Mapping[int, ActualWorkHours]:
        wanted = {int(i) for i in shift_ids}
        with self._db.lock:
            return {r.shift_id: r for r in self._db.attendance.values() if r.shift_id in wanted}


class MemoryTimeOffRepository(TimeOffRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def create(
        self,
        *,
        user_id: int,
        time_off_type: TimeOffType,
        start_date: date,
        end_date: date,
        days_count: int,
        notes: Optional[str],
        created_at: datetime,
    ) -> TimeOffRequest:
        with self._db.lock:
            request = TimeOffRequest(
                request_id=self._db.next_id("time_off"),
                user_id=int(user_id),
                time_off_type=time_off_type,
                start_date=start_date,
                end_date=end_date,
                days_count=int(days_count),
                status=TimeOffStatus.PENDING,
                created_at=created_at,
                notes=notes,
            )
            self._db.time_off[request.request_id] = request
            return request

    def get_by_id(self, request_id: int) -> Optional[TimeOffRequest]:
        return self._db.time_off.get(int(request_id))

    def transition(
        self,
        *,
        request_id: int,
        from_status: TimeOffStatus,
        to_status: TimeOffStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
        deducted_from_balance: bool = False,
    ) -> bool:
        with self._db.lock:
            current = self._db.time_off.get(int(request_id))
            if not current or current.status != from_status:
                return False
            self._db.time_off[current.request_id] = replace(
                current,
                status=to_status,
                reviewed_by=int(reviewed_by),
                reviewed_at=reviewed_at,
                rejection_reason=rejection_reason,
                deducted_from_balance=bool(deducted_from_balance),
            )
            return True

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[TimeOffStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[TimeOffRequest]:
        with self._db.lock:
            rows = [
                t
                for t in self._db.time_off.values()
                if t.user_id == int(user_id)
                and (status is None or t.status == status)
                and (start is None or t.start_date >= start)
                and (end is None or t.start_date <= end)
            ]
        rows.sort(key=lambda t: (t.created_at, t.request_id), reverse=True)
        return rows
