from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from shift_roster.container import Container, build_container
from shift_roster.core.enums import EmploymentStatus, Role
from shift_roster.database.memory import MemoryDatabase
from shift_roster.positions.model import Position
from shift_roster.users.model import SessionUser, User

WEEK_START = date(2025, 10, 6)
DEADLINE = datetime(2025, 10, 3, 23, 59, 59)

CEO = SessionUser(user_id=1, role=Role.CEO)
GM = SessionUser(user_id=2, role=Role.GENERAL_MANAGER)
MANAGER = SessionUser(user_id=3, role=Role.MANAGER)
EVE = SessionUser(user_id=10, role=Role.EMPLOYEE)
ERIK = SessionUser(user_id=11, role=Role.EMPLOYEE)
NORA = SessionUser(user_id=12, role=Role.EMPLOYEE)
OTTO = SessionUser(user_id=13, role=Role.EMPLOYEE)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@dataclass
class World:
    db: MemoryDatabase
    clock: FakeClock
    container: Container

    @property
    def schedules(self):
        return self.container.schedule_service

    @property
    def requests(self):
        return self.container.request_service

    @property
    def attendance(self):
        return self.container.attendance_service

    @property
    def payroll(self):
        return self.container.payroll_report_service

    @property
    def vacation(self):
        return self.container.vacation_service


def seed(db: MemoryDatabase) -> None:
    for position in (Position(1, "Cashier", "#f59e0b"), Position(2, "Barista", "#10b981"), Position(3, "Cook")):
        db.add_position(position)

    db.add_user(User(1, "Cora Chief", "cora@example.com", Role.CEO, position_ids=(1,)))
    db.add_user(User(2, "Gabe General", "gabe@example.com", Role.GENERAL_MANAGER, position_ids=(1,)))
    db.add_user(User(3, "Mia Manager", "mia@example.com", Role.MANAGER, position_ids=(1,)))
    db.add_user(
        User(
            10,
            "Eve Employee",
            "eve@example.com",
            Role.EMPLOYEE,
            hourly_rate=Decimal("2000"),
            vacation_year=2025,
            position_ids=(1, 2),
        )
    )
    db.add_user(
        User(
            11,
            "Erik Employee",
            "erik@example.com",
            Role.EMPLOYEE,
            hourly_rate=Decimal("1500"),
            weekly_required_hours=20,
            vacation_year=2025,
            position_ids=(2,),
        )
    )
    db.add_user(User(12, "Nora Newcomer", "nora@example.com", Role.EMPLOYEE))
    db.add_user(
        User(
            13,
            "Otto Former",
            "otto@example.com",
            Role.EMPLOYEE,
            employment_status=EmploymentStatus.INACTIVE,
            position_ids=(1,),
        )
    )


def build_world() -> World:
    db = MemoryDatabase()
    seed(db)
    clock = FakeClock(datetime(2025, 10, 1, 12, 0))
    container = build_container(storage="memory", memory_db=db, clock=clock, lock_timeout=2)
    return World(db=db, clock=clock, container=container)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """A time in October 2025."""
    return datetime(2025, 10, day, hour, minute)


def race(*calls):
    """Run the calls on separate threads released together; returns (results, errors)."""

    barrier = threading.Barrier(len(calls))
    results, errors = [], []

    def run(call):
        barrier.wait()
        try:
            results.append(call())
        except Exception as exc:  # collected for the caller to assert on
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(call,)) for call in calls]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors
