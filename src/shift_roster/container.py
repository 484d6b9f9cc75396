from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, now_local
from .core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .database.locks import LockManager, MySQLNamedLockManager, ThreadLockManager
from .database.memory import (
    MemoryAttendanceRepository,
    MemoryDatabase,
    MemoryPositionRepository,
    MemoryRequestRepository,
    MemoryScheduleRepository,
    MemoryShiftRepository,
    MemoryTimeOffRepository,
    MemoryUserRepository,
)
from .payroll.service import PayrollReportService
from .positions.mysql_position_repository import MySQLPositionRepository
from .positions.repository import PositionRepository
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import RequestRepository
from .requests.service import RequestService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .vacation.mysql_time_off_repository import MySQLTimeOffRepository
from .vacation.repository import TimeOffRepository
from .vacation.service import VacationService


@dataclass(frozen=True)
class Container:
    locks: LockManager

    users_repo: UserRepository
    positions_repo: PositionRepository
    schedules_repo: ScheduleRepository
    shifts_repo: ShiftRepository
    requests_repo: RequestRepository
    attendance_repo: AttendanceRepository
    time_off_repo: TimeOffRepository

    schedule_service: ScheduleService
    request_service: RequestService
    attendance_service: AttendanceService
    payroll_report_service: PayrollReportService
    vacation_service: VacationService

    conn: Optional[DatabaseConnection] = None
    memory_db: Optional[MemoryDatabase] = None
    clock: Clock = now_local


def build_container(
    *,
    storage: str = "mysql",
    db_config: Optional[Mapping[str, Any]] = None,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    memory_db: Optional[MemoryDatabase] = None,
    clock: Clock = now_local,
) -> Container:
    """Wire repositories and services for one storage backend (``mysql`` or ``memory``)."""

    conn: Optional[DatabaseConnection] = None
    if storage == "memory":
        memory_db = memory_db or MemoryDatabase()
        locks: LockManager = ThreadLockManager(timeout=lock_timeout)
        users_repo: UserRepository = MemoryUserRepository(memory_db)
        positions_repo: PositionRepository = MemoryPositionRepository(memory_db)
        schedules_repo: ScheduleRepository = MemoryScheduleRepository(memory_db)
        shifts_repo: ShiftRepository = MemoryShiftRepository(memory_db)
        requests_repo: RequestRepository = MemoryRequestRepository(memory_db)
        attendance_repo: AttendanceRepository = MemoryAttendanceRepository(memory_db)
        time_off_repo: TimeOffRepository = MemoryTimeOffRepository(memory_db)
    elif storage == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config or {}))
        locks = MySQLNamedLockManager(conn, timeout=int(lock_timeout))
        users_repo = MySQLUserRepository(conn)
        positions_repo = MySQLPositionRepository(conn)
        schedules_repo = MySQLScheduleRepository(conn)
        shifts_repo = MySQLShiftRepository(conn)
        requests_repo = MySQLRequestRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        time_off_repo = MySQLTimeOffRepository(conn)
    else:
        raise ValueError(f"Unknown STORAGE backend: {storage!r}")

    schedule_service = ScheduleService(
        schedules_repo, shifts_repo, users_repo, positions_repo, locks=locks, clock=clock
    )
    request_service = RequestService(
        requests_repo, schedules_repo, users_repo, schedule_service, locks=locks, clock=clock
    )
    attendance_service = AttendanceService(attendance_repo, shifts_repo, clock=clock)
    payroll_report_service = PayrollReportService(
        shifts_repo, attendance_repo, users_repo, schedules_repo, requests_repo, clock=clock
    )
    vacation_service = VacationService(time_off_repo, requests_repo, users_repo, locks=locks, clock=clock)

    return Container(
        locks=locks,
        users_repo=users_repo,
        positions_repo=positions_repo,
        schedules_repo=schedules_repo,
        shifts_repo=shifts_repo,
        requests_repo=requests_repo,
        attendance_repo=attendance_repo,
        time_off_repo=time_off_repo,
        schedule_service=schedule_service,
        request_service=request_service,
        attendance_service=attendance_service,
        payroll_report_service=payroll_report_service,
        vacation_service=vacation_service,
        conn=conn,
        memory_db=memory_db,
        clock=clock,
    )
