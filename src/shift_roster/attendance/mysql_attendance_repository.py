from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Optional

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders, time_range_from
from ..shifts.model import TimeRange
from .model import ActualWorkHours
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, shift_id, user_id, status, actual_start_time, actual_end_time,
    notes, recorded_by, recorded_at
"""


def _row_to_record(r: dict) -> ActualWorkHours:
    return ActualWorkHours(
        record_id=int(r["record_id"]),
        shift_id=int(r["shift_id"]),
        user_id=int(r["user_id"]),
        status=AttendanceStatus(r["status"]),
        recorded_by=int(r["recorded_by"]),
        recorded_at=r["recorded_at"],
        actual=time_range_from(r, "actual_start_time", "actual_end_time"),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_shift(self, shift_id: int) -> Optional[ActualWorkHours]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM actual_work_hours WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

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
        hours = round(actual.hours, 4) if (actual and status == AttendanceStatus.PRESENT) else 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO actual_work_hours(
                    shift_id, user_id, status, actual_start_time, actual_end_time,
                    actual_hours_worked, notes, recorded_by, recorded_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    actual_start_time=VALUES(actual_start_time),
                    actual_end_time=VALUES(actual_end_time),
                    actual_hours_worked=VALUES(actual_hours_worked),
                    notes=VALUES(notes),
                    recorded_by=VALUES(recorded_by),
                    recorded_at=VALUES(recorded_at)
                """,
                (
                    int(shift_id),
                    int(user_id),
                    status.value,
                    actual.start if actual else None,
                    actual.end if actual else None,
                    hours,
                    notes,
                    int(recorded_by),
                    recorded_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM actual_work_hours WHERE shift_id=%s", (int(shift_id),))
            return _row_to_record(fetchone(cur))  # type: ignore[arg-type]

    def list_for_shifts(self, shift_ids: Iterable[int]) -> Mapping[int, ActualWorkHours]:
        ids = [int(i) for i in shift_ids]
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM actual_work_hours WHERE shift_id IN ({in_placeholders(ids)})",
                tuple(ids),
            )
            return {int(r["shift_id"]): _row_to_record(r) for r in fetchall(cur)}
