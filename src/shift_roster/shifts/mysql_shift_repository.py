from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import changed, db_cursor, fetchall, fetchone, time_range_from
from .model import FilledShift, PlaceholderShift, Shift, TimeRange
from .repository import ShiftRepository

_COLUMNS = "shift_id, week_schedule_id, user_id, work_date, position_id, start_time, end_time, notes, shift_request_id"


def row_to_shift(r: dict) -> Shift:
    interval = time_range_from(r, "start_time", "end_time")
    if interval is None:
        return PlaceholderShift(
            shift_id=int(r["shift_id"]),
            week_schedule_id=int(r["week_schedule_id"]),
            user_id=int(r["user_id"]),
            work_date=r["work_date"],
            notes=r.get("notes"),
        )
    return FilledShift(
        shift_id=int(r["shift_id"]),
        week_schedule_id=int(r["week_schedule_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        interval=interval,
        position_id=r.get("position_id"),
        notes=r.get("notes"),
        shift_request_id=r.get("shift_request_id"),
    )


def _shift_params(shift: Shift) -> tuple:
    if isinstance(shift, FilledShift):
        return (
            shift.position_id,
            shift.interval.start,
            shift.interval.end,
            round(shift.hours_worked, 4),
            shift.notes,
            shift.shift_request_id,
        )
    return (None, None, None, None, shift.notes, None)


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return row_to_shift(r) if r else None

    def list_for_schedule(self, week_schedule_id: int, *, filled_only: bool = False) -> Sequence[Shift]:
        where = "week_schedule_id=%s"
        if filled_only:
            where += " AND start_time IS NOT NULL AND end_time IS NOT NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY work_date, start_time, user_id",
                (int(week_schedule_id),),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_filled_for_user_and_date(self, *, user_id: int, work_date: date) -> Sequence[FilledShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE user_id=%s AND work_date=%s AND start_time IS NOT NULL AND end_time IS NOT NULL
                ORDER BY start_time
                """,
                (int(user_id), work_date),
            )
            return [row_to_shift(r) for r in fetchall(cur)]  # type: ignore[misc]

    def list_filled_between(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[FilledShift]:
        clauses = ["work_date BETWEEN %s AND %s", "start_time IS NOT NULL", "end_time IS NOT NULL"]
        params: list[object] = [start, end]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY work_date, start_time",
                tuple(params),
            )
            return [row_to_shift(r) for r in fetchall(cur)]  # type: ignore[misc]

    def find_placeholder(self, *, week_schedule_id: int, user_id: int, work_date: date) -> Optional[PlaceholderShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE week_schedule_id=%s AND user_id=%s AND work_date=%s
                  AND (start_time IS NULL OR end_time IS NULL)
                ORDER BY shift_id
                LIMIT 1
                """,
                (int(week_schedule_id), int(user_id), work_date),
            )
            r = fetchone(cur)
            return row_to_shift(r) if r else None  # type: ignore[return-value]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(
                    week_schedule_id, user_id, work_date, position_id,
                    start_time, end_time, hours_worked, notes, shift_request_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(week_schedule_id),
                    int(user_id),
                    work_date,
                    position_id,
                    interval.start if interval else None,
                    interval.end if interval else None,
                    round(interval.hours, 4) if interval else None,
                    notes,
                    shift_request_id,
                ),
            )
            shift_id = int(cur.lastrowid)

        if interval is None:
            return PlaceholderShift(
                shift_id=shift_id,
                week_schedule_id=int(week_schedule_id),
                user_id=int(user_id),
                work_date=work_date,
                notes=notes,
            )
        return FilledShift(
            shift_id=shift_id,
            week_schedule_id=int(week_schedule_id),
            user_id=int(user_id),
            work_date=work_date,
            interval=interval,
            position_id=position_id,
            notes=notes,
            shift_request_id=shift_request_id,
        )

    def update(self, shift: Shift) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET position_id=%s, start_time=%s, end_time=%s, hours_worked=%s, notes=%s, shift_request_id=%s,
                    user_id=%s, work_date=%s
                WHERE shift_id=%s
                """,
                _shift_params(shift) + (int(shift.user_id), shift.work_date, int(shift.shift_id)),
            )
            if changed(cur):
                return True
            cur.execute("SELECT 1 FROM shifts WHERE shift_id=%s", (int(shift.shift_id),))
            return fetchone(cur) is not None

    def delete(self, *, shift_id: int) -> bool:
        # actual_work_hours rows go with it (FK ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE shift_id=%s", (int(shift_id),))
            return changed(cur)
