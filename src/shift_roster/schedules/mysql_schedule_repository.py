from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.constants import DAYS_PER_WEEK
from ..database.connection import DatabaseConnection
from ..database.mysql_base import changed, db_cursor, fetchall, fetchone
from .model import WeekSchedule
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, week_start, week_end, request_deadline, is_published, created_by, created_at"


def _row_to_schedule(r: dict) -> WeekSchedule:
    return WeekSchedule(
        schedule_id=int(r["schedule_id"]),
        week_start=r["week_start"],
        week_end=r["week_end"],
        request_deadline=r.get("request_deadline"),
        is_published=bool(r["is_published"]),
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO week_schedules(week_start, week_end, request_deadline, is_published, created_by, created_at)
                VALUES(%s,%s,%s,0,%s,%s)
                """,
                (week_start, week_end, request_deadline, int(created_by), created_at),
            )
            schedule_id = int(cur.lastrowid)

            rows = [
                (schedule_id, int(user_id), week_start + timedelta(days=offset))
                for user_id in user_ids
                for offset in range(DAYS_PER_WEEK)
            ]
            if rows:
                cur.executemany(
                    "INSERT INTO shifts(week_schedule_id, user_id, work_date) VALUES(%s,%s,%s)",
                    rows,
                )

        return WeekSchedule(
            schedule_id=schedule_id,
            week_start=week_start,
            week_end=week_end,
            request_deadline=request_deadline,
            is_published=False,
            created_by=int(created_by),
            created_at=created_at,
        )

    def get_by_id(self, schedule_id: int) -> Optional[WeekSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM week_schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def get_by_week_start(self, week_start: date) -> Optional[WeekSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM week_schedules WHERE week_start=%s", (week_start,))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_all(self) -> Sequence[WeekSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM week_schedules ORDER BY week_start DESC")
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def set_published(self, *, schedule_id: int, published: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE week_schedules SET is_published=%s WHERE schedule_id=%s",
                (1 if published else 0, int(schedule_id)),
            )
            # MySQL reports 0 changed rows when the flag already had this value.
            if changed(cur):
                return True
            cur.execute("SELECT 1 FROM week_schedules WHERE schedule_id=%s", (int(schedule_id),))
            return fetchone(cur) is not None
