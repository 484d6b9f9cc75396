from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import TimeOffStatus, TimeOffType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import changed, db_cursor, fetchall, fetchone
from .model import TimeOffRequest
from .repository import TimeOffRepository

_COLUMNS = """
    request_id, user_id, time_off_type, start_date, end_date, days_count, status,
    notes, rejection_reason, deducted_from_balance, reviewed_by, reviewed_at, created_at
"""


def _row_to_request(r: dict) -> TimeOffRequest:
    return TimeOffRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        time_off_type=TimeOffType(r["time_off_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days_count=int(r["days_count"]),
        status=TimeOffStatus(r["status"]),
        created_at=r["created_at"],
        notes=r.get("notes"),
        rejection_reason=r.get("rejection_reason"),
        deducted_from_balance=bool(r.get("deducted_from_balance")),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
    )


class MySQLTimeOffRepository(TimeOffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_off_requests(
                    user_id, time_off_type, start_date, end_date, days_count, status, notes,
                    deducted_from_balance, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,0,%s)
                """,
                (
                    int(user_id),
                    time_off_type.value,
                    start_date,
                    end_date,
                    int(days_count),
                    TimeOffStatus.PENDING.value,
                    notes,
                    created_at,
                ),
            )
            request_id = int(cur.lastrowid)

        return TimeOffRequest(
            request_id=request_id,
            user_id=int(user_id),
            time_off_type=time_off_type,
            start_date=start_date,
            end_date=end_date,
            days_count=int(days_count),
            status=TimeOffStatus.PENDING,
            created_at=created_at,
            notes=notes,
        )

    def get_by_id(self, request_id: int) -> Optional[TimeOffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_off_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_off_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, rejection_reason=%s, deducted_from_balance=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    to_status.value,
                    int(reviewed_by),
                    reviewed_at,
                    rejection_reason,
                    1 if deducted_from_balance else 0,
                    int(request_id),
                    from_status.value,
                ),
            )
            return changed(cur)

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[TimeOffStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[TimeOffRequest]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if start is not None:
            clauses.append("start_date>=%s")
            params.append(start)
        if end is not None:
            clauses.append("start_date<=%s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_off_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
