from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ShiftRequestStatus, ShiftRequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import changed, db_cursor, fetchall, fetchone, in_placeholders, time_range_from
from ..shifts.model import TimeRange
from .model import ShiftRequest
from .repository import RequestRepository
from .transitions import ACTIVE_STATUSES

_COLUMNS = """
    request_id, week_schedule_id, user_id, position_id, request_type, work_date,
    preferred_start_time, preferred_end_time, status, notes, rejection_reason,
    vacation_days, deducted_from_balance, reviewed_by, reviewed_at, created_at
"""


def _row_to_request(r: dict) -> ShiftRequest:
    return ShiftRequest(
        request_id=int(r["request_id"]),
        week_schedule_id=int(r["week_schedule_id"]),
        user_id=int(r["user_id"]),
        request_type=ShiftRequestType(r["request_type"]),
        work_date=r["work_date"],
        status=ShiftRequestStatus(r["status"]),
        created_at=r["created_at"],
        preferred=time_range_from(r, "preferred_start_time", "preferred_end_time"),
        position_id=r.get("position_id"),
        notes=r.get("notes"),
        rejection_reason=r.get("rejection_reason"),
        vacation_days=r.get("vacation_days"),
        deducted_from_balance=bool(r.get("deducted_from_balance")),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_requests(
                    week_schedule_id, user_id, request_type, work_date,
                    preferred_start_time, preferred_end_time, status, notes,
                    vacation_days, deducted_from_balance, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,0,%s)
                """,
                (
                    int(week_schedule_id),
                    int(user_id),
                    request_type.value,
                    work_date,
                    preferred.start if preferred else None,
                    preferred.end if preferred else None,
                    ShiftRequestStatus.PENDING.value,
                    notes,
                    vacation_days,
                    created_at,
                ),
            )
            request_id = int(cur.lastrowid)

        return ShiftRequest(
            request_id=request_id,
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

    def get_by_id(self, request_id: int) -> Optional[ShiftRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shift_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_active_for_day(
        self,
        *,
        user_id: int,
        work_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[ShiftRequest]:
        statuses = [s.value for s in ACTIVE_STATUSES]
        clauses = ["user_id=%s", "work_date=%s", f"status IN ({in_placeholders(statuses)})"]
        params: list[object] = [int(user_id), work_date, *statuses]
        if exclude_request_id is not None:
            clauses.append("request_id<>%s")
            params.append(int(exclude_request_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_requests WHERE {' AND '.join(clauses)} LIMIT 1",
                tuple(params),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def update_pending(self, request: ShiftRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_requests
                SET request_type=%s, work_date=%s, preferred_start_time=%s, preferred_end_time=%s,
                    notes=%s, vacation_days=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    request.request_type.value,
                    request.work_date,
                    request.preferred.start if request.preferred else None,
                    request.preferred.end if request.preferred else None,
                    request.notes,
                    request.vacation_days,
                    int(request.request_id),
                    ShiftRequestStatus.PENDING.value,
                ),
            )
            if changed(cur):
                return True
            # An unchanged row reports 0 affected rows; it still counts when PENDING.
            cur.execute(
                "SELECT 1 FROM shift_requests WHERE request_id=%s AND status=%s",
                (int(request.request_id), ShiftRequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def delete_pending(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM shift_requests WHERE request_id=%s AND status=%s",
                (int(request_id), ShiftRequestStatus.PENDING.value),
            )
            return changed(cur)

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
        sets = ["status=%s"]
        params: list[object] = [to_status.value]
        if reviewed_by is not None:
            sets.append("reviewed_by=%s")
            params.append(int(reviewed_by))
        if reviewed_at is not None:
            sets.append("reviewed_at=%s")
            params.append(reviewed_at)
        if rejection_reason is not None:
            sets.append("rejection_reason=%s")
            params.append(rejection_reason)
        if deducted_from_balance is not None:
            sets.append("deducted_from_balance=%s")
            params.append(1 if deducted_from_balance else 0)
        if position_id is not None:
            sets.append("position_id=%s")
            params.append(int(position_id))

        sources = [s.value for s in from_statuses]
        params.append(int(request_id))
        params.extend(sources)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE shift_requests
                SET {', '.join(sets)}
                WHERE request_id=%s AND status IN ({in_placeholders(sources)})
                """,
                tuple(params),
            )
            return changed(cur)

    def list_requests(
        self,
        *,
        week_schedule_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[ShiftRequestStatus] = None,
        request_type: Optional[ShiftRequestType] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[ShiftRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if week_schedule_id is not None:
            clauses.append("week_schedule_id=%s")
            params.append(int(week_schedule_id))
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if request_type is not None:
            clauses.append("request_type=%s")
            params.append(request_type.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shift_requests
                WHERE {where}
                ORDER BY work_date ASC, created_at ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
