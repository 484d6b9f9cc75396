from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import EmploymentStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = """
    u.user_id, u.full_name, u.email, u.role, u.employment_status, u.hourly_rate,
    u.weekly_required_hours, u.annual_vacation_days, u.vacation_year,
    GROUP_CONCAT(up.position_id ORDER BY up.position_id) AS position_ids
"""


def _row_to_user(row: dict) -> User:
    raw_positions = row.get("position_ids") or ""
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        role=Role(row["role"]),
        employment_status=EmploymentStatus(row["employment_status"]),
        hourly_rate=Decimal(str(row.get("hourly_rate") or 0)),
        weekly_required_hours=int(row["weekly_required_hours"]),
        annual_vacation_days=int(row["annual_vacation_days"]),
        vacation_year=row.get("vacation_year"),
        position_ids=tuple(int(p) for p in str(raw_positions).split(",") if p),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                LEFT JOIN user_positions up ON up.user_id = u.user_id
                WHERE u.user_id=%s
                GROUP BY u.user_id
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_active(self) -> Sequence[User]:
        return self._list("WHERE u.employment_status=%s", (EmploymentStatus.ACTIVE.value,))

    def list_all(self) -> Sequence[User]:
        return self._list("", ())

    def _list(self, where: str, params: tuple) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                LEFT JOIN user_positions up ON up.user_id = u.user_id
                {where}
                GROUP BY u.user_id
                ORDER BY u.full_name ASC
                """,
                params,
            )
            return [_row_to_user(r) for r in fetchall(cur)]
