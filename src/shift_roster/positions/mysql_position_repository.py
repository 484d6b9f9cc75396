from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Position
from .repository import PositionRepository


class MySQLPositionRepository(PositionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, position_id: int) -> Optional[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT position_id, name, color FROM positions WHERE position_id=%s",
                (int(position_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Position(position_id=int(r["position_id"]), name=r["name"], color=r.get("color"))

    def list_all(self) -> Sequence[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT position_id, name, color FROM positions ORDER BY name")
            return [
                Position(position_id=int(r["position_id"]), name=r["name"], color=r.get("color"))
                for r in fetchall(cur)
            ]
