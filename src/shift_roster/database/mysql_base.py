"""Small helpers shared by the MySQL repositories."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..shifts.model import TimeRange
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection and cursor per unit of work; commit on success, rollback on error."""

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def in_placeholders(values: Sequence[object]) -> str:
    """``%s,%s,...`` for an SQL ``IN (...)`` clause with ``len(values)`` items."""

    if not values:
        raise ValueError("IN clause needs at least one value")
    return ",".join(["%s"] * len(values))


def time_range_from(row: Mapping[str, Any], start_column: str, end_column: str) -> Optional[TimeRange]:
    """Build a TimeRange from two DATETIME columns; None when either is NULL."""

    start, end = row.get(start_column), row.get(end_column)
    if start is None or end is None:
        return None
    return TimeRange(start, end)


def changed(cur) -> bool:
    """True when the last UPDATE/DELETE touched a row (compare-and-set outcome)."""

    return int(cur.rowcount or 0) > 0
