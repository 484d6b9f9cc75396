from __future__ import annotations

import re
import threading

import pytest

from shift_roster.database.bootstrap import (
    SCHEMA_PATH,
    _strip_create_db_and_use,
    _strip_line_comments,
    iter_sql_statements,
)
from shift_roster.database.locks import LockTimeoutError, ThreadLockManager


def test_splits_on_semicolons_outside_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c;d\");  \nSELECT 1"

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_escaped_quote_does_not_end_the_string():
    sql = "INSERT INTO t VALUES ('it\\'s;fine');"

    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('it\\'s;fine')"]


def test_schema_creates_every_table():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8")))
    statements = list(iter_sql_statements(sql))

    tables = [re.search(r"CREATE TABLE IF NOT EXISTS (\w+)", s).group(1) for s in statements]
    assert tables == [
        "users",
        "positions",
        "user_positions",
        "week_schedules",
        "shift_requests",
        "shifts",
        "actual_work_hours",
        "time_off_requests",
    ]


def test_thread_lock_times_out_for_other_threads():
    locks = ThreadLockManager(timeout=0.05)
    errors = []

    def contender():
        try:
            with locks.hold("shift-slot:10:2025-10-07"):
                pass
        except LockTimeoutError as exc:
            errors.append(exc)

    with locks.hold("shift-slot:10:2025-10-07"):
        t = threading.Thread(target=contender)
        t.start()
        t.join()

    assert len(errors) == 1


def test_thread_lock_is_reentrant_for_the_holder():
    locks = ThreadLockManager(timeout=0.05)

    with locks.hold("a", "b"):
        with locks.hold("b"):
            pass


def test_unknown_storage_backend():
    from shift_roster.container import build_container

    with pytest.raises(ValueError):
        build_container(storage="redis")
