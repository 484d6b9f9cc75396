"""Keyed mutual exclusion for read-validate-write sections.

``ThreadLockManager`` serializes callers inside one process;
``MySQLNamedLockManager`` uses MySQL named locks so several app workers
sharing one database serialize on the same keys.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Protocol

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def shift_slot_key(user_id: int, work_date: date) -> str:
    return f"shift-slot:{int(user_id)}:{work_date.isoformat()}"


def shift_request_key(request_id: int) -> str:
    return f"shift-request:{int(request_id)}"


def time_off_key(request_id: int) -> str:
    return f"time-off:{int(request_id)}"


def vacation_balance_key(user_id: int) -> str:
    return f"vacation-balance:{int(user_id)}"


class LockTimeoutError(RuntimeError):
    """A lock could not be acquired in time (treated as an internal failure)."""


class LockManager(Protocol):
    def hold(self, *keys: str):
        """Context manager holding every key until exit."""

        raise NotImplementedError


class ThreadLockManager(LockManager):
    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        acquired: list[threading.RLock] = []
        try:
            # Sorted acquisition keeps multi-key holders from deadlocking each other.
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if not lock.acquire(timeout=self._timeout):
                    raise LockTimeoutError(f"Timed out waiting for lock {key}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class MySQLNamedLockManager(LockManager):
    def __init__(self, conn_factory: DatabaseConnection, *, timeout: int = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._timeout = int(timeout)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        conn = self._conn_factory.connect()
        cur = conn.cursor()
        acquired: list[str] = []
        try:
            for key in sorted(set(keys)):
                cur.execute("SELECT GET_LOCK(%s, %s)", (key, self._timeout))
                row = cur.fetchone()
                if not row or row[0] != 1:
                    raise LockTimeoutError(f"Timed out waiting for lock {key}")
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                try:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (key,))
                    cur.fetchone()
                except Exception:
                    # Named locks die with the session; closing the connection releases them.
                    logger.warning("Could not release lock %s, dropping connection", key, exc_info=True)
            cur.close()
            conn.close()
