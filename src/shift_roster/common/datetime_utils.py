from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterator, Optional

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 datetime (``2025-10-07T09:00`` or with seconds)."""
    return datetime.fromisoformat(value)


def parse_clock_time(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value, "%H:%M").time()


def at_date(work_date: date, value: Optional[str]) -> Optional[datetime]:
    """Turn ``HH:MM`` (on ``work_date``) or a full ISO datetime into a datetime.

    Empty values map to None.
    """
    v = (value or "").strip()
    if not v:
        return None
    if "T" in v or " " in v:
        return parse_iso_datetime(v)
    return datetime.combine(work_date, parse_clock_time(v))


def now_local() -> datetime:
    """Current local time.

    Note: Services take a ``clock`` so tests can pin it.
    """
    return datetime.now()


def week_start_of(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def iter_days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def count_weekdays(start: date, end: date) -> int:
    return sum(1 for d in iter_days(start, end) if d.weekday() < 5)
