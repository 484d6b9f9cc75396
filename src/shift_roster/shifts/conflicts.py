"""Overlap detection for timed shifts of one user on one day.

Callers must run the check and the write it guards under the
``(user_id, work_date)`` lock, see ``ScheduleService``.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .model import FilledShift, TimeRange


def find_conflict(
    existing: Iterable[FilledShift],
    candidate: TimeRange,
    *,
    exclude_shift_id: Optional[int] = None,
) -> Optional[FilledShift]:
    """Return the first shift whose interval overlaps ``candidate``, if any."""
    for shift in existing:
        if exclude_shift_id is not None and shift.shift_id == exclude_shift_id:
            continue
        if shift.interval.overlaps(candidate):
            return shift
    return None


def has_conflict(
    existing: Iterable[FilledShift],
    candidate: TimeRange,
    *,
    exclude_shift_id: Optional[int] = None,
) -> bool:
    return find_conflict(existing, candidate, exclude_shift_id=exclude_shift_id) is not None
