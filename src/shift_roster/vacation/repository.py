from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TimeOffStatus, TimeOffType
from .model import TimeOffRequest


class TimeOffRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[TimeOffRequest]:
        raise NotImplementedError

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
        """Compare-and-set the status; False when the stored status is not ``from_status``."""

        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[TimeOffStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[TimeOffRequest]:
        """Requests whose ``start_date`` lies in ``[start, end]``, newest first."""

        raise NotImplementedError
