from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ShiftRequestStatus, ShiftRequestType
from ..shifts.model import TimeRange
from .model import ShiftRequest


class RequestRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[ShiftRequest]:
        raise NotImplementedError

    def find_active_for_day(
        self,
        *,
        user_id: int,
        work_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[ShiftRequest]:
        """A PENDING or APPROVED request of the user on that day."""

        raise NotImplementedError

    def update_pending(self, request: ShiftRequest) -> bool:
        """Overwrite the editable fields, only while the stored status is PENDING."""

        raise NotImplementedError

    def delete_pending(self, *, request_id: int) -> bool:
        raise NotImplementedError

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
        """Compare-and-set the status. Returns False when the stored status is not in ``from_statuses``."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        week_schedule_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[ShiftRequestStatus] = None,
        request_type: Optional[ShiftRequestType] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[ShiftRequest]:
        """Ordered by date, then creation time."""

        raise NotImplementedError
