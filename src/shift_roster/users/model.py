from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_ANNUAL_VACATION_DAYS, DEFAULT_WEEKLY_REQUIRED_HOURS
from ..core.enums import EmploymentStatus, Role


@dataclass(frozen=True)
class User:
    """Domain entity: an employee record as seen by the scheduling engine.

    Note: profile management lives in an external service; this is a read-only view
    of the fields scheduling, payroll and vacation accounting need.
    """

    user_id: int
    full_name: str
    email: str
    role: Role
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    hourly_rate: Decimal = Decimal("0")
    weekly_required_hours: int = DEFAULT_WEEKLY_REQUIRED_HOURS
    annual_vacation_days: int = DEFAULT_ANNUAL_VACATION_DAYS
    vacation_year: Optional[int] = None
    position_ids: tuple[int, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.employment_status == EmploymentStatus.ACTIVE


@dataclass(frozen=True)
class SessionUser:
    """What the identity lookup yields for the current request."""

    user_id: int
    role: Role

    @property
    def can_plan(self) -> bool:
        return self.role.can_plan

    @property
    def can_review(self) -> bool:
        return self.role.can_review
