from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    GENERAL_MANAGER = "GeneralManager"
    CEO = "CEO"

    @property
    def can_plan(self) -> bool:
        """Planner tier: may create week schedules."""
        return self in PLANNER_ROLES

    @property
    def can_review(self) -> bool:
        """Manager tier: may review requests, place shifts, record attendance."""
        return self in REVIEWER_ROLES


PLANNER_ROLES = frozenset({Role.MANAGER, Role.GENERAL_MANAGER, Role.CEO})
REVIEWER_ROLES = frozenset({Role.GENERAL_MANAGER, Role.CEO})


class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ShiftRequestType(str, Enum):
    SPECIFIC_TIME = "SPECIFIC_TIME"
    AVAILABLE_ALL_DAY = "AVAILABLE_ALL_DAY"
    TIME_OFF = "TIME_OFF"


class ShiftRequestStatus(str, Enum):
    """Shift request workflow states (see requests/transitions.py)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CONVERTED_TO_SHIFT = "CONVERTED_TO_SHIFT"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AttendanceStatus(str, Enum):
    """Outcome of a shift recorded after it ended."""

    PRESENT = "PRESENT"
    SICK = "SICK"
    ABSENT = "ABSENT"


class TimeOffType(str, Enum):
    VACATION = "VACATION"
    SICK_LEAVE = "SICK_LEAVE"


class TimeOffStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
