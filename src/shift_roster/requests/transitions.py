"""The shift request state machine.

PENDING is the only entry state. REJECTED and CONVERTED_TO_SHIFT are
terminal; APPROVED is terminal for TIME_OFF and may move on to
CONVERTED_TO_SHIFT for the other types. Approval is optional before
conversion: a pending request may be converted directly.
"""

from __future__ import annotations

from ..core.enums import ShiftRequestStatus, ShiftRequestType
from ..core.exceptions import InvalidStateError
from .model import ShiftRequest

PENDING = ShiftRequestStatus.PENDING
APPROVED = ShiftRequestStatus.APPROVED
REJECTED = ShiftRequestStatus.REJECTED
CONVERTED = ShiftRequestStatus.CONVERTED_TO_SHIFT

_SOURCES: dict[ShiftRequestStatus, frozenset[ShiftRequestStatus]] = {
    APPROVED: frozenset({PENDING}),
    REJECTED: frozenset({PENDING}),
    CONVERTED: frozenset({PENDING, APPROVED}),
}

ACTIVE_STATUSES = frozenset({PENDING, APPROVED})


def sources_for(target: ShiftRequestStatus) -> frozenset[ShiftRequestStatus]:
    """Statuses a request may be in to move to ``target``."""

    return _SOURCES.get(target, frozenset())


def ensure_transition(request: ShiftRequest, target: ShiftRequestStatus) -> None:
    if target == CONVERTED and request.request_type == ShiftRequestType.TIME_OFF:
        raise InvalidStateError("Time-off requests cannot be converted into shifts")
    if request.status not in sources_for(target):
        if target == CONVERTED:
            raise InvalidStateError("This request can no longer be converted (already rejected or converted)")
        raise InvalidStateError("Only pending requests can be reviewed")


def ensure_editable(request: ShiftRequest) -> None:
    if request.status != PENDING:
        raise InvalidStateError("Only pending requests can be changed")
