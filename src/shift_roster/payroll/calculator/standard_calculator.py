from __future__ import annotations

from fractions import Fraction
from typing import Optional

from .base import PayrollCalculator
from ...attendance.model import ActualWorkHours
from ...shifts.model import FilledShift


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: recorded hours when reconciled (sick/absent pay 0), else the planned hours."""

    def hours_for(self, shift: FilledShift, record: Optional[ActualWorkHours]) -> Fraction:
        if record is not None:
            return record.exact_hours
        return shift.interval.exact_hours
