from __future__ import annotations

from abc import ABC, abstractmethod
from fractions import Fraction
from typing import Optional

from ...attendance.model import ActualWorkHours
from ...shifts.model import FilledShift


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def hours_for(self, shift: FilledShift, record: Optional[ActualWorkHours]) -> Fraction:
        """Payable hours of one shift, exact."""

        raise NotImplementedError
