"""Read models returned by the payroll reports.

Amounts are kept as exact ``Fraction`` values; ``to_dict`` is the only place
that rounds (hours to one decimal, money to whole units).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Optional

ZERO = Fraction(0)


def _as_decimal(value: Fraction) -> Decimal:
    return Decimal(value.numerator) / Decimal(value.denominator)


def round_hours(value: Fraction) -> float:
    return float(_as_decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def round_money(value: Fraction) -> int:
    return int(_as_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: Fraction, whole: Fraction, *, cap: Optional[int] = None) -> float:
    if whole <= 0:
        return 0.0
    value = part / whole * 100
    if cap is not None:
        value = min(value, Fraction(cap))
    return round_hours(value)


@dataclass
class DayCell:
    day: date
    in_month: bool
    hours: Fraction = ZERO
    gross: Fraction = ZERO

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "day_of_week": self.day.isoweekday(),
            "in_month": self.in_month,
            "hours": round_hours(self.hours),
            "gross_amount": round_money(self.gross),
        }


@dataclass
class WeekBucket:
    week_number: int
    week_start: date
    week_end: date
    days: list[DayCell]

    @property
    def total_hours(self) -> Fraction:
        return sum((d.hours for d in self.days), ZERO)

    @property
    def total_gross(self) -> Fraction:
        return sum((d.gross for d in self.days), ZERO)

    def to_dict(self) -> dict:
        return {
            "week_number": self.week_number,
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "days": [d.to_dict() for d in self.days],
            "total_hours": round_hours(self.total_hours),
            "total_gross_amount": round_money(self.total_gross),
        }


@dataclass
class MonthlyReport:
    user_id: int
    year: int
    month: int
    hourly_rate: Decimal
    weeks: list[WeekBucket]

    @property
    def total_hours(self) -> Fraction:
        return sum((w.total_hours for w in self.weeks), ZERO)

    @property
    def total_gross(self) -> Fraction:
        return sum((w.total_gross for w in self.weeks), ZERO)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "month": self.month,
            "hourly_rate": float(self.hourly_rate),
            "weekly_data": [w.to_dict() for w in self.weeks],
            "monthly_total": {
                "hours": round_hours(self.total_hours),
                "gross_amount": round_money(self.total_gross),
            },
        }


@dataclass
class MonthRow:
    month: int
    month_name: str
    hours: Fraction = ZERO
    gross: Fraction = ZERO

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "month_name": self.month_name,
            "hours": round_hours(self.hours),
            "gross_amount": round_money(self.gross),
        }


@dataclass
class YearlyReport:
    user_id: int
    year: int
    hourly_rate: Decimal
    months: list[MonthRow]

    @property
    def total_hours(self) -> Fraction:
        return sum((m.hours for m in self.months), ZERO)

    @property
    def total_gross(self) -> Fraction:
        return sum((m.gross for m in self.months), ZERO)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "hourly_rate": float(self.hourly_rate),
            "monthly_data": [m.to_dict() for m in self.months],
            "yearly_total": {
                "hours": round_hours(self.total_hours),
                "gross_amount": round_money(self.total_gross),
            },
        }


@dataclass(frozen=True)
class PayrollSummary:
    user_id: int
    year: int
    month: int
    hours: Fraction
    expected_hours: int
    hourly_rate: Decimal
    gross: Fraction
    days_remaining: int

    @property
    def progress_percentage(self) -> float:
        return percentage(self.hours, Fraction(self.expected_hours), cap=100)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "month": self.month,
            "total_hours_worked": round_hours(self.hours),
            "expected_monthly_hours": self.expected_hours,
            "hourly_rate": float(self.hourly_rate),
            "gross_amount": round_money(self.gross),
            "progress_percentage": self.progress_percentage,
            "days_remaining": self.days_remaining,
        }


@dataclass(frozen=True)
class TeamRow:
    user_id: int
    name: str
    email: str
    role: str
    hourly_rate: Decimal
    hours: Fraction
    gross: Fraction

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "hourly_rate": float(self.hourly_rate),
            "hours": round_hours(self.hours),
            "gross_amount": round_money(self.gross),
        }


@dataclass
class TeamReport:
    year: int
    month: int
    employees: list[TeamRow] = field(default_factory=list)

    @property
    def total_hours(self) -> Fraction:
        return sum((e.hours for e in self.employees), ZERO)

    @property
    def total_gross(self) -> Fraction:
        return sum((e.gross for e in self.employees), ZERO)

    @property
    def employee_count(self) -> int:
        return len(self.employees)

    def to_dict(self) -> dict:
        count = self.employee_count
        return {
            "year": self.year,
            "month": self.month,
            "team_summary": {
                "total_hours": round_hours(self.total_hours),
                "total_gross_amount": round_money(self.total_gross),
                "employee_count": count,
                "average_hours": round_hours(self.total_hours / count) if count else 0.0,
                "average_gross_amount": round_money(self.total_gross / count) if count else 0,
            },
            "employees": [e.to_dict() for e in self.employees],
        }


@dataclass(frozen=True)
class WorkWeekSummary:
    user_id: int
    user_name: str
    week_schedule_id: int
    weekly_requirement: int
    requested_hours: Fraction
    requested_count: int
    planned_hours: Fraction
    planned_count: int
    actual_hours: Fraction
    actual_count: int
    present: int
    sick: int
    absent: int

    @property
    def warnings(self) -> list[str]:
        out = []
        requirement = Fraction(self.weekly_requirement)
        if self.requested_hours < requirement:
            out.append(
                f"You requested {round_hours(requirement - self.requested_hours):.1f} hours "
                "less than your weekly requirement"
            )
        if self.planned_hours < requirement:
            out.append(
                f"You are scheduled {round_hours(requirement - self.planned_hours):.1f} hours "
                "less than your weekly requirement"
            )
        return out

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "week_schedule_id": self.week_schedule_id,
            "weekly_requirement": self.weekly_requirement,
            "requested": {"hours": round_hours(self.requested_hours), "count": self.requested_count},
            "planned": {"hours": round_hours(self.planned_hours), "count": self.planned_count},
            "actual": {
                "hours": round_hours(self.actual_hours),
                "count": self.actual_count,
                "present": self.present,
                "sick": self.sick,
                "absent": self.absent,
            },
            "warnings": self.warnings,
        }
