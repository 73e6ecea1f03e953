"""
Fiscal period derivation.

A fiscal year starts on day ``d`` of month ``m`` and is labeled by the
calendar year in which it ends. Every fiscal month starts on day ``d`` of its
calendar month, or on that month's last day when the month is shorter than
``d``; month, quarter and year boundaries are all computed from these anchors
rather than by truncating calendar months.

Manifesto:
    - **Anchored boundaries:** Month starts come from the (m, d) anchor
    - **End-year labels:** FY2021 is the year ending in 2021
    - **Reject, never clamp:** A start day that month ``m`` cannot hold is a
      configuration error

Architecture:
    ::

        FiscalCalendar(start_month=7, start_day=1)
             │
             ├── year_start(2021)   -> 2020-07-01
             ├── month_start(2021, 3) -> 2020-09-01
             └── derive(CalendarDate) -> FiscalPeriod

Examples:
    >>> from datetime import date
    >>> cal = FiscalCalendar(start_month=7)
    >>> cal.fiscal_year_of(date(2020, 7, 1))
    2021
    >>> cal.fiscal_month_of(date(2020, 12, 15))
    6

Guardrails:
    ❌ DON'T: Derive fiscal months as ``month - m`` when ``d > 1``
    ✅ DO: Use ``month_start`` so short months are handled

Tags:
    fiscal-calendar, period-derivation, calspine
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from calspine.calendar.dates import days_in_month
from calspine.calendar.schema import PeriodUnit
from calspine.calendar.spine import CalendarDate
from calspine.core.errors import ConfigurationError

# shortest length each month can have (February in a common year)
_MIN_MONTH_DAYS = tuple(calendar.monthrange(2001, month)[1] for month in range(1, 13))


def validate_fiscal_start(start_month: int, start_day: int) -> None:
    """Raise ``ConfigurationError`` for an impossible (month, day) anchor."""
    if not 1 <= start_month <= 12:
        raise ConfigurationError(
            f"fiscal_year_start_month must be in 1..12, got {start_month}",
            key="fiscal_year_start_month",
            value=start_month,
        )
    if not 1 <= start_day <= 31:
        raise ConfigurationError(
            f"fiscal_year_start_day must be in 1..31, got {start_day}",
            key="fiscal_year_start_day",
            value=start_day,
        )
    limit = _MIN_MONTH_DAYS[start_month - 1]
    if start_day > limit:
        raise ConfigurationError(
            f"fiscal_year_start_day {start_day} does not exist in every year for month {start_month} "
            f"(max {limit})",
            key="fiscal_year_start_day",
            value=start_day,
        )


@dataclass(frozen=True, slots=True)
class FiscalPeriod:
    """Fiscal attributes of one calendar date."""

    fiscal_year: int
    fiscal_year_name: str
    fiscal_year_start_date: date
    fiscal_year_end_date: date
    fiscal_quarter: int
    fiscal_quarter_name: str
    fiscal_quarter_start_date: date
    fiscal_quarter_end_date: date
    fiscal_month: int
    fiscal_month_start_date: date
    fiscal_month_end_date: date
    fiscal_week: int
    day_of_fiscal_year: int
    day_of_fiscal_quarter: int
    day_of_fiscal_month: int
    is_fiscal_year_start: bool
    is_fiscal_year_end: bool
    is_fiscal_quarter_start: bool
    is_fiscal_quarter_end: bool
    is_fiscal_month_start: bool
    is_fiscal_month_end: bool


class FiscalCalendar:
    """Fiscal calendar for a fixed (start_month, start_day) anchor."""

    def __init__(self, start_month: int = 1, start_day: int = 1):
        validate_fiscal_start(start_month, start_day)
        self.start_month = start_month
        self.start_day = start_day

    def __repr__(self) -> str:
        return f"FiscalCalendar(start_month={self.start_month}, start_day={self.start_day})"

    # -- boundaries ---------------------------------------------------------

    def year_start(self, fiscal_year: int) -> date:
        return date(fiscal_year - 1, self.start_month, self.start_day)

    def year_end(self, fiscal_year: int) -> date:
        return self.year_start(fiscal_year + 1) - timedelta(days=1)

    def month_start(self, fiscal_year: int, fiscal_month: int) -> date:
        """Start of fiscal month ``fiscal_month``; 13 gives the next year's start."""
        offset = self.start_month - 1 + fiscal_month - 1
        year = self.year_start(fiscal_year).year + offset // 12
        month = offset % 12 + 1
        return date(year, month, min(self.start_day, days_in_month(year, month)))

    def month_end(self, fiscal_year: int, fiscal_month: int) -> date:
        return self.month_start(fiscal_year, fiscal_month + 1) - timedelta(days=1)

    def quarter_start(self, fiscal_year: int, fiscal_quarter: int) -> date:
        return self.month_start(fiscal_year, 3 * (fiscal_quarter - 1) + 1)

    def quarter_end(self, fiscal_year: int, fiscal_quarter: int) -> date:
        return self.month_end(fiscal_year, 3 * fiscal_quarter)

    # -- lookup -------------------------------------------------------------

    def fiscal_year_of(self, d: date) -> int:
        if d >= self.year_start(d.year + 1):
            return d.year + 1
        return d.year

    def fiscal_month_of(self, d: date) -> int:
        fiscal_year = self.fiscal_year_of(d)
        for fiscal_month in range(12, 0, -1):
            if self.month_start(fiscal_year, fiscal_month) <= d:
                return fiscal_month
        raise AssertionError(f"{d} precedes fiscal year {fiscal_year}")

    def period_bounds(self, unit: PeriodUnit, fiscal_year: int, index: int) -> tuple[date, date]:
        """Start and end of the ``index``-th month/quarter (or the year) of ``fiscal_year``."""
        match unit:
            case PeriodUnit.MONTH:
                return self.month_start(fiscal_year, index), self.month_end(fiscal_year, index)
            case PeriodUnit.QUARTER:
                return self.quarter_start(fiscal_year, index), self.quarter_end(fiscal_year, index)
            case PeriodUnit.YEAR:
                return self.year_start(fiscal_year), self.year_end(fiscal_year)
        raise ConfigurationError(f"fiscal periods do not support unit {unit.value}", key="unit", value=unit.value)

    def locate(self, d: date, unit: PeriodUnit) -> tuple[int, int]:
        """(fiscal_year, index) of the period containing ``d``."""
        fiscal_year = self.fiscal_year_of(d)
        match unit:
            case PeriodUnit.MONTH:
                return fiscal_year, self.fiscal_month_of(d)
            case PeriodUnit.QUARTER:
                return fiscal_year, (self.fiscal_month_of(d) - 1) // 3 + 1
            case PeriodUnit.YEAR:
                return fiscal_year, 1
        raise ConfigurationError(f"fiscal periods do not support unit {unit.value}", key="unit", value=unit.value)

    # -- derivation ---------------------------------------------------------

    def derive(self, entry: CalendarDate | date) -> FiscalPeriod:
        d = entry.date if isinstance(entry, CalendarDate) else entry
        fiscal_year = self.fiscal_year_of(d)
        fiscal_month = self.fiscal_month_of(d)
        fiscal_quarter = (fiscal_month - 1) // 3 + 1

        fy_start, fy_end = self.year_start(fiscal_year), self.year_end(fiscal_year)
        q_start, q_end = self.quarter_start(fiscal_year, fiscal_quarter), self.quarter_end(fiscal_year, fiscal_quarter)
        m_start, m_end = self.month_start(fiscal_year, fiscal_month), self.month_end(fiscal_year, fiscal_month)
        days_in = (d - fy_start).days

        return FiscalPeriod(
            fiscal_year=fiscal_year,
            fiscal_year_name=f"FY{fiscal_year}",
            fiscal_year_start_date=fy_start,
            fiscal_year_end_date=fy_end,
            fiscal_quarter=fiscal_quarter,
            fiscal_quarter_name=f"FY{fiscal_year}-Q{fiscal_quarter}",
            fiscal_quarter_start_date=q_start,
            fiscal_quarter_end_date=q_end,
            fiscal_month=fiscal_month,
            fiscal_month_start_date=m_start,
            fiscal_month_end_date=m_end,
            fiscal_week=days_in // 7 + 1,
            day_of_fiscal_year=days_in + 1,
            day_of_fiscal_quarter=(d - q_start).days + 1,
            day_of_fiscal_month=(d - m_start).days + 1,
            is_fiscal_year_start=d == fy_start,
            is_fiscal_year_end=d == fy_end,
            is_fiscal_quarter_start=d == q_start,
            is_fiscal_quarter_end=d == q_end,
            is_fiscal_month_start=d == m_start,
            is_fiscal_month_end=d == m_end,
        )


__all__ = ["FiscalCalendar", "FiscalPeriod", "validate_fiscal_start"]
