"""
Business-day arithmetic over a composed calendar.

Arithmetic reads the ``is_trading_day`` column of one immutable
``CalendarDataset`` through its running trading-day count. With ``R(d)`` the
number of trading days from the first materialized date through ``d``:

- ``add_business_days(d, n)`` is the first date on or after ``d`` with
  ``R = R(d) + n``;
- ``subtract_business_days(d, n)`` is the n-th trading day before ``d``;
- ``count_business_days(a, b)`` is ``R(b) - R(a - 1)``, zero when ``a > b``.

A target beyond the materialized range raises ``OutOfRangeError``; a date
that is not materialized at all raises ``RangeError``.

Period projection ("same day N periods ago") comes in three flavours:

- calendar months/quarters/years: a period-end date maps to the target
  period's end, other dates keep their day-of-period clamped to the target
  period (Feb 29 maps to Feb 28 in a common year);
- fiscal and retail periods: the target period is found by period ordinals
  with year wrap, and the offset from period start is kept, clamped to the
  target period's end.

Examples:
    >>> from datetime import date
    >>> same_day_previous_period(date(2023, 3, 31), PeriodUnit.MONTH, 1)
    datetime.date(2023, 2, 28)
    >>> same_day_previous_period(date(2024, 2, 29), PeriodUnit.YEAR, 1)
    datetime.date(2023, 2, 28)
"""

from __future__ import annotations

from datetime import date, timedelta

from calspine.calendar.dataset import CalendarDataset, default_store
from calspine.calendar.dates import (
    add_months,
    days_in_month,
    is_leap_year,
    month_end,
    quarter_end,
    quarter_start,
    shift_period_ordinal,
)
from calspine.calendar.fiscal import FiscalCalendar
from calspine.calendar.retail import RetailCalendar
from calspine.calendar.schema import PeriodUnit
from calspine.core.errors import ConfigurationError, OutOfRangeError

_FISCAL_PERIODS_PER_YEAR = {PeriodUnit.MONTH: 12, PeriodUnit.QUARTER: 4, PeriodUnit.YEAR: 1}


def _unit(unit: PeriodUnit | str) -> PeriodUnit:
    try:
        return PeriodUnit(unit.upper()) if isinstance(unit, str) else unit
    except ValueError as e:
        valid = ", ".join(u.value for u in PeriodUnit)
        raise ConfigurationError(f"unknown period unit {unit!r}; expected one of {valid}", key="unit", value=unit) from e


# =============================================================================
# PURE CALENDAR PROJECTION
# =============================================================================


def same_day_previous_period(d: date, unit: PeriodUnit | str, n: int = 1) -> date:
    """Same relative position ``n`` calendar periods earlier (later when ``n < 0``)."""
    unit = _unit(unit)
    match unit:
        case PeriodUnit.WEEK:
            return d - timedelta(weeks=n)
        case PeriodUnit.MONTH:
            target = add_months(d.replace(day=1), -n)
            if d == month_end(d):
                return month_end(target)
            return target.replace(day=min(d.day, days_in_month(target.year, target.month)))
        case PeriodUnit.QUARTER:
            start = quarter_start(d)
            target_start = add_months(start, -3 * n)
            target_end = quarter_end(target_start)
            if d == quarter_end(d):
                return target_end
            return min(target_start + (d - start), target_end)
    year = d.year - n
    if d.month == 2 and d.day == 29 and not is_leap_year(year):
        return date(year, 2, 28)
    return d.replace(year=year)


def _project(
    d: date,
    unit: PeriodUnit,
    n: int,
    calendar: FiscalCalendar | RetailCalendar,
) -> date:
    year, index = calendar.locate(d, unit)
    start, _ = calendar.period_bounds(unit, year, index)
    if isinstance(calendar, RetailCalendar):
        target_year, target_index = calendar.shift_period(unit, year, index, n)
    else:
        if unit not in _FISCAL_PERIODS_PER_YEAR:
            raise ConfigurationError(f"fiscal periods do not support unit {unit.value}", key="unit", value=unit.value)
        target_year, target_index = shift_period_ordinal(year, index, _FISCAL_PERIODS_PER_YEAR[unit], n)
    target_start, target_end = calendar.period_bounds(unit, target_year, target_index)
    return min(target_start + (d - start), target_end)


def same_day_previous_fiscal_period(d: date, unit: PeriodUnit | str, n: int, calendar: FiscalCalendar) -> date:
    """Same offset within the fiscal month/quarter/year ``n`` periods earlier."""
    return _project(d, _unit(unit), n, calendar)


def same_day_previous_retail_period(d: date, unit: PeriodUnit | str, n: int, calendar: RetailCalendar) -> date:
    """Same offset within the retail week/month/quarter/year ``n`` periods earlier."""
    return _project(d, _unit(unit), n, calendar)


# =============================================================================
# CALCULATOR
# =============================================================================


class BusinessDayCalculator:
    """Business-day arithmetic bound to one calendar snapshot."""

    def __init__(self, dataset: CalendarDataset):
        if not dataset.is_contiguous:
            raise ConfigurationError(
                "business-day arithmetic needs a calendar covering every day; "
                "build it at DAY grain or finer"
            )
        self.dataset = dataset

    def is_business_day(self, d: date) -> bool:
        return self.dataset.is_trading_position(self.dataset.position(d))

    def add_business_days(self, start: date, n: int) -> date:
        if n < 0:
            return self.subtract_business_days(start, -n)
        i = self.dataset.position(start)
        if n == 0:
            return start
        j = self.dataset.position_of_count(self.dataset.running_count(i) + n, lo=i)
        if j is None:
            raise OutOfRangeError(
                f"{n} business days after {start.isoformat()} is beyond {self.dataset.end_date.isoformat()}"
            ).with_context(step="add_business_days", calendar_date=start.isoformat(), n=n)
        return self.dataset.date_at(j)

    def subtract_business_days(self, start: date, n: int) -> date:
        if n < 0:
            return self.add_business_days(start, -n)
        i = self.dataset.position(start)
        if n == 0:
            return start
        target = self.dataset.count_before(i) - n + 1
        j = self.dataset.position_of_count(target) if target >= 1 else None
        if j is None:
            raise OutOfRangeError(
                f"{n} business days before {start.isoformat()} is before {self.dataset.start_date.isoformat()}"
            ).with_context(step="subtract_business_days", calendar_date=start.isoformat(), n=n)
        return self.dataset.date_at(j)

    def count_business_days(self, start: date, end: date) -> int:
        """Trading days in the closed interval ``start``..``end``."""
        if start > end:
            return 0
        i = self.dataset.position(start)
        j = self.dataset.position(end)
        return self.dataset.running_count(j) - self.dataset.count_before(i)

    def next_business_day(self, d: date) -> date:
        i = self.dataset.position(d)
        j = self.dataset.position_of_count(self.dataset.running_count(i) + 1, lo=i)
        if j is None:
            raise OutOfRangeError(
                f"no business day after {d.isoformat()} within the calendar"
            ).with_context(step="next_business_day", calendar_date=d.isoformat())
        return self.dataset.date_at(j)

    def previous_business_day(self, d: date) -> date:
        target = self.dataset.count_before(self.dataset.position(d))
        j = self.dataset.position_of_count(target) if target >= 1 else None
        if j is None:
            raise OutOfRangeError(
                f"no business day before {d.isoformat()} within the calendar"
            ).with_context(step="previous_business_day", calendar_date=d.isoformat())
        return self.dataset.date_at(j)

    def same_day_previous_period(self, d: date, unit: PeriodUnit | str, n: int = 1) -> date:
        return same_day_previous_period(d, unit, n)

    def same_business_day_previous_period(self, d: date, unit: PeriodUnit | str, n: int = 1) -> date:
        """``same_day_previous_period``, rolled forward to a trading day."""
        target = same_day_previous_period(d, unit, n)
        if self.is_business_day(target):
            return target
        return self.next_business_day(target)

    def fiscal_calendar(self) -> FiscalCalendar:
        if self.dataset.config is None:
            raise ConfigurationError("calendar dataset carries no configuration for fiscal periods")
        return self.dataset.config.fiscal_calendar()

    def retail_calendar(self, pattern: str | None = None) -> RetailCalendar:
        if self.dataset.config is None:
            raise ConfigurationError("calendar dataset carries no configuration for retail periods")
        calendars = self.dataset.config.retail_calendars()
        if pattern is None:
            return next(iter(calendars.values()))
        key = str(pattern).replace("-", "")
        if key not in calendars:
            raise ConfigurationError(
                f"retail pattern {pattern} was not built; available: {', '.join(calendars)}",
                key="pattern",
                value=pattern,
            )
        return calendars[key]

    def same_day_previous_fiscal_period(self, d: date, unit: PeriodUnit | str, n: int = 1) -> date:
        return same_day_previous_fiscal_period(d, unit, n, self.fiscal_calendar())

    def same_day_previous_retail_period(
        self, d: date, unit: PeriodUnit | str, n: int = 1, pattern: str | None = None
    ) -> date:
        return same_day_previous_retail_period(d, unit, n, self.retail_calendar(pattern))


# =============================================================================
# MODULE-LEVEL QUERY HELPERS
# =============================================================================


def _calculator(calendar: CalendarDataset | None) -> BusinessDayCalculator:
    return BusinessDayCalculator(calendar if calendar is not None else default_store.current())


def add_business_days(start: date, n: int, calendar: CalendarDataset | None = None) -> date:
    return _calculator(calendar).add_business_days(start, n)


def subtract_business_days(start: date, n: int, calendar: CalendarDataset | None = None) -> date:
    return _calculator(calendar).subtract_business_days(start, n)


def count_business_days(start: date, end: date, calendar: CalendarDataset | None = None) -> int:
    return _calculator(calendar).count_business_days(start, end)


def next_business_day(d: date, calendar: CalendarDataset | None = None) -> date:
    return _calculator(calendar).next_business_day(d)


def previous_business_day(d: date, calendar: CalendarDataset | None = None) -> date:
    return _calculator(calendar).previous_business_day(d)


def is_business_day(d: date, calendar: CalendarDataset | None = None) -> bool:
    return _calculator(calendar).is_business_day(d)


def same_business_day_previous_period(
    d: date, unit: PeriodUnit | str, n: int = 1, calendar: CalendarDataset | None = None
) -> date:
    return _calculator(calendar).same_business_day_previous_period(d, unit, n)


__all__ = [
    "BusinessDayCalculator",
    "same_day_previous_period",
    "same_day_previous_fiscal_period",
    "same_day_previous_retail_period",
    "add_business_days",
    "subtract_business_days",
    "count_business_days",
    "next_business_day",
    "previous_business_day",
    "is_business_day",
    "same_business_day_previous_period",
]
