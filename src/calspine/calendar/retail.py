"""
Retail (NRF-style) period derivation.

A retail year is a whole number of weeks beginning on a fixed weekday. It
starts on the first configured weekday on or after day 1 of the month after
the anchor month, and it is labeled by the calendar year of that start month.
The number of weeks (52 or 53) falls out of the distance between two
consecutive starts; it is never configured.

Weeks are grouped into months by the pattern's per-quarter week counts
(4-4-5, 4-5-4 or 5-4-4) accumulated into cumulative boundaries. In a 53-week
year the extra week is appended to month 12, and so to quarter 4 and half 2.

Manifesto:
    - **Whole weeks:** Every boundary is a multiple of seven days from the start
    - **Derived 53rd week:** weeks_in_year comes from consecutive year starts
    - **One month rule:** Cumulative accumulation with week 53 on month 12

Architecture:
    ::

        RetailCalendar(pattern=445, anchor_month=1, week_start_day=0)
             │
             ├── year_start(2023)        -> 2023-02-05 (Sunday)
             ├── weeks_in_year(2023)     -> 52
             ├── month_weeks(2023)       -> (4,4,5, 4,4,5, 4,4,5, 4,4,5)
             └── derive(CalendarDate)    -> RetailPeriod

        445 cumulative month ends: 4 8 13 | 17 21 26 | 30 34 39 | 43 47 52 (+53)

Examples:
    >>> from datetime import date
    >>> cal = RetailCalendar(RetailPattern.P445, anchor_month=1, week_start_day=0)
    >>> cal.year_start(2023)
    datetime.date(2023, 2, 5)
    >>> cal.derive(date(2023, 4, 30)).retail_month
    3

Guardrails:
    ❌ DON'T: Use a fixed 52-week threshold table for every pattern
    ✅ DO: Accumulate the pattern's own week counts

Tags:
    retail-calendar, nrf, 4-4-5, 53-week-year, calspine
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from itertools import accumulate

from calspine.calendar.dates import first_weekday_on_or_after, shift_period_ordinal
from calspine.calendar.schema import PeriodUnit, RetailPattern
from calspine.calendar.spine import CalendarDate
from calspine.core.errors import ConfigurationError


@lru_cache(maxsize=1024)
def _year_start(start_month: int, week_start_day: int, retail_year: int) -> date:
    return first_weekday_on_or_after(date(retail_year, start_month, 1), week_start_day)


@dataclass(frozen=True, slots=True)
class RetailPeriod:
    """Retail attributes of one calendar date under one pattern."""

    pattern: str
    retail_year: int
    retail_year_name: str
    retail_year_start_date: date
    retail_year_end_date: date
    weeks_in_year: int
    is_53_week_year: bool
    retail_week: int
    retail_week_name: str
    retail_week_start_date: date
    retail_week_end_date: date
    retail_month: int
    retail_month_name: str
    retail_month_start_date: date
    retail_month_end_date: date
    weeks_in_month: int
    retail_quarter: int
    retail_quarter_name: str
    retail_quarter_start_date: date
    retail_quarter_end_date: date
    weeks_in_quarter: int
    retail_half: int
    retail_half_name: str
    retail_half_start_date: date
    retail_half_end_date: date
    day_of_retail_year: int
    day_of_retail_quarter: int
    day_of_retail_month: int
    day_of_retail_week: int
    year_month_key: int
    year_quarter_key: int
    year_week_key: int
    is_retail_year_start: bool
    is_retail_year_end: bool
    is_retail_half_start: bool
    is_retail_half_end: bool
    is_retail_quarter_start: bool
    is_retail_quarter_end: bool
    is_retail_month_start: bool
    is_retail_month_end: bool
    is_retail_week_start: bool
    is_retail_week_end: bool


class RetailCalendar:
    """Retail calendar for one pattern, anchor month and week-start weekday."""

    def __init__(
        self,
        pattern: RetailPattern | str = RetailPattern.P445,
        anchor_month: int = 1,
        week_start_day: int = 0,
    ):
        try:
            self.pattern = RetailPattern.parse(pattern)
        except ValueError as e:
            raise ConfigurationError(str(e), key="retail_pattern", value=pattern, cause=e) from e
        if not 1 <= anchor_month <= 12:
            raise ConfigurationError(
                f"retail_anchor_month must be in 1..12, got {anchor_month}",
                key="retail_anchor_month",
                value=anchor_month,
            )
        if not 0 <= week_start_day <= 6:
            raise ConfigurationError(
                f"retail_week_start_day must be in 0..6 (0=Sunday), got {week_start_day}",
                key="retail_week_start_day",
                value=week_start_day,
            )
        self.anchor_month = anchor_month
        self.week_start_day = week_start_day
        self.start_month = anchor_month % 12 + 1

    def __repr__(self) -> str:
        return (
            f"RetailCalendar(pattern={self.pattern.value}, anchor_month={self.anchor_month}, "
            f"week_start_day={self.week_start_day})"
        )

    # -- year structure -----------------------------------------------------

    def year_start(self, retail_year: int) -> date:
        return _year_start(self.start_month, self.week_start_day, retail_year)

    def year_end(self, retail_year: int) -> date:
        return self.year_start(retail_year + 1) - timedelta(days=1)

    def weeks_in_year(self, retail_year: int) -> int:
        return (self.year_start(retail_year + 1) - self.year_start(retail_year)).days // 7

    def month_weeks(self, retail_year: int) -> tuple[int, ...]:
        """Weeks in each of the 12 months; month 12 absorbs a 53rd week."""
        weeks = list(self.pattern.quarter_weeks * 4)
        weeks[-1] += self.weeks_in_year(retail_year) - sum(weeks)
        return tuple(weeks)

    def month_boundaries(self, retail_year: int) -> tuple[int, ...]:
        """Cumulative last week of each month."""
        return tuple(accumulate(self.month_weeks(retail_year)))

    def retail_year_of(self, d: date) -> int:
        retail_year = d.year if d.month >= self.start_month else d.year - 1
        while d < self.year_start(retail_year):
            retail_year -= 1
        while d >= self.year_start(retail_year + 1):
            retail_year += 1
        return retail_year

    # -- period bounds ------------------------------------------------------

    def _week_offset(self, retail_year: int, month: int) -> int:
        return sum(self.month_weeks(retail_year)[: month - 1])

    def week_start(self, retail_year: int, week: int) -> date:
        return self.year_start(retail_year) + timedelta(weeks=week - 1)

    def month_start(self, retail_year: int, month: int) -> date:
        return self.year_start(retail_year) + timedelta(weeks=self._week_offset(retail_year, month))

    def month_end(self, retail_year: int, month: int) -> date:
        if month == 12:
            return self.year_end(retail_year)
        return self.month_start(retail_year, month + 1) - timedelta(days=1)

    def quarter_start(self, retail_year: int, quarter: int) -> date:
        return self.month_start(retail_year, 3 * quarter - 2)

    def quarter_end(self, retail_year: int, quarter: int) -> date:
        return self.month_end(retail_year, 3 * quarter)

    def periods_in_year(self, unit: PeriodUnit, retail_year: int) -> int:
        if unit is PeriodUnit.WEEK:
            return self.weeks_in_year(retail_year)
        return {PeriodUnit.MONTH: 12, PeriodUnit.QUARTER: 4, PeriodUnit.YEAR: 1}[unit]

    def period_bounds(self, unit: PeriodUnit, retail_year: int, index: int) -> tuple[date, date]:
        """Start and end of the ``index``-th week/month/quarter (or the year)."""
        match unit:
            case PeriodUnit.WEEK:
                start = self.week_start(retail_year, index)
                return start, start + timedelta(days=6)
            case PeriodUnit.MONTH:
                return self.month_start(retail_year, index), self.month_end(retail_year, index)
            case PeriodUnit.QUARTER:
                return self.quarter_start(retail_year, index), self.quarter_end(retail_year, index)
        return self.year_start(retail_year), self.year_end(retail_year)

    def locate(self, d: date, unit: PeriodUnit) -> tuple[int, int]:
        """(retail_year, index) of the period containing ``d``."""
        retail_year = self.retail_year_of(d)
        week = (d - self.year_start(retail_year)).days // 7 + 1
        match unit:
            case PeriodUnit.WEEK:
                return retail_year, week
            case PeriodUnit.MONTH:
                return retail_year, self._month_of_week(retail_year, week)
            case PeriodUnit.QUARTER:
                return retail_year, (self._month_of_week(retail_year, week) - 1) // 3 + 1
        return retail_year, 1

    def shift_period(self, unit: PeriodUnit, retail_year: int, index: int, n: int) -> tuple[int, int]:
        """Move ``n`` periods back (forward when negative), wrapping across years."""
        if unit is not PeriodUnit.WEEK:
            return shift_period_ordinal(retail_year, index, self.periods_in_year(unit, retail_year), n)
        index -= n
        while index < 1:
            retail_year -= 1
            index += self.weeks_in_year(retail_year)
        while index > self.weeks_in_year(retail_year):
            index -= self.weeks_in_year(retail_year)
            retail_year += 1
        return retail_year, index

    def _month_of_week(self, retail_year: int, week: int) -> int:
        for month, last_week in enumerate(self.month_boundaries(retail_year), start=1):
            if week <= last_week:
                return month
        raise AssertionError(f"week {week} beyond retail year {retail_year}")

    # -- derivation ---------------------------------------------------------

    def derive(self, entry: CalendarDate | date) -> RetailPeriod:
        d = entry.date if isinstance(entry, CalendarDate) else entry
        retail_year = self.retail_year_of(d)
        y_start, y_end = self.year_start(retail_year), self.year_end(retail_year)
        weeks_in_year = self.weeks_in_year(retail_year)
        month_weeks = self.month_weeks(retail_year)

        day_index = (d - y_start).days
        week = day_index // 7 + 1
        month = self._month_of_week(retail_year, week)
        quarter = (month - 1) // 3 + 1
        half = (quarter - 1) // 2 + 1

        w_start = self.week_start(retail_year, week)
        w_end = w_start + timedelta(days=6)
        m_start, m_end = self.month_start(retail_year, month), self.month_end(retail_year, month)
        q_start, q_end = self.quarter_start(retail_year, quarter), self.quarter_end(retail_year, quarter)
        h_start, h_end = self.quarter_start(retail_year, 2 * half - 1), self.quarter_end(retail_year, 2 * half)

        return RetailPeriod(
            pattern=self.pattern.value,
            retail_year=retail_year,
            retail_year_name=f"R{retail_year}",
            retail_year_start_date=y_start,
            retail_year_end_date=y_end,
            weeks_in_year=weeks_in_year,
            is_53_week_year=weeks_in_year == 53,
            retail_week=week,
            retail_week_name=f"W{week:02d}",
            retail_week_start_date=w_start,
            retail_week_end_date=w_end,
            retail_month=month,
            retail_month_name=f"Month {month:02d}",
            retail_month_start_date=m_start,
            retail_month_end_date=m_end,
            weeks_in_month=month_weeks[month - 1],
            retail_quarter=quarter,
            retail_quarter_name=f"Q{quarter}",
            retail_quarter_start_date=q_start,
            retail_quarter_end_date=q_end,
            weeks_in_quarter=sum(month_weeks[3 * quarter - 3 : 3 * quarter]),
            retail_half=half,
            retail_half_name=f"H{half}",
            retail_half_start_date=h_start,
            retail_half_end_date=h_end,
            day_of_retail_year=day_index + 1,
            day_of_retail_quarter=(d - q_start).days + 1,
            day_of_retail_month=(d - m_start).days + 1,
            day_of_retail_week=(d - w_start).days + 1,
            year_month_key=retail_year * 100 + month,
            year_quarter_key=retail_year * 10 + quarter,
            year_week_key=retail_year * 100 + week,
            is_retail_year_start=d == y_start,
            is_retail_year_end=d == y_end,
            is_retail_half_start=d == h_start,
            is_retail_half_end=d == h_end,
            is_retail_quarter_start=d == q_start,
            is_retail_quarter_end=d == q_end,
            is_retail_month_start=d == m_start,
            is_retail_month_end=d == m_end,
            is_retail_week_start=d == w_start,
            is_retail_week_end=d == w_end,
        )


__all__ = ["RetailCalendar", "RetailPeriod"]
