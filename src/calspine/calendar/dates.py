"""
Pure Gregorian date helpers shared by the derivers.

All functions are pure and operate on ``datetime.date``. Month arithmetic
clamps to the last day of the target month.
"""

import calendar
from datetime import date, timedelta


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def date_key(d: date) -> int:
    """Integer ``YYYYMMDD`` key."""
    return d.year * 10000 + d.month * 100 + d.day


def from_date_key(key: int) -> date:
    """Inverse of ``date_key``."""
    return date(key // 10000, (key // 100) % 100, key % 100)


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(index, 12)
    month = month0 + 1
    return date(year, month, min(d.day, days_in_month(year, month)))


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def quarter_of(d: date) -> int:
    return (d.month - 1) // 3 + 1


def quarter_start(d: date) -> date:
    return date(d.year, 3 * (quarter_of(d) - 1) + 1, 1)


def quarter_end(d: date) -> date:
    return month_end(date(d.year, 3 * quarter_of(d), 1))


def year_start(d: date) -> date:
    return date(d.year, 1, 1)


def year_end(d: date) -> date:
    return date(d.year, 12, 31)


def week_start(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())


def week_end(d: date) -> date:
    return week_start(d) + timedelta(days=6)


def month_index(d: date) -> int:
    """Absolute month ordinal, for differences between dates."""
    return d.year * 12 + d.month - 1


def quarter_index(d: date) -> int:
    """Absolute quarter ordinal."""
    return d.year * 4 + quarter_of(d) - 1


def first_weekday_on_or_after(d: date, weekday: int) -> date:
    """
    First date on or after ``d`` falling on ``weekday``.

    ``weekday`` uses 0=Sunday..6=Saturday.
    """
    current = (d.weekday() + 1) % 7
    return d + timedelta(days=(weekday - current) % 7)


def iter_days(start: date, end: date):
    """Yield each date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def shift_period_ordinal(year: int, index: int, periods_per_year: int, n: int) -> tuple[int, int]:
    """Move ``n`` periods back from (year, index) where index is 1-based; negative ``n`` moves forward."""
    ordinal = year * periods_per_year + (index - 1) - n
    target_year, target_index0 = divmod(ordinal, periods_per_year)
    return target_year, target_index0 + 1
