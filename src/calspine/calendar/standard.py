"""Standard (Gregorian) attributes for a spine entry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from calspine.calendar.dates import (
    is_leap_year,
    month_end,
    month_start,
    quarter_end,
    quarter_of,
    quarter_start,
    week_end,
    week_start,
    year_end,
    year_start,
)
from calspine.calendar.schema import DAY_NAMES, MONTH_NAMES
from calspine.calendar.spine import CalendarDate


@dataclass(frozen=True, slots=True)
class StandardAttributes:
    """Gregorian attributes of one calendar date."""

    year: int
    quarter: int
    quarter_name: str
    month: int
    month_name: str
    month_name_short: str
    month_year: str
    day: int
    day_of_year: int
    day_of_week: int
    day_of_week_name: str
    day_of_week_name_short: str
    iso_week: int
    iso_year: int
    is_leap_year: bool
    is_weekend: bool
    first_day_of_week: date
    last_day_of_week: date
    first_day_of_month: date
    last_day_of_month: date
    first_day_of_quarter: date
    last_day_of_quarter: date
    first_day_of_year: date
    last_day_of_year: date
    full_date_description: str
    same_date_last_year: date
    same_day_last_year: date
    hour: int | None = None
    minute: int | None = None
    second: int | None = None


def same_date_last_year(d: date) -> date:
    """Same month and day one year back; Feb 29 becomes Feb 28."""
    if d.month == 2 and d.day == 29:
        return date(d.year - 1, 2, 28)
    return d.replace(year=d.year - 1)


def same_day_last_year(d: date) -> date:
    """Same ISO weekday in the week containing ``same_date_last_year``."""
    anchor = same_date_last_year(d)
    return week_start(anchor) + timedelta(days=d.weekday())


def derive_standard(entry: CalendarDate) -> StandardAttributes:
    d = entry.date
    iso = d.isocalendar()
    instant = entry.instant
    sub_day = entry.grain.is_sub_day
    return StandardAttributes(
        year=d.year,
        quarter=quarter_of(d),
        quarter_name=f"Q{quarter_of(d)}",
        month=d.month,
        month_name=MONTH_NAMES[d.month - 1],
        month_name_short=MONTH_NAMES[d.month - 1][:3],
        month_year=f"{d.year:04d}-{d.month:02d}",
        day=d.day,
        day_of_year=d.timetuple().tm_yday,
        day_of_week=iso.weekday,
        day_of_week_name=DAY_NAMES[d.weekday()],
        day_of_week_name_short=DAY_NAMES[d.weekday()][:3],
        iso_week=iso.week,
        iso_year=iso.year,
        is_leap_year=is_leap_year(d.year),
        is_weekend=d.weekday() >= 5,
        first_day_of_week=week_start(d),
        last_day_of_week=week_end(d),
        first_day_of_month=month_start(d),
        last_day_of_month=month_end(d),
        first_day_of_quarter=quarter_start(d),
        last_day_of_quarter=quarter_end(d),
        first_day_of_year=year_start(d),
        last_day_of_year=year_end(d),
        full_date_description=f"{d.day:02d} {MONTH_NAMES[d.month - 1]} {d.year}",
        same_date_last_year=same_date_last_year(d),
        same_day_last_year=same_day_last_year(d),
        hour=instant.hour if sub_day else None,
        minute=instant.minute if sub_day else None,
        second=instant.second if sub_day else None,
    )


__all__ = ["StandardAttributes", "derive_standard", "same_date_last_year", "same_day_last_year"]
