"""
Date spine: the ordered, gap-free sequence of instants a build derives from.

The spine is a trivial enumerator. Each grain maps to a truncation function
and a step function in ``_GRAIN_OPS``; no other code branches on grain.

Examples:
    >>> from datetime import date
    >>> [d.date_key for d in generate_spine(date(2024, 1, 30), date(2024, 2, 1), Grain.DAY)]
    [20240130, 20240131, 20240201]
    >>> estimate_spine_size(date(2024, 1, 1), date(2024, 12, 31), Grain.MONTH)
    12
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from calspine.calendar.dates import add_months, date_key
from calspine.calendar.schema import Grain
from calspine.core.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CalendarDate:
    """One spine entry: an instant, its civil date and date key."""

    instant: datetime
    grain: Grain

    @property
    def date(self) -> date:
        return self.instant.date()

    @property
    def date_key(self) -> int:
        return date_key(self.instant.date())

    @classmethod
    def of(cls, value: date | datetime, grain: Grain = Grain.DAY, tz: str | None = None) -> "CalendarDate":
        """
        Build an entry from a date or datetime, truncated to ``grain``.

        An aware datetime is first converted to wall-clock time in ``tz``.
        """
        return cls(instant=truncate(_as_datetime(value, tz), grain), grain=grain)


def _as_datetime(value: date | datetime, tz: str | None = None) -> datetime:
    """Naive wall-clock datetime in ``tz``; aware input without ``tz`` is rejected."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value
    if tz is None:
        raise ConfigurationError(
            f"aware instant {value.isoformat()} needs a spine timezone to convert into",
            key="timezone",
            value=value.isoformat(),
        )
    return value.astimezone(ZoneInfo(tz)).replace(tzinfo=None)


def _step_delta(delta: timedelta) -> Callable[[datetime], datetime]:
    return lambda instant: instant + delta


def _step_month(instant: datetime) -> datetime:
    return datetime.combine(add_months(instant.date(), 1), time.min)


def _step_year(instant: datetime) -> datetime:
    return instant.replace(year=instant.year + 1)


_GRAIN_OPS: dict[Grain, tuple[Callable[[datetime], datetime], Callable[[datetime], datetime]]] = {
    Grain.SECOND: (lambda i: i.replace(microsecond=0), _step_delta(timedelta(seconds=1))),
    Grain.MINUTE: (lambda i: i.replace(second=0, microsecond=0), _step_delta(timedelta(minutes=1))),
    Grain.HOUR: (lambda i: i.replace(minute=0, second=0, microsecond=0), _step_delta(timedelta(hours=1))),
    Grain.DAY: (lambda i: datetime.combine(i.date(), time.min), _step_delta(timedelta(days=1))),
    Grain.MONTH: (lambda i: datetime(i.year, i.month, 1), _step_month),
    Grain.YEAR: (lambda i: datetime(i.year, 1, 1), _step_year),
}

_SECONDS_PER_STEP = {
    Grain.SECOND: 1,
    Grain.MINUTE: 60,
    Grain.HOUR: 3600,
    Grain.DAY: 86400,
}


def truncate(instant: datetime, grain: Grain) -> datetime:
    """Truncate a naive instant to the start of its grain bucket."""
    return _GRAIN_OPS[grain][0](instant)


def _bounds(
    start: date | datetime, end: date | datetime, grain: Grain, tz: str | None = None
) -> tuple[datetime, datetime]:
    lower = truncate(_as_datetime(start, tz), grain)
    if isinstance(end, datetime):
        upper = _as_datetime(end, tz)
    else:
        # a plain end date covers that whole day
        upper = datetime.combine(end, time.max)
    if upper < lower:
        raise ConfigurationError(
            f"spine end {end} is before start {start}", key="end", value=str(end)
        )
    return lower, upper


def estimate_spine_size(start: date | datetime, end: date | datetime, grain: Grain, tz: str | None = None) -> int:
    """Number of entries ``generate_spine`` would yield, computed without enumerating."""
    lower, upper = _bounds(start, end, grain, tz)
    if grain in _SECONDS_PER_STEP:
        return int((upper - lower).total_seconds()) // _SECONDS_PER_STEP[grain] + 1
    if grain is Grain.MONTH:
        return (upper.year - lower.year) * 12 + (upper.month - lower.month) + 1
    return upper.year - lower.year + 1


def iter_spine(
    start: date | datetime, end: date | datetime, grain: Grain, tz: str | None = None
) -> Iterator[CalendarDate]:
    """
    Lazily enumerate the spine from ``start`` to ``end`` inclusive.

    Instants are naive wall-clock times. Aware bounds are converted into
    ``tz`` first; passing an aware bound without ``tz`` raises
    ``ConfigurationError`` rather than silently dropping its offset.
    """
    lower, upper = _bounds(start, end, grain, tz)
    step = _GRAIN_OPS[grain][1]
    instant = lower
    while instant <= upper:
        yield CalendarDate(instant=instant, grain=grain)
        instant = step(instant)


def generate_spine(
    start: date | datetime, end: date | datetime, grain: Grain, tz: str | None = None
) -> list[CalendarDate]:
    """Materialize the spine as a list."""
    return list(iter_spine(start, end, grain, tz))


__all__ = [
    "CalendarDate",
    "truncate",
    "estimate_spine_size",
    "iter_spine",
    "generate_spine",
]
