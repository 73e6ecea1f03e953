"""
Relative-period evaluation.

Answers "is this row in the current/last/next week, month, quarter or year"
relative to *now* in one or more timezones. Evaluation is a pure function of
(row, now, timezone): nothing is stored on the dataset and nothing is shared
between evaluations, so two timezones on either side of the date line are free
to disagree about which row is today.

Conventions:
    - now is converted to the timezone's civil date; a naive ``now`` is UTC
    - weeks start on Monday
    - distances are ``row - today`` (negative means the past)
    - ``*_minus_k`` flags run k = 1..relative_periods_count, ``*_plus_k``
      flags run k = 1..min(4, relative_periods_count)

Example::

    evaluator = RelativePeriodEvaluator(["Australia/Adelaide", "America/New_York"])
    flags = evaluator.evaluate(row, now=datetime(2024, 3, 15, 12, tzinfo=UTC))
    flags["Australia/Adelaide"].period_description   # 'Today' or 'Yesterday' ...
    flags["America/New_York"].as_dict()              # {'america_new_york_is_today': ...}
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, fields
from datetime import UTC, date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from calspine.calendar.composer import UnifiedCalendarRow
from calspine.calendar.config import validate_timezone
from calspine.calendar.dates import (
    month_index,
    month_start,
    quarter_index,
    quarter_start,
    week_start,
    year_start,
)
from calspine.calendar.spine import truncate
from calspine.core.errors import ConfigurationError

FUTURE_HORIZON = 4
ROLLING_WINDOWS = (7, 30, 90, 365)
_UNITS = ("week", "month", "quarter", "year")


def timezone_prefix(tz: str) -> str:
    """Column prefix for a timezone: ``Australia/Adelaide`` -> ``australia_adelaide``."""
    return re.sub(r"[^0-9A-Za-z]", "_", tz).lower()


def _relative_label(distance: int, unit: str) -> str:
    match distance:
        case 0:
            return f"Current {unit}"
        case -1:
            return f"Previous {unit}"
        case 1:
            return f"Next {unit}"
    if distance < 0:
        return f"{-distance} {unit}s Ago"
    return f"{distance} {unit}s From Now"


@dataclass(frozen=True, slots=True)
class RelativePeriodFlags:
    """Relative-period indicators for one row in one timezone."""

    timezone: str
    today: date

    is_today: bool = False
    is_yesterday: bool = False
    is_tomorrow: bool = False

    is_this_week: bool = False
    is_last_week: bool = False
    is_next_week: bool = False
    is_this_month: bool = False
    is_last_month: bool = False
    is_next_month: bool = False
    is_this_quarter: bool = False
    is_last_quarter: bool = False
    is_next_quarter: bool = False
    is_this_year: bool = False
    is_last_year: bool = False
    is_next_year: bool = False

    is_ytd: bool = False
    is_qtd: bool = False
    is_mtd: bool = False
    is_wtd: bool = False

    is_last_7_days: bool = False
    is_last_30_days: bool = False
    is_last_90_days: bool = False
    is_last_365_days: bool = False

    days_from_today: int = 0
    weeks_from_today: int = 0
    months_from_today: int = 0
    quarters_from_today: int = 0
    years_from_today: int = 0

    period_description: str = "Other Period"
    relative_month: str = "Current Month"
    relative_quarter: str = "Current Quarter"
    relative_year: str = "Current Year"

    is_now: bool | None = None
    relative: dict[str, bool] = field(default_factory=dict)

    def as_dict(self, prefix: str | None = None) -> dict[str, Any]:
        """Flat mapping with keys namespaced by the timezone prefix."""
        prefix = timezone_prefix(self.timezone) if prefix is None else prefix
        values: dict[str, Any] = {}
        for f in fields(self):
            if f.name in ("timezone", "relative"):
                continue
            value = getattr(self, f.name)
            values[f.name] = value.isoformat() if isinstance(value, date) else value
        values.update(self.relative)
        return {f"{prefix}_{k}" if prefix else k: v for k, v in values.items()}


# (flag, description) in precedence order
_DESCRIPTIONS = (
    ("is_today", "Today"),
    ("is_yesterday", "Yesterday"),
    ("is_tomorrow", "Tomorrow"),
    ("is_this_week", "This Week"),
    ("is_last_week", "Last Week"),
    ("is_next_week", "Next Week"),
    ("is_this_month", "This Month"),
    ("is_last_month", "Last Month"),
    ("is_next_month", "Next Month"),
    ("is_this_quarter", "This Quarter"),
    ("is_last_quarter", "Last Quarter"),
    ("is_next_quarter", "Next Quarter"),
    ("is_this_year", "This Year"),
    ("is_last_year", "Last Year"),
    ("is_next_year", "Next Year"),
    ("is_ytd", "Year to Date"),
    ("is_qtd", "Quarter to Date"),
    ("is_mtd", "Month to Date"),
    ("is_wtd", "Week to Date"),
    ("is_last_7_days", "Last 7 Days"),
    ("is_last_30_days", "Last 30 Days"),
    ("is_last_90_days", "Last 90 Days"),
    ("is_last_365_days", "Last 365 Days"),
)


def _describe(flags: dict[str, Any]) -> str:
    for name, description in _DESCRIPTIONS:
        if flags[name]:
            return description
    return "Other Period"


def local_now(now: datetime, tz: str) -> datetime:
    """``now`` as naive wall-clock time in ``tz``; naive input is UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(ZoneInfo(tz)).replace(tzinfo=None)


class RelativePeriodEvaluator:
    """Computes ``RelativePeriodFlags`` per timezone."""

    def __init__(
        self,
        timezones: Sequence[str] = ("UTC",),
        relative_periods_count: int = 12,
        future_horizon: int = FUTURE_HORIZON,
    ):
        if isinstance(timezones, str):
            timezones = [timezones]
        if not timezones:
            raise ConfigurationError("at least one timezone is required", key="timezones")
        if relative_periods_count < 1:
            raise ConfigurationError(
                "relative_periods_count must be at least 1",
                key="relative_periods_count",
                value=relative_periods_count,
            )
        try:
            self.timezones = tuple(validate_timezone(tz) for tz in timezones)
        except ValueError as e:
            raise ConfigurationError(str(e), key="timezones", value=list(timezones)) from e
        self.relative_periods_count = relative_periods_count
        self.future_horizon = min(future_horizon, relative_periods_count)

    def evaluate(self, row: UnifiedCalendarRow, now: datetime | None = None) -> dict[str, RelativePeriodFlags]:
        now = now or datetime.now(UTC)
        return {tz: self.evaluate_in(row, now, tz) for tz in self.timezones}

    def evaluate_rows(
        self, rows: Iterable[UnifiedCalendarRow], now: datetime | None = None
    ) -> list[dict[str, RelativePeriodFlags]]:
        """Evaluate many rows against a single fixed ``now``."""
        now = now or datetime.now(UTC)
        return [self.evaluate(row, now) for row in rows]

    def evaluate_in(self, row: UnifiedCalendarRow, now: datetime, tz: str) -> RelativePeriodFlags:
        local = local_now(now, tz)
        today = local.date()
        d = row.date

        days = (d - today).days
        weeks = (week_start(d) - week_start(today)).days // 7
        months = month_index(d) - month_index(today)
        quarters = quarter_index(d) - quarter_index(today)
        years = d.year - today.year
        distances = {"week": weeks, "month": months, "quarter": quarters, "year": years}

        values: dict[str, Any] = {
            "is_today": days == 0,
            "is_yesterday": days == -1,
            "is_tomorrow": days == 1,
            "is_ytd": year_start(today) <= d <= today,
            "is_qtd": quarter_start(today) <= d <= today,
            "is_mtd": month_start(today) <= d <= today,
            "is_wtd": week_start(today) <= d <= today,
        }
        for unit, distance in distances.items():
            values[f"is_this_{unit}"] = distance == 0
            values[f"is_last_{unit}"] = distance == -1
            values[f"is_next_{unit}"] = distance == 1
        for window in ROLLING_WINDOWS:
            values[f"is_last_{window}_days"] = today - timedelta(days=window - 1) <= d <= today

        relative: dict[str, bool] = {}
        for unit in _UNITS:
            distance = distances[unit]
            for k in range(1, self.relative_periods_count + 1):
                relative[f"is_{unit}_minus_{k}"] = distance == -k
            for k in range(1, self.future_horizon + 1):
                relative[f"is_{unit}_plus_{k}"] = distance == k

        is_now = None
        if row.calendar_date.grain.is_sub_day:
            is_now = truncate(local, row.calendar_date.grain) == row.instant

        return RelativePeriodFlags(
            timezone=tz,
            today=today,
            days_from_today=days,
            weeks_from_today=weeks,
            months_from_today=months,
            quarters_from_today=quarters,
            years_from_today=years,
            period_description=_describe(values),
            relative_month=_relative_label(months, "Month"),
            relative_quarter=_relative_label(quarters, "Quarter"),
            relative_year=_relative_label(years, "Year"),
            is_now=is_now,
            relative=relative,
            **values,
        )


def evaluate_relative(
    row: UnifiedCalendarRow,
    timezones: Sequence[str] | str = ("UTC",),
    now: datetime | None = None,
    relative_periods_count: int = 12,
) -> dict[str, RelativePeriodFlags]:
    """One-shot evaluation of ``row`` in each of ``timezones``."""
    return RelativePeriodEvaluator(timezones, relative_periods_count).evaluate(row, now)


__all__ = [
    "FUTURE_HORIZON",
    "ROLLING_WINDOWS",
    "RelativePeriodFlags",
    "RelativePeriodEvaluator",
    "evaluate_relative",
    "local_now",
    "timezone_prefix",
]
