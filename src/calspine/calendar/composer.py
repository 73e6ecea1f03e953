"""
Unified composer: joins every derived attribute set into one row per date.

The composer is a pure zip over columns that the build steps derived
independently. A column that is missing (step skipped or failed) or a single
``None`` entry (one date failed) becomes a null attribute on the row; a row is
never dropped. Holidays are matched by exact date against a ``HolidayIndex``.

``is_weekday`` is Monday..Friday; ``is_trading_day`` is a weekday that is not
a holiday in any jurisdiction. When the holiday source failed,
``holidays_known`` is False and every row is treated as non-holiday.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

from calspine.calendar.fiscal import FiscalPeriod
from calspine.calendar.holidays import HolidayIndex
from calspine.calendar.retail import RetailPeriod
from calspine.calendar.spine import CalendarDate
from calspine.calendar.standard import StandardAttributes


@dataclass(frozen=True)
class UnifiedCalendarRow:
    """One composed calendar row."""

    calendar_date: CalendarDate
    standard: StandardAttributes | None
    fiscal: FiscalPeriod | None = None
    retail: Mapping[str, RetailPeriod | None] = field(default_factory=dict)
    holiday_jurisdictions: frozenset[str] = frozenset()
    holiday_names: tuple[str, ...] = ()
    holidays_known: bool = True
    is_weekday: bool = True
    is_trading_day: bool = True

    @property
    def date(self) -> date:
        return self.calendar_date.date

    @property
    def date_key(self) -> int:
        return self.calendar_date.date_key

    @property
    def instant(self) -> datetime:
        return self.calendar_date.instant

    @property
    def is_holiday(self) -> bool:
        """Holiday in at least one jurisdiction."""
        return bool(self.holiday_jurisdictions)

    def is_holiday_in(self, jurisdiction: str) -> bool:
        return jurisdiction.upper() in self.holiday_jurisdictions

    def retail_period(self, pattern: str | None = None) -> RetailPeriod | None:
        """Retail attributes for ``pattern``, or for the first requested pattern."""
        if pattern is None:
            return next(iter(self.retail.values()), None)
        return self.retail.get(str(pattern).replace("-", ""))

    def to_record(self) -> dict[str, Any]:
        """Flat, JSON-friendly record for export and fingerprinting."""
        record: dict[str, Any] = {
            "date_key": self.date_key,
            "date": self.date.isoformat(),
            "instant": self.instant.isoformat(),
            "grain": self.calendar_date.grain.value,
        }
        if self.standard is not None:
            record.update(_plain(asdict(self.standard)))
        if self.fiscal is not None:
            record.update(_plain(asdict(self.fiscal)))
        for pattern, period in self.retail.items():
            if period is not None:
                record.update({f"r{pattern}_{k}": v for k, v in _plain(asdict(period)).items() if k != "pattern"})
        record.update(
            {
                "holiday_jurisdictions": sorted(self.holiday_jurisdictions),
                "holiday_names": list(self.holiday_names),
                "holidays_known": self.holidays_known,
                "is_holiday": self.is_holiday,
                "is_weekday": self.is_weekday,
                "is_trading_day": self.is_trading_day,
            }
        )
        return record


def _plain(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, date) else v for k, v in values.items()}


def compose(
    entries: Sequence[CalendarDate],
    standard: Sequence[StandardAttributes | None],
    fiscal: Sequence[FiscalPeriod | None] | None = None,
    retail: Mapping[str, Sequence[RetailPeriod | None]] | None = None,
    holidays: HolidayIndex | None = None,
) -> list[UnifiedCalendarRow]:
    """
    Zip derived columns into rows.

    Every column must be aligned with ``entries``. ``holidays=None`` means the
    holiday source was unavailable.
    """
    retail = retail or {}
    for name, column in [("standard", standard), ("fiscal", fiscal), *retail.items()]:
        if column is not None and len(column) != len(entries):
            raise ValueError(f"column {name!r} has {len(column)} values for {len(entries)} dates")

    holidays_known = holidays is not None
    index = holidays or HolidayIndex()

    rows = []
    for i, entry in enumerate(entries):
        d = entry.date
        jurisdictions = index.jurisdictions_on(d)
        is_weekday = d.weekday() < 5
        rows.append(
            UnifiedCalendarRow(
                calendar_date=entry,
                standard=standard[i],
                fiscal=fiscal[i] if fiscal is not None else None,
                retail={pattern: column[i] for pattern, column in retail.items()},
                holiday_jurisdictions=jurisdictions,
                holiday_names=index.names_on(d),
                holidays_known=holidays_known,
                is_weekday=is_weekday,
                is_trading_day=is_weekday and not jurisdictions,
            )
        )
    return rows


__all__ = ["UnifiedCalendarRow", "compose"]
