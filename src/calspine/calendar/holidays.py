"""
Holiday collaborator interface and sources.

The engine never computes public holidays itself for a jurisdiction it is
asked about; it consumes ``HolidayRecord`` values from a ``HolidaySource``.
Sources are registered by type name so a build (or the CLI) can resolve them
from configuration:

- ``static``: records supplied in memory
- ``json``: a JSON file of records
- ``us_federal``: rule-based US federal holidays

A source is asked once per build for the build's date range. Records outside
that range are discarded. Any failure becomes an ``UpstreamDataError``.

JSON file formats accepted::

    [{"date": "2024-01-01", "name": "New Year's Day", "jurisdiction": "NSW"}, ...]

    {"jurisdiction": "US", "holidays": [{"date": "2024-07-04", "name": "Independence Day"}]}
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import partial
from pathlib import Path
from typing import Any

from calspine.core.errors import UpstreamDataError
from calspine.core.result import Err, Ok, Result, collect_all_errors, try_result
from calspine.logging import get_logger

log = get_logger(__name__)

DEFAULT_JURISDICTION = "NATIONAL"


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True, slots=True)
class HolidayRecord:
    """A single holiday in one jurisdiction."""

    date: date
    name: str
    jurisdiction: str = DEFAULT_JURISDICTION

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], jurisdiction: str | None = None) -> "HolidayRecord":
        """Create a record from a JSON mapping; raises ``UpstreamDataError`` if malformed."""
        try:
            raw_date = d["date"]
            holiday_date = date.fromisoformat(raw_date) if isinstance(raw_date, str) else raw_date
            if not isinstance(holiday_date, date):
                raise TypeError(f"date must be an ISO string, got {type(raw_date).__name__}")
            name = str(d["name"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamDataError(f"malformed holiday record {dict(d)!r}: {e}", cause=e) from e
        return cls(
            date=holiday_date,
            name=name,
            jurisdiction=str(d.get("jurisdiction") or jurisdiction or DEFAULT_JURISDICTION).upper(),
        )


@dataclass(frozen=True)
class HolidayIndex:
    """Holiday records grouped by date for exact-date matching."""

    jurisdictions: Mapping[date, frozenset[str]] = field(default_factory=dict)
    names: Mapping[date, tuple[str, ...]] = field(default_factory=dict)
    record_count: int = 0

    @classmethod
    def from_records(cls, records: Iterable[HolidayRecord]) -> "HolidayIndex":
        jurisdictions: dict[date, set[str]] = {}
        names: dict[date, list[str]] = {}
        count = 0
        for record in records:
            count += 1
            jurisdictions.setdefault(record.date, set()).add(record.jurisdiction)
            day_names = names.setdefault(record.date, [])
            if record.name not in day_names:
                day_names.append(record.name)
        return cls(
            jurisdictions={d: frozenset(j) for d, j in jurisdictions.items()},
            names={d: tuple(sorted(n)) for d, n in names.items()},
            record_count=count,
        )

    def jurisdictions_on(self, d: date) -> frozenset[str]:
        return self.jurisdictions.get(d, frozenset())

    def names_on(self, d: date) -> tuple[str, ...]:
        return self.names.get(d, ())

    def __len__(self) -> int:
        return len(self.jurisdictions)


# =============================================================================
# SOURCE ABSTRACTION
# =============================================================================


class HolidaySource(ABC):
    """Abstract base for holiday sources."""

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return source type identifier."""
        ...

    @property
    def name(self) -> str:
        return self.source_type

    @abstractmethod
    def fetch(self, start: date, end: date) -> list[HolidayRecord]:
        """Return holiday records for ``start``..``end`` inclusive."""
        ...


SOURCE_REGISTRY: dict[str, type[HolidaySource]] = {}


def register_source(name: str):
    """Decorator to register a holiday source type."""
    def decorator(cls: type[HolidaySource]) -> type[HolidaySource]:
        SOURCE_REGISTRY[name] = cls
        return cls
    return decorator


def resolve_source(source_type: str = "json", **kwargs) -> HolidaySource:
    """Resolve a holiday source by type with parameters."""
    if source_type not in SOURCE_REGISTRY:
        available = ", ".join(sorted(SOURCE_REGISTRY))
        raise ValueError(f"Unknown holiday source type: {source_type}. Available: {available}")
    return SOURCE_REGISTRY[source_type](**kwargs)


@register_source("static")
class StaticHolidaySource(HolidaySource):
    """Holidays supplied in memory."""

    def __init__(self, records: Iterable[HolidayRecord | Mapping[str, Any]] = ()):
        self.records = [r if isinstance(r, HolidayRecord) else HolidayRecord.from_dict(r) for r in records]

    @property
    def source_type(self) -> str:
        return "static"

    def fetch(self, start: date, end: date) -> list[HolidayRecord]:
        return [r for r in self.records if start <= r.date <= end]


@register_source("json")
class JsonHolidaySource(HolidaySource):
    """
    JSON file holiday source.

    The file is read on every ``fetch`` so a rebuild picks up edits.
    """

    def __init__(self, file_path: Path | str | None = None, jurisdiction: str | None = None):
        if file_path is None:
            raise UpstreamDataError("file_path is required for JsonHolidaySource")
        self.file_path = Path(file_path)
        self.jurisdiction = jurisdiction

    @property
    def source_type(self) -> str:
        return "json"

    @property
    def name(self) -> str:
        return str(self.file_path)

    def fetch(self, start: date, end: date) -> list[HolidayRecord]:
        try:
            content = json.loads(self.file_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise UpstreamDataError(f"Holiday file not found: {self.file_path}", cause=e) from e
        except (OSError, json.JSONDecodeError) as e:
            raise UpstreamDataError(f"Cannot read holiday file {self.file_path}: {e}", cause=e) from e

        jurisdiction = self.jurisdiction
        if isinstance(content, dict):
            jurisdiction = jurisdiction or content.get("jurisdiction")
            content = content.get("holidays")
        if not isinstance(content, list):
            raise UpstreamDataError(f"Holiday file {self.file_path} has no list of holidays")

        parsed = collect_all_errors([try_result(partial(_parse_entry, item, jurisdiction)) for item in content])
        match parsed:
            case Err(error):
                raise UpstreamDataError(f"Holiday file {self.file_path} has bad entries: {error}", cause=error)
            case Ok(records):
                return [r for r in records if start <= r.date <= end]


def _parse_entry(item: Any, jurisdiction: str | None) -> HolidayRecord:
    if not isinstance(item, Mapping):
        raise UpstreamDataError(f"Holiday entry is not an object: {item!r}")
    return HolidayRecord.from_dict(item, jurisdiction=jurisdiction)


# =============================================================================
# RULE-BASED US FEDERAL HOLIDAYS
# =============================================================================


def _nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """nth ``weekday`` (0=Monday) of a month; ``n=-1`` for the last one."""
    if n > 0:
        first = date(year, month, 1)
        return first + timedelta(days=(weekday - first.weekday()) % 7, weeks=n - 1)
    last = date(year + (month == 12), month % 12 + 1, 1) - timedelta(days=1)
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def _observed(d: date) -> date:
    """Saturday holidays are observed Friday, Sunday holidays Monday."""
    if d.weekday() == 5:
        return d - timedelta(days=1)
    if d.weekday() == 6:
        return d + timedelta(days=1)
    return d


def us_federal_holidays(year: int) -> list[HolidayRecord]:
    """US federal holidays for ``year`` on their observed dates."""
    fixed = [
        (date(year, 1, 1), "New Year's Day"),
        (date(year, 7, 4), "Independence Day"),
        (date(year, 11, 11), "Veterans Day"),
        (date(year, 12, 25), "Christmas Day"),
    ]
    if year >= 2021:
        fixed.append((date(year, 6, 19), "Juneteenth National Independence Day"))
    floating = [
        (_nth_weekday_of_month(year, 1, 0, 3), "Martin Luther King Jr. Day"),
        (_nth_weekday_of_month(year, 2, 0, 3), "Washington's Birthday"),
        (_nth_weekday_of_month(year, 5, 0, -1), "Memorial Day"),
        (_nth_weekday_of_month(year, 9, 0, 1), "Labor Day"),
        (_nth_weekday_of_month(year, 10, 0, 2), "Columbus Day"),
        (_nth_weekday_of_month(year, 11, 3, 4), "Thanksgiving Day"),
    ]
    holidays = [(_observed(d), name) for d, name in fixed] + floating
    return sorted(
        (HolidayRecord(date=d, name=name, jurisdiction="US") for d, name in holidays),
        key=lambda r: r.date,
    )


@register_source("us_federal")
class UsFederalHolidaySource(HolidaySource):
    """Rule-based US federal holidays (jurisdiction ``US``)."""

    @property
    def source_type(self) -> str:
        return "us_federal"

    def fetch(self, start: date, end: date) -> list[HolidayRecord]:
        # observed New Year's Day can fall on Dec 31 of the previous year
        records = []
        for year in range(start.year, end.year + 2):
            records.extend(r for r in us_federal_holidays(year) if start <= r.date <= end)
        return records


# =============================================================================
# LOADING
# =============================================================================


def load_holidays(source: HolidaySource, start: date, end: date) -> Result[HolidayIndex]:
    """
    Fetch holidays for the build range and index them by date.

    Returns ``Err(UpstreamDataError)`` when the source fails; records outside
    ``start``..``end`` are dropped with a warning.
    """
    try:
        records = source.fetch(start, end)
    except UpstreamDataError as e:
        return Err(e.with_context(source_name=source.name, step="load_holidays"))
    except Exception as e:
        error = UpstreamDataError(f"Holiday source {source.name} failed: {e}", cause=e)
        return Err(error.with_context(source_name=source.name, step="load_holidays"))

    in_range = [r for r in records if start <= r.date <= end]
    dropped = len(records) - len(in_range)
    if dropped:
        log.warning("holidays.out_of_range_dropped", source=source.name, dropped=dropped)

    index = HolidayIndex.from_records(in_range)
    log.info("holidays.loaded", source=source.name, records=index.record_count, dates=len(index))
    return Ok(index)


__all__ = [
    "DEFAULT_JURISDICTION",
    "HolidayRecord",
    "HolidayIndex",
    "HolidaySource",
    "SOURCE_REGISTRY",
    "register_source",
    "resolve_source",
    "StaticHolidaySource",
    "JsonHolidaySource",
    "UsFederalHolidaySource",
    "us_federal_holidays",
    "load_holidays",
]
