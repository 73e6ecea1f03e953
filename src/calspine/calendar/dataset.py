"""
Composed calendar snapshots.

A ``CalendarDataset`` is the immutable output of one build: its rows in spine
order, a date-key index, and a trading-day index (one entry per distinct
civil date, with a running trading-day count) that business-day arithmetic
reads. Rebuilding never mutates a dataset; it produces a new one.

``CalendarStore`` holds the snapshot readers should use. ``publish`` swaps the
reference under a lock once a build has completed, so a reader sees either the
old or the new complete dataset.

Usage:
    result = build_calendar(config)
    default_store.publish(result.dataset)

    row = default_store.current().lookup(20240229)
"""

from __future__ import annotations

import bisect
import threading
from collections.abc import Iterator, Sequence
from datetime import date
from functools import cached_property
from typing import Any

from calspine.calendar.composer import UnifiedCalendarRow
from calspine.calendar.config import CalendarConfig
from calspine.calendar.dates import date_key as to_date_key
from calspine.core.errors import CalendarError, RangeError
from calspine.core.hashing import fingerprint_records
from calspine.logging import get_logger

log = get_logger(__name__)


class CalendarDataset:
    """Immutable, ordered set of composed rows for one build."""

    def __init__(self, rows: Sequence[UnifiedCalendarRow], config: CalendarConfig | None = None):
        self._rows: tuple[UnifiedCalendarRow, ...] = tuple(rows)
        self.config = config

        by_key: dict[int, list[int]] = {}
        for position, row in enumerate(self._rows):
            by_key.setdefault(row.date_key, []).append(position)
        self._by_key = {key: tuple(positions) for key, positions in by_key.items()}

        # trading-day index over distinct dates in ascending order
        self._dates: list[date] = []
        self._running: list[int] = []
        count = 0
        for key in sorted(self._by_key):
            row = self._rows[self._by_key[key][0]]
            count += row.is_trading_day
            self._dates.append(row.date)
            self._running.append(count)

    # -- collection protocol ------------------------------------------------

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[UnifiedCalendarRow]:
        return iter(self._rows)

    def __getitem__(self, position: int) -> UnifiedCalendarRow:
        return self._rows[position]

    def __repr__(self) -> str:
        if not self._rows:
            return "CalendarDataset(empty)"
        return f"CalendarDataset({self.start_date}..{self.end_date}, rows={len(self)})"

    @property
    def rows(self) -> tuple[UnifiedCalendarRow, ...]:
        return self._rows

    @property
    def start_date(self) -> date:
        self._require_rows()
        return self._dates[0]

    @property
    def end_date(self) -> date:
        self._require_rows()
        return self._dates[-1]

    @property
    def dates(self) -> Sequence[date]:
        """Distinct civil dates in ascending order."""
        return tuple(self._dates)

    @property
    def is_contiguous(self) -> bool:
        """Every date between start and end is present."""
        if not self._dates:
            return False
        return (self._dates[-1] - self._dates[0]).days + 1 == len(self._dates)

    def _require_rows(self) -> None:
        if not self._rows:
            raise RangeError("calendar dataset is empty")

    # -- lookup -------------------------------------------------------------

    def __contains__(self, value: object) -> bool:
        if isinstance(value, date):
            value = to_date_key(value)
        return value in self._by_key

    def lookup(self, key: int | date) -> UnifiedCalendarRow:
        """First row for a date key (or date); ``RangeError`` when absent."""
        return self.rows_for(key)[0]

    def rows_for(self, key: int | date) -> tuple[UnifiedCalendarRow, ...]:
        """All rows sharing a civil date (several for sub-day grains)."""
        if isinstance(key, date):
            key = to_date_key(key)
        positions = self._by_key.get(key)
        if positions is None:
            raise RangeError(f"date key {key} is not in the materialized calendar").with_context(
                calendar_date=str(key)
            )
        return tuple(self._rows[p] for p in positions)

    # -- trading-day index --------------------------------------------------

    def position(self, d: date) -> int:
        """Index of ``d`` in the trading-day index; ``RangeError`` when absent."""
        i = bisect.bisect_left(self._dates, d)
        if i == len(self._dates) or self._dates[i] != d:
            raise RangeError(
                f"{d.isoformat()} is outside the materialized calendar "
                f"({self._dates[0].isoformat() if self._dates else '-'}.."
                f"{self._dates[-1].isoformat() if self._dates else '-'})"
            ).with_context(calendar_date=d.isoformat())
        return i

    def date_at(self, position: int) -> date:
        return self._dates[position]

    def running_count(self, position: int) -> int:
        """Trading days from the first date up to and including ``position``."""
        return self._running[position]

    def count_before(self, position: int) -> int:
        """Trading days strictly before ``position``."""
        return self._running[position - 1] if position > 0 else 0

    def is_trading_position(self, position: int) -> bool:
        return self._running[position] > self.count_before(position)

    def position_of_count(self, count: int, lo: int = 0) -> int | None:
        """First position at or after ``lo`` whose running count equals ``count``."""
        i = bisect.bisect_left(self._running, count, lo)
        if i < len(self._running) and self._running[i] == count:
            return i
        return None

    # -- export -------------------------------------------------------------

    def to_records(self) -> list[dict[str, Any]]:
        return [row.to_record() for row in self._rows]

    @cached_property
    def fingerprint(self) -> str:
        """SHA-256 over every row record; equal builds share a fingerprint."""
        return fingerprint_records(row.to_record() for row in self._rows)


class CalendarStore:
    """Holds the published calendar snapshot."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dataset: CalendarDataset | None = None

    def publish(self, dataset: CalendarDataset) -> CalendarDataset | None:
        """Swap in a completed dataset; returns the one it replaced."""
        with self._lock:
            previous, self._dataset = self._dataset, dataset
        log.info("calendar.snapshot.published", rows=len(dataset), replaced=previous is not None)
        return previous

    def current(self) -> CalendarDataset:
        with self._lock:
            dataset = self._dataset
        if dataset is None:
            raise CalendarError("no calendar has been published")
        return dataset

    def clear(self) -> None:
        with self._lock:
            self._dataset = None


default_store = CalendarStore()


__all__ = ["CalendarDataset", "CalendarStore", "default_store"]
