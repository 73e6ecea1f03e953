"""
Shared pytest fixtures and configuration for calspine tests.

This module provides:
- Built calendar fixtures (plain, US federal holidays, fiscal July)
- Holiday sources for failure-path tests
- Settings and store isolation

Usage:
    def test_something(us_calendar):
        row = us_calendar.lookup(20240704)
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure calspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from calspine.calendar import (  # noqa: E402
    CalendarDataset,
    HolidayRecord,
    HolidaySource,
    StaticHolidaySource,
    UsFederalHolidaySource,
    build_calendar,
    default_store,
)
from calspine.core.errors import UpstreamDataError  # noqa: E402
from calspine.core.settings import clear_settings_cache  # noqa: E402


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Each test reads the environment afresh and never sees a stray .env."""
    for var in ("CALSPINE_LOG_LEVEL", "CALSPINE_LOG_FORMAT", "CALSPINE_HOLIDAY_FILE", "CALSPINE_DEFAULT_TIMEZONE"):
        monkeypatch.delenv(var, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def clean_store():
    """Reset the published calendar snapshot between tests."""
    default_store.clear()
    yield
    default_store.clear()


# =============================================================================
# Holiday Sources
# =============================================================================


class FailingHolidaySource(HolidaySource):
    """Holiday source that is always unreachable."""

    @property
    def source_type(self) -> str:
        return "failing"

    def fetch(self, start: date, end: date) -> list[HolidayRecord]:
        raise UpstreamDataError("holiday service unreachable")


@pytest.fixture
def failing_source() -> HolidaySource:
    return FailingHolidaySource()


@pytest.fixture
def nsw_source() -> StaticHolidaySource:
    """A few 2024 holidays in two jurisdictions."""
    return StaticHolidaySource(
        [
            HolidayRecord(date(2024, 1, 1), "New Year's Day", "NSW"),
            HolidayRecord(date(2024, 1, 1), "New Year's Day", "VIC"),
            HolidayRecord(date(2024, 1, 26), "Australia Day", "NSW"),
            HolidayRecord(date(2024, 3, 11), "Labour Day", "VIC"),
        ]
    )


# =============================================================================
# Built Calendars
# =============================================================================


@pytest.fixture(scope="session")
def us_calendar() -> CalendarDataset:
    """2023-2025 daily calendar with US federal holidays, fiscal year from July."""
    result = build_calendar(
        {
            "start": "2023-01-01",
            "end": "2025-12-31",
            "fiscal_year_start_month": 7,
            "retail_patterns": ["445", "454"],
        },
        holiday_source=UsFederalHolidaySource(),
    )
    assert result.dataset is not None
    return result.dataset


@pytest.fixture(scope="session")
def plain_calendar() -> CalendarDataset:
    """2024 daily calendar with no holidays: trading days are weekdays."""
    result = build_calendar({"start": "2024-01-01", "end": "2024-12-31"})
    assert result.dataset is not None
    return result.dataset
