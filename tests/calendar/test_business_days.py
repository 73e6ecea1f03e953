"""Tests for business-day arithmetic and period projection."""

from datetime import date, timedelta

import pytest

from calspine.calendar.build import build_calendar
from calspine.calendar.business_days import (
    BusinessDayCalculator,
    add_business_days,
    count_business_days,
    is_business_day,
    same_day_previous_period,
)
from calspine.calendar.dataset import default_store
from calspine.calendar.dates import iter_days
from calspine.calendar.schema import PeriodUnit
from calspine.core.errors import CalendarError, ConfigurationError, OutOfRangeError, RangeError


@pytest.fixture(scope="module")
def calc(us_calendar):
    return BusinessDayCalculator(us_calendar)


class TestAddSubtract:
    def test_add_skips_holiday(self, calc):
        """2024-07-04 is Independence Day."""
        assert calc.add_business_days(date(2024, 7, 3), 1) == date(2024, 7, 5)

    def test_add_from_weekend(self, calc):
        assert calc.add_business_days(date(2024, 7, 6), 1) == date(2024, 7, 8)

    def test_add_zero_returns_start(self, calc):
        assert calc.add_business_days(date(2024, 7, 6), 0) == date(2024, 7, 6)

    def test_add_negative_delegates_to_subtract(self, calc):
        assert calc.add_business_days(date(2024, 7, 5), -1) == date(2024, 7, 3)

    def test_subtract_skips_holiday(self, calc):
        assert calc.subtract_business_days(date(2024, 7, 5), 1) == date(2024, 7, 3)

    def test_subtract_from_weekend(self, calc):
        assert calc.subtract_business_days(date(2024, 7, 7), 1) == date(2024, 7, 5)

    def test_add_beyond_range(self, calc):
        with pytest.raises(OutOfRangeError):
            calc.add_business_days(date(2025, 12, 29), 5)

    def test_subtract_before_range(self, calc):
        with pytest.raises(OutOfRangeError):
            calc.subtract_business_days(date(2023, 1, 4), 5)

    def test_date_outside_calendar(self, calc):
        with pytest.raises(RangeError):
            calc.add_business_days(date(2030, 1, 1), 1)

    def test_round_trip_for_trading_days(self, calc):
        """Subtracting what was added returns the original trading day."""
        for d in iter_days(date(2024, 6, 1), date(2024, 8, 31)):
            if not calc.is_business_day(d):
                continue
            for n in (1, 2, 5, 10, 21):
                assert calc.subtract_business_days(calc.add_business_days(d, n), n) == d


class TestCount:
    def test_single_day(self, calc):
        assert calc.count_business_days(date(2024, 7, 3), date(2024, 7, 3)) == 1
        assert calc.count_business_days(date(2024, 7, 4), date(2024, 7, 4)) == 0
        assert calc.count_business_days(date(2024, 7, 6), date(2024, 7, 6)) == 0

    def test_reversed_range_is_zero(self, calc):
        assert calc.count_business_days(date(2024, 7, 10), date(2024, 7, 1)) == 0

    def test_july_2024(self, calc):
        """23 weekdays in July 2024 less Independence Day."""
        assert calc.count_business_days(date(2024, 7, 1), date(2024, 7, 31)) == 22

    def test_additive_over_split(self, calc):
        a, b = date(2023, 3, 1), date(2025, 10, 15)
        total = calc.count_business_days(a, b)
        for m in (date(2023, 12, 31), date(2024, 7, 4), date(2025, 1, 1)):
            assert total == calc.count_business_days(a, m) + calc.count_business_days(m + timedelta(days=1), b)

    def test_count_matches_add(self, calc):
        start = date(2024, 1, 2)
        end = calc.add_business_days(start, 100)
        assert calc.count_business_days(start, end) == 101


class TestNextPrevious:
    def test_next_is_strict(self, calc):
        assert calc.next_business_day(date(2024, 7, 2)) == date(2024, 7, 3)
        assert calc.next_business_day(date(2024, 7, 3)) == date(2024, 7, 5)

    def test_previous_is_strict(self, calc):
        assert calc.previous_business_day(date(2024, 7, 5)) == date(2024, 7, 3)
        assert calc.previous_business_day(date(2024, 7, 8)) == date(2024, 7, 5)

    def test_next_at_end_of_range(self, calc):
        with pytest.raises(OutOfRangeError):
            calc.next_business_day(date(2025, 12, 31))

    def test_previous_at_start_of_range(self, calc):
        """2023-01-02 is the observed New Year's Day, so 2023-01-03 is the first trading day."""
        with pytest.raises(OutOfRangeError):
            calc.previous_business_day(date(2023, 1, 3))


class TestSameDayPreviousPeriod:
    @pytest.mark.parametrize(
        ("d", "unit", "n", "expected"),
        [
            (date(2023, 3, 31), PeriodUnit.MONTH, 1, date(2023, 2, 28)),
            (date(2024, 2, 29), PeriodUnit.YEAR, 1, date(2023, 2, 28)),
            (date(2024, 5, 31), PeriodUnit.MONTH, 1, date(2024, 4, 30)),
            (date(2024, 4, 30), PeriodUnit.MONTH, 1, date(2024, 3, 31)),
            (date(2024, 3, 15), PeriodUnit.MONTH, 13, date(2023, 2, 15)),
            (date(2024, 1, 30), PeriodUnit.MONTH, -1, date(2024, 2, 29)),
            (date(2024, 5, 15), PeriodUnit.QUARTER, 1, date(2024, 2, 14)),
            (date(2024, 6, 30), PeriodUnit.QUARTER, 1, date(2024, 3, 31)),
            (date(2024, 12, 31), PeriodUnit.YEAR, 1, date(2023, 12, 31)),
            (date(2024, 7, 4), PeriodUnit.WEEK, 1, date(2024, 6, 27)),
        ],
    )
    def test_projection(self, d, unit, n, expected):
        assert same_day_previous_period(d, unit, n) == expected

    def test_unit_by_name(self):
        assert same_day_previous_period(date(2023, 3, 31), "month", 1) == date(2023, 2, 28)

    def test_unknown_unit(self):
        with pytest.raises(ConfigurationError):
            same_day_previous_period(date(2023, 3, 31), "fortnight", 1)

    def test_business_variant_rolls_forward(self, calc):
        """2024-06-08 is a Saturday."""
        assert calc.same_business_day_previous_period(date(2024, 7, 8), PeriodUnit.MONTH, 1) == date(2024, 6, 10)
        assert calc.same_business_day_previous_period(date(2024, 7, 9), PeriodUnit.MONTH, 1) == date(2024, 6, 10)


class TestFiscalRetailProjection:
    def test_fiscal_month(self, calc):
        assert calc.same_day_previous_fiscal_period(date(2024, 1, 15), PeriodUnit.MONTH, 1) == date(2023, 12, 15)

    def test_fiscal_month_wraps_year(self, calc):
        assert calc.same_day_previous_fiscal_period(date(2023, 7, 10), PeriodUnit.MONTH, 1) == date(2023, 6, 10)

    def test_fiscal_month_clamps(self, calc):
        assert calc.same_day_previous_fiscal_period(date(2024, 3, 31), PeriodUnit.MONTH, 1) == date(2024, 2, 29)

    def test_fiscal_quarter_and_year(self, calc):
        assert calc.same_day_previous_fiscal_period(date(2024, 1, 15), PeriodUnit.QUARTER, 1) == date(2023, 10, 15)
        assert calc.same_day_previous_fiscal_period(date(2024, 1, 15), PeriodUnit.YEAR, 1) == date(2023, 1, 15)

    def test_retail_week(self, calc):
        assert calc.same_day_previous_retail_period(date(2024, 7, 4), PeriodUnit.WEEK, 1) == date(2024, 6, 27)

    def test_retail_month(self, calc):
        """Retail 2023 starts 2023-02-05; week 5 opens month 2 on 2023-03-05."""
        assert calc.same_day_previous_retail_period(date(2023, 3, 8), PeriodUnit.MONTH, 1, "445") == date(2023, 2, 8)

    def test_unbuilt_retail_pattern(self, calc):
        with pytest.raises(ConfigurationError):
            calc.same_day_previous_retail_period(date(2023, 3, 8), PeriodUnit.MONTH, 1, "544")


class TestModuleHelpers:
    def test_reads_published_snapshot(self, plain_calendar):
        default_store.publish(plain_calendar)
        assert add_business_days(date(2024, 1, 5), 1) == date(2024, 1, 8)
        assert is_business_day(date(2024, 1, 8))

    def test_explicit_dataset_wins(self, us_calendar):
        assert count_business_days(date(2024, 7, 1), date(2024, 7, 5), us_calendar) == 4

    def test_nothing_published(self):
        with pytest.raises(CalendarError):
            add_business_days(date(2024, 1, 5), 1)


class TestCalculatorRequirements:
    def test_month_grain_is_rejected(self):
        result = build_calendar({"start": "2024-01-01", "end": "2024-12-31", "grain": "MONTH"})
        with pytest.raises(ConfigurationError):
            BusinessDayCalculator(result.dataset)
