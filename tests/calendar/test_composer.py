"""Tests for the unified composer."""

from datetime import date

import pytest

from calspine.calendar.composer import compose
from calspine.calendar.fiscal import FiscalCalendar
from calspine.calendar.holidays import HolidayIndex
from calspine.calendar.retail import RetailCalendar
from calspine.calendar.schema import Grain
from calspine.calendar.spine import generate_spine
from calspine.calendar.standard import derive_standard


@pytest.fixture
def january():
    return generate_spine(date(2024, 1, 1), date(2024, 1, 31), Grain.DAY)


class TestCompose:
    def test_holiday_and_trading_flags(self, january, nsw_source):
        index = HolidayIndex.from_records(nsw_source.records)
        rows = compose(january, [derive_standard(e) for e in january], holidays=index)
        by_day = {row.date.day: row for row in rows}

        new_year = by_day[1]
        assert new_year.is_holiday
        assert new_year.is_holiday_in("nsw")
        assert new_year.holiday_jurisdictions == frozenset({"NSW", "VIC"})
        assert new_year.is_weekday
        assert not new_year.is_trading_day

        saturday = by_day[6]
        assert not saturday.is_weekday
        assert not saturday.is_trading_day

        assert by_day[2].is_trading_day
        assert all(row.holidays_known for row in rows)

    def test_unknown_holidays(self, january):
        rows = compose(january, [derive_standard(e) for e in january], holidays=None)
        assert not rows[0].holidays_known
        assert not rows[0].is_holiday
        assert rows[0].is_trading_day

    def test_null_attribute_keeps_row(self, january):
        fiscal = [FiscalCalendar(7).derive(e) for e in january]
        fiscal[4] = None
        rows = compose(january, [derive_standard(e) for e in january], fiscal=fiscal)
        assert len(rows) == len(january)
        assert rows[4].fiscal is None
        assert rows[5].fiscal.fiscal_month == 7

    def test_misaligned_column_rejected(self, january):
        with pytest.raises(ValueError):
            compose(january, [derive_standard(e) for e in january[:-1]])

    def test_retail_per_pattern(self, january):
        retail = {p: [RetailCalendar(p).derive(e) for e in january] for p in ("445", "544")}
        rows = compose(january, [derive_standard(e) for e in january], retail=retail)
        row = rows[0]
        assert row.retail_period("445").pattern == "445"
        assert row.retail_period("5-4-4").pattern == "544"
        assert row.retail_period().pattern == "445"
        assert row.retail_period("454") is None

    def test_to_record_is_flat(self, january):
        retail = {"445": [RetailCalendar("445").derive(e) for e in january]}
        fiscal = [FiscalCalendar(7).derive(e) for e in january]
        (row, *_) = compose(january, [derive_standard(e) for e in january], fiscal=fiscal, retail=retail)
        record = row.to_record()
        assert record["date_key"] == 20240101
        assert record["date"] == "2024-01-01"
        assert record["month_name"] == "January"
        assert record["fiscal_year"] == 2024
        assert record["fiscal_year_start_date"] == "2023-07-01"
        assert "r445_retail_week" in record
        assert "r445_pattern" not in record
        assert record["holiday_jurisdictions"] == []
