"""Tests for build orchestration: step outcomes, failure isolation, publishing."""

from datetime import date

import pytest

import calspine.calendar.build as build_module
from calspine.calendar import BuildStatus, CalendarStore, StepStatus, build_calendar
from calspine.calendar.standard import derive_standard
from calspine.core.errors import CalendarError

SMALL = {"start": "2024-02-01", "end": "2024-03-31", "fiscal_year_start_month": 7}


class TestSuccessfulBuild:
    def test_step_sequence(self):
        result = build_calendar(SMALL, build_id="b-1")
        assert result.status is BuildStatus.SUCCESS
        assert result.success
        assert result.build_id == "b-1"
        assert [s.name for s in result.steps] == [
            "validate_config",
            "generate_spine",
            "load_holidays",
            "derive_standard",
            "derive_fiscal",
            "derive_retail:445",
            "compose",
        ]
        assert result.step("load_holidays").status is StepStatus.SKIPPED
        assert result.step("compose").row_count == 60
        assert result.errors == []

    def test_dataset_rows(self):
        result = build_calendar(SMALL)
        dataset = result.dataset
        assert len(dataset) == 60
        assert dataset.start_date == date(2024, 2, 1)
        assert dataset.end_date == date(2024, 3, 31)
        row = dataset.lookup(date(2024, 2, 29))
        assert row.fiscal.fiscal_year == 2024
        assert row.holidays_known
        assert not row.is_holiday

    def test_idempotent(self):
        first = build_calendar(SMALL).dataset
        second = build_calendar(SMALL).dataset
        assert first.fingerprint == second.fingerprint
        assert first.to_records() == second.to_records()

    def test_different_config_different_fingerprint(self):
        base = build_calendar(SMALL).dataset
        other = build_calendar({**SMALL, "fiscal_year_start_month": 10}).dataset
        assert base.fingerprint != other.fingerprint

    def test_holidays_applied(self, nsw_source):
        result = build_calendar({"start": "2024-01-01", "end": "2024-03-31"}, holiday_source=nsw_source)
        assert result.status is BuildStatus.SUCCESS
        assert result.step("load_holidays").row_count == 4
        row = result.dataset.lookup(date(2024, 1, 26))
        assert row.is_holiday_in("NSW")
        assert not row.is_holiday_in("VIC")
        assert not row.is_trading_day

    def test_to_dict(self):
        payload = build_calendar(SMALL).to_dict()
        assert payload["status"] == "SUCCESS"
        assert payload["dataset"]["rows"] == 60
        assert payload["dataset"]["start"] == "2024-02-01"
        assert len(payload["dataset"]["fingerprint"]) == 64
        assert payload["config"]["fiscal_year_start_month"] == 7
        assert len(payload["config_hash"]) == 16
        assert payload["failed_steps"] == []
        assert payload["duration_seconds"] >= 0


class TestLabelScenarios:
    def test_july_fiscal_year_start(self):
        result = build_calendar({"start": "2020-06-01", "end": "2020-07-31", "fiscal_year_start_month": 7})
        assert result.status is BuildStatus.SUCCESS
        row = result.dataset.lookup(date(2020, 7, 1))
        assert row.fiscal.fiscal_year == 2021
        assert row.fiscal.fiscal_year_name == "FY2021"
        assert row.fiscal.is_fiscal_year_start
        assert result.dataset.lookup(date(2020, 6, 30)).fiscal.fiscal_year == 2020

    def test_january_fiscal_year_ends_in_label(self):
        result = build_calendar({"start": "2020-06-01", "end": "2020-06-30"})
        fiscal = result.dataset.lookup(date(2020, 6, 15)).fiscal
        assert fiscal.fiscal_year == 2021
        assert fiscal.fiscal_year_start_date == date(2020, 1, 1)

    def test_retail_week_13_is_month_3(self):
        config = {
            "start": "2023-02-01",
            "end": "2023-05-31",
            "retail_patterns": ["445"],
            "retail_anchor_month": 1,
            "retail_week_start_day": 0,
        }
        result = build_calendar(config)
        assert result.status is BuildStatus.SUCCESS
        first = result.dataset.lookup(date(2023, 2, 5)).retail_period("445")
        assert first.retail_year == 2023
        assert first.is_retail_year_start
        week_13 = result.dataset.lookup(date(2023, 4, 30)).retail_period("445")
        assert week_13.retail_year_name == "R2023"
        assert week_13.retail_week == 13
        assert week_13.retail_month == 3
        assert result.dataset.lookup(date(2023, 2, 4)).retail_period("445").retail_year == 2022


class TestSkippedSteps:
    def test_month_grain_skips_retail(self):
        result = build_calendar({"start": "2024-01-01", "end": "2024-12-31", "grain": "MONTH"})
        assert result.status is BuildStatus.SUCCESS
        assert len(result.dataset) == 12
        assert result.step("derive_retail:445").status is StepStatus.SKIPPED
        assert result.dataset.lookup(date(2024, 6, 1)).retail == {}

    def test_fiscal_off(self):
        result = build_calendar({**SMALL, "include_fiscal": False})
        assert result.status is BuildStatus.SUCCESS
        assert result.step("derive_fiscal").status is StepStatus.SKIPPED
        assert result.dataset.lookup(date(2024, 3, 1)).fiscal is None

    def test_retail_off_for_each_pattern(self):
        result = build_calendar({**SMALL, "retail_patterns": ["445", "544"], "include_retail": False})
        assert result.step("derive_retail:445").status is StepStatus.SKIPPED
        assert result.step("derive_retail:544").status is StepStatus.SKIPPED


class TestConfigurationFailures:
    def test_end_before_start(self):
        result = build_calendar({"start": "2024-12-31", "end": "2024-01-01"})
        assert result.status is BuildStatus.ERROR
        assert result.dataset is None
        assert result.step("validate_config").status is StepStatus.FAILED
        assert result.errors[0]["category"] == "CONFIG"
        assert result.completed_at is not None

    def test_unknown_key(self):
        result = build_calendar({**SMALL, "fiscal_start": 7})
        assert result.status is BuildStatus.ERROR
        assert "fiscal_start" in result.errors[0]["message"]

    def test_spine_bound(self):
        result = build_calendar({"start": "2024-01-01", "end": "2024-12-31", "grain": "MINUTE", "max_spine_entries": 1000})
        assert result.status is BuildStatus.ERROR
        assert "max_spine_entries" in result.errors[0]["message"]

    def test_failed_build_not_published(self):
        store = CalendarStore()
        build_calendar({"start": "2024-12-31", "end": "2024-01-01"}, store=store)
        with pytest.raises(CalendarError):
            store.current()


class TestPartialBuilds:
    def test_holiday_source_failure(self, failing_source):
        result = build_calendar(SMALL, holiday_source=failing_source)
        assert result.status is BuildStatus.PARTIAL
        assert result.dataset is not None
        assert result.step("load_holidays").status is StepStatus.FAILED
        assert result.errors[0]["category"] == "UPSTREAM"
        assert len(result.warnings) == 1
        rows = list(result.dataset)
        assert all(not row.holidays_known for row in rows)
        assert all(row.is_trading_day == row.is_weekday for row in rows)

    def test_single_date_failure_is_isolated(self, monkeypatch):
        def flaky(entry):
            if entry.date == date(2024, 2, 29):
                raise ValueError("boom")
            return derive_standard(entry)

        monkeypatch.setattr(build_module, "derive_standard", flaky)
        result = build_calendar(SMALL)

        assert result.status is BuildStatus.PARTIAL
        step = result.step("derive_standard")
        assert step.status is StepStatus.PARTIAL
        assert step.row_count == 59
        assert step.errors[0]["context"]["calendar_date"] == "2024-02-29"
        assert result.failed_steps == ["derive_standard"]

        assert result.dataset.lookup(date(2024, 2, 29)).standard is None
        assert result.dataset.lookup(date(2024, 2, 28)).standard is not None
        assert result.dataset.lookup(date(2024, 2, 29)).fiscal is not None

    def test_step_failing_for_every_date(self, monkeypatch):
        def broken(entry):
            raise ValueError("boom")

        monkeypatch.setattr(build_module, "derive_standard", broken)
        result = build_calendar(SMALL)
        assert result.status is BuildStatus.PARTIAL
        assert result.step("derive_standard").status is StepStatus.FAILED
        assert result.step("derive_fiscal").status is StepStatus.SUCCESS
        assert all(row.standard is None for row in result.dataset)

    def test_unexpected_failure_is_reported(self, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("zip mismatch")

        monkeypatch.setattr(build_module, "compose", explode)
        result = build_calendar(SMALL)
        assert result.status is BuildStatus.ERROR
        assert result.dataset is None
        assert result.step("compose").status is StepStatus.FAILED
        assert result.errors[-1]["category"] == "INTERNAL"


class TestPublishing:
    def test_publish_to_store(self):
        store = CalendarStore()
        result = build_calendar(SMALL, store=store)
        assert store.current() is result.dataset

    def test_publish_replaces_snapshot(self):
        store = CalendarStore()
        build_calendar(SMALL, store=store)
        second = build_calendar({**SMALL, "end": "2024-04-30"}, store=store)
        assert store.current() is second.dataset
        assert store.current().end_date == date(2024, 4, 30)
