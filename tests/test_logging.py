"""
Tests for the logging module.

Tests verify:
- Build context values are merged into log events
- log_step pushes and restores the step context
- Timing metrics are recorded
"""

import pytest

from calspine.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    is_configured,
    log_step,
    push_context,
)
from calspine.logging.context import add_context_processor


class TestLogContext:
    """Test LogContext dataclass."""

    def test_to_dict_excludes_none(self):
        ctx = LogContext(build_id="b-1", step=None)
        d = ctx.to_dict()
        assert d == {"build_id": "b-1"}

    def test_merge_creates_new_context(self):
        ctx1 = LogContext(build_id="b-1")
        ctx2 = ctx1.merge(pattern="445")

        assert ctx1.pattern is None
        assert ctx2.build_id == "b-1"
        assert ctx2.pattern == "445"

    def test_merge_ignores_unknown_keys(self):
        ctx = LogContext().merge(not_a_field="x")
        assert ctx.to_dict() == {}


class TestContextManagement:
    """Test context bind/get/clear operations."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_context_merges(self):
        bind_context(build_id="b-1")
        bind_context(grain="DAY")
        ctx = get_context()

        assert ctx.build_id == "b-1"
        assert ctx.grain == "DAY"

    def test_clear_context_resets(self):
        bind_context(build_id="b-1")
        clear_context()
        assert get_context().build_id is None

    def test_push_context_restores(self):
        bind_context(build_id="b-1")
        token = push_context(timezone="Australia/Adelaide")
        assert get_context().timezone == "Australia/Adelaide"
        token.restore()
        assert get_context().timezone is None
        assert get_context().build_id == "b-1"

    def test_processor_adds_context_without_overwriting(self):
        bind_context(build_id="b-1", step="compose")
        event = add_context_processor(None, "info", {"event": "x", "step": "explicit"})
        assert event["build_id"] == "b-1"
        assert event["step"] == "explicit"


class TestLogStep:
    """Test log_step context manager."""

    def setup_method(self):
        clear_context()
        configure_logging(level="DEBUG", force=True)

    def teardown_method(self):
        clear_context()

    def test_configured(self):
        assert is_configured()

    def test_log_step_sets_step_context(self):
        with log_step("calendar.derive_fiscal"):
            assert get_context().step == "calendar.derive_fiscal"
            assert get_context().span_id is not None

        assert get_context().step is None

    def test_log_step_adds_metrics(self):
        with log_step("calendar.compose", rows_in=10) as timer:
            timer.add_metric("rows_out", 10)

        log_dict = timer.to_log_dict()
        assert log_dict["rows_in"] == 10
        assert log_dict["rows_out"] == 10
        assert log_dict["duration_ms"] >= 0

    def test_log_step_reraises_and_restores(self):
        with pytest.raises(ValueError):
            with log_step("calendar.derive_retail"):
                raise ValueError("boom")

        assert get_context().step is None
