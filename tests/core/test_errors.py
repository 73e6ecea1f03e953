"""Tests for calspine.core.errors module."""

import pytest

from calspine.core.errors import (
    CalendarError,
    ConfigurationError,
    DerivationError,
    ErrorCategory,
    ErrorContext,
    OutOfRangeError,
    PartialStepFailure,
    RangeError,
    UpstreamDataError,
    categorize_error,
    error_payload,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        """Create context with no fields set."""
        ctx = ErrorContext()
        assert ctx.step is None
        assert ctx.calendar_date is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_includes_set_fields(self):
        """to_dict includes only non-None fields plus metadata."""
        ctx = ErrorContext(step="derive_fiscal", calendar_date="2024-02-29", metadata={"n": 3})
        d = ctx.to_dict()
        assert d == {"step": "derive_fiscal", "calendar_date": "2024-02-29", "n": 3}
        assert "grain" not in d


class TestCalendarError:
    """Test the base error."""

    def test_defaults(self):
        error = CalendarError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "Something went wrong"

    def test_cause_is_chained(self):
        """The cause becomes __cause__ and appears in to_dict."""
        cause = ValueError("bad input")
        error = CalendarError("wrapped", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "bad input"

    def test_with_context_sets_known_fields_and_metadata(self):
        """Known context fields are set directly, others land in metadata."""
        error = OutOfRangeError("past end").with_context(step="add_business_days", n=5)
        assert error.context.step == "add_business_days"
        assert error.context.metadata == {"n": 5}

    def test_with_context_returns_same_instance(self):
        error = RangeError("x")
        assert error.with_context(calendar_date="2024-01-01") is error

    def test_repr(self):
        assert repr(UpstreamDataError("down")) == "UpstreamDataError('down', category=UPSTREAM)"


class TestHierarchy:
    """Each failure kind maps to its category."""

    @pytest.mark.parametrize(
        ("cls", "category"),
        [
            (ConfigurationError, ErrorCategory.CONFIG),
            (RangeError, ErrorCategory.RANGE),
            (OutOfRangeError, ErrorCategory.RANGE),
            (UpstreamDataError, ErrorCategory.UPSTREAM),
            (DerivationError, ErrorCategory.DERIVATION),
            (PartialStepFailure, ErrorCategory.DERIVATION),
        ],
    )
    def test_category(self, cls, category):
        error = cls("boom")
        assert isinstance(error, CalendarError)
        assert error.category is category
        assert error.retryable is False

    def test_out_of_range_is_range_error(self):
        assert issubclass(OutOfRangeError, RangeError)


class TestConfigurationError:
    def test_key_and_value_in_dict(self):
        error = ConfigurationError("bad month", key="fiscal_year_start_month", value=13)
        d = error.to_dict()
        assert d["error_type"] == "ConfigurationError"
        assert d["category"] == "CONFIG"
        assert d["key"] == "fiscal_year_start_month"
        assert d["value"] == "13"


class TestPartialStepFailure:
    def test_collects_underlying_errors(self):
        errors = [DerivationError("2024-01-01 failed"), ValueError("plain")]
        failure = PartialStepFailure("derive_retail:445 failed", errors=errors)
        d = failure.to_dict()
        assert d["error_count"] == 2
        assert d["errors"][0]["error_type"] == "DerivationError"
        assert d["errors"][1] == {"error_type": "ValueError", "message": "plain"}


class TestUtilities:
    def test_categorize_error(self):
        assert categorize_error(RangeError("x")) is ErrorCategory.RANGE
        assert categorize_error(ValueError("x")) is ErrorCategory.DERIVATION
        assert categorize_error(OSError("x")) is ErrorCategory.UPSTREAM
        assert categorize_error(RuntimeError("x")) is ErrorCategory.UNKNOWN

    def test_error_payload_for_plain_exception(self):
        payload = error_payload(RuntimeError("oops"))
        assert payload == {
            "error_type": "RuntimeError",
            "message": "oops",
            "category": "UNKNOWN",
            "retryable": False,
        }

    def test_error_payload_for_calendar_error(self):
        error = UpstreamDataError("down").with_context(source_name="us_federal")
        assert error_payload(error) == error.to_dict()
        assert error_payload(error)["context"] == {"source_name": "us_federal"}
