"""Tests for calspine.core.result module."""

import pytest

from calspine.core.errors import CalendarError, DerivationError, UpstreamDataError
from calspine.core.result import (
    Err,
    Ok,
    collect_all_errors,
    try_result,
    try_result_with,
)


class TestOk:
    def test_accessors(self):
        result = Ok(42)
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42

    def test_map_and_flat_map(self):
        assert Ok(2).map(lambda x: x * 3).unwrap() == 6
        assert Ok(2).flat_map(lambda x: Ok(x + 1)).unwrap() == 3
        assert Ok(2).flat_map(lambda x: Err(ValueError("no"))).is_err()

    def test_inspect_calls_function(self):
        seen = []
        Ok("row").inspect(seen.append)
        assert seen == ["row"]

    def test_to_dict(self):
        assert Ok(1).to_dict() == {"ok": True, "value": 1}


class TestErr:
    def test_unwrap_raises_error(self):
        error = UpstreamDataError("down")
        with pytest.raises(UpstreamDataError):
            Err(error).unwrap()

    def test_map_is_noop(self):
        error = ValueError("bad")
        result = Err(error).map(lambda x: x + 1)
        assert result.is_err()
        assert result.error is error

    def test_map_err_transforms(self):
        result = Err(ValueError("bad")).map_err(lambda e: DerivationError(str(e)))
        assert isinstance(result.error, DerivationError)

    def test_to_dict_uses_error_payload(self):
        payload = Err(UpstreamDataError("down")).to_dict()
        assert payload["ok"] is False
        assert payload["error"]["category"] == "UPSTREAM"


class TestPatternMatching:
    def test_match_ok_and_err(self):
        def describe(result):
            match result:
                case Ok(value):
                    return f"ok:{value}"
                case Err(error):
                    return f"err:{error}"

        assert describe(Ok(5)) == "ok:5"
        assert describe(Err(ValueError("x"))) == "err:x"


class TestTryResult:
    def test_success(self):
        assert try_result(lambda: 7) == Ok(7)

    def test_failure_is_captured(self):
        result = try_result(lambda: 1 / 0)
        assert isinstance(result.error, ZeroDivisionError)

    def test_with_mapper(self):
        result = try_result_with(lambda: int("x"), lambda e: DerivationError(f"mapped: {e}"))
        assert isinstance(result.error, DerivationError)

    def test_calendar_errors_pass_through_unmapped(self):
        def fail():
            raise UpstreamDataError("down")

        result = try_result_with(fail, lambda e: DerivationError("mapped"))
        assert isinstance(result.error, UpstreamDataError)


class TestCollections:
    def test_collect_all_ok(self):
        assert collect_all_errors([Ok(1), Ok(2)]) == Ok([1, 2])

    def test_collect_single_error_is_returned_as_is(self):
        error = ValueError("one")
        assert collect_all_errors([Ok(1), Err(error)]).error is error

    def test_collect_many_errors_are_aggregated(self):
        result = collect_all_errors([Err(ValueError("a")), Ok(1), Err(ValueError("b"))])
        assert isinstance(result.error, CalendarError)
        assert result.error.context.metadata["error_count"] == 2
        assert result.error.context.metadata["errors"] == ["a", "b"]
