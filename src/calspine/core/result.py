"""
Result type for explicit success/failure handling.

Each calendar build step returns a ``Result``: ``Ok`` wrapping its output or
``Err`` wrapping a ``CalendarError``. The orchestrator inspects them with
pattern matching and aggregates failures instead of unwinding on the first
exception.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────┐
        │                     Result[T]                            │
        │               (Ok[T] | Err[T])                           │
        ├─────────────────────────────────────────────────────────┤
        │   Ok(value)                  Err(error)                  │
        │   • unwrap() -> value        • unwrap() raises error     │
        │   • map(f) -> Ok(f(v))       • map(f) -> Err (no-op)     │
        │   • flat_map(f) -> f(v)      • map_err(f) -> Err(f(e))   │
        └─────────────────────────────────────────────────────────┘

Examples:
    >>> Ok(3).map(lambda x: x + 1).unwrap()
    4
    >>> Err(ValueError("bad")).unwrap_or(0)
    0

Usage:
    from calspine.core.result import Ok, Err, Result

    def load(source) -> Result[HolidayIndex]:
        ...

    match load(source):
        case Ok(index):
            compose(index)
        case Err(error):
            report(error)

Tags:
    result-pattern, error-handling, functional-programming, calspine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from calspine.core.errors import CalendarError, ErrorCategory, error_payload

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or default (always returns value for Ok)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform error if Err (no-op for Ok)."""
        return self

    def inspect(self, f: Callable[[T], None]) -> Result[T]:
        """Call f with value for side effects, return self."""
        f(self.value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Get default since this is Err."""
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def inspect(self, f: Callable[[T], None]) -> Result[T]:
        """No-op for Err."""
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": error_payload(self.error)}

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


# =============================================================================
# RESULT CONSTRUCTORS AND UTILITIES
# =============================================================================


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a zero-argument function and wrap its outcome.

    Returns ``Ok`` with the return value, or ``Err`` with whatever exception
    was raised.
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


def try_result_with(
    f: Callable[[], T],
    error_mapper: Callable[[Exception], Exception] | None = None,
) -> Result[T]:
    """
    Like ``try_result`` but maps caught exceptions to domain errors.

    Exceptions that are already ``CalendarError`` pass through unmapped.

    Args:
        f: Zero-argument callable that may raise exceptions
        error_mapper: Optional function to transform exceptions

    Returns:
        Ok[T] if f() succeeds, Err with the (mapped) exception otherwise
    """
    try:
        return Ok(f())
    except CalendarError as e:
        return Err(e)
    except Exception as e:
        if error_mapper:
            return Err(error_mapper(e))
        return Err(e)


def collect_all_errors(results: list[Result[T]]) -> Result[list[T]]:
    """
    Collect results, accumulating ALL errors.

    A single failure is returned as-is; several are aggregated into one
    ``CalendarError`` whose ``context.metadata["errors"]`` lists every message.
    """
    values = []
    errors = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err(error):
                errors.append(error)

    if errors:
        if len(errors) == 1:
            return Err(errors[0])
        messages = [str(e) for e in errors]
        aggregated = CalendarError(
            f"Multiple errors ({len(errors)}): {'; '.join(messages[:3])}{'...' if len(messages) > 3 else ''}",
            category=ErrorCategory.DERIVATION,
        )
        aggregated.context.metadata["error_count"] = len(errors)
        aggregated.context.metadata["errors"] = messages
        return Err(aggregated)

    return Ok(values)


__all__ = [
    "Result",
    "Ok",
    "Err",
    "try_result",
    "try_result_with",
    "collect_all_errors",
]
