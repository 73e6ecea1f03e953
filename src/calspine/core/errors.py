"""
Structured error types for calspine.

Every failure the calendar engine can report is a ``CalendarError`` carrying a
category, a retry flag, structured context and an optional chained cause.
Build steps never let these escape: the orchestrator catches them, wraps them
in ``Err`` values and aggregates them into the ``BuildResult``. Arithmetic and
lookup helpers raise them directly to the caller.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind the engine reports
    - **Nothing Retried:** Every calendar error is non-retryable by default
    - **Rich Context:** Errors carry the step, date and timezone involved
    - **Error Chaining:** Original exceptions survive as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       CalendarError                              │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigurationError   RangeError          UpstreamDataError     │
        │  (CONFIG, fatal)      (RANGE)             (UPSTREAM)            │
        │                            │                                     │
        │                       OutOfRangeError                            │
        │                                                                  │
        │  DerivationError      PartialStepFailure                         │
        │  (DERIVATION,         (DERIVATION,                               │
        │   one date)            one step)                                 │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConfigurationError("fiscal start day 31 invalid for month 2")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.with_context(step="validate_config").context.step
    'validate_config'

Guardrails:
    ❌ DON'T: Raise ConfigurationError after derivation has started
    ✅ DO: Validate the whole configuration up front

    ❌ DON'T: Swallow holiday source failures
    ✅ DO: Convert them to UpstreamDataError and report them in the build

Tags:
    error-handling, exception-hierarchy, error-context, calspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for classification and reporting.

    Attributes:
        CONFIG: Invalid build configuration (fatal)
        RANGE: Date outside the materialized calendar
        UPSTREAM: Holiday source unreachable or malformed
        DERIVATION: A derivation step or a single date failed
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    CONFIG = "CONFIG"
    RANGE = "RANGE"
    UPSTREAM = "UPSTREAM"
    DERIVATION = "DERIVATION"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        step: Build step in which the error occurred
        calendar_date: ISO date being derived or queried
        grain: Spine grain of the build
        timezone: Timezone involved, if any
        pattern: Retail pattern involved, if any
        source_name: Holiday source name
        metadata: Additional key-value pairs
    """

    step: str | None = None
    calendar_date: str | None = None
    grain: str | None = None
    timezone: str | None = None
    pattern: str | None = None
    source_name: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["step", "calendar_date", "grain", "timezone", "pattern", "source_name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CalendarError(Exception):
    """
    Base exception for all calspine errors.

    Subclasses set ``default_category`` and ``default_retryable``. Calendar
    derivation is deterministic, so nothing is retryable unless a caller says
    otherwise explicitly.

    Examples:
        >>> error = CalendarError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'CalendarError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CalendarError:
        """
        Add context to this error (fluent API).

        Usage:
            raise OutOfRangeError("past end").with_context(
                step="add_business_days",
                calendar_date="2024-12-31",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(CalendarError):
    """
    Invalid build configuration.

    Fatal: a build that hits this aborts before any derivation runs.
    """

    default_category = ErrorCategory.CONFIG

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.key = key
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.key:
            result["key"] = self.key
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# RANGE ERRORS
# =============================================================================


class RangeError(CalendarError):
    """A date falls outside the materialized calendar."""

    default_category = ErrorCategory.RANGE


class OutOfRangeError(RangeError):
    """Business-day arithmetic target lies beyond the materialized range."""

    pass


# =============================================================================
# UPSTREAM ERRORS
# =============================================================================


class UpstreamDataError(CalendarError):
    """Holiday source unreachable or returned malformed records."""

    default_category = ErrorCategory.UPSTREAM


# =============================================================================
# DERIVATION ERRORS
# =============================================================================


class DerivationError(CalendarError):
    """A single date failed one derivation; its attribute is left null."""

    default_category = ErrorCategory.DERIVATION


class PartialStepFailure(CalendarError):
    """
    One derivation step failed while the rest of the build continued.

    ``errors`` holds every underlying failure so they are reported together.
    """

    default_category = ErrorCategory.DERIVATION

    def __init__(
        self,
        message: str,
        *,
        errors: list[Exception] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error_count"] = len(self.errors)
        result["errors"] = [
            e.to_dict() if isinstance(e, CalendarError) else {"error_type": type(e).__name__, "message": str(e)}
            for e in self.errors[:20]
        ]
        return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, CalendarError):
        return error.category
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.DERIVATION
    if isinstance(error, (OSError, KeyError)):
        return ErrorCategory.UPSTREAM
    return ErrorCategory.UNKNOWN


def error_payload(error: Exception) -> dict[str, Any]:
    """Serialize any exception the way ``CalendarError.to_dict`` does."""
    if isinstance(error, CalendarError):
        return error.to_dict()
    return {
        "error_type": type(error).__name__,
        "message": str(error),
        "category": categorize_error(error).value,
        "retryable": False,
    }


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CalendarError",
    "ConfigurationError",
    "RangeError",
    "OutOfRangeError",
    "UpstreamDataError",
    "DerivationError",
    "PartialStepFailure",
    "categorize_error",
    "error_payload",
]
