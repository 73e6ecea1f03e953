"""calspine.core -- errors, results, hashing and settings shared by every layer.

Architecture::

    errors.py     CalendarError hierarchy (ConfigurationError, RangeError, ...)
    result.py     Result[T] envelope (Ok / Err / try_result)
    hashing.py    Deterministic hashes and snapshot fingerprints
    settings.py   Environment-driven settings (pydantic-settings)
"""

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
)
from calspine.core.result import Err, Ok, Result, try_result

__all__ = [
    "CalendarError",
    "ConfigurationError",
    "DerivationError",
    "ErrorCategory",
    "ErrorContext",
    "OutOfRangeError",
    "PartialStepFailure",
    "RangeError",
    "UpstreamDataError",
    "Err",
    "Ok",
    "Result",
    "try_result",
]
