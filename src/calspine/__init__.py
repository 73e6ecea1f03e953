"""
calspine - business calendar derivation engine.

Builds one composed calendar row per date (standard, fiscal and retail
attributes plus holiday and trading-day flags) and answers business-day and
relative-period questions against it.

- calspine.core: errors, results, hashing, settings
- calspine.logging: structlog configuration and build context
- calspine.calendar: the derivation engine
- calspine.cli: the ``calspine`` command
"""

__version__ = "0.1.0"

from calspine.calendar import (  # noqa: E402
    BuildResult,
    CalendarConfig,
    CalendarDataset,
    build_calendar,
    default_store,
    evaluate_relative,
)

__all__ = [
    "__version__",
    "BuildResult",
    "CalendarConfig",
    "CalendarDataset",
    "build_calendar",
    "default_store",
    "evaluate_relative",
]
