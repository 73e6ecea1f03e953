"""
calspine logging - structured, build-aware logging.

Usage:
    from calspine.logging import configure_logging, get_logger, log_step

    configure_logging()
    log = get_logger(__name__)

    with log_step("calendar.derive_retail", pattern="445"):
        derive()
"""

from calspine.logging.config import configure_logging, is_configured
from calspine.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    push_context,
)
from calspine.logging.timing import TimingResult, log_step

__all__ = [
    "configure_logging",
    "is_configured",
    "LogContext",
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "push_context",
    "TimingResult",
    "log_step",
]
