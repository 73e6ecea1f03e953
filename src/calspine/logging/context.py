"""
Logging context management using contextvars.

Build-scoped values (build id, step, grain, retail pattern, timezone) are kept
in a context variable and merged into every log event by a structlog
processor, so derivation code never passes them around explicitly.
"""

from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


@dataclass
class LogContext:
    """
    Context attached to all log entries.

    Build identifiers:
        build_id: Identifier of the running calendar build
        step: Current build step name

    Tracing:
        span_id: Current span identifier
        parent_span_id: Parent span for nested steps

    Calendar context:
        grain: Spine grain of the build
        pattern: Retail pattern being derived
        timezone: Timezone being evaluated
    """

    build_id: str | None = None
    step: str | None = None

    span_id: str | None = None
    parent_span_id: str | None = None

    grain: str | None = None
    pattern: str | None = None
    timezone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("calspine_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context and return it."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Reset the context to empty."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self):
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(step="derive_fiscal")
        try:
            derive()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    return _ContextToken(_log_context.set(updated))


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that adds the build context to every log entry."""
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
