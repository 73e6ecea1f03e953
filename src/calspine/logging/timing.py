"""
Timing utilities for build steps.

``log_step`` wraps a build step: it pushes the step name and a fresh span id
into the log context, logs ``<event>.start`` at DEBUG and ``<event>.end`` with
``duration_ms`` when the block exits. Exceptions are logged as
``<event>.error`` and re-raised.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from calspine.logging.context import get_context, get_logger, push_context


def _generate_span_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Result of a timed block."""

    step: str
    span_id: str = field(default_factory=_generate_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    def stop(self) -> "TimingResult":
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_ms(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the end log."""
        self.metrics[key] = value
        return self

    def to_log_dict(self) -> dict[str, Any]:
        result = {"duration_ms": round(self.duration_ms, 2), "span_id": self.span_id}
        if self.parent_span_id:
            result["parent_span_id"] = self.parent_span_id
        result.update(self.metrics)
        return result


@contextmanager
def log_step(event: str, level: str = "info", **extra_metrics) -> Iterator[TimingResult]:
    """
    Log a step's start and end with timing.

    Usage:
        with log_step("calendar.derive_fiscal", rows_in=731) as timer:
            rows = derive(...)
            timer.add_metric("failed", 0)
    """
    log = get_logger("calspine.timing")
    parent_span = get_context().span_id
    timer = TimingResult(step=event, parent_span_id=parent_span, metrics=dict(extra_metrics))
    token = push_context(span_id=timer.span_id, parent_span_id=parent_span, step=event)

    try:
        log.debug(f"{event}.start", span_id=timer.span_id, **extra_metrics)
        yield timer
    except Exception as e:
        timer.stop()
        log.error(f"{event}.error", error_type=type(e).__name__, error_message=str(e), **timer.to_log_dict())
        raise
    finally:
        timer.stop()
        token.restore()

    getattr(log, level)(f"{event}.end", **timer.to_log_dict())
