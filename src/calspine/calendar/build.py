"""
Calendar build orchestration.

Manifesto:
    A calendar build is a short, fixed sequence of steps. Each step returns a
    ``Result`` and the orchestrator folds those results into one
    ``BuildResult``. Nothing escapes ``build_calendar``: a bad configuration,
    an unreachable holiday source or a date that fails to derive all end up
    in the result, never as an exception in the caller's lap.

Architecture:

    ┌──────────────────────────────────────────────────────────────────┐
    │                        build_calendar(config)                    │
    │                                                                  │
    │  validate_config ─► generate_spine ─► load_holidays              │
    │         │                 │               │ Err → PARTIAL,       │
    │    Err → ERROR       Err → ERROR          │ holidays_known=False │
    │                           ▼               ▼                      │
    │           derive_standard / derive_fiscal / derive_retail:<p>    │
    │              per-date Err → null attribute + DerivationError     │
    │                           │                                      │
    │                           ▼                                      │
    │                        compose ─► CalendarDataset ─► store       │
    └──────────────────────────────────────────────────────────────────┘

Status:
    - SUCCESS: every step succeeded (or was skipped by configuration)
    - PARTIAL: a dataset was produced but a step or some dates failed
    - ERROR:   no dataset; ``errors`` holds the payload

Guardrails:
    ❌ DON'T: raise out of build_calendar
    ✅ DO:    return BuildResult(status=ERROR, errors=[...])

    ❌ DON'T: drop a row because one of its attributes failed
    ✅ DO:    keep the row with a null attribute and record the date

    ❌ DON'T: publish a dataset before the build has finished
    ✅ DO:    publish the completed dataset in one swap

Example::

    result = build_calendar({"start": "2024-01-01", "end": "2024-12-31",
                             "fiscal_year_start_month": 7})
    if result.success:
        row = result.dataset.lookup(20240701)
        row.fiscal.is_fiscal_year_start   # True
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from typing import Any, Generic, TypeVar

from calspine.calendar.composer import compose
from calspine.calendar.config import CalendarConfig
from calspine.calendar.dataset import CalendarDataset, CalendarStore
from calspine.calendar.holidays import HolidayIndex, HolidaySource, load_holidays
from calspine.calendar.schema import BuildStatus, StepStatus
from calspine.calendar.spine import CalendarDate, generate_spine
from calspine.calendar.standard import derive_standard
from calspine.core.errors import (
    CalendarError,
    ConfigurationError,
    DerivationError,
    ErrorCategory,
    PartialStepFailure,
    error_payload,
)
from calspine.core.hashing import canonical_json, compute_hash
from calspine.core.result import Err, Ok, Result, try_result, try_result_with
from calspine.logging import get_logger, log_step, push_context

log = get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass
class StepOutcome:
    """Outcome of one build step."""

    name: str
    status: StepStatus
    message: str | None = None
    row_count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    elapsed_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "row_count": self.row_count,
            "errors": self.errors,
            "elapsed_ms": round(self.elapsed_ms, 2),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class BuildResult:
    """Everything a build produced: status, step outcomes, dataset, errors."""

    build_id: str
    status: BuildStatus
    started_at: datetime
    completed_at: datetime | None = None
    config: CalendarConfig | None = None
    dataset: CalendarDataset | None = None
    steps: list[StepOutcome] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is BuildStatus.SUCCESS

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def failed_steps(self) -> list[str]:
        return [s.name for s in self.steps if s.status in (StepStatus.FAILED, StepStatus.PARTIAL)]

    def step(self, name: str) -> StepOutcome | None:
        return next((s for s in self.steps if s.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging and the CLI; the dataset is summarized, not dumped."""
        dataset = None
        if self.dataset is not None:
            dataset = {
                "rows": len(self.dataset),
                "start": self.dataset.start_date.isoformat() if len(self.dataset) else None,
                "end": self.dataset.end_date.isoformat() if len(self.dataset) else None,
                "fingerprint": self.dataset.fingerprint,
            }
        return {
            "build_id": self.build_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "config": self.config.summary() if self.config else None,
            "config_hash": compute_hash(canonical_json(self.config.summary()), length=16) if self.config else None,
            "dataset": dataset,
            "steps": [s.to_dict() for s in self.steps],
            "failed_steps": self.failed_steps,
            "errors": self.errors,
            "warnings": self.warnings,
        }


@dataclass
class DerivedColumn(Generic[T]):
    """A derived attribute column aligned with the spine, plus per-date failures."""

    values: list[T | None]
    errors: list[DerivationError] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


# =============================================================================
# STEPS
# =============================================================================


def _derive_column(
    step: str,
    entries: Sequence[CalendarDate],
    derive: Callable[[CalendarDate], T],
) -> Result[DerivedColumn[T]]:
    """
    Apply ``derive`` to every entry, isolating per-date failures.

    A failing date leaves ``None`` in the column and a ``DerivationError``
    naming the date. When every date fails the step itself fails.
    """
    column: DerivedColumn[T] = DerivedColumn(values=[])
    for entry in entries:
        match try_result(partial(derive, entry)):
            case Ok(value):
                column.values.append(value)
            case Err(error):
                column.values.append(None)
                column.errors.append(
                    DerivationError(f"{step} failed for {entry.date.isoformat()}: {error}", cause=error).with_context(
                        step=step, calendar_date=entry.date.isoformat()
                    )
                )
                log.warning("calendar.date.failed", step=step, calendar_date=entry.date.isoformat(), error=str(error))

    if entries and column.failed_count == len(entries):
        return Err(
            PartialStepFailure(f"{step} failed for every date", errors=list(column.errors)).with_context(step=step)
        )
    return Ok(column)


def _internal_error(e: Exception) -> CalendarError:
    return CalendarError(f"unexpected failure: {e}", category=ErrorCategory.INTERNAL, cause=e)


class _BuildRun:
    """Mutable state of one build, folded into a ``BuildResult`` at the end."""

    def __init__(self, build_id: str):
        self.result = BuildResult(build_id=build_id, status=BuildStatus.SUCCESS, started_at=datetime.now(UTC))
        self.partial = False

    def record(
        self,
        name: str,
        status: StepStatus,
        elapsed_ms: float = 0.0,
        row_count: int = 0,
        message: str | None = None,
        errors: Sequence[Exception] = (),
    ) -> StepOutcome:
        outcome = StepOutcome(
            name=name,
            status=status,
            message=message,
            row_count=row_count,
            errors=[error_payload(e) for e in errors],
            elapsed_ms=elapsed_ms,
        )
        self.result.steps.append(outcome)
        if status in (StepStatus.FAILED, StepStatus.PARTIAL):
            self.partial = True
            log.warning("calendar.step.failed", step=name, status=status.value, errors=len(outcome.errors))
        return outcome

    def fail(self, name: str, error: Exception, elapsed_ms: float = 0.0) -> BuildResult:
        self.record(name, StepStatus.FAILED, elapsed_ms=elapsed_ms, message=str(error), errors=[error])
        self.result.errors.append(error_payload(error))
        self.result.status = BuildStatus.ERROR
        return self.finish()

    def finish(self) -> BuildResult:
        if self.result.status is not BuildStatus.ERROR and self.partial:
            self.result.status = BuildStatus.PARTIAL
        self.result.completed_at = datetime.now(UTC)
        return self.result

    def run_column(
        self,
        name: str,
        entries: Sequence[CalendarDate],
        derive: Callable[[CalendarDate], T],
    ) -> list[T | None] | None:
        """Run one derivation step; ``None`` when the whole step failed."""
        with log_step(f"calendar.{name}", rows_in=len(entries)) as timer:
            outcome = _derive_column(name, entries, derive)
            match outcome:
                case Ok(column):
                    timer.add_metric("failed", column.failed_count)
                case Err(_):
                    timer.add_metric("failed", len(entries))

        match outcome:
            case Ok(column) if column.errors:
                failure = PartialStepFailure(
                    f"{name}: {column.failed_count} of {len(entries)} dates failed", errors=list(column.errors)
                ).with_context(step=name)
                self.record(
                    name,
                    StepStatus.PARTIAL,
                    timer.duration_ms,
                    row_count=len(entries) - column.failed_count,
                    message=failure.message,
                    errors=column.errors,
                )
                self.result.errors.append(error_payload(failure))
                return column.values
            case Ok(column):
                self.record(name, StepStatus.SUCCESS, timer.duration_ms, row_count=len(entries))
                return column.values
            case Err(error):
                self.record(name, StepStatus.FAILED, timer.duration_ms, message=str(error), errors=[error])
                self.result.errors.append(error_payload(error))
                return None


# =============================================================================
# ORCHESTRATOR
# =============================================================================


def build_calendar(
    config: CalendarConfig | Mapping[str, Any],
    holiday_source: HolidaySource | None = None,
    store: CalendarStore | None = None,
    build_id: str | None = None,
) -> BuildResult:
    """
    Build a composed calendar for ``config``.

    Args:
        config: Validated ``CalendarConfig`` or a raw mapping to validate
        holiday_source: Holiday collaborator; without one no date is a holiday
        store: When given, the completed dataset is published to it
        build_id: Correlation id for logs (generated when omitted)

    Returns:
        BuildResult; never raises
    """
    run = _BuildRun(build_id or uuid.uuid4().hex[:12])
    token = push_context(build_id=run.result.build_id)
    try:
        return _build(run, config, holiday_source, store)
    except Exception as e:
        log.error("calendar.build.crashed", error=str(e), error_type=type(e).__name__)
        return run.fail("build", _internal_error(e))
    finally:
        token.restore()


def _build(
    run: _BuildRun,
    raw_config: CalendarConfig | Mapping[str, Any],
    holiday_source: HolidaySource | None,
    store: CalendarStore | None,
) -> BuildResult:
    # validate_config
    match try_result(partial(CalendarConfig.from_mapping, raw_config)):
        case Err(error):
            if not isinstance(error, ConfigurationError):
                error = ConfigurationError(f"Invalid calendar configuration: {error}", cause=error)
            log.error("calendar.build.invalid_config", error=error.message)
            return run.fail("validate_config", error)
        case Ok(config):
            run.result.config = config
            run.record("validate_config", StepStatus.SUCCESS)

    push_context(grain=config.grain.value, timezone=config.timezone)
    log.info(
        "calendar.build.started",
        start=config.start.isoformat(),
        end=config.end.isoformat(),
        grain=config.grain.value,
        spine_size=config.spine_size,
    )

    # generate_spine
    with log_step("calendar.generate_spine", expected=config.spine_size) as timer:
        spine_result = try_result_with(
            partial(generate_spine, config.start, config.end, config.grain, tz=config.timezone), _internal_error
        )
    match spine_result:
        case Err(error):
            return run.fail("generate_spine", error, timer.duration_ms)
        case Ok(entries):
            run.record("generate_spine", StepStatus.SUCCESS, timer.duration_ms, row_count=len(entries))

    # load_holidays
    holidays: HolidayIndex | None
    if holiday_source is None:
        holidays = HolidayIndex()
        run.record("load_holidays", StepStatus.SKIPPED, message="no holiday source configured")
    else:
        with log_step("calendar.load_holidays", source=holiday_source.name) as timer:
            loaded = load_holidays(holiday_source, config.start, config.end)
        match loaded:
            case Ok(index):
                holidays = index
                run.record("load_holidays", StepStatus.SUCCESS, timer.duration_ms, row_count=index.record_count)
            case Err(error):
                holidays = None
                run.record("load_holidays", StepStatus.FAILED, timer.duration_ms, message=str(error), errors=[error])
                run.result.errors.append(error_payload(error))
                run.result.warnings.append(
                    f"holiday source {holiday_source.name} failed; holidays defaulted to false"
                )

    # derive_standard
    standard = run.run_column("derive_standard", entries, derive_standard)
    if standard is None:
        standard = [None] * len(entries)

    # derive_fiscal
    fiscal = None
    if config.include_fiscal:
        fiscal = run.run_column("derive_fiscal", entries, config.fiscal_calendar().derive)
    else:
        run.record("derive_fiscal", StepStatus.SKIPPED, message="include_fiscal is off")

    # derive_retail:<pattern>
    retail: dict[str, list[Any]] = {}
    for pattern, calendar in config.retail_calendars().items():
        name = f"derive_retail:{pattern}"
        if not config.include_retail:
            run.record(name, StepStatus.SKIPPED, message="include_retail is off")
            continue
        if not config.grain.is_day_or_finer:
            run.record(name, StepStatus.SKIPPED, message=f"retail periods need DAY grain or finer, got {config.grain.value}")
            continue
        column = run.run_column(name, entries, calendar.derive)
        retail[pattern] = column if column is not None else [None] * len(entries)

    # compose
    with log_step("calendar.compose", rows_in=len(entries)) as timer:
        composed = try_result_with(
            partial(compose, entries, standard, fiscal, retail, holidays), _internal_error
        )
    match composed:
        case Err(error):
            return run.fail("compose", error, timer.duration_ms)
        case Ok(rows):
            run.record("compose", StepStatus.SUCCESS, timer.duration_ms, row_count=len(rows))

    dataset = CalendarDataset(rows, config=config)
    run.result.dataset = dataset
    result = run.finish()

    if store is not None:
        store.publish(dataset)

    log.info(
        "calendar.build.completed",
        status=result.status.value,
        rows=len(dataset),
        failed_steps=result.failed_steps,
        duration_seconds=result.duration_seconds,
    )
    return result


__all__ = ["StepOutcome", "BuildResult", "DerivedColumn", "build_calendar"]
