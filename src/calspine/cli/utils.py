"""
CLI utility helpers: output formatting and calendar builds for commands.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from calspine.calendar.build import BuildResult, build_calendar
from calspine.calendar.dataset import CalendarDataset
from calspine.calendar.dates import from_date_key
from calspine.calendar.holidays import HolidaySource, resolve_source
from calspine.calendar.schema import BuildStatus, StepStatus
from calspine.core.errors import CalendarError
from calspine.core.settings import get_settings

console = Console()
err_console = Console(stderr=True)


# ── Parsing ──────────────────────────────────────────────────────────────


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` or a ``YYYYMMDD`` date key."""
    text = value.strip()
    try:
        if text.isdigit() and len(text) == 8:
            return from_date_key(int(text))
        return date.fromisoformat(text)
    except ValueError as e:
        raise typer.BadParameter(f"not a date: {value!r} (expected YYYY-MM-DD)") from e


def default_range(*dates: date) -> tuple[date, date]:
    """Build range for ad-hoc queries: the surrounding years of the given dates."""
    return date(min(dates).year - 1, 1, 1), date(max(dates).year + 1, 12, 31)


# ── Calendar builds ──────────────────────────────────────────────────────


def calendar_config(
    start: date,
    end: date,
    *,
    grain: str = "DAY",
    timezone: str | None = None,
    fiscal_start_month: int = 1,
    fiscal_start_day: int = 1,
    retail_patterns: list[str] | None = None,
    retail_anchor_month: int = 1,
    retail_week_start_day: int = 0,
    timezones: list[str] | None = None,
) -> dict[str, Any]:
    """Raw configuration mapping from CLI options; validated by the build."""
    config: dict[str, Any] = {
        "start": start,
        "end": end,
        "grain": grain,
        "timezone": timezone or get_settings().default_timezone,
        "fiscal_year_start_month": fiscal_start_month,
        "fiscal_year_start_day": fiscal_start_day,
        "retail_anchor_month": retail_anchor_month,
        "retail_week_start_day": retail_week_start_day,
    }
    if retail_patterns:
        config["retail_patterns"] = retail_patterns
    if timezones:
        config["timezones"] = timezones
    return config


def holiday_source_for(holidays: Path | None, us_federal: bool) -> HolidaySource | None:
    """JSON file (option or ``CALSPINE_HOLIDAY_FILE``) wins over rule-based US holidays."""
    path = holidays or get_settings().holiday_file
    if path is not None:
        return resolve_source("json", file_path=path)
    if us_federal:
        return resolve_source("us_federal")
    return None


def run_build(config: dict[str, Any], holidays: Path | None = None, us_federal: bool = False) -> BuildResult:
    """Run a build, exiting with code 1 when it produced no dataset."""
    settings = get_settings()
    config.setdefault("max_spine_entries", settings.max_spine_entries)
    config.setdefault("relative_periods_count", settings.relative_periods_count)
    try:
        source = holiday_source_for(holidays, us_federal)
    except CalendarError as e:
        fail(e)
    result = build_calendar(config, holiday_source=source)
    if result.status is BuildStatus.ERROR:
        for error in result.errors:
            err_console.print(f"[bold red]Error[/bold red] ({error.get('category', 'ERROR')}): {error['message']}")
        raise typer.Exit(code=1)
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")
    return result


def build_dataset(config: dict[str, Any], holidays: Path | None = None, us_federal: bool = False) -> CalendarDataset:
    result = run_build(config, holidays, us_federal)
    if result.dataset is None:
        fail(CalendarError(f"build {result.build_id} finished {result.status.value} without a calendar"))
    return result.dataset


def fail(error: Exception) -> NoReturn:
    """Print a query error and exit 1."""
    if isinstance(error, CalendarError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_result(data: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render a value, a record or a list of records."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list | tuple):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)


_STATUS_STYLE = {
    StepStatus.SUCCESS: "green",
    StepStatus.PARTIAL: "yellow",
    StepStatus.FAILED: "red",
    StepStatus.SKIPPED: "dim",
}


def print_build(result: BuildResult) -> None:
    """Summary line plus one table row per build step."""
    style = {"SUCCESS": "green", "PARTIAL": "yellow"}.get(result.status.value, "red")
    console.print(f"[bold]Build {result.build_id}[/bold]: [{style}]{result.status.value}[/{style}]")
    if result.dataset is not None:
        console.print(
            f"  rows: {len(result.dataset)}  range: {result.dataset.start_date}..{result.dataset.end_date}"
            f"  fingerprint: {result.dataset.fingerprint[:16]}"
        )
    table = Table(title="Steps", show_lines=False, pad_edge=False)
    for col in ("step", "status", "rows", "ms", "message"):
        table.add_column(col, overflow="fold")
    for step in result.steps:
        colour = _STATUS_STYLE[step.status]
        table.add_row(
            step.name,
            f"[{colour}]{step.status.value}[/{colour}]",
            str(step.row_count),
            f"{step.elapsed_ms:.1f}",
            step.message or "",
        )
    console.print(table)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(str(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


__all__ = [
    "console",
    "err_console",
    "parse_date",
    "default_range",
    "calendar_config",
    "holiday_source_for",
    "run_build",
    "build_dataset",
    "fail",
    "output_result",
    "print_build",
]
