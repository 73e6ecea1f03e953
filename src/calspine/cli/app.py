"""
Root Typer application for the calspine CLI.

Commands:
    calspine build      build a calendar and report every step
    calspine lookup     show the composed row for one date
    calspine relative   relative-period flags for one date, per timezone
    calspine bizdays    business-day arithmetic (add, subtract, count, ...)
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import typer
from typer import Typer

from calspine.calendar.relative import RelativePeriodEvaluator
from calspine.core.errors import CalendarError
from calspine.core.settings import get_settings
from calspine.logging import configure_logging

app = Typer(
    name="calspine",
    help="calspine: business calendar derivation engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from calspine import __version__

        typer.echo(f"calspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override CALSPINE_LOG_LEVEL."),
) -> None:
    """Build calendars and query dates from the command line."""
    configure_logging(level=log_level or get_settings().log_level)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("build")
def build(
    start: str = typer.Argument(..., help="First date (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="Last date (YYYY-MM-DD)"),
    grain: str = typer.Option("DAY", "--grain", "-g", help="SECOND, MINUTE, HOUR, DAY, MONTH or YEAR"),
    timezone: str | None = typer.Option(None, "--timezone", "--tz", help="IANA timezone of the spine"),
    fiscal_start_month: int = typer.Option(1, "--fiscal-start-month", help="Fiscal year start month"),
    fiscal_start_day: int = typer.Option(1, "--fiscal-start-day", help="Fiscal year start day"),
    retail_pattern: list[str] | None = typer.Option(None, "--retail-pattern", "-p", help="445, 454 or 544"),
    retail_anchor_month: int = typer.Option(1, "--retail-anchor-month", help="Approximate retail year-end month"),
    retail_week_start_day: int = typer.Option(0, "--retail-week-start", help="0=Sunday .. 6=Saturday"),
    holidays: Path | None = typer.Option(None, "--holidays", help="JSON holiday file"),
    us_federal: bool = typer.Option(False, "--us-federal", help="Use rule-based US federal holidays"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write composed rows as JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Build a calendar and report the outcome of every step."""
    from calspine.cli.utils import calendar_config, output_result, parse_date, print_build, run_build

    config = calendar_config(
        parse_date(start),
        parse_date(end),
        grain=grain,
        timezone=timezone,
        fiscal_start_month=fiscal_start_month,
        fiscal_start_day=fiscal_start_day,
        retail_patterns=retail_pattern,
        retail_anchor_month=retail_anchor_month,
        retail_week_start_day=retail_week_start_day,
    )
    result = run_build(config, holidays, us_federal)

    if output is not None and result.dataset is not None:
        output.write_text(json.dumps(result.dataset.to_records(), indent=2, default=str), encoding="utf-8")

    if json_out:
        output_result(result, as_json=True)
    else:
        print_build(result)


@app.command("lookup")
def lookup(
    day: str = typer.Argument(..., help="Date (YYYY-MM-DD) or date key (YYYYMMDD)"),
    fiscal_start_month: int = typer.Option(1, "--fiscal-start-month"),
    fiscal_start_day: int = typer.Option(1, "--fiscal-start-day"),
    retail_pattern: list[str] | None = typer.Option(None, "--retail-pattern", "-p"),
    retail_anchor_month: int = typer.Option(1, "--retail-anchor-month"),
    holidays: Path | None = typer.Option(None, "--holidays", help="JSON holiday file"),
    us_federal: bool = typer.Option(False, "--us-federal"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the composed calendar row for one date."""
    from calspine.cli.utils import build_dataset, calendar_config, default_range, output_result, parse_date

    d = parse_date(day)
    dataset = build_dataset(
        calendar_config(
            *default_range(d),
            fiscal_start_month=fiscal_start_month,
            fiscal_start_day=fiscal_start_day,
            retail_patterns=retail_pattern,
            retail_anchor_month=retail_anchor_month,
        ),
        holidays,
        us_federal,
    )
    record = dataset.lookup(d).to_record()
    output_result(record, as_json=json_out, title=f"Calendar {d.isoformat()}")


@app.command("relative")
def relative(
    day: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    tz: list[str] | None = typer.Option(None, "--tz", "-z", help="Timezone to evaluate in (repeatable)"),
    now: str | None = typer.Option(None, "--now", help="Evaluation instant (ISO 8601; naive = UTC)"),
    periods: int | None = typer.Option(None, "--periods", "-n", help="N for the minus/plus flags"),
    all_flags: bool = typer.Option(False, "--all", help="Include every minus/plus flag"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Relative-period flags of one date, in each timezone."""
    from calspine.cli.utils import build_dataset, calendar_config, default_range, fail, output_result, parse_date

    settings = get_settings()
    d = parse_date(day)
    try:
        instant = datetime.fromisoformat(now) if now else datetime.now(UTC)
    except ValueError as e:
        raise typer.BadParameter(f"not an ISO instant: {now!r}") from e

    dataset = build_dataset(calendar_config(d, d))
    try:
        evaluator = RelativePeriodEvaluator(
            tz or [settings.default_timezone],
            periods or settings.relative_periods_count,
        )
    except CalendarError as e:
        fail(e)

    flags = evaluator.evaluate(dataset.lookup(d), instant)
    for zone, values in flags.items():
        payload = values.as_dict(prefix="")
        if not all_flags:
            payload = {k: v for k, v in payload.items() if "_minus_" not in k and "_plus_" not in k}
        output_result(payload, as_json=json_out, title=zone)


# ── Sub-command registration ─────────────────────────────────────────────

from calspine.cli.bizdays import app as bizdays_app  # noqa: E402

app.add_typer(bizdays_app, name="bizdays", help="Business-day arithmetic.")
