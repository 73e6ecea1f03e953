"""
CLI: ``calspine bizdays``: business-day arithmetic.

The calendar is built once per invocation from the group options, which come
before the sub-command::

    calspine bizdays --us-federal add 2024-07-03 1
    calspine bizdays --holidays nsw.json count 2024-01-01 2024-03-31
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import typer

from calspine.calendar.business_days import BusinessDayCalculator
from calspine.calendar.schema import PeriodUnit
from calspine.cli.utils import build_dataset, calendar_config, console, default_range, fail, output_result, parse_date
from calspine.core.errors import CalendarError

app = typer.Typer(no_args_is_help=True)


@app.callback()
def bizdays(
    ctx: typer.Context,
    start: str | None = typer.Option(None, "--start", help="Calendar start (default: the year before)"),
    end: str | None = typer.Option(None, "--end", help="Calendar end (default: the year after)"),
    holidays: Path | None = typer.Option(None, "--holidays", help="JSON holiday file"),
    us_federal: bool = typer.Option(False, "--us-federal", help="Use rule-based US federal holidays"),
    fiscal_start_month: int = typer.Option(1, "--fiscal-start-month"),
    fiscal_start_day: int = typer.Option(1, "--fiscal-start-day"),
    retail_pattern: str | None = typer.Option(None, "--retail-pattern", "-p"),
    retail_anchor_month: int = typer.Option(1, "--retail-anchor-month"),
) -> None:
    """Business-day arithmetic over a calendar built for the query."""
    ctx.obj = {
        "start": parse_date(start) if start else None,
        "end": parse_date(end) if end else None,
        "holidays": holidays,
        "us_federal": us_federal,
        "fiscal_start_month": fiscal_start_month,
        "fiscal_start_day": fiscal_start_day,
        "retail_patterns": [retail_pattern] if retail_pattern else None,
        "retail_anchor_month": retail_anchor_month,
    }


def _calculator(ctx: typer.Context, *dates: date) -> BusinessDayCalculator:
    options: dict[str, Any] = ctx.obj
    lower, upper = default_range(*dates)
    config = calendar_config(
        options["start"] or lower,
        options["end"] or upper,
        fiscal_start_month=options["fiscal_start_month"],
        fiscal_start_day=options["fiscal_start_day"],
        retail_patterns=options["retail_patterns"],
        retail_anchor_month=options["retail_anchor_month"],
    )
    return BusinessDayCalculator(build_dataset(config, options["holidays"], options["us_federal"]))


def _print(value: Any) -> None:
    console.print(value.isoformat() if isinstance(value, date) else str(value))


@app.command("add")
def add(
    ctx: typer.Context,
    day: str = typer.Argument(..., help="Start date"),
    n: int = typer.Argument(..., help="Business days to add (negative subtracts)"),
) -> None:
    """Date n business days after DAY."""
    d = parse_date(day)
    try:
        _print(_calculator(ctx, d).add_business_days(d, n))
    except CalendarError as e:
        fail(e)


@app.command("subtract")
def subtract(
    ctx: typer.Context,
    day: str = typer.Argument(..., help="Start date"),
    n: int = typer.Argument(..., help="Business days to subtract"),
) -> None:
    """Date n business days before DAY."""
    d = parse_date(day)
    try:
        _print(_calculator(ctx, d).subtract_business_days(d, n))
    except CalendarError as e:
        fail(e)


@app.command("count")
def count(
    ctx: typer.Context,
    start: str = typer.Argument(..., help="First date (inclusive)"),
    end: str = typer.Argument(..., help="Last date (inclusive)"),
) -> None:
    """Business days between START and END inclusive."""
    a, b = parse_date(start), parse_date(end)
    try:
        _print(_calculator(ctx, a, b).count_business_days(a, b))
    except CalendarError as e:
        fail(e)


@app.command("next")
def next_day(ctx: typer.Context, day: str = typer.Argument(..., help="Date")) -> None:
    """First business day after DAY."""
    d = parse_date(day)
    try:
        _print(_calculator(ctx, d).next_business_day(d))
    except CalendarError as e:
        fail(e)


@app.command("previous")
def previous_day(ctx: typer.Context, day: str = typer.Argument(..., help="Date")) -> None:
    """Last business day before DAY."""
    d = parse_date(day)
    try:
        _print(_calculator(ctx, d).previous_business_day(d))
    except CalendarError as e:
        fail(e)


@app.command("same-day")
def same_day(
    ctx: typer.Context,
    day: str = typer.Argument(..., help="Date"),
    unit: PeriodUnit = typer.Option(PeriodUnit.MONTH, "--unit", "-u", case_sensitive=False),
    n: int = typer.Option(1, "--periods", "-n", help="Periods back (negative goes forward)"),
    kind: str = typer.Option("standard", "--calendar", "-c", help="standard, business, fiscal or retail"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Same day n periods earlier in the standard, fiscal or retail calendar."""
    d = parse_date(day)
    try:
        calculator = _calculator(ctx, d)
        match kind.lower():
            case "standard":
                value = calculator.same_day_previous_period(d, unit, n)
            case "business":
                value = calculator.same_business_day_previous_period(d, unit, n)
            case "fiscal":
                value = calculator.same_day_previous_fiscal_period(d, unit, n)
            case "retail":
                value = calculator.same_day_previous_retail_period(d, unit, n)
            case _:
                raise typer.BadParameter(f"unknown calendar {kind!r}", param_hint="--calendar")
    except CalendarError as e:
        fail(e)

    if json_out:
        output_result({"date": d, "unit": unit.value, "periods": n, "calendar": kind, "result": value}, as_json=True)
    else:
        _print(value)
