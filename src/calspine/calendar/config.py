"""
Build configuration.

``CalendarConfig`` is the one explicit value every build receives. It is a
frozen pydantic model: field validators check ranges, IANA timezones and
retail patterns, and a model validator checks the cross-field rules (range
order, the fiscal (month, day) anchor, the spine size bound).

``CalendarConfig.from_mapping`` converts any validation failure into a
``ConfigurationError`` naming the offending key, which is what the build
orchestrator reports.

Example::

    config = CalendarConfig.from_mapping({
        "start": "2020-01-01",
        "end": "2021-12-31",
        "fiscal_year_start_month": 7,
        "retail_patterns": ["445", "4-5-4"],
        "timezones": ["Australia/Adelaide", "America/New_York"],
    })
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from calspine.calendar.fiscal import FiscalCalendar, validate_fiscal_start
from calspine.calendar.retail import RetailCalendar
from calspine.calendar.schema import Grain, RetailPattern
from calspine.calendar.spine import estimate_spine_size
from calspine.core.errors import ConfigurationError


def validate_timezone(name: str) -> str:
    """Return ``name`` if it is a known IANA zone, else raise ``ValueError``."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValueError(f"unknown timezone {name!r}") from e
    return name


class CalendarConfig(BaseModel):
    """Validated configuration for one calendar build."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: date = Field(..., description="First date of the build range")
    end: date = Field(..., description="Last date of the build range (inclusive)")
    grain: Grain = Field(default=Grain.DAY, description="Spine granularity")
    timezone: str = Field(default="UTC", description="IANA timezone of the spine instants")

    fiscal_year_start_month: int = Field(default=1, ge=1, le=12)
    fiscal_year_start_day: int = Field(default=1, ge=1, le=31)

    retail_patterns: tuple[RetailPattern, ...] = Field(
        default=(RetailPattern.P445,),
        min_length=1,
        description="Retail patterns to derive; each gets its own attribute set",
    )
    retail_anchor_month: int = Field(default=1, ge=1, le=12, description="Approximate retail year-end month")
    retail_week_start_day: int = Field(default=0, ge=0, le=6, description="0=Sunday .. 6=Saturday")

    relative_periods_count: int = Field(default=12, ge=1)
    timezones: tuple[str, ...] = Field(default=(), description="Timezones for relative-period evaluation")

    include_fiscal: bool = True
    include_retail: bool = True
    max_spine_entries: int = Field(default=2_000_000, ge=1, description="Hard bound on spine size")

    @field_validator("grain", mode="before")
    @classmethod
    def _parse_grain(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("retail_patterns", mode="before")
    @classmethod
    def _parse_patterns(cls, value: Any) -> tuple[RetailPattern, ...]:
        if isinstance(value, (str, int, RetailPattern)):
            value = [value]
        patterns = tuple(RetailPattern.parse(v) for v in value)
        if len(set(patterns)) != len(patterns):
            raise ValueError(f"duplicate retail patterns: {[p.value for p in patterns]}")
        return patterns

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        return validate_timezone(value)

    @field_validator("timezones", mode="before")
    @classmethod
    def _check_timezones(cls, value: Any) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [v for v in value.split(",") if v.strip()]
        return tuple(validate_timezone(str(v).strip()) for v in value)

    @model_validator(mode="after")
    def _check_cross_fields(self) -> CalendarConfig:
        if self.end < self.start:
            raise ValueError(f"end {self.end} is before start {self.start}")
        try:
            validate_fiscal_start(self.fiscal_year_start_month, self.fiscal_year_start_day)
        except ConfigurationError as e:
            raise ValueError(e.message) from e
        size = estimate_spine_size(self.start, self.end, self.grain)
        if size > self.max_spine_entries:
            raise ValueError(
                f"{self.grain.value} spine from {self.start} to {self.end} has {size} entries, "
                f"above max_spine_entries={self.max_spine_entries}"
            )
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | CalendarConfig) -> CalendarConfig:
        """Validate raw configuration, raising ``ConfigurationError`` on any problem."""
        if isinstance(data, CalendarConfig):
            return data
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or None
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(
                f"Invalid calendar configuration: {messages}",
                key=key,
                value=first.get("input") if key else None,
                cause=e,
            ) from e

    @property
    def evaluation_timezones(self) -> tuple[str, ...]:
        """Timezones for relative evaluation; the build timezone when none are listed."""
        return self.timezones or (self.timezone,)

    @property
    def spine_size(self) -> int:
        return estimate_spine_size(self.start, self.end, self.grain)

    def fiscal_calendar(self) -> FiscalCalendar:
        return FiscalCalendar(self.fiscal_year_start_month, self.fiscal_year_start_day)

    def retail_calendars(self) -> dict[str, RetailCalendar]:
        """One retail calendar per requested pattern, keyed by pattern value."""
        return {
            pattern.value: RetailCalendar(pattern, self.retail_anchor_month, self.retail_week_start_day)
            for pattern in self.retail_patterns
        }

    def summary(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


__all__ = ["CalendarConfig", "validate_timezone"]
