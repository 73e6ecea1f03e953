"""calspine.calendar -- derivation engine for standard, fiscal and retail calendars.

Architecture::

    spine.py          ordered instants for a (start, end, grain) range
    standard.py       Gregorian attributes
    fiscal.py         fiscal years/quarters/months from a (month, day) anchor
    retail.py         4-4-5 / 4-5-4 / 5-4-4 weeks, months and quarters
    holidays.py       holiday sources and the date index
    composer.py       joins everything into UnifiedCalendarRow
    dataset.py        immutable snapshots and the published store
    build.py          build_calendar orchestration -> BuildResult
    business_days.py  trading-day arithmetic over a snapshot
    relative.py       as-of-now flags per timezone
"""

from calspine.calendar.build import BuildResult, StepOutcome, build_calendar
from calspine.calendar.business_days import (
    BusinessDayCalculator,
    add_business_days,
    count_business_days,
    is_business_day,
    next_business_day,
    previous_business_day,
    same_business_day_previous_period,
    same_day_previous_fiscal_period,
    same_day_previous_period,
    same_day_previous_retail_period,
    subtract_business_days,
)
from calspine.calendar.composer import UnifiedCalendarRow, compose
from calspine.calendar.config import CalendarConfig
from calspine.calendar.dataset import CalendarDataset, CalendarStore, default_store
from calspine.calendar.fiscal import FiscalCalendar, FiscalPeriod
from calspine.calendar.holidays import (
    HolidayIndex,
    HolidayRecord,
    HolidaySource,
    JsonHolidaySource,
    StaticHolidaySource,
    UsFederalHolidaySource,
    load_holidays,
    register_source,
    resolve_source,
)
from calspine.calendar.relative import (
    RelativePeriodEvaluator,
    RelativePeriodFlags,
    evaluate_relative,
    timezone_prefix,
)
from calspine.calendar.retail import RetailCalendar, RetailPeriod
from calspine.calendar.schema import BuildStatus, Grain, PeriodUnit, RetailPattern, StepStatus
from calspine.calendar.spine import CalendarDate, estimate_spine_size, generate_spine, iter_spine
from calspine.calendar.standard import StandardAttributes, derive_standard

__all__ = [
    "BuildResult",
    "StepOutcome",
    "build_calendar",
    "BusinessDayCalculator",
    "add_business_days",
    "count_business_days",
    "is_business_day",
    "next_business_day",
    "previous_business_day",
    "same_business_day_previous_period",
    "same_day_previous_fiscal_period",
    "same_day_previous_period",
    "same_day_previous_retail_period",
    "subtract_business_days",
    "UnifiedCalendarRow",
    "compose",
    "CalendarConfig",
    "CalendarDataset",
    "CalendarStore",
    "default_store",
    "FiscalCalendar",
    "FiscalPeriod",
    "HolidayIndex",
    "HolidayRecord",
    "HolidaySource",
    "JsonHolidaySource",
    "StaticHolidaySource",
    "UsFederalHolidaySource",
    "load_holidays",
    "register_source",
    "resolve_source",
    "RelativePeriodEvaluator",
    "RelativePeriodFlags",
    "evaluate_relative",
    "timezone_prefix",
    "RetailCalendar",
    "RetailPeriod",
    "BuildStatus",
    "Grain",
    "PeriodUnit",
    "RetailPattern",
    "StepStatus",
    "CalendarDate",
    "estimate_spine_size",
    "generate_spine",
    "iter_spine",
    "StandardAttributes",
    "derive_standard",
]
