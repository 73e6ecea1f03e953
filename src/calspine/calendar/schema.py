"""
Enums and name tables for the calendar domain.

Grain and retail pattern are closed sets; derivation code dispatches on the
enum members through lookup tables rather than branching on strings.
"""

from enum import Enum


class Grain(str, Enum):
    """Spine granularity."""

    SECOND = "SECOND"
    MINUTE = "MINUTE"
    HOUR = "HOUR"
    DAY = "DAY"
    MONTH = "MONTH"
    YEAR = "YEAR"

    @property
    def is_sub_day(self) -> bool:
        return self in (Grain.SECOND, Grain.MINUTE, Grain.HOUR)

    @property
    def is_day_or_finer(self) -> bool:
        return self.is_sub_day or self is Grain.DAY


class RetailPattern(str, Enum):
    """Weeks per month within each retail quarter."""

    P445 = "445"
    P454 = "454"
    P544 = "544"

    @property
    def quarter_weeks(self) -> tuple[int, int, int]:
        return _QUARTER_WEEKS[self]

    @property
    def label(self) -> str:
        """Hyphenated form, e.g. ``4-4-5``."""
        return "-".join(self.value)

    @classmethod
    def parse(cls, value: "str | int | RetailPattern") -> "RetailPattern":
        """Accept ``445``, ``"445"``, ``"4-4-5"`` or a member."""
        if isinstance(value, RetailPattern):
            return value
        normalized = str(value).replace("-", "").strip()
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"unknown retail pattern {value!r}; expected one of {valid}") from None


_QUARTER_WEEKS = {
    RetailPattern.P445: (4, 4, 5),
    RetailPattern.P454: (4, 5, 4),
    RetailPattern.P544: (5, 4, 4),
}


class PeriodUnit(str, Enum):
    """Period unit for same-day-previous-period arithmetic."""

    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


class BuildStatus(str, Enum):
    """Overall outcome of a calendar build."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    ERROR = "ERROR"


class StepStatus(str, Enum):
    """Outcome of one build step."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


__all__ = [
    "Grain",
    "RetailPattern",
    "PeriodUnit",
    "BuildStatus",
    "StepStatus",
    "MONTH_NAMES",
    "DAY_NAMES",
]
