"""
Period domain models

    - Period: closed [start, end] analysis window
    - PeriodType: named selectors understood by the period calculator
    - Granularity: bucket size for time series
    - HorizontalGranularity: size of the periods compared side by side
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.utils.datetime_utils import calendar_days_between, end_of_day, ensure_utc, to_iso


class PeriodType(Enum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    THIS_QUARTER = "this_quarter"
    THIS_YEAR = "this_year"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_N_DAYS = "last_n_days"
    ALL = "all"
    CUSTOM = "custom"


class Granularity(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class HorizontalGranularity(Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class Period:
    """
    Immutable analysis window, inclusive on both ends.

    The end instant is normalized to the last instant of its UTC day so a
    period built from two dates covers both days completely.

    Attributes:
        start: First instant of the window
        end: Last instant of the window (end of day)
        label: Human-readable description

    Example:
        period = Period(datetime(2026, 3, 1), datetime(2026, 3, 7), label="First week")
        period.days  # 7
        period.contains(datetime(2026, 3, 7, 18, 30))  # True
    """

    start: datetime
    end: datetime
    label: str = ""

    def __post_init__(self) -> None:
        """
        Normalize both instants to UTC and validate ordering.

        Raises:
            PeriodValidationError: If start is after end
        """
        start = ensure_utc(self.start)
        end = end_of_day(self.end)
        if start > end:
            raise PeriodValidationError(f"Period start {to_iso(start)} is after end {to_iso(end)}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def days(self) -> int:
        """Inclusive number of calendar days covered (minimum 1)."""
        return max(1, calendar_days_between(self.start, self.end) + 1)

    def contains(self, instant: datetime | None) -> bool:
        if instant is None:
            return False
        instant = ensure_utc(instant)
        return self.start <= instant <= self.end

    def to_dict(self) -> dict:
        return {
            "start": to_iso(self.start),
            "end": to_iso(self.end),
            "label": self.label,
            "days": self.days,
        }
