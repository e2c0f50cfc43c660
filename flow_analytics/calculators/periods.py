"""
Period Calculator

Turns a period selector (plus optional custom bounds) into a concrete,
inclusive Period. Every function takes the reference instant explicitly;
nothing here reads the system clock.

Usage:
    from flow_analytics.calculators.periods import calculate_period_range

    period = calculate_period_range("this_month", reference_instant=datetime(2026, 10, 19, tzinfo=UTC))
    period.start, period.end, period.days  # 2026-10-01, 2026-10-31 23:59:59.999999, 31
"""

import logging
from datetime import UTC, datetime, timedelta

from flow_analytics.domain.constants import period_config
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.period import Period, PeriodType
from flow_analytics.utils.datetime_utils import (
    calendar_days_between,
    end_of_day,
    end_of_month,
    end_of_quarter,
    end_of_week,
    end_of_year,
    ensure_utc,
    start_of_day,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

PERIOD_LABELS = {
    PeriodType.TODAY: "Today",
    PeriodType.THIS_WEEK: "This week",
    PeriodType.THIS_MONTH: "This month",
    PeriodType.THIS_QUARTER: "This quarter",
    PeriodType.THIS_YEAR: "This year",
    PeriodType.LAST_7_DAYS: "Last 7 days",
    PeriodType.LAST_30_DAYS: "Last 30 days",
    PeriodType.ALL: "All time",
}


def calculate_period_days(start: datetime, end: datetime) -> int:
    """
    Inclusive number of calendar days between two instants.

    Both ends are normalized to midnight before differencing, so the time
    of day never adds a partial day.

    Args:
        start: First instant
        end: Last instant

    Returns:
        Date difference + 1, minimum 1

    Example:
        calculate_period_days(datetime(2026, 3, 1), datetime(2026, 3, 1))  # 1
        calculate_period_days(datetime(2026, 3, 1), datetime(2026, 3, 7))  # 7
    """
    return max(1, calendar_days_between(start, end) + 1)


def validate_custom_range(custom_start: datetime | None, custom_end: datetime | None) -> None:
    """
    Validate user supplied custom bounds.

    Args:
        custom_start: First day of the range
        custom_end: Last day of the range

    Raises:
        PeriodValidationError: If a bound is missing, start is after end,
            or the span exceeds the maximum custom range
    """
    if custom_start is None or custom_end is None:
        raise PeriodValidationError("Custom period requires both custom_start and custom_end")

    if not isinstance(custom_start, datetime) or not isinstance(custom_end, datetime):
        raise PeriodValidationError("Custom period bounds must be datetime instances")

    start = ensure_utc(custom_start)
    end = ensure_utc(custom_end)
    if start > end:
        raise PeriodValidationError(f"custom_start ({start.date()}) must not be after custom_end ({end.date()})")

    span_days = calendar_days_between(start, end)
    if span_days > period_config.MAX_CUSTOM_RANGE_DAYS:
        raise PeriodValidationError(
            f"Custom period spans {span_days} days; the maximum is {period_config.MAX_CUSTOM_RANGE_DAYS}"
        )


def _coerce_period_type(period_type: PeriodType | str) -> PeriodType:
    if isinstance(period_type, PeriodType):
        return period_type
    try:
        return PeriodType(period_type)
    except ValueError as e:
        valid = [p.value for p in PeriodType]
        raise PeriodValidationError(f"Unknown period type {period_type!r}; expected one of {valid}") from e


def _last_days(reference: datetime, days: int, label: str) -> Period:
    start = start_of_day(reference) - timedelta(days=days - 1)
    return Period(start=start, end=end_of_day(reference), label=label)


def calculate_period_range(
    period_type: PeriodType | str,
    reference_instant: datetime,
    *,
    custom_start: datetime | None = None,
    custom_end: datetime | None = None,
    last_n_days: int | None = None,
    earliest_instant: datetime | None = None,
) -> Period:
    """
    Resolve a period selector into a concrete Period.

    Weeks start on Monday. Ends are always the last instant of their day.

    Args:
        period_type: Named selector (see PeriodType)
        reference_instant: "Now" for the computation; anchors every named period
        custom_start: First day for PeriodType.CUSTOM
        custom_end: Last day for PeriodType.CUSTOM
        last_n_days: Window length for PeriodType.LAST_N_DAYS (>= 1)
        earliest_instant: Start of PeriodType.ALL (defaults to the Unix epoch)

    Returns:
        Period with start, end and label

    Raises:
        PeriodValidationError: If the selector is unknown or its parameters are invalid

    Example:
        ref = datetime(2026, 10, 19, 15, 0, tzinfo=UTC)  # a Monday
        calculate_period_range("this_week", ref).label  # "This week"
        calculate_period_range("custom", ref,
                               custom_start=datetime(2026, 1, 1),
                               custom_end=datetime(2026, 1, 31)).days  # 31
    """
    period_type = _coerce_period_type(period_type)

    if not isinstance(reference_instant, datetime):
        raise PeriodValidationError("reference_instant must be a datetime")
    reference = ensure_utc(reference_instant)

    if period_type is PeriodType.TODAY:
        period = Period(start_of_day(reference), end_of_day(reference), PERIOD_LABELS[period_type])
    elif period_type is PeriodType.THIS_WEEK:
        period = Period(start_of_week(reference), end_of_week(reference), PERIOD_LABELS[period_type])
    elif period_type is PeriodType.THIS_MONTH:
        period = Period(start_of_month(reference), end_of_month(reference), PERIOD_LABELS[period_type])
    elif period_type is PeriodType.THIS_QUARTER:
        period = Period(start_of_quarter(reference), end_of_quarter(reference), PERIOD_LABELS[period_type])
    elif period_type is PeriodType.THIS_YEAR:
        period = Period(start_of_year(reference), end_of_year(reference), PERIOD_LABELS[period_type])
    elif period_type is PeriodType.LAST_7_DAYS:
        period = _last_days(reference, 7, PERIOD_LABELS[period_type])
    elif period_type is PeriodType.LAST_30_DAYS:
        period = _last_days(reference, 30, PERIOD_LABELS[period_type])
    elif period_type is PeriodType.LAST_N_DAYS:
        if not isinstance(last_n_days, int) or isinstance(last_n_days, bool) or last_n_days < 1:
            raise PeriodValidationError(f"last_n_days must be a positive integer, got {last_n_days!r}")
        period = _last_days(reference, last_n_days, f"Last {last_n_days} days")
    elif period_type is PeriodType.ALL:
        start = start_of_day(earliest_instant) if earliest_instant is not None else EPOCH
        if start > reference:
            start = start_of_day(reference)
        period = Period(start, end_of_day(reference), PERIOD_LABELS[period_type])
    else:
        validate_custom_range(custom_start, custom_end)
        start = start_of_day(custom_start)
        end = end_of_day(custom_end)
        period = Period(start, end, f"{start.date().isoformat()} - {end.date().isoformat()}")

    logger.debug(
        "Resolved period",
        extra={"extra_fields": {"period_type": period_type.value, "start": str(period.start), "days": period.days}},
    )
    return period


def previous_period(period: Period) -> Period:
    """
    The window of equal day length immediately preceding a period.

    Used for "vs previous period" comparisons of arbitrary windows.

    Example:
        previous_period(Period(datetime(2026, 3, 8), datetime(2026, 3, 14)))
        # Period(2026-03-01, 2026-03-07)
    """
    end = start_of_day(period.start) - timedelta(microseconds=1)
    start = start_of_day(period.start) - timedelta(days=period.days)
    return Period(start=start, end=end, label=f"Previous {period.days} days")


def is_in_period(instant: datetime | None, period: Period) -> bool:
    """True when the instant lies inside the inclusive period bounds."""
    return period.contains(instant)


def describe_period(period: Period) -> str:
    """
    One-line description of a period with its date range.

    Example:
        describe_period(Period(datetime(2026, 3, 1), datetime(2026, 3, 31), "March"))
        # "March (2026-03-01 - 2026-03-31, 31 days)"
    """
    unit = "day" if period.days == 1 else "days"
    dates = f"{period.start.date().isoformat()} - {period.end.date().isoformat()}, {period.days} {unit}"
    if not period.label:
        return dates
    return f"{period.label} ({dates})"
