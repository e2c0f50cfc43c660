#!/usr/bin/env python3
"""
Datetime Utility Functions

Centralized datetime parsing, normalization and calendar-boundary helpers
shared by the period calculator, the bucketer and the horizontal comparator.

Handles common patterns:
- ISO 8601 timestamps with or without a 'Z' suffix
- Normalizing naive and offset-aware instants to UTC
- Start/end of day, week (Monday first), month, quarter and year
- Durations between two instants in fractional days
- Creation instants embedded in the leading bytes of opaque identifiers

All boundary helpers take an explicit instant. Nothing in this module reads
the system clock.
"""

import calendar
from datetime import UTC, datetime, timedelta

SECONDS_PER_DAY = 86400


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive datetimes are interpreted as UTC; aware datetimes are converted.

    Args:
        value: Datetime to normalize

    Returns:
        Equivalent timezone-aware datetime in UTC

    Raises:
        TypeError: If value is not a datetime

    Examples:
        >>> ensure_utc(datetime(2026, 2, 10, 10, 0))
        datetime.datetime(2026, 2, 10, 10, 0, tzinfo=datetime.timezone.utc)
    """
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime, got {type(value)}")

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def ensure_utc_or_none(value: datetime | None) -> datetime | None:
    """Same as ensure_utc() but passes None through."""
    if value is None:
        return None
    return ensure_utc(value)


def parse_iso_timestamp(timestamp_str: str | None) -> datetime | None:
    """
    Parse an ISO 8601 timestamp (with or without 'Z' suffix) into UTC.

    Handles:
    - "2026-02-10T10:00:00Z" (UTC with Z)
    - "2026-02-10T10:00:00+02:00" (explicit offset, converted to UTC)
    - "2026-02-10T10:00:00" (naive, interpreted as UTC)
    - "2026-02-10" (date only, midnight UTC)

    Args:
        timestamp_str: ISO 8601 timestamp string, or None

    Returns:
        Timezone-aware UTC datetime, or None if input is empty

    Raises:
        ValueError: If timestamp format is invalid

    Examples:
        >>> parse_iso_timestamp("2026-02-10T10:00:00Z")
        datetime.datetime(2026, 2, 10, 10, 0, tzinfo=datetime.timezone.utc)

        >>> parse_iso_timestamp(None)
        None
    """
    if not timestamp_str:
        return None

    if not isinstance(timestamp_str, str):
        raise ValueError(f"Timestamp must be a string, got {type(timestamp_str)}")

    try:
        if timestamp_str.endswith("Z"):
            parsed = datetime.fromisoformat(timestamp_str[:-1] + "+00:00")
        else:
            parsed = datetime.fromisoformat(timestamp_str)
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid ISO timestamp format: {timestamp_str}") from e

    return ensure_utc(parsed)


def to_iso(value: datetime | None) -> str | None:
    """Render a datetime as an ISO 8601 UTC string ending in 'Z'."""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def calculate_duration_days(start: datetime | None, end: datetime | None) -> float | None:
    """
    Calculate the duration in days between two instants.

    Used for cycle time (creation -> completion) of work items.

    Args:
        start: Instant the work started (creation)
        end: Instant the work finished (completion)

    Returns:
        Duration in fractional days, or None if either instant is missing.
        Returns None if the duration is negative (invalid data).

    Examples:
        >>> calculate_duration_days(datetime(2026, 2, 1), datetime(2026, 2, 6))
        5.0

        >>> calculate_duration_days(None, datetime(2026, 2, 6))
        None
    """
    if start is None or end is None:
        return None

    duration_days = (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_DAY

    # Negative durations indicate data quality issues
    if duration_days < 0:
        return None

    return duration_days


def decode_identifier_timestamp(identifier: str | None) -> datetime | None:
    """
    Decode the creation instant embedded in an opaque identifier.

    Many providers generate ids whose first 8 hexadecimal characters are the
    creation time in Unix seconds (MongoDB ObjectId style).

    Args:
        identifier: Opaque item identifier

    Returns:
        UTC datetime decoded from the identifier, or None if the identifier
        is too short, not hexadecimal, or decodes to zero

    Examples:
        >>> decode_identifier_timestamp("65a1b2c3d4e5f60718293a4b")
        datetime.datetime(2024, 1, 12, 21, 44, 35, tzinfo=datetime.timezone.utc)

        >>> decode_identifier_timestamp("not-an-id")
        None
    """
    if not identifier or not isinstance(identifier, str) or len(identifier) < 8:
        return None

    prefix = identifier[:8]
    try:
        seconds = int(prefix, 16)
    except ValueError:
        return None

    if seconds <= 0:
        return None

    return datetime.fromtimestamp(seconds, tz=UTC)


# ===== Calendar boundaries =====


def start_of_day(value: datetime) -> datetime:
    """Midnight (00:00:00.000000) of the instant's UTC day."""
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    """Last representable instant (23:59:59.999999) of the instant's UTC day."""
    return ensure_utc(value).replace(hour=23, minute=59, second=59, microsecond=999999)


def start_of_week(value: datetime) -> datetime:
    """Monday 00:00 of the week containing the instant."""
    day = start_of_day(value)
    return day - timedelta(days=day.weekday())


def end_of_week(value: datetime) -> datetime:
    """Sunday 23:59:59.999999 of the week containing the instant."""
    return end_of_day(start_of_week(value) + timedelta(days=6))


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value).replace(day=1)


def end_of_month(value: datetime) -> datetime:
    value = ensure_utc(value)
    last_day = calendar.monthrange(value.year, value.month)[1]
    return end_of_day(value.replace(day=last_day))


def start_of_quarter(value: datetime) -> datetime:
    value = start_of_month(value)
    first_month = 3 * ((value.month - 1) // 3) + 1
    return value.replace(month=first_month)


def end_of_quarter(value: datetime) -> datetime:
    return end_of_month(shift_months(start_of_quarter(value), 2))


def start_of_year(value: datetime) -> datetime:
    return start_of_day(value).replace(month=1, day=1)


def end_of_year(value: datetime) -> datetime:
    return end_of_day(ensure_utc(value).replace(month=12, day=31))


def shift_months(value: datetime, months: int) -> datetime:
    """
    Move an instant by a whole number of calendar months.

    The day of month is clamped to the length of the target month
    (Jan 31 + 1 month -> Feb 28/29).

    Args:
        value: Instant to shift
        months: Number of months (negative moves backward)

    Returns:
        Shifted UTC datetime with the same time of day
    """
    value = ensure_utc(value)
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calendar_days_between(start: datetime, end: datetime) -> int:
    """
    Number of calendar-day boundaries between two instants.

    Both instants are normalized to midnight first, so the result is the
    plain date difference (end.date - start.date).
    """
    return (start_of_day(end) - start_of_day(start)).days
