"""
Tests for the period calculator
"""

from datetime import UTC, datetime

import pytest

from flow_analytics.calculators.periods import (
    EPOCH,
    calculate_period_days,
    calculate_period_range,
    describe_period,
    is_in_period,
    previous_period,
    validate_custom_range,
)
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.period import Period, PeriodType

# Monday 19 October 2026, 15:00 UTC
REFERENCE = datetime(2026, 10, 19, 15, 0, tzinfo=UTC)


def day(year, month, value):
    return datetime(year, month, value, tzinfo=UTC)


def last_instant(year, month, value):
    return datetime(year, month, value, 23, 59, 59, 999999, tzinfo=UTC)


class TestCalculatePeriodDays:
    """Tests for calculate_period_days"""

    def test_same_day(self):
        """Test day1..day1 is one day"""
        assert calculate_period_days(day(2026, 3, 1), day(2026, 3, 1)) == 1

    def test_one_week(self):
        """Test day1..day7 is seven days"""
        assert calculate_period_days(day(2026, 3, 1), day(2026, 3, 7)) == 7

    def test_end_of_day_end(self):
        """Test that an end-of-day end does not add a day"""
        assert calculate_period_days(day(2026, 3, 1), last_instant(2026, 3, 7)) == 7


class TestNamedPeriods:
    """Tests for calculate_period_range with named selectors"""

    def test_today(self):
        """Test today covers the reference day"""
        period = calculate_period_range(PeriodType.TODAY, REFERENCE)
        assert period.start == day(2026, 10, 19)
        assert period.end == last_instant(2026, 10, 19)
        assert period.days == 1
        assert period.label == "Today"

    def test_this_week_starts_monday(self):
        """Test this week runs Monday to Sunday"""
        period = calculate_period_range("this_week", datetime(2026, 10, 22, tzinfo=UTC))
        assert period.start == day(2026, 10, 19)
        assert period.end == last_instant(2026, 10, 25)

    def test_this_month(self):
        """Test this month covers the whole calendar month"""
        period = calculate_period_range("this_month", REFERENCE)
        assert period.start == day(2026, 10, 1)
        assert period.end == last_instant(2026, 10, 31)
        assert period.days == 31

    def test_this_quarter(self):
        """Test this quarter"""
        period = calculate_period_range("this_quarter", REFERENCE)
        assert period.start == day(2026, 10, 1)
        assert period.end == last_instant(2026, 12, 31)

    def test_this_year(self):
        """Test this year"""
        period = calculate_period_range("this_year", REFERENCE)
        assert period.start == day(2026, 1, 1)
        assert period.days == 365

    def test_last_7_days_includes_today(self):
        """Test the last 7 days end today"""
        period = calculate_period_range("last_7_days", REFERENCE)
        assert period.start == day(2026, 10, 13)
        assert period.end == last_instant(2026, 10, 19)
        assert period.days == 7

    def test_last_30_days(self):
        """Test the last 30 days"""
        assert calculate_period_range("last_30_days", REFERENCE).days == 30

    def test_last_n_days(self):
        """Test an arbitrary trailing window"""
        period = calculate_period_range("last_n_days", REFERENCE, last_n_days=90)
        assert period.days == 90
        assert period.label == "Last 90 days"

    @pytest.mark.parametrize("value", [None, 0, -3, 2.5, True])
    def test_last_n_days_invalid(self, value):
        """Test that last_n_days must be a positive integer"""
        with pytest.raises(PeriodValidationError, match="last_n_days"):
            calculate_period_range("last_n_days", REFERENCE, last_n_days=value)

    def test_all_defaults_to_epoch(self):
        """Test the all-time window without a known earliest instant"""
        period = calculate_period_range("all", REFERENCE)
        assert period.start == EPOCH
        assert period.end == last_instant(2026, 10, 19)

    def test_all_from_earliest_item(self):
        """Test the all-time window starts on the earliest item's day"""
        period = calculate_period_range("all", REFERENCE, earliest_instant=datetime(2025, 5, 4, 13, tzinfo=UTC))
        assert period.start == day(2025, 5, 4)

    def test_naive_reference_is_utc(self):
        """Test that a naive reference is read as UTC"""
        period = calculate_period_range("today", datetime(2026, 10, 19, 23, 30))
        assert period.start == day(2026, 10, 19)

    def test_unknown_type(self):
        """Test that unknown selectors are rejected"""
        with pytest.raises(PeriodValidationError, match="Unknown period type"):
            calculate_period_range("fortnight", REFERENCE)

    def test_reference_must_be_datetime(self):
        """Test that the reference instant is required"""
        with pytest.raises(PeriodValidationError, match="reference_instant"):
            calculate_period_range("today", None)  # type: ignore


class TestCustomPeriods:
    """Tests for custom ranges"""

    def test_custom_range(self):
        """Test a valid custom range covers whole days"""
        period = calculate_period_range(
            "custom", REFERENCE, custom_start=datetime(2026, 1, 1, 9), custom_end=datetime(2026, 1, 31, 9)
        )
        assert period.start == day(2026, 1, 1)
        assert period.end == last_instant(2026, 1, 31)
        assert period.days == 31
        assert period.label == "2026-01-01 - 2026-01-31"

    def test_span_of_365_days_accepted(self):
        """Test the maximum span"""
        period = calculate_period_range(
            "custom", REFERENCE, custom_start=day(2025, 1, 1), custom_end=day(2026, 1, 1)
        )
        assert period.days == 366

    def test_span_over_365_days_rejected(self):
        """Test that longer ranges raise instead of truncating"""
        with pytest.raises(PeriodValidationError, match="maximum is 365"):
            calculate_period_range("custom", REFERENCE, custom_start=day(2025, 1, 1), custom_end=day(2026, 1, 2))

    def test_start_after_end_rejected(self):
        """Test inverted bounds"""
        with pytest.raises(PeriodValidationError, match="must not be after"):
            validate_custom_range(day(2026, 2, 1), day(2026, 1, 1))

    def test_missing_bound_rejected(self):
        """Test that both bounds are required"""
        with pytest.raises(PeriodValidationError, match="requires both"):
            calculate_period_range("custom", REFERENCE, custom_start=day(2026, 1, 1))

    def test_non_datetime_bound_rejected(self):
        """Test that strings are not accepted as bounds"""
        with pytest.raises(PeriodValidationError, match="datetime"):
            validate_custom_range("2026-01-01", day(2026, 1, 31))  # type: ignore


class TestPreviousPeriod:
    """Tests for previous_period, is_in_period and describe_period"""

    def test_previous_week(self):
        """Test the preceding window of equal length"""
        previous = previous_period(Period(day(2026, 3, 8), day(2026, 3, 14)))

        assert previous.start == day(2026, 3, 1)
        assert previous.end == last_instant(2026, 3, 7)
        assert previous.days == 7
        assert previous.label == "Previous 7 days"

    def test_is_in_period(self):
        """Test membership helper"""
        period = Period(day(2026, 3, 1), day(2026, 3, 7))
        assert is_in_period(datetime(2026, 3, 7, 23, tzinfo=UTC), period)
        assert not is_in_period(None, period)

    def test_describe_period(self):
        """Test the one-line description with and without a label"""
        assert describe_period(Period(day(2026, 3, 1), day(2026, 3, 31), "March")) == (
            "March (2026-03-01 - 2026-03-31, 31 days)"
        )
        assert describe_period(Period(day(2026, 3, 1), day(2026, 3, 1))) == "2026-03-01 - 2026-03-01, 1 day"
