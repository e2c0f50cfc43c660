"""
Tests for the time-series bucketer
"""

import json
from datetime import UTC, datetime

import pytest

from flow_analytics.calculators.time_series import (
    bucket_key,
    bucket_range,
    bucket_start,
    bucketize,
    bucketize_by_group,
    build_evolution_dataset,
    cumulative,
    format_bucket_label,
    generate_bucket_keys,
    items_in_bucket,
    linear_trend,
    select_granularity,
    summarize_series,
)
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.metrics import SeriesTrend
from flow_analytics.domain.period import Granularity, Period
from flow_analytics.domain.work_item import WorkItem


@pytest.fixture
def first_quarter():
    """Provide Q1 2026 (90 days, weekly buckets)"""
    return Period(datetime(2026, 1, 1), datetime(2026, 3, 31), label="Q1")


class TestSelectGranularity:
    """Tests for granularity auto-selection"""

    @pytest.mark.parametrize(
        "days,expected",
        [
            (1, Granularity.DAILY),
            (31, Granularity.DAILY),
            (32, Granularity.WEEKLY),
            (365, Granularity.WEEKLY),
            (366, Granularity.MONTHLY),
        ],
    )
    def test_boundaries(self, days, expected):
        """Test the 31 / 365 day boundaries"""
        assert select_granularity(days) is expected


class TestBucketKeys:
    """Tests for key generation and inversion"""

    def test_bucket_key_formats(self):
        """Test key format per granularity"""
        instant = datetime(2026, 3, 4, 15, tzinfo=UTC)
        assert bucket_key(instant, "daily") == "2026-03-04"
        assert bucket_key(instant, "weekly") == "2026-03-02"
        assert bucket_key(instant, "monthly") == "2026-03"

    def test_daily_keys_cover_every_day(self, march):
        """Test that a 31-day period has 31 daily keys"""
        keys = generate_bucket_keys(march, Granularity.DAILY)
        assert len(keys) == 31
        assert keys[0] == "2026-03-01"
        assert keys[-1] == "2026-03-31"

    def test_weekly_keys_start_on_monday_before_period(self, first_quarter):
        """Test that weekly keys start at the Monday of the first week"""
        keys = generate_bucket_keys(first_quarter, Granularity.WEEKLY)
        assert keys[0] == "2025-12-29"
        assert keys[-1] == "2026-03-30"
        assert len(keys) == 14

    def test_weekly_last_week_included(self):
        """Test that the week containing period end is present when the start is mid-week"""
        period = Period(datetime(2026, 3, 5), datetime(2026, 4, 6))
        keys = generate_bucket_keys(period, Granularity.WEEKLY)
        assert keys[0] == "2026-03-02"
        assert keys[-1] == "2026-04-06"

    def test_monthly_keys(self):
        """Test monthly keys across a year boundary"""
        period = Period(datetime(2025, 1, 1), datetime(2026, 3, 31))
        keys = generate_bucket_keys(period, Granularity.MONTHLY)
        assert keys[0] == "2025-01"
        assert keys[-1] == "2026-03"
        assert len(keys) == 15

    def test_bucket_start_rejects_non_monday(self):
        """Test that weekly keys must be Mondays"""
        with pytest.raises(ValueError, match="Monday"):
            bucket_start("2026-03-04", Granularity.WEEKLY)

    def test_bucket_start_rejects_bad_key(self):
        """Test malformed keys"""
        with pytest.raises(ValueError):
            bucket_start("March", Granularity.MONTHLY)

    def test_unknown_granularity(self):
        """Test that unknown granularities raise"""
        with pytest.raises(ValueError, match="Unknown granularity"):
            bucket_key(datetime(2026, 3, 1), "hourly")

    def test_bucket_range_week(self):
        """Test the instant range of a weekly key"""
        window = bucket_range("2026-03-02", Granularity.WEEKLY)
        assert window.start == datetime(2026, 3, 2, tzinfo=UTC)
        assert window.end == datetime(2026, 3, 8, 23, 59, 59, 999999, tzinfo=UTC)
        assert window.label == "Mar 02 - Mar 08"

    def test_bucket_range_month(self):
        """Test the instant range of a monthly key"""
        window = bucket_range("2026-02", "monthly")
        assert window.end == datetime(2026, 2, 28, 23, 59, 59, 999999, tzinfo=UTC)
        assert window.days == 28

    def test_bucket_range_clipped_to_period(self, first_quarter):
        """Test that edge buckets are clipped to the period"""
        window = bucket_range("2025-12-29", Granularity.WEEKLY, first_quarter)
        assert window.start == datetime(2026, 1, 1, tzinfo=UTC)
        assert window.days == 4

    def test_bucket_range_outside_period(self, first_quarter):
        """Test that a bucket not touching the period is rejected by name"""
        with pytest.raises(PeriodValidationError, match=r"Bucket 2026-05 \(monthly\) lies outside period"):
            bucket_range("2026-05", "monthly", first_quarter)

    def test_labels(self):
        """Test display labels"""
        assert format_bucket_label("2026-03-02", "daily") == "Mar 02"
        assert format_bucket_label("2026-03-02", "weekly") == "Mar 02 - Mar 08"
        assert format_bucket_label("2026-03", "monthly") == "Mar 2026"


class TestBucketize:
    """Tests for bucketize"""

    def test_daily_series(self, sample_items, march):
        """Test creation and completion counts per day"""
        series = bucketize(sample_items, march)

        assert series["granularity"] == "daily"
        assert len(series["bucket_keys"]) == len(series["new_counts"]) == len(series["completed_counts"]) == 31
        assert series["new_counts"][1] == 1  # Mar 2
        assert series["new_counts"][9] == 1  # Mar 10
        assert series["completed_counts"][6] == 1  # Mar 7
        assert series["totals"] == {"new": 2, "completed": 1}

    def test_no_gaps(self, march):
        """Test that an empty snapshot still yields a zero for every bucket"""
        series = bucketize([], march)
        assert series["new_counts"] == [0] * 31
        assert series["completed_counts"] == [0] * 31

    def test_same_item_in_both_series(self, march):
        """Test that one item can land in different buckets of each series"""
        item = WorkItem(
            id="x",
            creation_instant=datetime(2026, 3, 3, tzinfo=UTC),
            completion_instant=datetime(2026, 3, 20, tzinfo=UTC),
            is_complete=True,
        )
        series = bucketize([item], march, "weekly")

        assert series["bucket_keys"] == ["2026-02-23", "2026-03-02", "2026-03-09", "2026-03-16", "2026-03-23", "2026-03-30"]
        assert series["new_counts"] == [0, 1, 0, 0, 0, 0]
        assert series["completed_counts"] == [0, 0, 0, 1, 0, 0]

    def test_weekly_last_instant(self, first_quarter):
        """Test that an item created at the last instant lands in the last bucket"""
        item = WorkItem(id="x", creation_instant=datetime(2026, 3, 31, 23, 59, tzinfo=UTC))
        series = bucketize([item], first_quarter)

        assert series["granularity"] == "weekly"
        assert series["new_counts"][-1] == 1

    def test_outside_period_ignored(self, march):
        """Test that items outside the window are not counted"""
        item = WorkItem(id="x", creation_instant=datetime(2026, 4, 1, tzinfo=UTC))
        assert bucketize([item], march)["totals"]["new"] == 0


class TestEvolution:
    """Tests for the evolution dataset, summaries and drill-down"""

    def test_cumulative_and_trend_helpers(self):
        """Test running totals and slope direction"""
        assert cumulative([1, 0, 2]) == [1, 1, 3]
        assert linear_trend([0, 1, 2, 4]) is SeriesTrend.UP
        assert linear_trend([]) is SeriesTrend.STABLE

    def test_evolution_dataset(self, sample_items, march):
        """Test trends and optional cumulative series"""
        dataset = build_evolution_dataset(sample_items, march, include_cumulative=True)

        assert set(dataset["trends"]) == {"new", "completed"}
        assert dataset["new_cumulative"][-1] == 2
        assert dataset["completed_cumulative"][-1] == 1

    def test_evolution_without_cumulative(self, sample_items, march):
        """Test that cumulative series are opt-in"""
        assert "new_cumulative" not in build_evolution_dataset(sample_items, march)

    def test_summarize_series(self, sample_items, march):
        """Test averages, peaks and ranges"""
        summary = summarize_series(bucketize(sample_items, march))

        assert summary["averages"] == {"new": 0.1, "completed": 0.0}
        assert summary["peaks"]["new"] == {"value": 1, "key": "2026-03-02", "label": "Mar 02"}
        assert summary["ranges"]["completed"] == {"min": 0, "max": 1}
        assert summary["totals"] == {"new": 2, "completed": 1}

    def test_items_in_bucket(self, sample_items):
        """Test drill-down into one weekly bucket"""
        drill = items_in_bucket(sample_items, "2026-03-02", Granularity.WEEKLY)

        assert [item["id"] for item in drill["created"]] == ["i1"]
        assert [item["id"] for item in drill["completed"]] == ["i1"]
        assert drill["range"]["start"] == "2026-03-02T00:00:00Z"

    def test_items_in_bucket_is_json_ready(self, sample_items):
        """Test that drill-down items are plain records"""
        drill = items_in_bucket(sample_items, "2026-03-02", "daily")

        assert json.loads(json.dumps(drill))["created"] == [
            {
                "id": "i1",
                "name": "Supplier contract",
                "creation_instant": "2026-03-02T00:00:00Z",
                "completion_instant": "2026-03-07T00:00:00Z",
                "is_complete": True,
                "is_archived": False,
                "stage_id": "s-done",
                "type_tag_ids": ["t-contract"],
                "assignee_ids": ["a-ana"],
                "due_instant": "2026-03-10T00:00:00Z",
                "creation_source": "explicit",
                "cycle_time_days": 5.0,
            }
        ]
        assert drill["completed"] == []

    def test_bucketize_by_group(self, sample_items, catalog, march):
        """Test per-group series over shared keys"""
        grouped = bucketize_by_group(sample_items, march, "type_tag", catalog)

        assert len(grouped["bucket_keys"]) == 31
        labels = [group["label"] for group in grouped["groups"]]
        assert labels == ["Contract", "Hiring", "No tag"]
        contract = grouped["groups"][0]
        assert contract["totals"] == {"new": 2, "completed": 1}
        assert len(contract["new_counts"]) == 31
