"""
Tests for the horizontal comparator
"""

from datetime import UTC, datetime

import pytest

from flow_analytics.calculators.horizontal import (
    build_comparison_table,
    build_dimension_evolution,
    build_periods,
    build_rows,
    format_period_label,
)
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.metrics import compute_delta
from flow_analytics.domain.work_item import WorkItem


class TestBuildPeriods:
    """Tests for build_periods and format_period_label"""

    def test_months_most_recent_first(self, reference_instant):
        """Test that the first period contains the reference instant"""
        periods = build_periods("month", 3, reference_instant)

        assert [p.label for p in periods] == ["Mar 2026", "Feb 2026", "Jan 2026"]
        assert periods[0].contains(reference_instant)
        assert periods[1].end == datetime(2026, 2, 28, 23, 59, 59, 999999, tzinfo=UTC)

    def test_periods_do_not_overlap(self, reference_instant):
        """Test that neighbours are consecutive and disjoint"""
        periods = build_periods("week", 4, reference_instant)
        for newer, older in zip(periods, periods[1:]):
            assert older.end < newer.start
            assert (newer.start - older.end).total_seconds() < 1

    def test_weeks(self, reference_instant):
        """Test Monday-to-Sunday weeks and their labels"""
        periods = build_periods("week", 2, reference_instant)
        assert [p.label for p in periods] == ["2026-03-30 - 2026-04-05", "2026-03-23 - 2026-03-29"]
        assert all(p.days == 7 for p in periods)

    def test_quarters_cross_year(self, reference_instant):
        """Test quarter stepping across a year boundary"""
        periods = build_periods("quarter", 2, reference_instant)
        assert [p.label for p in periods] == ["Q1 2026", "Q4 2025"]
        assert periods[1].start == datetime(2025, 10, 1, tzinfo=UTC)

    def test_years(self, reference_instant):
        """Test yearly periods"""
        assert [p.label for p in build_periods("year", 2, reference_instant)] == ["2026", "2025"]

    @pytest.mark.parametrize("count", [0, -1, True, 2.5])
    def test_invalid_count(self, count, reference_instant):
        """Test that counts below one or of the wrong type are rejected"""
        with pytest.raises(PeriodValidationError, match="count must be"):
            build_periods("month", count, reference_instant)

    def test_unknown_granularity(self, reference_instant):
        """Test that unknown granularities are rejected"""
        with pytest.raises(PeriodValidationError, match="Unknown horizontal granularity"):
            build_periods("fortnight", 2, reference_instant)

    def test_labels(self):
        """Test label formats"""
        assert format_period_label(datetime(2026, 10, 12), "week") == "2026-10-12 - 2026-10-18"
        assert format_period_label(datetime(2026, 10, 1), "quarter") == "Q4 2026"


class TestDelta:
    """Tests for the period-over-period delta rules"""

    def test_regular_change(self):
        """Test a doubling"""
        delta = compute_delta(10, 5)
        assert (delta.absolute, delta.percentage) == (5, 100.0)

    def test_from_zero(self):
        """Test growth from zero"""
        assert compute_delta(5, 0).percentage == 100

    def test_zero_to_zero(self):
        """Test no activity in either period"""
        delta = compute_delta(0, 0)
        assert (delta.absolute, delta.percentage) == (0, 0)


class TestBuildRows:
    """Tests for build_rows and build_comparison_table"""

    def test_top_picks(self, sample_items, catalog, reference_instant):
        """Test top tag, stage and assignee for March"""
        periods = build_periods("month", 2, reference_instant)
        march = build_rows(sample_items, periods, catalog)[0]

        assert march["period"]["label"] == "Mar 2026"
        assert march["kpis"]["total_new"] == 2
        assert march["kpis"]["throughput"]["rate"] == 50.0
        assert march["top_type_tag"]["label"] == "Contract"
        assert march["top_type_tag"]["count"] == 2
        assert march["top_stage"]["label"] == "Done"
        assert march["top_stage"]["completion_rate"] == 100.0
        assert march["top_assignee"]["label"] == "Ana"

    def test_empty_period_has_no_top_picks(self, catalog):
        """Test that a period without relevant items has None picks"""
        periods = build_periods("month", 1, datetime(2030, 1, 15, tzinfo=UTC))
        row = build_rows([], periods, catalog)[0]

        assert row["kpis"]["total_new"] == 0
        assert row["top_type_tag"] is None
        assert row["top_stage"] is None
        assert row["top_assignee"] is None

    def test_comparison_deltas(self, sample_items, catalog, reference_instant):
        """Test deltas against the next older period"""
        periods = build_periods("month", 2, reference_instant)
        table = build_comparison_table(sample_items, periods, catalog)

        deltas = table[0]["deltas"]
        assert deltas["total_new"] == {"absolute": -1, "percentage": -33.3, "trend": "declining"}
        assert deltas["total_completed"]["trend"] == "flat"
        assert deltas["avg_process_time_days"]["trend"] == "improving"
        assert set(deltas) >= {"throughput_rate", "wip_throughput_ratio", "net_flow"}

    def test_oldest_row_has_no_deltas(self, sample_items, catalog, reference_instant):
        """Test that the last (oldest) row has nothing to compare with"""
        table = build_comparison_table(sample_items, build_periods("month", 3, reference_instant), catalog)
        assert table[-1]["deltas"] is None
        assert table[0]["deltas"] is not None


class TestDimensionEvolution:
    """Tests for build_dimension_evolution"""

    def test_series_aligned_with_periods(self, sample_items, catalog, reference_instant):
        """Test one point per period for each assignee and tag"""
        periods = build_periods("month", 2, reference_instant)
        evolution = build_dimension_evolution(sample_items, periods, catalog)

        assert [row["label"] for row in evolution] == ["Ana", "Ben"]
        ana, ben = evolution
        assert ana["total_completed"] == 1
        assert ana["type_tags"][0]["label"] == "Contract"
        assert ana["type_tags"][0]["color"] == "blue"
        assert ana["type_tags"][0]["series"] == [
            {"count": 1, "avg_cycle_time_days": 5.0},
            {"count": 0, "avg_cycle_time_days": 0.0},
        ]
        assert ben["type_tags"][0]["series"] == [
            {"count": 0, "avg_cycle_time_days": 0.0},
            {"count": 1, "avg_cycle_time_days": 14.0},
        ]

    def test_archived_items_skipped_by_default(self, catalog, reference_instant):
        """Test the archived switch"""
        item = WorkItem(
            id="x",
            creation_instant=datetime(2026, 3, 1, tzinfo=UTC),
            completion_instant=datetime(2026, 3, 3, tzinfo=UTC),
            is_complete=True,
            is_archived=True,
            assignee_ids=("a-ben",),
        )
        periods = build_periods("month", 1, reference_instant)

        assert build_dimension_evolution([item], periods, catalog) == []
        evolution = build_dimension_evolution([item], periods, catalog, exclude_archived=False)
        assert evolution[0]["label"] == "Ben"
        assert evolution[0]["type_tags"][0]["label"] == "No tag"

    def test_multi_valued_item_counts_per_pair(self, catalog, reference_instant):
        """Test that an item with two tags counts once under each"""
        item = WorkItem(
            id="x",
            creation_instant=datetime(2026, 3, 1, tzinfo=UTC),
            completion_instant=datetime(2026, 3, 3, tzinfo=UTC),
            is_complete=True,
            type_tag_ids=("t-contract", "t-hiring"),
            assignee_ids=("a-ana",),
        )
        evolution = build_dimension_evolution([item], build_periods("month", 1, reference_instant), catalog)

        assert evolution[0]["total_completed"] == 1
        assert [tag["label"] for tag in evolution[0]["type_tags"]] == ["Contract", "Hiring"]
