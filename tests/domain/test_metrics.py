"""
Tests for comparison and series domain models
"""

import pytest

from flow_analytics.domain.metrics import MetricSeries, SeriesTrend, TrendDirection, classify_trend, compute_delta


class TestComputeDelta:
    """Test compute_delta"""

    def test_growth(self):
        """Test delta(10, 5)"""
        delta = compute_delta(10, 5)
        assert delta.absolute == 5
        assert delta.percentage == 100.0

    def test_from_zero(self):
        """Test delta(5, 0) is defined as 100%"""
        delta = compute_delta(5, 0)
        assert delta.absolute == 5
        assert delta.percentage == 100

    def test_zero_to_zero(self):
        """Test delta(0, 0) is flat with 0%"""
        delta = compute_delta(0, 0)
        assert delta.absolute == 0
        assert delta.percentage == 0
        assert delta.trend() is TrendDirection.FLAT

    def test_decline(self):
        """Test a decrease rounds to one decimal"""
        delta = compute_delta(2, 3)
        assert delta.absolute == -1
        assert delta.percentage == -33.3

    def test_float_absolute_rounded(self):
        """Test that the absolute change is rounded to 2 decimals"""
        assert compute_delta(0.3, 0.1).absolute == 0.2

    def test_to_dict(self):
        """Test serialization"""
        assert compute_delta(10, 5).to_dict() == {"absolute": 5, "percentage": 100.0}


class TestClassifyTrend:
    """Test classify_trend"""

    def test_higher_is_better(self):
        """Test counts: growth improves"""
        assert classify_trend(compute_delta(10, 5)) is TrendDirection.IMPROVING
        assert classify_trend(compute_delta(5, 10)) is TrendDirection.DECLINING

    def test_lower_is_better(self):
        """Test cycle time: growth declines"""
        assert classify_trend(compute_delta(10, 5), higher_is_better=False) is TrendDirection.DECLINING
        assert classify_trend(compute_delta(5, 10), higher_is_better=False) is TrendDirection.IMPROVING

    def test_flat_ignores_direction(self):
        """Test that no change is flat either way"""
        assert classify_trend(compute_delta(4, 4), higher_is_better=False) is TrendDirection.FLAT


class TestMetricSeries:
    """Test MetricSeries"""

    def test_length_mismatch(self):
        """Test that keys and values must align"""
        with pytest.raises(ValueError, match="same length"):
            MetricSeries(keys=["a", "b"], values=[1])

    def test_accessors(self):
        """Test latest, earliest, total and average"""
        series = MetricSeries(keys=["w1", "w2", "w3"], values=[4, 6, 5])

        assert series.latest() == 5
        assert series.earliest() == 4
        assert series.total() == 15
        assert series.average() == 5.0

    def test_peak_first_occurrence(self):
        """Test that the peak reports the first key holding the maximum"""
        series = MetricSeries(keys=["w1", "w2", "w3"], values=[2, 7, 7])
        assert series.peak() == ("w2", 7)

    def test_empty_series(self):
        """Test empty-series defaults"""
        series = MetricSeries(keys=[], values=[])

        assert series.latest() is None
        assert series.average() == 0.0
        assert series.peak() == (None, 0)
        assert series.minimum() == 0
        assert series.trend() is SeriesTrend.STABLE

    def test_cumulative(self):
        """Test running totals"""
        assert MetricSeries(keys=["a", "b", "c"], values=[1, 0, 3]).cumulative() == [1, 1, 4]

    def test_trend(self):
        """Test slope-based direction"""
        assert MetricSeries(keys=["a", "b", "c"], values=[1, 2, 3]).trend() is SeriesTrend.UP
        assert MetricSeries(keys=["a", "b", "c"], values=[3, 2, 1]).trend() is SeriesTrend.DOWN
        assert MetricSeries(keys=["a", "b", "c"], values=[2, 2, 2]).trend() is SeriesTrend.STABLE
