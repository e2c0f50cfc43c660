"""
Comparison and series domain models

    - Delta: period-over-period change of a scalar metric
    - TrendDirection: improving / declining / flat for a delta
    - SeriesTrend: up / down / stable for a whole series
    - MetricSeries: evenly spaced series of values keyed by bucket or period
"""

from dataclasses import dataclass
from enum import Enum

from flow_analytics.domain.constants import kpi_thresholds
from flow_analytics.utils.statistics import linear_regression_slope


class TrendDirection(Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    FLAT = "flat"


class SeriesTrend(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class Delta:
    """
    Change of a scalar metric between two periods.

    Attributes:
        current: Value in the more recent period
        previous: Value in the older period
        absolute: current - previous
        percentage: Relative change in percent (1 decimal)
    """

    current: float
    previous: float
    absolute: float
    percentage: float

    def trend(self, higher_is_better: bool = True) -> TrendDirection:
        return classify_trend(self, higher_is_better)

    def to_dict(self) -> dict:
        return {"absolute": self.absolute, "percentage": self.percentage}


def compute_delta(current: float, previous: float) -> Delta:
    """
    Compute the period-over-period delta of a metric.

    When previous is zero the percentage is 100 if current grew above zero,
    else 0, so the value is always defined.

    Args:
        current: Value in the more recent period
        previous: Value in the older period

    Returns:
        Delta with absolute and percentage change

    Example:
        compute_delta(10, 5)  # absolute=5, percentage=100.0
        compute_delta(5, 0)   # absolute=5, percentage=100
        compute_delta(0, 0)   # absolute=0, percentage=0
    """
    absolute = round(current - previous, 2)
    if previous != 0:
        percentage = round((current - previous) / previous * 100, 1)
    else:
        percentage = 100 if current > 0 else 0
    return Delta(current=current, previous=previous, absolute=absolute, percentage=percentage)


def classify_trend(delta: Delta, higher_is_better: bool = True) -> TrendDirection:
    """
    Classify a delta as improving, declining or flat.

    Args:
        delta: Delta to classify
        higher_is_better: False for metrics where a decrease is good
            (cycle time, WIP ratio)

    Returns:
        TrendDirection
    """
    if delta.absolute == 0:
        return TrendDirection.FLAT

    grew = delta.absolute > 0
    if grew == higher_is_better:
        return TrendDirection.IMPROVING
    return TrendDirection.DECLINING


@dataclass
class MetricSeries:
    """
    Evenly spaced series of values with helper methods.

    Attributes:
        keys: Bucket or period keys (chronological order)
        values: Value per key
        label: Optional label (e.g. "created", "completed")

    Example:
        series = MetricSeries(keys=["2026-03-02", "2026-03-09"], values=[4, 6], label="created")
        series.latest()    # 6
        series.trend()     # SeriesTrend.UP
    """

    keys: list[str]
    values: list[float]
    label: str | None = None

    def __post_init__(self) -> None:
        """
        Validate that keys and values have the same length.

        Raises:
            ValueError: If keys and values have different lengths
        """
        if len(self.keys) != len(self.values):
            raise ValueError(f"keys and values must have same length: {len(self.keys)} != {len(self.values)}")

    def latest(self) -> float | None:
        return self.values[-1] if self.values else None

    def earliest(self) -> float | None:
        return self.values[0] if self.values else None

    def total(self) -> float:
        return sum(self.values)

    def average(self, decimals: int = 1) -> float:
        if not self.values:
            return 0.0
        return round(self.total() / len(self.values), decimals)

    def peak(self) -> tuple[str | None, float]:
        """
        Highest value and the first key where it occurs.

        Returns:
            (key, value), or (None, 0) for an empty series
        """
        if not self.values:
            return None, 0
        peak_value = max(self.values)
        return self.keys[self.values.index(peak_value)], peak_value

    def minimum(self) -> float:
        return min(self.values) if self.values else 0

    def cumulative(self) -> list[float]:
        running = 0
        result = []
        for value in self.values:
            running += value
            result.append(running)
        return result

    def slope(self) -> float:
        return linear_regression_slope(self.values)

    def trend(self) -> SeriesTrend:
        """
        Direction of the least-squares line through the series.

        Returns:
            UP / DOWN when the slope exceeds the threshold, else STABLE
        """
        slope = self.slope()
        if slope > kpi_thresholds.TREND_SLOPE_THRESHOLD:
            return SeriesTrend.UP
        if slope < -kpi_thresholds.TREND_SLOPE_THRESHOLD:
            return SeriesTrend.DOWN
        return SeriesTrend.STABLE
