"""
Statistics Utilities

Shared numeric helpers for cycle-time distributions and series trends.

Usage:
    from flow_analytics.utils.statistics import calculate_percentiles, mean_or_zero

    stats = calculate_percentiles(cycle_times, [50, 85, 95])
    average = mean_or_zero(cycle_times, decimals=2)
"""

import logging
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _interpolate(sorted_data: Sequence[float], percentile: float) -> float:
    if not 0 <= percentile <= 100:
        raise ValueError(f"Percentile must be 0-100, got {percentile}")

    n = len(sorted_data)
    index = (n - 1) * (percentile / 100.0)
    lower_index = int(index)
    upper_index = min(lower_index + 1, n - 1)

    fraction = index - lower_index
    lower_value = sorted_data[lower_index]
    upper_value = sorted_data[upper_index]
    return float(lower_value + fraction * (upper_value - lower_value))


def calculate_percentile(data: Sequence[float], percentile: float) -> float:
    """
    Calculate a single percentile value.

    Uses linear interpolation between values (same as numpy.percentile).

    Args:
        data: Sequence of numeric values
        percentile: Percentile to calculate (0-100)

    Returns:
        Percentile value

    Raises:
        ValueError: If data is empty or percentile is out of range

    Example:
        cycle_times = [1.0, 2.0, 3.0, 4.0, 5.0]
        median = calculate_percentile(cycle_times, 50)  # 3.0
    """
    if not data:
        raise ValueError("Cannot calculate percentile of empty data")

    return _interpolate(sorted(data), percentile)


def calculate_percentiles(data: Sequence[float], percentiles: list[float]) -> dict[str, float]:
    """
    Calculate multiple percentiles at once (data is sorted only once).

    Args:
        data: Sequence of numeric values
        percentiles: List of percentiles to calculate (e.g., [50, 85, 95])

    Returns:
        Dictionary keyed "p{percentile}". Empty data yields 0.0 for every key.

    Example:
        stats = calculate_percentiles([5, 10, 15, 20, 25, 30], [50, 85, 95])
        # {"p50": 17.5, "p85": 26.25, "p95": 28.75}
    """
    if not data:
        return {f"p{int(p)}": 0.0 for p in percentiles}

    sorted_data = sorted(data)
    return {f"p{int(p)}": _interpolate(sorted_data, p) for p in percentiles}


def mean_or_zero(data: Sequence[float], decimals: int | None = None) -> float:
    """
    Arithmetic mean that returns 0 for empty input instead of failing.

    Args:
        data: Sequence of numeric values
        decimals: Optional rounding applied to the result

    Returns:
        Mean of the values, or 0.0 if data is empty
    """
    if not data:
        return 0.0

    result = sum(data) / len(data)
    if decimals is not None:
        return round(result, decimals)
    return float(result)


def calculate_summary_stats(data: Sequence[float], decimals: int = 2) -> dict[str, float]:
    """
    Summary statistics for a duration distribution.

    Includes: count, min, max, mean, p50, p85, p95 (rounded).

    Args:
        data: Sequence of numeric values
        decimals: Rounding applied to every float statistic

    Returns:
        Dictionary with summary statistics (all zeros for empty data)

    Example:
        stats = calculate_summary_stats([5, 10, 15, 20, 25])
        # {"count": 5, "min": 5.0, "max": 25.0, "mean": 15.0,
        #  "p50": 15.0, "p85": 22.0, "p95": 24.0}
    """
    if not data:
        return {"count": 0, "min": 0.0, "max": 0.0, "mean": 0.0, "p50": 0.0, "p85": 0.0, "p95": 0.0}

    sorted_data = sorted(data)
    percentiles = calculate_percentiles(sorted_data, [50, 85, 95])

    return {
        "count": len(sorted_data),
        "min": round(float(sorted_data[0]), decimals),
        "max": round(float(sorted_data[-1]), decimals),
        "mean": round(sum(sorted_data) / len(sorted_data), decimals),
        **{key: round(value, decimals) for key, value in percentiles.items()},
    }


def linear_regression_slope(values: Sequence[float]) -> float:
    """
    Least-squares slope of values against their index (0, 1, 2, ...).

    Args:
        values: Evenly spaced series

    Returns:
        Slope per step, or 0.0 for fewer than two points

    Example:
        linear_regression_slope([1, 2, 3, 4])  # 1.0
    """
    n = len(values)
    if n < 2:
        return 0.0

    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * value for i, value in enumerate(values))
    sum_x2 = sum(i * i for i in range(n))

    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
