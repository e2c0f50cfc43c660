#!/usr/bin/env python3
"""
Analytics Constants

Centralized, immutable tuning values for period handling, grouping,
KPI derivation, health scoring and data-quality reporting.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PeriodConfig:
    """
    Period and granularity constants.

    Attributes:
        MAX_CUSTOM_RANGE_DAYS: Longest custom range accepted (inclusive days)
        DAILY_MAX_DAYS: Longest period still bucketed by day
        WEEKLY_MAX_DAYS: Longest period still bucketed by week
        MIN_HISTORICAL_PERIODS: Smallest count accepted by the horizontal comparator

    Example:
        >>> period_config.DAILY_MAX_DAYS
        31
    """

    MAX_CUSTOM_RANGE_DAYS: int = 365
    """Custom ranges spanning more days are rejected"""

    DAILY_MAX_DAYS: int = 31
    """Periods up to 31 days use daily buckets"""

    WEEKLY_MAX_DAYS: int = 365
    """Periods up to 365 days use weekly buckets, longer ones monthly"""

    MIN_HISTORICAL_PERIODS: int = 1
    """At least one period must be requested"""


@dataclass(frozen=True)
class GroupingConfig:
    """
    Synthetic group keys for items lacking a value on a dimension.

    Example:
        >>> grouping_config.NO_STAGE_POSITION
        999
    """

    NO_STAGE_KEY: str = "no-stage"
    NO_STAGE_NAME: str = "No stage"
    NO_STAGE_POSITION: float = 999
    """Position reported for the synthetic stage (it always sorts last)"""

    NO_TAG_KEY: str = "no-tag"
    NO_TAG_NAME: str = "No tag"

    UNASSIGNED_KEY: str = "unassigned"
    UNASSIGNED_NAME: str = "Unassigned"


@dataclass(frozen=True)
class KPIThresholds:
    """
    KPI consistency tolerance and throughput status bands.

    Throughput status is evaluated top to bottom:
    > EXCELLENT -> excellent, > GOOD -> good, < CRITICAL -> critical,
    < ATTENTION -> attention, otherwise balanced.

    Example:
        >>> kpi_thresholds.AVERAGE_TOLERANCE
        0.01
    """

    AVERAGE_TOLERANCE: float = 0.01
    """Max allowed gap between a stored per-day average and its recomputed value"""

    THROUGHPUT_EXCELLENT_PCT: float = 110.0
    THROUGHPUT_GOOD_PCT: float = 90.0
    THROUGHPUT_CRITICAL_PCT: float = 50.0
    THROUGHPUT_ATTENTION_PCT: float = 70.0

    TREND_SLOPE_THRESHOLD: float = 0.1
    """Regression slope beyond which a series is considered rising or falling"""


@dataclass(frozen=True)
class HealthScoreConfig:
    """
    Weights of the 0-100 process health score.

    score = BASE + completion share * COMPLETION_WEIGHT
            + intake balance * BALANCE_WEIGHT
            +/- WIP_ADJUSTMENT depending on the WIP share
    """

    BASE_SCORE: float = 50.0
    COMPLETION_WEIGHT: float = 40.0
    BALANCE_WEIGHT: float = 20.0
    WIP_HEALTHY_RATIO: float = 0.3
    WIP_EXCESSIVE_RATIO: float = 0.5
    WIP_ADJUSTMENT: float = 10.0

    EXCELLENT_MIN: int = 80
    GOOD_MIN: int = 60
    FAIR_MIN: int = 40
    ATTENTION_MIN: int = 20


@dataclass(frozen=True)
class DataQualityConfig:
    """
    Data-quality report thresholds.

    Attributes:
        MAX_EXAMPLES_PER_TYPE: Example issues kept per issue type
        DUPLICATION_RISK_FACTOR: Factor above which multi-valued grouping is flagged
        ASSIGNEE_DUPLICATION_WARNING: Factor triggering the assignee inflation recommendation
        TAG_DUPLICATION_WARNING: Factor triggering the tag inflation recommendation
        MIN_RETENTION_PCT: Filters retaining less than this are considered too strict
        COVERAGE_WEIGHTS: (field, weight) pairs of the 0-100 coverage score
    """

    MAX_EXAMPLES_PER_TYPE: int = 5
    DUPLICATION_RISK_FACTOR: float = 1.1
    ASSIGNEE_DUPLICATION_WARNING: float = 1.5
    TAG_DUPLICATION_WARNING: float = 1.3

    MIN_CREATION_COVERAGE_PCT: float = 90.0
    MIN_TAG_COVERAGE_PCT: float = 50.0
    MIN_ASSIGNEE_COVERAGE_PCT: float = 70.0
    MIN_RETENTION_PCT: float = 10.0
    HEAVY_EXCLUSION_RATIO: float = 0.9

    COVERAGE_WEIGHTS: tuple[tuple[str, float], ...] = (
        ("creation", 30.0),
        ("stage", 20.0),
        ("cycle_time", 15.0),
        ("assignees", 15.0),
        ("type_tags", 10.0),
        ("due", 5.0),
        ("completion", 5.0),
    )


# Singleton instances for easy import
period_config = PeriodConfig()
grouping_config = GroupingConfig()
kpi_thresholds = KPIThresholds()
health_score_config = HealthScoreConfig()
data_quality_config = DataQualityConfig()
