"""
Domain Models - Type-safe data structures for flow analytics

This package contains dataclasses representing the analysis snapshot and its results:
    - work_item: WorkItem, Stage, TypeTag, Assignee, ActivityEvent, Catalog
    - period: Period, PeriodType, Granularity, HorizontalGranularity
    - flow: FlowKPIs, ThroughputStatus
    - metrics: Delta, MetricSeries, TrendDirection, SeriesTrend
    - validation: DataQualityIssue, IssueType, Severity

Usage:
    from flow_analytics.domain.work_item import WorkItem
    from flow_analytics.domain.period import Period

    period = Period(datetime(2026, 3, 1), datetime(2026, 3, 31), label="March")
    item = WorkItem(id="abc", creation_instant=datetime(2026, 3, 4))
    period.contains(item.creation_instant)  # True
"""

from .errors import FilterValidationError, FlowAnalyticsError, PeriodValidationError
from .flow import FlowKPIs, ThroughputStatus
from .metrics import Delta, MetricSeries, SeriesTrend, TrendDirection, classify_trend, compute_delta
from .period import Granularity, HorizontalGranularity, Period, PeriodType
from .validation import DataQualityIssue, IssueType, Severity
from .work_item import ActivityEvent, Assignee, Catalog, CreationSource, Stage, TypeTag, WorkItem

__all__ = [
    # Snapshot
    "WorkItem",
    "Stage",
    "TypeTag",
    "Assignee",
    "ActivityEvent",
    "Catalog",
    "CreationSource",
    # Periods
    "Period",
    "PeriodType",
    "Granularity",
    "HorizontalGranularity",
    # Results
    "FlowKPIs",
    "ThroughputStatus",
    "Delta",
    "MetricSeries",
    "SeriesTrend",
    "TrendDirection",
    "compute_delta",
    "classify_trend",
    # Data quality
    "DataQualityIssue",
    "IssueType",
    "Severity",
    # Errors
    "FlowAnalyticsError",
    "PeriodValidationError",
    "FilterValidationError",
]
