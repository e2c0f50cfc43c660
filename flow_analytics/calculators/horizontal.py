"""
Horizontal Comparator

Builds N consecutive periods of one granularity walking backward from the
period containing a reference instant, computes flow KPIs and top groups for
each, and the period-over-period deltas between neighbours.

Usage:
    from flow_analytics.calculators.horizontal import build_periods, build_comparison_table

    periods = build_periods("month", 6, reference_instant)   # most recent first
    table = build_comparison_table(items, periods, catalog)
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from flow_analytics.calculators.classifier import DEFAULT_POLICY, ClassificationPolicy, is_completed_in
from flow_analytics.calculators.flow_kpis import compute_flow_kpis
from flow_analytics.calculators.grouping import Dimension, analyze_dimension, group_refs_for
from flow_analytics.core.logging_config import track_analysis
from flow_analytics.domain.constants import period_config
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.flow import FlowKPIs
from flow_analytics.domain.metrics import classify_trend, compute_delta
from flow_analytics.domain.period import HorizontalGranularity, Period
from flow_analytics.domain.work_item import Catalog, WorkItem
from flow_analytics.utils.datetime_utils import (
    end_of_month,
    end_of_quarter,
    end_of_week,
    end_of_year,
    ensure_utc,
    shift_months,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
)
from flow_analytics.utils.statistics import mean_or_zero

logger = logging.getLogger(__name__)

# Metric -> True when a higher value is better
METRIC_DIRECTIONS = {
    "total_new": True,
    "total_completed": True,
    "total_in_progress": False,
    "avg_new_per_day": True,
    "avg_completed_per_day": True,
    "avg_process_time_days": False,
    "throughput_rate": True,
    "wip_throughput_ratio": False,
    "net_flow": True,
}


def _coerce_granularity(granularity: HorizontalGranularity | str) -> HorizontalGranularity:
    if isinstance(granularity, HorizontalGranularity):
        return granularity
    try:
        return HorizontalGranularity(granularity)
    except ValueError as e:
        valid = [g.value for g in HorizontalGranularity]
        raise PeriodValidationError(f"Unknown horizontal granularity {granularity!r}; expected one of {valid}") from e


def format_period_label(start: datetime, granularity: HorizontalGranularity | str) -> str:
    """
    Display label of a historical period.

    Example:
        format_period_label(datetime(2026, 10, 12), "week")     # "2026-10-12 - 2026-10-18"
        format_period_label(datetime(2026, 10, 1), "month")     # "Oct 2026"
        format_period_label(datetime(2026, 10, 1), "quarter")   # "Q4 2026"
        format_period_label(datetime(2026, 1, 1), "year")       # "2026"
    """
    granularity = _coerce_granularity(granularity)
    start = ensure_utc(start)
    if granularity is HorizontalGranularity.WEEK:
        end = start + timedelta(days=6)
        return f"{start.date().isoformat()} - {end.date().isoformat()}"
    if granularity is HorizontalGranularity.MONTH:
        return start.strftime("%b %Y")
    if granularity is HorizontalGranularity.QUARTER:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return str(start.year)


def _period_at(reference: datetime, granularity: HorizontalGranularity, offset: int) -> Period:
    if granularity is HorizontalGranularity.WEEK:
        start = start_of_week(reference) - timedelta(days=7 * offset)
        end = end_of_week(start)
    elif granularity is HorizontalGranularity.MONTH:
        start = shift_months(start_of_month(reference), -offset)
        end = end_of_month(start)
    elif granularity is HorizontalGranularity.QUARTER:
        start = shift_months(start_of_quarter(reference), -3 * offset)
        end = end_of_quarter(start)
    else:
        start = start_of_year(reference).replace(year=reference.year - offset)
        end = end_of_year(start)
    return Period(start=start, end=end, label=format_period_label(start, granularity))


def build_periods(
    granularity: HorizontalGranularity | str, count: int, reference_instant: datetime
) -> list[Period]:
    """
    Consecutive, non-overlapping periods ending with the one containing the
    reference instant.

    Args:
        granularity: week | month | quarter | year
        count: Number of periods (>= 1)
        reference_instant: Anchor instant (the current period contains it)

    Returns:
        Periods, most recent first

    Raises:
        PeriodValidationError: If granularity is unknown or count < 1

    Example:
        build_periods("quarter", 2, datetime(2026, 10, 19, tzinfo=UTC))
        # [Q4 2026 (Oct 1 - Dec 31), Q3 2026 (Jul 1 - Sep 30)]
    """
    granularity = _coerce_granularity(granularity)
    if not isinstance(count, int) or isinstance(count, bool) or count < period_config.MIN_HISTORICAL_PERIODS:
        raise PeriodValidationError(f"count must be an integer >= {period_config.MIN_HISTORICAL_PERIODS}, got {count!r}")
    reference = ensure_utc(reference_instant)

    return [_period_at(reference, granularity, offset) for offset in range(count)]


def _compact_group(group: dict | None) -> dict | None:
    if group is None:
        return None
    return {
        "key": group["key"],
        "label": group["label"],
        "count": group["count"],
        "completed": group["completed"],
        "completion_rate": group["completion_rate"],
        "avg_cycle_time_days": group["avg_cycle_time_days"],
    }


def _top_by_count(groups: list[dict]) -> dict | None:
    if not groups:
        return None
    return min(groups, key=lambda g: (-g["count"], g["label"], g["key"]))


def _top_by_completion_rate(groups: list[dict]) -> dict | None:
    if not groups:
        return None
    return min(groups, key=lambda g: (-g["completion_rate"], -g["count"], g["label"], g["key"]))


def _metric_values(kpis: FlowKPIs) -> dict[str, float]:
    values = kpis.to_dict()
    values["throughput_rate"] = kpis.throughput_rate
    values["wip_throughput_ratio"] = kpis.wip_throughput_ratio
    values["net_flow"] = kpis.net_flow
    return values


def _rows_with_metrics(
    items: tuple[WorkItem, ...],
    periods: Sequence[Period],
    catalog: Catalog,
    policy: ClassificationPolicy,
) -> list[tuple[dict, dict[str, float]]]:
    result = []
    for period in periods:
        kpis = compute_flow_kpis(items, period, policy)
        tags = analyze_dimension(items, period, Dimension.TYPE_TAG, catalog, policy)["groups"]
        stages = analyze_dimension(items, period, Dimension.STAGE, catalog, policy)["groups"]
        assignees = analyze_dimension(items, period, Dimension.ASSIGNEE, catalog, policy)["groups"]

        row = {
            "period": period.to_dict(),
            "kpis": kpis.to_detailed_dict(),
            "top_type_tag": _compact_group(_top_by_count(tags)),
            "top_stage": _compact_group(_top_by_completion_rate(stages)),
            "top_assignee": _compact_group(_top_by_count(assignees)),
        }
        result.append((row, _metric_values(kpis)))

    logger.debug("Horizontal rows built", extra={"extra_fields": {"periods": len(result)}})
    return result


def build_rows(
    items: Iterable[WorkItem],
    periods: Sequence[Period],
    catalog: Catalog,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> list[dict]:
    """
    KPIs and top-ranked groups for each period.

    Top picks: type tag with the most items, stage with the highest
    completion rate (then most items), assignee with the most items. Ties
    are broken by label.

    Args:
        items: Work items
        periods: Periods to evaluate (order preserved)
        catalog: Catalog for group labels
        policy: Archived-item policy

    Returns:
        [{"period", "kpis", "top_type_tag", "top_stage", "top_assignee"}, ...]
    """
    return [row for row, _metrics in _rows_with_metrics(tuple(items), periods, catalog, policy)]


def build_comparison_table(
    items: Iterable[WorkItem],
    periods: Sequence[Period],
    catalog: Catalog,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> list[dict]:
    """
    build_rows() with each row's deltas against the next older period.

    Periods must be ordered most recent first (as build_periods() returns).
    The oldest row has ``deltas`` set to None.

    Returns:
        Rows with "deltas": {metric: {"absolute", "percentage", "trend"}}
    """
    with track_analysis("horizontal_comparison", periods=len(periods)) as ctx:
        rows = _rows_with_metrics(tuple(items), periods, catalog, policy)
        table = []
        for index, (row, metrics) in enumerate(rows):
            older = rows[index + 1][1] if index + 1 < len(rows) else None
            deltas = None
            if older is not None:
                deltas = {}
                for name, higher_is_better in METRIC_DIRECTIONS.items():
                    delta = compute_delta(metrics[name], older[name])
                    deltas[name] = {**delta.to_dict(), "trend": classify_trend(delta, higher_is_better).value}
            row["deltas"] = deltas
            table.append(row)
        ctx["rows"] = len(table)
    return table


def build_dimension_evolution(
    items: Iterable[WorkItem],
    periods: Sequence[Period],
    catalog: Catalog,
    exclude_archived: bool = True,
) -> list[dict]:
    """
    Per assignee, per type tag: completed count and average cycle time in
    each period.

    Every series has one point per period, aligned with ``periods`` by
    index. Only items completed inside a period count; archived items are
    skipped by default. Multi-valued tags and assignees count the item once
    per pair.

    Args:
        items: Work items
        periods: Periods (order preserved in every series)
        catalog: Catalog for labels
        exclude_archived: Skip archived items

    Returns:
        [{"key", "label", "total_completed", "type_tags": [{"key", "label",
        "color", "total_count", "series": [{"count", "avg_cycle_time_days"}]}]}]
        Assignees sorted by total_completed desc, tags by total_count desc,
        ties by label.
    """
    items = tuple(items)
    assignees: dict[str, dict] = {}

    for index, period in enumerate(periods):
        for item in items:
            if exclude_archived and item.is_archived:
                continue
            if not item.is_complete or not is_completed_in(item, period):
                continue

            for assignee_ref in group_refs_for(item, Dimension.ASSIGNEE, catalog):
                entry = assignees.setdefault(
                    assignee_ref.key, {"ref": assignee_ref, "total_completed": 0, "type_tags": {}}
                )
                entry["total_completed"] += 1
                for tag_ref in group_refs_for(item, Dimension.TYPE_TAG, catalog):
                    tag_entry = entry["type_tags"].setdefault(
                        tag_ref.key,
                        {"ref": tag_ref, "points": [{"count": 0, "cycle_times": []} for _ in periods]},
                    )
                    point = tag_entry["points"][index]
                    point["count"] += 1
                    if item.cycle_time_days is not None:
                        point["cycle_times"].append(item.cycle_time_days)

    result = []
    for entry in assignees.values():
        type_tags = []
        for tag_entry in entry["type_tags"].values():
            series = [
                {"count": point["count"], "avg_cycle_time_days": mean_or_zero(point["cycle_times"], decimals=2)}
                for point in tag_entry["points"]
            ]
            type_tags.append(
                {
                    "key": tag_entry["ref"].key,
                    "label": tag_entry["ref"].label,
                    "color": tag_entry["ref"].color,
                    "total_count": sum(point["count"] for point in series),
                    "series": series,
                }
            )
        type_tags.sort(key=lambda tag: (-tag["total_count"], tag["label"], tag["key"]))
        result.append(
            {
                "key": entry["ref"].key,
                "label": entry["ref"].label,
                "total_completed": entry["total_completed"],
                "type_tags": type_tags,
            }
        )

    result.sort(key=lambda row: (-row["total_completed"], row["label"], row["key"]))
    return result
