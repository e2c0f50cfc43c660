"""
KPI Engine - Flow KPIs of a period

Pure functions computing intake, output, WIP and cycle time for an item
collection over a period, plus the consistency check and two-period
comparison built on top of them.

Counting rules:
    - total_new: creation inside the period
    - total_completed: completion inside the period
    - total_in_progress: created by period end, not completed by period end
An item can satisfy several of these (created and completed in the same
period counts as new and completed). Items without a creation instant are
excluded from all three.
"""

import logging
from collections.abc import Iterable

from flow_analytics.calculators.classifier import (
    DEFAULT_POLICY,
    ClassificationPolicy,
    is_completed_in,
    is_created_in,
    is_in_progress_at,
)
from flow_analytics.domain.constants import kpi_thresholds
from flow_analytics.domain.flow import FlowKPIs
from flow_analytics.domain.metrics import classify_trend, compute_delta
from flow_analytics.domain.period import Period
from flow_analytics.domain.work_item import WorkItem
from flow_analytics.utils.statistics import calculate_summary_stats, mean_or_zero

logger = logging.getLogger(__name__)

# KPI name -> True when a higher value is better
KPI_DIRECTIONS = {
    "total_new": True,
    "total_completed": True,
    "total_in_progress": False,
    "avg_new_per_day": True,
    "avg_completed_per_day": True,
    "avg_process_time_days": False,
}


def completed_cycle_times(items: Iterable[WorkItem], period: Period) -> list[float]:
    """
    Cycle times (days) of items completed in the period.

    Items with a negative or unresolvable duration are left out.
    """
    cycle_times = []
    for item in items:
        if not is_completed_in(item, period):
            continue
        duration = item.cycle_time_days
        if duration is not None:
            cycle_times.append(duration)
    return cycle_times


def compute_flow_kpis(
    items: Iterable[WorkItem], period: Period, policy: ClassificationPolicy = DEFAULT_POLICY
) -> FlowKPIs:
    """
    Compute the flow KPIs of a period.

    Args:
        items: Work items (not mutated)
        period: Analysis window
        policy: Archived-item policy for the WIP count

    Returns:
        FlowKPIs

    Example:
        kpis = compute_flow_kpis(items, period)
        print(f"{kpis.total_completed} done, {kpis.total_in_progress} open")
    """
    items = tuple(items)
    days = period.days

    total_new = sum(1 for item in items if is_created_in(item, period))
    total_completed = sum(1 for item in items if is_completed_in(item, period))
    total_in_progress = sum(1 for item in items if is_in_progress_at(item, period, policy))
    cycle_times = completed_cycle_times(items, period)

    kpis = FlowKPIs(
        total_new=total_new,
        total_completed=total_completed,
        total_in_progress=total_in_progress,
        avg_new_per_day=round(total_new / days, 2),
        avg_completed_per_day=round(total_completed / days, 2),
        avg_process_time_days=mean_or_zero(cycle_times, decimals=2),
        period_days=days,
    )

    logger.debug(
        "Flow KPIs computed",
        extra={
            "extra_fields": {
                "period": period.label,
                "days": days,
                "total_new": total_new,
                "total_completed": total_completed,
                "total_in_progress": total_in_progress,
            }
        },
    )
    return kpis


def compute_detailed_flow_kpis(
    items: Iterable[WorkItem], period: Period, policy: ClassificationPolicy = DEFAULT_POLICY
) -> dict:
    """
    KPIs plus derived throughput, WIP and velocity blocks and the cycle-time
    distribution of the period's completed items.
    """
    items = tuple(items)
    kpis = compute_flow_kpis(items, period, policy)
    return {
        "period": period.to_dict(),
        **kpis.to_detailed_dict(),
        "cycle_time": calculate_summary_stats(completed_cycle_times(items, period)),
    }


def validate_kpis(kpis: FlowKPIs) -> dict:
    """
    Consistency check of a KPI bundle.

    Verifies non-negative values, period_days >= 1 and that the per-day
    averages agree with totals / period_days within the tolerance. Failures
    are returned (and logged as warnings), never raised.

    Returns:
        {"is_valid": bool, "errors": [str, ...]}
    """
    errors = []

    for name in (
        "total_new",
        "total_completed",
        "total_in_progress",
        "avg_new_per_day",
        "avg_completed_per_day",
        "avg_process_time_days",
    ):
        if getattr(kpis, name) < 0:
            errors.append(f"{name} must not be negative")

    if kpis.period_days < 1:
        errors.append("period_days must be at least 1")

    tolerance = kpi_thresholds.AVERAGE_TOLERANCE
    for average_name, total_name in (("avg_new_per_day", "total_new"), ("avg_completed_per_day", "total_completed")):
        expected = round(getattr(kpis, total_name) / kpis.period_days, 2) if kpis.period_days > 0 else 0
        actual = getattr(kpis, average_name)
        if abs(actual - expected) > tolerance + 1e-9:
            errors.append(f"{average_name} inconsistent: expected {expected}, got {actual}")

    if errors:
        logger.warning("KPI consistency check failed", extra={"extra_fields": {"errors": errors}})

    return {"is_valid": not errors, "errors": errors}


def compare_flow_kpis(
    items: Iterable[WorkItem],
    current_period: Period,
    previous_period: Period,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> dict:
    """
    KPIs of two periods and the change of each primitive KPI.

    Args:
        items: Work items
        current_period: More recent period
        previous_period: Baseline period
        policy: Archived-item policy

    Returns:
        {"current": {...}, "previous": {...}, "changes": {kpi: {"absolute",
        "percentage", "trend"}}}
    """
    items = tuple(items)
    current = compute_flow_kpis(items, current_period, policy)
    previous = compute_flow_kpis(items, previous_period, policy)

    changes = {}
    for name, higher_is_better in KPI_DIRECTIONS.items():
        delta = compute_delta(getattr(current, name), getattr(previous, name))
        changes[name] = {**delta.to_dict(), "trend": classify_trend(delta, higher_is_better).value}

    return {
        "current": {"period": current_period.to_dict(), "kpis": current.to_dict()},
        "previous": {"period": previous_period.to_dict(), "kpis": previous.to_dict()},
        "changes": changes,
    }
