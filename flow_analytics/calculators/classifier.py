"""
Item Classifier

Assigns each work item exactly one status for a period, and provides the
independent membership tests the KPI engine counts with.

Classification priority (first match wins):
    1. completed    - completion instant inside the period
    2. new          - creation instant inside the period
    3. in_progress  - created by period end, not completed by period end
    4. None         - irrelevant to the period

Items without a creation instant always classify as None.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from flow_analytics.domain.constants import health_score_config
from flow_analytics.domain.period import Period
from flow_analytics.domain.work_item import WorkItem

logger = logging.getLogger(__name__)


class Status(Enum):
    COMPLETED = "completed"
    NEW = "new"
    IN_PROGRESS = "in_progress"


STATUS_LABELS = {
    Status.NEW: "New",
    Status.IN_PROGRESS: "In progress",
    Status.COMPLETED: "Completed",
}

# Display order of status datasets
STATUS_ORDER = (Status.NEW, Status.IN_PROGRESS, Status.COMPLETED)


@dataclass(frozen=True)
class ClassificationPolicy:
    """
    Tunable classification rules.

    Attributes:
        archived_in_progress: When False (default), archived items that were
            never completed are not counted as work in progress
    """

    archived_in_progress: bool = False

    def excludes_from_wip(self, item: WorkItem) -> bool:
        return item.is_archived and not item.is_complete and not self.archived_in_progress


DEFAULT_POLICY = ClassificationPolicy()


def is_created_in(item: WorkItem, period: Period) -> bool:
    return period.contains(item.creation_instant)


def is_completed_in(item: WorkItem, period: Period) -> bool:
    """Completed inside the period; items without creation never qualify."""
    return item.creation_instant is not None and period.contains(item.completion_instant)


def is_in_progress_at(item: WorkItem, period: Period, policy: ClassificationPolicy = DEFAULT_POLICY) -> bool:
    """
    Open at the end of the period.

    Created on or before period end and either never completed or completed
    after period end. Items created inside the period qualify too.
    """
    if item.creation_instant is None or item.creation_instant > period.end:
        return False
    if item.completion_instant is not None and item.completion_instant <= period.end:
        return False
    return not policy.excludes_from_wip(item)


def classify(item: WorkItem, period: Period, policy: ClassificationPolicy = DEFAULT_POLICY) -> Status | None:
    """
    Classify one item for a period.

    Args:
        item: Work item
        period: Analysis window
        policy: Archived-item policy

    Returns:
        Status, or None when the item is irrelevant to the period

    Example:
        classify(item_created_and_completed_in_march, march)  # Status.COMPLETED
        classify(item_created_in_april, march)                # None
    """
    if item.creation_instant is None:
        return None
    if period.contains(item.completion_instant):
        return Status.COMPLETED
    if period.contains(item.creation_instant):
        return Status.NEW
    if is_in_progress_at(item, period, policy):
        return Status.IN_PROGRESS
    return None


def count_by_status(
    items: Iterable[WorkItem], period: Period, policy: ClassificationPolicy = DEFAULT_POLICY
) -> dict[str, int]:
    """
    Mutually exclusive status counts.

    Returns:
        {"new", "in_progress", "completed", "irrelevant", "total"} where
        total is the number of relevant items (new + in_progress + completed)
    """
    counts = {status.value: 0 for status in STATUS_ORDER}
    irrelevant = 0
    for item in items:
        status = classify(item, period, policy)
        if status is None:
            irrelevant += 1
        else:
            counts[status.value] += 1

    counts["irrelevant"] = irrelevant
    counts["total"] = sum(counts[status.value] for status in STATUS_ORDER)
    return counts


def filter_by_status(
    items: Iterable[WorkItem], period: Period, status: Status | str, policy: ClassificationPolicy = DEFAULT_POLICY
) -> tuple[WorkItem, ...]:
    """Items whose classification equals the given status."""
    wanted = Status(status)
    return tuple(item for item in items if classify(item, period, policy) is wanted)


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0
    return round(part / whole * 100, 1)


def status_distribution(
    items: Iterable[WorkItem], period: Period, policy: ClassificationPolicy = DEFAULT_POLICY
) -> dict:
    """
    Status breakdown ready for a pie/donut chart.

    Percentages are shares of the relevant items (1 decimal). Every status is
    present even when its count is zero.

    Returns:
        {"period": {...}, "total": int, "entries": [{"status", "label", "count", "percentage"}, ...]}
    """
    counts = count_by_status(items, period, policy)
    total = counts["total"]
    return {
        "period": period.to_dict(),
        "total": total,
        "entries": [
            {
                "status": status.value,
                "label": STATUS_LABELS[status],
                "count": counts[status.value],
                "percentage": _percentage(counts[status.value], total),
            }
            for status in STATUS_ORDER
        ],
    }


def calculate_health_score(counts: dict[str, int]) -> int:
    """
    0-100 health score from exclusive status counts.

    Rewards completing a large share of the relevant items and keeping
    output at or above intake; penalizes a large WIP share.

    Args:
        counts: Output of count_by_status()

    Returns:
        Integer score clamped to [0, 100]; 0 when nothing is relevant
    """
    total = counts["total"]
    if total == 0:
        return 0

    config = health_score_config
    completed = counts[Status.COMPLETED.value]
    new = counts[Status.NEW.value]
    in_progress = counts[Status.IN_PROGRESS.value]

    score = config.BASE_SCORE
    score += completed / total * config.COMPLETION_WEIGHT

    if completed >= new:
        score += config.BALANCE_WEIGHT
    else:
        score += completed / new * config.BALANCE_WEIGHT

    wip_ratio = in_progress / total
    if wip_ratio <= config.WIP_HEALTHY_RATIO:
        score += config.WIP_ADJUSTMENT
    elif wip_ratio > config.WIP_EXCESSIVE_RATIO:
        score -= config.WIP_ADJUSTMENT

    return max(0, min(100, int(score + 0.5)))


def health_label(score: int) -> str:
    config = health_score_config
    if score >= config.EXCELLENT_MIN:
        return "excellent"
    if score >= config.GOOD_MIN:
        return "good"
    if score >= config.FAIR_MIN:
        return "fair"
    if score >= config.ATTENTION_MIN:
        return "attention"
    return "critical"


def status_health(items: Iterable[WorkItem], period: Period, policy: ClassificationPolicy = DEFAULT_POLICY) -> dict:
    """
    Rates and health score derived from the exclusive status counts.

    Returns:
        Dictionary with completion/intake/WIP rates (percent of relevant
        items), per-day averages, health_score and health_status
    """
    counts = count_by_status(items, period, policy)
    total = counts["total"]
    days = period.days
    score = calculate_health_score(counts)

    logger.debug(
        "Status health computed",
        extra={"extra_fields": {"period": period.label, "relevant": total, "health_score": score}},
    )

    return {
        "counts": counts,
        "completion_rate": _percentage(counts[Status.COMPLETED.value], total),
        "intake_rate": _percentage(counts[Status.NEW.value], total),
        "wip_rate": _percentage(counts[Status.IN_PROGRESS.value], total),
        "avg_completions_per_day": round(counts[Status.COMPLETED.value] / days, 2),
        "avg_new_per_day": round(counts[Status.NEW.value] / days, 2),
        "health_score": score,
        "health_status": health_label(score),
    }
