"""
Dimensional Grouper

Fans work items out into groups keyed by stage, type tag or assignee.

Type tags and assignees are multi-valued: an item with two tags is placed in
two tag groups, so the summed group counts exceed the number of unique items.
Percentages are therefore always computed against the unique item count, and
the inflation is exposed as ``duplication_factor``.

Items with no value for a dimension land in a synthetic group
(no-stage / no-tag / unassigned). Ids missing from the catalog keep their
own group labeled by id, except stages, which fall back to no-stage.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from flow_analytics.calculators.classifier import DEFAULT_POLICY, ClassificationPolicy, Status, classify
from flow_analytics.domain.constants import grouping_config
from flow_analytics.domain.period import Period
from flow_analytics.domain.work_item import Catalog, WorkItem
from flow_analytics.utils.statistics import calculate_summary_stats, mean_or_zero

logger = logging.getLogger(__name__)


class Dimension(Enum):
    STAGE = "stage"
    TYPE_TAG = "type_tag"
    ASSIGNEE = "assignee"


@dataclass(frozen=True)
class GroupRef:
    """Identity of a group: key, display label and sort attributes."""

    key: str
    label: str
    position: float | None = None
    color: str | None = None
    is_synthetic: bool = False


@dataclass
class Group:
    """A group and the items that fell into it."""

    ref: GroupRef
    items: list[WorkItem] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.ref.key

    @property
    def label(self) -> str:
        return self.ref.label

    @property
    def count(self) -> int:
        return len(self.items)


def _coerce_dimension(dimension: Dimension | str) -> Dimension:
    if isinstance(dimension, Dimension):
        return dimension
    try:
        return Dimension(dimension)
    except ValueError as e:
        raise ValueError(f"Unknown dimension {dimension!r}; expected one of {[d.value for d in Dimension]}") from e


def _no_stage() -> GroupRef:
    return GroupRef(
        key=grouping_config.NO_STAGE_KEY,
        label=grouping_config.NO_STAGE_NAME,
        position=grouping_config.NO_STAGE_POSITION,
        is_synthetic=True,
    )


def group_refs_for(item: WorkItem, dimension: Dimension | str, catalog: Catalog) -> list[GroupRef]:
    """
    Groups an item belongs to on one dimension (always at least one).

    Args:
        item: Work item
        dimension: Dimension to group on
        catalog: Lookup for names, positions and colors

    Returns:
        One GroupRef per distinct value, or the synthetic group
    """
    dimension = _coerce_dimension(dimension)

    if dimension is Dimension.STAGE:
        stage = catalog.stage(item.stage_id)
        if stage is None:
            return [_no_stage()]
        return [GroupRef(key=stage.id, label=stage.name, position=stage.position)]

    if dimension is Dimension.TYPE_TAG:
        if not item.type_tag_ids:
            return [GroupRef(key=grouping_config.NO_TAG_KEY, label=grouping_config.NO_TAG_NAME, is_synthetic=True)]
        refs = []
        for tag_id in item.type_tag_ids:
            tag = catalog.type_tag(tag_id)
            if tag is None:
                refs.append(GroupRef(key=tag_id, label=tag_id))
            else:
                refs.append(GroupRef(key=tag.id, label=tag.name, color=tag.color))
        return refs

    if not item.assignee_ids:
        return [
            GroupRef(key=grouping_config.UNASSIGNED_KEY, label=grouping_config.UNASSIGNED_NAME, is_synthetic=True)
        ]
    refs = []
    for assignee_id in item.assignee_ids:
        assignee = catalog.assignee(assignee_id)
        refs.append(GroupRef(key=assignee_id, label=assignee.name if assignee else assignee_id))
    return refs


def _sort_key(dimension: Dimension, ref: GroupRef, metric: float):
    if dimension is Dimension.STAGE:
        position = ref.position if ref.position is not None else grouping_config.NO_STAGE_POSITION
        return (ref.is_synthetic, position, ref.label, ref.key)
    return (-metric, ref.label, ref.key)


def group_by(items: Iterable[WorkItem], dimension: Dimension | str, catalog: Catalog) -> dict[str, Group]:
    """
    Group items on a dimension.

    Stage groups are ordered by position (no-stage last); tag and assignee
    groups by item count descending, ties broken by label.

    Args:
        items: Work items
        dimension: stage | type_tag | assignee
        catalog: Catalog for labels and positions

    Returns:
        Ordered mapping group key -> Group

    Example:
        groups = group_by(items, "type_tag", catalog)
        [(g.label, g.count) for g in groups.values()]
        # [("Contract", 4), ("Hiring", 2), ("No tag", 1)]
    """
    dimension = _coerce_dimension(dimension)
    groups: dict[str, Group] = {}
    for item in items:
        for ref in group_refs_for(item, dimension, catalog):
            group = groups.get(ref.key)
            if group is None:
                group = groups[ref.key] = Group(ref=ref)
            group.items.append(item)

    ordered = sorted(groups.values(), key=lambda g: _sort_key(dimension, g.ref, g.count))
    return {group.key: group for group in ordered}


def duplication_factor(summed_group_count: int, unique_item_count: int) -> float:
    """Summed group counts / unique items (2 decimals), 0 for no items."""
    if unique_item_count == 0:
        return 0
    return round(summed_group_count / unique_item_count, 2)


def _percentage(part: float, whole: float) -> float:
    if whole == 0:
        return 0
    return round(part / whole * 100, 1)


def analyze_dimension(
    items: Iterable[WorkItem],
    period: Period,
    dimension: Dimension | str,
    catalog: Catalog,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> dict:
    """
    Per-group flow breakdown of the items relevant to a period.

    Only items with a status in the period are grouped. Each group reports
    exclusive new / in-progress / completed counts, its completion rate, its
    share of the unique relevant items and cycle-time statistics of its
    completed items.

    Args:
        items: Work items
        period: Analysis window
        dimension: stage | type_tag | assignee
        catalog: Catalog for labels and positions
        policy: Archived-item policy

    Returns:
        {
            "dimension", "period", "unique_item_count", "summed_group_count",
            "duplication_factor", "groups": [...]
        }
    """
    dimension = _coerce_dimension(dimension)

    statuses: dict[WorkItem, Status] = {}
    relevant: list[WorkItem] = []
    for item in items:
        status = classify(item, period, policy)
        if status is not None:
            statuses[item] = status
            relevant.append(item)

    groups = group_by(relevant, dimension, catalog)
    unique_count = len(relevant)
    summed = sum(group.count for group in groups.values())

    rows = []
    for group in groups.values():
        counts = {status: 0 for status in Status}
        cycle_times = []
        for item in group.items:
            status = statuses[item]
            counts[status] += 1
            if status is Status.COMPLETED and item.cycle_time_days is not None:
                cycle_times.append(item.cycle_time_days)

        rows.append(
            {
                "key": group.key,
                "label": group.label,
                "position": group.ref.position,
                "color": group.ref.color,
                "is_synthetic": group.ref.is_synthetic,
                "count": group.count,
                "new": counts[Status.NEW],
                "in_progress": counts[Status.IN_PROGRESS],
                "completed": counts[Status.COMPLETED],
                "completion_rate": _percentage(counts[Status.COMPLETED], group.count),
                "share_of_items": _percentage(group.count, unique_count),
                "avg_cycle_time_days": mean_or_zero(cycle_times, decimals=2),
                "cycle_time": calculate_summary_stats(cycle_times),
            }
        )

    logger.debug(
        "Dimension analyzed",
        extra={
            "extra_fields": {
                "dimension": dimension.value,
                "period": period.label,
                "groups": len(rows),
                "unique_items": unique_count,
            }
        },
    )

    return {
        "dimension": dimension.value,
        "period": period.to_dict(),
        "unique_item_count": unique_count,
        "summed_group_count": summed,
        "duplication_factor": duplication_factor(summed, unique_count),
        "groups": rows,
    }


def duplication_report(items: Iterable[WorkItem], dimension: Dimension | str) -> dict:
    """
    How much a multi-valued dimension inflates per-group totals.

    Only explicit values are counted; items with none contribute 0.

    Returns:
        Dictionary with unique_items, summed_group_count, duplication_factor,
        items_with_multiple, percentage_with_multiple and an optional warning
    """
    dimension = _coerce_dimension(dimension)
    if dimension is Dimension.STAGE:
        raise ValueError("Stage is single-valued; duplication only applies to type_tag and assignee")

    items = tuple(items)
    values_of = (lambda i: i.type_tag_ids) if dimension is Dimension.TYPE_TAG else (lambda i: i.assignee_ids)

    unique_count = len(items)
    summed = sum(len(values_of(item)) for item in items)
    with_multiple = sum(1 for item in items if len(values_of(item)) > 1)

    warning = None
    if summed > unique_count:
        warning = f"Summing items per {dimension.value} exceeds the {unique_count} unique items"

    return {
        "dimension": dimension.value,
        "unique_items": unique_count,
        "summed_group_count": summed,
        "duplication_factor": duplication_factor(summed, unique_count),
        "items_with_multiple": with_multiple,
        "percentage_with_multiple": _percentage(with_multiple, unique_count),
        "warning": warning,
    }


def filter_by_group(
    items: Iterable[WorkItem], dimension: Dimension | str, key: str, catalog: Catalog
) -> tuple[WorkItem, ...]:
    """Items belonging to one group (synthetic keys included)."""
    dimension = _coerce_dimension(dimension)
    return tuple(item for item in items if any(ref.key == key for ref in group_refs_for(item, dimension, catalog)))


def unique_groups(items: Iterable[WorkItem], dimension: Dimension | str, catalog: Catalog) -> list[dict]:
    """
    Distinct groups present in the items, for filter pickers.

    Sorted by label with the synthetic group last.
    """
    dimension = _coerce_dimension(dimension)
    refs: dict[str, GroupRef] = {}
    for item in items:
        for ref in group_refs_for(item, dimension, catalog):
            refs.setdefault(ref.key, ref)

    ordered = sorted(refs.values(), key=lambda ref: (ref.is_synthetic, ref.label, ref.key))
    return [{"key": ref.key, "label": ref.label, "is_synthetic": ref.is_synthetic} for ref in ordered]


def build_assignee_tag_matrix(
    items: Iterable[WorkItem], period: Period, catalog: Catalog, exclude_archived: bool = True
) -> list[dict]:
    """
    Completed work per assignee per type tag within one period.

    Args:
        items: Work items
        period: Analysis window (completion must fall inside)
        catalog: Catalog for labels
        exclude_archived: Skip archived items

    Returns:
        Assignees sorted by total completed desc, each with its tags sorted
        by count desc: [{"key", "label", "total_completed", "tags": [{"key",
        "label", "count", "avg_cycle_time_days"}]}]
    """
    matrix: dict[str, dict] = {}
    for item in items:
        if exclude_archived and item.is_archived:
            continue
        if not item.is_complete or item.creation_instant is None or not period.contains(item.completion_instant):
            continue

        for assignee_ref in group_refs_for(item, Dimension.ASSIGNEE, catalog):
            entry = matrix.setdefault(
                assignee_ref.key, {"ref": assignee_ref, "total_completed": 0, "tags": {}}
            )
            entry["total_completed"] += 1
            for tag_ref in group_refs_for(item, Dimension.TYPE_TAG, catalog):
                cell = entry["tags"].setdefault(tag_ref.key, {"ref": tag_ref, "count": 0, "cycle_times": []})
                cell["count"] += 1
                if item.cycle_time_days is not None:
                    cell["cycle_times"].append(item.cycle_time_days)

    rows = []
    for entry in matrix.values():
        tags = [
            {
                "key": cell["ref"].key,
                "label": cell["ref"].label,
                "count": cell["count"],
                "avg_cycle_time_days": mean_or_zero(cell["cycle_times"], decimals=2),
            }
            for cell in entry["tags"].values()
        ]
        tags.sort(key=lambda tag: (-tag["count"], tag["label"], tag["key"]))
        rows.append(
            {
                "key": entry["ref"].key,
                "label": entry["ref"].label,
                "total_completed": entry["total_completed"],
                "tags": tags,
            }
        )

    rows.sort(key=lambda row: (-row["total_completed"], row["label"], row["key"]))
    return rows
