"""
Time-Series Bucketer

Partitions a period into daily, weekly or monthly buckets and counts
creations and completions per bucket. Buckets are pre-seeded with zero so
every series has one value per expected key.

Bucket keys:
    daily    YYYY-MM-DD
    weekly   YYYY-MM-DD of the Monday starting the week
    monthly  YYYY-MM

Granularity is chosen from the period length unless overridden:
<= 31 days daily, <= 365 days weekly, otherwise monthly.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from flow_analytics.calculators.classifier import is_completed_in, is_created_in
from flow_analytics.calculators.grouping import Dimension, group_refs_for
from flow_analytics.domain.constants import period_config
from flow_analytics.domain.errors import PeriodValidationError
from flow_analytics.domain.metrics import MetricSeries, SeriesTrend
from flow_analytics.domain.period import Granularity, Period
from flow_analytics.domain.work_item import Catalog, WorkItem
from flow_analytics.utils.datetime_utils import (
    end_of_day,
    end_of_month,
    ensure_utc,
    shift_months,
    start_of_day,
    start_of_month,
    start_of_week,
    to_iso,
)

logger = logging.getLogger(__name__)


def select_granularity(days: int) -> Granularity:
    """
    Pick the bucket size for a period length.

    Example:
        select_granularity(31)   # Granularity.DAILY
        select_granularity(32)   # Granularity.WEEKLY
        select_granularity(366)  # Granularity.MONTHLY
    """
    if days <= period_config.DAILY_MAX_DAYS:
        return Granularity.DAILY
    if days <= period_config.WEEKLY_MAX_DAYS:
        return Granularity.WEEKLY
    return Granularity.MONTHLY


def _coerce_granularity(granularity: Granularity | str) -> Granularity:
    if isinstance(granularity, Granularity):
        return granularity
    try:
        return Granularity(granularity)
    except ValueError as e:
        raise ValueError(f"Unknown granularity {granularity!r}; expected one of {[g.value for g in Granularity]}") from e


def bucket_key(instant: datetime, granularity: Granularity | str) -> str:
    """Key of the bucket containing an instant."""
    granularity = _coerce_granularity(granularity)
    instant = ensure_utc(instant)
    if granularity is Granularity.DAILY:
        return instant.strftime("%Y-%m-%d")
    if granularity is Granularity.WEEKLY:
        return start_of_week(instant).strftime("%Y-%m-%d")
    return instant.strftime("%Y-%m")


def bucket_start(key: str, granularity: Granularity | str) -> datetime:
    """
    First instant of the bucket identified by a key.

    Raises:
        ValueError: If the key does not match the granularity's format
    """
    granularity = _coerce_granularity(granularity)
    if granularity is Granularity.MONTHLY:
        return datetime.strptime(key, "%Y-%m").replace(tzinfo=UTC)

    start = datetime.strptime(key, "%Y-%m-%d").replace(tzinfo=UTC)
    if granularity is Granularity.WEEKLY and start.weekday() != 0:
        raise ValueError(f"Weekly bucket key must be a Monday: {key}")
    return start


def bucket_range(key: str, granularity: Granularity | str, period: Period | None = None) -> Period:
    """
    Inverse of bucket_key(): the instant range a key covers.

    Args:
        key: Bucket key
        granularity: Granularity the key was generated with
        period: When given, the range is clipped to this period (the first
            and last weekly/monthly buckets may extend past it)

    Returns:
        Period covering the bucket

    Raises:
        ValueError: If the key does not match the granularity's format
        PeriodValidationError: If the bucket does not overlap ``period``
    """
    granularity = _coerce_granularity(granularity)
    start = bucket_start(key, granularity)
    if granularity is Granularity.DAILY:
        end = end_of_day(start)
    elif granularity is Granularity.WEEKLY:
        end = end_of_day(start + timedelta(days=6))
    else:
        end = end_of_month(start)

    if period is not None:
        if end < period.start or start > period.end:
            raise PeriodValidationError(
                f"Bucket {key} ({granularity.value}) lies outside period {period.label or to_iso(period.start)}"
            )
        start = max(start, period.start)
        end = min(end, period.end)

    return Period(start=start, end=end, label=format_bucket_label(key, granularity))


def generate_bucket_keys(period: Period, granularity: Granularity | str) -> list[str]:
    """
    Every bucket key touching the period, in chronological order.

    Stepping starts from the bucket containing period.start (Monday or the
    first of the month), so the bucket containing period.end is always
    included.
    """
    granularity = _coerce_granularity(granularity)
    if granularity is Granularity.DAILY:
        current = start_of_day(period.start)
    elif granularity is Granularity.WEEKLY:
        current = start_of_week(period.start)
    else:
        current = start_of_month(period.start)

    keys = []
    while current <= period.end:
        keys.append(bucket_key(current, granularity))
        if granularity is Granularity.DAILY:
            current += timedelta(days=1)
        elif granularity is Granularity.WEEKLY:
            current += timedelta(days=7)
        else:
            current = shift_months(current, 1)
    return keys


def format_bucket_label(key: str, granularity: Granularity | str) -> str:
    """
    Short display label of a bucket.

    Example:
        format_bucket_label("2026-03-02", "daily")    # "Mar 02"
        format_bucket_label("2026-03-02", "weekly")   # "Mar 02 - Mar 08"
        format_bucket_label("2026-03", "monthly")     # "Mar 2026"
    """
    granularity = _coerce_granularity(granularity)
    start = bucket_start(key, granularity)
    if granularity is Granularity.DAILY:
        return start.strftime("%b %d")
    if granularity is Granularity.WEEKLY:
        return f"{start.strftime('%b %d')} - {(start + timedelta(days=6)).strftime('%b %d')}"
    return start.strftime("%b %Y")


def _count_into(keys: list[str], instants: Iterable[datetime], granularity: Granularity) -> list[int]:
    counts = dict.fromkeys(keys, 0)
    for instant in instants:
        key = bucket_key(instant, granularity)
        if key in counts:
            counts[key] += 1
    return [counts[key] for key in keys]


def bucketize(items: Iterable[WorkItem], period: Period, granularity: Granularity | str | None = None) -> dict:
    """
    Creation and completion counts per bucket.

    An item contributes to the "new" series through its creation instant and
    to the "completed" series through its completion instant, independently.
    Items without a creation instant are ignored.

    Args:
        items: Work items
        period: Analysis window
        granularity: Override of the automatic granularity

    Returns:
        {
            "period", "granularity", "bucket_keys", "labels",
            "new_counts", "completed_counts", "totals": {"new", "completed"}
        }
        with bucket_keys, labels, new_counts and completed_counts of equal length

    Example:
        series = bucketize(items, march)   # 31 days -> daily
        len(series["bucket_keys"])         # 31
    """
    items = tuple(items)
    granularity = _coerce_granularity(granularity) if granularity is not None else select_granularity(period.days)
    keys = generate_bucket_keys(period, granularity)

    new_counts = _count_into(
        keys, (item.creation_instant for item in items if is_created_in(item, period)), granularity
    )
    completed_counts = _count_into(
        keys, (item.completion_instant for item in items if is_completed_in(item, period)), granularity
    )

    logger.debug(
        "Series bucketized",
        extra={"extra_fields": {"period": period.label, "granularity": granularity.value, "points": len(keys)}},
    )

    return {
        "period": period.to_dict(),
        "granularity": granularity.value,
        "bucket_keys": keys,
        "labels": [format_bucket_label(key, granularity) for key in keys],
        "new_counts": new_counts,
        "completed_counts": completed_counts,
        "totals": {"new": sum(new_counts), "completed": sum(completed_counts)},
    }


def cumulative(values: Iterable[float]) -> list[float]:
    """Running totals of a series."""
    values = list(values)
    return MetricSeries(keys=[""] * len(values), values=values).cumulative()


def linear_trend(values: Iterable[float]) -> SeriesTrend:
    """Direction of a series by least-squares slope (+/- 0.1 threshold)."""
    values = list(values)
    return MetricSeries(keys=[""] * len(values), values=values).trend()


def build_evolution_dataset(
    items: Iterable[WorkItem],
    period: Period,
    granularity: Granularity | str | None = None,
    include_cumulative: bool = False,
) -> dict:
    """
    bucketize() output plus trend per series and, optionally, running totals.
    """
    dataset = bucketize(items, period, granularity)
    dataset["trends"] = {
        "new": linear_trend(dataset["new_counts"]).value,
        "completed": linear_trend(dataset["completed_counts"]).value,
    }
    if include_cumulative:
        dataset["new_cumulative"] = cumulative(dataset["new_counts"])
        dataset["completed_cumulative"] = cumulative(dataset["completed_counts"])
    return dataset


def summarize_series(dataset: dict) -> dict:
    """
    Averages, peaks and ranges of a bucketize() result.

    Returns:
        {
            "averages": {"new", "completed"},          # 1 decimal
            "peaks": {"new": {"value", "key", "label"}, "completed": {...}},
            "ranges": {"new": {"min", "max"}, "completed": {...}},
            "totals": {"new", "completed"},
        }
        Peaks report the first bucket holding the maximum.
    """
    keys = dataset["bucket_keys"]
    labels = dict(zip(keys, dataset["labels"], strict=True))

    summary: dict = {"averages": {}, "peaks": {}, "ranges": {}, "totals": dict(dataset["totals"])}
    for name, counts_field in (("new", "new_counts"), ("completed", "completed_counts")):
        series = MetricSeries(keys=list(keys), values=list(dataset[counts_field]), label=name)
        peak_key, peak_value = series.peak()
        summary["averages"][name] = series.average(decimals=1)
        summary["peaks"][name] = {"value": peak_value, "key": peak_key, "label": labels.get(peak_key)}
        summary["ranges"][name] = {"min": series.minimum(), "max": peak_value}
    return summary


def items_in_bucket(
    items: Iterable[WorkItem],
    key: str,
    granularity: Granularity | str,
    period: Period | None = None,
) -> dict:
    """
    Drill-down: the items behind one bucket of each series.

    Args:
        items: Work items
        key: Bucket key
        granularity: Granularity of the key
        period: Clip the bucket to this period (as bucketize() does)

    Returns:
        {"range": {...}, "created": [item dicts], "completed": [item dicts]}
        with items sorted by the relevant instant (see WorkItem.to_dict())
    """
    items = tuple(items)
    window = bucket_range(key, granularity, period)
    created = sorted(
        (item for item in items if is_created_in(item, window)),
        key=lambda item: (item.creation_instant, item.id),
    )
    completed = sorted(
        (item for item in items if is_completed_in(item, window)),
        key=lambda item: (item.completion_instant, item.id),
    )
    return {
        "range": window.to_dict(),
        "created": [item.to_dict() for item in created],
        "completed": [item.to_dict() for item in completed],
    }


def bucketize_by_group(
    items: Iterable[WorkItem],
    period: Period,
    dimension: Dimension | str,
    catalog: Catalog,
    granularity: Granularity | str | None = None,
) -> dict:
    """
    Per-group creation and completion series over shared bucket keys.

    Multi-valued dimensions count an item once in each of its groups.

    Returns:
        {"granularity", "bucket_keys", "labels", "groups": [{"key", "label",
        "new_counts", "completed_counts", "totals"}]} with groups ordered by
        total (new + completed) desc, then label
    """
    items = tuple(items)
    granularity = _coerce_granularity(granularity) if granularity is not None else select_granularity(period.days)
    keys = generate_bucket_keys(period, granularity)

    members: dict[str, tuple] = {}
    for item in items:
        for ref in group_refs_for(item, dimension, catalog):
            entry = members.setdefault(ref.key, (ref, []))
            entry[1].append(item)

    groups = []
    for ref, group_items in members.values():
        series = bucketize(group_items, period, granularity)
        groups.append(
            {
                "key": ref.key,
                "label": ref.label,
                "new_counts": series["new_counts"],
                "completed_counts": series["completed_counts"],
                "totals": series["totals"],
            }
        )

    groups.sort(key=lambda g: (-(g["totals"]["new"] + g["totals"]["completed"]), g["label"], g["key"]))
    return {
        "period": period.to_dict(),
        "granularity": granularity.value,
        "bucket_keys": keys,
        "labels": [format_bucket_label(key, granularity) for key in keys],
        "groups": groups,
    }
