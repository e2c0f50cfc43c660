"""
Work item resolution

Builds WorkItem snapshots from plain records and resolves the instants the
classifier depends on.

Creation instant precedence (first hit wins):
    1. explicit creation field set by a user
    2. earliest creation event in the activity log
    3. timestamp decoded from the identifier's leading bytes
    4. unresolved (the item classifies as irrelevant everywhere)

Never falls back to the current time.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from flow_analytics.domain.work_item import ActivityEvent, CreationSource, WorkItem
from flow_analytics.utils.datetime_utils import decode_identifier_timestamp, ensure_utc, parse_iso_timestamp
from flow_analytics.utils.error_handling import log_and_continue, log_and_return_default

logger = logging.getLogger(__name__)


def index_creation_events(activity_log: Iterable[ActivityEvent]) -> dict[str, datetime]:
    """
    Map item id -> earliest creation event instant.

    Using the earliest event makes the result independent of log order.
    """
    index: dict[str, datetime] = {}
    for event in activity_log:
        if not event.is_creation:
            continue
        current = index.get(event.item_id)
        if current is None or event.instant < current:
            index[event.item_id] = event.instant
    return index


def resolve_creation_instant(
    item_id: str,
    explicit_creation: datetime | None = None,
    activity_log: Iterable[ActivityEvent] | Mapping[str, datetime] = (),
) -> tuple[datetime | None, CreationSource]:
    """
    Resolve an item's creation instant.

    Args:
        item_id: Item identifier (also the last-resort timestamp source)
        explicit_creation: User-set creation field, if any
        activity_log: Activity events, or a precomputed index from
            index_creation_events()

    Returns:
        (instant, source); instant is None when source is UNRESOLVED

    Example:
        resolve_creation_instant("65a1b2c3d4e5f60718293a4b")
        # (datetime(2024, 1, 12, 21, 44, 35, tzinfo=UTC), CreationSource.IDENTIFIER)
    """
    if explicit_creation is not None:
        return ensure_utc(explicit_creation), CreationSource.EXPLICIT

    if isinstance(activity_log, Mapping):
        logged = activity_log.get(item_id)
    else:
        logged = index_creation_events(activity_log).get(item_id)
    if logged is not None:
        return logged, CreationSource.ACTIVITY_LOG

    decoded = decode_identifier_timestamp(item_id)
    if decoded is not None:
        return decoded, CreationSource.IDENTIFIER

    return None, CreationSource.UNRESOLVED


def resolve_completion_instant(is_complete: bool, completion: datetime | None) -> datetime | None:
    """Completion instant only counts when the item is flagged complete."""
    if not is_complete or completion is None:
        return None
    return ensure_utc(completion)


def _parse_field(record: Mapping[str, Any], field_name: str) -> datetime | None:
    value = record.get(field_name)
    if value is None or isinstance(value, datetime):
        return value
    try:
        return parse_iso_timestamp(value)
    except ValueError as e:
        return log_and_return_default(
            logger,
            e,
            context={"item_id": record.get("id"), "field": field_name, "value": str(value)},
            default_value=None,
            error_type="Timestamp parsing",
        )


def build_work_item(
    record: Mapping[str, Any],
    activity_log: Iterable[ActivityEvent] | Mapping[str, datetime] = (),
) -> WorkItem:
    """
    Build a WorkItem from a normalized plain record.

    Recognized keys: id (required), name, created, completed, is_complete,
    is_archived, stage_id, type_tag_ids, assignee_ids, due. Timestamps may
    be datetimes or ISO 8601 strings; unparseable ones are logged and treated
    as missing.

    Args:
        record: Normalized record
        activity_log: Activity events or creation index used for creation fallback

    Returns:
        WorkItem

    Raises:
        ValueError: If the record has no id

    Example:
        item = build_work_item({
            "id": "65a1b2c3d4e5f60718293a4b",
            "name": "Review contract",
            "completed": "2024-01-20T10:00:00Z",
            "is_complete": True,
            "type_tag_ids": ["legal"],
        })
        item.creation_source  # CreationSource.IDENTIFIER
    """
    item_id = record.get("id")
    if not item_id:
        raise ValueError("Work item record has no id")
    item_id = str(item_id)

    is_complete = bool(record.get("is_complete", False))
    creation, source = resolve_creation_instant(item_id, _parse_field(record, "created"), activity_log)

    return WorkItem(
        id=item_id,
        name=record.get("name") or "",
        creation_instant=creation,
        completion_instant=resolve_completion_instant(is_complete, _parse_field(record, "completed")),
        is_complete=is_complete,
        is_archived=bool(record.get("is_archived", False)),
        stage_id=record.get("stage_id"),
        type_tag_ids=tuple(record.get("type_tag_ids") or ()),
        assignee_ids=tuple(record.get("assignee_ids") or ()),
        due_instant=_parse_field(record, "due"),
        creation_source=source,
    )


def build_work_items(
    records: Iterable[Mapping[str, Any]],
    activity_log: Iterable[ActivityEvent] = (),
) -> tuple[WorkItem, ...]:
    """
    Build a snapshot from many records, skipping (and logging) broken ones.

    The activity log is indexed once for the whole batch.
    """
    creation_index = index_creation_events(activity_log)
    items = []
    for record in records:
        try:
            items.append(build_work_item(record, creation_index))
        except ValueError as e:
            log_and_continue(logger, e, {"record_name": record.get("name")}, "Work item build")
            continue

    logger.debug("Built work items", extra={"extra_fields": {"count": len(items)}})
    return tuple(items)
