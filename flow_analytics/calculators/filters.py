"""
Analysis filters

Explicit filter struct applied to a snapshot before analysis. Unknown keys
and ill-typed values are rejected instead of silently ignored.

Usage:
    from flow_analytics.calculators.filters import AnalysisFilters, apply_filters

    filters = AnalysisFilters.from_mapping({"assignee_id": "a1", "exclude_archived": True})
    visible = apply_filters(items, filters)
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from flow_analytics.domain.errors import FilterValidationError
from flow_analytics.domain.work_item import WorkItem
from flow_analytics.utils.datetime_utils import ensure_utc, parse_iso_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisFilters:
    """
    Every recognized filter with its type and default.

    Attributes:
        exclude_archived: Drop archived items (default True)
        is_complete: Keep only items with this completion flag
        stage_id: Keep only items in this stage
        assignee_id: Keep only items assigned to this assignee
        type_tag_id: Keep only items carrying this type tag
        created_from: Keep only items created at or after this instant
        created_to: Keep only items created at or before this instant
    """

    exclude_archived: bool = True
    is_complete: bool | None = None
    stage_id: str | None = None
    assignee_id: str | None = None
    type_tag_id: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    def __post_init__(self) -> None:
        """
        Validate types and normalize instants.

        Raises:
            FilterValidationError: If a value has the wrong type or the
                creation bounds are inverted
        """
        if not isinstance(self.exclude_archived, bool):
            raise FilterValidationError(f"exclude_archived must be a bool, got {type(self.exclude_archived).__name__}")
        if self.is_complete is not None and not isinstance(self.is_complete, bool):
            raise FilterValidationError(f"is_complete must be a bool or None, got {type(self.is_complete).__name__}")

        for name in ("stage_id", "assignee_id", "type_tag_id"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise FilterValidationError(f"{name} must be a string or None, got {type(value).__name__}")

        for name in ("created_from", "created_to"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, str):
                try:
                    value = parse_iso_timestamp(value)
                except ValueError as e:
                    raise FilterValidationError(f"{name} is not a valid ISO 8601 timestamp: {value}") from e
            elif isinstance(value, datetime):
                value = ensure_utc(value)
            else:
                raise FilterValidationError(f"{name} must be a datetime or None, got {type(value).__name__}")
            object.__setattr__(self, name, value)

        if self.created_from is not None and self.created_to is not None and self.created_from > self.created_to:
            raise FilterValidationError("created_from must not be after created_to")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "AnalysisFilters":
        """
        Build filters from a plain mapping.

        Raises:
            FilterValidationError: If the mapping has unknown keys or bad values
        """
        if mapping is None:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise FilterValidationError(f"Unknown filter keys: {unknown}; recognized keys are {sorted(known)}")

        return cls(**dict(mapping))

    def to_dict(self) -> dict:
        return {
            f.name: (value.isoformat() if isinstance(value, datetime) else value)
            for f in fields(self)
            if (value := getattr(self, f.name)) is not None
        }

    def steps(self) -> list[tuple[str, Any, Callable[[WorkItem], bool]]]:
        """Active filters in application order as (name, value, predicate)."""
        active: list[tuple[str, Any, Callable[[WorkItem], bool]]] = []
        if self.exclude_archived:
            active.append(("exclude_archived", True, lambda item: not item.is_archived))
        if self.is_complete is not None:
            active.append(("is_complete", self.is_complete, lambda item: item.is_complete == self.is_complete))
        if self.stage_id is not None:
            active.append(("stage_id", self.stage_id, lambda item: item.stage_id == self.stage_id))
        if self.assignee_id is not None:
            active.append(("assignee_id", self.assignee_id, lambda item: self.assignee_id in item.assignee_ids))
        if self.type_tag_id is not None:
            active.append(("type_tag_id", self.type_tag_id, lambda item: self.type_tag_id in item.type_tag_ids))
        if self.created_from is not None:
            active.append(
                (
                    "created_from",
                    self.created_from.isoformat(),
                    lambda item: item.creation_instant is not None and item.creation_instant >= self.created_from,
                )
            )
        if self.created_to is not None:
            active.append(
                (
                    "created_to",
                    self.created_to.isoformat(),
                    lambda item: item.creation_instant is not None and item.creation_instant <= self.created_to,
                )
            )
        return active


def apply_filters(items: Iterable[WorkItem], filters: AnalysisFilters | None = None) -> tuple[WorkItem, ...]:
    """
    Apply filters to a snapshot.

    Args:
        items: Work items
        filters: Filters to apply (defaults exclude archived items)

    Returns:
        New tuple with the items passing every active filter
    """
    filters = filters or AnalysisFilters()
    result = tuple(items)
    for _name, _value, predicate in filters.steps():
        result = tuple(item for item in result if predicate(item))
    return result


def apply_filters_with_steps(
    items: Iterable[WorkItem], filters: AnalysisFilters | None = None
) -> tuple[tuple[WorkItem, ...], list[dict]]:
    """
    Apply filters and record how many items each one removed.

    Returns:
        (filtered items, [{"filter", "value", "before", "after", "excluded"}, ...])
    """
    filters = filters or AnalysisFilters()
    current = tuple(items)
    steps = []
    for name, value, predicate in filters.steps():
        before = len(current)
        current = tuple(item for item in current if predicate(item))
        steps.append(
            {"filter": name, "value": value, "before": before, "after": len(current), "excluded": before - len(current)}
        )

    logger.debug("Filters applied", extra={"extra_fields": {"steps": len(steps), "remaining": len(current)}})
    return current, steps
