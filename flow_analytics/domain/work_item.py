"""
Work item domain models

Represents the read-only snapshot the analytics core operates on:
    - WorkItem: a unit of work with creation/completion instants
    - Stage, TypeTag, Assignee: catalog entries referenced by id
    - ActivityEvent: entry of an item's activity log
    - Catalog: lookup of stages, type tags and assignees

All models are frozen. Collections are stored as tuples so a snapshot can be
shared by concurrent computations without copying.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from flow_analytics.utils.datetime_utils import calculate_duration_days, ensure_utc, ensure_utc_or_none, to_iso


class CreationSource(Enum):
    """Where an item's creation instant was resolved from."""

    EXPLICIT = "explicit"
    ACTIVITY_LOG = "activity_log"
    IDENTIFIER = "identifier"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Stage:
    """
    Pipeline stage (column) an item currently sits in.

    Attributes:
        id: Stage identifier
        name: Display name
        position: Sort position, lower means earlier in the pipeline
    """

    id: str
    name: str
    position: float = 0.0


@dataclass(frozen=True)
class TypeTag:
    """Categorical label; an item may carry zero or more."""

    id: str
    name: str
    color: str | None = None


@dataclass(frozen=True)
class Assignee:
    """Person or actor associated with an item."""

    id: str
    name: str


@dataclass(frozen=True)
class ActivityEvent:
    """
    Entry of the activity log supplied alongside items.

    Attributes:
        item_id: Item the event refers to
        event_type: Provider event name (e.g. "createCard")
        instant: When the event happened
    """

    item_id: str
    event_type: str
    instant: datetime

    CREATION_EVENT_TYPES = ("created", "createCard")

    def __post_init__(self) -> None:
        object.__setattr__(self, "instant", ensure_utc(self.instant))

    @property
    def is_creation(self) -> bool:
        return self.event_type in self.CREATION_EVENT_TYPES


@dataclass(frozen=True)
class WorkItem:
    """
    A tracked unit of work.

    Instants are normalized to timezone-aware UTC on construction; stage,
    tag and assignee references are ids resolved through a Catalog. Repeated
    ids within one item are collapsed so an item joins each group only once.

    Attributes:
        id: Opaque identifier
        name: Display name
        creation_instant: When the item was created (None if unresolvable)
        completion_instant: When the item was completed; only set when the
            item is marked complete and the time is known
        is_complete: Completion flag, independent of completion_instant
        is_archived: Archived items are excluded from most analyses
        stage_id: Current stage reference (0..1)
        type_tag_ids: Type tag references (0..N)
        assignee_ids: Assignee references (0..N)
        due_instant: Informational due date
        creation_source: How creation_instant was resolved

    Example:
        item = WorkItem(
            id="abc",
            name="Onboard supplier",
            creation_instant=datetime(2026, 3, 2, tzinfo=UTC),
            completion_instant=datetime(2026, 3, 7, tzinfo=UTC),
            is_complete=True,
            type_tag_ids=("contract",),
        )
        item.cycle_time_days  # 5.0
    """

    id: str
    name: str = ""
    creation_instant: datetime | None = None
    completion_instant: datetime | None = None
    is_complete: bool = False
    is_archived: bool = False
    stage_id: str | None = None
    type_tag_ids: tuple[str, ...] = ()
    assignee_ids: tuple[str, ...] = ()
    due_instant: datetime | None = None
    creation_source: CreationSource = CreationSource.EXPLICIT

    def __post_init__(self) -> None:
        object.__setattr__(self, "creation_instant", ensure_utc_or_none(self.creation_instant))
        object.__setattr__(self, "completion_instant", ensure_utc_or_none(self.completion_instant))
        object.__setattr__(self, "due_instant", ensure_utc_or_none(self.due_instant))
        object.__setattr__(self, "type_tag_ids", tuple(dict.fromkeys(self.type_tag_ids)))
        object.__setattr__(self, "assignee_ids", tuple(dict.fromkeys(self.assignee_ids)))
        if self.creation_instant is None and self.creation_source is not CreationSource.UNRESOLVED:
            object.__setattr__(self, "creation_source", CreationSource.UNRESOLVED)

    @property
    def has_creation(self) -> bool:
        return self.creation_instant is not None

    @property
    def has_negative_duration(self) -> bool:
        """True when completion precedes creation (unusable for durations)."""
        if self.creation_instant is None or self.completion_instant is None:
            return False
        return self.completion_instant < self.creation_instant

    @property
    def cycle_time_days(self) -> float | None:
        """
        Creation -> completion duration in days.

        Returns:
            Duration, or None when either instant is missing or the
            duration would be negative
        """
        return calculate_duration_days(self.creation_instant, self.completion_instant)

    def to_dict(self) -> dict:
        """Plain, JSON-ready view of the item (instants as ISO strings, references as ids)."""
        return {
            "id": self.id,
            "name": self.name,
            "creation_instant": to_iso(self.creation_instant),
            "completion_instant": to_iso(self.completion_instant),
            "is_complete": self.is_complete,
            "is_archived": self.is_archived,
            "stage_id": self.stage_id,
            "type_tag_ids": list(self.type_tag_ids),
            "assignee_ids": list(self.assignee_ids),
            "due_instant": to_iso(self.due_instant),
            "creation_source": self.creation_source.value,
            "cycle_time_days": self.cycle_time_days,
        }


@dataclass(frozen=True)
class Catalog:
    """
    Read-only lookup of the entities items reference.

    Example:
        catalog = Catalog(
            stages=(Stage("s1", "Backlog", 1), Stage("s2", "Done", 2)),
            type_tags=(TypeTag("t1", "Contract", "blue"),),
            assignees=(Assignee("a1", "Ana"),),
        )
        catalog.stage("s1").name  # "Backlog"
    """

    stages: tuple[Stage, ...] = ()
    type_tags: tuple[TypeTag, ...] = ()
    assignees: tuple[Assignee, ...] = ()

    _stages_by_id: dict[str, Stage] = field(init=False, repr=False, compare=False)
    _tags_by_id: dict[str, TypeTag] = field(init=False, repr=False, compare=False)
    _assignees_by_id: dict[str, Assignee] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stages", tuple(self.stages))
        object.__setattr__(self, "type_tags", tuple(self.type_tags))
        object.__setattr__(self, "assignees", tuple(self.assignees))
        object.__setattr__(self, "_stages_by_id", {stage.id: stage for stage in self.stages})
        object.__setattr__(self, "_tags_by_id", {tag.id: tag for tag in self.type_tags})
        object.__setattr__(self, "_assignees_by_id", {assignee.id: assignee for assignee in self.assignees})

    def stage(self, stage_id: str | None) -> Stage | None:
        if stage_id is None:
            return None
        return self._stages_by_id.get(stage_id)

    def type_tag(self, tag_id: str) -> TypeTag | None:
        return self._tags_by_id.get(tag_id)

    def assignee(self, assignee_id: str) -> Assignee | None:
        return self._assignees_by_id.get(assignee_id)
