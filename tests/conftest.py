"""
Pytest configuration and shared fixtures

Provides a small, fully known snapshot (catalog + work items) around March 2026
so calculators can be checked against hand-computed numbers.

March 2026 view of ``sample_items``:
    i1  created Mar 2, completed Mar 7        -> completed (cycle time 5.0)
    i2  created Mar 10, open, 2 tags/2 people -> new
    i3  created Feb 20, open, no tags/people  -> in progress
    i4  created Feb 1, completed Feb 15       -> irrelevant
    i5  created Apr 2                         -> irrelevant
    i6  no creation instant                   -> irrelevant
    i7  archived, created Feb 25, never done  -> irrelevant (default policy)
"""

from datetime import UTC, datetime

import pytest

from flow_analytics.domain.period import Period
from flow_analytics.domain.work_item import Assignee, Catalog, Stage, TypeTag, WorkItem


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


# ===== Catalog Fixtures =====


@pytest.fixture
def catalog():
    """Provide a catalog with three stages, two type tags and two assignees"""
    return Catalog(
        stages=(
            Stage("s-todo", "To do", 1),
            Stage("s-doing", "Doing", 2),
            Stage("s-done", "Done", 3),
        ),
        type_tags=(
            TypeTag("t-contract", "Contract", "blue"),
            TypeTag("t-hiring", "Hiring", "green"),
        ),
        assignees=(
            Assignee("a-ana", "Ana"),
            Assignee("a-ben", "Ben"),
        ),
    )


# ===== Period Fixtures =====


@pytest.fixture
def march():
    """Provide March 2026 as an analysis period"""
    return Period(utc(2026, 3, 1), utc(2026, 3, 31), label="March")


@pytest.fixture
def reference_instant():
    """Provide a consistent 'now' (Tuesday 31 March 2026, noon UTC)"""
    return utc(2026, 3, 31, 12)


# ===== Work Item Fixtures =====


@pytest.fixture
def sample_items():
    """Provide the seven-item snapshot described in the module docstring"""
    return (
        WorkItem(
            id="i1",
            name="Supplier contract",
            creation_instant=utc(2026, 3, 2),
            completion_instant=utc(2026, 3, 7),
            is_complete=True,
            stage_id="s-done",
            type_tag_ids=("t-contract",),
            assignee_ids=("a-ana",),
            due_instant=utc(2026, 3, 10),
        ),
        WorkItem(
            id="i2",
            name="Hire paralegal",
            creation_instant=utc(2026, 3, 10),
            stage_id="s-doing",
            type_tag_ids=("t-contract", "t-hiring"),
            assignee_ids=("a-ana", "a-ben"),
        ),
        WorkItem(
            id="i3",
            name="Office move",
            creation_instant=utc(2026, 2, 20),
            stage_id="s-todo",
        ),
        WorkItem(
            id="i4",
            name="February hire",
            creation_instant=utc(2026, 2, 1),
            completion_instant=utc(2026, 2, 15),
            is_complete=True,
            stage_id="s-done",
            type_tag_ids=("t-hiring",),
            assignee_ids=("a-ben",),
        ),
        WorkItem(
            id="i5",
            name="April planning",
            creation_instant=utc(2026, 4, 2),
            stage_id="s-todo",
        ),
        WorkItem(id="i6", name="Imported without dates", stage_id="s-todo"),
        WorkItem(
            id="i7",
            name="Abandoned request",
            creation_instant=utc(2026, 2, 25),
            is_archived=True,
            stage_id="s-doing",
        ),
    )


@pytest.fixture
def day_items():
    """Provide the three-item snapshot of the day1..day5 KPI scenario"""
    return (
        WorkItem(id="a", name="A", creation_instant=utc(2026, 3, 1), completion_instant=utc(2026, 3, 1, 18), is_complete=True),
        WorkItem(id="b", name="B", creation_instant=utc(2026, 3, 1, 9)),
        WorkItem(id="c", name="C", creation_instant=utc(2026, 3, 10), completion_instant=utc(2026, 3, 10, 17), is_complete=True),
    )
