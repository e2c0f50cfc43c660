"""
Data-quality domain models

Issues found on individual work items. They are reported, never raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(Enum):
    CRITICAL = "critical"  # unusable for temporal analysis
    WARNING = "warning"  # usable but suspect
    INFO = "info"  # cosmetic


class IssueType(Enum):
    MISSING_CREATION = "missing_creation"
    NEGATIVE_DURATION = "negative_duration"
    COMPLETED_WITHOUT_INSTANT = "completed_without_instant"
    FUTURE_COMPLETION = "future_completion"
    MISSING_STAGE = "missing_stage"
    EMPTY_NAME = "empty_name"
    MISSING_DUE = "missing_due"
    MISSING_TYPE_TAGS = "missing_type_tags"
    MULTIPLE_TYPE_TAGS = "multiple_type_tags"
    MISSING_ASSIGNEES = "missing_assignees"
    MULTIPLE_ASSIGNEES = "multiple_assignees"
    ARCHIVED_WITHOUT_COMPLETION = "archived_without_completion"


ISSUE_SEVERITY = {
    IssueType.MISSING_CREATION: Severity.CRITICAL,
    IssueType.NEGATIVE_DURATION: Severity.CRITICAL,
    IssueType.COMPLETED_WITHOUT_INSTANT: Severity.WARNING,
    IssueType.FUTURE_COMPLETION: Severity.WARNING,
    IssueType.MISSING_STAGE: Severity.WARNING,
    IssueType.EMPTY_NAME: Severity.WARNING,
    IssueType.MISSING_DUE: Severity.INFO,
    IssueType.MISSING_TYPE_TAGS: Severity.INFO,
    IssueType.MULTIPLE_TYPE_TAGS: Severity.INFO,
    IssueType.MISSING_ASSIGNEES: Severity.INFO,
    IssueType.MULTIPLE_ASSIGNEES: Severity.INFO,
    IssueType.ARCHIVED_WITHOUT_COMPLETION: Severity.INFO,
}


@dataclass(frozen=True)
class DataQualityIssue:
    """
    A data-quality problem on one work item.

    Attributes:
        issue_type: Category of the problem
        item_id: Affected item
        message: Human-readable description
        item_name: Affected item's name
        details: Extra values (e.g. the offending duration)
    """

    issue_type: IssueType
    item_id: str
    message: str
    item_name: str = ""
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def severity(self) -> Severity:
        return ISSUE_SEVERITY[self.issue_type]

    def to_dict(self) -> dict:
        return {
            "type": self.issue_type.value,
            "severity": self.severity.value,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "message": self.message,
            **self.details,
        }
