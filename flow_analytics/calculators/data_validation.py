"""
Data Validation - integrity, coverage and filter impact

Inspects a snapshot of work items before analysis and reports problems that
would distort the metrics: missing creation instants, negative durations,
multi-valued fields that inflate per-group totals, filters that throw away
almost everything. Nothing here raises on bad data; problems are reported.

Usage:
    from flow_analytics.calculators.data_validation import run_validation_checklist

    report = run_validation_checklist(items, reference_instant=now, filters=filters)
    for line in report["summary"]["recommendations"]:
        print(line)
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from flow_analytics.calculators.filters import AnalysisFilters, apply_filters_with_steps
from flow_analytics.calculators.flow_kpis import validate_kpis
from flow_analytics.calculators.grouping import Dimension, duplication_report
from flow_analytics.calculators.periods import is_in_period
from flow_analytics.core.logging_config import track_analysis
from flow_analytics.domain.constants import data_quality_config
from flow_analytics.domain.flow import FlowKPIs
from flow_analytics.domain.period import Period
from flow_analytics.domain.validation import DataQualityIssue, IssueType, Severity
from flow_analytics.domain.work_item import Catalog, WorkItem
from flow_analytics.utils.datetime_utils import SECONDS_PER_DAY, ensure_utc, to_iso

logger = logging.getLogger(__name__)


def _issue(item: WorkItem, issue_type: IssueType, message: str, **details) -> DataQualityIssue:
    return DataQualityIssue(
        issue_type=issue_type, item_id=item.id, item_name=item.name, message=message, details=details
    )


def validate_item(
    item: WorkItem, catalog: Catalog | None = None, reference_instant: datetime | None = None
) -> list[DataQualityIssue]:
    """
    Data-quality issues of one work item.

    Args:
        item: Work item to inspect
        catalog: When given, a stage id unknown to the catalog counts as a
            missing stage
        reference_instant: "Now"; completions after it are flagged. Without
            it the future-completion check is skipped.

    Returns:
        Issues in a fixed check order (empty list for a clean item)
    """
    issues = []

    if not item.name or not item.name.strip():
        issues.append(_issue(item, IssueType.EMPTY_NAME, "Item has no name"))

    if item.creation_instant is None:
        issues.append(
            _issue(
                item,
                IssueType.MISSING_CREATION,
                "Item has no creation instant and is excluded from temporal analysis",
            )
        )

    if item.is_complete and item.completion_instant is None:
        issues.append(
            _issue(item, IssueType.COMPLETED_WITHOUT_INSTANT, "Item is marked complete but has no completion instant")
        )

    if item.has_negative_duration:
        duration = (item.completion_instant - item.creation_instant).total_seconds() / SECONDS_PER_DAY
        issues.append(
            _issue(
                item,
                IssueType.NEGATIVE_DURATION,
                "Completion precedes creation",
                value=round(duration, 2),
            )
        )

    if reference_instant is not None and item.completion_instant is not None:
        if item.completion_instant > ensure_utc(reference_instant):
            issues.append(
                _issue(
                    item,
                    IssueType.FUTURE_COMPLETION,
                    "Completion instant is in the future",
                    completion_instant=to_iso(item.completion_instant),
                )
            )

    if item.due_instant is None:
        issues.append(_issue(item, IssueType.MISSING_DUE, "Item has no due date"))

    if not item.type_tag_ids:
        issues.append(_issue(item, IssueType.MISSING_TYPE_TAGS, "Item has no type tags"))
    elif len(item.type_tag_ids) > 1:
        issues.append(
            _issue(
                item,
                IssueType.MULTIPLE_TYPE_TAGS,
                f"Item has {len(item.type_tag_ids)} type tags and is counted in each",
                count=len(item.type_tag_ids),
            )
        )

    if not item.assignee_ids:
        issues.append(_issue(item, IssueType.MISSING_ASSIGNEES, "Item has no assignees"))
    elif len(item.assignee_ids) > 1:
        issues.append(
            _issue(
                item,
                IssueType.MULTIPLE_ASSIGNEES,
                f"Item has {len(item.assignee_ids)} assignees and is counted for each",
                count=len(item.assignee_ids),
            )
        )

    stage_missing = item.stage_id is None or (catalog is not None and catalog.stage(item.stage_id) is None)
    if stage_missing:
        issues.append(_issue(item, IssueType.MISSING_STAGE, "Item has no known stage", stage_id=item.stage_id))

    if item.is_archived and not item.is_complete:
        issues.append(_issue(item, IssueType.ARCHIVED_WITHOUT_COMPLETION, "Item was archived without being completed"))

    return issues


def validate_items(
    items: Iterable[WorkItem], catalog: Catalog | None = None, reference_instant: datetime | None = None
) -> dict:
    """
    Validate a snapshot and aggregate the issues.

    Returns:
        {
            "valid": bool,               # no critical issues
            "total_items": int,
            "total_issues": int,
            "issues_by_severity": {"critical", "warning", "info"},
            "issues_by_type": [{"type", "severity", "count", "examples"}],
            "issues": [issue dicts],
        }
        Types are listed in order of first occurrence, with at most five
        examples each.
    """
    items = tuple(items)
    all_issues: list[DataQualityIssue] = []
    by_type: dict[IssueType, list[DataQualityIssue]] = {}
    by_severity = {severity: 0 for severity in Severity}

    for item in items:
        for issue in validate_item(item, catalog, reference_instant):
            all_issues.append(issue)
            by_type.setdefault(issue.issue_type, []).append(issue)
            by_severity[issue.severity] += 1

    report = {
        "valid": by_severity[Severity.CRITICAL] == 0,
        "total_items": len(items),
        "total_issues": len(all_issues),
        "issues_by_severity": {severity.value: count for severity, count in by_severity.items()},
        "issues_by_type": [
            {
                "type": issue_type.value,
                "severity": issues[0].severity.value,
                "count": len(issues),
                "examples": [issue.to_dict() for issue in issues[: data_quality_config.MAX_EXAMPLES_PER_TYPE]],
            }
            for issue_type, issues in by_type.items()
        ],
        "issues": [issue.to_dict() for issue in all_issues],
    }

    if not report["valid"]:
        logger.warning(
            "Critical data-quality issues found",
            extra={
                "extra_fields": {
                    "critical": by_severity[Severity.CRITICAL],
                    "total_items": len(items),
                }
            },
        )
    return report


def _coverage_entry(count: int, total: int) -> dict:
    return {"count": count, "percentage": round(count / total * 100, 1), "missing": total - count}


def analyze_data_coverage(items: Iterable[WorkItem], catalog: Catalog | None = None) -> dict:
    """
    Share of items carrying each field analyses rely on.

    Args:
        items: Work items
        catalog: When given, a stage only counts if the catalog knows it

    Returns:
        {"total": int, "coverage": {field: {"count", "percentage", "missing"}}}
        with fields creation, completion, due, type_tags, assignees, stage
        and cycle_time. coverage is empty when there are no items.
    """
    items = tuple(items)
    total = len(items)
    if total == 0:
        return {"total": 0, "coverage": {}}

    def has_stage(item: WorkItem) -> bool:
        if item.stage_id is None:
            return False
        return catalog is None or catalog.stage(item.stage_id) is not None

    checks = {
        "creation": lambda item: item.creation_instant is not None,
        "completion": lambda item: item.completion_instant is not None,
        "due": lambda item: item.due_instant is not None,
        "type_tags": lambda item: bool(item.type_tag_ids),
        "assignees": lambda item: bool(item.assignee_ids),
        "stage": has_stage,
        "cycle_time": lambda item: item.cycle_time_days is not None,
    }

    return {
        "total": total,
        "coverage": {
            name: _coverage_entry(sum(1 for item in items if check(item)), total) for name, check in checks.items()
        },
    }


def calculate_coverage_score(coverage: dict) -> float:
    """
    Weighted 0-100 score of a coverage report (1 decimal).

    Weights: creation 30, stage 20, cycle_time 15, assignees 15,
    type_tags 10, due 5, completion 5.
    """
    fields = coverage.get("coverage") or {}
    score = 0.0
    for name, weight in data_quality_config.COVERAGE_WEIGHTS:
        if name in fields:
            score += fields[name]["percentage"] / 100 * weight
    return round(score, 1)


def check_kpi_consistency(kpis: FlowKPIs) -> dict:
    """validate_kpis() for use alongside the other checks."""
    return validate_kpis(kpis)


def filter_impact(items: Iterable[WorkItem], filters: AnalysisFilters | None = None) -> dict:
    """
    Step-by-step effect of a filter set.

    Returns:
        {
            "initial_items", "final_items", "total_excluded",
            "retention_rate",            # percent, 1 decimal
            "steps": [{"filter", "value", "before", "after", "excluded"}],
            "warning": str | None,       # set when over 90% was excluded
        }
    """
    items = tuple(items)
    remaining, steps = apply_filters_with_steps(items, filters)
    total = len(items)
    excluded = total - len(remaining)

    warning = None
    if excluded > total * data_quality_config.HEAVY_EXCLUSION_RATIO:
        warning = f"More than {int(data_quality_config.HEAVY_EXCLUSION_RATIO * 100)}% of items were excluded by filters"
        logger.warning(
            "Filters exclude most items",
            extra={"extra_fields": {"initial_items": total, "final_items": len(remaining)}},
        )

    return {
        "initial_items": total,
        "final_items": len(remaining),
        "total_excluded": excluded,
        "retention_rate": round(len(remaining) / total * 100, 1) if total else 0,
        "steps": steps,
        "warning": warning,
    }


def period_filter_impact(items: Iterable[WorkItem], period: Period) -> dict:
    """
    How many items a period keeps, judged by creation instant.

    Returns:
        {"total_items", "kept_items", "excluded_items", "retention_rate",
        "period", "warning"}
    """
    items = tuple(items)
    kept = sum(1 for item in items if is_in_period(item.creation_instant, period))
    total = len(items)
    excluded = total - kept

    warning = None
    if excluded > total * data_quality_config.HEAVY_EXCLUSION_RATIO:
        warning = f"More than {int(data_quality_config.HEAVY_EXCLUSION_RATIO * 100)}% of items fall outside the period"

    return {
        "total_items": total,
        "kept_items": kept,
        "excluded_items": excluded,
        "retention_rate": round(kept / total * 100, 1) if total else 0,
        "period": period.to_dict(),
        "warning": warning,
    }


def generate_recommendations(checks: dict) -> list[str]:
    """
    Plain-language follow-ups for a set of checks.

    Args:
        checks: The "checks" block of run_validation_checklist()

    Returns:
        Recommendations, or a single all-clear message
    """
    recommendations = []
    cfg = data_quality_config

    if checks["item_validation"]["issues_by_severity"]["critical"] > 0:
        recommendations.append("Fix critical issues before running temporal analyses")

    coverage = checks["data_coverage"]["coverage"]
    if "creation" in coverage and coverage["creation"]["percentage"] < cfg.MIN_CREATION_COVERAGE_PCT:
        recommendations.append("Add creation instants to items so they enter temporal analyses")
    if "type_tags" in coverage and coverage["type_tags"]["percentage"] < cfg.MIN_TAG_COVERAGE_PCT:
        recommendations.append("Tag items with a type for per-type analysis")
    if "assignees" in coverage and coverage["assignees"]["percentage"] < cfg.MIN_ASSIGNEE_COVERAGE_PCT:
        recommendations.append("Assign items to people for per-assignee analysis")

    if checks["assignee_duplication"]["duplication_factor"] > cfg.ASSIGNEE_DUPLICATION_WARNING:
        recommendations.append("Many items have several assignees; per-assignee totals are inflated")
    if checks["type_tag_duplication"]["duplication_factor"] > cfg.TAG_DUPLICATION_WARNING:
        recommendations.append("Many items have several type tags; per-type totals are inflated")

    impact = checks.get("filter_impact")
    if impact is not None and impact["retention_rate"] < cfg.MIN_RETENTION_PCT:
        recommendations.append("Filters are very restrictive; consider widening them")

    if not recommendations:
        recommendations.append("Data quality is good; no action needed")
    return recommendations


def run_validation_checklist(
    items: Iterable[WorkItem],
    reference_instant: datetime,
    filters: AnalysisFilters | None = None,
    catalog: Catalog | None = None,
) -> dict:
    """
    Run every data check and summarize the result.

    Args:
        items: Work items (unfiltered snapshot)
        reference_instant: "Now" for the future-completion check and the
            report timestamp
        filters: When given, their impact is included
        catalog: When given, unknown stage ids count as missing

    Returns:
        {
            "generated_at", "total_items",
            "checks": {"item_validation", "data_coverage", "assignee_duplication",
                       "type_tag_duplication", "filter_impact"?},
            "summary": {"data_quality", "critical_issues", "warnings",
                        "has_duplication_risk", "coverage_score", "recommendations"},
        }

    Example:
        report = run_validation_checklist(items, now)
        report["summary"]["data_quality"]  # "good" or "issues_found"
    """
    items = tuple(items)
    logger.info("Running validation checklist", extra={"extra_fields": {"total_items": len(items)}})

    with track_analysis("validation_checklist", total_items=len(items)) as ctx:
        checks = {
            "item_validation": validate_items(items, catalog, reference_instant),
            "data_coverage": analyze_data_coverage(items, catalog),
            "assignee_duplication": duplication_report(items, Dimension.ASSIGNEE),
            "type_tag_duplication": duplication_report(items, Dimension.TYPE_TAG),
        }
        if filters is not None:
            checks["filter_impact"] = filter_impact(items, filters)
        ctx["total_issues"] = checks["item_validation"]["total_issues"]

    risk_factor = data_quality_config.DUPLICATION_RISK_FACTOR
    severity_counts = checks["item_validation"]["issues_by_severity"]
    summary = {
        "data_quality": "good" if checks["item_validation"]["valid"] else "issues_found",
        "critical_issues": severity_counts["critical"],
        "warnings": severity_counts["warning"],
        "has_duplication_risk": (
            checks["assignee_duplication"]["duplication_factor"] > risk_factor
            or checks["type_tag_duplication"]["duplication_factor"] > risk_factor
        ),
        "coverage_score": calculate_coverage_score(checks["data_coverage"]),
        "recommendations": generate_recommendations(checks),
    }

    logger.info(
        "Validation checklist complete",
        extra={
            "extra_fields": {
                "data_quality": summary["data_quality"],
                "critical_issues": summary["critical_issues"],
                "coverage_score": summary["coverage_score"],
            }
        },
    )

    return {
        "generated_at": to_iso(ensure_utc(reference_instant)),
        "total_items": len(items),
        "checks": checks,
        "summary": summary,
    }
