"""
Error Handling Utility Module

Reusable patterns for the places where one bad record must not abort a batch
(e.g. an unparseable timestamp on a single work item). Calculators never
swallow input validation errors; those are raised to the caller.

Utilities:
1. log_and_continue() - Log error with context and keep going
2. log_and_return_default() - Log error and return a fallback value

Both use structured logging so the JSON formatter can emit the context.
"""

import logging
from typing import Any


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with structured context and continue execution gracefully.

    Args:
        logger: Logger instance from logging.getLogger(__name__)
        error: The caught exception
        context: Structured data about what failed (item_id, field, raw value)
        error_type: Human-readable description of the operation

    Example:
        for record in records:
            try:
                items.append(build_work_item(record))
            except ValueError as e:
                log_and_continue(logger, e, {"item_id": record.get("id")}, "Item build")
    """
    logger.warning(
        f"{error_type} failed: {error}",
        extra={
            "extra_fields": {
                "error_type": error_type,
                "exception_class": error.__class__.__name__,
                "context": context,
            }
        },
    )


def log_and_return_default(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    default_value: Any = None,
    error_type: str = "Operation",
) -> Any:
    """
    Log an error and return a default value.

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        default_value: Value to return on error (None, [], {}, etc.)
        error_type: Human-readable description

    Returns:
        default_value

    Example:
        try:
            return parse_iso_timestamp(raw)
        except ValueError as e:
            return log_and_return_default(
                logger, e,
                context={"item_id": item_id, "field": "due"},
                default_value=None,
                error_type="Timestamp parsing"
            )
    """
    logger.warning(
        f"{error_type} failed, returning default value: {error}",
        extra={
            "extra_fields": {
                "error_type": error_type,
                "exception_class": error.__class__.__name__,
                "context": context,
                "default_value": str(default_value),
            }
        },
    )
    return default_value
