"""
Structured logging for the analytics core.

Provides:
- JSONFormatter: one JSON object per record, for log aggregation
- ContextFormatter: readable console lines with the record's context appended
- track_analysis(): timing and context for one analysis run

Calculator modules only create loggers; nothing is configured on import.
Applications call setup_logging() (or configure_logging() with an
AnalysisConfig) once.

Context travels through ``extra={"extra_fields": {...}}`` so both
formatters can render it:

    logger.debug("KPIs computed", extra={"extra_fields": {"period": "Mar 2026", "total_new": 12}})

Usage:
    from flow_analytics.core.logging_config import get_logger, track_analysis

    logger = get_logger(__name__)
    with track_analysis("horizontal_comparison", periods=6) as ctx:
        table = build_comparison_table(items, periods, catalog)
        ctx["rows"] = len(table)
"""

import json
import logging
import sys
import time
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Analyses slower than this are logged as warnings
SLOW_ANALYSIS_MS = 2000.0


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_fields", None) or {}


class JSONFormatter(logging.Formatter):
    """
    Render a record as a single JSON line.

    Keys: timestamp (UTC, 'Z' suffix), level, logger, message, module,
    function, line, exception (when present), then the record's context.
    Values that are not JSON-native (datetimes, enums) are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(_context_of(record))
        return json.dumps(payload, default=str)


class ContextFormatter(logging.Formatter):
    """
    Console formatter: the standard line followed by ``| key=value ...``.

    The level name is colored only when stderr is a terminal.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = CONSOLE_FORMAT, datefmt: str = CONSOLE_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        plain_level = record.levelname
        if sys.stderr.isatty():
            record.levelname = f"{self.LEVEL_COLORS.get(plain_level, '')}{plain_level}{self.RESET}"
        try:
            line = super().format(record)
        finally:
            record.levelname = plain_level

        context = _context_of(record)
        if not context:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in context.items())


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_output: bool = False,
) -> None:
    """
    Configure the root logger.

    Replaces any handlers already on the root logger, so calling this twice
    does not duplicate output.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names fall back to INFO)
        log_file: Optional file receiving JSON lines; parent directories are created
        json_output: JSON lines on the console instead of readable lines

    Example:
        setup_logging(level="DEBUG")
        setup_logging(level="INFO", log_file=Path(".tmp/logs/flow.log"), json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter() if json_output else ContextFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass __name__)."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log a message with context fields.

    Example:
        log_with_context(logger, "info", "Series built", granularity="weekly", points=12)
    """
    getattr(logger, level.lower())(message, extra={"extra_fields": context})


@contextmanager
def track_analysis(
    operation: str, slow_threshold_ms: float = SLOW_ANALYSIS_MS, **context: Any
) -> Generator[dict[str, Any], None, None]:
    """
    Time one analysis run and log its context when it finishes.

    The yielded dict starts with ``context``; callers add result facts
    (row counts, issue counts) before the block exits. One DEBUG record is
    emitted on completion, plus a WARNING when the run exceeded the
    threshold. Exceptions propagate unchanged.

    Args:
        operation: Name of the analysis (e.g. "validation_checklist")
        slow_threshold_ms: Duration above which a warning is logged
        **context: Initial context fields

    Yields:
        Mutable context dict

    Example:
        with track_analysis("validation_checklist", total_items=len(items)) as ctx:
            report = ...
            ctx["critical_issues"] = 3
    """
    logger = logging.getLogger(__name__)
    fields: dict[str, Any] = dict(context)
    started = time.time()
    try:
        yield fields
    finally:
        duration_ms = round((time.time() - started) * 1000, 2)
        summary = {"operation": operation, "duration_ms": duration_ms, **fields}
        logger.debug(f"Analysis finished: {operation}", extra={"extra_fields": summary})
        if duration_ms > slow_threshold_ms:
            logger.warning(
                f"Slow analysis: {operation}",
                extra={"extra_fields": {**summary, "threshold_ms": slow_threshold_ms}},
            )
