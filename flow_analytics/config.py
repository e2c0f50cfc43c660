"""
Analysis Configuration Management

Centralized, validated configuration for the analytics core. Values come from
environment variables (a local .env file is loaded first) and fail fast when
malformed.

Usage:
    from flow_analytics.config import get_config, configure_logging

    config = get_config()
    configure_logging(config)
    policy = config.classification_policy()

Environment variables:
    FLOW_ARCHIVED_IN_PROGRESS    Count archived, unfinished items as in progress (default: false)
    FLOW_HORIZONTAL_PERIODS      Periods compared side by side (default: 6, minimum 2)
    FLOW_HORIZONTAL_GRANULARITY  week | month | quarter | year (default: month)
    FLOW_LOG_LEVEL               DEBUG | INFO | WARNING | ERROR | CRITICAL (default: INFO)
    FLOW_LOG_JSON                Emit JSON log lines on the console (default: false)

Raises:
    ConfigurationError: If configuration is invalid
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from flow_analytics.calculators.classifier import ClassificationPolicy
from flow_analytics.core.logging_config import setup_logging
from flow_analytics.domain.period import HorizontalGranularity

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class AnalysisConfig:
    """
    Validated analysis configuration.

    Attributes:
        archived_in_progress: Whether archived items that were never completed
            still count as work in progress
        horizontal_period_count: Number of periods in horizontal comparisons
        horizontal_granularity: Size of each compared period
        log_level: Root log level
        log_json: JSON console output instead of human-readable lines
    """

    archived_in_progress: bool = False
    horizontal_period_count: int = 6
    horizontal_granularity: str = "month"
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate analysis configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.horizontal_period_count, int) or isinstance(self.horizontal_period_count, bool):
            raise ConfigurationError(
                f"FLOW_HORIZONTAL_PERIODS must be an integer: {self.horizontal_period_count!r}"
            )

        if self.horizontal_period_count < 2:
            raise ConfigurationError(
                f"FLOW_HORIZONTAL_PERIODS must be at least 2 (got {self.horizontal_period_count})"
            )

        valid_granularities = [g.value for g in HorizontalGranularity]
        if self.horizontal_granularity not in valid_granularities:
            raise ConfigurationError(
                f"FLOW_HORIZONTAL_GRANULARITY must be one of {valid_granularities}: {self.horizontal_granularity}"
            )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"FLOW_LOG_LEVEL must be one of {list(LOG_LEVELS)}: {self.log_level}")

    def classification_policy(self) -> ClassificationPolicy:
        return ClassificationPolicy(archived_in_progress=self.archived_in_progress)

    def granularity(self) -> HorizontalGranularity:
        return HorizontalGranularity(self.horizontal_granularity)


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default

    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false): {raw}")


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer: {raw}") from e


def load_config() -> AnalysisConfig:
    """
    Build configuration from the environment (after loading .env).

    Returns:
        AnalysisConfig: Validated configuration

    Raises:
        ConfigurationError: If any value is malformed
    """
    load_dotenv()

    return AnalysisConfig(
        archived_in_progress=_read_bool("FLOW_ARCHIVED_IN_PROGRESS", False),
        horizontal_period_count=_read_int("FLOW_HORIZONTAL_PERIODS", 6),
        horizontal_granularity=os.getenv("FLOW_HORIZONTAL_GRANULARITY", "month").strip().lower(),
        log_level=os.getenv("FLOW_LOG_LEVEL", "INFO").strip().upper(),
        log_json=_read_bool("FLOW_LOG_JSON", False),
    )


_config_instance: AnalysisConfig | None = None


def get_config() -> AnalysisConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        AnalysisConfig: The validated configuration
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def configure_logging(config: AnalysisConfig | None = None) -> None:
    """Apply the configured log level and format to the root logger."""
    config = config or get_config()
    setup_logging(level=config.log_level, json_output=config.log_json)
