"""
Exception hierarchy for the analytics core.

Only caller mistakes are raised. Data-quality problems in the items
themselves are reported by the validation module instead.
"""


class FlowAnalyticsError(Exception):
    """Base class for errors raised by the analytics core."""

    pass


class PeriodValidationError(FlowAnalyticsError, ValueError):
    """Raised when a period selector or custom range is invalid."""

    pass


class FilterValidationError(FlowAnalyticsError, ValueError):
    """Raised when an analysis filter has an unknown key or a wrong type."""

    pass
