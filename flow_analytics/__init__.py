"""
Flow Analytics - Work-item flow metrics

This package turns a snapshot of work items into flow analytics: period
windows, status classification, per-group breakdowns, KPIs, time series and
period-over-period comparisons.

Package Structure:
    - core: Infrastructure (logging)
    - domain: Domain models (WorkItem, Period, FlowKPIs, DataQualityIssue)
    - calculators: Pure analysis functions
    - utils: Date, statistics and error-handling helpers
    - config: Environment-driven analysis settings
"""

__version__ = "1.0.0"
__author__ = "Engineering Metrics Team"
