"""
Calculators - Pure analysis functions over work items

Every function takes items, a period or periods and options, and returns new
values (dataclasses or JSON-serializable dicts). Nothing is mutated and no
I/O is performed.

    - periods: Period windows from presets and custom ranges
    - item_resolution: Raw records -> WorkItem (creation-instant fallbacks)
    - classifier: new / in progress / completed per period
    - filters: Explicit analysis filters
    - grouping: Per-stage, per-tag and per-assignee breakdowns
    - flow_kpis: Flow KPIs and their consistency check
    - time_series: Daily / weekly / monthly bucketing
    - horizontal: Consecutive-period comparison
    - data_validation: Data-quality checks and coverage

Usage:
    from flow_analytics.calculators.periods import calculate_period_range
    from flow_analytics.calculators.flow_kpis import compute_flow_kpis

    period = calculate_period_range("last_30_days", now)
    kpis = compute_flow_kpis(items, period)
"""
