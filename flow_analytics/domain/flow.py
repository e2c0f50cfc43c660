"""
Flow domain models - Flow KPIs of a period

Represents the scalar flow metrics of one analysis window:
    - Intake (new items) and output (completed items)
    - Work in progress
    - Average cycle time (creation -> completion)
    - Derived throughput rate, net flow and WIP/throughput ratio
"""

from dataclasses import dataclass
from enum import Enum

from flow_analytics.domain.constants import kpi_thresholds


class ThroughputStatus(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    BALANCED = "balanced"
    ATTENTION = "attention"
    CRITICAL = "critical"


@dataclass(frozen=True)
class FlowKPIs:
    """
    Flow metrics for a set of work items over one period.

    Counts are independent membership tests (an item created and completed
    inside the period counts as new AND completed). Ratios divide by
    max(x, 1) so they are defined for empty periods.

    Attributes:
        total_new: Items created within the period
        total_completed: Items completed within the period
        total_in_progress: Items created by period end and not completed by then
        avg_new_per_day: total_new / period_days (2 decimals)
        avg_completed_per_day: total_completed / period_days (2 decimals)
        avg_process_time_days: Mean cycle time of items completed in the
            period with a non-negative duration (2 decimals, 0 if none)
        period_days: Inclusive day count of the period

    Example:
        kpis = FlowKPIs(
            total_new=10, total_completed=8, total_in_progress=4,
            avg_new_per_day=1.43, avg_completed_per_day=1.14,
            avg_process_time_days=3.5, period_days=7,
        )
        kpis.throughput_rate      # 80.0
        kpis.throughput_status    # ThroughputStatus.BALANCED
    """

    total_new: int
    total_completed: int
    total_in_progress: int
    avg_new_per_day: float
    avg_completed_per_day: float
    avg_process_time_days: float
    period_days: int

    @property
    def throughput_rate(self) -> float:
        """Completed as a percentage of new items (1 decimal)."""
        return round(self.total_completed / max(self.total_new, 1) * 100, 1)

    @property
    def throughput_balance(self) -> int:
        return self.total_completed - self.total_new

    @property
    def net_flow(self) -> float:
        """Output minus intake per day; positive means the queue is shrinking."""
        return round(self.avg_completed_per_day - self.avg_new_per_day, 2)

    @property
    def wip_throughput_ratio(self) -> float:
        return round(self.total_in_progress / max(self.total_completed, 1), 2)

    @property
    def throughput_status(self) -> ThroughputStatus:
        rate = self.throughput_rate
        if rate > kpi_thresholds.THROUGHPUT_EXCELLENT_PCT:
            return ThroughputStatus.EXCELLENT
        if rate > kpi_thresholds.THROUGHPUT_GOOD_PCT:
            return ThroughputStatus.GOOD
        if rate < kpi_thresholds.THROUGHPUT_CRITICAL_PCT:
            return ThroughputStatus.CRITICAL
        if rate < kpi_thresholds.THROUGHPUT_ATTENTION_PCT:
            return ThroughputStatus.ATTENTION
        return ThroughputStatus.BALANCED

    def to_dict(self) -> dict:
        """Primitive KPIs only."""
        return {
            "total_new": self.total_new,
            "total_completed": self.total_completed,
            "total_in_progress": self.total_in_progress,
            "avg_new_per_day": self.avg_new_per_day,
            "avg_completed_per_day": self.avg_completed_per_day,
            "avg_process_time_days": self.avg_process_time_days,
            "period_days": self.period_days,
        }

    def to_detailed_dict(self) -> dict:
        """Primitive KPIs plus the derived throughput, WIP and velocity blocks."""
        return {
            **self.to_dict(),
            "throughput": {
                "rate": self.throughput_rate,
                "status": self.throughput_status.value,
                "balance": self.throughput_balance,
            },
            "wip": {
                "current": self.total_in_progress,
                "throughput_ratio": self.wip_throughput_ratio,
            },
            "velocity": {
                "intake": self.avg_new_per_day,
                "output": self.avg_completed_per_day,
                "net_flow": self.net_flow,
            },
        }
