from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass
class DataQualityIssue:
    """Non-fatal input problem; defaults were applied and the result still computed."""
    teammate_id: str
    message: str
    code: str = "DATA_QUALITY"


@dataclass
class LeaveLine:
    leave_type: str
    start_date: date
    end_date: date
    hours: float            # clipped to the period
    description: str = ""


@dataclass
class HolidayLine:
    holiday_name: str
    holiday_date: date
    hours: float


@dataclass
class AdjustmentLine:
    adjustment_type: str
    hours: float            # prorated to the period
    description: str = ""


@dataclass
class AllocationShare:
    team_id: str
    allocation_percentage: float
    allocated_hours: float           # available_hours * pct / 100
    utilization_percentage: float    # allocated_hours / available_hours * 100


@dataclass
class CapacityBreakdown:
    teammate_id: str
    teammate_name: str
    period_start: date
    period_end: date
    base_hours: float
    leave_hours: float
    holiday_hours: float
    adjustment_hours: float
    available_hours: float           # max(0, base - leave - holiday - adjustment)
    allocations: List[AllocationShare] = field(default_factory=list)
    leaves: List[LeaveLine] = field(default_factory=list)
    holidays: List[HolidayLine] = field(default_factory=list)
    adjustments: List[AdjustmentLine] = field(default_factory=list)
    warnings: List[DataQualityIssue] = field(default_factory=list)
    explanation_steps: List[str] = field(default_factory=list)
    calculation_date: datetime = field(default_factory=datetime.now)

    @property
    def deducted_hours(self) -> float:
        return self.leave_hours + self.holiday_hours + self.adjustment_hours

    @property
    def adjustment_hours_by_type(self) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for a in self.adjustments:
            totals[a.adjustment_type] = round(totals.get(a.adjustment_type, 0.0) + a.hours, 2)
        return totals

    @property
    def meeting_hours(self) -> float:
        return self.adjustment_hours_by_type.get("MEETING", 0.0)

    @property
    def custom_adjustment_hours(self) -> float:
        """Everything that is not a meeting."""
        return round(self.adjustment_hours - self.meeting_hours, 2)

    @property
    def total_allocated_hours(self) -> float:
        return sum(a.allocated_hours for a in self.allocations)

    @property
    def total_allocation_percentage(self) -> float:
        return sum(a.allocation_percentage for a in self.allocations)

    def share_for(self, team_id: str) -> Optional[AllocationShare]:
        for a in self.allocations:
            if a.team_id == team_id:
                return a
        return None

    def allocated_hours_for(self, team_id: str) -> float:
        share = self.share_for(team_id)
        return share.allocated_hours if share else 0.0

    def utilization_for(self, team_id: str) -> float:
        share = self.share_for(team_id)
        return share.utilization_percentage if share else 0.0
