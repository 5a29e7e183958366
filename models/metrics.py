from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from models.capacity import DataQualityIssue


@dataclass
class RiskFinding:
    type: str                   # "OVER_ALLOCATED", "UPCOMING_LEAVES", "SKILL_GAP", "SINGLE_POINT_OF_FAILURE"
    severity: str               # "LOW", "MEDIUM", "HIGH", "CRITICAL"
    description: str
    impacted_teammates: List[str] = field(default_factory=list)


@dataclass
class CapacityTrendPoint:
    period: str
    period_start: date
    period_end: date
    planned_capacity: float         # sum of base hours * pct
    actual_capacity: float          # sum of allocated hours
    utilization_percentage: float   # unweighted mean across members


@dataclass
class TeamCapacityMetrics:
    team_id: str
    team_name: str
    period_start: date
    period_end: date
    total_teammates: int
    total_base_capacity: float
    total_allocated_capacity: float
    total_available_capacity: float
    average_utilization: float
    capacity_status: str            # "AVAILABLE", "AT_CAPACITY", "OVER_ALLOCATED"
    upcoming_leave_days: int = 0
    upcoming_holiday_days: int = 0
    capacity_trends: List[CapacityTrendPoint] = field(default_factory=list)
    risk_factors: List[RiskFinding] = field(default_factory=list)
    data_quality_warnings: List[DataQualityIssue] = field(default_factory=list)


@dataclass
class UpcomingLeave:
    start_date: date
    end_date: date
    leave_type: str
    total_hours: float


@dataclass
class TeamAllocationView:
    """One row of a team's allocation table."""
    teammate_id: str
    teammate_name: str
    teammate_email: str
    teammate_role: str
    allocation_percentage: float
    base_capacity: float
    available_hours: float
    allocated_hours: float
    current_utilization: float
    upcoming_leaves: List[UpcomingLeave] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CurrentAllocation:
    team_id: str
    team_name: str
    allocation_percentage: float


@dataclass
class AvailableTeammate:
    teammate_id: str
    name: str
    email: str
    role: str
    base_capacity: float
    available_hours: float
    current_allocations: List[CurrentAllocation] = field(default_factory=list)
    total_allocation_percentage: float = 0.0
    remaining_allocation_percentage: float = 100.0
    capacity_status: str = "AVAILABLE"
    upcoming_leaves: List[UpcomingLeave] = field(default_factory=list)

    @property
    def suggested_allocation(self) -> float:
        return min(self.remaining_allocation_percentage, 100.0)
