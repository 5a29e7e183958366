from models.teammate import Teammate, Team
from models.allocation import Allocation, BatchItemResult, BatchResult
from models.leave import LeavePeriod
from models.holiday import Holiday, HolidayCalendar, HolidayAssignment
from models.adjustment import CapacityAdjustment
from models.period import Period, period_starting, trailing_periods
from models.capacity import (
    AdjustmentLine, AllocationShare, CapacityBreakdown, DataQualityIssue, HolidayLine, LeaveLine,
)
from models.metrics import (
    AvailableTeammate, CapacityTrendPoint, CurrentAllocation, RiskFinding,
    TeamAllocationView, TeamCapacityMetrics, UpcomingLeave,
)
from models.audit import AuditEntry
