"""Default configuration constants for the Team Capacity Allocation Engine."""

# Allocation bounds: a single allocation is in (0, MAX_ALLOCATION_PCT]
MAX_ALLOCATION_PCT = 100.0

# Ceiling for the sum of a teammate's active allocations
TOTAL_ALLOCATION_CAP = 100.0

# Absorbs float summation noise only (e.g. 70.1 + 29.9), never a real overshoot
ALLOCATION_TOLERANCE = 1e-9

# Hours and periods
DEFAULT_HOURS_PER_DAY = 8.0
DEFAULT_PERIOD_DAYS = 14       # one sprint
DEFAULT_TREND_PERIODS = 6
HOURS_PRECISION = 2         # decimal places for derived hours

# Period lengths offered in the sidebar (days)
PERIOD_LENGTH_OPTIONS = [7, 14, 21, 28]

# Leave statuses that deduct capacity and count as upcoming leave
COUNTED_LEAVE_STATUSES = ("APPROVED",)

# Holidays falling on Saturday/Sunday deduct nothing
SKIP_WEEKEND_HOLIDAYS = True

# Utilization reported when available hours are zero and allocation is not
ZERO_AVAILABLE_UTILIZATION = 100.0

# Capacity status thresholds (percent)
OVER_ALLOCATED_THRESHOLD = 100.0
AT_CAPACITY_THRESHOLD = 80.0

# Risk rules
UPCOMING_LEAVE_WINDOW_DAYS = 14
UPCOMING_LEAVE_THRESHOLD = 0.20     # leave hours / available hours
OVER_ALLOCATION_SEVERITY_BANDS = [  # (overage pp upper bound, severity)
    (10, "LOW"),
    (25, "MEDIUM"),
    (50, "HIGH"),
]
OVER_ALLOCATION_MAX_SEVERITY = "CRITICAL"

# Vocabularies
ROLES = ["DEVELOPER", "QA", "DESIGNER", "PM", "EM"]

ROLE_LABELS = {
    "DEVELOPER": "Developer",
    "QA": "QA Engineer",
    "DESIGNER": "Designer",
    "PM": "Product Manager",
    "EM": "Engineering Manager",
}

LEAVE_TYPES = [
    "VACATION",
    "SICK",
    "PERSONAL",
    "BEREAVEMENT",
    "PARENTAL",
    "TRAINING",
    "JURY_DUTY",
    "EMERGENCY",
    "SABBATICAL",
    "PLANNED_VACATION",
]

LEAVE_STATUSES = ["PENDING", "APPROVED", "DENIED", "CANCELLED"]

ADJUSTMENT_TYPES = [
    "TRAINING",
    "INTERVIEW",
    "ADMIN",
    "MEETING",
    "MENTORING",
    "CODE_REVIEW",
    "CUSTOM",
]

CAPACITY_STATUSES = ["AVAILABLE", "AT_CAPACITY", "OVER_ALLOCATED"]

RISK_TYPES = ["OVER_ALLOCATED", "UPCOMING_LEAVES", "SKILL_GAP", "SINGLE_POINT_OF_FAILURE"]

SEVERITY_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}

# Sort keys accepted by the available-teammates query
AVAILABLE_TEAMMATE_SORT_KEYS = [
    "remaining_allocation_percentage",
    "available_hours",
    "name",
]
DEFAULT_AVAILABLE_TEAMMATE_SORT = "remaining_allocation_percentage"


def default_rule_config() -> dict:
    """Session-editable copy of the tunable rules."""
    return {
        "default_hours_per_day": DEFAULT_HOURS_PER_DAY,
        "period_days": DEFAULT_PERIOD_DAYS,
        "trend_periods": DEFAULT_TREND_PERIODS,
        "counted_leave_statuses": list(COUNTED_LEAVE_STATUSES),
        "skip_weekend_holidays": SKIP_WEEKEND_HOLIDAYS,
        "zero_available_utilization": ZERO_AVAILABLE_UTILIZATION,
        "over_allocated_threshold": OVER_ALLOCATED_THRESHOLD,
        "at_capacity_threshold": AT_CAPACITY_THRESHOLD,
        "upcoming_leave_window_days": UPCOMING_LEAVE_WINDOW_DAYS,
        "upcoming_leave_threshold": UPCOMING_LEAVE_THRESHOLD,
    }
