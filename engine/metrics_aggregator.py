"""Team-level roll-up of breakdowns, allocations and risk findings."""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config.defaults import (
    AT_CAPACITY_THRESHOLD, COUNTED_LEAVE_STATUSES, HOURS_PRECISION,
    OVER_ALLOCATED_THRESHOLD, UPCOMING_LEAVE_WINDOW_DAYS,
)
from config.logger import get_logger
from data.record_store import RecordStore
from engine.allocation_ledger import AllocationLedger
from engine.capacity_calculator import compute_breakdown, holiday_dates_for_teams
from engine.risk_assessor import assess_risks, team_members
from models.allocation import Allocation
from models.capacity import CapacityBreakdown
from models.metrics import CapacityTrendPoint, TeamCapacityMetrics
from models.period import Period
from models.teammate import Teammate

logger = get_logger(__name__)


def classify_capacity_status(utilization: float, rule_config: Optional[dict] = None) -> str:
    """AVAILABLE / AT_CAPACITY / OVER_ALLOCATED from a utilization or allocation percentage."""
    cfg = rule_config or {}
    if utilization > cfg.get("over_allocated_threshold", OVER_ALLOCATED_THRESHOLD):
        return "OVER_ALLOCATED"
    if utilization >= cfg.get("at_capacity_threshold", AT_CAPACITY_THRESHOLD):
        return "AT_CAPACITY"
    return "AVAILABLE"


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _period_breakdowns(
    members: List[Tuple[Teammate, Allocation]],
    period: Period,
    records: RecordStore,
    ledger: AllocationLedger,
    cfg: dict,
) -> Dict[str, CapacityBreakdown]:
    return {
        teammate.teammate_id: compute_breakdown(
            teammate.teammate_id, period.start, period.end, records,
            ledger.allocations_for_teammate(teammate.teammate_id), cfg,
        )
        for teammate, _ in members
    }


def _trend_point(
    team_id: str,
    period: Period,
    members: List[Tuple[Teammate, Allocation]],
    breakdowns: Dict[str, CapacityBreakdown],
) -> CapacityTrendPoint:
    planned = 0.0
    actual = 0.0
    utilizations = []
    for teammate, alloc in members:
        bd = breakdowns[teammate.teammate_id]
        planned += bd.base_hours * alloc.allocation_percentage / 100
        actual += bd.allocated_hours_for(team_id)
        utilizations.append(bd.utilization_for(team_id))
    return CapacityTrendPoint(
        period=period.display_label,
        period_start=period.start,
        period_end=period.end,
        planned_capacity=round(planned, HOURS_PRECISION),
        actual_capacity=round(actual, HOURS_PRECISION),
        utilization_percentage=round(_mean(utilizations), HOURS_PRECISION),
    )


def _upcoming_leave_days(
    members: List[Tuple[Teammate, Allocation]],
    records: RecordStore,
    window_start: date,
    window_end: date,
    cfg: dict,
) -> int:
    statuses = cfg.get("counted_leave_statuses", COUNTED_LEAVE_STATUSES)
    window = Period(window_start, window_end)
    days = 0
    for teammate, _ in members:
        for leave in records.leaves_overlapping(teammate.teammate_id, window_start, window_end, statuses):
            days += window.overlap_days(leave.start_date, leave.end_date)
    return days


def aggregate(
    team_id: str,
    periods: Sequence[Period],
    records: RecordStore,
    ledger: AllocationLedger,
    as_of: Optional[date] = None,
    required_roles: Optional[Iterable[str]] = None,
    include_trends: bool = True,
    include_risks: bool = True,
    rule_config: Optional[dict] = None,
) -> TeamCapacityMetrics:
    """Roll up a team's capacity.

    `periods` are chronological; the last one is the current period used for
    totals, status and risks. Each period gets its own trend point, computed
    from source records with no carried-over state.
    """
    if not periods:
        raise ValueError("aggregate needs at least one period")

    cfg = rule_config or {}
    current = periods[-1]
    as_of = as_of or current.start
    members = team_members(team_id, records, ledger)

    breakdowns = _period_breakdowns(members, current, records, ledger, cfg)

    total_base = sum(bd.base_hours for bd in breakdowns.values())
    total_available = sum(bd.available_hours for bd in breakdowns.values())
    total_allocated = sum(bd.allocated_hours_for(team_id) for bd in breakdowns.values())
    # Unweighted mean across teammates, not weighted by capacity
    average_utilization = _mean([bd.utilization_for(team_id) for bd in breakdowns.values()])

    trends = []
    if include_trends:
        for period in periods:
            if period == current:
                period_bds = breakdowns
            else:
                period_bds = _period_breakdowns(members, period, records, ledger, cfg)
            trends.append(_trend_point(team_id, period, members, period_bds))

    risks = []
    if include_risks:
        risks = assess_risks(
            team_id, current.start, current.end, records, ledger,
            as_of=as_of, required_roles=required_roles, rule_config=cfg, breakdowns=breakdowns,
        )

    window_end = as_of + timedelta(days=cfg.get("upcoming_leave_window_days", UPCOMING_LEAVE_WINDOW_DAYS))
    upcoming_holidays = holiday_dates_for_teams(records, [team_id], as_of, window_end, cfg)

    warnings = [w for bd in breakdowns.values() for w in bd.warnings]

    metrics = TeamCapacityMetrics(
        team_id=team_id,
        team_name=records.team_name(team_id),
        period_start=current.start,
        period_end=current.end,
        total_teammates=len(members),
        total_base_capacity=round(total_base, HOURS_PRECISION),
        total_allocated_capacity=round(total_allocated, HOURS_PRECISION),
        total_available_capacity=round(total_available, HOURS_PRECISION),
        average_utilization=round(average_utilization, HOURS_PRECISION),
        capacity_status=classify_capacity_status(average_utilization, cfg),
        upcoming_leave_days=_upcoming_leave_days(members, records, as_of, window_end, cfg),
        upcoming_holiday_days=len(upcoming_holidays),
        capacity_trends=trends,
        risk_factors=risks,
        data_quality_warnings=warnings,
    )
    logger.debug(
        "Aggregated %s: %d teammates, %.1f%% average utilization, %s",
        team_id, metrics.total_teammates, metrics.average_utilization, metrics.capacity_status,
    )
    return metrics
