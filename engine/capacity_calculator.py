"""Available-hours derivation: base capacity minus leave, holiday and adjustment deductions.

Pure functions of their inputs. Nothing is cached; callers re-run them whenever
ledger or upstream records change.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from config.defaults import (
    COUNTED_LEAVE_STATUSES, DEFAULT_HOURS_PER_DAY, HOURS_PRECISION,
    SKIP_WEEKEND_HOLIDAYS, ZERO_AVAILABLE_UTILIZATION,
)
from config.logger import get_logger
from data.record_store import RecordStore
from engine.errors import UnknownTeammateError
from engine.explainer import explain_breakdown
from models.adjustment import CapacityAdjustment
from models.allocation import Allocation
from models.capacity import (
    AdjustmentLine, AllocationShare, CapacityBreakdown, DataQualityIssue, HolidayLine, LeaveLine,
)
from models.leave import LeavePeriod
from models.teammate import Teammate

logger = get_logger(__name__)


def _overlap_days(start: date, end: date, window_start: date, window_end: date) -> int:
    lo = max(start, window_start)
    hi = min(end, window_end)
    if hi < lo:
        return 0
    return (hi - lo).days + 1


def hours_per_day_for(teammate: Teammate, rule_config: Optional[dict] = None) -> float:
    cfg = rule_config or {}
    if teammate.hours_per_day is not None:
        return teammate.hours_per_day
    return cfg.get("default_hours_per_day", DEFAULT_HOURS_PER_DAY)


def leave_hours_in_period(leave: LeavePeriod, period_start: date, period_end: date) -> float:
    """hours_per_day x calendar days of the leave clipped to the window."""
    days = _overlap_days(leave.start_date, leave.end_date, period_start, period_end)
    return leave.hours_per_day * days


def adjustment_hours_in_period(
    adjustment: CapacityAdjustment,
    period_start: date,
    period_end: date,
) -> float:
    """Undated adjustments apply in full; dated ones are prorated by overlapping days."""
    if adjustment.hours <= 0:
        return 0.0
    if not adjustment.is_dated:
        return adjustment.hours

    start = adjustment.start_date or adjustment.end_date
    end = adjustment.end_date or adjustment.start_date
    if end < start:
        return 0.0
    total_days = (end - start).days + 1
    days = _overlap_days(start, end, period_start, period_end)
    return adjustment.hours * days / total_days


def holiday_dates_for_teams(
    records: RecordStore,
    team_ids: Iterable[str],
    period_start: date,
    period_end: date,
    rule_config: Optional[dict] = None,
) -> Dict[date, str]:
    """Distinct holiday dates (date -> name) from the teams' active calendars."""
    cfg = rule_config or {}
    skip_weekends = cfg.get("skip_weekend_holidays", SKIP_WEEKEND_HOLIDAYS)

    dates: Dict[date, str] = {}
    for team_id in team_ids:
        for calendar in records.calendars_for_team(team_id):
            for holiday in calendar.holidays:
                for d in holiday.occurrences(period_start, period_end):
                    if skip_weekends and d.weekday() >= 5:
                        continue
                    dates.setdefault(d, holiday.name)
    return dict(sorted(dates.items()))


def compute_utilization(
    allocated_hours: float,
    available_hours: float,
    allocation_percentage: float,
    rule_config: Optional[dict] = None,
) -> float:
    """allocated / available * 100.

    With zero available hours a non-zero allocation reports
    `zero_available_utilization` (100 by default) instead of dividing by zero.
    """
    cfg = rule_config or {}
    if available_hours <= 0:
        if allocation_percentage > 0:
            return cfg.get("zero_available_utilization", ZERO_AVAILABLE_UTILIZATION)
        return 0.0
    return allocated_hours / available_hours * 100


def _round(hours: float) -> float:
    return round(hours, HOURS_PRECISION)


def _leave_lines(
    teammate_id: str,
    records: RecordStore,
    period_start: date,
    period_end: date,
    statuses,
) -> Tuple[List[LeaveLine], List[DataQualityIssue]]:
    lines = []
    issues = []
    for leave in records.leaves_overlapping(teammate_id, period_start, period_end, statuses):
        if leave.end_date < leave.start_date:
            issues.append(DataQualityIssue(
                teammate_id, f"Leave {leave.leave_id or leave.leave_type} ends before it starts; ignored.",
            ))
            continue
        hours = leave_hours_in_period(leave, period_start, period_end)
        if hours <= 0:
            continue
        lines.append(LeaveLine(
            leave_type=leave.leave_type,
            start_date=leave.start_date,
            end_date=leave.end_date,
            hours=_round(hours),
            description=leave.description,
        ))
    return lines, issues


def _adjustment_lines(
    teammate_id: str,
    records: RecordStore,
    period_start: date,
    period_end: date,
) -> Tuple[List[AdjustmentLine], List[DataQualityIssue]]:
    lines = []
    issues = []
    for adj in records.adjustments_for(teammate_id):
        if adj.hours <= 0:
            issues.append(DataQualityIssue(
                teammate_id,
                f"Adjustment {adj.adjustment_id or adj.adjustment_type} has non-positive hours "
                f"({adj.hours:g}); ignored.",
            ))
            continue
        hours = adjustment_hours_in_period(adj, period_start, period_end)
        if hours <= 0:
            continue
        lines.append(AdjustmentLine(
            adjustment_type=adj.adjustment_type,
            hours=_round(hours),
            description=adj.description,
        ))
    return lines, issues


def compute_breakdown(
    teammate_id: str,
    period_start: date,
    period_end: date,
    records: RecordStore,
    allocations: Iterable[Allocation] = (),
    rule_config: Optional[dict] = None,
) -> CapacityBreakdown:
    """Derive a teammate's capacity for [period_start, period_end].

    `allocations` are the teammate's active ledger entries; they decide which
    team calendars apply and are converted into allocated hours.
    """
    cfg = rule_config or {}
    statuses = cfg.get("counted_leave_statuses", COUNTED_LEAVE_STATUSES)

    teammate = records.get_teammate(teammate_id)
    if teammate is None:
        raise UnknownTeammateError(teammate_id)

    allocations = [a for a in allocations if a.is_active and a.teammate_id == teammate_id]
    warnings: List[DataQualityIssue] = []

    base_defaulted = teammate.base_capacity_hours is None
    if base_defaulted:
        base_hours = 0.0
        warnings.append(DataQualityIssue(
            teammate_id, f"Base capacity is not set for {teammate.name}; using 0h.",
        ))
    else:
        base_hours = float(teammate.base_capacity_hours)

    leaves, leave_issues = _leave_lines(teammate_id, records, period_start, period_end, statuses)
    warnings.extend(leave_issues)

    daily_hours = hours_per_day_for(teammate, cfg)
    holiday_dates = holiday_dates_for_teams(
        records, [a.team_id for a in allocations], period_start, period_end, cfg,
    )
    holidays = [HolidayLine(name, d, _round(daily_hours)) for d, name in holiday_dates.items()]

    adjustments, adj_issues = _adjustment_lines(teammate_id, records, period_start, period_end)
    warnings.extend(adj_issues)

    leave_hours = _round(sum(line.hours for line in leaves))
    holiday_hours = _round(sum(line.hours for line in holidays))
    adjustment_hours = _round(sum(line.hours for line in adjustments))

    raw_available = base_hours - leave_hours - holiday_hours - adjustment_hours
    available_hours = _round(max(0.0, raw_available))

    shares = []
    for alloc in allocations:
        allocated = _round(available_hours * alloc.allocation_percentage / 100)
        shares.append(AllocationShare(
            team_id=alloc.team_id,
            allocation_percentage=alloc.allocation_percentage,
            allocated_hours=allocated,
            utilization_percentage=compute_utilization(
                allocated, available_hours, alloc.allocation_percentage, cfg,
            ),
        ))

    for issue in warnings:
        logger.warning("Data quality: %s", issue.message)

    explanation = explain_breakdown(
        teammate_name=teammate.name,
        period_start=period_start,
        period_end=period_end,
        base_hours=base_hours,
        base_defaulted=base_defaulted,
        leave_hours=leave_hours,
        leave_count=len(leaves),
        holiday_hours=holiday_hours,
        holiday_count=len(holidays),
        adjustment_hours=adjustment_hours,
        adjustment_count=len(adjustments),
        raw_available=raw_available,
        available_hours=available_hours,
    )

    return CapacityBreakdown(
        teammate_id=teammate_id,
        teammate_name=teammate.name,
        period_start=period_start,
        period_end=period_end,
        base_hours=base_hours,
        leave_hours=leave_hours,
        holiday_hours=holiday_hours,
        adjustment_hours=adjustment_hours,
        available_hours=available_hours,
        allocations=shares,
        leaves=leaves,
        holidays=holidays,
        adjustments=adjustments,
        warnings=warnings,
        explanation_steps=explanation,
    )
