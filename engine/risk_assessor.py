"""Advisory risk findings for a team's capacity.

Findings never block a ledger write; they are surfaced for review. Each rule
runs independently and may contribute several findings.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from config.defaults import (
    COUNTED_LEAVE_STATUSES, OVER_ALLOCATED_THRESHOLD, OVER_ALLOCATION_MAX_SEVERITY,
    OVER_ALLOCATION_SEVERITY_BANDS, ROLE_LABELS, SEVERITY_ORDER,
    UPCOMING_LEAVE_THRESHOLD, UPCOMING_LEAVE_WINDOW_DAYS,
)
from config.logger import get_logger
from data.record_store import RecordStore
from engine.allocation_ledger import AllocationLedger
from engine.capacity_calculator import compute_breakdown
from models.allocation import Allocation
from models.capacity import CapacityBreakdown
from models.leave import LeavePeriod
from models.metrics import RiskFinding
from models.teammate import Teammate

logger = get_logger(__name__)


def team_members(
    team_id: str,
    records: RecordStore,
    ledger: AllocationLedger,
) -> List[Tuple[Teammate, Allocation]]:
    """Active teammates with an active allocation on the team, ordered by name."""
    members = []
    for alloc in ledger.allocations_for_team(team_id):
        teammate = records.get_teammate(alloc.teammate_id)
        if teammate is None:
            logger.warning("Allocation on %s references unknown teammate %s", team_id, alloc.teammate_id)
            continue
        if not teammate.is_active:
            continue
        members.append((teammate, alloc))
    return sorted(members, key=lambda m: (m[0].name, m[0].teammate_id))


def severity_for_overage(overage_pp: float) -> str:
    for bound, severity in OVER_ALLOCATION_SEVERITY_BANDS:
        if overage_pp < bound:
            return severity
    return OVER_ALLOCATION_MAX_SEVERITY


def upcoming_leaves_for(
    teammate_id: str,
    records: RecordStore,
    as_of: date,
    rule_config: Optional[dict] = None,
) -> List[LeavePeriod]:
    """Counted leaves starting within [as_of, as_of + window]."""
    cfg = rule_config or {}
    window = cfg.get("upcoming_leave_window_days", UPCOMING_LEAVE_WINDOW_DAYS)
    statuses = cfg.get("counted_leave_statuses", COUNTED_LEAVE_STATUSES)
    horizon = as_of + timedelta(days=window)
    leaves = [
        lv for lv in records.leaves_for(teammate_id, statuses)
        if as_of <= lv.start_date <= horizon
    ]
    return sorted(leaves, key=lambda lv: lv.start_date)


def _check_over_allocated(
    team_id: str,
    members: List[Tuple[Teammate, Allocation]],
    breakdowns: Dict[str, CapacityBreakdown],
    cfg: dict,
) -> List[RiskFinding]:
    threshold = cfg.get("over_allocated_threshold", OVER_ALLOCATED_THRESHOLD)
    findings = []
    for teammate, _ in members:
        utilization = breakdowns[teammate.teammate_id].utilization_for(team_id)
        if utilization > threshold:
            overage = utilization - threshold
            findings.append(RiskFinding(
                type="OVER_ALLOCATED",
                severity=severity_for_overage(overage),
                description=(
                    f"{teammate.name} is at {utilization:.1f}% utilization on this team "
                    f"({overage:.1f}pp over)."
                ),
                impacted_teammates=[teammate.teammate_id],
            ))
    return findings


def _check_upcoming_leaves(
    members: List[Tuple[Teammate, Allocation]],
    breakdowns: Dict[str, CapacityBreakdown],
    upcoming: Dict[str, List[LeavePeriod]],
    cfg: dict,
) -> List[RiskFinding]:
    threshold = cfg.get("upcoming_leave_threshold", UPCOMING_LEAVE_THRESHOLD)
    window = cfg.get("upcoming_leave_window_days", UPCOMING_LEAVE_WINDOW_DAYS)
    largest = max((alloc.allocation_percentage for _, alloc in members), default=0.0)

    findings = []
    for teammate, alloc in members:
        leaves = upcoming.get(teammate.teammate_id, [])
        if not leaves:
            continue
        leave_hours = sum(lv.total_hours for lv in leaves)
        available = breakdowns[teammate.teammate_id].available_hours
        if leave_hours <= threshold * available:
            continue
        severity = "HIGH" if alloc.allocation_percentage >= largest else "MEDIUM"
        first = leaves[0]
        findings.append(RiskFinding(
            type="UPCOMING_LEAVES",
            severity=severity,
            description=(
                f"{teammate.name} has {leave_hours:.0f}h of leave starting within {window} days "
                f"(from {first.start_date.isoformat()}), against {available:.0f}h available."
            ),
            impacted_teammates=[teammate.teammate_id],
        ))
    return findings


def _check_single_point_of_failure(
    members: List[Tuple[Teammate, Allocation]],
    breakdowns: Dict[str, CapacityBreakdown],
    upcoming: Dict[str, List[LeavePeriod]],
) -> List[RiskFinding]:
    holders = defaultdict(list)
    for teammate, _ in members:
        for role in teammate.roles:
            holders[role].append(teammate)

    findings = []
    for role in sorted(holders):
        if len(holders[role]) != 1:
            continue
        teammate = holders[role][0]
        bd = breakdowns[teammate.teammate_id]
        # Team-wide holidays hit everyone equally, so they do not count here
        reduced = bd.leave_hours > 0 or bd.adjustment_hours > 0
        if not reduced and not upcoming.get(teammate.teammate_id):
            continue
        label = ROLE_LABELS.get(role, role)
        findings.append(RiskFinding(
            type="SINGLE_POINT_OF_FAILURE",
            severity="HIGH",
            description=(
                f"{teammate.name} is the only {label} on the team and is not fully available."
            ),
            impacted_teammates=[teammate.teammate_id],
        ))
    return findings


def _check_skill_gap(
    members: List[Tuple[Teammate, Allocation]],
    required_roles: Iterable[str],
) -> List[RiskFinding]:
    held = set()
    for teammate, _ in members:
        held.update(teammate.roles)

    findings = []
    for role in sorted(set(required_roles) - held):
        label = ROLE_LABELS.get(role, role)
        findings.append(RiskFinding(
            type="SKILL_GAP",
            severity="MEDIUM",
            description=f"Open work needs a {label} but no active teammate on the team holds that role.",
            impacted_teammates=[],
        ))
    return findings


def assess_risks(
    team_id: str,
    period_start: date,
    period_end: date,
    records: RecordStore,
    ledger: AllocationLedger,
    as_of: Optional[date] = None,
    required_roles: Optional[Iterable[str]] = None,
    rule_config: Optional[dict] = None,
    breakdowns: Optional[Dict[str, CapacityBreakdown]] = None,
) -> List[RiskFinding]:
    """Evaluate every rule for the team and return findings, most severe first.

    `required_roles` falls back to the record store's role requirements; when
    neither has a signal the skill-gap rule is skipped. `breakdowns` lets a
    caller that already computed the period's breakdowns pass them in.
    """
    cfg = rule_config or {}
    as_of = as_of or period_start
    members = team_members(team_id, records, ledger)

    computed = dict(breakdowns or {})
    for teammate, _ in members:
        if teammate.teammate_id not in computed:
            computed[teammate.teammate_id] = compute_breakdown(
                teammate.teammate_id, period_start, period_end, records,
                ledger.allocations_for_teammate(teammate.teammate_id), cfg,
            )

    upcoming = {
        teammate.teammate_id: upcoming_leaves_for(teammate.teammate_id, records, as_of, cfg)
        for teammate, _ in members
    }

    findings = []
    findings.extend(_check_over_allocated(team_id, members, computed, cfg))
    findings.extend(_check_upcoming_leaves(members, computed, upcoming, cfg))
    findings.extend(_check_single_point_of_failure(members, computed, upcoming))

    roles = required_roles if required_roles is not None else records.required_roles(team_id)
    if roles is not None:
        findings.extend(_check_skill_gap(members, roles))

    findings.sort(key=lambda f: SEVERITY_ORDER.get(f.severity, len(SEVERITY_ORDER)))
    logger.debug("Risk assessment for %s: %d findings", team_id, len(findings))
    return findings
