"""Facade wiring the ledger, conflict resolver, calculator, risk assessor and aggregator.

This is the surface the dashboard talks to: it submits mutations here and
renders what the query methods return. Queries are stateless and recompute
from the records and the ledger on every call.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from config.defaults import (
    AVAILABLE_TEAMMATE_SORT_KEYS, DEFAULT_AVAILABLE_TEAMMATE_SORT, DEFAULT_PERIOD_DAYS,
    DEFAULT_TREND_PERIODS,
)
from config.logger import get_logger
from data.record_store import RecordStore
from engine.allocation_ledger import AllocationLedger
from engine.capacity_calculator import compute_breakdown
from engine.conflict_resolver import ConflictResolver
from engine.errors import CapacityExceededError, UnknownTeammateError
from engine.metrics_aggregator import aggregate, classify_capacity_status
from engine.risk_assessor import assess_risks, team_members, upcoming_leaves_for
from models.allocation import BatchResult
from models.audit import AuditEntry
from models.capacity import CapacityBreakdown
from models.metrics import (
    AvailableTeammate, CurrentAllocation, RiskFinding, TeamAllocationView,
    TeamCapacityMetrics, UpcomingLeave,
)
from models.period import Period, trailing_periods

logger = get_logger(__name__)


def _upcoming(leaves) -> List[UpcomingLeave]:
    return [UpcomingLeave(lv.start_date, lv.end_date, lv.leave_type, lv.total_hours) for lv in leaves]


class CapacityEngine:
    def __init__(
        self,
        records: RecordStore,
        ledger: Optional[AllocationLedger] = None,
        rule_config: Optional[dict] = None,
        audit_log: Optional[List[AuditEntry]] = None,
    ):
        self.records = records
        self.ledger = ledger or AllocationLedger()
        self.resolver = ConflictResolver(self.ledger, audit_log)
        self.rule_config = rule_config or {}

    @property
    def audit_log(self) -> List[AuditEntry]:
        return self.resolver.audit_log

    def _require_teammate(self, teammate_id: str):
        teammate = self.records.get_teammate(teammate_id)
        if teammate is None:
            raise UnknownTeammateError(teammate_id)
        return teammate

    def default_period(self, as_of: Optional[date] = None) -> Period:
        start = as_of or date.today()
        days = self.rule_config.get("period_days", DEFAULT_PERIOD_DAYS)
        return Period(start, start + timedelta(days=days - 1), "Current")

    # --- Mutations (serialized per teammate) ---

    def assign(
        self,
        teammate_id: str,
        team_id: str,
        percentage,
        period: Optional[Period] = None,
        rationale: str = "",
    ) -> float:
        """Assign and return remaining percentage.

        A CapacityExceededError is re-raised with the remaining hours for
        `period` attached so the client can show both numbers.
        """
        self._require_teammate(teammate_id)
        try:
            return self.resolver.assign(teammate_id, team_id, percentage, rationale)
        except CapacityExceededError as exc:
            raise self._with_hours(exc, period) from None

    def update(
        self,
        teammate_id: str,
        team_id: str,
        new_percentage,
        period: Optional[Period] = None,
        rationale: str = "",
    ) -> float:
        self._require_teammate(teammate_id)
        try:
            return self.resolver.update(teammate_id, team_id, new_percentage, rationale)
        except CapacityExceededError as exc:
            raise self._with_hours(exc, period) from None

    def remove(self, teammate_id: str, team_id: str, rationale: str = "") -> bool:
        return self.resolver.remove(teammate_id, team_id, rationale)

    def bulk_assign(
        self,
        team_id: str,
        requests: Iterable[Tuple[str, float]],
        rationale: str = "",
        period: Optional[Period] = None,
    ) -> BatchResult:
        """Per-item `assign`, so unknown teammates and hour details behave as in a single assign."""
        def assign_one(teammate_id, percentage):
            return self.assign(teammate_id, team_id, percentage, period=period, rationale=rationale)

        return self.resolver.bulk_assign(team_id, requests, rationale, assign_one=assign_one)

    def _with_hours(self, exc: CapacityExceededError, period: Optional[Period]) -> CapacityExceededError:
        if period is None:
            return exc
        bd = self.compute_breakdown(exc.teammate_id, period)
        hours = bd.available_hours * exc.remaining_percentage / 100
        return CapacityExceededError(
            exc.teammate_id, exc.team_id, exc.requested_percentage, exc.remaining_percentage,
            remaining_hours=round(hours, 1),
        )

    # --- Queries ---

    def remaining_percentage(self, teammate_id: str) -> float:
        return self.ledger.remaining_percentage(teammate_id)

    def compute_breakdown(self, teammate_id: str, period: Period) -> CapacityBreakdown:
        return compute_breakdown(
            teammate_id, period.start, period.end, self.records,
            self.ledger.allocations_for_teammate(teammate_id), self.rule_config,
        )

    def assess_risks(
        self,
        team_id: str,
        period: Period,
        as_of: Optional[date] = None,
        required_roles: Optional[Iterable[str]] = None,
    ) -> List[RiskFinding]:
        return assess_risks(
            team_id, period.start, period.end, self.records, self.ledger,
            as_of=as_of, required_roles=required_roles, rule_config=self.rule_config,
        )

    def aggregate(
        self,
        team_id: str,
        periods: Optional[Sequence[Period]] = None,
        as_of: Optional[date] = None,
        required_roles: Optional[Iterable[str]] = None,
        include_trends: bool = True,
        include_risks: bool = True,
    ) -> TeamCapacityMetrics:
        if not periods:
            current = self.default_period(as_of)
            periods = trailing_periods(
                current.start,
                current.days,
                self.rule_config.get("trend_periods", DEFAULT_TREND_PERIODS),
            )
        return aggregate(
            team_id, periods, self.records, self.ledger,
            as_of=as_of, required_roles=required_roles,
            include_trends=include_trends, include_risks=include_risks,
            rule_config=self.rule_config,
        )

    def team_allocations(self, team_id: str, period: Period, as_of: Optional[date] = None) -> List[TeamAllocationView]:
        as_of = as_of or period.start
        rows = []
        for teammate, alloc in team_members(team_id, self.records, self.ledger):
            bd = self.compute_breakdown(teammate.teammate_id, period)
            rows.append(TeamAllocationView(
                teammate_id=teammate.teammate_id,
                teammate_name=teammate.name,
                teammate_email=teammate.email,
                teammate_role=teammate.role,
                allocation_percentage=alloc.allocation_percentage,
                base_capacity=bd.base_hours,
                available_hours=bd.available_hours,
                allocated_hours=bd.allocated_hours_for(team_id),
                current_utilization=bd.utilization_for(team_id),
                upcoming_leaves=_upcoming(
                    upcoming_leaves_for(teammate.teammate_id, self.records, as_of, self.rule_config)
                ),
                created_at=alloc.created_at,
                updated_at=alloc.updated_at,
            ))
        return rows

    def available_teammates(
        self,
        team_id: str,
        period: Period,
        search: Optional[str] = None,
        role: Optional[str] = None,
        min_available_hours: Optional[float] = None,
        max_allocation_percentage: Optional[float] = None,
        sort_by: str = DEFAULT_AVAILABLE_TEAMMATE_SORT,
        descending: bool = True,
        as_of: Optional[date] = None,
    ) -> List[AvailableTeammate]:
        """Active teammates not on the team who still have allocation headroom."""
        if sort_by not in AVAILABLE_TEAMMATE_SORT_KEYS:
            raise ValueError(f"Unsupported sort key: {sort_by}. Use one of {AVAILABLE_TEAMMATE_SORT_KEYS}.")
        as_of = as_of or period.start
        needle = search.strip().lower() if search else None

        rows = []
        for teammate in self.records.teammates.values():
            if not teammate.is_active:
                continue
            if self.ledger.get(teammate.teammate_id, team_id) is not None:
                continue
            if role and not teammate.holds_role(role):
                continue
            if needle and needle not in teammate.name.lower() and needle not in teammate.email.lower():
                continue

            total = self.ledger.total_percentage(teammate.teammate_id)
            remaining = self.ledger.remaining_percentage(teammate.teammate_id)
            if remaining <= 0:
                continue
            if max_allocation_percentage is not None and total > max_allocation_percentage:
                continue

            bd = self.compute_breakdown(teammate.teammate_id, period)
            if min_available_hours is not None and bd.available_hours < min_available_hours:
                continue

            rows.append(AvailableTeammate(
                teammate_id=teammate.teammate_id,
                name=teammate.name,
                email=teammate.email,
                role=teammate.role,
                base_capacity=bd.base_hours,
                available_hours=bd.available_hours,
                current_allocations=[
                    CurrentAllocation(a.team_id, self.records.team_name(a.team_id), a.allocation_percentage)
                    for a in self.ledger.allocations_for_teammate(teammate.teammate_id)
                ],
                total_allocation_percentage=total,
                remaining_allocation_percentage=remaining,
                capacity_status=classify_capacity_status(total, self.rule_config),
                upcoming_leaves=_upcoming(
                    upcoming_leaves_for(teammate.teammate_id, self.records, as_of, self.rule_config)
                ),
            ))

        if sort_by == "name":
            rows.sort(key=lambda r: r.name.lower(), reverse=descending)
        else:
            rows.sort(key=lambda r: (getattr(r, sort_by), r.name.lower()), reverse=descending)
        return rows
