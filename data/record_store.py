"""Read-only upstream records the engine computes from.

Teammates, teams, leave, holiday calendars, adjustments and role requirements
are owned by other systems (HR, leave management, calendar admin, work
tracking). The engine only reads them; allocations live in the ledger.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from models.teammate import Teammate, Team
from models.leave import LeavePeriod
from models.holiday import HolidayCalendar, HolidayAssignment
from models.adjustment import CapacityAdjustment


@dataclass
class RecordStore:
    teammates: Dict[str, Teammate] = field(default_factory=dict)
    teams: Dict[str, Team] = field(default_factory=dict)
    leaves: List[LeavePeriod] = field(default_factory=list)
    calendars: Dict[str, HolidayCalendar] = field(default_factory=dict)
    holiday_assignments: List[HolidayAssignment] = field(default_factory=list)
    adjustments: List[CapacityAdjustment] = field(default_factory=list)
    # team_id -> roles the team's open work needs; a missing key means no signal
    role_requirements: Dict[str, Set[str]] = field(default_factory=dict)

    @classmethod
    def from_lists(
        cls,
        teammates: Iterable[Teammate] = (),
        teams: Iterable[Team] = (),
        leaves: Iterable[LeavePeriod] = (),
        calendars: Iterable[HolidayCalendar] = (),
        holiday_assignments: Iterable[HolidayAssignment] = (),
        adjustments: Iterable[CapacityAdjustment] = (),
        role_requirements: Optional[Dict[str, Iterable[str]]] = None,
    ) -> "RecordStore":
        return cls(
            teammates={t.teammate_id: t for t in teammates},
            teams={t.team_id: t for t in teams},
            leaves=list(leaves),
            calendars={c.calendar_id: c for c in calendars},
            holiday_assignments=list(holiday_assignments),
            adjustments=list(adjustments),
            role_requirements={k: set(v) for k, v in (role_requirements or {}).items()},
        )

    # --- Lookups ---

    def get_teammate(self, teammate_id: str) -> Optional[Teammate]:
        return self.teammates.get(teammate_id)

    def get_team(self, team_id: str) -> Optional[Team]:
        return self.teams.get(team_id)

    def team_name(self, team_id: str) -> str:
        team = self.teams.get(team_id)
        return team.name if team else team_id

    def leaves_for(self, teammate_id: str, statuses: Optional[Iterable[str]] = None) -> List[LeavePeriod]:
        allowed = set(statuses) if statuses is not None else None
        return [
            lv for lv in self.leaves
            if lv.teammate_id == teammate_id and (allowed is None or lv.status in allowed)
        ]

    def leaves_overlapping(
        self,
        teammate_id: str,
        start: date,
        end: date,
        statuses: Optional[Iterable[str]] = None,
    ) -> List[LeavePeriod]:
        return [
            lv for lv in self.leaves_for(teammate_id, statuses)
            if lv.start_date <= end and lv.end_date >= start
        ]

    def adjustments_for(self, teammate_id: str) -> List[CapacityAdjustment]:
        return [a for a in self.adjustments if a.teammate_id == teammate_id]

    def calendars_for_team(self, team_id: str) -> List[HolidayCalendar]:
        """Active calendars linked to a team."""
        found = []
        for assignment in self.holiday_assignments:
            if assignment.team_id != team_id:
                continue
            cal = self.calendars.get(assignment.calendar_id)
            if cal and cal.is_active and cal not in found:
                found.append(cal)
        return found

    def required_roles(self, team_id: str) -> Optional[Set[str]]:
        return self.role_requirements.get(team_id)
