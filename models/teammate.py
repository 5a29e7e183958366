from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Teammate:
    teammate_id: str
    name: str
    role: str                                   # "DEVELOPER", "QA", "DESIGNER", "PM", "EM"
    base_capacity_hours: Optional[float]        # per period; None = not recorded
    email: str = ""
    hours_per_day: Optional[float] = None       # falls back to DEFAULT_HOURS_PER_DAY
    secondary_roles: List[str] = field(default_factory=list)
    is_active: bool = True

    @property
    def roles(self) -> List[str]:
        """Primary role first, then secondary roles without repeats."""
        held = [self.role]
        for r in self.secondary_roles:
            if r not in held:
                held.append(r)
        return held

    def holds_role(self, role: str) -> bool:
        return role in self.roles


@dataclass
class Team:
    team_id: str
    name: str
    description: str = ""
