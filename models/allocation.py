from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Allocation:
    """Ledger entry: one teammate's percentage commitment to one team."""
    teammate_id: str
    team_id: str
    allocation_percentage: float    # in (0, 100]
    created_at: datetime
    updated_at: datetime
    is_active: bool = True

    @property
    def key(self) -> tuple:
        return (self.teammate_id, self.team_id)


@dataclass
class BatchItemResult:
    teammate_id: str
    team_id: str
    requested_percentage: float
    succeeded: bool
    remaining_percentage: Optional[float] = None   # teammate's remaining after the attempt
    error_code: Optional[str] = None
    error_message: str = ""


@dataclass
class BatchResult:
    """Per-item outcomes of a bulk assignment, in request order."""
    team_id: str
    items: List[BatchItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BatchItemResult]:
        return [i for i in self.items if i.succeeded]

    @property
    def failed(self) -> List[BatchItemResult]:
        return [i for i in self.items if not i.succeeded]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)
