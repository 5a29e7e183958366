from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class CapacityAdjustment:
    """Ad-hoc deduction (training, interviews, admin time) for one teammate."""
    teammate_id: str
    adjustment_type: str            # "TRAINING", "INTERVIEW", "ADMIN", ...
    hours: float
    description: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None   # None on both ends = every period
    adjustment_id: str = ""

    @property
    def is_dated(self) -> bool:
        return self.start_date is not None or self.end_date is not None
