from dataclasses import dataclass
from datetime import date


@dataclass
class LeavePeriod:
    teammate_id: str
    leave_type: str          # "VACATION", "SICK", ...
    start_date: date
    end_date: date           # inclusive
    hours_per_day: float
    status: str = "APPROVED"  # "PENDING", "APPROVED", "DENIED", "CANCELLED"
    leave_id: str = ""
    description: str = ""

    @property
    def days(self) -> int:
        return max(0, (self.end_date - self.start_date).days + 1)

    @property
    def total_hours(self) -> float:
        return self.hours_per_day * self.days
