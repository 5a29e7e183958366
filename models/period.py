from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional


@dataclass(frozen=True)
class Period:
    start: date
    end: date          # inclusive
    label: str = ""

    @property
    def days(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    @property
    def display_label(self) -> str:
        return self.label or f"{self.start.isoformat()} to {self.end.isoformat()}"

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def overlap_days(self, start: date, end: date) -> int:
        """Calendar days of [start, end] falling inside this period."""
        lo = max(start, self.start)
        hi = min(end, self.end)
        if hi < lo:
            return 0
        return (hi - lo).days + 1


def period_starting(start: date, length_days: int, label: Optional[str] = None) -> Period:
    return Period(start, start + timedelta(days=length_days - 1), label or "")


def trailing_periods(current_start: date, length_days: int, count: int) -> List[Period]:
    """`count` back-to-back periods, chronological, the last starting at current_start."""
    periods = []
    for i in range(count - 1, -1, -1):
        start = current_start - timedelta(days=length_days * i)
        label = "Current" if i == 0 else f"P-{i}"
        periods.append(period_starting(start, length_days, label))
    return periods
