from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass
class Holiday:
    holiday_date: date
    name: str
    is_recurring: bool = False   # repeats on the same month/day every year

    def occurrences(self, start: date, end: date) -> List[date]:
        """Dates of this holiday falling inside [start, end]."""
        if not self.is_recurring:
            return [self.holiday_date] if start <= self.holiday_date <= end else []
        found = []
        for year in range(start.year, end.year + 1):
            try:
                d = self.holiday_date.replace(year=year)
            except ValueError:
                # Feb 29 in a non-leap year
                continue
            if start <= d <= end:
                found.append(d)
        return found


@dataclass
class HolidayCalendar:
    calendar_id: str
    name: str
    region: str = ""
    is_active: bool = True
    holidays: List[Holiday] = field(default_factory=list)


@dataclass
class HolidayAssignment:
    """Links a team to a holiday calendar."""
    team_id: str
    calendar_id: str
