from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AuditEntry:
    timestamp: datetime
    action: str              # "assign", "update", "remove", "upload"
    teammate_id: Optional[str]
    team_id: Optional[str]
    field_changed: str
    old_value: str
    new_value: str
    rationale: str = ""
