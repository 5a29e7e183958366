"""Validation outcomes raised by ledger mutations.

All of these are deterministic: the caller displays them (inline, next to the
field) and may retry with a corrected value. None are retried automatically.
"""

from typing import Any, Dict, Optional


class CapacityEngineError(Exception):
    """Base exception for all engine validation errors."""
    error_code = "CAPACITY_ENGINE_ERROR"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        """Standard error envelope rendered by clients."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": dict(self.extra),
            }
        }


class InvalidPercentageError(CapacityEngineError):
    """Allocation percentage outside (0, 100]."""
    error_code = "INVALID_PERCENTAGE"

    def __init__(self, percentage: Any):
        super().__init__(
            f"Allocation percentage must be greater than 0 and at most 100 (got {percentage!r}).",
            extra={"percentage": percentage},
        )
        self.percentage = percentage


class DuplicateAllocationError(CapacityEngineError):
    """An active allocation already exists for the pair; use update instead."""
    error_code = "DUPLICATE_ALLOCATION"

    def __init__(self, teammate_id: str, team_id: str, current_percentage: float):
        super().__init__(
            f"Teammate {teammate_id} is already allocated {current_percentage:g}% to team {team_id}; "
            "update the existing allocation instead.",
            extra={
                "teammate_id": teammate_id,
                "team_id": team_id,
                "current_percentage": current_percentage,
            },
        )
        self.teammate_id = teammate_id
        self.team_id = team_id
        self.current_percentage = current_percentage


class CapacityExceededError(CapacityEngineError):
    """The write would push the teammate's total allocation above 100%."""
    error_code = "CAPACITY_EXCEEDED"

    def __init__(
        self,
        teammate_id: str,
        team_id: str,
        requested_percentage: float,
        remaining_percentage: float,
        remaining_hours: Optional[float] = None,
    ):
        message = (
            f"Cannot allocate {requested_percentage:g}% of teammate {teammate_id} to team {team_id}: "
            f"only {remaining_percentage:g}% remaining"
        )
        if remaining_hours is not None:
            message += f" ({remaining_hours:.1f}h)"
        super().__init__(
            message + ".",
            extra={
                "teammate_id": teammate_id,
                "team_id": team_id,
                "requested_percentage": requested_percentage,
                "remaining_percentage": remaining_percentage,
                "remaining_hours": remaining_hours,
            },
        )
        self.teammate_id = teammate_id
        self.team_id = team_id
        self.requested_percentage = requested_percentage
        self.remaining_percentage = remaining_percentage
        self.remaining_hours = remaining_hours


class AllocationNotFoundError(CapacityEngineError):
    """No active allocation for the pair."""
    error_code = "NOT_FOUND"

    def __init__(self, teammate_id: str, team_id: str):
        super().__init__(
            f"Teammate {teammate_id} has no allocation on team {team_id}.",
            extra={"teammate_id": teammate_id, "team_id": team_id, "resource_type": "allocation"},
        )
        self.teammate_id = teammate_id
        self.team_id = team_id


class UnknownTeammateError(CapacityEngineError):
    """Teammate id not present in the record store."""
    error_code = "NOT_FOUND"

    def __init__(self, teammate_id: str):
        super().__init__(
            f"Unknown teammate {teammate_id}.",
            extra={"teammate_id": teammate_id, "resource_type": "teammate"},
        )
        self.teammate_id = teammate_id
