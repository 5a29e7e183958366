"""Authoritative teammate -> team percentage allocations.

Invariant: for every teammate, the sum of active allocation percentages never
exceeds 100. Every write checks it before committing; a rejected write leaves
the ledger untouched.

The ledger does no locking of its own. Concurrent writers go through
`engine.conflict_resolver.ConflictResolver`.
"""

import math
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from config.defaults import ALLOCATION_TOLERANCE, MAX_ALLOCATION_PCT, TOTAL_ALLOCATION_CAP
from config.logger import get_logger
from engine.errors import (
    AllocationNotFoundError, CapacityExceededError, DuplicateAllocationError, InvalidPercentageError,
)
from models.allocation import Allocation

logger = get_logger(__name__)


def validate_percentage(percentage) -> float:
    """Return the percentage as float, or raise InvalidPercentageError if not in (0, 100]."""
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        logger.info("Rejected non-numeric percentage %r", percentage)
        raise InvalidPercentageError(percentage)
    value = float(percentage)
    if math.isnan(value) or value <= 0 or value > MAX_ALLOCATION_PCT:
        logger.info("Rejected out-of-range percentage %r", percentage)
        raise InvalidPercentageError(percentage)
    return value


def _clean(value: float) -> float:
    # Keep 100 - 60 - 40 at exactly 0 rather than 1e-14
    return round(value, 6)


class AllocationLedger:
    """In-memory ledger keyed by (teammate_id, team_id).

    `clock` supplies timestamps (injectable for tests). The hosting system is
    expected to persist `snapshot()` and restore it with `load()`.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self._entries: Dict[Tuple[str, str], Allocation] = {}

    # --- Queries ---

    def get(self, teammate_id: str, team_id: str) -> Optional[Allocation]:
        """Active allocation for the pair, if any."""
        entry = self._entries.get((teammate_id, team_id))
        if entry is not None and entry.is_active:
            return entry
        return None

    def allocations_for_teammate(self, teammate_id: str) -> List[Allocation]:
        return [a for a in self._entries.values() if a.teammate_id == teammate_id and a.is_active]

    def allocations_for_team(self, team_id: str) -> List[Allocation]:
        return [a for a in self._entries.values() if a.team_id == team_id and a.is_active]

    def all_allocations(self) -> List[Allocation]:
        return [a for a in self._entries.values() if a.is_active]

    def teammate_ids(self) -> List[str]:
        return sorted({a.teammate_id for a in self.all_allocations()})

    def total_percentage(self, teammate_id: str) -> float:
        return _clean(math.fsum(a.allocation_percentage for a in self.allocations_for_teammate(teammate_id)))

    def remaining_percentage(self, teammate_id: str) -> float:
        """100 - sum(active percentages). Every allocation weighs the same regardless of age."""
        return max(0.0, _clean(TOTAL_ALLOCATION_CAP - self.total_percentage(teammate_id)))

    def _other_total(self, teammate_id: str, exclude_team_id: Optional[str] = None) -> float:
        return math.fsum(
            a.allocation_percentage
            for a in self.allocations_for_teammate(teammate_id)
            if a.team_id != exclude_team_id
        )

    def _check_capacity(self, teammate_id: str, team_id: str, percentage: float) -> None:
        other = self._other_total(teammate_id, exclude_team_id=team_id)
        if math.fsum([percentage, other]) > TOTAL_ALLOCATION_CAP + ALLOCATION_TOLERANCE:
            remaining = max(0.0, _clean(TOTAL_ALLOCATION_CAP - other))
            logger.info(
                "Rejected %s%% of %s on %s: only %s%% remaining",
                percentage, teammate_id, team_id, remaining,
            )
            raise CapacityExceededError(teammate_id, team_id, percentage, remaining)

    # --- Mutations ---

    def assign(self, teammate_id: str, team_id: str, percentage) -> float:
        """Create an allocation and return the teammate's new remaining percentage."""
        value = validate_percentage(percentage)

        existing = self.get(teammate_id, team_id)
        if existing is not None:
            logger.info("Rejected duplicate allocation %s -> %s", teammate_id, team_id)
            raise DuplicateAllocationError(teammate_id, team_id, existing.allocation_percentage)

        self._check_capacity(teammate_id, team_id, value)

        now = self._clock()
        self._entries[(teammate_id, team_id)] = Allocation(
            teammate_id=teammate_id,
            team_id=team_id,
            allocation_percentage=value,
            created_at=now,
            updated_at=now,
        )
        remaining = self.remaining_percentage(teammate_id)
        logger.info("Assigned %s to %s at %s%% (%s%% remaining)", teammate_id, team_id, value, remaining)
        return remaining

    def update(self, teammate_id: str, team_id: str, new_percentage) -> float:
        """Change an existing allocation and return the teammate's remaining percentage.

        Setting the current value again is a no-op: nothing is rechecked and
        `updated_at` is left alone.
        """
        value = validate_percentage(new_percentage)

        existing = self.get(teammate_id, team_id)
        if existing is None:
            logger.info("Rejected update of missing allocation %s -> %s", teammate_id, team_id)
            raise AllocationNotFoundError(teammate_id, team_id)

        if existing.allocation_percentage == value:
            logger.debug("No-op update %s -> %s at %s%%", teammate_id, team_id, value)
            return self.remaining_percentage(teammate_id)

        self._check_capacity(teammate_id, team_id, value)

        old = existing.allocation_percentage
        existing.allocation_percentage = value
        existing.updated_at = self._clock()
        remaining = self.remaining_percentage(teammate_id)
        logger.info(
            "Updated %s on %s from %s%% to %s%% (%s%% remaining)",
            teammate_id, team_id, old, value, remaining,
        )
        return remaining

    def remove(self, teammate_id: str, team_id: str) -> bool:
        """Delete the allocation. Returns False (not an error) when there was none."""
        entry = self.get(teammate_id, team_id)
        if entry is None:
            logger.debug("Remove of absent allocation %s -> %s ignored", teammate_id, team_id)
            return False
        del self._entries[(teammate_id, team_id)]
        logger.info("Removed %s from %s (was %s%%)", teammate_id, team_id, entry.allocation_percentage)
        return True

    # --- Persistence ---

    def snapshot(self) -> List[Allocation]:
        """Copies of every stored entry, inactive ones included."""
        return [
            Allocation(
                teammate_id=a.teammate_id,
                team_id=a.team_id,
                allocation_percentage=a.allocation_percentage,
                created_at=a.created_at,
                updated_at=a.updated_at,
                is_active=a.is_active,
            )
            for a in self._entries.values()
        ]

    def load(self, allocations: Iterable[Allocation]) -> None:
        """Replace the ledger contents with persisted entries.

        Raises before touching current state if the entries break a
        percentage bound or the per-teammate cap.
        """
        staged: Dict[Tuple[str, str], Allocation] = {}
        totals: Dict[str, List[float]] = {}
        for a in allocations:
            if a.is_active:
                validate_percentage(a.allocation_percentage)
                totals.setdefault(a.teammate_id, []).append(a.allocation_percentage)
            staged[a.key] = a

        for teammate_id, parts in totals.items():
            total = math.fsum(parts)
            if total > TOTAL_ALLOCATION_CAP + ALLOCATION_TOLERANCE:
                raise CapacityExceededError(
                    teammate_id, "*", _clean(total), 0.0,
                )

        self._entries = staged
        logger.info("Loaded %d allocations for %d teammates", len(staged), len(totals))
