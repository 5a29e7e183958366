"""Per-teammate serialization of ledger mutations.

Each teammate has its own FIFO lock. A mutation takes the lock before the
ledger reads the teammate's remaining percentage and releases it after the
write, so two concurrent assignments can never both pass the capacity check.
Mutations for different teammates do not wait on each other.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from config.logger import get_logger
from engine.allocation_ledger import AllocationLedger
from engine.errors import CapacityEngineError
from models.allocation import BatchItemResult, BatchResult
from models.audit import AuditEntry

logger = get_logger(__name__)


class FairLock:
    """Ticket lock: waiters acquire in arrival order."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._serving = 0

    def acquire(self) -> None:
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._serving:
                self._cond.wait()

    def release(self) -> None:
        with self._cond:
            self._serving += 1
            self._cond.notify_all()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class ConflictResolver:
    """Serializes assign/update/remove per teammate and records an audit trail."""

    def __init__(self, ledger: AllocationLedger, audit_log: Optional[List[AuditEntry]] = None):
        self.ledger = ledger
        self.audit_log = audit_log if audit_log is not None else []
        self._locks: Dict[str, FairLock] = {}
        self._registry_lock = threading.Lock()
        self._audit_lock = threading.Lock()

    def _lock_for(self, teammate_id: str) -> FairLock:
        with self._registry_lock:
            lock = self._locks.get(teammate_id)
            if lock is None:
                lock = FairLock()
                self._locks[teammate_id] = lock
            return lock

    @contextmanager
    def teammate_scope(self, teammate_id: str):
        """Hold the teammate's lock for one validate-then-write step."""
        lock = self._lock_for(teammate_id)
        logger.debug("Waiting for %s", teammate_id)
        with lock:
            yield

    def _audit(self, action: str, teammate_id: str, team_id: str, old_value, new_value, rationale: str):
        entry = AuditEntry(
            timestamp=datetime.now(),
            action=action,
            teammate_id=teammate_id,
            team_id=team_id,
            field_changed="allocation_percentage",
            old_value="" if old_value is None else f"{old_value:g}",
            new_value="" if new_value is None else f"{new_value:g}",
            rationale=rationale,
        )
        with self._audit_lock:
            self.audit_log.append(entry)

    # --- Mutations ---

    def assign(self, teammate_id: str, team_id: str, percentage, rationale: str = "") -> float:
        with self.teammate_scope(teammate_id):
            remaining = self.ledger.assign(teammate_id, team_id, percentage)
            self._audit("assign", teammate_id, team_id, None, float(percentage), rationale)
        return remaining

    def update(self, teammate_id: str, team_id: str, new_percentage, rationale: str = "") -> float:
        with self.teammate_scope(teammate_id):
            existing = self.ledger.get(teammate_id, team_id)
            old = existing.allocation_percentage if existing else None
            remaining = self.ledger.update(teammate_id, team_id, new_percentage)
            if old != float(new_percentage):
                self._audit("update", teammate_id, team_id, old, float(new_percentage), rationale)
        return remaining

    def remove(self, teammate_id: str, team_id: str, rationale: str = "") -> bool:
        with self.teammate_scope(teammate_id):
            existing = self.ledger.get(teammate_id, team_id)
            old = existing.allocation_percentage if existing else None
            removed = self.ledger.remove(teammate_id, team_id)
            if removed:
                self._audit("remove", teammate_id, team_id, old, None, rationale)
        return removed

    def bulk_assign(
        self,
        team_id: str,
        requests: Iterable[Tuple[str, float]],
        rationale: str = "",
        assign_one: Optional[Callable[[str, float], float]] = None,
    ) -> BatchResult:
        """Assign (teammate_id, percentage) pairs to one team, in order.

        Not atomic: each item is validated and committed on its own, so a
        later item may fail even though earlier ones went through.

        `assign_one(teammate_id, percentage)` replaces the plain per-item
        assign, letting a caller run its own checks first. It must go through
        `assign` for the locking and audit to apply.
        """
        if assign_one is None:
            def assign_one(teammate_id, percentage):
                return self.assign(teammate_id, team_id, percentage, rationale)

        result = BatchResult(team_id=team_id)
        for teammate_id, percentage in requests:
            try:
                remaining = assign_one(teammate_id, percentage)
            except CapacityEngineError as exc:
                result.items.append(BatchItemResult(
                    teammate_id=teammate_id,
                    team_id=team_id,
                    requested_percentage=percentage,
                    succeeded=False,
                    remaining_percentage=exc.extra.get(
                        "remaining_percentage", self.ledger.remaining_percentage(teammate_id),
                    ),
                    error_code=exc.error_code,
                    error_message=exc.message,
                ))
            else:
                result.items.append(BatchItemResult(
                    teammate_id=teammate_id,
                    team_id=team_id,
                    requested_percentage=percentage,
                    succeeded=True,
                    remaining_percentage=remaining,
                ))

        logger.info(
            "Bulk assign to %s: %d succeeded, %d failed",
            team_id, len(result.succeeded), len(result.failed),
        )
        return result
