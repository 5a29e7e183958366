"""Tests for the allocation ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta

import pytest

from engine.allocation_ledger import AllocationLedger, validate_percentage
from engine.errors import (
    AllocationNotFoundError,
    CapacityExceededError,
    DuplicateAllocationError,
    InvalidPercentageError,
)
from models.allocation import Allocation


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 3, 9, 0)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


def make_ledger():
    return AllocationLedger(clock=FakeClock())


class TestValidatePercentage:
    @pytest.mark.parametrize("value", [0, -5, 100.01, 250, float("nan"), "50", None, True])
    def test_rejects_out_of_range_and_non_numbers(self, value):
        with pytest.raises(InvalidPercentageError):
            validate_percentage(value)

    @pytest.mark.parametrize("value", [0.5, 1, 50, 100])
    def test_accepts_range(self, value):
        assert validate_percentage(value) == float(value)


class TestAssign:
    def test_returns_new_remaining(self):
        ledger = make_ledger()
        assert ledger.assign("t1", "A", 60) == 40.0
        assert ledger.remaining_percentage("t1") == 40.0

    def test_capacity_exceeded_carries_remaining(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 60)

        with pytest.raises(CapacityExceededError) as exc_info:
            ledger.assign("t1", "B", 50)

        err = exc_info.value
        assert err.remaining_percentage == 40.0
        assert err.requested_percentage == 50
        assert "only 40% remaining" in err.message
        assert err.to_dict()["error"]["code"] == "CAPACITY_EXCEEDED"
        # Rejected write leaves nothing behind
        assert ledger.get("t1", "B") is None

    def test_exact_fill_reaches_zero(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 60)
        with pytest.raises(CapacityExceededError):
            ledger.assign("t1", "B", 50)
        assert ledger.assign("t1", "B", 40) == 0
        assert ledger.remaining_percentage("t1") == 0

    def test_duplicate_pair_rejected(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 30)
        with pytest.raises(DuplicateAllocationError):
            ledger.assign("t1", "A", 10)

    def test_invalid_percentage_rejected_before_anything_else(self):
        ledger = make_ledger()
        with pytest.raises(InvalidPercentageError):
            ledger.assign("t1", "A", 0)
        assert ledger.all_allocations() == []

    def test_fractional_percentages_fill_exactly(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 33.3)
        ledger.assign("t1", "B", 33.3)
        assert ledger.assign("t1", "C", 33.4) == 0

    def test_teammates_are_independent(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 100)
        assert ledger.assign("t2", "A", 100) == 0

    def test_overshoot_below_a_millionth_is_rejected(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 60.0000009)
        with pytest.raises(CapacityExceededError):
            ledger.assign("t1", "B", 40)
        assert ledger.total_percentage("t1") == 60.000001
        assert ledger.get("t1", "B") is None

    def test_float_noise_still_fills_to_100(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 70.1)
        assert ledger.assign("t1", "B", 29.9) == 0


class TestUpdate:
    def test_excludes_current_allocation_from_check(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 60)
        ledger.assign("t1", "B", 40)

        # B 40 -> 30 frees 10; A 60 -> 70 fits only because A's own 60 is excluded
        ledger.update("t1", "B", 30)
        assert ledger.update("t1", "A", 70) == 0

    def test_over_cap_rejected_with_remaining(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 60)
        ledger.assign("t1", "B", 30)

        with pytest.raises(CapacityExceededError) as exc_info:
            ledger.update("t1", "B", 50)
        assert exc_info.value.remaining_percentage == 40.0
        assert ledger.get("t1", "B").allocation_percentage == 30

    def test_missing_allocation_is_not_found(self):
        with pytest.raises(AllocationNotFoundError):
            make_ledger().update("t1", "A", 20)

    def test_same_value_is_noop(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 100)
        before = ledger.get("t1", "A").updated_at

        assert ledger.update("t1", "A", 100) == 0
        assert ledger.get("t1", "A").updated_at == before

    def test_changes_updated_at(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 50)
        created = ledger.get("t1", "A").created_at
        ledger.update("t1", "A", 40)

        entry = ledger.get("t1", "A")
        assert entry.created_at == created
        assert entry.updated_at > created

    def test_invalid_percentage(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 50)
        with pytest.raises(InvalidPercentageError):
            ledger.update("t1", "A", 101)


class TestRemove:
    def test_remove_restores_remaining(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 30)
        before = ledger.remaining_percentage("t1")
        ledger.assign("t1", "B", 50)

        assert ledger.remove("t1", "B") is True
        assert ledger.remaining_percentage("t1") == before

    def test_remove_is_idempotent(self):
        ledger = make_ledger()
        assert ledger.remove("t1", "A") is False
        ledger.assign("t1", "A", 30)
        assert ledger.remove("t1", "A") is True
        assert ledger.remove("t1", "A") is False

    def test_pair_can_be_reassigned_after_remove(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 30)
        ledger.remove("t1", "A")
        assert ledger.assign("t1", "A", 80) == 20.0

    def test_remove_keeps_inactive_stored_entry(self):
        now = datetime(2025, 1, 1)
        ledger = make_ledger()
        ledger.load([Allocation("t1", "A", 40, now, now, is_active=False)])

        assert ledger.remove("t1", "A") is False
        stored = ledger.snapshot()
        assert len(stored) == 1
        assert stored[0].key == ("t1", "A")
        assert stored[0].is_active is False


class TestPersistence:
    def test_snapshot_and_load(self):
        ledger = make_ledger()
        ledger.assign("t1", "A", 30)
        ledger.assign("t2", "A", 70)

        restored = make_ledger()
        restored.load(ledger.snapshot())
        assert restored.remaining_percentage("t1") == 70.0
        assert len(restored.allocations_for_team("A")) == 2

    def test_inactive_entries_do_not_count(self):
        now = datetime(2025, 1, 1)
        ledger = make_ledger()
        ledger.load([
            Allocation("t1", "A", 80, now, now, is_active=False),
            Allocation("t1", "B", 50, now, now),
        ])
        assert ledger.remaining_percentage("t1") == 50.0
        # Inactive pair can be assigned again
        assert ledger.assign("t1", "A", 50) == 0

    def test_load_rejects_overcommitted_data(self):
        now = datetime(2025, 1, 1)
        ledger = make_ledger()
        ledger.assign("t9", "Z", 10)
        with pytest.raises(CapacityExceededError):
            ledger.load([
                Allocation("t1", "A", 80, now, now),
                Allocation("t1", "B", 50, now, now),
            ])
        # Existing state untouched
        assert ledger.remaining_percentage("t9") == 90.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
