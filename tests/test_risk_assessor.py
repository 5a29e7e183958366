"""Tests for the risk assessor."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, timedelta

import pytest

from data.record_store import RecordStore
from engine.allocation_ledger import AllocationLedger
from engine.risk_assessor import assess_risks, severity_for_overage, upcoming_leaves_for
from models.adjustment import CapacityAdjustment
from models.holiday import Holiday, HolidayAssignment, HolidayCalendar
from models.leave import LeavePeriod
from models.teammate import Teammate

AS_OF = date(2025, 3, 3)
PERIOD_START = AS_OF
PERIOD_END = AS_OF + timedelta(days=13)


def make_teammate(tid, role="DEVELOPER", base=80.0, **kwargs):
    return Teammate(tid, tid.title(), role, base, **kwargs)


def make_leave(tid, start_offset, days, status="APPROVED"):
    start = AS_OF + timedelta(days=start_offset)
    return LeavePeriod(tid, "VACATION", start, start + timedelta(days=days - 1), 8.0, status=status)


def types_of(findings):
    return [f.type for f in findings]


class TestSeverityBands:
    @pytest.mark.parametrize("overage,expected", [
        (0.5, "LOW"), (9.99, "LOW"), (10, "MEDIUM"), (24.9, "MEDIUM"),
        (25, "HIGH"), (49.9, "HIGH"), (50, "CRITICAL"), (300, "CRITICAL"),
    ])
    def test_bands(self, overage, expected):
        assert severity_for_overage(overage) == expected


class TestUpcomingLeavesWindow:
    def test_only_counted_leaves_starting_in_window(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("em")],
            leaves=[
                make_leave("em", 5, 3),
                make_leave("em", 20, 3),
                make_leave("em", 1, 2, status="CANCELLED"),
                make_leave("em", -3, 5),   # already started
            ],
        )
        found = upcoming_leaves_for("em", store, AS_OF)
        assert [lv.start_date for lv in found] == [AS_OF + timedelta(days=5)]


class TestAssessRisks:
    def test_sole_em_with_upcoming_leave(self):
        """EM at 100% with a 10-day leave starting in 5 days."""
        store = RecordStore.from_lists(
            teammates=[make_teammate("em", role="EM")],
            leaves=[make_leave("em", 5, 10)],
        )
        ledger = AllocationLedger()
        ledger.assign("em", "A", 100)

        findings = assess_risks("A", PERIOD_START, PERIOD_END, store, ledger, as_of=AS_OF)
        kinds = types_of(findings)

        assert "UPCOMING_LEAVES" in kinds
        assert "SINGLE_POINT_OF_FAILURE" in kinds
        leave = next(f for f in findings if f.type == "UPCOMING_LEAVES")
        assert leave.severity == "HIGH"          # sole member holds the largest allocation
        assert leave.impacted_teammates == ["em"]
        spof = next(f for f in findings if f.type == "SINGLE_POINT_OF_FAILURE")
        assert spof.severity == "HIGH"
        assert "Engineering Manager" in spof.description

    def test_upcoming_leave_medium_when_not_largest_allocation(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("dev1"), make_teammate("dev2")],
            leaves=[make_leave("dev2", 2, 5)],
        )
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 100)
        ledger.assign("dev2", "A", 50)

        findings = assess_risks("A", PERIOD_START, PERIOD_END, store, ledger)
        leave = [f for f in findings if f.type == "UPCOMING_LEAVES"]
        assert len(leave) == 1
        assert leave[0].severity == "MEDIUM"

    def test_short_leave_below_threshold_not_flagged(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("dev1"), make_teammate("dev2")],
            leaves=[make_leave("dev1", 3, 1)],     # 8h vs 72h available
        )
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 100)
        ledger.assign("dev2", "A", 100)

        assert "UPCOMING_LEAVES" not in types_of(assess_risks("A", PERIOD_START, PERIOD_END, store, ledger))

    def test_fully_available_sole_role_is_not_spof(self):
        store = RecordStore.from_lists(teammates=[make_teammate("des", role="DESIGNER")])
        ledger = AllocationLedger()
        ledger.assign("des", "A", 100)

        assert assess_risks("A", PERIOD_START, PERIOD_END, store, ledger) == []

    def test_adjustment_makes_sole_holder_spof(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("des", role="DESIGNER")],
            adjustments=[CapacityAdjustment("des", "INTERVIEW", 6.0)],
        )
        ledger = AllocationLedger()
        ledger.assign("des", "A", 100)

        assert types_of(assess_risks("A", PERIOD_START, PERIOD_END, store, ledger)) == ["SINGLE_POINT_OF_FAILURE"]

    def test_team_holiday_alone_is_not_spof(self):
        cal = HolidayCalendar("us", "US", holidays=[Holiday(AS_OF + timedelta(days=2), "Holiday")])
        store = RecordStore.from_lists(
            teammates=[make_teammate("des", role="DESIGNER")],
            calendars=[cal],
            holiday_assignments=[HolidayAssignment("A", "us")],
        )
        ledger = AllocationLedger()
        ledger.assign("des", "A", 100)

        assert assess_risks("A", PERIOD_START, PERIOD_END, store, ledger) == []

    def test_shared_role_is_not_spof(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("dev1"), make_teammate("dev2")],
            leaves=[make_leave("dev1", 20, 2), make_leave("dev1", 1, 1)],
        )
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 50)
        ledger.assign("dev2", "A", 50)

        assert "SINGLE_POINT_OF_FAILURE" not in types_of(assess_risks("A", PERIOD_START, PERIOD_END, store, ledger))

    def test_skill_gap_per_missing_role(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("dev1"), make_teammate("dev2", secondary_roles=["QA"])],
            role_requirements={"A": ["DEVELOPER", "QA", "DESIGNER", "PM"]},
        )
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 50)
        ledger.assign("dev2", "A", 50)

        findings = assess_risks("A", PERIOD_START, PERIOD_END, store, ledger)
        gaps = [f for f in findings if f.type == "SKILL_GAP"]
        assert len(gaps) == 2
        assert all(f.severity == "MEDIUM" for f in gaps)

    def test_skill_gap_skipped_without_signal(self):
        store = RecordStore.from_lists(teammates=[make_teammate("dev1")])
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 50)
        assert "SKILL_GAP" not in types_of(assess_risks("A", PERIOD_START, PERIOD_END, store, ledger))

    def test_explicit_required_roles_override_store(self):
        store = RecordStore.from_lists(teammates=[make_teammate("dev1")], role_requirements={"A": ["EM"]})
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 50)

        findings = assess_risks("A", PERIOD_START, PERIOD_END, store, ledger, required_roles=["DEVELOPER"])
        assert "SKILL_GAP" not in types_of(findings)

    def test_over_allocated_via_configured_threshold(self):
        store = RecordStore.from_lists(teammates=[make_teammate("dev1")])
        ledger = AllocationLedger()
        ledger.assign("dev1", "A", 100)

        findings = assess_risks(
            "A", PERIOD_START, PERIOD_END, store, ledger,
            rule_config={"over_allocated_threshold": 70.0},
        )
        over = [f for f in findings if f.type == "OVER_ALLOCATED"]
        assert len(over) == 1
        assert over[0].severity == "HIGH"    # 30pp over

    def test_inactive_teammates_ignored(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("em", role="EM", is_active=False)],
            leaves=[make_leave("em", 5, 10)],
        )
        ledger = AllocationLedger()
        ledger.assign("em", "A", 100)
        assert assess_risks("A", PERIOD_START, PERIOD_END, store, ledger) == []

    def test_findings_sorted_by_severity(self):
        store = RecordStore.from_lists(
            teammates=[make_teammate("em", role="EM")],
            leaves=[make_leave("em", 5, 10)],
            role_requirements={"A": ["QA"]},
        )
        ledger = AllocationLedger()
        ledger.assign("em", "A", 100)

        severities = [f.severity for f in assess_risks("A", PERIOD_START, PERIOD_END, store, ledger)]
        assert severities == sorted(severities, key=["CRITICAL", "HIGH", "MEDIUM", "LOW"].index)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
