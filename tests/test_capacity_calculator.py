"""Tests for the capacity calculator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, datetime

import pytest

from data.record_store import RecordStore
from engine.capacity_calculator import (
    adjustment_hours_in_period,
    compute_breakdown,
    compute_utilization,
    holiday_dates_for_teams,
    leave_hours_in_period,
)
from engine.errors import UnknownTeammateError
from models.adjustment import CapacityAdjustment
from models.allocation import Allocation
from models.holiday import Holiday, HolidayAssignment, HolidayCalendar
from models.leave import LeavePeriod
from models.teammate import Teammate

# Mon 2025-03-03 .. Fri 2025-03-07
PERIOD_START = date(2025, 3, 3)
PERIOD_END = date(2025, 3, 7)


def make_teammate(tid="t1", name="Ana", role="DEVELOPER", base=40.0, **kwargs):
    return Teammate(tid, name, role, base, **kwargs)


def make_alloc(tid="t1", team="A", pct=100.0):
    now = datetime(2025, 1, 1)
    return Allocation(tid, team, pct, now, now)


def make_leave(tid="t1", start=PERIOD_START, end=PERIOD_END, hpd=8.0, status="APPROVED"):
    return LeavePeriod(tid, "VACATION", start, end, hpd, status=status)


def make_store(teammates=None, **kwargs):
    return RecordStore.from_lists(teammates=teammates or [make_teammate()], **kwargs)


class TestLeaveHours:
    def test_fully_inside(self):
        assert leave_hours_in_period(make_leave(), PERIOD_START, PERIOD_END) == 40.0

    def test_partial_overlap_is_clipped(self):
        leave = make_leave(start=date(2025, 2, 27), end=date(2025, 3, 4))
        # Only Mar 3 and Mar 4 fall in the window
        assert leave_hours_in_period(leave, PERIOD_START, PERIOD_END) == 16.0

    def test_no_overlap(self):
        leave = make_leave(start=date(2025, 3, 10), end=date(2025, 3, 12))
        assert leave_hours_in_period(leave, PERIOD_START, PERIOD_END) == 0


class TestAdjustmentHours:
    def test_undated_applies_in_full(self):
        adj = CapacityAdjustment("t1", "MEETING", 4.0)
        assert adjustment_hours_in_period(adj, PERIOD_START, PERIOD_END) == 4.0

    def test_dated_is_prorated(self):
        adj = CapacityAdjustment(
            "t1", "TRAINING", 10.0, start_date=date(2025, 3, 6), end_date=date(2025, 3, 10),
        )
        # 2 of 5 days inside the window
        assert adjustment_hours_in_period(adj, PERIOD_START, PERIOD_END) == pytest.approx(4.0)

    def test_non_positive_hours_ignored(self):
        adj = CapacityAdjustment("t1", "ADMIN", -3.0)
        assert adjustment_hours_in_period(adj, PERIOD_START, PERIOD_END) == 0.0


class TestHolidayDates:
    def test_weekend_and_inactive_calendars_skipped(self):
        cal = HolidayCalendar("us", "US", holidays=[
            Holiday(date(2025, 3, 5), "Midweek"),
            Holiday(date(2025, 3, 8), "Saturday"),
        ])
        off = HolidayCalendar("old", "Old", is_active=False, holidays=[Holiday(date(2025, 3, 4), "Retired")])
        store = make_store(
            calendars=[cal, off],
            holiday_assignments=[HolidayAssignment("A", "us"), HolidayAssignment("A", "old")],
        )

        dates = holiday_dates_for_teams(store, ["A"], PERIOD_START, date(2025, 3, 9))
        assert list(dates) == [date(2025, 3, 5)]

    def test_shared_date_counts_once(self):
        cal1 = HolidayCalendar("us", "US", holidays=[Holiday(date(2025, 3, 5), "Founders Day")])
        cal2 = HolidayCalendar("uk", "UK", holidays=[Holiday(date(2025, 3, 5), "Founders Day")])
        store = make_store(
            calendars=[cal1, cal2],
            holiday_assignments=[HolidayAssignment("A", "us"), HolidayAssignment("B", "uk")],
        )
        dates = holiday_dates_for_teams(store, ["A", "B"], PERIOD_START, PERIOD_END)
        assert len(dates) == 1

    def test_recurring_holiday_repeats_yearly(self):
        cal = HolidayCalendar("us", "US", holidays=[Holiday(date(2020, 3, 5), "Anniversary", is_recurring=True)])
        store = make_store(calendars=[cal], holiday_assignments=[HolidayAssignment("A", "us")])
        dates = holiday_dates_for_teams(store, ["A"], PERIOD_START, PERIOD_END)
        assert date(2025, 3, 5) in dates


class TestComputeUtilization:
    def test_regular(self):
        assert compute_utilization(24.0, 40.0, 60.0) == pytest.approx(60.0)

    def test_zero_available_with_allocation_reports_100(self):
        assert compute_utilization(0.0, 0.0, 50.0) == 100.0

    def test_zero_available_without_allocation_reports_0(self):
        assert compute_utilization(0.0, 0.0, 0.0) == 0.0

    def test_configurable_convention(self):
        assert compute_utilization(0.0, 0.0, 50.0, {"zero_available_utilization": 150.0}) == 150.0


class TestComputeBreakdown:
    def test_no_deductions(self):
        store = make_store()
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc(pct=60.0)])

        assert bd.base_hours == 40.0
        assert bd.available_hours == 40.0
        assert bd.allocated_hours_for("A") == 24.0
        assert bd.utilization_for("A") == pytest.approx(60.0)
        assert len(bd.explanation_steps) >= 5

    def test_full_week_leave_exhausts_capacity(self):
        store = make_store(leaves=[make_leave()])
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc(pct=60.0)])

        assert bd.leave_hours == 40.0
        assert bd.available_hours == 0
        assert bd.allocated_hours_for("A") == 0
        assert bd.utilization_for("A") == 100.0

    def test_available_is_clamped_at_zero(self):
        store = make_store(
            leaves=[make_leave()],
            adjustments=[CapacityAdjustment("t1", "INTERVIEW", 6.0)],
        )
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store)
        assert bd.available_hours == 0
        assert any("clamped" in s for s in bd.explanation_steps)

    def test_unapproved_leave_not_deducted(self):
        store = make_store(leaves=[make_leave(status="PENDING"), make_leave(status="DENIED")])
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store)
        assert bd.leave_hours == 0
        assert bd.available_hours == 40.0

    def test_holidays_only_from_teammate_teams(self):
        cal = HolidayCalendar("us", "US", holidays=[Holiday(date(2025, 3, 5), "Midweek")])
        store = make_store(calendars=[cal], holiday_assignments=[HolidayAssignment("A", "us")])

        on_team = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc(team="A", pct=50.0)])
        off_team = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc(team="B", pct=50.0)])

        assert on_team.holiday_hours == 8.0
        assert on_team.available_hours == 32.0
        assert off_team.holiday_hours == 0

    def test_holiday_uses_teammate_hours_per_day(self):
        cal = HolidayCalendar("us", "US", holidays=[Holiday(date(2025, 3, 5), "Midweek")])
        store = make_store(
            teammates=[make_teammate(hours_per_day=6.0)],
            calendars=[cal],
            holiday_assignments=[HolidayAssignment("A", "us")],
        )
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc()])
        assert bd.holiday_hours == 6.0

    def test_missing_base_capacity_is_data_quality_not_error(self):
        store = make_store(teammates=[make_teammate(base=None)])
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store, [make_alloc(pct=50.0)])

        assert bd.available_hours == 0
        assert len(bd.warnings) == 1
        assert bd.warnings[0].code == "DATA_QUALITY"

    def test_negative_adjustment_reported(self):
        store = make_store(adjustments=[CapacityAdjustment("t1", "CUSTOM", -2.0)])
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store)
        assert bd.adjustment_hours == 0
        assert len(bd.warnings) == 1

    def test_adjustments_subtotalled_by_type(self):
        store = make_store(adjustments=[
            CapacityAdjustment("t1", "MEETING", 3.0),
            CapacityAdjustment("t1", "MEETING", 1.5),
            CapacityAdjustment("t1", "TRAINING", 2.0),
            CapacityAdjustment("t1", "CUSTOM", 1.0),
        ])
        bd = compute_breakdown("t1", PERIOD_START, PERIOD_END, store)

        assert bd.adjustment_hours == 7.5
        assert bd.adjustment_hours_by_type == {"MEETING": 4.5, "TRAINING": 2.0, "CUSTOM": 1.0}
        assert bd.meeting_hours == 4.5
        assert bd.custom_adjustment_hours == 3.0

    def test_unknown_teammate_raises(self):
        with pytest.raises(UnknownTeammateError):
            compute_breakdown("ghost", PERIOD_START, PERIOD_END, make_store())

    def test_ignores_other_teammates_allocations(self):
        bd = compute_breakdown(
            "t1", PERIOD_START, PERIOD_END, make_store(),
            [make_alloc(pct=40.0), make_alloc(tid="t2", team="B", pct=60.0)],
        )
        assert [a.team_id for a in bd.allocations] == ["A"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
