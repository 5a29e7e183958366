"""End-to-end tests through the engine facade."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, timedelta

import pytest

from data.record_store import RecordStore
from engine.capacity_engine import CapacityEngine
from engine.errors import CapacityExceededError, UnknownTeammateError
from models.leave import LeavePeriod
from models.period import Period
from models.teammate import Team, Teammate

PERIOD = Period(date(2025, 3, 3), date(2025, 3, 7), "Sprint 1")


def make_engine(teammates=None, leaves=()):
    teammates = teammates or [
        Teammate("ana", "Ana", "DEVELOPER", 40.0, email="ana@example.com"),
        Teammate("bo", "Bo", "QA", 40.0, email="bo@example.com"),
        Teammate("cy", "Cy", "EM", 40.0, email="cy@example.com"),
    ]
    records = RecordStore.from_lists(
        teammates=teammates,
        teams=[Team("A", "Platform"), Team("B", "Payments")],
        leaves=leaves,
    )
    return CapacityEngine(records)


class TestMutations:
    def test_assign_until_full(self):
        engine = make_engine()
        assert engine.assign("ana", "A", 60) == 40.0

        with pytest.raises(CapacityExceededError) as exc_info:
            engine.assign("ana", "B", 50, period=PERIOD)
        err = exc_info.value
        assert err.remaining_percentage == 40.0
        assert err.remaining_hours == 16.0
        assert "only 40% remaining (16.0h)" in err.message

        assert engine.assign("ana", "B", 40) == 0
        assert engine.remaining_percentage("ana") == 0

    def test_unknown_teammate_rejected(self):
        with pytest.raises(UnknownTeammateError):
            make_engine().assign("ghost", "A", 10)

    def test_bulk_assign_partial(self):
        engine = make_engine()
        engine.assign("bo", "B", 90)

        result = engine.bulk_assign("A", [("ana", 50), ("bo", 50), ("cy", 50)])
        assert [i.succeeded for i in result.items] == [True, False, True]
        assert result.items[1].error_code == "CAPACITY_EXCEEDED"
        assert len(engine.audit_log) == 3

    def test_bulk_assign_rejects_unknown_teammate(self):
        engine = make_engine()

        result = engine.bulk_assign("A", [("ghost", 50), ("ana", 50)])
        assert [i.succeeded for i in result.items] == [False, True]
        assert result.items[0].error_code == "NOT_FOUND"
        assert engine.ledger.get("ghost", "A") is None
        assert [a.teammate_id for a in engine.ledger.allocations_for_team("A")] == ["ana"]
        assert len(engine.audit_log) == 1

    def test_bulk_assign_reports_remaining_hours(self):
        engine = make_engine()
        engine.assign("ana", "B", 60)

        result = engine.bulk_assign("A", [("ana", 50)], period=PERIOD)
        item = result.items[0]
        assert item.error_code == "CAPACITY_EXCEEDED"
        assert item.remaining_percentage == 40.0
        assert "(16.0h)" in item.error_message

    def test_update_and_remove(self):
        engine = make_engine()
        engine.assign("ana", "A", 60)
        assert engine.update("ana", "A", 30) == 70.0
        assert engine.remove("ana", "A") is True
        assert engine.remaining_percentage("ana") == 100.0


class TestQueries:
    def test_breakdown_uses_ledger_allocations(self):
        engine = make_engine()
        engine.assign("ana", "A", 25)
        bd = engine.compute_breakdown("ana", PERIOD)
        assert bd.allocated_hours_for("A") == 10.0

    def test_team_allocations_view(self):
        leave = LeavePeriod("ana", "VACATION", date(2025, 3, 5), date(2025, 3, 5), 8.0)
        engine = make_engine(leaves=[leave])
        engine.assign("ana", "A", 50)
        engine.assign("bo", "A", 100)

        rows = engine.team_allocations("A", PERIOD)
        assert [r.teammate_id for r in rows] == ["ana", "bo"]
        ana = rows[0]
        assert ana.available_hours == 32.0
        assert ana.allocated_hours == 16.0
        assert ana.current_utilization == pytest.approx(50.0)
        assert len(ana.upcoming_leaves) == 1

    def test_available_teammates_filters_and_sorts(self):
        engine = make_engine()
        engine.assign("ana", "B", 70)
        engine.assign("bo", "A", 20)
        engine.assign("cy", "B", 100)

        rows = engine.available_teammates("A", PERIOD)
        # bo already on A, cy fully allocated
        assert [r.teammate_id for r in rows] == ["ana"]
        ana = rows[0]
        assert ana.remaining_allocation_percentage == 30.0
        assert ana.suggested_allocation == 30.0
        assert ana.current_allocations[0].team_name == "Payments"
        assert ana.capacity_status == "AVAILABLE"

    def test_available_teammates_search_and_role(self):
        engine = make_engine()
        assert [r.teammate_id for r in engine.available_teammates("A", PERIOD, role="QA")] == ["bo"]
        assert [r.teammate_id for r in engine.available_teammates("A", PERIOD, search="CY@")] == ["cy"]

    def test_available_teammates_sort_by_name(self):
        engine = make_engine()
        rows = engine.available_teammates("A", PERIOD, sort_by="name", descending=False)
        assert [r.name for r in rows] == ["Ana", "Bo", "Cy"]

    def test_available_teammates_rejects_unknown_sort(self):
        with pytest.raises(ValueError):
            make_engine().available_teammates("A", PERIOD, sort_by="salary")

    def test_default_aggregate_builds_trailing_periods(self):
        engine = make_engine()
        engine.rule_config = {"period_days": 7, "trend_periods": 4}
        engine.assign("ana", "A", 100)

        m = engine.aggregate("A", as_of=date(2025, 3, 3))
        assert len(m.capacity_trends) == 4
        assert m.period_start == date(2025, 3, 3)
        assert m.period_end == date(2025, 3, 3) + timedelta(days=6)

    def test_sole_em_risk_through_facade(self):
        leave = LeavePeriod("cy", "VACATION", date(2025, 3, 8), date(2025, 3, 17), 8.0)
        engine = make_engine(leaves=[leave])
        engine.assign("cy", "A", 100)

        kinds = {f.type for f in engine.assess_risks("A", PERIOD, as_of=date(2025, 3, 3))}
        assert {"UPCOMING_LEAVES", "SINGLE_POINT_OF_FAILURE"} <= kinds


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
