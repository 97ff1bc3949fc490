from walkplanner.services.planning.analysis import (
    analyze_weekly_load,
    build_alert_feed,
    check_routine_compliance,
    detect_dog_conflicts,
)
from walkplanner.services.planning.types import RoutineTier, WeekOverride

from conftest import booked, make_routine, make_view


class TestAnalyzeWeeklyLoad:

    def test_empty_week(self, empty_view):
        analysis = analyze_weekly_load(empty_view)
        assert analysis.total_assignments == 0
        assert analysis.total_capacity == 60
        assert analysis.utilization_percent == 0
        assert len(analysis.empty_slots) == 15
        assert analysis.sector_distribution == {"S1": 0, "S2": 0, "S3": 0}

    def test_blocked_slots_do_not_count_as_capacity_or_empty(self):
        view = make_view(overrides=[WeekOverride("LU-B1", 2025, 10, is_blocked=True)])
        analysis = analyze_weekly_load(view)
        assert analysis.total_capacity == 56
        assert "LU-B1" not in analysis.empty_slots

    def test_overbooked_and_near_capacity(self):
        view = make_view(
            overrides=[WeekOverride("MA-B1", 2025, 10, capacity=2)],
            assignments=booked("MA-B1", [1, 2, 3]) + booked("LU-B1", [4, 5, 6]),
        )
        analysis = analyze_weekly_load(view)
        assert analysis.overbooked_slots == ["MA-B1"]
        assert analysis.near_capacity_slots == ["LU-B1"]
        assert analysis.total_assignments == 6

    def test_utilization_is_rounded(self):
        # 1 dog over 60 places = 1.67%
        view = make_view(assignments=booked("LU-B1", [1]))
        assert analyze_weekly_load(view).utilization_percent == 2

    def test_distributions(self):
        view = make_view(
            overrides=[WeekOverride("ME-B2", 2025, 10, sector="S3")],
            assignments=booked("ME-B2", [1, 2]) + booked("VE-B3", [3]),
        )
        analysis = analyze_weekly_load(view)
        assert analysis.sector_distribution["S3"] == 2
        assert analysis.day_distribution == {"LU": 0, "MA": 0, "ME": 2, "JE": 0, "VE": 1}
        assert analysis.block_distribution == {"B1": 0, "B2": 2, "B3": 1}


class TestDetectDogConflicts:

    def test_double_booking(self):
        view = make_view(assignments=booked("LU-B1", [1, 1]))
        conflicts = detect_dog_conflicts(view)
        assert [c.conflict_type for c in conflicts] == ["double_booking"]
        assert conflicts[0].affected_slots == ["LU-B1"]

    def test_consecutive_blocks(self):
        view = make_view(assignments=booked("JE-B2", [7]) + booked("JE-B3", [7]))
        conflicts = detect_dog_conflicts(view)
        assert len(conflicts) == 1
        assert conflicts[0].conflict_type == "consecutive_blocks"
        assert conflicts[0].affected_slots == ["JE-B2", "JE-B3"]

    def test_spread_walks_have_no_conflict(self):
        view = make_view(assignments=booked("LU-B1", [1]) + booked("LU-B3", [1]) + booked("MA-B1", [1]))
        assert detect_dog_conflicts(view) == []


class TestRoutineCompliance:

    def test_statuses(self):
        view = make_view(assignments=booked("LU-B1", [1]) + booked("LU-B1", [2]) + booked("ME-B1", [2]))
        routines = [
            make_routine(1, RoutineTier.R2),
            make_routine(2, RoutineTier.R2),
            make_routine(3, RoutineTier.R1),
        ]
        statuses = {c.dog_id: c.status for c in check_routine_compliance(view, routines)}
        assert statuses == {1: "under", 2: "ok", 3: "under"}

    def test_over(self):
        view = make_view(assignments=booked("LU-B1", [1]) + booked("ME-B1", [1]))
        result = check_routine_compliance(view, [make_routine(1, RoutineTier.R1)])
        assert result[0].status == "over"
        assert result[0].expected_count == 1
        assert result[0].actual_count == 2

    def test_on_demand_and_inactive_are_skipped(self, empty_view):
        routines = [
            make_routine(1, RoutineTier.ON_DEMAND),
            make_routine(2, RoutineTier.R3, is_active=False),
        ]
        assert check_routine_compliance(empty_view, routines) == []


class TestAlertFeed:

    def test_bundles_everything(self):
        view = make_view(assignments=booked("LU-B1", [1, 1]))
        feed = build_alert_feed(view, [make_routine(1, RoutineTier.R1)])
        assert feed.load.total_assignments == 2
        assert feed.conflicts[0].conflict_type == "double_booking"
        assert feed.compliance[0].status == "over"
