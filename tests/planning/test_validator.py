import pytest
from datetime import date

from walkplanner.services.planning.policy import DEFAULT_POLICY, PlanningPolicy
from walkplanner.services.planning.types import (
    RallyEvent,
    RoutineTier,
    TimeBlock,
    WalkType,
    WeekOverride,
    WorkDay,
)
from walkplanner.services.planning.validator import (
    validate_assignment,
    validate_capacity,
    validate_override,
    validate_rally,
    validate_week_import,
)

from conftest import booked, make_routine, make_view


class TestValidateAssignment:

    def test_open_slot_is_valid(self, empty_view):
        report = validate_assignment(empty_view, 1, "LU-B1")
        assert report.is_valid
        assert report.codes() == []

    def test_full_slot_reports_group_full(self):
        view = make_view(assignments=booked("LU-B1", [1, 2, 3, 4]))
        report = validate_assignment(view, 5, "LU-B1")

        assert not report.is_valid
        finding = next(v for v in report.violations if v.code == "GROUP_FULL")
        assert finding.context == {"groupId": "LU-B1", "currentGroupCount": 4, "maxCapacity": 4}
        assert finding.suggestions

    def test_blocked_slot(self):
        view = make_view(overrides=[WeekOverride("LU-B1", 2025, 10, is_blocked=True, block_reason="holiday")])
        report = validate_assignment(view, 1, "LU-B1")
        assert "GROUP_BLOCKED" in report.codes()
        assert report.violations[0].context["reason"] == "holiday"

    def test_duplicate_booking(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        report = validate_assignment(view, 1, "LU-B1")
        assert "DOG_ALREADY_IN_GROUP" in [v.code for v in report.violations]

    def test_weekly_maximum(self):
        assignments = []
        for slot in ["LU-B1", "MA-B1", "ME-B1", "JE-B1", "VE-B1"]:
            assignments += booked(slot, [1])
        view = make_view(assignments=assignments)
        report = validate_assignment(view, 1, "VE-B3")
        assert "DOG_MAX_WEEKLY_WALKS" in [v.code for v in report.violations]

    def test_rules_do_not_short_circuit(self):
        assignments = booked("LU-B1", [1, 2, 3, 4])
        view = make_view(
            overrides=[WeekOverride("LU-B1", 2025, 10, is_blocked=True)],
            assignments=assignments,
        )
        report = validate_assignment(view, 1, "LU-B1")
        codes = [v.code for v in report.violations]
        assert {"GROUP_BLOCKED", "GROUP_FULL", "DOG_ALREADY_IN_GROUP"} <= set(codes)

    @pytest.mark.parametrize("slot_id", ["SA-B1", "LU-B9", "", "lu-b1"])
    def test_malformed_slot_id(self, empty_view, slot_id):
        report = validate_assignment(empty_view, 1, slot_id)
        assert report.codes() == ["INVALID_SLOT_ID"]

    def test_invalid_week(self):
        view = make_view(year=2025, week=53)
        report = validate_assignment(view, 1, "LU-B1")
        assert report.codes() == ["INVALID_WEEK"]

    def test_uninitialised_slot(self):
        view = make_view()
        view.slots = [s for s in view.slots if s.slot_id != "LU-B1"]
        report = validate_assignment(view, 1, "LU-B1")
        assert report.codes() == ["SLOT_NOT_FOUND"]

    def test_individual_slot_with_wrong_capacity(self):
        view = make_view(overrides=[WeekOverride("LU-B1", 2025, 10, walk_type=WalkType.INDIVIDUAL, capacity=3)])
        report = validate_assignment(view, 1, "LU-B1")
        codes = [v.code for v in report.violations]
        assert "INDIVIDUAL_WALK_CAPACITY" in codes
        assert "CAPACITY_TOO_HIGH" in codes


class TestAssignmentWarnings:

    def test_routine_exceeded(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        routine = make_routine(1, RoutineTier.R1)
        report = validate_assignment(view, 1, "ME-B1", routine)
        assert report.is_valid
        warning = report.warnings[0]
        assert warning.code == "ROUTINE_EXCEEDED"
        assert warning.context["expectedCount"] == 1
        assert warning.context["dogWeeklyCount"] == 1

    def test_on_demand_never_exceeds(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        routine = make_routine(1, RoutineTier.ON_DEMAND)
        report = validate_assignment(view, 1, "ME-B1", routine)
        assert "ROUTINE_EXCEEDED" not in report.codes()

    def test_sector_mismatch(self):
        view = make_view(overrides=[WeekOverride("LU-B1", 2025, 10, sector="S1")])
        routine = make_routine(1, sector="S2")
        report = validate_assignment(view, 1, "LU-B1", routine)
        assert report.is_valid
        assert "SECTOR_MISMATCH" in report.codes()

    def test_undefined_sector_is_not_a_mismatch(self, empty_view):
        routine = make_routine(1, sector="S2")
        report = validate_assignment(empty_view, 1, "LU-B1", routine)
        assert "SECTOR_MISMATCH" not in report.codes()

    def test_consecutive_blocks_is_a_warning(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        report = validate_assignment(view, 1, "LU-B2")
        assert report.is_valid
        assert [w.code for w in report.warnings] == ["CONSECUTIVE_WALKS"]
        assert report.warnings[0].context["adjacentGroup"] == "LU-B1"

    def test_non_adjacent_same_day_is_fine(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        report = validate_assignment(view, 1, "LU-B3")
        assert "CONSECUTIVE_WALKS" not in report.codes()

    def test_near_capacity_info(self):
        view = make_view(assignments=booked("LU-B1", [1, 2]))
        report = validate_assignment(view, 3, "LU-B1")
        assert [i.code for i in report.info] == ["NEAR_CAPACITY"]

    def test_no_near_capacity_below_threshold(self):
        view = make_view(assignments=booked("LU-B1", [1]))
        report = validate_assignment(view, 3, "LU-B1")
        assert report.info == []


class TestValidateCapacity:

    def test_bounds(self):
        assert validate_capacity(0, WalkType.COLLECTIVE).codes() == ["CAPACITY_TOO_LOW"]
        assert "CAPACITY_TOO_HIGH" in validate_capacity(7, WalkType.COLLECTIVE).codes()
        assert validate_capacity(4, WalkType.COLLECTIVE).is_valid

    def test_individual_pinned_to_one(self):
        assert validate_capacity(1, WalkType.INDIVIDUAL).is_valid
        report = validate_capacity(2, WalkType.INDIVIDUAL)
        assert "INDIVIDUAL_WALK_CAPACITY" in [v.code for v in report.violations]

    def test_above_recommended_warning(self):
        report = validate_capacity(6, WalkType.COLLECTIVE)
        assert report.is_valid
        assert [w.code for w in report.warnings] == ["CAPACITY_ABOVE_RECOMMENDED"]

    def test_limits_come_from_policy(self):
        policy = PlanningPolicy(max_capacity=8)
        assert "CAPACITY_TOO_HIGH" not in validate_capacity(7, WalkType.COLLECTIVE, policy).codes()


class TestValidateOverride:

    def test_valid_override(self, empty_view):
        report = validate_override(empty_view, "LU-B1", walk_type=WalkType.COLLECTIVE, capacity=5)
        assert report.is_valid

    def test_individual_with_capacity_two(self, empty_view):
        report = validate_override(empty_view, "LU-B1", walk_type=WalkType.INDIVIDUAL, capacity=2)
        assert not report.is_valid

    def test_shrinking_under_occupancy_warns(self):
        view = make_view(assignments=booked("LU-B1", [1, 2, 3]))
        report = validate_override(view, "LU-B1", capacity=2)
        assert report.is_valid
        assert "CAPACITY_BELOW_OCCUPANCY" in report.codes()

    def test_unset_fields_fall_back_to_template(self):
        view = make_view(overrides=[WeekOverride("LU-B1", 2025, 10, walk_type=WalkType.INDIVIDUAL, capacity=1)])

        assert validate_override(view, "LU-B1", capacity=3).is_valid
        assert "INDIVIDUAL_WALK_CAPACITY" in validate_override(view, "LU-B1", walk_type=WalkType.INDIVIDUAL).codes()


class TestValidateWeekImport:

    def test_later_entries_see_earlier_bookings(self):
        view = make_view(assignments=booked("LU-B1", [1, 2, 3]))
        report = validate_week_import(view, [(4, "LU-B1"), (5, "LU-B1")])
        full = [v for v in report.violations if v.code == "GROUP_FULL"]
        assert len(full) == 1
        assert full[0].context["currentGroupCount"] == 4

    def test_duplicate_in_batch(self, empty_view):
        report = validate_week_import(empty_view, [(1, "MA-B2"), (1, "MA-B2")])
        assert "DOG_ALREADY_IN_GROUP" in [v.code for v in report.violations]

    def test_original_view_is_untouched(self, empty_view):
        validate_week_import(empty_view, [(1, "MA-B2")])
        assert empty_view.get("MA-B2").occupancy == 0

    def test_uses_routines(self, empty_view):
        routines = {1: make_routine(1, RoutineTier.R1)}
        report = validate_week_import(empty_view, [(1, "LU-B1"), (1, "ME-B1")], routines)
        assert report.is_valid
        assert "ROUTINE_EXCEEDED" in report.codes()


class TestValidateRally:

    def _rally(self, start_block=TimeBlock.B1, participants=None):
        return RallyEvent(
            event_date=date(2025, 3, 5),
            day=WorkDay.WEDNESDAY,
            start_block=start_block,
            participant_ids=participants or [],
        )

    def test_valid_rally(self):
        assert validate_rally(self._rally(), [1, 2, 3]).is_valid

    def test_cannot_start_in_last_block(self):
        report = validate_rally(self._rally(TimeBlock.B3), [1])
        assert report.codes() == ["RALLY_INVALID_START_BLOCK"]

    def test_spans_two_blocks(self):
        assert self._rally(TimeBlock.B2).blocks == (TimeBlock.B2, TimeBlock.B3)

    def test_capacity_is_three(self):
        report = validate_rally(self._rally(participants=[1, 2]), [3, 4])
        assert "RALLY_FULL" in report.codes()
        assert DEFAULT_POLICY.rally_capacity == 3

    def test_duplicate_participant(self):
        report = validate_rally(self._rally(participants=[1]), [1])
        assert "DOG_ALREADY_IN_RALLY" in report.codes()
