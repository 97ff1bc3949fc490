from walkplanner.services.planning.slots import default_templates
from walkplanner.services.planning.types import WalkType, WeekOverride
from walkplanner.services.planning.weekly_view import build_effective_slot, build_weekly_view

from conftest import booked, get_test_week, make_view


class TestBuildEffectiveSlot:

    def test_template_defaults_without_override(self):
        template = default_templates()[0]
        slot = build_effective_slot(template, 2025, 10)
        assert slot.walk_type == WalkType.COLLECTIVE
        assert slot.capacity == 4
        assert slot.sector is None
        assert slot.is_blocked is False
        assert slot.occupancy == 0
        assert slot.remaining == 4

    def test_override_fields_win_when_set(self):
        template = default_templates()[0]
        override = WeekOverride(slot_id="LU-B1", year=2025, week=10,
                                walk_type=WalkType.CUSTOM, sector="S2", capacity=3)
        slot = build_effective_slot(template, 2025, 10, override=override)
        assert slot.walk_type == WalkType.CUSTOM
        assert slot.sector == "S2"
        assert slot.capacity == 3

    def test_unset_override_fields_fall_back(self):
        template = default_templates()[0]
        template.default_sector = "S1"
        override = WeekOverride(slot_id="LU-B1", year=2025, week=10, is_blocked=True, block_reason="vet")
        slot = build_effective_slot(template, 2025, 10, override=override)
        assert slot.sector == "S1"
        assert slot.capacity == 4
        assert slot.is_blocked is True
        assert slot.block_reason == "vet"

    def test_zero_capacity_override_is_not_treated_as_missing(self):
        template = default_templates()[0]
        override = WeekOverride(slot_id="LU-B1", year=2025, week=10, capacity=0)
        slot = build_effective_slot(template, 2025, 10, override=override)
        assert slot.capacity == 0

    def test_only_own_assignments_are_kept(self):
        template = default_templates()[0]
        assignments = booked("LU-B1", [1, 2]) + booked("LU-B2", [3])
        slot = build_effective_slot(template, 2025, 10, assignments=assignments)
        assert [a.dog_id for a in slot.assignments] == [1, 2]


class TestBuildWeeklyView:

    def test_full_slot_example(self):
        # 2025-W10, LU-B1 capacity 4 with 4 dogs
        year, week = get_test_week()
        view = make_view(assignments=booked("LU-B1", [1, 2, 3, 4]))
        slot = view.get("LU-B1")
        assert slot.occupancy == 4 == slot.capacity
        assert slot.remaining == 0
        assert slot.is_full

    def test_fifteen_slots_sorted(self):
        templates = list(reversed(default_templates()))
        view = build_weekly_view(templates, [], [], 2025, 10)
        assert len(view.slots) == 15
        assert view.slots[0].slot_id == "LU-B1"
        assert view.slots[-1].slot_id == "VE-B3"

    def test_other_weeks_are_ignored(self):
        overrides = [WeekOverride(slot_id="LU-B1", year=2025, week=11, is_blocked=True)]
        assignments = booked("LU-B1", [1], week=11) + booked("LU-B1", [2])
        view = make_view(overrides=overrides, assignments=assignments)
        slot = view.get("LU-B1")
        assert slot.is_blocked is False
        assert [a.dog_id for a in slot.assignments] == [2]

    def test_assignments_for_dog(self):
        view = make_view(assignments=booked("LU-B1", [1, 2]) + booked("ME-B2", [1]))
        assert [a.slot_id for a in view.assignments_for_dog(1)] == ["LU-B1", "ME-B2"]
        assert view.assignments_for_dog(9) == []

    def test_unknown_slot(self):
        assert make_view().get("SA-B1") is None
