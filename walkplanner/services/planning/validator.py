"""
Business rule validation for assignments, slot overrides and rally bookings.

Every rule is evaluated independently and contributes to the same report;
nothing short-circuits. Violations block the mutation, warnings flag it for
review, info is advisory.
"""

import copy
from typing import Iterable, Optional

from .policy import DEFAULT_POLICY, PlanningPolicy
from .slots import block_distance, is_valid_slot_id
from .types import (
    Assignment,
    DogRoutine,
    EffectiveSlotView,
    RallyEvent,
    RoutineTier,
    RuleFinding,
    Severity,
    TIME_BLOCKS,
    ValidationReport,
    WalkType,
    WeeklyView,
)
from .weeks import is_valid_week


def _violation(code: str, message: str, context: dict, suggestions: Optional[list[str]] = None) -> RuleFinding:
    return RuleFinding(code, Severity.VIOLATION, message, context, suggestions or [])


def _warning(code: str, message: str, context: dict, suggestions: Optional[list[str]] = None) -> RuleFinding:
    return RuleFinding(code, Severity.WARNING, message, context, suggestions or [])


def _info(code: str, message: str, context: dict) -> RuleFinding:
    return RuleFinding(code, Severity.INFO, message, context)


def validate_capacity(
    capacity: int,
    walk_type: WalkType,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> ValidationReport:
    """Check a capacity against the absolute bounds and the walk type."""
    report = ValidationReport()
    max_allowed = policy.max_capacity_for(walk_type)
    default_capacity = policy.rate_for(walk_type).default_capacity

    if capacity < policy.min_capacity:
        report.add(_violation(
            "CAPACITY_TOO_LOW",
            f"Capacity cannot be lower than {policy.min_capacity}",
            {"capacity": capacity, "minAllowed": policy.min_capacity},
        ))

    if capacity > max_allowed:
        report.add(_violation(
            "CAPACITY_TOO_HIGH",
            f"Capacity cannot exceed {max_allowed} for a {walk_type.value.lower()} walk",
            {"capacity": capacity, "maxAllowed": max_allowed, "walkType": walk_type.value},
        ))

    if walk_type == WalkType.INDIVIDUAL and capacity != 1:
        report.add(_violation(
            "INDIVIDUAL_WALK_CAPACITY",
            "An individual walk takes exactly one dog",
            {"capacity": capacity, "walkType": walk_type.value},
        ))

    if capacity > default_capacity + 1:
        report.add(_warning(
            "CAPACITY_ABOVE_RECOMMENDED",
            f"Capacity is above the recommended {default_capacity}",
            {"capacity": capacity, "defaultCapacity": default_capacity, "walkType": walk_type.value},
            ["Check that this many dogs can be handled safely"],
        ))

    return report


def _check_target(view: WeeklyView, slot_id: str) -> tuple[ValidationReport, Optional[EffectiveSlotView]]:
    """Malformed input is rejected before any rule evaluation."""
    report = ValidationReport()
    if not is_valid_slot_id(slot_id):
        report.add(_violation(
            "INVALID_SLOT_ID",
            f"Invalid slot id {slot_id!r}",
            {"groupId": slot_id},
        ))
        return report, None

    if not is_valid_week(view.year, view.week):
        report.add(_violation(
            "INVALID_WEEK",
            f"Week {view.week} does not exist in {view.year}",
            {"year": view.year, "week": view.week},
        ))
        return report, None

    slot = view.get(slot_id)
    if slot is None:
        report.add(_violation(
            "SLOT_NOT_FOUND",
            f"Slot {slot_id} has not been initialised",
            {"groupId": slot_id},
        ))
    return report, slot


def validate_assignment(
    view: WeeklyView,
    dog_id: int,
    slot_id: str,
    routine: Optional[DogRoutine] = None,
    dog_name: Optional[str] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> ValidationReport:
    """
    Check a proposed (dog, slot) booking against the current week.

    Returns:
        ValidationReport with every rule that fired
    """
    report, slot = _check_target(view, slot_id)
    if slot is None:
        return report

    name = dog_name or (routine.dog_name if routine else None) or f"Dog {dog_id}"
    dog_assignments = view.assignments_for_dog(dog_id)
    weekly_count = len(dog_assignments)

    if slot.is_blocked:
        report.add(_violation(
            "GROUP_BLOCKED",
            f"Slot {slot_id} is blocked and accepts no assignments",
            {"groupId": slot_id, "reason": slot.block_reason},
        ))

    if slot.occupancy >= slot.capacity:
        report.add(_violation(
            "GROUP_FULL",
            f"Slot {slot_id} is full ({slot.occupancy}/{slot.capacity})",
            {"groupId": slot_id, "currentGroupCount": slot.occupancy, "maxCapacity": slot.capacity},
            ["Pick another available slot"],
        ))

    if slot.has_dog(dog_id):
        report.add(_violation(
            "DOG_ALREADY_IN_GROUP",
            f"{name} is already assigned to {slot_id}",
            {"dogId": dog_id, "dogName": name, "groupId": slot_id},
        ))

    if weekly_count >= policy.max_walks_per_week:
        report.add(_violation(
            "DOG_MAX_WEEKLY_WALKS",
            f"{name} already has {weekly_count} walks this week (max {policy.max_walks_per_week})",
            {"dogId": dog_id, "dogName": name, "dogWeeklyCount": weekly_count, "max": policy.max_walks_per_week},
        ))

    # effective slot must itself respect the capacity rules
    capacity_report = validate_capacity(slot.capacity, slot.walk_type, policy)
    report.violations.extend(capacity_report.violations)

    if routine is not None and routine.tier != RoutineTier.ON_DEMAND:
        expected = policy.expected_walks(routine.tier)
        if weekly_count >= expected:
            report.add(_warning(
                "ROUTINE_EXCEEDED",
                f"{name} has routine {routine.tier.value} ({expected}/week) and already {weekly_count} assignments",
                {"dogId": dog_id, "dogName": name, "routineType": routine.tier.value,
                 "expectedCount": expected, "dogWeeklyCount": weekly_count},
                ["Check whether this is an exceptional extra walk"],
            ))

    if routine is not None and routine.sector and slot.sector and routine.sector != slot.sector:
        report.add(_warning(
            "SECTOR_MISMATCH",
            f"{name} lives in sector {routine.sector} but {slot_id} runs in {slot.sector}",
            {"dogId": dog_id, "dogName": name, "dogSector": routine.sector, "groupSector": slot.sector},
            ["Check that the travel distance stays reasonable",
             "Consider a slot in the dog's own sector if one is available"],
        ))

    for other in dog_assignments:
        if other.slot_id == slot_id:
            continue
        distance = block_distance(other.slot_id, slot_id)
        if distance is not None and 0 < distance <= policy.consecutive_block_distance:
            report.add(_warning(
                "CONSECUTIVE_WALKS",
                f"{name} already walks in the adjacent slot {other.slot_id}",
                {"dogId": dog_id, "dogName": name, "groupId": slot_id, "adjacentGroup": other.slot_id},
                ["Check that the dog can do two walks back to back"],
            ))

    if report.is_valid and policy.is_near_capacity(slot.occupancy + 1, slot.capacity):
        report.add(_info(
            "NEAR_CAPACITY",
            f"Slot {slot_id} will be {slot.occupancy + 1}/{slot.capacity} full",
            {"groupId": slot_id, "currentGroupCount": slot.occupancy + 1, "maxCapacity": slot.capacity},
        ))

    return report


def validate_override(
    view: WeeklyView,
    slot_id: str,
    walk_type: Optional[WalkType] = None,
    capacity: Optional[int] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> ValidationReport:
    """
    Check a proposed per-week override of one slot.

    The override replaces any previous one, so unset fields are checked
    against the template defaults, not the slot's current effective values.
    """
    report, slot = _check_target(view, slot_id)
    if slot is None:
        return report

    effective_type = walk_type or WalkType.COLLECTIVE
    effective_capacity = capacity if capacity is not None else slot.template.default_capacity
    report.merge(validate_capacity(effective_capacity, effective_type, policy))

    if effective_capacity < slot.occupancy:
        report.add(_warning(
            "CAPACITY_BELOW_OCCUPANCY",
            f"Slot {slot_id} already holds {slot.occupancy} dogs, more than the new capacity {effective_capacity}",
            {"groupId": slot_id, "currentGroupCount": slot.occupancy, "maxCapacity": effective_capacity},
            ["Move some dogs to another slot"],
        ))
    return report


def validate_week_import(
    view: WeeklyView,
    proposed: Iterable[tuple[int, str]],
    routines: Optional[dict[int, DogRoutine]] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> ValidationReport:
    """
    Validate a batch of (dog_id, slot_id) bookings for one week.

    Bookings are applied in order to a working copy of the view, so later
    entries see the occupancy created by earlier valid ones.
    """
    routines = routines or {}
    working = copy.deepcopy(view)
    report = ValidationReport()

    for dog_id, slot_id in proposed:
        entry = validate_assignment(working, dog_id, slot_id, routines.get(dog_id), policy=policy)
        report.merge(entry)
        if entry.is_valid:
            working.get(slot_id).assignments.append(
                Assignment(dog_id=dog_id, slot_id=slot_id, year=view.year, week=view.week)
            )
    return report


def validate_rally(
    event: RallyEvent,
    new_dog_ids: list[int],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> ValidationReport:
    """Check a rally booking: start block, capacity and duplicate participants."""
    report = ValidationReport()

    if event.start_block == TIME_BLOCKS[-1]:
        report.add(_violation(
            "RALLY_INVALID_START_BLOCK",
            f"A rally cannot start in {event.start_block.value}: it needs two consecutive blocks",
            {"startBlock": event.start_block.value,
             "allowed": [b.value for b in TIME_BLOCKS[:-1]]},
        ))

    capacity = min(event.capacity, policy.rally_capacity)
    total = len(event.participant_ids) + len(new_dog_ids)
    if total > capacity:
        report.add(_violation(
            "RALLY_FULL",
            f"Rally capacity is {capacity}, {total} dogs requested",
            {"currentCount": len(event.participant_ids), "requested": len(new_dog_ids), "maxCapacity": capacity},
        ))

    seen = set(event.participant_ids)
    for dog_id in new_dog_ids:
        if dog_id in seen:
            report.add(_violation(
                "DOG_ALREADY_IN_RALLY",
                f"Dog {dog_id} is already a participant",
                {"dogId": dog_id},
            ))
        seen.add(dog_id)
    return report
