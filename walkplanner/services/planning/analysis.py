"""
Whole-week analytics for the alerting surface: load, cross-dog conflicts
and routine compliance.
"""

from collections import defaultdict
from typing import Optional

from .policy import DEFAULT_POLICY, PlanningPolicy
from .slots import parse_slot_id, slot_id
from .types import (
    SECTORS,
    TIME_BLOCKS,
    WORK_DAYS,
    AlertFeed,
    DogConflict,
    DogRoutine,
    RoutineCompliance,
    RoutineTier,
    WeeklyLoadAnalysis,
    WeeklyView,
)


def analyze_weekly_load(view: WeeklyView, policy: PlanningPolicy = DEFAULT_POLICY) -> WeeklyLoadAnalysis:
    total_assignments = sum(s.occupancy for s in view.slots)
    total_capacity = sum(s.capacity for s in view.slots if not s.is_blocked)
    utilization = int(total_assignments * 100 / total_capacity + 0.5) if total_capacity > 0 else 0

    analysis = WeeklyLoadAnalysis(
        total_assignments=total_assignments,
        total_capacity=total_capacity,
        utilization_percent=utilization,
        sector_distribution={sector: 0 for sector in SECTORS},
        day_distribution={day.value: 0 for day in WORK_DAYS},
        block_distribution={block.value: 0 for block in TIME_BLOCKS},
    )

    for slot in view.slots:
        count = slot.occupancy
        if count > slot.capacity:
            analysis.overbooked_slots.append(slot.slot_id)
        elif count == 0 and not slot.is_blocked:
            analysis.empty_slots.append(slot.slot_id)
        elif policy.is_near_capacity(count, slot.capacity):
            analysis.near_capacity_slots.append(slot.slot_id)

        if slot.sector:
            analysis.sector_distribution[slot.sector] = analysis.sector_distribution.get(slot.sector, 0) + count
        analysis.day_distribution[slot.day.value] += count
        analysis.block_distribution[slot.block.value] += count

    return analysis


def detect_dog_conflicts(view: WeeklyView, policy: PlanningPolicy = DEFAULT_POLICY) -> list[DogConflict]:
    """Double bookings and back-to-back walks across every dog of the week."""
    by_dog: dict[int, list] = defaultdict(list)
    for assignment in view.assignments():
        by_dog[assignment.dog_id].append(assignment)

    conflicts = []
    for dog_id, assignments in by_dog.items():
        name = next((a.dog_name for a in assignments if a.dog_name), None)
        slot_ids = [a.slot_id for a in assignments]

        duplicates = sorted({s for s in slot_ids if slot_ids.count(s) > 1})
        if duplicates:
            conflicts.append(DogConflict(
                dog_id=dog_id,
                dog_name=name,
                conflict_type="double_booking",
                details=f"{name or dog_id} is booked more than once in the same slot",
                affected_slots=duplicates,
            ))

        blocks_by_day = defaultdict(set)
        for value in set(slot_ids):
            day, block = parse_slot_id(value)
            blocks_by_day[day].add(block.position)

        for day in WORK_DAYS:
            positions = sorted(blocks_by_day.get(day, ()))
            for first, second in zip(positions, positions[1:]):
                if second - first <= policy.consecutive_block_distance:
                    conflicts.append(DogConflict(
                        dog_id=dog_id,
                        dog_name=name,
                        conflict_type="consecutive_blocks",
                        details=f"{name or dog_id} has back-to-back walks on {day.name.title()}",
                        affected_slots=[slot_id(day, TIME_BLOCKS[first]), slot_id(day, TIME_BLOCKS[second])],
                    ))
    return conflicts


def check_routine_compliance(
    view: WeeklyView,
    routines: list[DogRoutine],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[RoutineCompliance]:
    """Compare each active routine with the dog's assignments this week."""
    results = []
    for routine in routines:
        if not routine.is_active or routine.tier == RoutineTier.ON_DEMAND:
            continue

        expected = policy.expected_walks(routine.tier)
        actual = len(view.assignments_for_dog(routine.dog_id))
        if actual < expected:
            status = "under"
        elif actual > expected:
            status = "over"
        else:
            status = "ok"

        results.append(RoutineCompliance(
            dog_id=routine.dog_id,
            dog_name=routine.dog_name,
            tier=routine.tier,
            expected_count=expected,
            actual_count=actual,
            status=status,
        ))
    return results


def build_alert_feed(
    view: WeeklyView,
    routines: Optional[list[DogRoutine]] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> AlertFeed:
    return AlertFeed(
        load=analyze_weekly_load(view, policy),
        conflicts=detect_dog_conflicts(view, policy),
        compliance=check_routine_compliance(view, routines or [], policy),
    )
