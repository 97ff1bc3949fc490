"""
Auto-assignment scoring.

Strategy:
1. Work out how many walks the dog still needs this week from its routine tier
2. Keep only open collective slots the validator accepts for this dog
3. Score each candidate on sector, day and time-of-day fit
4. Pick one slot per distinct day first, then fill any remaining need in
   score order
"""

from typing import Optional

from .policy import DEFAULT_POLICY, PlanningPolicy
from .slots import slot_order
from .types import (
    PREFERENCE_BLOCKS,
    AutoAssignOutcome,
    AutoAssignResult,
    DogRoutine,
    EffectiveSlotView,
    RoutineTier,
    ScoredSlot,
    TimePreference,
    WalkType,
    WeeklyView,
)
from .validator import validate_assignment


SECTOR_MATCH_SCORE = 10
SECTOR_FLEXIBLE_SCORE = 5
PREFERRED_DAY_SCORE = 5
OTHER_DAY_SCORE = -2
PREFERRED_BLOCK_SCORE = 3
ROOMY_SLOT_SCORE = 2  # slot less than half full


def score_slot(slot: EffectiveSlotView, routine: DogRoutine) -> ScoredSlot:
    score = 0
    reasons = []

    if routine.sector and slot.sector:
        if routine.sector == slot.sector:
            score += SECTOR_MATCH_SCORE
            reasons.append(f"same sector {slot.sector}")
    else:
        score += SECTOR_FLEXIBLE_SCORE
        reasons.append("flexible sector")

    if not routine.preferred_days or slot.day in routine.preferred_days:
        score += PREFERRED_DAY_SCORE
        reasons.append("preferred day")
    else:
        score += OTHER_DAY_SCORE
        reasons.append("non-preferred day")

    blocks = PREFERENCE_BLOCKS.get(routine.time_preference, ())
    if routine.time_preference == TimePreference.INDIFFERENT or slot.block in blocks:
        score += PREFERRED_BLOCK_SCORE
        reasons.append("preferred time of day")

    if slot.occupancy * 2 < slot.capacity:
        score += ROOMY_SLOT_SCORE
        reasons.append("less than half full")

    return ScoredSlot(slot_id=slot.slot_id, day=slot.day, block=slot.block, score=score, reasons=reasons)


def find_candidates(
    view: WeeklyView,
    routine: DogRoutine,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[EffectiveSlotView]:
    """Open collective slots where booking this dog raises no violation."""
    candidates = []
    for slot in view.slots:
        if slot.is_blocked or slot.walk_type != WalkType.COLLECTIVE:
            continue
        if slot.is_full or slot.has_dog(routine.dog_id):
            continue
        report = validate_assignment(view, routine.dog_id, slot.slot_id, routine, policy=policy)
        if report.is_valid:
            candidates.append(slot)
    return candidates


def rank_candidates(
    view: WeeklyView,
    routine: DogRoutine,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[ScoredSlot]:
    """Score descending; ties keep enumeration order (day, then block)."""
    scored = [score_slot(slot, routine) for slot in find_candidates(view, routine, policy)]
    scored.sort(key=lambda s: slot_order(s.slot_id))
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def select_slots(
    ranked: list[ScoredSlot],
    required: int,
    used_days: Optional[set] = None,
) -> list[ScoredSlot]:
    """
    Pick up to `required` slots from a ranked list, spreading across days.

    First pass takes the best slot of each day not yet used; the second pass
    allows repeat days and takes what is left in score order.
    """
    used_days = set(used_days or ())
    selected: list[ScoredSlot] = []

    for candidate in ranked:
        if len(selected) >= required:
            break
        if candidate.day not in used_days:
            selected.append(candidate)
            used_days.add(candidate.day)

    for candidate in ranked:
        if len(selected) >= required:
            break
        if candidate not in selected:
            selected.append(candidate)

    return sorted(selected, key=lambda s: slot_order(s.slot_id))


def suggest_slots(
    view: WeeklyView,
    routine: DogRoutine,
    limit: int = 5,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[ScoredSlot]:
    return rank_candidates(view, routine, policy)[:limit]


def plan_auto_assignment(
    view: WeeklyView,
    dog_id: int,
    routine: Optional[DogRoutine],
    policy: PlanningPolicy = DEFAULT_POLICY,
    unavailable_days: Optional[set] = None,
) -> AutoAssignResult:
    """
    Decide which slots a dog should be booked into this week. Writes nothing.

    Walks the dog already has this week count towards its routine, so running
    this twice never books more than the tier asks for. Slots on
    unavailable_days (the dog is away) are never picked.
    """
    if routine is None or not routine.is_active:
        return AutoAssignResult(
            dog_id=dog_id,
            outcome=AutoAssignOutcome.NO_ROUTINE_CONFIGURED,
            required=0,
            message="No active routine configured for this dog",
        )

    expected = policy.expected_walks(routine.tier)
    if routine.tier == RoutineTier.ON_DEMAND or expected == 0:
        return AutoAssignResult(
            dog_id=dog_id,
            outcome=AutoAssignOutcome.MANUAL_ASSIGNMENT_REQUIRED,
            required=0,
            message="On-demand dogs are booked manually",
        )

    existing = view.assignments_for_dog(dog_id)
    required = expected - len(existing)
    if required <= 0:
        return AutoAssignResult(
            dog_id=dog_id,
            outcome=AutoAssignOutcome.ALREADY_SATISFIED,
            required=0,
            already_assigned=len(existing),
            message=f"Routine {routine.tier.value} already satisfied ({len(existing)}/{expected})",
        )

    ranked = rank_candidates(view, routine, policy)
    if unavailable_days:
        ranked = [s for s in ranked if s.day not in unavailable_days]
    if not ranked:
        return AutoAssignResult(
            dog_id=dog_id,
            outcome=AutoAssignOutcome.NO_AVAILABLE_SLOTS,
            required=required,
            already_assigned=len(existing),
            message="No available slot matches this dog",
        )

    used_days = {view.get(a.slot_id).day for a in existing if view.get(a.slot_id) is not None}
    selected = select_slots(ranked, required, used_days)
    outcome = AutoAssignOutcome.ASSIGNED if len(selected) >= required else AutoAssignOutcome.PARTIAL

    return AutoAssignResult(
        dog_id=dog_id,
        outcome=outcome,
        required=required,
        already_assigned=len(existing),
        assigned_slots=[s.slot_id for s in selected],
        candidates=ranked,
        message=f"{len(selected)}/{required} walks assigned",
    )
