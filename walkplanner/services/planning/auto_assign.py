"""
Auto-assignment - orchestration layer.

Combines data loading, the pure scorer and the booking write path into a
single flow.
"""

import logging

from sqlalchemy.orm import Session

from .absences import load_vacation_days
from .booking import create_assignment
from .data_loader import load_dog_routine, load_weekly_view
from .errors import store_errors
from .policy import DEFAULT_POLICY, PlanningPolicy
from .scoring import plan_auto_assignment, suggest_slots
from .types import AutoAssignOutcome, AutoAssignResult, ScoredSlot

logger = logging.getLogger(__name__)


def auto_assign_dog(
    db: Session,
    dog_id: int,
    year: int,
    week: int,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> AutoAssignResult:
    """
    Book a dog into the best slots of a week according to its routine.

    This function:
    1. Loads the week, the dog's routine and its vacation days
    2. Runs the scorer to pick slots
    3. Writes one assignment per picked slot, all in one transaction

    Each insert re-validates under the slot lock; a slot lost to a concurrent
    writer is dropped and the result downgraded to PARTIAL.

    Returns:
        AutoAssignResult with outcome, required count and booked slot ids

    Raises:
        ValueError: invalid week
        NotFoundError: unknown dog
        StoreUnavailableError: database unreachable
    """
    with store_errors(f"auto-assign dog {dog_id}"):
        view = load_weekly_view(db, year, week)
        routine = load_dog_routine(db, dog_id)
    away_days = load_vacation_days(db, dog_id, year, week)

    plan = plan_auto_assignment(view, dog_id, routine, policy, unavailable_days=away_days)
    if plan.outcome not in (AutoAssignOutcome.ASSIGNED, AutoAssignOutcome.PARTIAL):
        logger.info(f"Auto-assign dog {dog_id} {year}-W{week:02d}: {plan.outcome.value}")
        return plan

    booked = []
    for slot_id in plan.assigned_slots:
        result = create_assignment(
            db, dog_id, slot_id, year, week,
            notes="Auto-assigned",
            policy=policy,
            commit=False,
        )
        if result.created:
            booked.append(slot_id)
        else:
            logger.warning(f"Auto-assign dog {dog_id}: {slot_id} rejected at write time: {result.report.codes()}")

    with store_errors(f"auto-assign dog {dog_id}"):
        db.commit()

    plan.assigned_slots = booked
    if not booked:
        plan.outcome = AutoAssignOutcome.NO_AVAILABLE_SLOTS
    elif len(booked) < plan.required:
        plan.outcome = AutoAssignOutcome.PARTIAL
    plan.message = f"{len(booked)}/{plan.required} walks assigned"

    logger.info(
        f"Auto-assign dog {dog_id} {year}-W{week:02d}: {plan.outcome.value} "
        f"({len(booked)}/{plan.required}) {booked}"
    )
    return plan


def suggest_slots_for_dog(
    db: Session,
    dog_id: int,
    year: int,
    week: int,
    limit: int = 5,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[ScoredSlot]:
    """Ranked candidate slots for a dog; writes nothing. Empty without a routine."""
    with store_errors(f"suggest slots for dog {dog_id}"):
        view = load_weekly_view(db, year, week)
        routine = load_dog_routine(db, dog_id)

    if routine is None:
        return []
    return suggest_slots(view, routine, limit, policy)
