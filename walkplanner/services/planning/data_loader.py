"""
Data loader for the planning service.
Fetches slots, overrides, assignments and routines from the database and
converts them to internal types.
"""

import logging
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from walkplanner.db.models.assignments import Assignments
from walkplanner.db.models.dog_routines import DogRoutines
from walkplanner.db.models.dogs import Dogs, Owners
from walkplanner.db.models.rally_events import RallyEvents, RallyParticipants
from walkplanner.db.models.slot_templates import SlotTemplates
from walkplanner.db.models.week_overrides import WeekOverrides

from .errors import store_errors
from .types import (
    Assignment,
    DogRoutine,
    RallyEvent,
    SlotTemplate,
    WeekOverride,
    WalkType,
    WeeklyView,
    WorkDay,
)
from .weekly_view import build_weekly_view
from .weeks import validate_week

logger = logging.getLogger(__name__)


def to_slot_template(row: SlotTemplates) -> SlotTemplate:
    return SlotTemplate(
        slot_id=row.id,
        day=row.day,
        block=row.block,
        start_time=row.start_time,
        end_time=row.end_time,
        pickup_minutes=row.pickup_minutes,
        walk_minutes=row.walk_minutes,
        return_minutes=row.return_minutes,
        default_sector=row.default_sector,
        default_capacity=row.default_capacity,
        notes=row.notes,
    )


def to_dog_routine(row: DogRoutines, dog_name: Optional[str] = None) -> DogRoutine:
    return DogRoutine(
        dog_id=row.dog_id,
        tier=row.tier,
        sector=row.sector,
        time_preference=row.time_preference,
        preferred_days=[WorkDay(d) for d in (row.preferred_days or [])],
        walk_type_preference=row.walk_type_preference,
        behavior_notes=row.behavior_notes,
        special_requirements=row.special_requirements,
        is_active=row.is_active,
        dog_name=dog_name,
    )


def load_slot_templates(db: Session) -> list[SlotTemplate]:
    rows = db.execute(select(SlotTemplates)).scalars().all()
    return [to_slot_template(row) for row in rows]


def load_week_overrides(db: Session, year: int, week: int) -> list[WeekOverride]:
    stmt = select(WeekOverrides).where(
        and_(WeekOverrides.year == year, WeekOverrides.week == week)
    )
    rows = db.execute(stmt).scalars().all()

    return [
        WeekOverride(
            slot_id=row.slot_id,
            year=row.year,
            week=row.week,
            walk_type=row.walk_type,
            sector=row.sector,
            capacity=row.capacity,
            is_blocked=row.is_blocked,
            block_reason=row.block_reason,
            notes=row.notes,
        )
        for row in rows
    ]


def load_week_assignments(db: Session, year: int, week: int) -> list[Assignment]:
    """Assignments of one week joined to dog and owner display names."""
    stmt = (
        select(Assignments, Dogs.name, Owners.first_name, Owners.last_name)
        .outerjoin(Dogs, Dogs.id == Assignments.dog_id)
        .outerjoin(Owners, Owners.id == Dogs.owner_id)
        .where(and_(Assignments.year == year, Assignments.week == week))
        .order_by(Assignments.id)
    )

    assignments = []
    for row, dog_name, first_name, last_name in db.execute(stmt).all():
        owner_name = " ".join(n for n in (first_name, last_name) if n) or None
        assignments.append(Assignment(
            id=row.id,
            dog_id=row.dog_id,
            slot_id=row.slot_id,
            year=row.year,
            week=row.week,
            is_confirmed=row.is_confirmed,
            is_completed=row.is_completed,
            notes=row.notes,
            dog_name=dog_name,
            owner_name=owner_name,
        ))
    return assignments


def load_dog_routine(db: Session, dog_id: int) -> Optional[DogRoutine]:
    stmt = (
        select(DogRoutines, Dogs.name)
        .outerjoin(Dogs, Dogs.id == DogRoutines.dog_id)
        .where(DogRoutines.dog_id == dog_id)
    )
    result = db.execute(stmt).first()
    if result is None:
        return None
    row, dog_name = result
    return to_dog_routine(row, dog_name)


def load_dog_routines(db: Session, active_only: bool = False) -> list[DogRoutine]:
    stmt = (
        select(DogRoutines, Dogs.name)
        .outerjoin(Dogs, Dogs.id == DogRoutines.dog_id)
        .order_by(DogRoutines.dog_id)
    )
    if active_only:
        stmt = stmt.where(DogRoutines.is_active == True)
    return [to_dog_routine(row, dog_name) for row, dog_name in db.execute(stmt).all()]


def load_rally_event(db: Session, rally_id: int) -> Optional[RallyEvent]:
    row = db.get(RallyEvents, rally_id)
    if row is None:
        return None

    participant_stmt = select(RallyParticipants.dog_id).where(
        RallyParticipants.rally_id == rally_id
    )
    participant_ids = list(db.execute(participant_stmt).scalars().all())

    return RallyEvent(
        id=row.id,
        event_date=row.event_date,
        day=row.day,
        start_block=row.start_block,
        capacity=row.capacity,
        duration_hours=float(row.duration_hours),
        participant_ids=participant_ids,
        location=row.location,
        description=row.description,
        price_per_dog=float(row.price_per_dog) if row.price_per_dog is not None else None,
    )


def load_weekly_view(db: Session, year: int, week: int) -> WeeklyView:
    """
    Load everything needed for one week and build its effective view.

    Raises:
        ValueError: if the week does not exist in that year
        StoreUnavailableError: if the database cannot be read; no partial
            view is ever returned
    """
    validate_week(year, week)

    with store_errors(f"load week {year}-W{week:02d}"):
        templates = load_slot_templates(db)
        overrides = load_week_overrides(db, year, week)
        assignments = load_week_assignments(db, year, week)

    logger.debug(
        f"Loaded week {year}-W{week:02d}: {len(templates)} slots, "
        f"{len(overrides)} overrides, {len(assignments)} assignments"
    )
    return build_weekly_view(templates, overrides, assignments, year, week)


def load_effective_walk_type(db: Session, slot_id: str, year: int, week: int) -> WalkType:
    """Walk type of one slot in one week: the override's if set, else collective."""
    stmt = select(WeekOverrides.walk_type).where(
        and_(
            WeekOverrides.slot_id == slot_id,
            WeekOverrides.year == year,
            WeekOverrides.week == week,
        )
    )
    return db.execute(stmt).scalar_one_or_none() or WalkType.COLLECTIVE
