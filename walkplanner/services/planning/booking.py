"""
Planning write path.

Each public function is one transaction. Anything that adds a dog to a slot
first locks the slot template row, then re-reads the week and re-runs the
validator inside the same transaction, so two concurrent writers can never
both take the last place in a slot.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from walkplanner.db.models.assignments import Assignments
from walkplanner.db.models.dog_routines import DogRoutines
from walkplanner.db.models.dogs import Dogs, Owners
from walkplanner.db.models.rally_events import RallyEvents, RallyParticipants
from walkplanner.db.models.slot_templates import SlotTemplates
from walkplanner.db.models.week_overrides import WeekOverrides

from .data_loader import (
    load_dog_routine,
    load_rally_event,
    load_slot_templates,
    load_weekly_view,
    to_dog_routine,
)
from .errors import NotFoundError, store_errors
from .policy import DEFAULT_POLICY, PlanningPolicy
from .sectors import infer_sector
from .slots import default_templates, parse_slot_id
from .types import (
    WORK_DAYS,
    Assignment,
    BookingResult,
    DogRoutine,
    OverrideResult,
    RallyBookingResult,
    RallyEvent,
    RoutineTier,
    RuleFinding,
    Severity,
    SlotTemplate,
    TimeBlock,
    TimePreference,
    WalkType,
    WeekOverride,
    WorkDay,
)
from .validator import validate_assignment, validate_override, validate_rally
from .weeks import validate_week

logger = logging.getLogger(__name__)


def _to_assignment(row: Assignments, dog_name: Optional[str] = None) -> Assignment:
    return Assignment(
        id=row.id,
        dog_id=row.dog_id,
        slot_id=row.slot_id,
        year=row.year,
        week=row.week,
        is_confirmed=row.is_confirmed,
        is_completed=row.is_completed,
        notes=row.notes,
        dog_name=dog_name,
    )


def _lock_slot(db: Session, slot_id: str) -> Optional[SlotTemplates]:
    """SELECT ... FOR UPDATE on the template row; serialises writers per slot."""
    stmt = select(SlotTemplates).where(SlotTemplates.id == slot_id).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def _get_dog(db: Session, dog_id: int) -> Dogs:
    dog = db.get(Dogs, dog_id)
    if dog is None:
        raise NotFoundError(f"Dog {dog_id} not found")
    return dog


def initialize_slot_templates(db: Session, default_capacity: int = 4) -> list[SlotTemplate]:
    """Create any of the 15 slot templates that do not exist yet. Safe to re-run."""
    with store_errors("initialise slot templates"):
        existing = set(db.execute(select(SlotTemplates.id)).scalars().all())
        created = 0
        for template in default_templates(default_capacity):
            if template.slot_id in existing:
                continue
            db.add(SlotTemplates(
                id=template.slot_id,
                day=template.day,
                block=template.block,
                start_time=template.start_time,
                end_time=template.end_time,
                pickup_minutes=template.pickup_minutes,
                walk_minutes=template.walk_minutes,
                return_minutes=template.return_minutes,
                default_sector=template.default_sector,
                default_capacity=template.default_capacity,
            ))
            created += 1
        db.commit()

    logger.info(f"Slot templates initialised ({created} created, {len(existing)} already present)")
    with store_errors("list slot templates"):
        return load_slot_templates(db)


def _upsert_override_row(
    db: Session,
    year: int,
    week: int,
    slot_id: str,
    **values,
) -> WeekOverrides:
    stmt = select(WeekOverrides).where(
        and_(
            WeekOverrides.slot_id == slot_id,
            WeekOverrides.year == year,
            WeekOverrides.week == week,
        )
    )
    row = db.execute(stmt).scalar_one_or_none()
    if row is None:
        row = WeekOverrides(slot_id=slot_id, year=year, week=week)
        db.add(row)
    for key, value in values.items():
        setattr(row, key, value)
    return row


def upsert_week_override(
    db: Session,
    year: int,
    week: int,
    slot_id: str,
    walk_type: Optional[WalkType] = None,
    sector: Optional[str] = None,
    capacity: Optional[int] = None,
    is_blocked: bool = False,
    block_reason: Optional[str] = None,
    notes: Optional[str] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> OverrideResult:
    """
    Create or replace the override of one slot for one week.

    Raises:
        ValueError: malformed slot id or week
    """
    parse_slot_id(slot_id)
    validate_week(year, week)

    with store_errors(f"update slot {slot_id}"):
        _lock_slot(db, slot_id)
        view = load_weekly_view(db, year, week)
        report = validate_override(view, slot_id, walk_type=walk_type, capacity=capacity, policy=policy)
        if not report.is_valid:
            db.rollback()
            logger.info(f"Override of {slot_id} for {year}-W{week:02d} rejected: {report.codes()}")
            return OverrideResult(report=report)

        row = _upsert_override_row(
            db, year, week, slot_id,
            walk_type=walk_type,
            sector=sector,
            capacity=capacity,
            is_blocked=is_blocked,
            block_reason=block_reason if is_blocked else None,
            notes=notes,
        )
        db.commit()
        db.refresh(row)

    override = WeekOverride(
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
    return OverrideResult(report=report, override=override)


def create_assignment(
    db: Session,
    dog_id: int,
    slot_id: str,
    year: int,
    week: int,
    notes: Optional[str] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
    commit: bool = True,
) -> BookingResult:
    """
    Book a dog into a slot for one week.

    Returns the validation report; the assignment is only written when the
    report holds no violation. With commit=False the caller owns the
    transaction and the insert is kept in a savepoint.

    Raises:
        ValueError: malformed slot id or week
        NotFoundError: unknown dog
        StoreUnavailableError: database unreachable
    """
    parse_slot_id(slot_id)
    validate_week(year, week)

    with store_errors(f"assign dog {dog_id} to {slot_id}"):
        dog = _get_dog(db, dog_id)
        _lock_slot(db, slot_id)
        view = load_weekly_view(db, year, week)
        routine = load_dog_routine(db, dog_id)

        report = validate_assignment(view, dog_id, slot_id, routine, dog_name=dog.name, policy=policy)
        if not report.is_valid:
            if commit:
                db.rollback()
            logger.info(f"Assignment of dog {dog_id} to {slot_id} {year}-W{week:02d} rejected: {report.codes()}")
            return BookingResult(report=report)

        row = Assignments(
            dog_id=dog_id,
            slot_id=slot_id,
            year=year,
            week=week,
            is_confirmed=True,
            is_completed=False,
            notes=notes,
        )
        try:
            with db.begin_nested():
                db.add(row)
        except IntegrityError:
            # a concurrent writer booked the same tuple first
            report.add(RuleFinding(
                code="DOG_ALREADY_IN_GROUP",
                severity=Severity.VIOLATION,
                message=f"{dog.name} is already assigned to {slot_id}",
                context={"dogId": dog_id, "dogName": dog.name, "groupId": slot_id},
            ))
            if commit:
                db.rollback()
            return BookingResult(report=report)

        if commit:
            db.commit()
            db.refresh(row)

    logger.info(f"Dog {dog_id} assigned to {slot_id} for {year}-W{week:02d}")
    return BookingResult(report=report, assignment=_to_assignment(row, dog.name))


def remove_assignment(db: Session, assignment_id: int) -> None:
    with store_errors(f"remove assignment {assignment_id}"):
        row = db.get(Assignments, assignment_id)
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        db.delete(row)
        db.commit()
    logger.info(f"Assignment {assignment_id} removed")


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    with store_errors(f"read assignment {assignment_id}"):
        row = db.get(Assignments, assignment_id)
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
    return _to_assignment(row)


def set_assignment_completion(db: Session, assignment_id: int, is_completed: bool) -> Assignment:
    with store_errors(f"update assignment {assignment_id}"):
        row = db.get(Assignments, assignment_id)
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        row.is_completed = is_completed
        db.commit()
        db.refresh(row)
    return _to_assignment(row)


def book_individual_walk(
    db: Session,
    dog_id: int,
    slot_id: str,
    year: int,
    week: int,
    notes: Optional[str] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> BookingResult:
    """
    Turn a slot into a one-dog walk for the week and book the dog into it.

    Dogs already booked in that slot are removed; the report carries an
    INDIVIDUAL_WALK_DISPLACED warning naming them.
    """
    parse_slot_id(slot_id)
    validate_week(year, week)

    with store_errors(f"book individual walk in {slot_id}"):
        _get_dog(db, dog_id)
        _lock_slot(db, slot_id)
        view = load_weekly_view(db, year, week)
        slot = view.get(slot_id)

        report = validate_override(view, slot_id, walk_type=WalkType.INDIVIDUAL, capacity=1, policy=policy)
        if slot is not None and slot.is_blocked:
            report.add(RuleFinding(
                code="GROUP_BLOCKED",
                severity=Severity.VIOLATION,
                message=f"Slot {slot_id} is blocked and accepts no assignments",
                context={"groupId": slot_id, "reason": slot.block_reason},
            ))
        if not report.is_valid:
            db.rollback()
            return BookingResult(report=report)

        # occupancy warning does not apply, the slot is emptied below
        report.warnings = [w for w in report.warnings if w.code != "CAPACITY_BELOW_OCCUPANCY"]

        displaced = [a.dog_id for a in slot.assignments if a.dog_id != dog_id]
        if slot.assignments:
            db.execute(delete(Assignments).where(and_(
                Assignments.slot_id == slot_id,
                Assignments.year == year,
                Assignments.week == week,
            )))
        if displaced:
            report.add(RuleFinding(
                code="INDIVIDUAL_WALK_DISPLACED",
                severity=Severity.WARNING,
                message=f"{len(displaced)} dog(s) removed from {slot_id} to make it an individual walk",
                context={"groupId": slot_id, "displacedDogIds": displaced},
                suggestions=["Reassign the displaced dogs to another slot"],
            ))

        _upsert_override_row(
            db, year, week, slot_id,
            walk_type=WalkType.INDIVIDUAL,
            capacity=1,
            is_blocked=False,
            block_reason=None,
        )
        db.flush()

        result = create_assignment(db, dog_id, slot_id, year, week, notes=notes, policy=policy, commit=False)
        report.merge(result.report)
        if not result.created:
            db.rollback()
            return BookingResult(report=report)

        db.commit()

    logger.info(f"Individual walk booked for dog {dog_id} in {slot_id} {year}-W{week:02d}, displaced {displaced}")
    return BookingResult(report=report, assignment=result.assignment)


def _work_day_of(event_date: date) -> WorkDay:
    weekday = event_date.weekday()
    if weekday >= len(WORK_DAYS):
        raise ValueError(f"{event_date.isoformat()} is not a working day")
    return WORK_DAYS[weekday]


def create_rally(
    db: Session,
    event_date: date,
    start_block: TimeBlock,
    dog_ids: list[int],
    location: Optional[str] = None,
    description: Optional[str] = None,
    price_per_dog: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> RallyBookingResult:
    """
    Create a rally and book its first participants.

    Raises:
        ValueError: event date on a weekend
        NotFoundError: unknown dog
    """
    event = RallyEvent(
        event_date=event_date,
        day=_work_day_of(event_date),
        start_block=start_block,
        capacity=policy.rally_capacity,
        duration_hours=3,
        location=location,
        description=description,
        price_per_dog=float(price_per_dog) if price_per_dog is not None else None,
    )
    report = validate_rally(event, dog_ids, policy)
    if not report.is_valid:
        return RallyBookingResult(report=report)

    with store_errors("create rally"):
        for dog_id in dog_ids:
            _get_dog(db, dog_id)

        row = RallyEvents(
            event_date=event.event_date,
            day=event.day,
            start_block=event.start_block,
            duration_hours=event.duration_hours,
            capacity=event.capacity,
            location=location,
            description=description,
            price_per_dog=price_per_dog,
        )
        db.add(row)
        db.flush()
        for dog_id in dog_ids:
            db.add(RallyParticipants(rally_id=row.id, dog_id=dog_id))
        db.commit()

        rally = load_rally_event(db, row.id)

    logger.info(f"Rally {rally.id} created on {event_date.isoformat()} with {len(dog_ids)} dog(s)")
    return RallyBookingResult(report=report, rally=rally)


def add_rally_participants(
    db: Session,
    rally_id: int,
    dog_ids: list[int],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> RallyBookingResult:
    with store_errors(f"book rally {rally_id}"):
        locked = db.execute(
            select(RallyEvents).where(RallyEvents.id == rally_id).with_for_update()
        ).scalar_one_or_none()
        if locked is None:
            raise NotFoundError(f"Rally {rally_id} not found")

        event = load_rally_event(db, rally_id)
        report = validate_rally(event, dog_ids, policy)
        if not report.is_valid:
            db.rollback()
            return RallyBookingResult(report=report, rally=event)

        for dog_id in dog_ids:
            _get_dog(db, dog_id)
            db.add(RallyParticipants(rally_id=rally_id, dog_id=dog_id))
        db.commit()

        rally = load_rally_event(db, rally_id)
    return RallyBookingResult(report=report, rally=rally)


def list_rallies(db: Session, start: Optional[date] = None, end: Optional[date] = None) -> list[RallyEvent]:
    stmt = select(RallyEvents.id).order_by(RallyEvents.event_date, RallyEvents.id)
    if start is not None:
        stmt = stmt.where(RallyEvents.event_date >= start)
    if end is not None:
        stmt = stmt.where(RallyEvents.event_date <= end)

    with store_errors("list rallies"):
        ids = db.execute(stmt).scalars().all()
        return [load_rally_event(db, rally_id) for rally_id in ids]


def upsert_dog_routine(
    db: Session,
    dog_id: int,
    tier: RoutineTier,
    sector: Optional[str] = None,
    time_preference: TimePreference = TimePreference.INDIFFERENT,
    preferred_days: Optional[list[WorkDay]] = None,
    walk_type_preference: WalkType = WalkType.COLLECTIVE,
    behavior_notes: Optional[str] = None,
    special_requirements: Optional[str] = None,
    is_active: bool = True,
) -> DogRoutine:
    """
    Create or update the routine of a dog.
    With no sector given, it is inferred from the owner's address when possible.
    """
    with store_errors(f"save routine of dog {dog_id}"):
        dog = _get_dog(db, dog_id)

        if sector is None:
            owner = db.get(Owners, dog.owner_id)
            sector = infer_sector(owner.address if owner else None)

        row = db.execute(
            select(DogRoutines).where(DogRoutines.dog_id == dog_id)
        ).scalar_one_or_none()
        if row is None:
            row = DogRoutines(dog_id=dog_id)
            db.add(row)

        row.tier = tier
        row.sector = sector
        row.time_preference = time_preference
        row.preferred_days = [WorkDay(d).value for d in (preferred_days or [])]
        row.walk_type_preference = walk_type_preference
        row.behavior_notes = behavior_notes
        row.special_requirements = special_requirements
        row.is_active = is_active

        db.commit()
        db.refresh(row)

    logger.info(f"Routine of dog {dog_id} saved: {tier.value}, sector {sector}")
    return to_dog_routine(row, dog.name)
