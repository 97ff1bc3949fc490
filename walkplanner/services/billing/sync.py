"""
Billing sync bridge.

Turns completed assignments, and the charges of cancelled walks, into
billable_walks ledger lines. The ledger's natural key (dog, walk date, walk
start time) is both looked up before insert and enforced by a unique
constraint, so a walk is billed at most once no matter how many times sync
runs or how many writers race.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from walkplanner.db.models.absences import AbsenceRecords
from walkplanner.db.models.assignments import Assignments
from walkplanner.db.models.billable_walks import BillableWalks
from walkplanner.db.models.dogs import Dogs
from walkplanner.db.models.slot_templates import SlotTemplates
from walkplanner.services.planning.absences import cancel_assignment, get_absence, record_vacation
from walkplanner.services.planning.data_loader import load_effective_walk_type, to_slot_template
from walkplanner.services.planning.errors import NotFoundError, PlanningError, store_errors
from walkplanner.services.planning.policy import DEFAULT_POLICY, PlanningPolicy
from walkplanner.services.planning.types import AbsenceType, Assignment, SlotTemplate
from walkplanner.services.planning.weeks import slot_date, validate_week

from .pricing import unit_price_for
from .types import (
    BatchSyncResult,
    BillableWalk,
    CancellationResult,
    SyncOutcome,
    SyncResult,
    VacationBillingResult,
)

logger = logging.getLogger(__name__)


def resolve_walk_key(template: SlotTemplate, year: int, week: int) -> tuple[date, time]:
    """Calendar date and walk start time of a slot in a given week."""
    return slot_date(year, week, template.day), template.walk_start_time


def _to_billable(row: BillableWalks) -> BillableWalk:
    return BillableWalk(
        id=row.id,
        dog_id=row.dog_id,
        owner_id=row.owner_id,
        service_category=row.service_category,
        walk_date=row.walk_date,
        walk_time=row.walk_time,
        duration_minutes=row.duration_minutes,
        unit_price=row.unit_price,
        quantity=row.quantity,
        status=row.status,
        notes=row.notes,
    )


def _find_billable(db: Session, dog_id: int, walk_date: date, walk_time: time) -> Optional[BillableWalks]:
    stmt = select(BillableWalks).where(
        and_(
            BillableWalks.dog_id == dog_id,
            BillableWalks.walk_date == walk_date,
            BillableWalks.walk_time == walk_time,
        )
    )
    return db.execute(stmt).scalar_one_or_none()


def _insert_billable(db: Session, record: BillableWalks) -> tuple[SyncOutcome, BillableWalk]:
    try:
        with db.begin_nested():
            db.add(record)
    except IntegrityError:
        # another sync inserted the same natural key first
        winner = _find_billable(db, record.dog_id, record.walk_date, record.walk_time)
        if winner is None:
            raise
        return SyncOutcome.ALREADY_SYNCED, _to_billable(winner)
    return SyncOutcome.CREATED, _to_billable(record)


def _sync_row(
    db: Session,
    row: Assignments,
    price_override: Optional[Decimal],
    policy: PlanningPolicy,
) -> SyncResult:
    if not row.is_completed:
        return SyncResult(assignment_id=row.id, outcome=SyncOutcome.NOT_COMPLETED)

    dog = db.get(Dogs, row.dog_id)
    if dog is None:
        raise NotFoundError(f"Assignment {row.id} references unknown dog {row.dog_id}")

    template_row = db.get(SlotTemplates, row.slot_id)
    if template_row is None:
        raise NotFoundError(f"Assignment {row.id} references unknown slot {row.slot_id}")

    walk_date, walk_time = resolve_walk_key(to_slot_template(template_row), row.year, row.week)

    existing = _find_billable(db, dog.id, walk_date, walk_time)
    if existing is not None:
        return SyncResult(assignment_id=row.id, outcome=SyncOutcome.ALREADY_SYNCED, billable=_to_billable(existing))

    walk_type = load_effective_walk_type(db, row.slot_id, row.year, row.week)
    rate = policy.rate_for(walk_type)
    record = BillableWalks(
        dog_id=dog.id,
        owner_id=dog.owner_id,
        service_category=rate.service_category,
        walk_date=walk_date,
        walk_time=walk_time,
        duration_minutes=rate.duration_minutes,
        unit_price=unit_price_for(walk_type, price_override, policy),
        quantity=1,
        status="done",
        notes=f"Walk {row.slot_id} {row.year}-W{row.week:02d} (assignment {row.id})",
    )
    outcome, billable = _insert_billable(db, record)
    return SyncResult(assignment_id=row.id, outcome=outcome, billable=billable)


def sync_assignment(
    db: Session,
    assignment_id: int,
    price_override: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
    commit: bool = True,
) -> SyncResult:
    """
    Produce the ledger line of one completed assignment, or return the one
    that already exists.

    Raises:
        NotFoundError: unknown assignment, or the assignment points at a
            missing dog or slot
        StoreUnavailableError: database unreachable
    """
    with store_errors(f"sync assignment {assignment_id}"):
        row = db.get(Assignments, assignment_id)
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")

        result = _sync_row(db, row, price_override, policy)
        if commit:
            db.commit()

    logger.info(f"Billing sync of assignment {assignment_id}: {result.outcome.value}")
    return result


def complete_and_sync(
    db: Session,
    assignment_id: int,
    price_override: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> SyncResult:
    """Mark an assignment done and bill it in the same transaction."""
    with store_errors(f"complete assignment {assignment_id}"):
        row = db.get(Assignments, assignment_id)
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")

        row.is_completed = True
        db.flush()
        try:
            result = _sync_row(db, row, price_override, policy)
        except PlanningError:
            db.rollback()
            raise
        db.commit()

    logger.info(f"Assignment {assignment_id} completed, billing sync: {result.outcome.value}")
    return result


def sync_week(
    db: Session,
    year: int,
    week: int,
    only_completed: bool = True,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> BatchSyncResult:
    """
    Sync every assignment of a week, one savepoint per item.

    A failing item is counted and reported but never aborts the batch.
    Records that already exist count as success.
    """
    validate_week(year, week)

    stmt = select(Assignments.id).where(
        and_(Assignments.year == year, Assignments.week == week)
    ).order_by(Assignments.id)
    if only_completed:
        stmt = stmt.where(Assignments.is_completed == True)

    with store_errors(f"list assignments of {year}-W{week:02d}"):
        assignment_ids = list(db.execute(stmt).scalars().all())

    result = BatchSyncResult(total=len(assignment_ids))
    for assignment_id in assignment_ids:
        try:
            with db.begin_nested():
                row = db.get(Assignments, assignment_id)
                if row is None:
                    raise NotFoundError(f"Assignment {assignment_id} not found")
                item = _sync_row(db, row, None, policy)
        except (PlanningError, SQLAlchemyError) as e:
            result.failed += 1
            result.errors.append({"assignmentId": assignment_id, "error": str(e)})
            logger.warning(f"Billing sync of assignment {assignment_id} failed: {e}")
            continue

        if item.outcome == SyncOutcome.CREATED:
            result.success += 1
            result.created_ids.append(item.billable.id)
        elif item.outcome == SyncOutcome.ALREADY_SYNCED:
            result.success += 1
            result.existing_ids.append(item.billable.id)
        else:
            result.skipped += 1

    with store_errors(f"sync week {year}-W{week:02d}"):
        db.commit()

    logger.info(
        f"Billing sync {year}-W{week:02d}: {result.success}/{result.total} ok, "
        f"{result.failed} failed, {len(result.created_ids)} created"
    )
    return result


def find_unsynced_assignments(db: Session, year: int, week: int) -> list[Assignment]:
    """Completed assignments of a week that have no ledger line yet."""
    validate_week(year, week)

    stmt = select(Assignments).where(
        and_(
            Assignments.year == year,
            Assignments.week == week,
            Assignments.is_completed == True,
        )
    ).order_by(Assignments.id)

    unsynced = []
    with store_errors(f"find unsynced assignments of {year}-W{week:02d}"):
        templates = {row.id: to_slot_template(row) for row in db.execute(select(SlotTemplates)).scalars().all()}
        for row in db.execute(stmt).scalars().all():
            template = templates.get(row.slot_id)
            if template is not None:
                walk_date, walk_time = resolve_walk_key(template, row.year, row.week)
                if _find_billable(db, row.dog_id, walk_date, walk_time) is not None:
                    continue
            unsynced.append(Assignment(
                id=row.id,
                dog_id=row.dog_id,
                slot_id=row.slot_id,
                year=row.year,
                week=row.week,
                is_confirmed=row.is_confirmed,
                is_completed=row.is_completed,
                notes=row.notes,
            ))
    return unsynced


def _sync_absence_row(db: Session, row: AbsenceRecords) -> tuple[SyncOutcome, Optional[BillableWalk]]:
    if row.charge_amount <= 0:
        return SyncOutcome.NOT_CHARGEABLE, None

    dog = db.get(Dogs, row.dog_id)
    if dog is None:
        raise NotFoundError(f"Absence {row.id} references unknown dog {row.dog_id}")

    existing = _find_billable(db, dog.id, row.walk_date, row.walk_time)
    if existing is not None:
        return SyncOutcome.ALREADY_SYNCED, _to_billable(existing)

    record = BillableWalks(
        dog_id=dog.id,
        owner_id=dog.owner_id,
        service_category="cancellation_fee",
        walk_date=row.walk_date,
        walk_time=row.walk_time,
        duration_minutes=0,
        unit_price=row.charge_amount,
        quantity=1,
        status="cancelled",
        notes=(
            f"Cancelled {row.slot_id} {row.year}-W{row.week:02d}: {row.policy.value} "
            f"{row.charge_percent}% (absence {row.id})"
        ),
    )
    return _insert_billable(db, record)


def sync_cancellation(db: Session, absence_id: int, commit: bool = True) -> CancellationResult:
    """
    Bill the charge of a cancelled walk. Idempotent like sync_assignment;
    absences without a charge produce no ledger line.
    """
    with store_errors(f"sync absence {absence_id}"):
        row = db.get(AbsenceRecords, absence_id)
        if row is None:
            raise NotFoundError(f"Absence {absence_id} not found")

        outcome, billable = _sync_absence_row(db, row)
        if commit:
            db.commit()
        absence = get_absence(db, absence_id)

    logger.info(f"Billing sync of absence {absence_id}: {outcome.value}")
    return CancellationResult(absence=absence, outcome=outcome, billable=billable)


def cancel_and_bill(
    db: Session,
    assignment_id: int,
    absence_type: AbsenceType,
    reason: Optional[str] = None,
    cancelled_at: Optional[datetime] = None,
    is_package_client: bool = False,
    price_override: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> CancellationResult:
    """Cancel a walk and bill its charge in the same transaction."""
    absence = cancel_assignment(
        db, assignment_id, absence_type,
        reason=reason,
        cancelled_at=cancelled_at,
        is_package_client=is_package_client,
        price_override=price_override,
        policy=policy,
        commit=False,
    )
    with store_errors(f"bill cancellation of assignment {assignment_id}"):
        try:
            outcome, billable = _sync_absence_row(db, db.get(AbsenceRecords, absence.id))
        except PlanningError:
            db.rollback()
            raise
        db.commit()

    logger.info(f"Assignment {assignment_id} cancelled, billing sync: {outcome.value}")
    return CancellationResult(absence=absence, outcome=outcome, billable=billable)


def record_vacation_and_bill(
    db: Session,
    dog_id: int,
    start_date: date,
    end_date: date,
    reason: AbsenceType = AbsenceType.OWNER_VACATION,
    notes: Optional[str] = None,
    cancelled_at: Optional[datetime] = None,
    is_package_client: bool = False,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> VacationBillingResult:
    """Record a vacation, cancel the walks it covers and bill any charges."""
    vacation = record_vacation(
        db, dog_id, start_date, end_date,
        reason=reason,
        notes=notes,
        cancelled_at=cancelled_at,
        is_package_client=is_package_client,
        policy=policy,
        commit=False,
    )

    result = VacationBillingResult(vacation=vacation.vacation)
    with store_errors(f"bill vacation of dog {dog_id}"):
        try:
            for absence in vacation.absences:
                outcome, billable = _sync_absence_row(db, db.get(AbsenceRecords, absence.id))
                result.cancellations.append(CancellationResult(absence=absence, outcome=outcome, billable=billable))
        except PlanningError:
            db.rollback()
            raise
        db.commit()

    charged = sum(1 for c in result.cancellations if c.outcome == SyncOutcome.CREATED)
    logger.info(f"Vacation of dog {dog_id}: {len(result.cancellations)} walks cancelled, {charged} charged")
    return result
