"""
Absences, vacations and cancellations.

A cancelled walk leaves its slot and becomes an absence record carrying the
charge owed under the cancellation policy:
- the walker or the weather cancelled: never charged
- dog sick or at the vet: no charge, a reschedule is offered
- package clients: no charge, the walk is credited to the package
- otherwise by notice: free from 24h, partial charge from 6h, full charge below

Billing the charge is done by the billing sync, not here.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from walkplanner.db.models.absences import AbsenceRecords, VacationPeriods
from walkplanner.db.models.assignments import Assignments
from walkplanner.db.models.dogs import Dogs
from walkplanner.db.models.slot_templates import SlotTemplates

from .booking import create_assignment
from .data_loader import load_dog_routine, load_effective_walk_type, load_weekly_view, to_slot_template
from .errors import NotFoundError, store_errors
from .policy import DEFAULT_POLICY, PlanningPolicy
from .scoring import rank_candidates
from .slots import parse_slot_id
from .types import (
    AbsenceRecord,
    AbsenceSummary,
    AbsenceType,
    BookingResult,
    CancellationPolicy,
    CancellationTerms,
    DogRoutine,
    RescheduleSuggestion,
    RoutineTier,
    RuleFinding,
    Severity,
    SlotTemplate,
    VacationPeriod,
    VacationResult,
    ValidationReport,
    WeeklyView,
    WorkDay,
)
from .weeks import iso_week_of, monday_of_week, slot_date, validate_week

logger = logging.getLogger(__name__)

EXCUSED_ABSENCES = (AbsenceType.WALKER_ABSENT, AbsenceType.EXTREME_WEATHER)
MEDICAL_ABSENCES = (AbsenceType.DOG_SICK, AbsenceType.VET_APPOINTMENT)


def determine_cancellation_terms(
    walk_at: datetime,
    cancelled_at: datetime,
    absence_type: AbsenceType,
    is_package_client: bool = False,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> CancellationTerms:
    if absence_type in EXCUSED_ABSENCES:
        return CancellationTerms(CancellationPolicy.FULL_REFUND, 0, "Cancelled for reasons outside the owner's control")

    if absence_type in MEDICAL_ABSENCES:
        return CancellationTerms(CancellationPolicy.RESCHEDULED, 0, "Medical reason, a reschedule is offered")

    if is_package_client:
        return CancellationTerms(CancellationPolicy.PACKAGE_CREDIT, 0, "Credited to the package")

    hours_notice = (walk_at - cancelled_at).total_seconds() / 3600
    if hours_notice >= policy.free_cancellation_hours:
        return CancellationTerms(
            CancellationPolicy.FULL_REFUND, 0,
            f"Cancelled at least {policy.free_cancellation_hours}h ahead",
        )
    if hours_notice >= policy.partial_cancellation_hours:
        return CancellationTerms(
            CancellationPolicy.PARTIAL_CHARGE, policy.partial_charge_percent,
            f"Late cancellation (under {policy.free_cancellation_hours}h)",
        )
    return CancellationTerms(CancellationPolicy.FULL_CHARGE, 100, "Same-day cancellation")


def cancellation_charge(unit_price: Decimal, charge_percent: int) -> Decimal:
    amount = Decimal(unit_price) * charge_percent / 100
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def find_vacation(value: date, vacations: list[VacationPeriod]) -> Optional[VacationPeriod]:
    """First vacation period covering a date, if any."""
    return next((v for v in vacations if v.covers(value)), None)


def walk_datetime(template: SlotTemplate, year: int, week: int) -> datetime:
    return datetime.combine(slot_date(year, week, template.day), template.walk_start_time)


def rank_reschedule_slots(
    views: list[WeeklyView],
    routine: DogRoutine,
    limit: int = 5,
    vacations: Optional[list[VacationPeriod]] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[RescheduleSuggestion]:
    """
    Best replacement slots across the given weeks, using the auto-assign
    ranking. Score descending; ties keep week order, then day and block.
    """
    suggestions = []
    for view in views:
        for scored in rank_candidates(view, routine, policy):
            walk_date = slot_date(view.year, view.week, scored.day)
            if vacations and find_vacation(walk_date, vacations) is not None:
                continue
            suggestions.append(RescheduleSuggestion(
                year=view.year,
                week=view.week,
                slot_id=scored.slot_id,
                walk_date=walk_date,
                day=scored.day,
                block=scored.block,
                score=scored.score,
                remaining=view.get(scored.slot_id).remaining,
                reasons=scored.reasons,
            ))
    suggestions.sort(key=lambda s: s.score, reverse=True)
    return suggestions[:limit]


def summarize_absences(absences: list[AbsenceRecord]) -> AbsenceSummary:
    """Counts by type, policy and weekday plus charged and lost amounts."""
    summary = AbsenceSummary(total=len(absences))
    summary.by_type = dict(Counter(a.absence_type.value for a in absences))
    summary.by_policy = dict(Counter(a.policy.value for a in absences))
    summary.by_day = dict(Counter(parse_slot_id(a.slot_id)[0].value for a in absences))
    for absence in absences:
        summary.charged_amount += absence.charge_amount
        summary.lost_revenue += absence.unit_price - absence.charge_amount
    return summary


def _to_absence(row: AbsenceRecords, dog_name: Optional[str] = None) -> AbsenceRecord:
    return AbsenceRecord(
        id=row.id,
        dog_id=row.dog_id,
        slot_id=row.slot_id,
        year=row.year,
        week=row.week,
        walk_date=row.walk_date,
        walk_time=row.walk_time,
        absence_type=row.absence_type,
        cancelled_at=row.cancelled_at,
        policy=row.policy,
        unit_price=row.unit_price,
        charge_percent=row.charge_percent,
        charge_amount=row.charge_amount,
        reason=row.reason,
        vacation_id=row.vacation_id,
        rescheduled_slot_id=row.rescheduled_slot_id,
        rescheduled_year=row.rescheduled_year,
        rescheduled_week=row.rescheduled_week,
        notes=row.notes,
        dog_name=dog_name,
    )


def _to_vacation(row: VacationPeriods) -> VacationPeriod:
    return VacationPeriod(
        id=row.id,
        dog_id=row.dog_id,
        start_date=row.start_date,
        end_date=row.end_date,
        reason=row.reason,
        notes=row.notes,
    )


def _record_absence(
    db: Session,
    assignment: Assignments,
    template: SlotTemplate,
    absence_type: AbsenceType,
    cancelled_at: datetime,
    reason: Optional[str] = None,
    is_package_client: bool = False,
    price_override: Optional[Decimal] = None,
    vacation_id: Optional[int] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> AbsenceRecords:
    """Replace an assignment by its absence record. Flushes, never commits."""
    walk_type = load_effective_walk_type(db, assignment.slot_id, assignment.year, assignment.week)
    unit_price = policy.price_for(walk_type, price_override)
    terms = determine_cancellation_terms(
        walk_datetime(template, assignment.year, assignment.week),
        cancelled_at,
        absence_type,
        is_package_client,
        policy,
    )

    row = AbsenceRecords(
        dog_id=assignment.dog_id,
        slot_id=assignment.slot_id,
        year=assignment.year,
        week=assignment.week,
        walk_date=slot_date(assignment.year, assignment.week, template.day),
        walk_time=template.walk_start_time,
        absence_type=absence_type,
        reason=reason or terms.reason,
        cancelled_at=cancelled_at,
        policy=terms.policy,
        unit_price=unit_price,
        charge_percent=terms.charge_percent,
        charge_amount=cancellation_charge(unit_price, terms.charge_percent),
        vacation_id=vacation_id,
        notes=assignment.notes,
    )
    db.add(row)
    db.delete(assignment)
    db.flush()
    return row


def cancel_assignment(
    db: Session,
    assignment_id: int,
    absence_type: AbsenceType,
    reason: Optional[str] = None,
    cancelled_at: Optional[datetime] = None,
    is_package_client: bool = False,
    price_override: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
    commit: bool = True,
) -> AbsenceRecord:
    """
    Cancel one booked walk. The slot is freed and an absence recorded.

    Raises:
        NotFoundError: unknown assignment, or its slot is missing
        ValueError: the walk is already completed, or a negative price
        StoreUnavailableError: database unreachable
    """
    cancelled_at = cancelled_at or datetime.now()

    with store_errors(f"cancel assignment {assignment_id}"):
        assignment = db.get(Assignments, assignment_id)
        if assignment is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        if assignment.is_completed:
            raise ValueError(f"Assignment {assignment_id} is completed and cannot be cancelled")

        template_row = db.get(SlotTemplates, assignment.slot_id)
        if template_row is None:
            raise NotFoundError(f"Assignment {assignment_id} references unknown slot {assignment.slot_id}")

        row = _record_absence(
            db, assignment, to_slot_template(template_row), absence_type, cancelled_at,
            reason=reason,
            is_package_client=is_package_client,
            price_override=price_override,
            policy=policy,
        )
        if commit:
            db.commit()
            db.refresh(row)

    logger.info(
        f"Assignment {assignment_id} cancelled ({absence_type.value}): "
        f"{row.policy.value}, charge {row.charge_amount}"
    )
    return _to_absence(row)


def _weeks_between(start_date: date, end_date: date) -> list[tuple[int, int]]:
    weeks = []
    current = start_date - timedelta(days=start_date.weekday())
    while current <= end_date:
        weeks.append(iso_week_of(current))
        current += timedelta(days=7)
    return weeks


def record_vacation(
    db: Session,
    dog_id: int,
    start_date: date,
    end_date: date,
    reason: AbsenceType = AbsenceType.OWNER_VACATION,
    notes: Optional[str] = None,
    cancelled_at: Optional[datetime] = None,
    is_package_client: bool = False,
    policy: PlanningPolicy = DEFAULT_POLICY,
    commit: bool = True,
) -> VacationResult:
    """
    Record a period the dog is away and cancel every walk booked inside it.

    Completed walks in the period are left as they are.

    Raises:
        ValueError: end date before start date
        NotFoundError: unknown dog
    """
    if end_date < start_date:
        raise ValueError(f"Vacation ends ({end_date}) before it starts ({start_date})")
    cancelled_at = cancelled_at or datetime.now()

    week_filters = [
        and_(Assignments.year == year, Assignments.week == week)
        for year, week in _weeks_between(start_date, end_date)
    ]
    stmt = (
        select(Assignments, SlotTemplates)
        .join(SlotTemplates, SlotTemplates.id == Assignments.slot_id)
        .where(and_(
            Assignments.dog_id == dog_id,
            Assignments.is_completed == False,
            or_(*week_filters),
        ))
        .order_by(Assignments.year, Assignments.week, Assignments.slot_id)
    )

    with store_errors(f"record vacation of dog {dog_id}"):
        if db.get(Dogs, dog_id) is None:
            raise NotFoundError(f"Dog {dog_id} not found")

        vacation = VacationPeriods(dog_id=dog_id, start_date=start_date, end_date=end_date, reason=reason, notes=notes)
        db.add(vacation)
        db.flush()

        absence_rows = []
        for assignment, template_row in db.execute(stmt).all():
            template = to_slot_template(template_row)
            if not start_date <= slot_date(assignment.year, assignment.week, template.day) <= end_date:
                continue
            absence_rows.append(_record_absence(
                db, assignment, template, reason, cancelled_at,
                reason=f"Away from {start_date.isoformat()} to {end_date.isoformat()}",
                is_package_client=is_package_client,
                vacation_id=vacation.id,
                policy=policy,
            ))

        if commit:
            db.commit()

    logger.info(f"Vacation of dog {dog_id} {start_date} - {end_date}: {len(absence_rows)} walks cancelled")
    return VacationResult(vacation=_to_vacation(vacation), absences=[_to_absence(r) for r in absence_rows])


def get_absence(db: Session, absence_id: int) -> AbsenceRecord:
    with store_errors(f"read absence {absence_id}"):
        row = db.get(AbsenceRecords, absence_id)
        if row is None:
            raise NotFoundError(f"Absence {absence_id} not found")
    return _to_absence(row)


def list_absences(db: Session, year: int, week: int) -> list[AbsenceRecord]:
    validate_week(year, week)
    stmt = (
        select(AbsenceRecords, Dogs.name)
        .outerjoin(Dogs, Dogs.id == AbsenceRecords.dog_id)
        .where(and_(AbsenceRecords.year == year, AbsenceRecords.week == week))
        .order_by(AbsenceRecords.walk_date, AbsenceRecords.walk_time, AbsenceRecords.id)
    )
    with store_errors(f"list absences of {year}-W{week:02d}"):
        return [_to_absence(row, dog_name) for row, dog_name in db.execute(stmt).all()]


def list_vacations(db: Session, dog_id: Optional[int] = None, ending_after: Optional[date] = None) -> list[VacationPeriod]:
    stmt = select(VacationPeriods).order_by(VacationPeriods.start_date, VacationPeriods.id)
    if dog_id is not None:
        stmt = stmt.where(VacationPeriods.dog_id == dog_id)
    if ending_after is not None:
        stmt = stmt.where(VacationPeriods.end_date >= ending_after)
    with store_errors("list vacations"):
        return [_to_vacation(row) for row in db.execute(stmt).scalars().all()]


def load_vacation_days(db: Session, dog_id: int, year: int, week: int) -> set[WorkDay]:
    """Work days of a week on which the dog is away."""
    monday = monday_of_week(year, week)
    vacations = list_vacations(db, dog_id=dog_id, ending_after=monday)
    return {
        day for day in WorkDay
        if find_vacation(slot_date(year, week, day), vacations) is not None
    }


def suggest_reschedule_slots(
    db: Session,
    absence_id: int,
    weeks_ahead: int = 2,
    limit: int = 5,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> list[RescheduleSuggestion]:
    """
    Replacement slots in the weeks following a cancelled walk. Writes nothing.

    Dogs without a routine are ranked as on-demand with no preference.
    """
    absence = get_absence(db, absence_id)
    with store_errors(f"suggest reschedule for absence {absence_id}"):
        routine = load_dog_routine(db, absence.dog_id)
    if routine is None:
        routine = DogRoutine(dog_id=absence.dog_id, tier=RoutineTier.ON_DEMAND)

    monday = monday_of_week(absence.year, absence.week)
    views = []
    for offset in range(1, weeks_ahead + 1):
        year, week = iso_week_of(monday + timedelta(weeks=offset))
        views.append(load_weekly_view(db, year, week))

    vacations = list_vacations(db, dog_id=absence.dog_id, ending_after=monday)
    return rank_reschedule_slots(views, routine, limit, vacations, policy)


def reschedule_absence(
    db: Session,
    absence_id: int,
    slot_id: str,
    year: int,
    week: int,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> BookingResult:
    """
    Book the replacement walk of a cancelled one and link it to the absence.

    The charge already recorded on the absence is not changed.
    """
    with store_errors(f"reschedule absence {absence_id}"):
        row = db.get(AbsenceRecords, absence_id)
        if row is None:
            raise NotFoundError(f"Absence {absence_id} not found")

        if row.rescheduled_slot_id is not None:
            report = ValidationReport()
            report.add(RuleFinding(
                code="ABSENCE_ALREADY_RESCHEDULED",
                severity=Severity.VIOLATION,
                message=(
                    f"Absence {absence_id} was already rescheduled to "
                    f"{row.rescheduled_slot_id} {row.rescheduled_year}-W{row.rescheduled_week:02d}"
                ),
                context={"absenceId": absence_id, "groupId": row.rescheduled_slot_id},
            ))
            return BookingResult(report=report)

        result = create_assignment(
            db, row.dog_id, slot_id, year, week,
            notes=f"Replaces {row.slot_id} {row.year}-W{row.week:02d}",
            policy=policy,
            commit=False,
        )
        if not result.created:
            db.rollback()
            return result

        row.rescheduled_slot_id = slot_id
        row.rescheduled_year = year
        row.rescheduled_week = week
        db.commit()

    logger.info(f"Absence {absence_id} rescheduled to {slot_id} {year}-W{week:02d}")
    return result
