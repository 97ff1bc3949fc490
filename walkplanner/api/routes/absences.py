from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db, get_policy, raise_on_violations
from walkplanner.schemas.absences import (
    AbsenceResponse,
    AbsenceSummaryResponse,
    CancellationCreate,
    CancellationResponse,
    RescheduleRequest,
    RescheduleSuggestionResponse,
    VacationBillingResponse,
    VacationCreate,
    VacationResponse,
)
from walkplanner.schemas.assignments import BookingResponse
from walkplanner.services.billing.sync import cancel_and_bill, record_vacation_and_bill
from walkplanner.services.planning.absences import (
    list_absences,
    list_vacations,
    reschedule_absence,
    suggest_reschedule_slots,
    summarize_absences,
)
from walkplanner.services.planning.policy import PlanningPolicy

router = APIRouter(prefix="/absences", tags=["absences"])


@router.post("", response_model=CancellationResponse, status_code=status.HTTP_201_CREATED)
def cancel_walk(
    payload: CancellationCreate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Cancel a booked walk, freeing its slot and billing any late-cancellation charge."""
    result = cancel_and_bill(
        db, payload.assignment_id, payload.absence_type,
        reason=payload.reason,
        cancelled_at=payload.cancelled_at,
        is_package_client=payload.is_package_client,
        price_override=payload.price_override,
        policy=policy,
    )
    return CancellationResponse.model_validate(result)


@router.post("/vacations", response_model=VacationBillingResponse, status_code=status.HTTP_201_CREATED)
def create_vacation(
    payload: VacationCreate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = record_vacation_and_bill(
        db, payload.dog_id, payload.start_date, payload.end_date,
        reason=payload.reason,
        notes=payload.notes,
        cancelled_at=payload.cancelled_at,
        is_package_client=payload.is_package_client,
        policy=policy,
    )
    return VacationBillingResponse.model_validate(result)


@router.get("/vacations", response_model=List[VacationResponse])
def get_vacations(
    dog_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return [VacationResponse.model_validate(v) for v in list_vacations(db, dog_id=dog_id)]


@router.get("/weeks/{year}/{week}", response_model=List[AbsenceResponse])
def get_week_absences(
    year: int,
    week: int,
    db: Session = Depends(get_db),
):
    return [AbsenceResponse.model_validate(a) for a in list_absences(db, year, week)]


@router.get("/weeks/{year}/{week}/summary", response_model=AbsenceSummaryResponse)
def get_week_absence_summary(
    year: int,
    week: int,
    db: Session = Depends(get_db),
):
    summary = summarize_absences(list_absences(db, year, week))
    return AbsenceSummaryResponse(
        year=year,
        week=week,
        total=summary.total,
        by_type=summary.by_type,
        by_policy=summary.by_policy,
        by_day=summary.by_day,
        charged_amount=summary.charged_amount,
        lost_revenue=summary.lost_revenue,
    )


@router.get("/{absence_id}/reschedule-suggestions", response_model=List[RescheduleSuggestionResponse])
def get_reschedule_suggestions(
    absence_id: int,
    weeks_ahead: int = Query(2, ge=1, le=8),
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    suggestions = suggest_reschedule_slots(db, absence_id, weeks_ahead, limit, policy)
    return [RescheduleSuggestionResponse.model_validate(s) for s in suggestions]


@router.post("/{absence_id}/reschedule", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def reschedule_walk(
    absence_id: int,
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = reschedule_absence(db, absence_id, payload.slot_id, payload.year, payload.week, policy)
    raise_on_violations(result.report, "Reschedule rejected")
    return BookingResponse.model_validate(result)
