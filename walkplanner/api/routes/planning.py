from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db, get_policy, raise_on_violations
from walkplanner.schemas.auto_assign import AutoAssignResponse, ScoredSlotResponse
from walkplanner.schemas.planning import (
    EffectiveSlotResponse,
    OverrideUpdateResponse,
    WeekAnalysisResponse,
    WeekImportRequest,
    WeeklyViewResponse,
    WeekOverrideUpdate,
)
from walkplanner.schemas.validation import ValidationReportResponse
from walkplanner.services.billing.pricing import estimate_week_revenue
from walkplanner.services.planning.analysis import build_alert_feed
from walkplanner.services.planning.auto_assign import auto_assign_dog, suggest_slots_for_dog
from walkplanner.services.planning.booking import upsert_week_override
from walkplanner.services.planning.data_loader import load_dog_routines, load_weekly_view
from walkplanner.services.planning.errors import store_errors
from walkplanner.services.planning.policy import PlanningPolicy
from walkplanner.services.planning.validator import validate_week_import
from walkplanner.services.planning.weeks import monday_of_week

router = APIRouter(prefix="/planning", tags=["planning"])


@router.get("/{year}/{week}", response_model=WeeklyViewResponse)
def get_weekly_view(
    year: int,
    week: int,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    view = load_weekly_view(db, year, week)
    return WeeklyViewResponse(
        year=year,
        week=week,
        monday=monday_of_week(year, week),
        estimated_revenue=estimate_week_revenue(view, policy),
        slots=[EffectiveSlotResponse.model_validate(s) for s in view.slots],
    )


@router.get("/{year}/{week}/analysis", response_model=WeekAnalysisResponse)
def get_week_analysis(
    year: int,
    week: int,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Load, cross-dog conflicts and routine compliance for dashboards."""
    view = load_weekly_view(db, year, week)
    with store_errors("load routines"):
        routines = load_dog_routines(db, active_only=True)
    return WeekAnalysisResponse.model_validate(build_alert_feed(view, routines, policy))


@router.put("/{year}/{week}/slots/{slot_id}", response_model=OverrideUpdateResponse)
def update_week_slot(
    year: int,
    week: int,
    slot_id: str,
    payload: WeekOverrideUpdate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = upsert_week_override(
        db, year, week, slot_id,
        walk_type=payload.walk_type,
        sector=payload.sector,
        capacity=payload.capacity,
        is_blocked=payload.is_blocked,
        block_reason=payload.block_reason,
        notes=payload.notes,
        policy=policy,
    )
    raise_on_violations(result.report, f"Slot {slot_id} cannot be updated")
    return OverrideUpdateResponse.model_validate(result)


@router.post("/{year}/{week}/import/validate", response_model=ValidationReportResponse)
def validate_import(
    year: int,
    week: int,
    payload: WeekImportRequest,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Dry run of a whole week of bookings. Nothing is written."""
    view = load_weekly_view(db, year, week)
    with store_errors("load routines"):
        routines = {r.dog_id: r for r in load_dog_routines(db)}
    proposed = [(a.dog_id, a.slot_id) for a in payload.assignments]
    return ValidationReportResponse.model_validate(validate_week_import(view, proposed, routines, policy))


@router.post("/{year}/{week}/auto-assign/{dog_id}", response_model=AutoAssignResponse)
def auto_assign(
    year: int,
    week: int,
    dog_id: int,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    return AutoAssignResponse.model_validate(auto_assign_dog(db, dog_id, year, week, policy))


@router.get("/{year}/{week}/suggestions/{dog_id}", response_model=List[ScoredSlotResponse])
def get_suggestions(
    year: int,
    week: int,
    dog_id: int,
    limit: int = Query(5, ge=1, le=15),
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    return [ScoredSlotResponse.model_validate(s) for s in suggest_slots_for_dog(db, dog_id, year, week, limit, policy)]
