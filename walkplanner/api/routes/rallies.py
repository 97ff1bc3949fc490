from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db, get_policy, raise_on_violations
from walkplanner.schemas.rallies import RallyBookingResponse, RallyCreate, RallyParticipantsAdd, RallyResponse
from walkplanner.services.planning.booking import add_rally_participants, create_rally, list_rallies
from walkplanner.services.planning.policy import PlanningPolicy

router = APIRouter(prefix="/rallies", tags=["rallies"])


@router.post("", response_model=RallyBookingResponse, status_code=status.HTTP_201_CREATED)
def create_rally_route(
    payload: RallyCreate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = create_rally(
        db,
        event_date=payload.event_date,
        start_block=payload.start_block,
        dog_ids=payload.dog_ids,
        location=payload.location,
        description=payload.description,
        price_per_dog=payload.price_per_dog,
        policy=policy,
    )
    raise_on_violations(result.report, "Rally rejected")
    return RallyBookingResponse.model_validate(result)


@router.post("/{rally_id}/participants", response_model=RallyBookingResponse)
def add_participants(
    rally_id: int,
    payload: RallyParticipantsAdd,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = add_rally_participants(db, rally_id, payload.dog_ids, policy)
    raise_on_violations(result.report, "Rally booking rejected")
    return RallyBookingResponse.model_validate(result)


@router.get("", response_model=List[RallyResponse])
def list_rallies_route(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return [RallyResponse.model_validate(r) for r in list_rallies(db, start_date, end_date)]
