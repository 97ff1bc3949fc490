from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db, get_policy, raise_on_violations
from walkplanner.schemas.assignments import (
    AssignmentCompletionUpdate,
    AssignmentCreate,
    AssignmentResponse,
    BookingResponse,
)
from walkplanner.services.billing.sync import complete_and_sync
from walkplanner.services.planning.booking import (
    book_individual_walk,
    create_assignment,
    get_assignment,
    remove_assignment,
    set_assignment_completion,
)
from walkplanner.services.planning.policy import PlanningPolicy

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_assignment_route(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    result = create_assignment(
        db, payload.dog_id, payload.slot_id, payload.year, payload.week,
        notes=payload.notes,
        policy=policy,
    )
    raise_on_violations(result.report, "Assignment rejected")
    return BookingResponse.model_validate(result)


@router.post("/individual", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_individual_walk_route(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Turn the slot into a one-dog walk for that week and book the dog."""
    result = book_individual_walk(
        db, payload.dog_id, payload.slot_id, payload.year, payload.week,
        notes=payload.notes,
        policy=policy,
    )
    raise_on_violations(result.report, "Individual walk rejected")
    return BookingResponse.model_validate(result)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
):
    remove_assignment(db, assignment_id)
    return None


@router.patch("/{assignment_id}/completion", response_model=AssignmentResponse)
def update_completion(
    assignment_id: int,
    payload: AssignmentCompletionUpdate,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Completing a walk also bills it."""
    if payload.is_completed:
        complete_and_sync(db, assignment_id, policy=policy)
        return AssignmentResponse.model_validate(get_assignment(db, assignment_id))
    return AssignmentResponse.model_validate(set_assignment_completion(db, assignment_id, False))
