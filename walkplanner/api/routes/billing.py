from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db, get_policy
from walkplanner.schemas.assignments import AssignmentResponse
from walkplanner.schemas.billing import BatchSyncResponse, SyncRequest, SyncResponse
from walkplanner.services.billing.sync import (
    complete_and_sync,
    find_unsynced_assignments,
    sync_assignment,
    sync_week,
)
from walkplanner.services.planning.policy import PlanningPolicy

router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/assignments/{assignment_id}/sync", response_model=SyncResponse)
def sync_assignment_route(
    assignment_id: int,
    payload: SyncRequest = SyncRequest(),
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    """Idempotent: syncing twice returns the same ledger line."""
    return SyncResponse.model_validate(sync_assignment(db, assignment_id, payload.price_override, policy))


@router.post("/assignments/{assignment_id}/complete", response_model=SyncResponse)
def complete_assignment_route(
    assignment_id: int,
    payload: SyncRequest = SyncRequest(),
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    return SyncResponse.model_validate(complete_and_sync(db, assignment_id, payload.price_override, policy))


@router.post("/{year}/{week}/sync", response_model=BatchSyncResponse)
def sync_week_route(
    year: int,
    week: int,
    only_completed: bool = True,
    db: Session = Depends(get_db),
    policy: PlanningPolicy = Depends(get_policy),
):
    return BatchSyncResponse.model_validate(sync_week(db, year, week, only_completed, policy))


@router.get("/{year}/{week}/unsynced", response_model=List[AssignmentResponse])
def list_unsynced(
    year: int,
    week: int,
    db: Session = Depends(get_db),
):
    return [AssignmentResponse.model_validate(a) for a in find_unsynced_assignments(db, year, week)]
