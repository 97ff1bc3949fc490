from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db
from walkplanner.schemas.dog_routines import DogRoutineResponse, DogRoutineUpsert
from walkplanner.services.planning.booking import upsert_dog_routine
from walkplanner.services.planning.data_loader import load_dog_routine, load_dog_routines
from walkplanner.services.planning.errors import store_errors

router = APIRouter(prefix="/dog-routines", tags=["dog-routines"])


@router.put("/{dog_id}", response_model=DogRoutineResponse)
def save_dog_routine(
    dog_id: int,
    payload: DogRoutineUpsert,
    db: Session = Depends(get_db),
):
    return DogRoutineResponse.model_validate(upsert_dog_routine(db, dog_id, **payload.model_dump()))


@router.get("", response_model=List[DogRoutineResponse])
def list_dog_routines(
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    with store_errors("list routines"):
        routines = load_dog_routines(db, active_only=active_only)
    return [DogRoutineResponse.model_validate(r) for r in routines]


@router.get("/{dog_id}", response_model=DogRoutineResponse)
def get_dog_routine(
    dog_id: int,
    db: Session = Depends(get_db),
):
    with store_errors(f"load routine of dog {dog_id}"):
        routine = load_dog_routine(db, dog_id)
    if not routine:
        raise HTTPException(status_code=404, detail="Routine not found")
    return DogRoutineResponse.model_validate(routine)
