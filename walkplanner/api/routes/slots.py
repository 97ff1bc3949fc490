from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from walkplanner.api.deps import get_db
from walkplanner.schemas.slots import SlotInitialize, SlotTemplateResponse
from walkplanner.services.planning.booking import initialize_slot_templates
from walkplanner.services.planning.data_loader import load_slot_templates
from walkplanner.services.planning.errors import store_errors
from walkplanner.services.planning.slots import slot_order

router = APIRouter(prefix="/slots", tags=["slots"])


@router.post("/initialize", response_model=List[SlotTemplateResponse], status_code=status.HTTP_201_CREATED)
def initialize_slots(
    payload: SlotInitialize = SlotInitialize(),
    db: Session = Depends(get_db),
):
    """Create the 15 weekly slots. Existing slots are left untouched."""
    templates = initialize_slot_templates(db, default_capacity=payload.default_capacity)
    return [SlotTemplateResponse.model_validate(t) for t in sorted(templates, key=lambda t: slot_order(t.slot_id))]


@router.get("", response_model=List[SlotTemplateResponse])
def list_slots(db: Session = Depends(get_db)):
    with store_errors("list slot templates"):
        templates = load_slot_templates(db)
    return [SlotTemplateResponse.model_validate(t) for t in sorted(templates, key=lambda t: slot_order(t.slot_id))]
