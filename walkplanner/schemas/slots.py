from pydantic import BaseModel, Field
from datetime import time
from typing import Optional

from walkplanner.core.enums import TimeBlock, WorkDay


class SlotInitialize(BaseModel):
    default_capacity: int = Field(4, ge=1, le=6)


class SlotTemplateResponse(BaseModel):
    slot_id: str
    day: WorkDay
    block: TimeBlock
    start_time: time
    end_time: time
    walk_start_time: time
    pickup_minutes: int
    walk_minutes: int
    return_minutes: int
    default_sector: Optional[str]
    default_capacity: int
    notes: Optional[str]

    class Config:
        from_attributes = True
