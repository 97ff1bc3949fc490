from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Optional

from walkplanner.core.enums import TimeBlock, WorkDay
from walkplanner.schemas.validation import ValidationReportResponse


class RallyCreate(BaseModel):
    event_date: date
    start_block: TimeBlock
    dog_ids: list[int] = []
    location: Optional[str] = None
    description: Optional[str] = None
    price_per_dog: Optional[Decimal] = Field(None, ge=0)


class RallyParticipantsAdd(BaseModel):
    dog_ids: list[int]


class RallyResponse(BaseModel):
    id: int
    event_date: date
    day: WorkDay
    start_block: TimeBlock
    blocks: list[TimeBlock]
    capacity: int
    duration_hours: float
    participant_ids: list[int]
    location: Optional[str]
    description: Optional[str]
    price_per_dog: Optional[float]

    class Config:
        from_attributes = True


class RallyBookingResponse(BaseModel):
    rally: RallyResponse
    report: ValidationReportResponse

    class Config:
        from_attributes = True
