from pydantic import BaseModel, Field
from typing import Optional

from walkplanner.schemas.validation import ValidationReportResponse


class AssignmentCreate(BaseModel):
    dog_id: int
    slot_id: str = Field(..., examples=["LU-B1"])
    year: int
    week: int = Field(..., ge=1, le=53)
    notes: Optional[str] = None


class AssignmentCompletionUpdate(BaseModel):
    is_completed: bool


class AssignmentResponse(BaseModel):
    id: Optional[int]
    dog_id: int
    slot_id: str
    year: int
    week: int
    is_confirmed: bool
    is_completed: bool
    notes: Optional[str]
    dog_name: Optional[str] = None
    owner_name: Optional[str] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    assignment: AssignmentResponse
    report: ValidationReportResponse

    class Config:
        from_attributes = True
