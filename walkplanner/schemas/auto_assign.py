from pydantic import BaseModel

from walkplanner.core.enums import TimeBlock, WorkDay
from walkplanner.services.planning.types import AutoAssignOutcome


class ScoredSlotResponse(BaseModel):
    slot_id: str
    day: WorkDay
    block: TimeBlock
    score: int
    reasons: list[str]

    class Config:
        from_attributes = True


class AutoAssignResponse(BaseModel):
    dog_id: int
    outcome: AutoAssignOutcome
    success: bool
    required: int
    already_assigned: int
    filled: int
    assigned_slots: list[str]
    candidates: list[ScoredSlotResponse]
    message: str

    class Config:
        from_attributes = True
