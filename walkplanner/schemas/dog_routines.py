from pydantic import BaseModel
from typing import Literal, Optional

from walkplanner.core.enums import RoutineTier, TimePreference, WalkType, WorkDay


class DogRoutineUpsert(BaseModel):
    tier: RoutineTier
    sector: Optional[Literal["S1", "S2", "S3"]] = None  # inferred from the owner address when omitted
    time_preference: TimePreference = TimePreference.INDIFFERENT
    preferred_days: list[WorkDay] = []
    walk_type_preference: WalkType = WalkType.COLLECTIVE
    behavior_notes: Optional[str] = None
    special_requirements: Optional[str] = None
    is_active: bool = True


class DogRoutineResponse(BaseModel):
    dog_id: int
    dog_name: Optional[str]
    tier: RoutineTier
    sector: Optional[str]
    time_preference: TimePreference
    preferred_days: list[WorkDay]
    walk_type_preference: WalkType
    behavior_notes: Optional[str]
    special_requirements: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True
