from pydantic import BaseModel, Field
from datetime import date, time
from decimal import Decimal
from typing import Literal, Optional

from walkplanner.core.enums import RoutineTier, TimeBlock, WalkType, WorkDay
from walkplanner.schemas.assignments import AssignmentResponse
from walkplanner.schemas.validation import ValidationReportResponse


class EffectiveSlotResponse(BaseModel):
    slot_id: str
    day: WorkDay
    block: TimeBlock
    start_time: time
    end_time: time
    walk_type: WalkType
    capacity: int
    sector: Optional[str]
    is_blocked: bool
    block_reason: Optional[str]
    occupancy: int
    remaining: int
    assignments: list[AssignmentResponse]

    class Config:
        from_attributes = True


class WeeklyViewResponse(BaseModel):
    year: int
    week: int
    monday: date
    estimated_revenue: Decimal
    slots: list[EffectiveSlotResponse]


class WeekOverrideUpdate(BaseModel):
    walk_type: Optional[WalkType] = None
    sector: Optional[Literal["S1", "S2", "S3"]] = None
    capacity: Optional[int] = None
    is_blocked: bool = False
    block_reason: Optional[str] = None
    notes: Optional[str] = None


class WeekOverrideResponse(BaseModel):
    slot_id: str
    year: int
    week: int
    walk_type: Optional[WalkType]
    sector: Optional[str]
    capacity: Optional[int]
    is_blocked: bool
    block_reason: Optional[str]
    notes: Optional[str]

    class Config:
        from_attributes = True


class OverrideUpdateResponse(BaseModel):
    override: WeekOverrideResponse
    report: ValidationReportResponse

    class Config:
        from_attributes = True


class ProposedAssignment(BaseModel):
    dog_id: int
    slot_id: str


class WeekImportRequest(BaseModel):
    assignments: list[ProposedAssignment]


class WeeklyLoadResponse(BaseModel):
    total_assignments: int
    total_capacity: int
    utilization_percent: int
    overbooked_slots: list[str]
    empty_slots: list[str]
    near_capacity_slots: list[str]
    sector_distribution: dict[str, int]
    day_distribution: dict[str, int]
    block_distribution: dict[str, int]

    class Config:
        from_attributes = True


class DogConflictResponse(BaseModel):
    dog_id: int
    dog_name: Optional[str]
    conflict_type: str
    details: str
    affected_slots: list[str]

    class Config:
        from_attributes = True


class RoutineComplianceResponse(BaseModel):
    dog_id: int
    dog_name: Optional[str]
    tier: RoutineTier
    expected_count: int
    actual_count: int
    status: str

    class Config:
        from_attributes = True


class WeekAnalysisResponse(BaseModel):
    load: WeeklyLoadResponse
    conflicts: list[DogConflictResponse]
    compliance: list[RoutineComplianceResponse]

    class Config:
        from_attributes = True
