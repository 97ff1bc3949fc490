from pydantic import BaseModel, Field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from walkplanner.core.enums import AbsenceType, CancellationPolicy, TimeBlock, WorkDay
from walkplanner.schemas.billing import BillableWalkResponse
from walkplanner.services.billing.types import SyncOutcome


class CancellationCreate(BaseModel):
    assignment_id: int
    absence_type: AbsenceType
    reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    is_package_client: bool = False
    price_override: Optional[Decimal] = Field(None, ge=0)


class VacationCreate(BaseModel):
    dog_id: int
    start_date: date
    end_date: date
    reason: AbsenceType = AbsenceType.OWNER_VACATION
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    is_package_client: bool = False


class RescheduleRequest(BaseModel):
    slot_id: str = Field(..., examples=["MA-B2"])
    year: int
    week: int = Field(..., ge=1, le=53)


class AbsenceResponse(BaseModel):
    id: Optional[int]
    dog_id: int
    slot_id: str
    year: int
    week: int
    walk_date: date
    walk_time: time
    absence_type: AbsenceType
    reason: Optional[str]
    cancelled_at: datetime
    policy: CancellationPolicy
    unit_price: Decimal
    charge_percent: int
    charge_amount: Decimal
    vacation_id: Optional[int]
    rescheduled_slot_id: Optional[str]
    rescheduled_year: Optional[int]
    rescheduled_week: Optional[int]
    notes: Optional[str]
    dog_name: Optional[str] = None

    class Config:
        from_attributes = True


class VacationResponse(BaseModel):
    id: Optional[int]
    dog_id: int
    start_date: date
    end_date: date
    reason: AbsenceType
    notes: Optional[str]

    class Config:
        from_attributes = True


class CancellationResponse(BaseModel):
    absence: AbsenceResponse
    outcome: SyncOutcome
    success: bool
    billable: Optional[BillableWalkResponse]

    class Config:
        from_attributes = True


class VacationBillingResponse(BaseModel):
    vacation: VacationResponse
    cancellations: list[CancellationResponse]

    class Config:
        from_attributes = True


class RescheduleSuggestionResponse(BaseModel):
    year: int
    week: int
    slot_id: str
    walk_date: date
    day: WorkDay
    block: TimeBlock
    score: int
    remaining: int
    reasons: list[str]

    class Config:
        from_attributes = True


class AbsenceSummaryResponse(BaseModel):
    year: int
    week: int
    total: int
    by_type: dict[str, int]
    by_policy: dict[str, int]
    by_day: dict[str, int]
    charged_amount: Decimal
    lost_revenue: Decimal
