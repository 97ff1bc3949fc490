from pydantic import BaseModel, Field
from datetime import date, time
from decimal import Decimal
from typing import Any, Optional

from walkplanner.services.billing.types import SyncOutcome


class SyncRequest(BaseModel):
    price_override: Optional[Decimal] = Field(None, ge=0)


class BillableWalkResponse(BaseModel):
    id: Optional[int]
    dog_id: int
    owner_id: int
    service_category: str
    walk_date: date
    walk_time: time
    duration_minutes: int
    unit_price: Decimal
    quantity: int
    status: str
    notes: Optional[str]

    class Config:
        from_attributes = True


class SyncResponse(BaseModel):
    assignment_id: int
    outcome: SyncOutcome
    success: bool
    billable: Optional[BillableWalkResponse]

    class Config:
        from_attributes = True


class BatchSyncResponse(BaseModel):
    total: int
    success: int
    failed: int
    skipped: int
    created_ids: list[int]
    existing_ids: list[int]
    errors: list[dict[str, Any]]

    class Config:
        from_attributes = True
