"""
Internal data types for the billing sync bridge.
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from walkplanner.services.planning.types import AbsenceRecord, VacationPeriod


class SyncOutcome(str, Enum):
    CREATED = "CREATED"
    ALREADY_SYNCED = "ALREADY_SYNCED"
    NOT_COMPLETED = "NOT_COMPLETED"
    NOT_CHARGEABLE = "NOT_CHARGEABLE"


@dataclass
class BillableWalk:
    """One ledger line, as produced for the billing side."""
    dog_id: int
    owner_id: int
    service_category: str
    walk_date: date
    walk_time: time
    duration_minutes: int
    unit_price: Decimal
    quantity: int = 1
    status: str = "done"
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass
class SyncResult:
    assignment_id: int
    outcome: SyncOutcome
    billable: Optional[BillableWalk] = None

    @property
    def success(self) -> bool:
        return self.outcome in (SyncOutcome.CREATED, SyncOutcome.ALREADY_SYNCED)


@dataclass
class BatchSyncResult:
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0  # not completed yet
    created_ids: list[int] = field(default_factory=list)
    existing_ids: list[int] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CancellationResult:
    """A cancelled walk and the ledger line of its charge, when there is one."""
    absence: AbsenceRecord
    outcome: SyncOutcome
    billable: Optional[BillableWalk] = None

    @property
    def success(self) -> bool:
        return self.outcome in (SyncOutcome.CREATED, SyncOutcome.ALREADY_SYNCED, SyncOutcome.NOT_CHARGEABLE)


@dataclass
class VacationBillingResult:
    vacation: VacationPeriod
    cancellations: list[CancellationResult] = field(default_factory=list)
