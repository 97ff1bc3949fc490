"""
Billing sync bridge package.

Usage:
    from walkplanner.services.billing import complete_and_sync, sync_week

    # Mark one walk done and bill it
    result = complete_and_sync(db, assignment_id=42)

    # Reconcile a whole week; safe to re-run
    batch = sync_week(db, year=2025, week=10)

    # Cancel a walk; a late cancellation is billed as a fee
    cancellation = cancel_and_bill(db, assignment_id=42, absence_type=AbsenceType.OTHER)
"""

from .types import (
    BatchSyncResult,
    BillableWalk,
    CancellationResult,
    SyncOutcome,
    SyncResult,
    VacationBillingResult,
)
from .pricing import estimate_week_revenue, unit_price_for
from .sync import (
    cancel_and_bill,
    complete_and_sync,
    find_unsynced_assignments,
    record_vacation_and_bill,
    resolve_walk_key,
    sync_assignment,
    sync_cancellation,
    sync_week,
)

__all__ = [
    # Types
    "BatchSyncResult",
    "BillableWalk",
    "CancellationResult",
    "SyncOutcome",
    "SyncResult",
    "VacationBillingResult",
    # Main entry points
    "sync_assignment",
    "complete_and_sync",
    "sync_week",
    "find_unsynced_assignments",
    "cancel_and_bill",
    "record_vacation_and_bill",
    "sync_cancellation",
    # Lower-level functions
    "resolve_walk_key",
    "unit_price_for",
    "estimate_week_revenue",
]
