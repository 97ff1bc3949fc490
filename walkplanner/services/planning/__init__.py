"""
Walk planning service package.

Usage:
    from walkplanner.services.planning import load_weekly_view, auto_assign_dog

    # Effective grid of one ISO week
    view = load_weekly_view(db, year=2025, week=10)

    # Book a dog according to its routine
    result = auto_assign_dog(db, dog_id=12, year=2025, week=10)

    # Or run the pure scorer on a pre-built view
    from walkplanner.services.planning import plan_auto_assignment
    plan = plan_auto_assignment(view, dog_id=12, routine=routine)
"""

from .types import (
    WorkDay,
    TimeBlock,
    WalkType,
    RoutineTier,
    TimePreference,
    Severity,
    SlotTemplate,
    WeekOverride,
    DogRoutine,
    Assignment,
    RallyEvent,
    EffectiveSlotView,
    WeeklyView,
    RuleFinding,
    ValidationReport,
    AutoAssignOutcome,
    AutoAssignResult,
    ScoredSlot,
    AbsenceType,
    CancellationPolicy,
    AbsenceRecord,
    VacationPeriod,
    RescheduleSuggestion,
    BookingResult,
)
from .errors import PlanningError, NotFoundError, StoreUnavailableError
from .policy import DEFAULT_POLICY, PlanningPolicy, policy_from_settings
from .weekly_view import build_weekly_view
from .validator import validate_assignment, validate_override, validate_week_import, validate_rally
from .analysis import build_alert_feed
from .scoring import plan_auto_assignment, suggest_slots
from .data_loader import load_weekly_view
from .booking import create_assignment, book_individual_walk, upsert_week_override
from .auto_assign import auto_assign_dog, suggest_slots_for_dog
from .absences import (
    cancel_assignment,
    record_vacation,
    suggest_reschedule_slots,
    reschedule_absence,
    determine_cancellation_terms,
    rank_reschedule_slots,
    summarize_absences,
)

__all__ = [
    # Types
    "WorkDay",
    "TimeBlock",
    "WalkType",
    "RoutineTier",
    "TimePreference",
    "Severity",
    "SlotTemplate",
    "WeekOverride",
    "DogRoutine",
    "Assignment",
    "RallyEvent",
    "EffectiveSlotView",
    "WeeklyView",
    "RuleFinding",
    "ValidationReport",
    "AutoAssignOutcome",
    "AutoAssignResult",
    "ScoredSlot",
    "BookingResult",
    "AbsenceType",
    "CancellationPolicy",
    "AbsenceRecord",
    "VacationPeriod",
    "RescheduleSuggestion",
    # Errors
    "PlanningError",
    "NotFoundError",
    "StoreUnavailableError",
    # Policy
    "DEFAULT_POLICY",
    "PlanningPolicy",
    "policy_from_settings",
    # Main entry points
    "load_weekly_view",
    "auto_assign_dog",
    "suggest_slots_for_dog",
    "create_assignment",
    "book_individual_walk",
    "upsert_week_override",
    "cancel_assignment",
    "record_vacation",
    "suggest_reschedule_slots",
    "reschedule_absence",
    # Lower-level functions
    "build_weekly_view",
    "validate_assignment",
    "validate_override",
    "validate_week_import",
    "validate_rally",
    "build_alert_feed",
    "plan_auto_assignment",
    "suggest_slots",
    "determine_cancellation_terms",
    "rank_reschedule_slots",
    "summarize_absences",
]
