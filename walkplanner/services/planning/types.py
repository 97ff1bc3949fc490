"""
Internal data types for planning logic.
decoupled from SQLAlchemy models for cleaner logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from walkplanner.core.enums import (
    TIME_BLOCKS,
    WORK_DAYS,
    AbsenceType,
    CancellationPolicy,
    RoutineTier,
    TimeBlock,
    TimePreference,
    WalkType,
    WorkDay,
)


class Severity(str, Enum):
    VIOLATION = "violation"
    WARNING = "warning"
    INFO = "info"


SECTORS = ("S1", "S2", "S3")

# Fixed clock schedule per block: (start, end)
BLOCK_SCHEDULES: dict[TimeBlock, tuple[time, time]] = {
    TimeBlock.B1: (time(9, 30), time(11, 30)),
    TimeBlock.B2: (time(12, 0), time(14, 0)),
    TimeBlock.B3: (time(14, 30), time(16, 30)),
}

PREFERENCE_BLOCKS: dict[TimePreference, tuple[TimeBlock, ...]] = {
    TimePreference.MORNING: (TimeBlock.B1,),
    TimePreference.MIDDAY: (TimeBlock.B2,),
    TimePreference.AFTERNOON: (TimeBlock.B3,),
    TimePreference.INDIFFERENT: tuple(TIME_BLOCKS),
}


@dataclass
class SlotTemplate:
    """One of the 15 recurring weekly slots."""
    slot_id: str
    day: WorkDay
    block: TimeBlock
    start_time: time
    end_time: time
    pickup_minutes: int = 30
    walk_minutes: int = 60
    return_minutes: int = 30
    default_sector: Optional[str] = None
    default_capacity: int = 4
    notes: Optional[str] = None

    @property
    def walk_start_time(self) -> time:
        """Clock time the walk itself starts (after pickup)."""
        start = datetime.combine(date.min, self.start_time) + timedelta(minutes=self.pickup_minutes)
        return start.time()


@dataclass
class WeekOverride:
    """Per-week changes to a slot. None fields fall back to the template."""
    slot_id: str
    year: int
    week: int
    walk_type: Optional[WalkType] = None
    sector: Optional[str] = None
    capacity: Optional[int] = None
    is_blocked: bool = False
    block_reason: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class DogRoutine:
    dog_id: int
    tier: RoutineTier
    sector: Optional[str] = None
    time_preference: TimePreference = TimePreference.INDIFFERENT
    preferred_days: list[WorkDay] = field(default_factory=list)
    walk_type_preference: WalkType = WalkType.COLLECTIVE
    behavior_notes: Optional[str] = None
    special_requirements: Optional[str] = None
    is_active: bool = True
    dog_name: Optional[str] = None


@dataclass
class Assignment:
    """A booking of one dog into one slot for one ISO week."""
    dog_id: int
    slot_id: str
    year: int
    week: int
    id: Optional[int] = None
    is_confirmed: bool = True
    is_completed: bool = False
    notes: Optional[str] = None
    dog_name: Optional[str] = None
    owner_name: Optional[str] = None


@dataclass
class RallyEvent:
    """Multi-dog hike spanning two consecutive blocks on one day."""
    event_date: date
    day: WorkDay
    start_block: TimeBlock
    capacity: int = 3
    duration_hours: float = 3
    participant_ids: list[int] = field(default_factory=list)
    id: Optional[int] = None
    location: Optional[str] = None
    description: Optional[str] = None
    price_per_dog: Optional[float] = None

    @property
    def blocks(self) -> tuple[TimeBlock, ...]:
        start = self.start_block.position
        return tuple(TIME_BLOCKS[start:start + 2])


@dataclass
class EffectiveSlotView:
    """Template merged with the week's override plus current assignments."""
    template: SlotTemplate
    year: int
    week: int
    walk_type: WalkType
    capacity: int
    sector: Optional[str]
    is_blocked: bool
    override: Optional[WeekOverride] = None
    block_reason: Optional[str] = None
    assignments: list[Assignment] = field(default_factory=list)

    @property
    def slot_id(self) -> str:
        return self.template.slot_id

    @property
    def day(self) -> WorkDay:
        return self.template.day

    @property
    def block(self) -> TimeBlock:
        return self.template.block

    @property
    def start_time(self) -> time:
        return self.template.start_time

    @property
    def end_time(self) -> time:
        return self.template.end_time

    @property
    def occupancy(self) -> int:
        return len(self.assignments)

    @property
    def remaining(self) -> int:
        return self.capacity - self.occupancy

    @property
    def is_full(self) -> bool:
        return self.occupancy >= self.capacity

    def has_dog(self, dog_id: int) -> bool:
        return any(a.dog_id == dog_id for a in self.assignments)


@dataclass
class WeeklyView:
    """All 15 effective slots of one ISO week, in day-then-block order."""
    year: int
    week: int
    slots: list[EffectiveSlotView] = field(default_factory=list)

    def get(self, slot_id: str) -> Optional[EffectiveSlotView]:
        return next((s for s in self.slots if s.slot_id == slot_id), None)

    def assignments(self) -> list[Assignment]:
        return [a for s in self.slots for a in s.assignments]

    def assignments_for_dog(self, dog_id: int) -> list[Assignment]:
        return [a for a in self.assignments() if a.dog_id == dog_id]


@dataclass
class RuleFinding:
    code: str
    severity: Severity
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class ValidationReport:
    violations: list[RuleFinding] = field(default_factory=list)
    warnings: list[RuleFinding] = field(default_factory=list)
    info: list[RuleFinding] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def add(self, finding: RuleFinding) -> None:
        if finding.severity == Severity.VIOLATION:
            self.violations.append(finding)
        elif finding.severity == Severity.WARNING:
            self.warnings.append(finding)
        else:
            self.info.append(finding)

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        self.violations.extend(other.violations)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        return self

    def codes(self) -> list[str]:
        return [f.code for f in self.violations + self.warnings + self.info]


@dataclass
class DogConflict:
    dog_id: int
    dog_name: Optional[str]
    conflict_type: str  # double_booking | consecutive_blocks
    details: str
    affected_slots: list[str] = field(default_factory=list)


@dataclass
class WeeklyLoadAnalysis:
    total_assignments: int
    total_capacity: int
    utilization_percent: int
    overbooked_slots: list[str] = field(default_factory=list)
    empty_slots: list[str] = field(default_factory=list)
    near_capacity_slots: list[str] = field(default_factory=list)
    sector_distribution: dict[str, int] = field(default_factory=dict)
    day_distribution: dict[str, int] = field(default_factory=dict)
    block_distribution: dict[str, int] = field(default_factory=dict)


@dataclass
class RoutineCompliance:
    dog_id: int
    dog_name: Optional[str]
    tier: RoutineTier
    expected_count: int
    actual_count: int
    status: str  # ok | under | over


@dataclass
class AlertFeed:
    """Read-only feed for the alerting surface."""
    load: WeeklyLoadAnalysis
    conflicts: list[DogConflict] = field(default_factory=list)
    compliance: list[RoutineCompliance] = field(default_factory=list)


class AutoAssignOutcome(str, Enum):
    ASSIGNED = "ASSIGNED"
    PARTIAL = "PARTIAL"
    ALREADY_SATISFIED = "ALREADY_SATISFIED"
    NO_ROUTINE_CONFIGURED = "NO_ROUTINE_CONFIGURED"
    MANUAL_ASSIGNMENT_REQUIRED = "MANUAL_ASSIGNMENT_REQUIRED"
    NO_AVAILABLE_SLOTS = "NO_AVAILABLE_SLOTS"


@dataclass
class ScoredSlot:
    slot_id: str
    day: WorkDay
    block: TimeBlock
    score: int
    reasons: list[str] = field(default_factory=list)


@dataclass
class AutoAssignResult:
    """Output of the auto-assignment engine."""
    dog_id: int
    outcome: AutoAssignOutcome
    required: int
    already_assigned: int = 0
    assigned_slots: list[str] = field(default_factory=list)
    candidates: list[ScoredSlot] = field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.outcome in (AutoAssignOutcome.ASSIGNED, AutoAssignOutcome.ALREADY_SATISFIED)

    @property
    def filled(self) -> int:
        return len(self.assigned_slots)


@dataclass
class BookingResult:
    """Outcome of a single booking write: the report, and the row if one was written."""
    report: ValidationReport
    assignment: Optional[Assignment] = None

    @property
    def created(self) -> bool:
        return self.assignment is not None


@dataclass
class OverrideResult:
    report: ValidationReport
    override: Optional[WeekOverride] = None


@dataclass
class RallyBookingResult:
    report: ValidationReport
    rally: Optional[RallyEvent] = None


@dataclass
class CancellationTerms:
    policy: CancellationPolicy
    charge_percent: int
    reason: str


@dataclass
class VacationPeriod:
    dog_id: int
    start_date: date
    end_date: date
    reason: AbsenceType = AbsenceType.OWNER_VACATION
    id: Optional[int] = None
    notes: Optional[str] = None

    def covers(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


@dataclass
class AbsenceRecord:
    """A cancelled walk and the charge it carries."""
    dog_id: int
    slot_id: str
    year: int
    week: int
    walk_date: date
    walk_time: time
    absence_type: AbsenceType
    cancelled_at: datetime
    policy: CancellationPolicy
    unit_price: Decimal
    charge_percent: int = 0
    charge_amount: Decimal = Decimal("0")
    id: Optional[int] = None
    reason: Optional[str] = None
    vacation_id: Optional[int] = None
    rescheduled_slot_id: Optional[str] = None
    rescheduled_year: Optional[int] = None
    rescheduled_week: Optional[int] = None
    notes: Optional[str] = None
    dog_name: Optional[str] = None

    @property
    def is_chargeable(self) -> bool:
        return self.charge_amount > 0

    @property
    def is_rescheduled(self) -> bool:
        return self.rescheduled_slot_id is not None


@dataclass
class VacationResult:
    vacation: VacationPeriod
    absences: list[AbsenceRecord] = field(default_factory=list)


@dataclass
class RescheduleSuggestion:
    year: int
    week: int
    slot_id: str
    walk_date: date
    day: WorkDay
    block: TimeBlock
    score: int
    remaining: int
    reasons: list[str] = field(default_factory=list)


@dataclass
class AbsenceSummary:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_policy: dict[str, int] = field(default_factory=dict)
    by_day: dict[str, int] = field(default_factory=dict)
    charged_amount: Decimal = Decimal("0")
    lost_revenue: Decimal = Decimal("0")
