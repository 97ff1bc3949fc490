"""
Planning policy: lookup tables and limits passed explicitly to the
validator, the auto-assignment engine and the billing sync.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from walkplanner.core.config import Settings

from .types import RoutineTier, WalkType


@dataclass(frozen=True)
class WalkRate:
    service_category: str
    unit_price: Decimal
    duration_minutes: int
    default_capacity: int


DEFAULT_ROUTINE_WALK_COUNTS: dict[RoutineTier, int] = {
    RoutineTier.R1: 1,
    RoutineTier.R2: 2,
    RoutineTier.R3: 3,
    RoutineTier.ROUTINE_PLUS: 4,
    RoutineTier.ON_DEMAND: 0,
}

DEFAULT_WALK_RATES: dict[WalkType, WalkRate] = {
    WalkType.COLLECTIVE: WalkRate("group_walk", Decimal("30"), 120, 4),
    WalkType.INDIVIDUAL: WalkRate("individual_walk", Decimal("50"), 120, 1),
    WalkType.RALLY: WalkRate("custom_walk", Decimal("70"), 240, 3),
    WalkType.CUSTOM: WalkRate("custom_walk", Decimal("45"), 120, 4),
}


@dataclass(frozen=True)
class PlanningPolicy:
    routine_walk_counts: dict[RoutineTier, int] = field(
        default_factory=lambda: dict(DEFAULT_ROUTINE_WALK_COUNTS)
    )
    walk_rates: dict[WalkType, WalkRate] = field(
        default_factory=lambda: dict(DEFAULT_WALK_RATES)
    )
    min_capacity: int = 1
    max_capacity: int = 6
    max_walks_per_week: int = 5
    consecutive_block_distance: int = 1
    near_capacity_percent: int = 75
    rally_capacity: int = 3
    free_cancellation_hours: int = 24
    partial_cancellation_hours: int = 6
    partial_charge_percent: int = 50

    def expected_walks(self, tier: RoutineTier) -> int:
        return self.routine_walk_counts.get(tier, 0)

    def rate_for(self, walk_type: WalkType) -> WalkRate:
        return self.walk_rates[walk_type]

    def price_for(self, walk_type: WalkType, price_override: Optional[Decimal] = None) -> Decimal:
        if price_override is not None:
            if price_override < 0:
                raise ValueError(f"Price override cannot be negative: {price_override}")
            return Decimal(price_override)
        return self.rate_for(walk_type).unit_price

    def max_capacity_for(self, walk_type: WalkType) -> int:
        if walk_type == WalkType.INDIVIDUAL:
            return 1
        return self.max_capacity

    def is_near_capacity(self, occupancy: int, capacity: int) -> bool:
        return capacity > 0 and occupancy * 100 >= capacity * self.near_capacity_percent


DEFAULT_POLICY = PlanningPolicy()


def policy_from_settings(settings: Settings) -> PlanningPolicy:
    return replace(
        DEFAULT_POLICY,
        min_capacity=settings.PLANNING_MIN_CAPACITY,
        max_capacity=settings.PLANNING_MAX_CAPACITY,
        max_walks_per_week=settings.PLANNING_MAX_WALKS_PER_WEEK,
        consecutive_block_distance=settings.PLANNING_CONSECUTIVE_BLOCK_DISTANCE,
        near_capacity_percent=settings.PLANNING_NEAR_CAPACITY_PERCENT,
        free_cancellation_hours=settings.CANCELLATION_FREE_NOTICE_HOURS,
        partial_cancellation_hours=settings.CANCELLATION_PARTIAL_NOTICE_HOURS,
        partial_charge_percent=settings.CANCELLATION_PARTIAL_CHARGE_PERCENT,
    )
