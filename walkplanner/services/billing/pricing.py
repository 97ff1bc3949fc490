"""
Price attribution per walk type. Line items only, no money collection.
"""

from decimal import Decimal
from typing import Optional

from walkplanner.services.planning.policy import DEFAULT_POLICY, PlanningPolicy
from walkplanner.services.planning.types import WalkType, WeeklyView


def unit_price_for(
    walk_type: WalkType,
    price_override: Optional[Decimal] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> Decimal:
    return policy.price_for(walk_type, price_override)


def estimate_week_revenue(view: WeeklyView, policy: PlanningPolicy = DEFAULT_POLICY) -> Decimal:
    """Sum of list prices of every assignment in the week, by effective walk type."""
    total = Decimal("0")
    for slot in view.slots:
        total += policy.rate_for(slot.walk_type).unit_price * slot.occupancy
    return total
