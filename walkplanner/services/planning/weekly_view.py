"""
Weekly view aggregation.
Merges slot templates with the week's overrides and assignments into the
effective per-slot view every other component reads.
"""

from typing import Optional

from .slots import slot_order
from .types import (
    Assignment,
    EffectiveSlotView,
    SlotTemplate,
    WalkType,
    WeekOverride,
    WeeklyView,
)


def build_effective_slot(
    template: SlotTemplate,
    year: int,
    week: int,
    override: Optional[WeekOverride] = None,
    assignments: Optional[list[Assignment]] = None,
) -> EffectiveSlotView:
    """Right-biased merge: an override field wins whenever it is set."""
    walk_type = WalkType.COLLECTIVE
    capacity = template.default_capacity
    sector = template.default_sector
    is_blocked = False
    block_reason = None

    if override is not None:
        if override.walk_type is not None:
            walk_type = override.walk_type
        if override.capacity is not None:
            capacity = override.capacity
        if override.sector is not None:
            sector = override.sector
        is_blocked = override.is_blocked
        block_reason = override.block_reason

    return EffectiveSlotView(
        template=template,
        year=year,
        week=week,
        walk_type=walk_type,
        capacity=capacity,
        sector=sector,
        is_blocked=is_blocked,
        override=override,
        block_reason=block_reason,
        assignments=[a for a in (assignments or []) if a.slot_id == template.slot_id],
    )


def build_weekly_view(
    templates: list[SlotTemplate],
    overrides: list[WeekOverride],
    assignments: list[Assignment],
    year: int,
    week: int,
) -> WeeklyView:
    """
    Build the effective view of every slot for one ISO week.

    Overrides and assignments belonging to another week are ignored.
    """
    week_overrides = {
        o.slot_id: o for o in overrides if o.year == year and o.week == week
    }
    week_assignments = [a for a in assignments if a.year == year and a.week == week]

    slots = [
        build_effective_slot(
            template,
            year,
            week,
            override=week_overrides.get(template.slot_id),
            assignments=week_assignments,
        )
        for template in sorted(templates, key=lambda t: slot_order(t.slot_id))
    ]
    return WeeklyView(year=year, week=week, slots=slots)
