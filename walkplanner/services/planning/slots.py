"""
Slot id helpers.
Slot ids are "{DAYCODE}-B{1|2|3}", e.g. "LU-B1" for Monday morning.
"""

import re
from typing import Optional

from .types import (
    BLOCK_SCHEDULES,
    TIME_BLOCKS,
    WORK_DAYS,
    SlotTemplate,
    TimeBlock,
    WorkDay,
)

SLOT_ID_PATTERN = re.compile(r"^(LU|MA|ME|JE|VE)-B([1-3])$")


def slot_id(day: WorkDay, block: TimeBlock) -> str:
    return f"{day.value}-{block.value}"


def parse_slot_id(value: str) -> tuple[WorkDay, TimeBlock]:
    """
    Parse a slot id into (day, block).

    Raises:
        ValueError: if the id does not match the strict pattern
    """
    match = SLOT_ID_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid slot id: {value!r} (expected e.g. 'LU-B1')")
    return WorkDay(match.group(1)), TimeBlock(f"B{match.group(2)}")


def is_valid_slot_id(value: str) -> bool:
    return bool(SLOT_ID_PATTERN.match(value or ""))


def all_slot_ids() -> list[str]:
    """The 15 slot ids in enumeration order (day, then block)."""
    return [slot_id(day, block) for day in WORK_DAYS for block in TIME_BLOCKS]


def slot_order(value: str) -> int:
    """Enumeration index of a slot id, used as the stable tie-break."""
    day, block = parse_slot_id(value)
    return day.position * len(TIME_BLOCKS) + block.position


def block_distance(first: str, second: str) -> Optional[int]:
    """Distance in blocks between two slots on the same day, None across days."""
    day_a, block_a = parse_slot_id(first)
    day_b, block_b = parse_slot_id(second)
    if day_a != day_b:
        return None
    return abs(block_a.position - block_b.position)


def default_templates(default_capacity: int = 4) -> list[SlotTemplate]:
    """Build the 15 slot templates with the standard block schedule."""
    templates = []
    for day in WORK_DAYS:
        for block in TIME_BLOCKS:
            start, end = BLOCK_SCHEDULES[block]
            templates.append(SlotTemplate(
                slot_id=slot_id(day, block),
                day=day,
                block=block,
                start_time=start,
                end_time=end,
                pickup_minutes=30,
                walk_minutes=60,
                return_minutes=30,
                default_sector=None,
                default_capacity=default_capacity,
            ))
    return templates
