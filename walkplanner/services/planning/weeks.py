"""
ISO week helpers.
Weeks start on Monday; week 1 contains the year's first Thursday.
"""

from datetime import date, timedelta

from .types import WorkDay


def iso_weeks_in_year(year: int) -> int:
    """52 or 53. Dec 28th always falls in the last ISO week."""
    return date(year, 12, 28).isocalendar()[1]


def validate_week(year: int, week: int) -> None:
    """
    Raises:
        ValueError: if week is outside 1..iso_weeks_in_year(year)
    """
    if not 1 <= year <= 9999:
        raise ValueError(f"Invalid year: {year}")
    max_week = iso_weeks_in_year(year)
    if not 1 <= week <= max_week:
        raise ValueError(f"Invalid ISO week {week} for {year} (1-{max_week})")


def is_valid_week(year: int, week: int) -> bool:
    try:
        validate_week(year, week)
    except ValueError:
        return False
    return True


def monday_of_week(year: int, week: int) -> date:
    validate_week(year, week)
    return date.fromisocalendar(year, week, 1)


def slot_date(year: int, week: int, day: WorkDay) -> date:
    """Calendar date of a work day within an ISO week."""
    return monday_of_week(year, week) + timedelta(days=day.position)


def iso_week_of(value: date) -> tuple[int, int]:
    """(ISO year, ISO week) of a date."""
    iso = value.isocalendar()
    return iso[0], iso[1]
