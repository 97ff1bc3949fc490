"""Enums shared by the database models and the planning logic."""

from enum import Enum


class WorkDay(str, Enum):
    MONDAY = "LU"
    TUESDAY = "MA"
    WEDNESDAY = "ME"
    THURSDAY = "JE"
    FRIDAY = "VE"

    @property
    def position(self) -> int:
        return WORK_DAYS.index(self)


class TimeBlock(str, Enum):
    B1 = "B1"
    B2 = "B2"
    B3 = "B3"

    @property
    def position(self) -> int:
        return TIME_BLOCKS.index(self)


class WalkType(str, Enum):
    COLLECTIVE = "COLLECTIVE"
    INDIVIDUAL = "INDIVIDUAL"
    RALLY = "RALLY"
    CUSTOM = "CUSTOM"


class RoutineTier(str, Enum):
    R1 = "R1"
    R2 = "R2"
    R3 = "R3"
    ROUTINE_PLUS = "ROUTINE_PLUS"
    ON_DEMAND = "ON_DEMAND"


class TimePreference(str, Enum):
    MORNING = "MORNING"
    MIDDAY = "MIDDAY"
    AFTERNOON = "AFTERNOON"
    INDIFFERENT = "INDIFFERENT"


class AbsenceType(str, Enum):
    OWNER_VACATION = "OWNER_VACATION"
    DOG_SICK = "DOG_SICK"
    DOG_IN_HEAT = "DOG_IN_HEAT"
    VET_APPOINTMENT = "VET_APPOINTMENT"
    FAMILY_EVENT = "FAMILY_EVENT"
    WALKER_ABSENT = "WALKER_ABSENT"
    EXTREME_WEATHER = "EXTREME_WEATHER"
    OTHER = "OTHER"


class CancellationPolicy(str, Enum):
    FULL_REFUND = "FULL_REFUND"
    PARTIAL_CHARGE = "PARTIAL_CHARGE"
    FULL_CHARGE = "FULL_CHARGE"
    RESCHEDULED = "RESCHEDULED"
    PACKAGE_CREDIT = "PACKAGE_CREDIT"


WORK_DAYS: list[WorkDay] = list(WorkDay)
TIME_BLOCKS: list[TimeBlock] = list(TimeBlock)
