from walkplanner.db.database import Base

# Import models
from walkplanner.db.models.dogs import Owners, Dogs
from walkplanner.db.models.slot_templates import SlotTemplates
from walkplanner.db.models.week_overrides import WeekOverrides
from walkplanner.db.models.dog_routines import DogRoutines
from walkplanner.db.models.assignments import Assignments
from walkplanner.db.models.rally_events import RallyEvents, RallyParticipants
from walkplanner.db.models.billable_walks import BillableWalks
from walkplanner.db.models.absences import AbsenceRecords, VacationPeriods

__all__ = [
    "Base",
    # Collaborator records
    "Owners",
    "Dogs",
    # Planning
    "SlotTemplates",
    "WeekOverrides",
    "DogRoutines",
    "Assignments",
    "RallyEvents",
    "RallyParticipants",
    "VacationPeriods",
    "AbsenceRecords",
    # Billing ledger
    "BillableWalks",
]
