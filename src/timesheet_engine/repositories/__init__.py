"""Store protocols, records and their implementations."""

from timesheet_engine.repositories.base import (
    ApprovalConfiguration,
    ApprovalTrack,
    DayEntry,
    Placement,
    Stores,
    Timesheet,
    TimesheetDocument,
    VacationRecord,
)
from timesheet_engine.repositories.memory import InMemoryDatabase, ReferencePrefix

__all__ = [
    "ApprovalConfiguration",
    "ApprovalTrack",
    "DayEntry",
    "Placement",
    "Stores",
    "Timesheet",
    "TimesheetDocument",
    "VacationRecord",
    "InMemoryDatabase",
    "ReferencePrefix",
]
