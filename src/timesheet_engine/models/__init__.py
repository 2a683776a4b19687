"""SQLAlchemy ORM models."""

from timesheet_engine.models.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin
from timesheet_engine.models.placement import (
    ApprovalLevel,
    ApprovalSetting,
    ApprovalUser,
    EmployeeVacation,
    Placement,
)
from timesheet_engine.models.timesheet import (
    Prefix,
    Timesheet,
    TimesheetApprovalTrack,
    TimesheetDocument,
    TimesheetHour,
)

__all__ = [
    "ApprovalLevel",
    "ApprovalSetting",
    "ApprovalUser",
    "AuditMixin",
    "Base",
    "EmployeeVacation",
    "Placement",
    "Prefix",
    "SoftDeleteMixin",
    "Timesheet",
    "TimesheetApprovalTrack",
    "TimesheetDocument",
    "TimesheetHour",
    "TimestampMixin",
]
