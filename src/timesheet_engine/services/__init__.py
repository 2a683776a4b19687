"""Timesheet engine services."""

from timesheet_engine.services.state_machine import (
    ApprovalStateMachine,
    InvalidTransitionError,
    NotAuthorizedApprover,
    TimesheetStatus,
)
from timesheet_engine.services.cycle_generator import CycleGenerator, GeneratedCycle
from timesheet_engine.services.regeneration_service import (
    PlacementNotFound,
    RegenerationAborted,
    RegenerationResult,
    TimesheetRegenerationService,
)
from timesheet_engine.services.generation_service import TimesheetGenerationService
from timesheet_engine.services.approval_service import (
    ApprovalNotConfigured,
    ApprovalService,
    TimesheetNotFound,
)
from timesheet_engine.services.documents import LocalDocumentFiles, retire_documents

__all__ = [
    "ApprovalStateMachine",
    "InvalidTransitionError",
    "NotAuthorizedApprover",
    "TimesheetStatus",
    "CycleGenerator",
    "GeneratedCycle",
    "PlacementNotFound",
    "RegenerationAborted",
    "RegenerationResult",
    "TimesheetRegenerationService",
    "TimesheetGenerationService",
    "ApprovalNotConfigured",
    "ApprovalService",
    "TimesheetNotFound",
    "LocalDocumentFiles",
    "retire_documents",
]
