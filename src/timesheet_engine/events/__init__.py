"""Timesheet configuration commands.

The handler lives in ``timesheet_engine.events.handlers``; it depends on the
services package, which itself imports these types.
"""

from timesheet_engine.events.types import ConfigurationChanged, TimesheetConfig
from timesheet_engine.events.schemas import ConfigurationChangedMessage, TimesheetConfigPayload

__all__ = [
    "ConfigurationChanged",
    "TimesheetConfig",
    "ConfigurationChangedMessage",
    "TimesheetConfigPayload",
]
