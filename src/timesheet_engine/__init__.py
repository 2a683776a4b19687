"""Timesheet cycle engine: cycle boundaries, regeneration and approval."""

__version__ = "0.1.0"
