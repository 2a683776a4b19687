"""Pydantic schemas for inbound command payloads."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from timesheet_engine.calculators.hours import parse_hours
from timesheet_engine.calculators.types import CycleType
from timesheet_engine.events.types import ConfigurationChanged, TimesheetConfig


class TimesheetConfigPayload(BaseModel):
    """Timesheet configuration as sent by the configuration service."""

    model_config = ConfigDict(extra="ignore")

    cycle_type: str | int
    anchor_day: int | None = None
    timesheet_start_date: date
    default_hours: Decimal | str = Decimal("8")

    def to_config(self) -> TimesheetConfig:
        """Convert to the domain config; raises InvalidCycleType on bad types."""
        return TimesheetConfig(
            cycle_type=CycleType.parse(self.cycle_type),
            anchor_day=self.anchor_day,
            timesheet_start_date=self.timesheet_start_date,
            default_hours=parse_hours(self.default_hours),
        )


class ConfigurationChangedMessage(BaseModel):
    """Queue message announcing a placement configuration change."""

    model_config = ConfigDict(extra="ignore")

    placement_id: UUID
    updated_by: UUID | None = None
    old_config: TimesheetConfigPayload
    new_config: TimesheetConfigPayload

    def to_event(self) -> ConfigurationChanged:
        return ConfigurationChanged(
            placement_id=self.placement_id,
            updated_by=self.updated_by,
            old_config=self.old_config.to_config(),
            new_config=self.new_config.to_config(),
        )
