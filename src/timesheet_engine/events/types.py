"""Commands consumed by the timesheet cycle engine.

Commands are immutable and serializable so they can travel through a
durable queue as well as be passed directly by the configuration-update
transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from timesheet_engine.calculators.hours import parse_hours
from timesheet_engine.calculators.types import CycleType

if TYPE_CHECKING:
    from timesheet_engine.repositories.base import Placement


@dataclass(frozen=True)
class TimesheetConfig:
    """Cycle configuration of a placement."""

    cycle_type: CycleType
    anchor_day: int | None
    timesheet_start_date: date
    default_hours: Decimal = Decimal("8")

    @classmethod
    def from_placement(cls, placement: Placement) -> TimesheetConfig:
        return cls(
            cycle_type=placement.cycle_type,
            anchor_day=placement.anchor_day,
            timesheet_start_date=placement.timesheet_start_date,
            default_hours=placement.default_hours,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimesheetConfig:
        start = data["timesheet_start_date"]
        return cls(
            cycle_type=CycleType.parse(data["cycle_type"]),
            anchor_day=data.get("anchor_day"),
            timesheet_start_date=start if isinstance(start, date) else date.fromisoformat(start),
            default_hours=parse_hours(data.get("default_hours", Decimal("8"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_type": self.cycle_type.value,
            "anchor_day": self.anchor_day,
            "timesheet_start_date": self.timesheet_start_date.isoformat(),
            "default_hours": str(self.default_hours),
        }


@dataclass(frozen=True)
class ConfigurationChanged:
    """A placement's timesheet configuration was updated."""

    placement_id: UUID
    updated_by: UUID | None
    old_config: TimesheetConfig
    new_config: TimesheetConfig

    @property
    def event_type(self) -> str:
        return "ConfigurationChanged"

    @property
    def requires_regeneration(self) -> bool:
        """True when the cycle shape or start moved; hours alone do not count."""
        old, new = self.old_config, self.new_config
        return (
            old.cycle_type != new.cycle_type
            or old.anchor_day != new.anchor_day
            or old.timesheet_start_date != new.timesheet_start_date
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "placement_id": str(self.placement_id),
            "updated_by": str(self.updated_by) if self.updated_by else None,
            "old_config": self.old_config.to_dict(),
            "new_config": self.new_config.to_dict(),
        }
