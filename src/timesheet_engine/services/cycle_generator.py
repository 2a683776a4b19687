"""Creation of one timesheet cycle with its day entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from timesheet_engine.calculators.cycle_calculator import compute_cycle_boundary
from timesheet_engine.calculators.period_segmenter import PeriodSegmenter
from timesheet_engine.calculators.types import CycleBoundary, is_weekend
from timesheet_engine.events.types import TimesheetConfig
from timesheet_engine.repositories.base import Placement, Stores, Timesheet
from timesheet_engine.services.state_machine import TimesheetStatus

logger = logging.getLogger(__name__)

ZERO_HOURS = Decimal("0")


@dataclass
class GeneratedCycle:
    """Outcome of generating one cycle."""

    boundary: CycleBoundary
    timesheet: Timesheet | None = None  # None when the cycle already existed
    repointed_entries: int = 0
    created_entries: int = 0

    @property
    def created(self) -> bool:
        return self.timesheet is not None


class CycleGenerator:
    """Creates the timesheet for one cycle of a placement.

    Day entries parked on the placement (hours recorded on a timesheet that
    was since truncated or retired) are moved to the new timesheet; missing
    days get default hours, or zero on weekends and vacation days.
    """

    def __init__(self, stores: Stores, prefix_slug: str = "timesheet"):
        self.stores = stores
        self.prefix_slug = prefix_slug

    async def generate(
        self,
        placement: Placement,
        config: TimesheetConfig,
        start_date: date,
    ) -> GeneratedCycle:
        boundary = compute_cycle_boundary(
            config.cycle_type,
            config.anchor_day,
            start_date,
            hard_end_date=placement.end_date,
        )

        existing = await self.stores.timesheets.find_exact(
            placement.id, boundary.start_date, boundary.end_date
        )
        if existing is not None:
            logger.debug(
                "Timesheet %s already covers %s..%s for placement %s",
                existing.reference_id,
                boundary.start_date,
                boundary.end_date,
                placement.id,
            )
            return GeneratedCycle(boundary=boundary)

        reference_id = await self.stores.references.next(self.prefix_slug)
        timesheet = await self.stores.timesheets.store(
            placement_id=placement.id,
            reference_id=reference_id,
            from_date=boundary.start_date,
            to_date=boundary.end_date,
            status=TimesheetStatus.DRAFTED.value,
            approval_level=1,
        )
        result = GeneratedCycle(boundary=boundary, timesheet=timesheet)

        for week in PeriodSegmenter(boundary.start_date, boundary.end_date):
            for day in week.dates():
                entry = await self.stores.day_entries.find_parked(placement.id, day)
                if entry is not None:
                    await self.stores.day_entries.update(
                        entry.id, timesheet_id=timesheet.id, placement_id=None
                    )
                    result.repointed_entries += 1
                    continue

                hours = await self._default_hours(placement.employee_id, day, config.default_hours)
                await self.stores.day_entries.store(
                    timesheet_id=timesheet.id,
                    date=day,
                    total_hours=hours,
                    ot_hours=ZERO_HOURS,
                    billable_hours=hours,
                )
                result.created_entries += 1

        await self.stores.placements.update(
            placement.id, ts_next_cycle_start=boundary.next_start
        )

        logger.info(
            "Created timesheet %s (%s..%s) for placement %s: %d entries moved, %d created",
            reference_id,
            boundary.start_date,
            boundary.end_date,
            placement.id,
            result.repointed_entries,
            result.created_entries,
        )
        return result

    async def _default_hours(self, employee_id: UUID, day: date, default_hours: Decimal) -> Decimal:
        if is_weekend(day):
            return ZERO_HOURS
        if await self.stores.vacations.is_on_vacation(employee_id, day):
            return ZERO_HOURS
        return default_hours
