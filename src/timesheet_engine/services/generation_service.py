"""Scheduled generation of timesheets for cycles that have come due."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from uuid import UUID

from timesheet_engine.config import DEFAULT_ITERATION_CAP
from timesheet_engine.events.types import TimesheetConfig
from timesheet_engine.repositories.base import Stores, Timesheet
from timesheet_engine.services.cycle_generator import CycleGenerator
from timesheet_engine.services.regeneration_service import PlacementNotFound

logger = logging.getLogger(__name__)


class TimesheetGenerationService:
    """Creates every cycle of a placement that has started by today.

    Generation resumes at ``ts_next_cycle_start`` (or the timesheet start
    date for a fresh placement) and stops at today or the placement end
    date, whichever comes first. Entries parked by an earlier regeneration
    are adopted by the cycles that cover them.
    """

    def __init__(
        self,
        stores: Stores,
        iteration_cap: int = DEFAULT_ITERATION_CAP,
        prefix_slug: str = "timesheet",
        today: Callable[[], date] = date.today,
    ):
        self.stores = stores
        self.iteration_cap = iteration_cap
        self.generator = CycleGenerator(stores, prefix_slug=prefix_slug)
        self.today = today

    async def generate_due_timesheets(self, placement_id: UUID) -> list[Timesheet]:
        placement = await self.stores.placements.find(placement_id)
        if placement is None:
            raise PlacementNotFound(placement_id)

        config = TimesheetConfig.from_placement(placement)
        if not config.cycle_type.is_periodic:
            return []

        limit = self.today()
        if placement.end_date is not None and placement.end_date < limit:
            limit = placement.end_date

        start = placement.ts_next_cycle_start or placement.timesheet_start_date
        created: list[Timesheet] = []
        for _ in range(self.iteration_cap):
            if start > limit:
                break
            cycle = await self.generator.generate(placement, config, start)
            if cycle.timesheet is not None:
                created.append(cycle.timesheet)
            await self.stores.commit_checkpoint()
            start = cycle.boundary.next_start

        if created:
            logger.info(
                "Generated %d due timesheet(s) for placement %s", len(created), placement_id
            )
        return created
