"""Timesheet regeneration after a placement's cycle configuration changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from timesheet_engine.calculators.cycle_calculator import validate_anchor_day
from timesheet_engine.config import DEFAULT_ITERATION_CAP
from timesheet_engine.events.types import ConfigurationChanged
from timesheet_engine.repositories.base import Placement, Stores
from timesheet_engine.services.cycle_generator import CycleGenerator
from timesheet_engine.services.documents import DocumentFileRemover, retire_documents

logger = logging.getLogger(__name__)


class PlacementNotFound(LookupError):
    """Raised when the placement named by a command does not exist."""

    def __init__(self, placement_id: UUID):
        self.placement_id = placement_id
        super().__init__(f"Placement {placement_id} not found")


@dataclass
class RegenerationResult:
    """What a regeneration run changed."""

    placement_id: UUID
    skipped: bool = False
    truncated_ids: list[UUID] = field(default_factory=list)
    retired_ids: list[UUID] = field(default_factory=list)
    created_ids: list[UUID] = field(default_factory=list)
    parked_entries: int = 0
    repointed_entries: int = 0
    created_entries: int = 0
    iterations: int = 0
    aborted: bool = False
    error: str | None = None

    @property
    def reconciled_ids(self) -> list[UUID]:
        return [*self.truncated_ids, *self.retired_ids]


class RegenerationAborted(RuntimeError):
    """Raised when a store failure stopped regeneration part way.

    Work checkpointed before the failure is kept; ``result`` describes it.
    Re-running the same command completes the reconciliation.
    """

    def __init__(self, result: RegenerationResult, cause: BaseException):
        self.result = result
        super().__init__(
            f"Regeneration of placement {result.placement_id} aborted after "
            f"{result.iterations} cycle(s): {cause}"
        )


class TimesheetRegenerationService:
    """Reconciles a placement's timesheets with a new cycle configuration.

    Steps:
    1. Truncate the timesheet straddling the new start date; soft-delete
       (with documents) every timesheet starting on or after it. Day entries
       no longer inside a live timesheet are parked on the placement.
    2. Generate cycles forward from the new start until the next cycle would
       start after today, the placement has ended, or the iteration cap is hit.
       Generated cycles adopt parked entries for their dates.
    3. Point ``ts_next_cycle_start`` at the first date not generated, so due
       generation picks up where this run stopped, and clear the regenerate
       flag.

    The run is not atomic: each cycle is checkpointed as it completes, and a
    failure leaves earlier cycles in place (see RegenerationAborted).
    """

    def __init__(
        self,
        stores: Stores,
        document_files: DocumentFileRemover,
        iteration_cap: int = DEFAULT_ITERATION_CAP,
        prefix_slug: str = "timesheet",
        today: Callable[[], date] = date.today,
    ):
        if iteration_cap < 1:
            raise ValueError("iteration_cap must be at least 1")
        self.stores = stores
        self.document_files = document_files
        self.iteration_cap = iteration_cap
        self.generator = CycleGenerator(stores, prefix_slug=prefix_slug)
        self.today = today

    async def handle(self, event: ConfigurationChanged) -> RegenerationResult:
        """Run reconciliation for one configuration change.

        Raises:
            InvalidCycleType / InvalidAnchorDay: new config unusable; nothing written.
            PlacementNotFound: unknown placement; nothing written.
            RegenerationAborted: a store failed mid-run.
        """
        result = RegenerationResult(placement_id=event.placement_id)
        if not event.requires_regeneration:
            logger.debug("No cycle change for placement %s; skipping", event.placement_id)
            result.skipped = True
            return result

        new_config = event.new_config
        validate_anchor_day(new_config.cycle_type, new_config.anchor_day)

        placement = await self.stores.placements.find(event.placement_id)
        if placement is None:
            raise PlacementNotFound(event.placement_id)

        try:
            await self._retire_obsolete(placement, event, result)
            await self.stores.commit_checkpoint()
            await self._regenerate(placement, event, result)
            await self.stores.placements.update(placement.id, regenerate_timesheet=False)
            await self.stores.commit_checkpoint()
        except Exception as e:
            result.aborted = True
            result.error = str(e)
            logger.exception(
                "Regeneration of placement %s aborted after %d cycle(s)",
                placement.id,
                result.iterations,
            )
            raise RegenerationAborted(result, e) from e

        logger.info(
            "Regenerated placement %s: %d truncated, %d retired, %d created, "
            "%d entries parked, %d moved, %d created",
            placement.id,
            len(result.truncated_ids),
            len(result.retired_ids),
            len(result.created_ids),
            result.parked_entries,
            result.repointed_entries,
            result.created_entries,
        )
        return result

    async def _retire_obsolete(
        self,
        placement: Placement,
        event: ConfigurationChanged,
        result: RegenerationResult,
    ) -> None:
        new_start = event.new_config.timesheet_start_date
        new_end = new_start - timedelta(days=1)
        now = datetime.now(timezone.utc)

        timesheets = await self.stores.timesheets.find_active(placement.id, new_start)
        for timesheet in timesheets:
            if timesheet.from_date < new_start <= timesheet.to_date:
                await self.stores.timesheets.update(
                    timesheet.id,
                    to_date=new_end,
                    updated_at=now,
                    updated_by=event.updated_by,
                )
                parked = await self.stores.day_entries.park(
                    timesheet.id, placement.id, after=new_end
                )
                result.truncated_ids.append(timesheet.id)
                logger.info(
                    "Truncated timesheet %s to end %s; parked %d day entries",
                    timesheet.reference_id,
                    new_end,
                    parked,
                )
            else:
                await self.stores.timesheets.update(
                    timesheet.id,
                    deleted_at=now,
                    updated_at=now,
                    updated_by=event.updated_by,
                )
                await retire_documents(
                    self.stores.documents, self.document_files, timesheet.id, now
                )
                parked = await self.stores.day_entries.park(timesheet.id, placement.id)
                result.retired_ids.append(timesheet.id)
                logger.info(
                    "Retired timesheet %s; parked %d day entries",
                    timesheet.reference_id,
                    parked,
                )
            result.parked_entries += parked

    async def _regenerate(
        self,
        placement: Placement,
        event: ConfigurationChanged,
        result: RegenerationResult,
    ) -> None:
        new_config = event.new_config
        start = new_config.timesheet_start_date
        if not new_config.cycle_type.is_periodic:
            logger.info("Placement %s has no periodic cycle; nothing to generate", placement.id)
            await self.stores.placements.update(placement.id, ts_next_cycle_start=start)
            return

        today = self.today()
        for _ in range(self.iteration_cap):
            if start > today:
                break
            if placement.end_date is not None and start > placement.end_date:
                break

            cycle = await self.generator.generate(placement, new_config, start)
            result.iterations += 1
            if cycle.timesheet is not None:
                result.created_ids.append(cycle.timesheet.id)
            result.repointed_entries += cycle.repointed_entries
            result.created_entries += cycle.created_entries
            await self.stores.commit_checkpoint()

            start = cycle.boundary.next_start
        else:
            if start <= today and (placement.end_date is None or start <= placement.end_date):
                logger.warning(
                    "Iteration cap %d reached for placement %s; next cycle starts %s",
                    self.iteration_cap,
                    placement.id,
                    start,
                )

        # First date without a cycle under the new configuration
        await self.stores.placements.update(placement.id, ts_next_cycle_start=start)
