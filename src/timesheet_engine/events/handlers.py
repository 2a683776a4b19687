"""Entry point for ConfigurationChanged commands.

Commands for the same placement are serialized: the in-process lock orders
handlers sharing an event loop, and the unit of work is expected to take a
cross-process lock (see ``repositories.sql.sql_unit_of_work``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import date
from typing import Any
from uuid import UUID

from timesheet_engine.config import DEFAULT_ITERATION_CAP
from timesheet_engine.events.schemas import ConfigurationChangedMessage
from timesheet_engine.events.types import ConfigurationChanged
from timesheet_engine.repositories.base import Stores
from timesheet_engine.services.documents import DocumentFileRemover
from timesheet_engine.services.regeneration_service import (
    RegenerationResult,
    TimesheetRegenerationService,
)

logger = logging.getLogger(__name__)

UnitOfWork = Callable[[UUID], AbstractAsyncContextManager[Stores]]


class PlacementLocks:
    """One asyncio.Lock per placement, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: dict[UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, placement_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(placement_id, asyncio.Lock())
        self._users[placement_id] = self._users.get(placement_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[placement_id] -= 1
            if self._users[placement_id] == 0:
                del self._users[placement_id]
                del self._locks[placement_id]


class ConfigurationChangeHandler:
    """Runs timesheet regeneration for ConfigurationChanged commands.

    Usage:
        handler = ConfigurationChangeHandler(sql_unit_of_work, LocalDocumentFiles(path))
        result = await handler(event)
        result = await handler.handle_message(raw_json)
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        document_files: DocumentFileRemover,
        iteration_cap: int = DEFAULT_ITERATION_CAP,
        prefix_slug: str = "timesheet",
        today: Callable[[], date] = date.today,
        locks: PlacementLocks | None = None,
    ):
        self.unit_of_work = unit_of_work
        self.document_files = document_files
        self.iteration_cap = iteration_cap
        self.prefix_slug = prefix_slug
        self.today = today
        self.locks = locks or PlacementLocks()

    async def __call__(self, event: ConfigurationChanged) -> RegenerationResult:
        async with self.locks.hold(event.placement_id):
            async with self.unit_of_work(event.placement_id) as stores:
                service = TimesheetRegenerationService(
                    stores,
                    self.document_files,
                    iteration_cap=self.iteration_cap,
                    prefix_slug=self.prefix_slug,
                    today=self.today,
                )
                return await service.handle(event)

    async def handle_message(self, payload: str | bytes | dict[str, Any]) -> RegenerationResult:
        """Validate a raw queue message and handle it.

        Raises pydantic.ValidationError for malformed payloads and
        InvalidCycleType for unknown cycle types.
        """
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        message = ConfigurationChangedMessage.model_validate(payload)
        event = message.to_event()
        logger.debug("Received %s for placement %s", event.event_type, event.placement_id)
        return await self(event)
