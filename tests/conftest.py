"""Pytest fixtures for timesheet engine tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest

from timesheet_engine.calculators.types import CycleType
from timesheet_engine.events.types import ConfigurationChanged, TimesheetConfig
from timesheet_engine.repositories.base import (
    DayEntry,
    Placement,
    Stores,
    Timesheet,
    TimesheetDocument,
)
from timesheet_engine.repositories.memory import InMemoryDatabase
from timesheet_engine.services.state_machine import TimesheetStatus

TODAY = date(2024, 3, 14)


class RecordingDocumentFiles:
    """Document file remover that records paths and can be told to fail."""

    def __init__(self, failing: set[str] | None = None):
        self.removed: list[str] = []
        self.failing = failing or set()

    async def remove(self, document_path: str) -> None:
        if document_path in self.failing:
            raise FileNotFoundError(document_path)
        self.removed.append(document_path)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def stores(db: InMemoryDatabase) -> Stores:
    return db.stores()


@pytest.fixture
def document_files() -> RecordingDocumentFiles:
    return RecordingDocumentFiles()


@pytest.fixture
def make_placement(db: InMemoryDatabase):
    """Factory adding a placement to the in-memory database."""

    def _make(**overrides: Any) -> Placement:
        fields: dict[str, Any] = {
            "id": uuid4(),
            "employee_id": uuid4(),
            "timesheet_start_date": date(2024, 3, 1),
            "cycle_type": CycleType.BI_WEEKLY,
            "anchor_day": 5,
            "default_hours": Decimal("8"),
        }
        fields.update(overrides)
        placement = Placement(**fields)
        db.placements[placement.id] = placement
        return placement

    return _make


@pytest.fixture
def make_timesheet(db: InMemoryDatabase):
    """Factory adding a timesheet, optionally with hours for every day."""

    def _make(
        placement: Placement,
        from_date: date,
        to_date: date,
        hours: Decimal | None = None,
        **overrides: Any,
    ) -> Timesheet:
        fields: dict[str, Any] = {
            "id": uuid4(),
            "placement_id": placement.id,
            "from_date": from_date,
            "to_date": to_date,
            "status": TimesheetStatus.DRAFTED.value,
            "approval_level": 1,
            "reference_id": f"TS-{len(db.timesheets) + 1}",
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        timesheet = Timesheet(**fields)
        db.timesheets[timesheet.id] = timesheet

        if hours is not None:
            day = from_date
            while day <= to_date:
                entry = DayEntry(
                    id=uuid4(),
                    timesheet_id=timesheet.id,
                    date=day,
                    total_hours=hours,
                    billable_hours=hours,
                )
                db.day_entries[entry.id] = entry
                day += timedelta(days=1)
        return timesheet

    return _make


@pytest.fixture
def make_document(db: InMemoryDatabase):
    def _make(timesheet: Timesheet, path: str, remote_stored: bool = False) -> TimesheetDocument:
        document = TimesheetDocument(
            id=uuid4(),
            timesheet_id=timesheet.id,
            document_path=path,
            remote_stored=remote_stored,
        )
        db.documents[document.id] = document
        return document

    return _make


@pytest.fixture
def config_change():
    return build_config_change


def build_config_change(
    placement: Placement,
    cycle_type: CycleType,
    anchor_day: int | None,
    start: date,
    updated_by: UUID | None = None,
    default_hours: Decimal = Decimal("8"),
) -> ConfigurationChanged:
    """Build a ConfigurationChanged event from a placement's current config."""
    return ConfigurationChanged(
        placement_id=placement.id,
        updated_by=updated_by,
        old_config=TimesheetConfig.from_placement(placement),
        new_config=TimesheetConfig(
            cycle_type=cycle_type,
            anchor_day=anchor_day,
            timesheet_start_date=start,
            default_hours=default_hours,
        ),
    )
