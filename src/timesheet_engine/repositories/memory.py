"""In-process store implementations.

Useful for tests, demos and dry runs. Records are copied on the way in and
out so callers cannot mutate stored state behind the store's back.
"""

from __future__ import annotations

import dataclasses
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from timesheet_engine.repositories.base import (
    ApprovalConfiguration,
    ApprovalTrack,
    DayEntry,
    Placement,
    Stores,
    Timesheet,
    TimesheetDocument,
    VacationRecord,
)


@dataclass(frozen=True)
class ReferencePrefix:
    """Reference id prefix configuration (e.g. ``TS-`` starting at 1)."""

    prefix_name: str
    separator: str = "-"
    number: int = 1


@dataclass
class InMemoryDatabase:
    """Tables shared by the in-memory stores."""

    placements: dict[UUID, Placement] = field(default_factory=dict)
    timesheets: dict[UUID, Timesheet] = field(default_factory=dict)
    day_entries: dict[UUID, DayEntry] = field(default_factory=dict)
    documents: dict[UUID, TimesheetDocument] = field(default_factory=dict)
    vacations: list[VacationRecord] = field(default_factory=list)
    prefixes: dict[str, ReferencePrefix] = field(
        default_factory=lambda: {"timesheet": ReferencePrefix(prefix_name="TS")}
    )
    approval_configs: dict[UUID, ApprovalConfiguration] = field(default_factory=dict)
    approval_tracks: list[ApprovalTrack] = field(default_factory=list)

    def live_timesheets(self, placement_id: UUID) -> list[Timesheet]:
        """Non-deleted timesheets of a placement ordered by start date."""
        rows = [
            dataclasses.replace(ts)
            for ts in self.timesheets.values()
            if ts.placement_id == placement_id and ts.deleted_at is None
        ]
        return sorted(rows, key=lambda ts: ts.from_date)

    def entries_for(self, timesheet_id: UUID) -> list[DayEntry]:
        rows = [
            dataclasses.replace(entry)
            for entry in self.day_entries.values()
            if entry.timesheet_id == timesheet_id
        ]
        return sorted(rows, key=lambda entry: entry.date)

    def parked_entries(self, placement_id: UUID) -> list[DayEntry]:
        rows = [
            dataclasses.replace(entry)
            for entry in self.day_entries.values()
            if entry.is_parked and entry.placement_id == placement_id
        ]
        return sorted(rows, key=lambda entry: entry.date)

    def misplaced_entries(self) -> list[DayEntry]:
        """Entries dated outside the range of the timesheet that holds them."""
        return [
            dataclasses.replace(entry)
            for entry in self.day_entries.values()
            if not entry.is_parked
            and not self.timesheets[entry.timesheet_id].covers(entry.date)
        ]

    def stores(self) -> Stores:
        """Build a full set of stores over this database."""
        return Stores(
            placements=InMemoryPlacementStore(self),
            timesheets=InMemoryTimesheetStore(self),
            day_entries=InMemoryDayEntryStore(self),
            documents=InMemoryDocumentStore(self),
            vacations=InMemoryVacationStore(self),
            references=InMemoryReferenceIdSequencer(self),
            approval_configs=InMemoryApprovalConfigStore(self),
            approval_tracks=InMemoryApprovalTrackStore(self),
        )

    @asynccontextmanager
    async def unit_of_work(self, placement_id: UUID) -> AsyncIterator[Stores]:
        """Same shape as the SQL unit of work; there is nothing to lock or commit."""
        yield self.stores()


def _apply(record: Any, fields: dict[str, Any]) -> None:
    for name, value in fields.items():
        if not hasattr(record, name):
            raise AttributeError(f"{type(record).__name__} has no field '{name}'")
        setattr(record, name, value)


class InMemoryPlacementStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def find(self, placement_id: UUID) -> Placement | None:
        placement = self.db.placements.get(placement_id)
        return dataclasses.replace(placement) if placement else None

    async def update(self, placement_id: UUID, **fields: Any) -> None:
        _apply(self.db.placements[placement_id], fields)


class InMemoryTimesheetStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def get(self, timesheet_id: UUID) -> Timesheet | None:
        timesheet = self.db.timesheets.get(timesheet_id)
        return dataclasses.replace(timesheet) if timesheet else None

    async def find_active(self, placement_id: UUID, to_on_or_after: date) -> list[Timesheet]:
        rows = [
            dataclasses.replace(ts)
            for ts in self.db.timesheets.values()
            if ts.placement_id == placement_id
            and ts.deleted_at is None
            and ts.to_date >= to_on_or_after
        ]
        return sorted(rows, key=lambda ts: ts.created_at)

    async def find_exact(
        self, placement_id: UUID, from_date: date, to_date: date
    ) -> Timesheet | None:
        for ts in self.db.timesheets.values():
            if (
                ts.placement_id == placement_id
                and ts.deleted_at is None
                and ts.from_date == from_date
                and ts.to_date == to_date
            ):
                return dataclasses.replace(ts)
        return None

    async def store(self, **fields: Any) -> Timesheet:
        fields.setdefault("id", uuid4())
        fields.setdefault("created_at", datetime.now(timezone.utc))
        timesheet = Timesheet(**fields)
        self.db.timesheets[timesheet.id] = timesheet
        return dataclasses.replace(timesheet)

    async def update(self, timesheet_id: UUID, **fields: Any) -> None:
        _apply(self.db.timesheets[timesheet_id], fields)


class InMemoryDayEntryStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def park(
        self, timesheet_id: UUID, placement_id: UUID, after: date | None = None
    ) -> int:
        moved = 0
        for entry in self.db.day_entries.values():
            if entry.timesheet_id != timesheet_id:
                continue
            if after is not None and entry.date <= after:
                continue
            entry.timesheet_id = None
            entry.placement_id = placement_id
            moved += 1
        return moved

    async def find_parked(self, placement_id: UUID, day: date) -> DayEntry | None:
        for entry in self.db.day_entries.values():
            if entry.is_parked and entry.placement_id == placement_id and entry.date == day:
                return dataclasses.replace(entry)
        return None

    async def find_by_timesheet(self, timesheet_id: UUID) -> list[DayEntry]:
        return self.db.entries_for(timesheet_id)

    async def store(self, **fields: Any) -> DayEntry:
        fields.setdefault("id", uuid4())
        entry = DayEntry(**fields)
        for existing in self.db.day_entries.values():
            if existing.timesheet_id == entry.timesheet_id and existing.date == entry.date:
                raise ValueError(
                    f"Day entry for {entry.date} already exists on timesheet {entry.timesheet_id}"
                )
        self.db.day_entries[entry.id] = entry
        return dataclasses.replace(entry)

    async def update(self, entry_id: UUID, **fields: Any) -> None:
        _apply(self.db.day_entries[entry_id], fields)


class InMemoryDocumentStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def find(self, timesheet_id: UUID) -> list[TimesheetDocument]:
        return [
            dataclasses.replace(doc)
            for doc in self.db.documents.values()
            if doc.timesheet_id == timesheet_id and doc.deleted_at is None
        ]

    async def update(self, document_id: UUID, **fields: Any) -> None:
        _apply(self.db.documents[document_id], fields)


class InMemoryVacationStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def is_on_vacation(self, employee_id: UUID, day: date) -> bool:
        return any(
            vacation.employee_id == employee_id and vacation.covers(day)
            for vacation in self.db.vacations
        )


class InMemoryReferenceIdSequencer:
    """Prefix + running count over all timesheets, skipping ids in use."""

    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def next(self, prefix_slug: str) -> str:
        prefix = self.db.prefixes.get(prefix_slug)
        if prefix is None:
            raise LookupError(f"No reference prefix configured for '{prefix_slug}'")
        in_use = {ts.reference_id for ts in self.db.timesheets.values()}
        count = len(self.db.timesheets)
        while True:
            reference_id = f"{prefix.prefix_name}{prefix.separator}{count + prefix.number}"
            if reference_id not in in_use:
                return reference_id
            count += 1


class InMemoryApprovalConfigStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def find(self, approval_id: UUID) -> ApprovalConfiguration | None:
        return self.db.approval_configs.get(approval_id)


class InMemoryApprovalTrackStore:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def append(self, track: ApprovalTrack) -> None:
        self.db.approval_tracks.append(track)

    async def find(self, timesheet_id: UUID) -> list[ApprovalTrack]:
        return [t for t in self.db.approval_tracks if t.timesheet_id == timesheet_id]
