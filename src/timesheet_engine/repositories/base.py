"""Records and store protocols consumed by the timesheet services.

Services depend only on these protocols. ``repositories.sql`` implements
them over SQLAlchemy; ``repositories.memory`` keeps everything in process.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

from timesheet_engine.calculators.types import CycleType


@dataclass
class Placement:
    """Placement fields the cycle engine reads and maintains."""

    id: UUID
    employee_id: UUID
    timesheet_start_date: date
    cycle_type: CycleType
    anchor_day: int | None = None
    default_hours: Decimal = Decimal("8")
    end_date: date | None = None
    ts_next_cycle_start: date | None = None
    regenerate_timesheet: bool = False
    timesheet_approval_id: UUID | None = None


@dataclass
class Timesheet:
    """A timesheet covering the inclusive range ``[from_date, to_date]``."""

    id: UUID
    placement_id: UUID
    from_date: date
    to_date: date
    status: str
    approval_level: int
    reference_id: str
    created_at: datetime
    deleted_at: datetime | None = None
    comments: str | None = None
    submitted_on: datetime | None = None
    approved_on: datetime | None = None
    updated_at: datetime | None = None
    updated_by: UUID | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date


@dataclass
class DayEntry:
    """Hours recorded for one date of a timesheet.

    An entry whose timesheet was truncated or retired is parked: it loses its
    timesheet and is held by the placement until a cycle covering its date
    adopts it.
    """

    id: UUID
    timesheet_id: UUID | None
    date: date
    total_hours: Decimal
    ot_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    placement_id: UUID | None = None

    @property
    def is_parked(self) -> bool:
        return self.timesheet_id is None


@dataclass
class TimesheetDocument:
    """Uploaded document attached to a timesheet."""

    id: UUID
    timesheet_id: UUID
    document_path: str
    remote_stored: bool = False
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class VacationRecord:
    """Employee vacation, inclusive of both dates."""

    employee_id: UUID
    from_date: date
    to_date: date

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date


@dataclass
class ApprovalConfiguration:
    """Number of approval levels and the approvers of each level."""

    id: UUID
    approval_count: int
    approvers: dict[int, set[UUID]] = field(default_factory=dict)

    def is_approver(self, level: int, employee_id: UUID) -> bool:
        return employee_id in self.approvers.get(level, set())


@dataclass(frozen=True)
class ApprovalTrack:
    """Append-only audit entry of an approval transition."""

    id: UUID
    timesheet_id: UUID
    level: int
    actor_id: UUID
    decision: str
    from_status: str
    to_status: str
    created_at: datetime
    comment: str | None = None


class PlacementStore(Protocol):
    async def find(self, placement_id: UUID) -> Placement | None: ...

    async def update(self, placement_id: UUID, **fields: Any) -> None: ...


class TimesheetStore(Protocol):
    async def get(self, timesheet_id: UUID) -> Timesheet | None: ...

    async def find_active(self, placement_id: UUID, to_on_or_after: date) -> list[Timesheet]:
        """Non-deleted timesheets with ``to >= to_on_or_after``, oldest first."""
        ...

    async def find_exact(
        self, placement_id: UUID, from_date: date, to_date: date
    ) -> Timesheet | None:
        """Non-deleted timesheet spanning exactly ``[from_date, to_date]``."""
        ...

    async def store(self, **fields: Any) -> Timesheet: ...

    async def update(self, timesheet_id: UUID, **fields: Any) -> None: ...


class DayEntryStore(Protocol):
    async def park(
        self, timesheet_id: UUID, placement_id: UUID, after: date | None = None
    ) -> int:
        """Detach a timesheet's entries (only those dated after ``after`` when
        given) into the placement's parked pool. Returns how many moved."""
        ...

    async def find_parked(self, placement_id: UUID, day: date) -> DayEntry | None: ...

    async def find_by_timesheet(self, timesheet_id: UUID) -> list[DayEntry]: ...

    async def store(self, **fields: Any) -> DayEntry: ...

    async def update(self, entry_id: UUID, **fields: Any) -> None: ...


class DocumentStore(Protocol):
    async def find(self, timesheet_id: UUID) -> list[TimesheetDocument]:
        """Non-deleted documents of a timesheet."""
        ...

    async def update(self, document_id: UUID, **fields: Any) -> None: ...


class VacationStore(Protocol):
    async def is_on_vacation(self, employee_id: UUID, day: date) -> bool: ...


class ReferenceIdSequencer(Protocol):
    async def next(self, prefix_slug: str) -> str: ...


class ApprovalConfigStore(Protocol):
    async def find(self, approval_id: UUID) -> ApprovalConfiguration | None: ...


class ApprovalTrackStore(Protocol):
    async def append(self, track: ApprovalTrack) -> None: ...

    async def find(self, timesheet_id: UUID) -> list[ApprovalTrack]: ...


@dataclass
class Stores:
    """The set of stores one unit of work operates on."""

    placements: PlacementStore
    timesheets: TimesheetStore
    day_entries: DayEntryStore
    documents: DocumentStore
    vacations: VacationStore
    references: ReferenceIdSequencer
    approval_configs: ApprovalConfigStore
    approval_tracks: ApprovalTrackStore
    # Persists work done so far; regeneration calls it after every cycle
    checkpoint: Callable[[], Awaitable[None]] | None = None

    async def commit_checkpoint(self) -> None:
        if self.checkpoint is not None:
            await self.checkpoint()
