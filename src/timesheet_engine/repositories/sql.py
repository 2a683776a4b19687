"""SQLAlchemy implementations of the store protocols.

All stores share one AsyncSession. The session commits when the unit of
work closes (see ``database.get_session``) and at every ``Stores.checkpoint``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timesheet_engine import models
from timesheet_engine.calculators.types import CycleType
from timesheet_engine.database import get_session, placement_lock
from timesheet_engine.repositories.base import (
    ApprovalConfiguration,
    ApprovalTrack,
    DayEntry,
    Placement,
    Stores,
    Timesheet,
    TimesheetDocument,
)


def _placement_record(row: models.Placement) -> Placement:
    return Placement(
        id=row.id,
        employee_id=row.employee_id,
        timesheet_start_date=row.timesheet_start_date,
        cycle_type=CycleType.parse(row.cycle_type),
        anchor_day=row.anchor_day,
        default_hours=Decimal(row.default_hours),
        end_date=row.end_date,
        ts_next_cycle_start=row.ts_next_cycle_start,
        regenerate_timesheet=row.regenerate_timesheet,
        timesheet_approval_id=row.timesheet_approval_id,
    )


def _timesheet_record(row: models.Timesheet) -> Timesheet:
    return Timesheet(
        id=row.id,
        placement_id=row.placement_id,
        from_date=row.from_date,
        to_date=row.to_date,
        status=row.status,
        approval_level=row.approval_level,
        reference_id=row.reference_id,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
        comments=row.comments,
        submitted_on=row.submitted_on,
        approved_on=row.approved_on,
        updated_at=row.updated_at,
        updated_by=row.updated_by,
    )


def _day_entry_record(row: models.TimesheetHour) -> DayEntry:
    return DayEntry(
        id=row.id,
        timesheet_id=row.timesheet_id,
        date=row.work_date,
        total_hours=Decimal(row.total_hours),
        ot_hours=Decimal(row.ot_hours),
        billable_hours=Decimal(row.billable_hours),
        placement_id=row.placement_id,
    )


def _day_entry_values(fields: dict[str, Any]) -> dict[str, Any]:
    values = dict(fields)
    if "date" in values:
        values["work_date"] = values.pop("date")
    return values


class SqlPlacementStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, placement_id: UUID) -> Placement | None:
        row = await self.session.get(models.Placement, placement_id)
        return _placement_record(row) if row else None

    async def update(self, placement_id: UUID, **fields: Any) -> None:
        if isinstance(fields.get("cycle_type"), CycleType):
            fields["cycle_type"] = fields["cycle_type"].value
        await self.session.execute(
            update(models.Placement)
            .where(models.Placement.id == placement_id)
            .values(**fields)
        )


class SqlTimesheetStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, timesheet_id: UUID) -> Timesheet | None:
        row = await self.session.get(models.Timesheet, timesheet_id)
        return _timesheet_record(row) if row else None

    async def find_active(self, placement_id: UUID, to_on_or_after: date) -> list[Timesheet]:
        result = await self.session.execute(
            select(models.Timesheet)
            .where(
                models.Timesheet.placement_id == placement_id,
                models.Timesheet.deleted_at.is_(None),
                models.Timesheet.to_date >= to_on_or_after,
            )
            .order_by(models.Timesheet.created_at.asc())
        )
        return [_timesheet_record(row) for row in result.scalars()]

    async def find_exact(
        self, placement_id: UUID, from_date: date, to_date: date
    ) -> Timesheet | None:
        result = await self.session.execute(
            select(models.Timesheet)
            .where(
                models.Timesheet.placement_id == placement_id,
                models.Timesheet.deleted_at.is_(None),
                models.Timesheet.from_date == from_date,
                models.Timesheet.to_date == to_date,
            )
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _timesheet_record(row) if row else None

    async def store(self, **fields: Any) -> Timesheet:
        fields.setdefault("created_at", datetime.now(timezone.utc))
        row = models.Timesheet(**fields)
        self.session.add(row)
        await self.session.flush()
        return _timesheet_record(row)

    async def update(self, timesheet_id: UUID, **fields: Any) -> None:
        await self.session.execute(
            update(models.Timesheet)
            .where(models.Timesheet.id == timesheet_id)
            .values(**fields)
        )


class SqlDayEntryStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def park(
        self, timesheet_id: UUID, placement_id: UUID, after: date | None = None
    ) -> int:
        stmt = (
            update(models.TimesheetHour)
            .where(models.TimesheetHour.timesheet_id == timesheet_id)
            .values(timesheet_id=None, placement_id=placement_id)
        )
        if after is not None:
            stmt = stmt.where(models.TimesheetHour.work_date > after)
        result = await self.session.execute(stmt)
        return result.rowcount

    async def find_parked(self, placement_id: UUID, day: date) -> DayEntry | None:
        result = await self.session.execute(
            select(models.TimesheetHour)
            .where(
                models.TimesheetHour.placement_id == placement_id,
                models.TimesheetHour.timesheet_id.is_(None),
                models.TimesheetHour.work_date == day,
            )
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _day_entry_record(row) if row else None

    async def find_by_timesheet(self, timesheet_id: UUID) -> list[DayEntry]:
        result = await self.session.execute(
            select(models.TimesheetHour)
            .where(models.TimesheetHour.timesheet_id == timesheet_id)
            .order_by(models.TimesheetHour.work_date.asc())
        )
        return [_day_entry_record(row) for row in result.scalars()]

    async def store(self, **fields: Any) -> DayEntry:
        row = models.TimesheetHour(**_day_entry_values(fields))
        self.session.add(row)
        await self.session.flush()
        return _day_entry_record(row)

    async def update(self, entry_id: UUID, **fields: Any) -> None:
        await self.session.execute(
            update(models.TimesheetHour)
            .where(models.TimesheetHour.id == entry_id)
            .values(**_day_entry_values(fields))
        )


class SqlDocumentStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, timesheet_id: UUID) -> list[TimesheetDocument]:
        result = await self.session.execute(
            select(models.TimesheetDocument).where(
                models.TimesheetDocument.timesheet_id == timesheet_id,
                models.TimesheetDocument.deleted_at.is_(None),
            )
        )
        return [
            TimesheetDocument(
                id=row.id,
                timesheet_id=row.timesheet_id,
                document_path=row.document_path,
                remote_stored=row.remote_stored,
                deleted_at=row.deleted_at,
            )
            for row in result.scalars()
        ]

    async def update(self, document_id: UUID, **fields: Any) -> None:
        await self.session.execute(
            update(models.TimesheetDocument)
            .where(models.TimesheetDocument.id == document_id)
            .values(**fields)
        )


class SqlVacationStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_on_vacation(self, employee_id: UUID, day: date) -> bool:
        result = await self.session.execute(
            select(
                exists().where(
                    models.EmployeeVacation.employee_id == employee_id,
                    models.EmployeeVacation.from_date <= day,
                    models.EmployeeVacation.to_date >= day,
                )
            )
        )
        return bool(result.scalar())


class SqlReferenceIdSequencer:
    """Prefix + running count over all timesheets, skipping ids in use."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next(self, prefix_slug: str) -> str:
        prefix = (
            await self.session.execute(
                select(models.Prefix).where(models.Prefix.slug == prefix_slug)
            )
        ).scalar_one_or_none()
        if prefix is None:
            raise LookupError(f"No reference prefix configured for '{prefix_slug}'")

        count = (
            await self.session.execute(select(func.count()).select_from(models.Timesheet))
        ).scalar_one()

        while True:
            reference_id = f"{prefix.prefix_name}{prefix.separator}{count + prefix.number}"
            taken = (
                await self.session.execute(
                    select(exists().where(models.Timesheet.reference_id == reference_id))
                )
            ).scalar()
            if not taken:
                return reference_id
            count += 1


class SqlApprovalConfigStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, approval_id: UUID) -> ApprovalConfiguration | None:
        result = await self.session.execute(
            select(models.ApprovalSetting)
            .where(models.ApprovalSetting.id == approval_id)
            .options(
                selectinload(models.ApprovalSetting.levels).selectinload(
                    models.ApprovalLevel.users
                )
            )
        )
        setting = result.scalar_one_or_none()
        if setting is None:
            return None
        return ApprovalConfiguration(
            id=setting.id,
            approval_count=setting.approval_count,
            approvers={
                level.level: {user.approver_id for user in level.users}
                for level in setting.levels
            },
        )


class SqlApprovalTrackStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, track: ApprovalTrack) -> None:
        self.session.add(
            models.TimesheetApprovalTrack(
                id=track.id,
                timesheet_id=track.timesheet_id,
                level=track.level,
                actor_id=track.actor_id,
                decision=track.decision,
                from_status=track.from_status,
                to_status=track.to_status,
                comment=track.comment,
                created_at=track.created_at,
            )
        )
        await self.session.flush()

    async def find(self, timesheet_id: UUID) -> list[ApprovalTrack]:
        result = await self.session.execute(
            select(models.TimesheetApprovalTrack)
            .where(models.TimesheetApprovalTrack.timesheet_id == timesheet_id)
            .order_by(models.TimesheetApprovalTrack.created_at.asc())
        )
        return [
            ApprovalTrack(
                id=row.id,
                timesheet_id=row.timesheet_id,
                level=row.level,
                actor_id=row.actor_id,
                decision=row.decision,
                from_status=row.from_status,
                to_status=row.to_status,
                created_at=row.created_at,
                comment=row.comment,
            )
            for row in result.scalars()
        ]


def sql_stores(session: AsyncSession) -> Stores:
    """Build a full set of stores bound to one session."""
    return Stores(
        placements=SqlPlacementStore(session),
        timesheets=SqlTimesheetStore(session),
        day_entries=SqlDayEntryStore(session),
        documents=SqlDocumentStore(session),
        vacations=SqlVacationStore(session),
        references=SqlReferenceIdSequencer(session),
        approval_configs=SqlApprovalConfigStore(session),
        approval_tracks=SqlApprovalTrackStore(session),
        checkpoint=session.commit,
    )


class PlacementBusy(RuntimeError):
    """Raised when another process is already reconciling the placement."""

    def __init__(self, placement_id: UUID):
        self.placement_id = placement_id
        super().__init__(f"Placement {placement_id} is locked by another worker")


@asynccontextmanager
async def sql_unit_of_work(placement_id: UUID) -> AsyncGenerator[Stores, None]:
    """Session-scoped stores, serialized per placement across processes."""
    async with placement_lock(placement_id) as acquired:
        if not acquired:
            raise PlacementBusy(placement_id)
        async with get_session() as session:
            yield sql_stores(session)
