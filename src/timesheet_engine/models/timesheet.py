"""Timesheet, day hours, document, approval track and prefix models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_engine.models.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from timesheet_engine.models.placement import Placement


class Timesheet(Base, TimestampMixin, AuditMixin, SoftDeleteMixin):
    """Timesheet for one cycle of a placement."""

    __tablename__ = "timesheets"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    placement_id: Mapped[UUID] = mapped_column(
        ForeignKey("placements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reference_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    from_date: Mapped[date] = mapped_column("from", Date, nullable=False)
    to_date: Mapped[date] = mapped_column("to", Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Drafted")
    approval_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Drafted', 'Submitted', 'Approval In Progress', 'Approved', 'Rejected')",
            name="timesheets_status_check",
        ),
        CheckConstraint("approval_level >= 1", name="timesheets_approval_level_check"),
        CheckConstraint('"to" >= "from"', name="timesheets_dates_check"),
    )

    # Relationships
    placement: Mapped[Placement] = relationship()
    hours: Mapped[list[TimesheetHour]] = relationship(back_populates="timesheet")


class TimesheetHour(Base, TimestampMixin):
    """Hours recorded for one date of a timesheet."""

    __tablename__ = "timesheet_hours"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    timesheet_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("timesheets.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    # Owner while parked, i.e. while timesheet_id is null
    placement_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("placements.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    work_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    total_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    ot_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    billable_hours: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        UniqueConstraint("timesheet_id", "date", name="timesheet_hours_timesheet_date_unique"),
        CheckConstraint(
            "timesheet_id IS NOT NULL OR placement_id IS NOT NULL",
            name="timesheet_hours_owner_check",
        ),
    )

    # Relationships
    timesheet: Mapped[Timesheet | None] = relationship(back_populates="hours")


class TimesheetDocument(Base, TimestampMixin, SoftDeleteMixin):
    """Document uploaded against a timesheet."""

    __tablename__ = "timesheet_documents"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    timesheet_id: Mapped[UUID] = mapped_column(
        ForeignKey("timesheets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_path: Mapped[str] = mapped_column(String, nullable=False)
    remote_stored: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TimesheetApprovalTrack(Base):
    """Append-only record of approval transitions."""

    __tablename__ = "timesheet_approval_track"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    timesheet_id: Mapped[UUID] = mapped_column(
        ForeignKey("timesheets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_id: Mapped[UUID] = mapped_column(nullable=False)
    decision: Mapped[str] = mapped_column(String, nullable=False)
    from_status: Mapped[str] = mapped_column(String, nullable=False)
    to_status: Mapped[str] = mapped_column(String, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Prefix(Base):
    """Reference id prefix per entity slug."""

    __tablename__ = "prefixes"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    prefix_name: Mapped[str] = mapped_column(String, nullable=False)
    separator: Mapped[str] = mapped_column(String, nullable=False, default="-")
    number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
