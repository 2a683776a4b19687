"""Placement, vacation and approval configuration models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_engine.models.base import Base, TimestampMixin


class ApprovalSetting(Base, TimestampMixin):
    """Approval configuration: how many levels a timesheet goes through."""

    __tablename__ = "approval_settings"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    approval_count: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("approval_count >= 1", name="approval_settings_count_check"),
    )

    # Relationships
    levels: Mapped[list[ApprovalLevel]] = relationship(back_populates="setting")


class ApprovalLevel(Base):
    """One level of an approval configuration."""

    __tablename__ = "approval_levels"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    approval_setting_id: Mapped[UUID] = mapped_column(
        ForeignKey("approval_settings.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("approval_setting_id", "level", name="approval_levels_setting_level_unique"),
    )

    # Relationships
    setting: Mapped[ApprovalSetting] = relationship(back_populates="levels")
    users: Mapped[list[ApprovalUser]] = relationship(back_populates="approval_level")


class ApprovalUser(Base):
    """Employee allowed to approve at a level."""

    __tablename__ = "approval_users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    approval_level_id: Mapped[UUID] = mapped_column(
        ForeignKey("approval_levels.id", ondelete="CASCADE"),
        nullable=False,
    )
    approver_id: Mapped[UUID] = mapped_column(nullable=False)

    # Relationships
    approval_level: Mapped[ApprovalLevel] = relationship(back_populates="users")


class Placement(Base, TimestampMixin):
    """Employee placement with its timesheet cycle configuration."""

    __tablename__ = "placements"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    timesheet_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cycle_type: Mapped[str] = mapped_column(String, nullable=False)
    anchor_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    default_hours: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("8")
    )
    ts_next_cycle_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    regenerate_timesheet: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timesheet_approval_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("approval_settings.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "cycle_type IN ('weekly', 'bi_weekly', 'semi_monthly', 'monthly', 'none')",
            name="placements_cycle_type_check",
        ),
        CheckConstraint(
            "anchor_day IS NULL OR (anchor_day >= 0 AND anchor_day <= 6)",
            name="placements_anchor_day_check",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= timesheet_start_date",
            name="placements_dates_check",
        ),
    )


class EmployeeVacation(Base, TimestampMixin):
    """Employee vacation period (inclusive)."""

    __tablename__ = "employee_vacation"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        CheckConstraint("to_date >= from_date", name="employee_vacation_dates_check"),
    )
