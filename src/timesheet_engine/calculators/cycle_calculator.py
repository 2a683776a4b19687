"""Cycle boundary calculation for timesheet cycles.

Weekdays follow the configuration tables: 0=Sunday through 6=Saturday.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from timesheet_engine.calculators.types import (
    CycleBoundary,
    CycleType,
    InvalidAnchorDay,
    InvalidCycleType,
    sunday_weekday,
)

# (upper bound on cycle_length_days, week count)
WEEK_BUCKETS: tuple[tuple[int, int], ...] = (
    (6, 1),
    (13, 2),
    (20, 3),
    (27, 4),
    (31, 5),
)

SEMI_MONTH_SPLIT_DAY = 15


def week_count_for(cycle_length_days: int) -> int:
    """Bucket a cycle length into the number of weeks it touches."""
    for upper, weeks in WEEK_BUCKETS:
        if cycle_length_days <= upper:
            return weeks
    raise ValueError(f"Cycle length out of range: {cycle_length_days}")


def validate_anchor_day(cycle_type: CycleType, anchor_day: int | None) -> None:
    """Raise InvalidAnchorDay if the cycle type needs an anchor and has none."""
    if not cycle_type.requires_anchor_day:
        return
    if anchor_day is None or isinstance(anchor_day, bool) or not isinstance(anchor_day, int):
        raise InvalidAnchorDay(anchor_day)
    if not 0 <= anchor_day <= 6:
        raise InvalidAnchorDay(anchor_day)


def _weekly_end(start: date, anchor_day: int, window: int, else_offset: int) -> date:
    weekday = sunday_weekday(start)
    if anchor_day <= weekday:
        return start + timedelta(days=window - (weekday - anchor_day))
    return start + timedelta(days=else_offset + (anchor_day - weekday))


def _month_end(start: date) -> date:
    days_in_month = calendar.monthrange(start.year, start.month)[1]
    return start.replace(day=days_in_month)


def compute_cycle_boundary(
    cycle_type: CycleType | str | int,
    anchor_day: int | None,
    start_date: date,
    hard_end_date: date | None = None,
) -> CycleBoundary:
    """Compute the boundaries of the cycle beginning at ``start_date``.

    Args:
        cycle_type: One of the periodic cycle types.
        anchor_day: Weekday the cycle is pinned to (weekly/bi-weekly only).
        start_date: First day of the cycle.
        hard_end_date: Optional last allowed day (placement end date).

    Raises:
        InvalidCycleType: cycle type unknown or not periodic.
        InvalidAnchorDay: weekly/bi-weekly cycle without a valid anchor.
    """
    cycle = CycleType.parse(cycle_type)
    if not cycle.is_periodic:
        raise InvalidCycleType(cycle_type)
    validate_anchor_day(cycle, anchor_day)

    if cycle is CycleType.WEEKLY:
        end_date = _weekly_end(start_date, anchor_day, window=6, else_offset=-1)
        cycle_length_days = (end_date - start_date).days
    elif cycle is CycleType.BI_WEEKLY:
        end_date = _weekly_end(start_date, anchor_day, window=13, else_offset=6)
        cycle_length_days = (end_date - start_date).days
    elif cycle is CycleType.SEMI_MONTHLY:
        day = start_date.day
        if day <= SEMI_MONTH_SPLIT_DAY:
            end_date = start_date.replace(day=SEMI_MONTH_SPLIT_DAY)
            cycle_length_days = SEMI_MONTH_SPLIT_DAY - day
        else:
            end_date = _month_end(start_date)
            cycle_length_days = end_date.day - day
    else:
        end_date = _month_end(start_date)
        cycle_length_days = end_date.day - start_date.day

    week_count = week_count_for(cycle_length_days)

    # Length and week count describe the full cycle, not the clamped one
    if hard_end_date is not None and end_date > hard_end_date:
        end_date = hard_end_date

    return CycleBoundary(
        start_date=start_date,
        end_date=end_date,
        cycle_length_days=cycle_length_days,
        week_count=week_count,
    )
