"""Pure date calculations for timesheet cycles."""

from timesheet_engine.calculators.cycle_calculator import (
    compute_cycle_boundary,
    validate_anchor_day,
    week_count_for,
)
from timesheet_engine.calculators.hours import format_hours, parse_hours
from timesheet_engine.calculators.period_segmenter import (
    PeriodSegmenter,
    WeeklyTotals,
    aggregate_weekly,
    month_range,
    segment_weeks,
)
from timesheet_engine.calculators.types import (
    CycleBoundary,
    CycleType,
    InvalidAnchorDay,
    InvalidCycleType,
    WeekSegment,
    is_weekend,
    sunday_weekday,
)

__all__ = [
    "CycleBoundary",
    "CycleType",
    "InvalidAnchorDay",
    "InvalidCycleType",
    "PeriodSegmenter",
    "WeekSegment",
    "WeeklyTotals",
    "aggregate_weekly",
    "compute_cycle_boundary",
    "format_hours",
    "is_weekend",
    "sunday_weekday",
    "month_range",
    "parse_hours",
    "segment_weeks",
    "validate_anchor_day",
    "week_count_for",
]
