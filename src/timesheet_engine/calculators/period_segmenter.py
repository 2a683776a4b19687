"""Week segmentation of date ranges and weekly hour aggregation."""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from timesheet_engine.calculators.types import WeekSegment

if TYPE_CHECKING:
    from timesheet_engine.repositories.base import DayEntry

DAYS_PER_SEGMENT = 7


class PeriodSegmenter:
    """Ordered week segments covering ``[from_date, to_date]``.

    Each segment spans seven days starting at ``from_date``; the last one is
    cut short at ``to_date``. Iterating again restarts from the beginning.
    """

    def __init__(self, from_date: date, to_date: date):
        self.from_date = from_date
        self.to_date = to_date

    def __iter__(self) -> Iterator[WeekSegment]:
        current = self.from_date
        while current <= self.to_date:
            end = min(current + timedelta(days=DAYS_PER_SEGMENT - 1), self.to_date)
            yield WeekSegment(start=current, end=end)
            current = end + timedelta(days=1)

    def __len__(self) -> int:
        if self.from_date > self.to_date:
            return 0
        days = (self.to_date - self.from_date).days + 1
        return -(-days // DAYS_PER_SEGMENT)

    def __repr__(self) -> str:
        return f"PeriodSegmenter({self.from_date.isoformat()}, {self.to_date.isoformat()})"

    def dates(self) -> Iterator[date]:
        """All dates of the range, week by week."""
        for segment in self:
            yield from segment.dates()


def segment_weeks(from_date: date, to_date: date) -> list[WeekSegment]:
    """Split a date range into week segments."""
    return list(PeriodSegmenter(from_date, to_date))


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last date of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@dataclass
class WeeklyTotals:
    """Aggregated hours for one week segment."""

    segment: WeekSegment
    total_hours: Decimal = Decimal("0")
    ot_hours: Decimal = Decimal("0")
    billable_hours: Decimal = Decimal("0")
    entry_count: int = 0


def aggregate_weekly(
    entries: Iterable[DayEntry],
    from_date: date,
    to_date: date,
) -> list[WeeklyTotals]:
    """Group day entries into week segments of ``[from_date, to_date]``.

    Entries dated outside the range are ignored. Every segment is returned,
    including weeks without entries.
    """
    totals = [WeeklyTotals(segment=segment) for segment in PeriodSegmenter(from_date, to_date)]
    for entry in entries:
        if not from_date <= entry.date <= to_date:
            continue
        bucket = totals[(entry.date - from_date).days // DAYS_PER_SEGMENT]
        bucket.total_hours += entry.total_hours
        bucket.ot_hours += entry.ot_hours
        bucket.billable_hours += entry.billable_hours
        bucket.entry_count += 1
    return totals
