"""Type definitions for cycle calculations."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum


class InvalidCycleType(ValueError):
    """Raised when a cycle type is unknown or has no boundaries."""

    def __init__(self, cycle_type: object):
        self.cycle_type = cycle_type
        super().__init__(f"Invalid cycle type: {cycle_type!r}")


class InvalidAnchorDay(ValueError):
    """Raised when a weekly/bi-weekly cycle lacks a usable anchor day."""

    def __init__(self, anchor_day: object):
        self.anchor_day = anchor_day
        super().__init__(f"Invalid anchor day: {anchor_day!r} (expected 0=Sunday..6=Saturday)")


class CycleType(str, Enum):
    """Timesheet cycle types."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    SEMI_MONTHLY = "semi_monthly"
    MONTHLY = "monthly"
    NONE = "none"  # per-diem, no periodic timesheets

    @property
    def is_periodic(self) -> bool:
        return self is not CycleType.NONE

    @property
    def requires_anchor_day(self) -> bool:
        return self in (CycleType.WEEKLY, CycleType.BI_WEEKLY)

    @classmethod
    def parse(cls, value: CycleType | str | int) -> CycleType:
        """Parse a cycle type from its name or legacy numeric identifier."""
        if isinstance(value, CycleType):
            return value
        if isinstance(value, bool):
            raise InvalidCycleType(value)
        if isinstance(value, int):
            try:
                return _LEGACY_CYCLE_IDS[value]
            except KeyError:
                raise InvalidCycleType(value) from None
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            if normalized.isdigit():
                return cls.parse(int(normalized))
            normalized = _CYCLE_ALIASES.get(normalized, normalized)
            try:
                return cls(normalized)
            except ValueError:
                raise InvalidCycleType(value) from None
        raise InvalidCycleType(value)


# Identifiers used by the cycles seed table of the legacy configuration
_LEGACY_CYCLE_IDS: dict[int, CycleType] = {
    1: CycleType.WEEKLY,
    2: CycleType.BI_WEEKLY,
    3: CycleType.SEMI_MONTHLY,
    4: CycleType.MONTHLY,
    5: CycleType.NONE,
}

_CYCLE_ALIASES: dict[str, str] = {
    "biweekly": "bi_weekly",
    "semimonthly": "semi_monthly",
    "configurable": "none",
}


def sunday_weekday(day: date) -> int:
    """Weekday numbered 0=Sunday..6=Saturday."""
    return day.isoweekday() % 7


def is_weekend(day: date) -> bool:
    return sunday_weekday(day) in (0, 6)


@dataclass(frozen=True)
class CycleBoundary:
    """Computed boundaries of one timesheet cycle.

    ``cycle_length_days`` and ``week_count`` describe the unclamped cycle;
    ``end_date`` may have been pulled in to a placement end date.
    """

    start_date: date
    end_date: date
    cycle_length_days: int
    week_count: int

    @property
    def next_start(self) -> date:
        return self.end_date + timedelta(days=1)

    def dates(self) -> Iterator[date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)


@dataclass(frozen=True)
class WeekSegment:
    """An inclusive run of at most seven days."""

    start: date
    end: date

    @property
    def length(self) -> int:
        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end
