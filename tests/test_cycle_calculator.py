"""Tests for cycle boundary calculation."""

import calendar
from datetime import date, timedelta

import pytest
from hypothesis import given, settings, strategies as st

from timesheet_engine.calculators.cycle_calculator import (
    compute_cycle_boundary,
    validate_anchor_day,
    week_count_for,
)
from timesheet_engine.calculators.types import (
    CycleType,
    InvalidAnchorDay,
    InvalidCycleType,
    is_weekend,
    sunday_weekday,
)


class TestWeekly:
    """Test weekly boundaries."""

    @pytest.mark.parametrize(
        "anchor_day, start, expected_end, expected_length",
        [
            # Wednesday start, Monday anchor: run to Sunday
            (1, date(2024, 3, 6), date(2024, 3, 10), 4),
            # Start on the anchor: full week
            (1, date(2024, 3, 4), date(2024, 3, 10), 6),
            (0, date(2024, 3, 3), date(2024, 3, 9), 6),
            # Anchor later in the week than the start
            (5, date(2024, 3, 6), date(2024, 3, 7), 1),
            (6, date(2024, 3, 3), date(2024, 3, 8), 5),
            # Start the day before the anchor: single day
            (1, date(2024, 3, 3), date(2024, 3, 3), 0),
        ],
    )
    def test_boundaries(self, anchor_day, start, expected_end, expected_length):
        boundary = compute_cycle_boundary(CycleType.WEEKLY, anchor_day, start)

        assert boundary.start_date == start
        assert boundary.end_date == expected_end
        assert boundary.cycle_length_days == expected_length
        assert boundary.week_count == 1

    def test_example_wednesday_start_monday_anchor(self):
        """2024-03-06 with a Monday anchor ends on Sunday 2024-03-10."""
        boundary = compute_cycle_boundary(CycleType.WEEKLY, 1, date(2024, 3, 6))

        assert boundary.end_date == date(2024, 3, 10)
        assert boundary.cycle_length_days == 4
        assert boundary.week_count == 1
        assert boundary.next_start == date(2024, 3, 11)

    def test_consecutive_cycles_align_on_anchor(self):
        """After a short first cycle, later cycles are full weeks starting on the anchor."""
        first = compute_cycle_boundary(CycleType.WEEKLY, 1, date(2024, 3, 6))
        second = compute_cycle_boundary(CycleType.WEEKLY, 1, first.next_start)

        assert sunday_weekday(second.start_date) == 1
        assert second.cycle_length_days == 6


class TestBiWeekly:
    """Test bi-weekly boundaries."""

    @pytest.mark.parametrize(
        "anchor_day, start, expected_end, expected_length, expected_weeks",
        [
            (5, date(2024, 3, 1), date(2024, 3, 14), 13, 2),
            (4, date(2024, 3, 1), date(2024, 3, 13), 12, 2),
            (6, date(2024, 3, 1), date(2024, 3, 8), 7, 2),
            (1, date(2024, 3, 3), date(2024, 3, 10), 7, 2),
            (6, date(2024, 3, 9), date(2024, 3, 22), 13, 2),
            # Anchor one day after the start
            (2, date(2024, 3, 4), date(2024, 3, 11), 7, 2),
        ],
    )
    def test_boundaries(self, anchor_day, start, expected_end, expected_length, expected_weeks):
        boundary = compute_cycle_boundary(CycleType.BI_WEEKLY, anchor_day, start)

        assert boundary.end_date == expected_end
        assert boundary.cycle_length_days == expected_length
        assert boundary.week_count == expected_weeks


class TestSemiMonthly:
    """Test semi-monthly boundaries."""

    @pytest.mark.parametrize(
        "start, expected_end, expected_length, expected_weeks",
        [
            (date(2024, 2, 10), date(2024, 2, 15), 5, 1),
            (date(2024, 2, 1), date(2024, 2, 15), 14, 3),
            (date(2024, 2, 15), date(2024, 2, 15), 0, 1),
            (date(2024, 2, 16), date(2024, 2, 29), 13, 2),
            (date(2023, 2, 16), date(2023, 2, 28), 12, 2),
            (date(2024, 1, 16), date(2024, 1, 31), 15, 3),
            (date(2024, 4, 20), date(2024, 4, 30), 10, 2),
        ],
    )
    def test_boundaries(self, start, expected_end, expected_length, expected_weeks):
        boundary = compute_cycle_boundary(CycleType.SEMI_MONTHLY, None, start)

        assert boundary.end_date == expected_end
        assert boundary.cycle_length_days == expected_length
        assert boundary.week_count == expected_weeks

    def test_anchor_day_ignored(self):
        with_anchor = compute_cycle_boundary(CycleType.SEMI_MONTHLY, 3, date(2024, 2, 10))
        without = compute_cycle_boundary(CycleType.SEMI_MONTHLY, None, date(2024, 2, 10))
        assert with_anchor == without


class TestMonthly:
    """Test monthly boundaries."""

    @pytest.mark.parametrize(
        "start, expected_end, expected_length, expected_weeks",
        [
            # Leap year February
            (date(2024, 2, 1), date(2024, 2, 29), 28, 5),
            (date(2023, 2, 1), date(2023, 2, 28), 27, 4),
            (date(2024, 3, 1), date(2024, 3, 31), 30, 5),
            (date(2024, 4, 1), date(2024, 4, 30), 29, 5),
            (date(2024, 3, 20), date(2024, 3, 31), 11, 2),
            (date(2024, 12, 31), date(2024, 12, 31), 0, 1),
        ],
    )
    def test_boundaries(self, start, expected_end, expected_length, expected_weeks):
        boundary = compute_cycle_boundary(CycleType.MONTHLY, None, start)

        assert boundary.end_date == expected_end
        assert boundary.cycle_length_days == expected_length
        assert boundary.week_count == expected_weeks

    def test_legacy_id_accepted(self):
        boundary = compute_cycle_boundary(4, None, date(2024, 2, 1))
        assert boundary.end_date == date(2024, 2, 29)


class TestHardEndDate:
    """Test clamping to the placement end date."""

    def test_clamps_end_date(self):
        boundary = compute_cycle_boundary(
            CycleType.WEEKLY, 1, date(2024, 3, 4), hard_end_date=date(2024, 3, 7)
        )

        assert boundary.end_date == date(2024, 3, 7)
        # Length and week count still describe the full cycle
        assert boundary.cycle_length_days == 6
        assert boundary.week_count == 1

    def test_clamps_monthly(self):
        boundary = compute_cycle_boundary(
            CycleType.MONTHLY, None, date(2024, 3, 1), hard_end_date=date(2024, 3, 12)
        )
        assert boundary.end_date == date(2024, 3, 12)
        assert boundary.next_start == date(2024, 3, 13)

    def test_later_hard_end_has_no_effect(self):
        boundary = compute_cycle_boundary(
            CycleType.BI_WEEKLY, 5, date(2024, 3, 1), hard_end_date=date(2024, 6, 30)
        )
        assert boundary.end_date == date(2024, 3, 14)

    def test_hard_end_on_natural_end(self):
        boundary = compute_cycle_boundary(
            CycleType.SEMI_MONTHLY, None, date(2024, 2, 1), hard_end_date=date(2024, 2, 15)
        )
        assert boundary.end_date == date(2024, 2, 15)


class TestValidation:
    """Test invalid inputs fail before computing anything."""

    def test_none_cycle_has_no_boundary(self):
        with pytest.raises(InvalidCycleType):
            compute_cycle_boundary(CycleType.NONE, None, date(2024, 3, 1))

    def test_unknown_cycle_type(self):
        with pytest.raises(InvalidCycleType) as exc_info:
            compute_cycle_boundary("fortnightly", 1, date(2024, 3, 1))
        assert exc_info.value.cycle_type == "fortnightly"

    @pytest.mark.parametrize("anchor_day", [None, -1, 7, True, "1"])
    def test_weekly_requires_valid_anchor(self, anchor_day):
        with pytest.raises(InvalidAnchorDay):
            compute_cycle_boundary(CycleType.WEEKLY, anchor_day, date(2024, 3, 1))

    def test_bi_weekly_requires_anchor(self):
        with pytest.raises(InvalidAnchorDay):
            validate_anchor_day(CycleType.BI_WEEKLY, None)

    def test_month_based_cycles_need_no_anchor(self):
        validate_anchor_day(CycleType.MONTHLY, None)
        validate_anchor_day(CycleType.SEMI_MONTHLY, None)
        validate_anchor_day(CycleType.NONE, None)

    def test_week_count_out_of_range(self):
        with pytest.raises(ValueError):
            week_count_for(32)

    @pytest.mark.parametrize(
        "length, weeks",
        [(0, 1), (6, 1), (7, 2), (13, 2), (14, 3), (20, 3), (21, 4), (27, 4), (28, 5), (31, 5)],
    )
    def test_week_buckets(self, length, weeks):
        assert week_count_for(length) == weeks


class TestCycleType:
    """Test cycle type parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("weekly", CycleType.WEEKLY),
            ("Bi-Weekly", CycleType.BI_WEEKLY),
            ("biweekly", CycleType.BI_WEEKLY),
            ("semi monthly", CycleType.SEMI_MONTHLY),
            ("MONTHLY", CycleType.MONTHLY),
            ("configurable", CycleType.NONE),
            (1, CycleType.WEEKLY),
            (2, CycleType.BI_WEEKLY),
            (3, CycleType.SEMI_MONTHLY),
            (4, CycleType.MONTHLY),
            (5, CycleType.NONE),
            ("3", CycleType.SEMI_MONTHLY),
            (CycleType.MONTHLY, CycleType.MONTHLY),
        ],
    )
    def test_parse(self, raw, expected):
        assert CycleType.parse(raw) is expected

    @pytest.mark.parametrize("raw", [0, 6, "daily", True, None, 1.5])
    def test_parse_rejects(self, raw):
        with pytest.raises(InvalidCycleType):
            CycleType.parse(raw)

    def test_properties(self):
        assert CycleType.WEEKLY.requires_anchor_day is True
        assert CycleType.MONTHLY.requires_anchor_day is False
        assert CycleType.NONE.is_periodic is False
        assert CycleType.SEMI_MONTHLY.is_periodic is True


class TestWeekdays:
    """Test the Sunday-based weekday numbering."""

    def test_sunday_based_weekday(self):
        assert sunday_weekday(date(2024, 3, 3)) == 0  # Sunday
        assert sunday_weekday(date(2024, 3, 4)) == 1  # Monday
        assert sunday_weekday(date(2024, 3, 9)) == 6  # Saturday

    def test_is_weekend(self):
        assert is_weekend(date(2024, 3, 9)) is True
        assert is_weekend(date(2024, 3, 10)) is True
        assert is_weekend(date(2024, 3, 11)) is False


dates = st.dates(min_value=date(2000, 1, 1), max_value=date(2099, 12, 31))
weekdays = st.integers(min_value=0, max_value=6)


def _expected_weekly_length(start: date, anchor_day: int, window: int, else_offset: int) -> int:
    weekday = sunday_weekday(start)
    if anchor_day <= weekday:
        return window - (weekday - anchor_day)
    return else_offset + (anchor_day - weekday)


class TestBoundaryProperties:
    """Boundaries hold for any start date and anchor day."""

    @given(start=dates, anchor_day=weekdays)
    @settings(max_examples=200)
    def test_weekly(self, start, anchor_day):
        boundary = compute_cycle_boundary(CycleType.WEEKLY, anchor_day, start)

        length = _expected_weekly_length(start, anchor_day, window=6, else_offset=-1)
        assert (boundary.end_date - start).days == length
        assert boundary.cycle_length_days == length
        assert 0 <= length <= 6
        # Every weekly cycle ends the day before its anchor weekday
        assert sunday_weekday(boundary.end_date) == (anchor_day - 1) % 7

    @given(start=dates, anchor_day=weekdays)
    @settings(max_examples=200)
    def test_bi_weekly(self, start, anchor_day):
        boundary = compute_cycle_boundary(CycleType.BI_WEEKLY, anchor_day, start)

        length = _expected_weekly_length(start, anchor_day, window=13, else_offset=6)
        assert (boundary.end_date - start).days == length
        assert 7 <= length <= 13
        assert sunday_weekday(boundary.end_date) == (anchor_day - 1) % 7

    @given(start=dates)
    @settings(max_examples=200)
    def test_semi_monthly(self, start):
        boundary = compute_cycle_boundary(CycleType.SEMI_MONTHLY, None, start)

        last_day = calendar.monthrange(start.year, start.month)[1]
        expected_day = 15 if start.day <= 15 else last_day
        assert boundary.end_date == start.replace(day=expected_day)
        assert boundary.cycle_length_days == expected_day - start.day

    @given(start=dates)
    @settings(max_examples=200)
    def test_monthly(self, start):
        boundary = compute_cycle_boundary(CycleType.MONTHLY, None, start)

        last_day = calendar.monthrange(start.year, start.month)[1]
        assert boundary.end_date == start.replace(day=last_day)
        assert boundary.cycle_length_days == last_day - start.day

    @given(
        cycle_type=st.sampled_from(
            [CycleType.WEEKLY, CycleType.BI_WEEKLY, CycleType.SEMI_MONTHLY, CycleType.MONTHLY]
        ),
        start=dates,
        anchor_day=weekdays,
        hard_end_offset=st.integers(min_value=0, max_value=40),
    )
    @settings(max_examples=300)
    def test_clamp_and_week_count(self, cycle_type, start, anchor_day, hard_end_offset):
        anchor = anchor_day if cycle_type.requires_anchor_day else None
        natural = compute_cycle_boundary(cycle_type, anchor, start)
        hard_end = start + timedelta(days=hard_end_offset)

        clamped = compute_cycle_boundary(cycle_type, anchor, start, hard_end_date=hard_end)

        assert clamped.end_date == min(natural.end_date, hard_end)
        assert clamped.start_date <= clamped.end_date
        assert clamped.next_start == clamped.end_date + timedelta(days=1)
        assert clamped.cycle_length_days == natural.cycle_length_days
        assert clamped.week_count == week_count_for(natural.cycle_length_days)
