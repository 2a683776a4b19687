"""Timesheet cycle command line interface.

Read-only tools for checking cycle arithmetic:
- Cycle boundaries for a configuration
- Week segments of a date range

Usage:
    python -m timesheet_engine cycle --type weekly --anchor 1 --start 2024-03-06
    python -m timesheet_engine cycle --type bi_weekly --anchor 4 --start 2024-03-01 --count 3
    python -m timesheet_engine weeks --from 2024-03-01 --to 2024-03-31
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from typing import Any, Callable

from timesheet_engine.calculators import (
    CycleBoundary,
    CycleType,
    InvalidAnchorDay,
    InvalidCycleType,
    PeriodSegmenter,
    compute_cycle_boundary,
    validate_anchor_day,
)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def boundary_to_dict(boundary: CycleBoundary) -> dict[str, Any]:
    return {
        "start_date": boundary.start_date.isoformat(),
        "end_date": boundary.end_date.isoformat(),
        "cycle_length_days": boundary.cycle_length_days,
        "week_count": boundary.week_count,
        "next_start": boundary.next_start.isoformat(),
    }


class TimesheetCli:
    """Timesheet Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m timesheet_engine",
            description="Timesheet cycle tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # cycle command
        cycle = subparsers.add_parser(
            "cycle",
            help="Compute cycle boundaries",
        )
        cycle.add_argument(
            "--type",
            dest="cycle_type",
            required=True,
            help="Cycle type (weekly, bi_weekly, semi_monthly, monthly or legacy id 1-4)",
        )
        cycle.add_argument(
            "--anchor",
            type=int,
            help="Anchor weekday for weekly/bi-weekly cycles (0=Sunday..6=Saturday)",
        )
        cycle.add_argument(
            "--start",
            type=parse_date,
            required=True,
            help="Cycle start date (YYYY-MM-DD)",
        )
        cycle.add_argument(
            "--end",
            type=parse_date,
            help="Hard end date the cycle may not pass (YYYY-MM-DD)",
        )
        cycle.add_argument(
            "--count",
            type=int,
            default=1,
            help="Number of consecutive cycles to print (default: 1)",
        )

        # weeks command
        weeks = subparsers.add_parser(
            "weeks",
            help="Split a date range into 7-day segments starting at --from",
        )
        weeks.add_argument(
            "--from",
            dest="from_date",
            type=parse_date,
            required=True,
            help="First date of the range (YYYY-MM-DD)",
        )
        weeks.add_argument(
            "--to",
            dest="to_date",
            type=parse_date,
            required=True,
            help="Last date of the range (YYYY-MM-DD)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[..., int]] = {
            "cycle": self._cmd_cycle,
            "weeks": self._cmd_weeks,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_cycle(self, args: argparse.Namespace) -> int:
        """Print one or more consecutive cycle boundaries."""
        try:
            cycle_type = CycleType.parse(args.cycle_type)
            validate_anchor_day(cycle_type, args.anchor)
            if not cycle_type.is_periodic:
                raise InvalidCycleType(args.cycle_type)
        except (InvalidCycleType, InvalidAnchorDay) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

        cycles = []
        start = args.start
        for _ in range(max(args.count, 1)):
            if args.end is not None and start > args.end:
                break
            boundary = compute_cycle_boundary(cycle_type, args.anchor, start, args.end)
            cycles.append(boundary_to_dict(boundary))
            start = boundary.next_start

        print(json.dumps({"cycle_type": cycle_type.value, "cycles": cycles}, indent=2))
        return 0

    def _cmd_weeks(self, args: argparse.Namespace) -> int:
        """Print the week segments of a date range."""
        if args.to_date < args.from_date:
            print("Error: --to is before --from", file=sys.stderr)
            return 2

        segments = [
            {
                "start": week.start.isoformat(),
                "end": week.end.isoformat(),
                "days": week.length,
            }
            for week in PeriodSegmenter(args.from_date, args.to_date)
        ]
        print(json.dumps({"weeks": segments}, indent=2))
        return 0


def main() -> int:
    """CLI entry point."""
    cli = TimesheetCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
