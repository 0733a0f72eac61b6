"""Command-line entry for swimschool_calendar.

Previews the occurrences a recurring event would create, using the same
expansion the portal runs before inserting sessions.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, time
from typing import NoReturn, Optional

from . import _init_logging
from .calendar.date_utils import parse_time_of_day, resolve_timezone
from .calendar.recurrence_expander import RecurrenceExpander
from .calendar.recurrence_models import (
    EndAfterCount,
    EndOnDate,
    NeverEnds,
    OccurrenceAnchor,
    RecurrenceFrequency,
    RecurrenceRule,
)
from .core.config_manager import ConfigManager
from .core.logging_config import configure_logging
from .exceptions import ExpansionError

EXIT_OK = 0
EXIT_EXPANSION_ERROR = 2


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from e


def _weekday_list(value: str) -> list[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"invalid weekdays {value!r}, expected comma-separated numbers (Sunday=0)"
        ) from e


def _time_of_day(value: str) -> time:
    try:
        return parse_time_of_day(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _timezone_name(value: str) -> str:
    try:
        resolve_timezone(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return value


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the swimschool_calendar CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="swimschool_calendar",
        description="Swim school calendar - preview recurring class sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m swimschool_calendar expand --start 2024-01-01 --frequency weekly --days 1,3,5 --count 6
  python -m swimschool_calendar expand --start 2024-01-31 --frequency monthly --until 2024-05-31
  python -m swimschool_calendar expand --start 2024-01-01 --frequency daily --time 09:30 --json
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand_parser = subparsers.add_parser("expand", help="List the occurrences of a recurrence rule")
    expand_parser.add_argument("--start", type=_iso_date, required=True, help="Anchor date (YYYY-MM-DD)")
    expand_parser.add_argument(
        "--frequency",
        choices=[frequency.value for frequency in RecurrenceFrequency],
        default=RecurrenceFrequency.NONE.value,
        help="Recurrence frequency (default: none)",
    )
    expand_parser.add_argument("--interval", type=int, default=1, help="Step count (default: 1)")
    expand_parser.add_argument(
        "--days",
        type=_weekday_list,
        default=[],
        metavar="D[,D...]",
        help="Weekdays for weekly/custom_weekdays, Sunday=0 ... Saturday=6",
    )
    end_group = expand_parser.add_mutually_exclusive_group()
    end_group.add_argument("--count", type=int, help="Stop after this many occurrences")
    end_group.add_argument("--until", type=_iso_date, help="Last date an occurrence may fall on")
    expand_parser.add_argument("--time", type=_time_of_day, help="Start time HH:MM (default: all-day)")
    expand_parser.add_argument("--timezone", type=_timezone_name, help="IANA timezone for start times")
    expand_parser.add_argument(
        "--hard-cap",
        type=int,
        help="Maximum occurrences to generate (default: SWIMSCHOOL_HARD_CAP or 1000)",
    )
    expand_parser.add_argument("--json", action="store_true", help="Print occurrences as JSON")

    return parser


def _rule_from_args(args: argparse.Namespace) -> RecurrenceRule:
    if args.count is not None:
        end_condition = EndAfterCount(count=args.count)
    elif args.until is not None:
        end_condition = EndOnDate(end_date=args.until)
    else:
        end_condition = NeverEnds()
    return RecurrenceRule(
        frequency=RecurrenceFrequency(args.frequency),
        interval=args.interval,
        days_of_week=args.days,
        end_condition=end_condition,
    )


def run(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, run the command and return the exit code."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    _init_logging("DEBUG" if args.debug else None)
    configure_logging(debug_mode=args.debug)

    settings = ConfigManager().load_settings()
    expander = RecurrenceExpander(settings)

    rule = _rule_from_args(args)
    anchor = OccurrenceAnchor(
        start_date=args.start,
        time_of_day=args.time,
        time_zone=args.timezone or settings.default_timezone,
    )

    try:
        occurrences = expander.expand(rule, anchor, args.hard_cap)
    except ExpansionError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_EXPANSION_ERROR
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_EXPANSION_ERROR

    if args.json:
        print(json.dumps([occurrence.model_dump(mode="json") for occurrence in occurrences], indent=2))
    else:
        for occurrence in occurrences:
            print(occurrence.start.isoformat() if occurrence.start else occurrence.occurrence_date.isoformat())
    return EXIT_OK


def main() -> NoReturn:
    """Run the swimschool_calendar CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
