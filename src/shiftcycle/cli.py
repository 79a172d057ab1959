"""Command-line interface for the shiftcycle pattern engine.

Pattern files are JSON documents of the form:

    {
      "shifts": [{"id": "M", "name": "Morning", "start": "06:00", "end": "14:00"}],
      "days": ["M", "M", null]
    }

Each entry of "days" is a shift id (work day) or null (rest day). An entry
may also be an object {"dayNumber": n, "shiftId": "M"} to give an explicit
day number.
"""

import argparse
import json
import logging
import sys
from datetime import date, time
from typing import Any, Optional

from shiftcycle.config import EngineConfig
from shiftcycle.domain.models import Pattern, PatternDay, Shift, UserScheduleAssignment
from shiftcycle.domain.results import OperationResult
from shiftcycle.encoding.codec import RecurrenceCodec
from shiftcycle.scheduling.calculator import ScheduleCalculator
from shiftcycle.scheduling.preview import PreviewGenerator
from shiftcycle.scheduling.statistics import (
    calculate_statistics,
    describe_pattern,
    generate_pattern_name,
)
from shiftcycle.storage.json_store import rule_from_dict, rule_to_dict
from shiftcycle.storage.memory import InMemoryShiftCatalog
from shiftcycle.validation.validator import PatternValidator

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr so command output on stdout stays clean."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def _parse_time(value: Optional[str]) -> Optional[time]:
    return time.fromisoformat(value) if value else None


def load_pattern_file(path: str) -> tuple[Pattern, InMemoryShiftCatalog]:
    """Read a pattern file into a Pattern and the shifts it declares."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    catalog = InMemoryShiftCatalog(
        Shift(
            id=str(s["id"]),
            name=s.get("name", str(s["id"])),
            start_time=_parse_time(s.get("start")),
            end_time=_parse_time(s.get("end")),
            description=s.get("description"),
        )
        for s in data.get("shifts", [])
    )

    days = []
    for i, entry in enumerate(data.get("days", [])):
        if isinstance(entry, dict):
            day_number, ref = entry.get("dayNumber", i + 1), entry.get("shiftId")
        else:
            day_number, ref = i + 1, entry
        # Shift ids are declared with str() above, so references match them
        days.append(PatternDay(day_number=day_number, shift_ref=None if ref is None else str(ref)))
    return Pattern(days), catalog


def _report_failure(result: OperationResult) -> int:
    print(f"FAILED: {result}")
    return 1


def _print_warnings(result: OperationResult) -> None:
    for warning in result.warnings:
        print(f"  warning: {warning}")


def cmd_validate(args: argparse.Namespace, config: EngineConfig) -> int:
    pattern, catalog = load_pattern_file(args.pattern_file)
    validator = PatternValidator(config, catalog)
    start = args.start or date.today()
    name = args.name or generate_pattern_name(pattern, start)

    result = validator.validate_pattern_configuration(pattern, start, name)
    if not result.success:
        return _report_failure(result)
    print(f"Pattern '{name}' is valid ({pattern.length} days, starting {start})")
    return 0


def cmd_stats(args: argparse.Namespace, config: EngineConfig) -> int:
    pattern, catalog = load_pattern_file(args.pattern_file)
    validation = PatternValidator(config, catalog).validate_pattern_days(pattern)
    if not validation.success:
        return _report_failure(validation)
    statistics = calculate_statistics(pattern, catalog)

    print(describe_pattern(statistics))
    print(f"  Total days: {statistics.total_days}")
    print(f"  Work days: {statistics.work_days}")
    print(f"  Rest days: {statistics.rest_days}")
    print(f"  Work share: {statistics.work_day_percentage:.1f}%")
    return 0


def cmd_preview(args: argparse.Namespace, config: EngineConfig) -> int:
    pattern, catalog = load_pattern_file(args.pattern_file)
    codec = RecurrenceCodec(lenient=config.lenient_decode)
    generator = PreviewGenerator(
        ScheduleCalculator(catalog, codec),
        PatternValidator(config, catalog),
        config=config,
    )

    result = generator.generate_preview(pattern, args.start, args.days)
    if not result.success:
        return _report_failure(result)

    print(f"Preview from {args.start} ({len(result.data)} days):")
    for day in result.data:
        print(f"  {day.date} {day.date.strftime('%a')}  day {day.day_number:>3}  "
              f"{day.shift.shift if day.shift else 'Rest'}")
    return 0


def cmd_resolve(args: argparse.Namespace, config: EngineConfig) -> int:
    pattern, catalog = load_pattern_file(args.pattern_file)
    codec = RecurrenceCodec(lenient=config.lenient_decode)
    calculator = ScheduleCalculator(catalog, codec)

    try:
        assignment = UserScheduleAssignment(
            user_id="cli",
            team_id="cli",
            recurrence_rule_id="",
            anchor_date=args.anchor,
            end_date=args.end,
        )
    except ValueError as e:
        print(f"FAILED: {e}")
        return 1

    day = calculator.resolve_shift_for_date(args.date, assignment, pattern)
    if day is None:
        print(f"{args.date}: not covered by the pattern")
        return 0
    print(day)
    return 0


def cmd_encode(args: argparse.Namespace, config: EngineConfig) -> int:
    pattern, catalog = load_pattern_file(args.pattern_file)
    validation = PatternValidator(config, catalog).validate_pattern_days(pattern)
    if not validation.success:
        return _report_failure(validation)

    rule = RecurrenceCodec().encode(pattern, name=args.name, start_date=args.start)
    print(json.dumps(rule_to_dict(rule), indent=2, ensure_ascii=False))
    return 0


def cmd_decode(args: argparse.Namespace, config: EngineConfig) -> int:
    with open(args.rule_file, "r", encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)
    rule = rule_from_dict(data)

    result = RecurrenceCodec(lenient=args.lenient or config.lenient_decode).decode(rule)
    if not result.success:
        return _report_failure(result)

    print(f"Rule {rule.id}: {result.data.length} days")
    _print_warnings(result)
    for pattern_day in result.data:
        print(f"  {pattern_day}")
    return 0


COMMANDS = {
    "validate": cmd_validate,
    "stats": cmd_stats,
    "preview": cmd_preview,
    "resolve": cmd_resolve,
    "encode": cmd_encode,
    "decode": cmd_decode,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shiftcycle",
        description="shiftcycle - Recurring work pattern engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate pattern.json --start 2025-01-01
  %(prog)s stats pattern.json
  %(prog)s preview pattern.json --start 2025-01-01 --days 14
  %(prog)s resolve pattern.json --anchor 2025-01-01 --date 2025-03-15
  %(prog)s encode pattern.json --name "My rotation" > rule.json
  %(prog)s decode rule.json
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Engine configuration JSON file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    validate_parser = subparsers.add_parser("validate", help="Validate a pattern file")
    validate_parser.add_argument("pattern_file", help="Pattern JSON file")
    validate_parser.add_argument("--start", "-s", type=_parse_date, help="Start date (default: today)")
    validate_parser.add_argument("--name", "-n", type=str, help="Pattern name")

    stats_parser = subparsers.add_parser("stats", help="Show pattern statistics")
    stats_parser.add_argument("pattern_file", help="Pattern JSON file")

    preview_parser = subparsers.add_parser("preview", help="Preview the schedule of a pattern")
    preview_parser.add_argument("pattern_file", help="Pattern JSON file")
    preview_parser.add_argument(
        "--start", "-s",
        type=_parse_date,
        default=date.today(),
        help="Anchor date (default: today)",
    )
    preview_parser.add_argument(
        "--days", "-d",
        type=int,
        default=None,
        help="Number of days to preview (default: from config, 30)",
    )

    resolve_parser = subparsers.add_parser("resolve", help="Resolve the shift for a date")
    resolve_parser.add_argument("pattern_file", help="Pattern JSON file")
    resolve_parser.add_argument("--anchor", "-a", type=_parse_date, required=True, help="Anchor date")
    resolve_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="Date to resolve")
    resolve_parser.add_argument("--end", "-e", type=_parse_date, help="Assignment end date")

    encode_parser = subparsers.add_parser("encode", help="Encode a pattern as a recurrence rule")
    encode_parser.add_argument("pattern_file", help="Pattern JSON file")
    encode_parser.add_argument("--name", "-n", type=str, help="Rule name")
    encode_parser.add_argument("--start", "-s", type=_parse_date, help="Rule start date")

    decode_parser = subparsers.add_parser("decode", help="Decode a recurrence rule file")
    decode_parser.add_argument("rule_file", help="Recurrence rule JSON file")
    decode_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Recover the valid prefix of a damaged payload",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    try:
        config = EngineConfig.load(args.config) if args.config else EngineConfig()
        return COMMANDS[args.command](args, config)
    except (OSError, KeyError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
