"""Balance a day's entries from a JSON file without touching the database.

Usage:
    python scripts/balance_day.py \\
        --input entries.json \\
        --work-start 08:00 --work-end 17:00 \\
        --lunch 60 --other 15

The input file holds a list of objects with ``id`` and ``duration``
(seconds), e.g. ``[{"id": "a", "duration": 10800}]``.
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError
from timebalance.models.schedule import WorkSchedule
from timebalance.services.day_balancer import (
    GRANULARITY_SECONDS,
    BalancingError,
    compute_adjustment,
)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Balance time entries against a work schedule"
    )
    parser.add_argument("--input", type=Path, required=True, help="JSON file with entries")
    parser.add_argument("--work-start", required=True, help="Work start (HH:MM)")
    parser.add_argument("--work-end", required=True, help="Work end (HH:MM)")
    parser.add_argument("--lunch", type=int, default=0, help="Lunch break in minutes")
    parser.add_argument("--other", type=int, default=0, help="Other breaks in minutes")
    parser.add_argument(
        "--granularity",
        type=int,
        default=GRANULARITY_SECONDS,
        help="Rounding step in seconds",
    )
    return parser


def main(argv=None) -> int:
    """Run the balancing and print the result as JSON."""
    args = build_parser().parse_args(argv)

    try:
        entries = json.loads(args.input.read_text(encoding="utf-8"))
        schedule = WorkSchedule(
            work_start=args.work_start,
            work_end=args.work_end,
            lunch_break_minutes=args.lunch,
            other_break_minutes=args.other,
        )
        balance = compute_adjustment(entries, schedule, granularity=args.granularity)
    except (BalancingError, ValidationError, json.JSONDecodeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(balance.model_dump_json(indent=2))
    if balance.requires_confirmation:
        print(
            f"Residual after rounding: {balance.rounded_difference_hours:.2f}h",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
