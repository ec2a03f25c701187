"""Command-line interface for computing pivots from exported records.

Provides subcommands: `metrics` and `pivot`. Each command is implemented as a
`cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from pivot_engine.config import Settings, get_settings
from pivot_engine.logging_config import configure_logging
from pivot_engine.aggregate.buckets import (
    parse_bucket,
    trailing_months,
    year_over_year_months,
)
from pivot_engine.aggregate.growth import MODES, MONTH_OVER_MONTH, YEAR_OVER_YEAR
from pivot_engine.aggregate.metrics import METRICS
from pivot_engine.aggregate.pivot import compute_pivot
from pivot_engine.clean.normalize import SCHEMAS, RecordSchema
from pivot_engine.clean.transform import load_records

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _schema_for(args: argparse.Namespace, settings: Settings) -> RecordSchema:
    """Return the preset schema adjusted by CLI options and settings."""
    schema = SCHEMAS[args.preset]
    if args.date_field:
        schema = dataclasses.replace(schema, timestamp_field=args.date_field)

    valid_from = date(settings.min_year, 1, 1) if settings.min_year else None
    valid_until = date.today() if args.exclude_future else None
    if valid_from or valid_until:
        schema = schema.with_window(valid_from, valid_until)
    return schema


def _positive_int(value: str) -> int:
    """argparse type for options that must be a positive integer."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def _buckets_for(args: argparse.Namespace, settings: Settings) -> list[str]:
    """Resolve the bucket range requested on the command line.

    Year-over-year mode uses `--years` (and `--through-month`); otherwise a
    trailing window of `--months` ending at `--end` (default: this month).
    """
    if args.mode == YEAR_OVER_YEAR and args.years:
        return year_over_year_months(args.years, args.through_month)

    months = args.months if args.months is not None else settings.trailing_months
    if args.end:
        y, m = parse_bucket(args.end)
        return trailing_months(months, date(y, m, 1))
    return trailing_months(months)


# --------------------------------------------------
# METRICS
# --------------------------------------------------
def cmd_metrics(_: argparse.Namespace) -> None:
    """Print every registered metric with its kind and description."""
    for name in sorted(METRICS):
        m = METRICS[name]
        print(f"{name:<22} {m.kind:<11} {m.description}")


# --------------------------------------------------
# PIVOT
# --------------------------------------------------
def cmd_pivot(args: argparse.Namespace) -> None:
    """Load records, compute one pivot and print it.

    Args:
        args: argparse namespace with `input`, `preset`, `dimension`,
            `metric`, `mode` and range options.
    """
    s = get_settings()
    records = load_records(Path(args.input))
    if not records:
        raise RuntimeError(f"{args.input} contains no records.")

    result = compute_pivot(
        records,
        args.dimension,
        _buckets_for(args, s),
        args.metric,
        mode=args.mode,
        schema=_schema_for(args, s),
        growth=not args.no_growth,
        include_undated=args.include_undated,
    )

    if args.format == "json":
        print(result.model_dump_json(indent=2))
        return

    print(result.to_frame(total_label=s.total_label).round(2).to_string())
    if result.total_growth is not None:
        print()
        print("Growth (%):")
        growth_line = "  ".join(f"{b}: {v:.1f}" for b, v in result.total_growth.items())
        print(growth_line)
    if result.undated_count:
        log.warning("%d records had no usable date and were left out", result.undated_count)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="pivot_engine")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("metrics")

    p_pivot = sub.add_parser("pivot")
    p_pivot.add_argument("input", help="CSV or JSON export of records")
    p_pivot.add_argument("--preset", choices=sorted(SCHEMAS), default="generic")
    p_pivot.add_argument("--dimension", required=True)
    p_pivot.add_argument("--metric", choices=sorted(METRICS), default="count")
    p_pivot.add_argument("--mode", choices=MODES, default=MONTH_OVER_MONTH)
    p_pivot.add_argument("--date-field", default=None)
    p_pivot.add_argument("--months", type=_positive_int, default=None)
    p_pivot.add_argument("--end", default=None, help="last bucket, YYYY-MM")
    p_pivot.add_argument("--years", type=int, nargs="+", default=None)
    p_pivot.add_argument("--through-month", type=int, choices=range(1, 13), default=12)
    p_pivot.add_argument("--exclude-future", action="store_true")
    p_pivot.add_argument("--no-growth", action="store_true")
    p_pivot.add_argument("--include-undated", action="store_true")
    p_pivot.add_argument("--format", choices=["table", "json"], default="table")

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    s = get_settings()
    configure_logging(s.log_path, s.log_level)

    args = build_parser().parse_args(argv)

    if args.cmd == "metrics":
        cmd_metrics(args)
    elif args.cmd == "pivot":
        cmd_pivot(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main(sys.argv[1:])
