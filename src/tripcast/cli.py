"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from tripcast import __version__
from tripcast.config import get_settings
from tripcast.flows.resolve import load_requests, resolve_batch
from tripcast.pipeline import build_pipeline
from tripcast.schemas import Location, WeatherCondition


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="tripcast",
        description="Best-obtainable daily weather for trip dates (forecast, history, estimate)",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'resolve' command - weather for one location
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve weather for dates at a location"
    )
    resolve_parser.add_argument("--lat", type=float, required=True, help="Latitude")
    resolve_parser.add_argument("--lon", type=float, required=True, help="Longitude")
    resolve_parser.add_argument(
        "--timezone", type=str, default=None, help="IANA timezone of the location"
    )
    resolve_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    resolve_parser.add_argument("dates", nargs="+", help="ISO dates (YYYY-MM-DD)")

    # 'batch' command - many locations through the Prefect flow
    batch_parser = subparsers.add_parser("batch", help="Resolve a JSON file of requests")
    batch_parser.add_argument("file", type=Path, help="JSON list of {location, dates} objects")
    batch_parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Write results here (default: stdout)"
    )

    # 'cache' command - maintenance
    cache_parser = subparsers.add_parser("cache", help="Inspect or maintain the weather cache")
    cache_parser.add_argument("action", choices=["stats", "cleanup", "clear"])

    # 'info' command
    subparsers.add_parser("info", help="Show application info")

    return parser


def format_condition(c: WeatherCondition) -> str:
    """One table line; ``†`` marks archive data, ``*`` marks estimates."""
    marker = "†" if c.is_historical else "*" if c.is_estimate else " "
    return (
        f"{c.date}{marker} {c.condition.value:<13} "
        f"{c.temp_high:>3}°C / {c.temp_low:>3}°C  "
        f"precip {c.precipitation:>3}%  humidity {c.humidity:>3}%  wind {c.wind_speed:>3} km/h"
    )


def cmd_resolve(args: argparse.Namespace) -> int:
    """Handle the 'resolve' command."""
    try:
        location = Location(lat=args.lat, lon=args.lon, timezone=args.timezone)
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    pipeline = build_pipeline(get_settings(), start_sweeper=False)
    conditions = pipeline.resolve(location, args.dates)

    if args.json:
        print(json.dumps([c.model_dump(mode="json") for c in conditions], indent=2))
    else:
        for condition in conditions:
            print(format_condition(condition))
        print("† historical   * estimate")

    missing = len(set(args.dates)) - len({c.date for c in conditions})
    if missing:
        print(f"No weather obtainable for {missing} date(s)", file=sys.stderr)
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    """Handle the 'batch' command."""
    if not args.file.exists():
        print(f"No such file: {args.file}", file=sys.stderr)
        return 1

    results = resolve_batch(load_requests(args.file))
    output = json.dumps(results, indent=2)
    if args.output is None:
        print(output)
    else:
        args.output.write_text(output)
        print(f"Wrote {len(results)} result set(s) to {args.output}")
    return 0


def cmd_cache(args: argparse.Namespace) -> int:
    """Handle the 'cache' command."""
    cache = build_pipeline(get_settings(), start_sweeper=False).cache

    if args.action == "stats":
        for name, count in cache.stats().items():
            print(f"{name}: {count}")
    elif args.action == "cleanup":
        print(f"Removed {cache.cleanup_expired()} expired entries")
    else:
        cache.clear()
        print("Weather cache cleared")
    return 0


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Cache: {settings.cache_backend} ({settings.cache_dir})")
    return 0


def configure_logging(debug: bool = False) -> None:
    """Configure the root logger from settings (``--debug`` forces DEBUG)."""
    settings = get_settings()
    level = logging.DEBUG if debug or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.debug)

    commands = {
        "resolve": cmd_resolve,
        "batch": cmd_batch,
        "cache": cmd_cache,
        "info": cmd_info,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
