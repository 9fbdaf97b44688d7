"""
Batch Planner CLI

Command-line interface for the production batch planner. Every command
prints JSON to stdout so the output can be piped into other tools.

Usage Examples:
    # Create tables and seed the default production stages
    batch-planner init-db
    batch-planner seed-batch-types

    # List configured stages
    batch-planner batch-types --all

    # Committed and suggested batches for one stage in a date range
    batch-planner batches --stage BAKE --start 2025-07-01 --end 2025-07-07

    # Suggested production dates
    batch-planner auto-schedule --start 2025-07-01 --end 2025-07-31

    # Batches in the same production chain
    batch-planner chain BAKE-Vanilla
"""

import argparse
import json
import sys

from batch_planner.services import batch_type_service
from batch_planner.services.database import configure_database, init_database
from batch_planner.services.exceptions import (
    ServiceError,
    ValidationError,
    format_errors,
)
from batch_planner.services.logging_utils import configure_cli_logging
from batch_planner.services.scheduling import scheduling_service
from batch_planner.utils.constants import APP_NAME, APP_VERSION
from batch_planner.utils.datetime_utils import parse_iso_date


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=False))


def _iso_date(value: str):
    try:
        return parse_iso_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date (YYYY-MM-DD): {value}")


def init_db_cmd(args) -> int:
    """Create all tables."""
    init_database()
    _print_json({"initialized": True})
    return 0


def seed_batch_types_cmd(args) -> int:
    """Upsert the default production stages."""
    _print_json(batch_type_service.seed_default_batch_types())
    return 0


def batch_types_cmd(args) -> int:
    """List production stages."""
    configs = batch_type_service.list_batch_types(active_only=not args.all)
    _print_json([config.to_dict() for config in configs])
    return 0


def batches_cmd(args) -> int:
    """List committed and suggested batches."""
    overview = scheduling_service.get_batches(
        stage_code=args.stage, start_date=args.start, end_date=args.end
    )
    _print_json(overview.to_dict())
    return 0


def auto_schedule_cmd(args) -> int:
    """Suggest production dates."""
    result = scheduling_service.auto_schedule(start_date=args.start, end_date=args.end)
    _print_json(result.to_dict())
    return 0


def chain_cmd(args) -> int:
    """Show the production chain of a batch."""
    chain = scheduling_service.get_chain(args.batch_id)
    _print_json({"batch_id": args.batch_id, "chain": sorted(chain)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="batch-planner",
        description="Production batch planner for the bakery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL to use instead of the configured database",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(handler=init_db_cmd)

    seed_parser = subparsers.add_parser(
        "seed-batch-types", help="Create or update the default production stages"
    )
    seed_parser.set_defaults(handler=seed_batch_types_cmd)

    types_parser = subparsers.add_parser("batch-types", help="List production stages")
    types_parser.add_argument(
        "--all", action="store_true", help="Include inactive stages"
    )
    types_parser.set_defaults(handler=batch_types_cmd)

    batches_parser = subparsers.add_parser(
        "batches", help="List committed and suggested batches"
    )
    batches_parser.add_argument("--stage", help="Only this stage code (e.g. BAKE)")
    batches_parser.add_argument("--start", type=_iso_date, help="First date (YYYY-MM-DD)")
    batches_parser.add_argument("--end", type=_iso_date, help="Last date (YYYY-MM-DD)")
    batches_parser.set_defaults(handler=batches_cmd)

    schedule_parser = subparsers.add_parser(
        "auto-schedule", help="Suggest production dates from lead times"
    )
    schedule_parser.add_argument("--start", type=_iso_date, help="First date (YYYY-MM-DD)")
    schedule_parser.add_argument("--end", type=_iso_date, help="Last date (YYYY-MM-DD)")
    schedule_parser.set_defaults(handler=auto_schedule_cmd)

    chain_parser = subparsers.add_parser(
        "chain", help="List batches in the same production chain"
    )
    chain_parser.add_argument("batch_id", help="Batch ID, e.g. BAKE-Vanilla or batch:12")
    chain_parser.set_defaults(handler=chain_cmd)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_cli_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.database_url:
            configure_database(args.database_url)
        return args.handler(args)
    except ValidationError as e:
        print(f"ERROR: validation failed\n{format_errors(e.errors)}", file=sys.stderr)
        return 1
    except ServiceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
