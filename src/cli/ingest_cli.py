"""
Command-line interface for ingestion and export.

Usage:
    python -m src.cli.ingest_cli ingest --input <file_path> [options]
    python -m src.cli.ingest_cli export [--format csv|excel] [filters]
    python -m src.cli.ingest_cli fetch [filters]
    python -m src.cli.ingest_cli init-db
"""

import argparse
import json
import sys
from pathlib import Path

from src.batch.exporter import FORMAT_ALIASES, RecordExporter
from src.batch.pipeline import IngestionPipeline
from src.core.config import PipelineSettings
from src.core.errors import PipelineError
from src.core.models import ExportFilter
from src.observability.logger import get_logger
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.store import PostgresRecordStore

logger = get_logger(__name__)


def build_settings(args) -> PipelineSettings:
    overrides = {
        "chunk_size": getattr(args, "chunk_size", None),
        "max_workers": getattr(args, "workers", None),
        "export_dir": getattr(args, "export_dir", None),
        # Files handed to the CLI belong to the user unless told otherwise
        "remove_source": bool(getattr(args, "remove_source", False)),
    }
    if args.config:
        return PipelineSettings.from_yaml(args.config, env_file=args.env_file, **overrides)
    return PipelineSettings.from_env(env_file=args.env_file, **overrides)


def build_pool(args, settings: PipelineSettings) -> DatabaseConnectionPool:
    pool = DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )
    pool.ensure_capacity(settings.max_workers)
    return pool


def build_filter(args) -> ExportFilter:
    return ExportFilter(
        natural_id=args.ticket_ref_id,
        category=args.category,
        sub_category=args.sub_category,
        description=args.description,
        status=args.status,
        start_date=args.start_date,
        end_date=args.end_date,
    )


def emit(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def ingest_command(args) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    settings = build_settings(args)
    with build_pool(args, settings) as pool:
        store = PostgresRecordStore(pool)
        pipeline = IngestionPipeline(store, settings)
        result = pipeline.ingest(input_path, input_path.stat().st_size)

    emit({**result.to_response(), **result.model_dump(exclude={"message", "total_records"})})
    return 0


def export_command(args) -> int:
    settings = build_settings(args)
    with build_pool(args, settings) as pool:
        exporter = RecordExporter(PostgresRecordStore(pool), settings)
        result = exporter.export(build_filter(args), args.format)

    emit(result.to_response())
    return 0


def fetch_command(args) -> int:
    settings = build_settings(args)
    with build_pool(args, settings) as pool:
        exporter = RecordExporter(PostgresRecordStore(pool), settings)
        result = exporter.fetch(build_filter(args))

    emit(result.to_response())
    return 0


def init_db_command(args) -> int:
    settings = build_settings(args)
    with build_pool(args, settings) as pool:
        PostgresRecordStore(pool).ensure_schema()
    return 0


def add_db_arguments(parser: argparse.ArgumentParser) -> None:
    """Connection flags; unset values fall back to DB_* environment variables."""
    parser.add_argument("--db-host", default=None, help="Database host (env DB_HOST)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (env DB_PORT)")
    parser.add_argument("--db-name", default=None, help="Database name (env DB_NAME)")
    parser.add_argument("--db-user", default=None, help="Database user (env DB_USER)")
    parser.add_argument("--db-password", default=None, help="Database password (env DB_PASSWORD)")
    parser.add_argument("--env-file", default=".env", help="Optional .env file (default: .env)")
    parser.add_argument("--config", default=None, help="Pipeline settings YAML (e.g. config/pipeline.yaml)")


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ticket-ref-id", default=None, help="Exact ticket reference")
    parser.add_argument("--category", default=None)
    parser.add_argument("--sub-category", default=None)
    parser.add_argument("--description", default=None)
    parser.add_argument("--status", default=None, help="Status, or 'all' for every status")
    parser.add_argument("--start-date", default=None, help="YYYY-MM-DD (needs --end-date)")
    parser.add_argument("--end-date", default=None, help="YYYY-MM-DD (needs --start-date)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Work-item file ingestion and export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the work_item table
  python -m src.cli.ingest_cli init-db

  # Ingest a CSV file with smaller chunks
  python -m src.cli.ingest_cli ingest --input data/tickets.csv --chunk-size 1000

  # Export raised tickets of one category as CSV
  python -m src.cli.ingest_cli export --format csv --status Raised --category Hardware
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a CSV or XLSX file")
    ingest_parser.add_argument("--input", required=True, help="Path to input file")
    ingest_parser.add_argument("--chunk-size", type=int, default=None, help="Rows per upsert chunk")
    ingest_parser.add_argument("--workers", type=int, default=None, help="Concurrent chunk writers")
    ingest_parser.add_argument(
        "--remove-source",
        action="store_true",
        help="Delete the input file after ingestion (upload temp-file behaviour)"
    )
    add_db_arguments(ingest_parser)

    export_parser = subparsers.add_parser("export", help="Export filtered records to a file")
    export_parser.add_argument(
        "--format",
        default="excel",
        choices=sorted(FORMAT_ALIASES),
        help="Output format (default: excel)"
    )
    export_parser.add_argument("--export-dir", default=None, help="Output directory")
    add_filter_arguments(export_parser)
    add_db_arguments(export_parser)

    fetch_parser = subparsers.add_parser("fetch", help="Print filtered records as JSON")
    add_filter_arguments(fetch_parser)
    add_db_arguments(fetch_parser)

    init_parser = subparsers.add_parser("init-db", help="Create the work_item table")
    add_db_arguments(init_parser)

    return parser


COMMANDS = {
    "ingest": ingest_command,
    "export": export_command,
    "fetch": fetch_command,
    "init-db": init_db_command,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except PipelineError as e:
        logger.error(f"{args.command} failed: {e.message}", extra={"error_code": e.code})
        emit(e.to_response())
        return 2


if __name__ == "__main__":
    sys.exit(main())
