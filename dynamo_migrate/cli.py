"""Command line entry point for table migrations and filtered deletes."""

import argparse
import json
import logging
import sys
from decimal import Decimal
from typing import Any, Dict, List, Optional

from . import clients
from .deleter import FilteredDeleter
from .errors import ConfigurationError, EncodingError, InvalidArgumentError, SetupError
from .models.attribute import AttributeType
from .models.migration import MigrationConfig
from .models.record import DeletionResult
from .orchestrator import MigrationContext, MigrationOrchestrator
from .services.encoder import ItemEncoder
from .services.schema_registry import AttributeTypeRegistry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Set up root logging once for the whole process."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # library wire logging stays at WARNING
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dynamo-migrate",
        description="Copy DynamoDB tables to DynamoDB-compatible endpoints",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Migrate every configured table")
    run_parser.add_argument("--config", required=True, help="Path to YAML config file")
    run_parser.add_argument("--dry-run", action="store_true", help="Encode items without writing them")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    run_parser.add_argument("--log-file", help="Also write logs to this file")

    # Filtered delete
    delete_parser = subparsers.add_parser("delete", help="Delete items matching the delete section")
    delete_parser.add_argument("--config", required=True, help="Path to YAML config file")
    delete_parser.add_argument("--dry-run", action="store_true", help="Count matches without deleting")
    delete_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    delete_parser.add_argument("--log-file", help="Also write logs to this file")

    # Preview encoding
    preview_parser = subparsers.add_parser("preview", help="Print PutItem bodies for items in a JSON file")
    preview_parser.add_argument("--input", required=True, help="Path to input JSON file")
    preview_parser.add_argument("--table", required=True, help="Target table name")
    preview_parser.add_argument(
        "--types",
        help="JSON file with declared types: {attribute: tag} or a DescribeTable response",
    )
    preview_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    configure_logging(getattr(args, "verbose", False), getattr(args, "log_file", None))

    try:
        if args.command == "run":
            return run_migration(args)
        if args.command == "delete":
            return run_delete(args)
        return run_preview(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR


def run_migration(args) -> int:
    """Run every table mapping from the config file."""
    config = MigrationConfig.from_yaml_file(args.config)

    if args.dry_run:
        config.options.dry_run = True

    context = MigrationContext.from_config(config)
    try:
        run = MigrationOrchestrator(context).run_migration()
    finally:
        context.close()

    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" + (" (DRY RUN)" if run.dry_run else ""))
    print("=" * 60)
    for table_run in run.tables:
        result = table_run.result
        print(
            f"{table_run.mapping.source} -> {table_run.mapping.destination}: "
            f"{table_run.status.value} | Success: {result.success_count} | Failure: {result.failure_count}"
        )
        if table_run.error:
            print(f"  {table_run.error}")
    print("-" * 60)
    print(f"Status: {run.status.value}")
    print(f"Items Processed: {run.total_processed}")
    print(f"Succeeded: {run.total_succeeded}")
    print(f"Failed: {run.total_failed}")
    if run.duration_seconds is not None:
        print(f"Duration: {run.duration_seconds:.2f} seconds")

    if run.total_failed or run.failed_tables:
        return EXIT_FAILURES
    return EXIT_OK


def print_deletion_summary(result: DeletionResult) -> None:
    """Print the delete banner."""
    print("\n" + "=" * 60)
    print(f"DELETE SUMMARY: {result.table}" + (" (DRY RUN)" if result.dry_run else ""))
    print("=" * 60)
    print(f"Items found:   {result.found}")
    if result.dry_run:
        print(f"Would delete:  {result.found}")
    else:
        print(f"Deleted:       {result.deleted}")
        print(f"Failed:        {result.failed}")
    print("=" * 60)


def run_delete(args) -> int:
    """Delete items selected by the config's delete section."""
    config = MigrationConfig.from_yaml_file(args.config, require_migration=False)
    if config.delete is None:
        raise ConfigurationError("Missing required section 'delete'", section="delete")

    delete = config.delete
    deleter = FilteredDeleter(
        clients.dynamodb_client(delete.endpoint),
        dry_run=args.dry_run or config.options.dry_run,
    )

    try:
        result = deleter.delete_where(delete.table, delete.filter_attribute, delete.filter_values)
    except SetupError as e:
        logger.error(f"Delete from {delete.table} aborted: {e}")
        return EXIT_FAILURES

    print_deletion_summary(result)
    return EXIT_FAILURES if result.failed else EXIT_OK


def _load_json(path: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f, parse_float=Decimal)
    except FileNotFoundError as e:
        raise ConfigurationError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e


def load_type_registry(table: str, path: Optional[str]) -> AttributeTypeRegistry:
    """Read declared types from a {name: tag} mapping or a DescribeTable response."""
    if not path:
        return AttributeTypeRegistry(table)

    data = _load_json(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a JSON object in {path}")

    if "Table" in data or "AttributeDefinitions" in data:
        return AttributeTypeRegistry.from_describe_table(data)

    types: Dict[str, AttributeType] = {}
    for name, tag in data.items():
        try:
            types[name] = AttributeType.from_tag(str(tag))
        except EncodingError as e:
            raise ConfigurationError(f"Invalid type for attribute '{name}' in {path}: {e}") from e
    return AttributeTypeRegistry(table, types)


def run_preview(args) -> int:
    """Print the PutItem bodies the migration would send for local items."""
    items = _load_json(args.input)
    if not isinstance(items, list):
        items = [items]

    registry = load_type_registry(args.table, args.types)
    encoder = ItemEncoder()

    failures = 0
    for item in items:
        try:
            body = encoder.encode_item(item, registry, args.table)
        except (EncodingError, InvalidArgumentError) as e:
            failures += 1
            logger.error(f"Cannot encode item: {e}")
            continue

        print(json.dumps(body, indent=2))
        print("-" * 40)

    return EXIT_FAILURES if failures else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
