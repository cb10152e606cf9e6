"""Migration orchestrator - drives table migrations from source scan to destination writes."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from . import clients
from .errors import SetupError, TableNotFoundError
from .extractors.table_scanner import TableScanExtractor
from .loaders.base import BaseLoader
from .models.migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStatus,
    TableMapping,
    TableRun,
)
from .models.record import MigrationResult
from .services.encoder import ItemEncoder, ValueEncoder
from .services.schema_registry import AttributeTypeRegistry

logger = logging.getLogger(__name__)


@dataclass
class MigrationContext:
    """
    Everything a migration run needs, resolved once and passed in explicitly.

    Tests build one from fakes; the CLI builds one from configuration with
    ``from_config``.
    """
    config: MigrationConfig
    source_client: Any
    source_resource: Any
    loader: BaseLoader
    item_encoder: ItemEncoder

    @classmethod
    def from_config(cls, config: MigrationConfig) -> "MigrationContext":
        """Construct clients and the loader from the source/destination sections."""
        session = clients.create_session(config.source)
        return cls(
            config=config,
            source_client=clients.dynamodb_client(config.source, session),
            source_resource=clients.dynamodb_resource(config.source, session),
            loader=clients.create_loader(config.destination, dry_run=config.options.dry_run),
            item_encoder=ItemEncoder(ValueEncoder(max_depth=config.options.max_depth)),
        )

    def close(self) -> None:
        self.loader.close()


class MigrationOrchestrator:
    """
    Orchestrates table migrations.

    Per table mapping the run goes through:
    - destination existence check (missing table ends that mapping with 0/0)
    - source schema lookup for declared attribute types
    - optional TTL mirroring, before any item is written
    - paginated scan, one item at a time: encode, write, count

    Mappings are processed strictly one after another and their results
    summed into the run totals.
    """

    def __init__(self, context: MigrationContext):
        """
        Initialize the orchestrator.

        Args:
            context: Resolved clients, loader, encoder and configuration
        """
        self.context = context
        self.config = context.config
        self.loader = context.loader
        self.encoder = context.item_encoder
        self.run: Optional[MigrationRun] = None

    def run_migration(self) -> MigrationRun:
        """
        Migrate every configured table mapping in order.

        Returns:
            MigrationRun with per-table results and totals
        """
        self.run = MigrationRun(dry_run=self.config.options.dry_run)
        self.run.started_at = datetime.utcnow()
        self.run.status = MigrationStatus.SCANNING

        for mapping in self.config.tables:
            logger.info(
                f"Starting migration for Source Table: {mapping.source} -> Target Table: {mapping.destination}"
            )
            table_run = self.run_table(mapping)
            self.run.tables.append(table_run)
            self.run.update_totals()

        self.run.status = MigrationStatus.FAILED if self.run.failed_tables else MigrationStatus.COMPLETED
        self.run.completed_at = datetime.utcnow()

        logger.info(
            f"All migrations completed. Total Success: {self.run.total_succeeded} | "
            f"Total Failure: {self.run.total_failed}"
        )
        return self.run

    def migrate_table(self, mapping: TableMapping) -> MigrationResult:
        """Migrate one table mapping and return its final result."""
        return self.run_table(mapping).result

    def run_table(self, mapping: TableMapping) -> TableRun:
        """Run the full state machine for one mapping."""
        table_run = TableRun(mapping=mapping)
        table_run.started_at = datetime.utcnow()
        table_run.result = MigrationResult(source_table=mapping.source, target_table=mapping.destination)

        try:
            table_run.status = MigrationStatus.CHECKING_TABLE
            self._check_destination(mapping.destination)
            registry = self._load_attribute_types(mapping.source)

            if self.config.options.sync_ttl:
                table_run.status = MigrationStatus.SYNCING_TTL
                table_run.ttl_attribute = self._sync_ttl(mapping)

            table_run.status = MigrationStatus.SCANNING
            self._scan_and_load(table_run, registry)
            table_run.status = MigrationStatus.COMPLETED

        except SetupError as e:
            table_run.status = MigrationStatus.FAILED
            table_run.error = str(e)
            logger.error(f"{e} (source table {mapping.source} skipped)")

        except (ClientError, BotoCoreError) as e:
            table_run.status = MigrationStatus.FAILED
            table_run.error = str(e)
            logger.error(f"An error occurred while migrating table {mapping.source}: {e}")

        finally:
            table_run.result.finalize()
            table_run.completed_at = datetime.utcnow()

        result = table_run.result
        logger.info(
            f"Migration completed for Source Table: {mapping.source} -> Target Table: {mapping.destination} "
            f"| Success: {result.success_count} | Failure: {result.failure_count}"
        )
        return table_run

    def _check_destination(self, table_name: str) -> None:
        if not self.loader.table_exists(table_name):
            raise TableNotFoundError(table_name)

    def _load_attribute_types(self, table_name: str) -> AttributeTypeRegistry:
        """Describe the source table and register its declared attribute types."""
        try:
            response = self.context.source_client.describe_table(TableName=table_name)
        except (ClientError, BotoCoreError) as e:
            raise SetupError(f"Could not describe source table {table_name}: {e}") from e
        return AttributeTypeRegistry.from_describe_table(response)

    def _source_ttl_attribute(self, table_name: str) -> Optional[str]:
        """TTL attribute name of the source table, or None when TTL is not enabled."""
        response = self.context.source_client.describe_time_to_live(TableName=table_name)
        description = response.get("TimeToLiveDescription", {})

        if str(description.get("TimeToLiveStatus", "")).upper() == "ENABLED":
            return description.get("AttributeName")

        logger.info(f"TTL is not enabled for table: {table_name}")
        return None

    def _sync_ttl(self, mapping: TableMapping) -> Optional[str]:
        """
        Mirror the source TTL attribute onto the destination.

        Failures are logged and the migration carries on without TTL.

        Returns:
            The TTL attribute configured on the destination, if any
        """
        try:
            attribute = self._source_ttl_attribute(mapping.source)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to check TTL status for table {mapping.source}: {e}")
            return None

        if not attribute:
            return None

        ttl_seconds = int(time.time()) + self.config.options.ttl_offset_seconds
        outcome = self.loader.update_ttl(mapping.destination, attribute, ttl_seconds)
        if not outcome:
            logger.warning(f"Failed to enable TTL for table: {mapping.destination}. Response: {outcome.error}")
            return None

        logger.info(f"TTL enabled for target table: {mapping.destination} (attribute {attribute})")
        return attribute

    def _scan_and_load(self, table_run: TableRun, registry: AttributeTypeRegistry) -> None:
        mapping = table_run.mapping
        extractor = TableScanExtractor.for_mapping(
            self.context.source_resource.Table(mapping.source),
            mapping,
            page_size=self.config.options.page_size,
        )

        for page in extractor.stream():
            table_run.pages_scanned = page.page_number
            for item in page.items:
                self._process_item(item, registry, mapping.destination, table_run.result)

    def _process_item(
        self,
        item: Dict[str, Any],
        registry: AttributeTypeRegistry,
        target_table: str,
        result: MigrationResult,
    ) -> None:
        """Encode and write one item; any failure is counted and the scan continues."""
        item_id = registry.key_of(item)
        logger.debug(f"Processing item: {item_id}")

        try:
            body = self.encoder.encode_item(item, registry, target_table)
            outcome = self.loader.put_item(body)
        except Exception as e:
            result.record_failure(item_id, str(e))
            logger.warning(f"Failed to migrate item {item_id}: {e}")
            return

        if outcome:
            result.record_success()
        else:
            result.record_failure(item_id, outcome.error or "unknown error")
            logger.warning(f"Failed to migrate item {item_id}. Error: {outcome.error}")

    def table_summaries(self) -> List[Dict[str, Any]]:
        """Per-table results of the last run."""
        if not self.run:
            return []
        return [t.to_dict() for t in self.run.tables]
