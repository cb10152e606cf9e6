"""Data models for the migration toolkit."""

from .attribute import AttributeType
from .migration import (
    DeleteConfig,
    EndpointConfig,
    MigrationConfig,
    MigrationOptions,
    MigrationRun,
    MigrationStatus,
    Protocol,
    TableMapping,
    TableRun,
)
from .record import (
    DeletionResult,
    MigrationResult,
)

__all__ = [
    "AttributeType",
    "DeleteConfig",
    "EndpointConfig",
    "MigrationConfig",
    "MigrationOptions",
    "MigrationRun",
    "MigrationStatus",
    "Protocol",
    "TableMapping",
    "TableRun",
    "DeletionResult",
    "MigrationResult",
]
