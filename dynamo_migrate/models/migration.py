"""Migration configuration and run-tracking models."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import datetime
import uuid

import yaml

from ..errors import ConfigurationError
from .record import MigrationResult

DEFAULT_REGION = "us-east-1"


class MigrationStatus(str, Enum):
    """State of one table migration (or of the whole run)."""
    PENDING = "pending"
    CHECKING_TABLE = "checking_table"
    SYNCING_TTL = "syncing_ttl"
    SCANNING = "scanning"
    COMPLETED = "completed"
    FAILED = "failed"


class Protocol(str, Enum):
    """How items are written to the destination."""
    HTTP = "http"  # DynamoDB JSON over HTTP
    SDK = "sdk"  # boto3 resource API


def _require(data: Dict[str, Any], key: str, section: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError(
            f"Missing required key '{key}' in '{section}' section",
            section=section,
            key=key,
        )
    return value


def _number(data: Dict[str, Any], key: str, section: str, cast: Callable[[Any], Any], default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        value = "true" if value else "false"
    try:
        return cast(value)
    except (ValueError, TypeError):
        raise ConfigurationError(
            f"Invalid value {value!r} for '{section}.{key}'. Expected a number.",
            section=section,
            key=key,
        ) from None


def _flag(data: Dict[str, Any], key: str, section: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigurationError(
        f"Invalid value {value!r} for '{section}.{key}'. Expected true or false.",
        section=section,
        key=key,
    )


def _section(data: Dict[str, Any], name: str, required: bool = True) -> Optional[Dict[str, Any]]:
    value = data.get(name)
    if value is None:
        if required:
            raise ConfigurationError(f"Missing required section '{name}'", section=name)
        return None
    if not isinstance(value, dict):
        raise ConfigurationError(
            f"Invalid format for '{name}' section. Expected a mapping.", section=name
        )
    return value


@dataclass
class EndpointConfig:
    """Connection settings for one DynamoDB-compatible endpoint."""
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    protocol: Protocol = Protocol.SDK
    timeout: float = 30.0
    retry_config: Dict[str, Any] = field(default_factory=lambda: {
        "max_retries": 3,
        "backoff_factor": 0.5,
    })

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (credentials omitted)."""
        return {
            "region": self.region,
            "endpoint": self.endpoint,
            "protocol": self.protocol.value,
            "timeout": self.timeout,
            "retry_config": self.retry_config,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        section: str,
        require_endpoint: bool = False,
        default_protocol: Protocol = Protocol.SDK,
    ) -> "EndpointConfig":
        """Create from a config section, validating required keys."""
        endpoint = _require(data, "endpoint", section) if require_endpoint else data.get("endpoint")

        protocol_value = data.get("protocol", default_protocol.value)
        try:
            protocol = Protocol(str(protocol_value).lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid protocol '{protocol_value}' in '{section}' section (expected http or sdk)",
                section=section,
                key="protocol",
            ) from None

        access_key = data.get("access_key", data.get("accessKey"))
        secret_key = data.get("secret_key", data.get("secretKey"))
        if bool(access_key) != bool(secret_key):
            raise ConfigurationError(
                f"'{section}' section must set both access_key and secret_key, or neither",
                section=section,
                key="secret_key" if access_key else "access_key",
            )

        retry = data.get("retry") or {}
        if not isinstance(retry, dict):
            raise ConfigurationError(
                f"Invalid format for '{section}.retry'. Expected a mapping.", section=section, key="retry"
            )

        return cls(
            region=data.get("region") or DEFAULT_REGION,
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            protocol=protocol,
            timeout=_number(data, "timeout", section, float, 30.0),
            retry_config={
                "max_retries": _number(retry, "max_retries", f"{section}.retry", int, 3),
                "backoff_factor": _number(retry, "backoff_factor", f"{section}.retry", float, 0.5),
            },
        )


@dataclass
class TableMapping:
    """A (source table, target table) pair, the unit of work of a run."""
    source: str
    destination: str
    filter_expression: Optional[str] = None
    expression_attribute_names: Dict[str, str] = field(default_factory=dict)
    expression_attribute_values: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "destination": self.destination,
            "filter_expression": self.filter_expression,
            "expression_attribute_names": self.expression_attribute_names,
            "expression_attribute_values": self.expression_attribute_values,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "TableMapping":
        """Create from a `tables` entry."""
        section = f"tables[{index}]"
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid format for '{section}'. Expected a mapping with source/destination.",
                section="tables",
            )

        source = data.get("source", data.get("sourceTableName"))
        if not source:
            raise ConfigurationError(
                f"Missing required key 'source' in '{section}'", section="tables", key="source"
            )
        destination = data.get("destination", data.get("targetTableName")) or source

        return cls(
            source=str(source),
            destination=str(destination),
            filter_expression=data.get("filter_expression"),
            expression_attribute_names=dict(data.get("expression_attribute_names") or {}),
            expression_attribute_values=dict(data.get("expression_attribute_values") or {}),
        )


@dataclass
class MigrationOptions:
    """Execution options for a migration run."""
    sync_ttl: bool = True
    ttl_offset_seconds: int = 900
    max_depth: int = 32
    page_size: Optional[int] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "sync_ttl": self.sync_ttl,
            "ttl_offset_seconds": self.ttl_offset_seconds,
            "max_depth": self.max_depth,
            "page_size": self.page_size,
            "dry_run": self.dry_run,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationOptions":
        """Create from the `options` section."""
        max_depth = _number(data, "max_depth", "options", int, 32)
        if max_depth < 1:
            raise ConfigurationError(
                "'options.max_depth' must be at least 1", section="options", key="max_depth"
            )
        page_size = _number(data, "page_size", "options", int, None)
        return cls(
            sync_ttl=_flag(data, "sync_ttl", "options", True),
            ttl_offset_seconds=_number(data, "ttl_offset_seconds", "options", int, 900),
            max_depth=max_depth,
            page_size=page_size or None,
            dry_run=_flag(data, "dry_run", "options", False),
        )


@dataclass
class DeleteConfig:
    """Configuration for a filtered delete."""
    table: str
    filter_attribute: str
    filter_values: List[str] = field(default_factory=list)
    endpoint: Optional[EndpointConfig] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], fallback: Optional[EndpointConfig] = None) -> "DeleteConfig":
        """Create from the `delete` section; connection keys fall back to `destination`."""
        table = _require(data, "table", "delete")
        attribute = _require(data, "filter_attribute", "delete")

        raw_values = data.get("filter_values", "")
        if isinstance(raw_values, str):
            values = [v.strip() for v in raw_values.split(",")]
        elif isinstance(raw_values, list):
            values = [str(v).strip() for v in raw_values]
        else:
            raise ConfigurationError(
                "Invalid format for 'delete.filter_values'. Expected a list or comma-separated string.",
                section="delete",
                key="filter_values",
            )

        values = [v for v in values if v]
        if not values:
            raise ConfigurationError(
                "'delete.filter_values' must name at least one value",
                section="delete",
                key="filter_values",
            )

        if any(k in data for k in ("endpoint", "region", "access_key", "secret_key")):
            endpoint = EndpointConfig.from_dict(data, "delete")
        elif fallback is not None:
            endpoint = fallback
        else:
            raise ConfigurationError(
                "Missing connection settings for delete: set 'delete.endpoint' or a 'destination' section",
                section="delete",
                key="endpoint",
            )

        return cls(
            table=str(table),
            filter_attribute=str(attribute),
            filter_values=values,
            endpoint=endpoint,
        )


@dataclass
class MigrationConfig:
    """Complete configuration loaded from a YAML file."""
    source: Optional[EndpointConfig] = None
    destination: Optional[EndpointConfig] = None
    tables: List[TableMapping] = field(default_factory=list)
    options: MigrationOptions = field(default_factory=MigrationOptions)
    delete: Optional[DeleteConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source.to_dict() if self.source else None,
            "destination": self.destination.to_dict() if self.destination else None,
            "tables": [t.to_dict() for t in self.tables],
            "options": self.options.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], require_migration: bool = True) -> "MigrationConfig":
        """
        Create from a parsed configuration mapping.

        Args:
            data: Parsed YAML document
            require_migration: If True, `source`, `destination` and `tables`
                must all be present (the `run` command); otherwise only the
                sections that exist are parsed.

        Raises:
            ConfigurationError: naming the missing or malformed section/key
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping of named sections")

        source_data = _section(data, "source", required=require_migration)
        destination_data = _section(data, "destination", required=require_migration)

        source = EndpointConfig.from_dict(source_data, "source") if source_data is not None else None
        destination = None
        if destination_data is not None:
            destination = EndpointConfig.from_dict(
                destination_data,
                "destination",
                require_endpoint=True,
                default_protocol=Protocol.HTTP,
            )

        tables: List[TableMapping] = []
        tables_data = data.get("tables")
        if isinstance(tables_data, dict):
            tables_data = [tables_data]
        if tables_data is not None and not isinstance(tables_data, list):
            raise ConfigurationError(
                "Invalid format for 'tables' section. Expected a list of mappings.", section="tables"
            )
        for index, entry in enumerate(tables_data or []):
            tables.append(TableMapping.from_dict(entry, index))
        if require_migration and not tables:
            raise ConfigurationError("Missing required section 'tables'", section="tables")

        options = MigrationOptions.from_dict(_section(data, "options", required=False) or {})

        delete_data = _section(data, "delete", required=False)
        delete = DeleteConfig.from_dict(delete_data, destination) if delete_data is not None else None

        return cls(
            source=source,
            destination=destination,
            tables=tables,
            options=options,
            delete=delete,
        )

    @classmethod
    def from_yaml_file(cls, file_path: str, require_migration: bool = True) -> "MigrationConfig":
        """Load configuration from a YAML file."""
        try:
            with open(file_path, "r") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {file_path}") from None
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {file_path}: {e}") from e

        if data is None:
            raise ConfigurationError(f"Configuration file is empty: {file_path}")
        return cls.from_dict(data, require_migration=require_migration)


@dataclass
class TableRun:
    """Progress of one table mapping through the migration state machine."""
    mapping: TableMapping
    status: MigrationStatus = MigrationStatus.PENDING
    result: Optional[MigrationResult] = None
    ttl_attribute: Optional[str] = None
    pages_scanned: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.mapping.source,
            "destination": self.mapping.destination,
            "status": self.status.value,
            "result": self.result.to_dict() if self.result else None,
            "ttl_attribute": self.ttl_attribute,
            "pages_scanned": self.pages_scanned,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }


@dataclass
class MigrationRun:
    """A complete multi-table migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    dry_run: bool = False
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tables: List[TableRun] = field(default_factory=list)
    total_succeeded: int = 0
    total_failed: int = 0

    @property
    def total_processed(self) -> int:
        return self.total_succeeded + self.total_failed

    @property
    def failed_tables(self) -> List[TableRun]:
        return [t for t in self.tables if t.status == MigrationStatus.FAILED]

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def update_totals(self) -> None:
        """Sum per-table results into the run totals."""
        results = [t.result for t in self.tables if t.result is not None]
        self.total_succeeded = sum(r.success_count for r in results)
        self.total_failed = sum(r.failure_count for r in results)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "dry_run": self.dry_run,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "tables": [t.to_dict() for t in self.tables],
            "total_processed": self.total_processed,
            "total_succeeded": self.total_succeeded,
            "total_failed": self.total_failed,
        }
