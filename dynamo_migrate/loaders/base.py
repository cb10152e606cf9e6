"""Base loader interface for destination endpoints."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class WriteOutcome:
    """Result of one write-type call against the destination."""
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    response_data: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success


class BaseLoader(ABC):
    """
    Base class for destination writers.

    Loaders receive PutItem-shaped bodies (``{"TableName": ..., "Item": ...}``)
    produced by the ItemEncoder and report a WriteOutcome per call. In dry-run
    mode write calls are skipped and reported as successful; read-only calls
    such as the existence check still go out.
    """

    def __init__(self, dry_run: bool = False):
        """
        Initialize the loader.

        Args:
            dry_run: If True, simulate writes without making changes
        """
        self.dry_run = dry_run

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """
        Check whether a destination table exists.

        Args:
            table_name: Destination table name

        Returns:
            True if the endpoint describes the table
        """
        pass

    @abstractmethod
    def put_item(self, body: Dict[str, Any]) -> WriteOutcome:
        """
        Write one encoded item.

        Args:
            body: PutItem request body from ItemEncoder.encode_item

        Returns:
            WriteOutcome indicating success/failure
        """
        pass

    @abstractmethod
    def update_ttl(self, table_name: str, attribute_name: str, ttl_seconds: int) -> WriteOutcome:
        """
        Enable TTL on a destination table.

        Args:
            table_name: Destination table name
            attribute_name: Attribute holding the expiry timestamp
            ttl_seconds: Value sent as TimeToLiveSeconds

        Returns:
            WriteOutcome indicating success/failure
        """
        pass

    def close(self) -> None:
        """Release connections held by the loader."""

    def __enter__(self) -> "BaseLoader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
