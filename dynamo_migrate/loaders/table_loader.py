"""Loader that writes through the boto3 SDK."""

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseLoader, WriteOutcome
from ..services.encoder import ValueDecoder

logger = logging.getLogger(__name__)


class TableLoader(BaseLoader):
    """
    Loader for endpoints reached through boto3 (same-cluster or
    cross-cluster copies).

    Encoded bodies are decoded back to plain values and written with the
    resource API, so both loaders share the same encoding path and the
    same item representation on the destination.
    """

    def __init__(
        self,
        client: Any,
        resource: Any,
        dry_run: bool = False,
        decoder: Optional[ValueDecoder] = None,
    ):
        """
        Initialize the SDK loader.

        Args:
            client: boto3 DynamoDB client (describe/TTL calls)
            resource: boto3 DynamoDB service resource (item writes)
            dry_run: If True, simulate writes without making changes
            decoder: Decoder for encoded item bodies
        """
        super().__init__(dry_run)
        self.client = client
        self.resource = resource
        self.decoder = decoder or ValueDecoder()
        self._tables: Dict[str, Any] = {}

    def _table(self, table_name: str) -> Any:
        if table_name not in self._tables:
            self._tables[table_name] = self.resource.Table(table_name)
        return self._tables[table_name]

    @staticmethod
    def _client_error(operation: str, e: Exception) -> WriteOutcome:
        if isinstance(e, ClientError):
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"].get("Message", "")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            return WriteOutcome(success=False, status_code=status, error=f"{operation} {error_code}: {error_message}")
        return WriteOutcome(success=False, error=f"{operation} failed: {e}")

    def table_exists(self, table_name: str) -> bool:
        """Check table existence with DescribeTable."""
        try:
            self.client.describe_table(TableName=table_name)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                logger.error(f"Error checking for table existence: {e}")
            return False
        except BotoCoreError as e:
            logger.error(f"Error checking for table existence: {e}")
            return False

    def put_item(self, body: Dict[str, Any]) -> WriteOutcome:
        """Decode an encoded body and write it with Table.put_item."""
        item = self.decoder.decode_item(body["Item"])
        if self.dry_run:
            return WriteOutcome(success=True)

        try:
            self._table(body["TableName"]).put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            return self._client_error("PutItem", e)

        return WriteOutcome(success=True, status_code=200)

    def update_ttl(self, table_name: str, attribute_name: str, ttl_seconds: int) -> WriteOutcome:
        """
        Enable TTL through UpdateTimeToLive.

        The SDK request shape has no TimeToLiveSeconds member, so only the
        attribute name is sent.
        """
        if self.dry_run:
            return WriteOutcome(success=True)

        try:
            self.client.update_time_to_live(
                TableName=table_name,
                TimeToLiveSpecification={"Enabled": True, "AttributeName": attribute_name},
            )
        except (ClientError, BotoCoreError) as e:
            return self._client_error("UpdateTimeToLive", e)

        return WriteOutcome(success=True, status_code=200)
