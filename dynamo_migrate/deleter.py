"""Filtered deletion of items whose attribute matches one of a set of values."""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import NoFilterValuesError, SetupError
from .models.record import DeletionResult

logger = logging.getLogger(__name__)

FILTER_NAME = "#attr"


def build_filter(filter_attribute: str, values: List[str]) -> Dict[str, Any]:
    """
    Build the Scan parameters for ``#attr IN (:val0, :val1, ...)``.

    Values are sent as strings.
    """
    placeholders = [f":val{i}" for i in range(len(values))]
    return {
        "FilterExpression": f"{FILTER_NAME} IN ({', '.join(placeholders)})",
        "ExpressionAttributeNames": {FILTER_NAME: filter_attribute},
        "ExpressionAttributeValues": {p: {"S": v} for p, v in zip(placeholders, values)},
    }


class FilteredDeleter:
    """
    Deletes every item of a table whose filter attribute holds one of the
    candidate values.

    The scan follows LastEvaluatedKey until the table is exhausted, and each
    match is deleted with a key built from the table's key schema only.
    """

    def __init__(self, client: Any, dry_run: bool = False):
        """
        Initialize the deleter.

        Args:
            client: boto3 DynamoDB client
            dry_run: If True, count matches without deleting them
        """
        self.client = client
        self.dry_run = dry_run

    def _key_attributes(self, table: str) -> List[str]:
        try:
            response = self.client.describe_table(TableName=table)
        except (ClientError, BotoCoreError) as e:
            raise SetupError(f"Could not describe table {table}: {e}") from e
        return [k["AttributeName"] for k in response["Table"]["KeySchema"]]

    def _scan(self, table: str, params: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        cursor: Optional[Dict[str, Any]] = None
        page = 0
        while True:
            request = dict(params, TableName=table)
            if cursor:
                request["ExclusiveStartKey"] = cursor

            try:
                response = self.client.scan(**request)
            except (ClientError, BotoCoreError) as e:
                raise SetupError(f"Scan of {table} failed on page {page + 1}: {e}") from e
            page += 1
            items = response.get("Items", [])
            logger.debug(f"Delete scan page {page} of {table}: {len(items)} matching items")
            yield from items

            cursor = response.get("LastEvaluatedKey")
            if not cursor:
                break

    def _delete(self, table: str, key: Dict[str, Any], result: DeletionResult) -> None:
        if self.dry_run:
            logger.info(f"[DRY RUN] Would delete item with key: {key}")
            return

        try:
            self.client.delete_item(TableName=table, Key=key)
            result.deleted += 1
            logger.debug(f"Deleted item with key: {key}")
        except (ClientError, BotoCoreError) as e:
            result.errors.append({"key": key, "error": str(e)})
            logger.error(f"Error deleting item {key}: {e}")

    def delete_where(
        self,
        table: str,
        filter_attribute: str,
        candidate_values: Iterable[str],
    ) -> DeletionResult:
        """
        Delete matching items from ``table``.

        Args:
            table: Table to delete from
            filter_attribute: Attribute compared against the candidates
            candidate_values: Values that mark an item for deletion

        Returns:
            DeletionResult with found/deleted counts

        Raises:
            NoFilterValuesError: If no candidate values were given
            SetupError: If the table cannot be described or scanned
        """
        values = [str(v) for v in candidate_values]
        if not values:
            raise NoFilterValuesError("At least one filter value is required")

        result = DeletionResult(table=table, dry_run=self.dry_run)
        key_attributes = self._key_attributes(table)
        params = build_filter(filter_attribute, values)

        logger.info(f"Deleting items from {table} where {filter_attribute} in {values}")

        try:
            for item in self._scan(table, params):
                result.found += 1
                self._delete(table, {name: item[name] for name in key_attributes}, result)
        except SetupError:
            logger.error(
                f"Delete of {table} stopped after finding {result.found} items "
                f"({result.deleted} deleted)"
            )
            raise

        logger.info(
            f"Delete finished for {table}: found {result.found}, deleted {result.deleted}, "
            f"failed {result.failed}"
        )
        return result
