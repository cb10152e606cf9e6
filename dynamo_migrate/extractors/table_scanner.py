"""Scan-based extractor for DynamoDB-compatible tables."""

import logging
from typing import Any, Dict, Optional

from .base import BaseExtractor, ScanPage
from ..models.migration import TableMapping

logger = logging.getLogger(__name__)


class TableScanExtractor(BaseExtractor):
    """
    Extractor over a boto3 ``Table`` resource.

    Items come back deserialized (Decimal numbers, Binary wrappers, nested
    lists and dicts), which is the loosely typed input the encoder expects.
    A filter expression and its placeholders are passed through unchanged,
    so partial scans work the same way as full ones.
    """

    def __init__(
        self,
        table: Any,
        table_name: Optional[str] = None,
        filter_expression: Optional[str] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
    ):
        """
        Initialize the scan extractor.

        Args:
            table: boto3 DynamoDB Table resource (anything with ``scan(**kwargs)``)
            table_name: Name used in logs; defaults to ``table.name``
            filter_expression: Optional FilterExpression
            expression_attribute_names: Placeholders for attribute names
            expression_attribute_values: Placeholders for values
            page_size: Optional Limit per scan request
        """
        super().__init__(table_name or getattr(table, "name", ""), page_size)
        self.table = table
        self.filter_expression = filter_expression
        self.expression_attribute_names = expression_attribute_names or {}
        self.expression_attribute_values = expression_attribute_values or {}

    @classmethod
    def for_mapping(cls, table: Any, mapping: TableMapping, page_size: Optional[int] = None) -> "TableScanExtractor":
        """Create an extractor for the source side of a table mapping."""
        return cls(
            table,
            table_name=mapping.source,
            filter_expression=mapping.filter_expression,
            expression_attribute_names=mapping.expression_attribute_names,
            expression_attribute_values=mapping.expression_attribute_values,
            page_size=page_size,
        )

    def _build_params(self, cursor: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Build scan keyword arguments for one page."""
        params: Dict[str, Any] = {}

        if self.filter_expression:
            params["FilterExpression"] = self.filter_expression
        if self.expression_attribute_names:
            params["ExpressionAttributeNames"] = self.expression_attribute_names
        if self.expression_attribute_values:
            params["ExpressionAttributeValues"] = self.expression_attribute_values
        if self.page_size:
            params["Limit"] = self.page_size
        if cursor:
            params["ExclusiveStartKey"] = cursor

        return params

    def fetch_page(self, cursor: Optional[Dict[str, Any]] = None) -> ScanPage:
        """Scan one page of the source table."""
        response = self.table.scan(**self._build_params(cursor))
        return ScanPage(
            items=response.get("Items", []),
            cursor=response.get("LastEvaluatedKey"),
            scanned_count=response.get("ScannedCount"),
        )
