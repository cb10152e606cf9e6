"""Table-level registry of declared attribute types and key schema."""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..models.attribute import AttributeType

logger = logging.getLogger(__name__)


class AttributeTypeRegistry:
    """
    Declared attribute types of one source table.

    Populated once from a DescribeTable response and read-only afterwards.
    Only attributes listed in AttributeDefinitions (keys and index keys) are
    declared; everything else is inferred at encode time.
    """

    def __init__(
        self,
        table_name: str,
        attribute_types: Optional[Mapping[str, AttributeType]] = None,
        key_attributes: Optional[List[str]] = None,
    ):
        self.table_name = table_name
        self._types: Dict[str, AttributeType] = dict(attribute_types or {})
        self._key_attributes: List[str] = list(key_attributes or [])

    @classmethod
    def from_describe_table(cls, response: Mapping[str, Any]) -> "AttributeTypeRegistry":
        """
        Build a registry from a DescribeTable response.

        Args:
            response: Either the full response or its "Table" element

        Returns:
            AttributeTypeRegistry for that table
        """
        table = response.get("Table", response)
        types = {
            definition["AttributeName"]: AttributeType.from_tag(definition["AttributeType"])
            for definition in table.get("AttributeDefinitions", [])
        }
        keys = [element["AttributeName"] for element in table.get("KeySchema", [])]

        registry = cls(table.get("TableName", ""), types, keys)
        logger.debug(
            f"Registered {len(types)} declared attribute types for {registry.table_name} (keys: {keys})"
        )
        return registry

    @property
    def key_attributes(self) -> List[str]:
        return list(self._key_attributes)

    def get(self, attribute_name: str) -> Optional[AttributeType]:
        """Declared type of an attribute, or None when it must be inferred."""
        return self._types.get(attribute_name)

    def key_of(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        """Extract the key attributes of an item (all attributes if the key schema is unknown)."""
        if not self._key_attributes:
            return dict(item)
        return {name: item.get(name) for name in self._key_attributes}

    def __contains__(self, attribute_name: object) -> bool:
        return attribute_name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)
