"""Runtime type resolution for item attribute values."""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from boto3.dynamodb.types import Binary

from ..errors import UnsupportedTypeError
from ..models.attribute import AttributeType

NUMBER_TYPES = (int, float, Decimal)
BINARY_TYPES = (bytes, bytearray, memoryview, Binary)
SEQUENCE_TYPES = (list, tuple, set, frozenset)


class TypeResolver:
    """
    Decides which wire type a value is emitted as.

    Precedence:
    - None is always NULL, whatever the schema declares
    - a declared type (from the table's attribute definitions) wins next
    - otherwise the type is inferred from the value's runtime kind
    """

    def resolve(self, value: Any, declared_type: Optional[AttributeType] = None) -> AttributeType:
        if value is None:
            return AttributeType.NULL
        if declared_type is not None:
            return declared_type
        return self.infer(value)

    def infer(self, value: Any) -> AttributeType:
        """Infer the wire type from a Python value."""
        if value is None:
            return AttributeType.NULL
        # bool first: it is a subclass of int
        if isinstance(value, bool):
            return AttributeType.BOOLEAN
        if isinstance(value, NUMBER_TYPES):
            return AttributeType.NUMBER
        if isinstance(value, str):
            return AttributeType.STRING
        if isinstance(value, BINARY_TYPES):
            return AttributeType.BINARY
        if isinstance(value, Mapping):
            return AttributeType.MAP
        if isinstance(value, SEQUENCE_TYPES):
            return AttributeType.LIST

        raise UnsupportedTypeError(f"Unsupported type: {type(value).__name__}")
