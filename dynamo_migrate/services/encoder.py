"""Attribute-value encoding between plain Python items and tagged DynamoDB JSON."""

import base64
import binascii
import json
import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from boto3.dynamodb.types import Binary

from ..errors import (
    EncodingError,
    EncodingTooDeepError,
    InvalidArgumentError,
    UnsupportedTypeError,
)
from ..models.attribute import AttributeType
from .type_resolver import BINARY_TYPES, NUMBER_TYPES, SEQUENCE_TYPES, TypeResolver

DEFAULT_MAX_DEPTH = 32


class ValueEncoder:
    """
    Encodes one value into its tagged wire form, e.g. ``{"N": "42"}``.

    The encoder dispatches on the resolved AttributeType, so every member of
    the enum has exactly one handler. Containers recurse with an explicit
    depth counter; going past ``max_depth`` raises EncodingTooDeepError
    instead of exhausting the interpreter stack.
    """

    def __init__(self, resolver: Optional[TypeResolver] = None, max_depth: int = DEFAULT_MAX_DEPTH):
        self.resolver = resolver or TypeResolver()
        self.max_depth = max_depth
        self._handlers = self._register_handlers()

    def _register_handlers(self) -> Dict[AttributeType, Callable[[Any, int], Any]]:
        return {
            AttributeType.NULL: self._encode_null,
            AttributeType.BOOLEAN: self._encode_boolean,
            AttributeType.NUMBER: self._encode_number,
            AttributeType.STRING: self._encode_string,
            AttributeType.BINARY: self._encode_binary,
            AttributeType.LIST: self._encode_list,
            AttributeType.MAP: self._encode_map,
        }

    def encode(self, value: Any, attr_type: AttributeType, depth: int = 0) -> Dict[str, Any]:
        """
        Encode a value whose type has already been resolved.

        Args:
            value: Runtime value
            attr_type: Resolved wire type
            depth: Current nesting level (0 for a top-level attribute)

        Returns:
            Single-key mapping of wire tag to payload
        """
        if depth > self.max_depth:
            raise EncodingTooDeepError(self.max_depth)
        if value is None:
            return {AttributeType.NULL.value: True}

        if not isinstance(attr_type, AttributeType):
            attr_type = AttributeType.from_tag(attr_type)
        payload = self._handlers[attr_type](value, depth)
        return {attr_type.value: payload}

    def encode_value(self, value: Any, depth: int = 0) -> Dict[str, Any]:
        """Resolve the type of a value with no declared schema and encode it."""
        return self.encode(value, self.resolver.resolve(value), depth)

    def _encode_null(self, value: Any, depth: int) -> bool:
        return True

    def _encode_boolean(self, value: Any, depth: int) -> bool:
        if not isinstance(value, bool):
            raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as BOOL")
        return value

    def _encode_number(self, value: Any, depth: int) -> str:
        if isinstance(value, bool) or not isinstance(value, NUMBER_TYPES + (str,)):
            raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as N")

        if isinstance(value, str):
            text = value.strip()
            try:
                number = Decimal(text)
            except InvalidOperation:
                raise UnsupportedTypeError(f"Not a number: {value!r}") from None
            if not number.is_finite():
                raise UnsupportedTypeError(f"Not a finite number: {value!r}")
            # keep the source text, not a re-rendering of it
            return text

        if isinstance(value, Decimal):
            if not value.is_finite():
                raise UnsupportedTypeError(f"Not a finite number: {value!r}")
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise UnsupportedTypeError(f"Not a finite number: {value!r}")
            return repr(value)
        return str(value)

    def _encode_string(self, value: Any, depth: int) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, NUMBER_TYPES):
            return self._encode_number(value, depth)
        raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as S")

    def _encode_binary(self, value: Any, depth: int) -> str:
        if isinstance(value, Binary):
            raw = value.value
        elif isinstance(value, BINARY_TYPES):
            raw = bytes(value)
        elif isinstance(value, str):
            raw = value.encode("utf-8")
        else:
            raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as B")
        return base64.b64encode(raw).decode("ascii")

    def _encode_list(self, value: Any, depth: int) -> List[Dict[str, Any]]:
        if not isinstance(value, SEQUENCE_TYPES):
            raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as L")
        return [self.encode_value(element, depth + 1) for element in value]

    def _encode_map(self, value: Any, depth: int) -> Dict[str, Dict[str, Any]]:
        if not isinstance(value, Mapping):
            raise UnsupportedTypeError(f"Cannot encode {type(value).__name__} as M")
        return {str(key): self.encode_value(element, depth + 1) for key, element in value.items()}


class ValueDecoder:
    """
    Decodes tagged wire values back into plain Python values.

    Numbers come back as Decimal and binaries as bytes, matching what the
    boto3 resource API hands out for scanned items.
    """

    def decode(self, encoded: Mapping) -> Any:
        if not isinstance(encoded, Mapping) or len(encoded) != 1:
            raise EncodingError(f"Expected a single-tag attribute value, got {encoded!r}")

        tag, payload = next(iter(encoded.items()))
        if tag == "NULL":
            return None
        if tag == "S":
            return payload
        if tag == "N":
            return Decimal(payload)
        if tag == "BOOL":
            return bool(payload)
        if tag == "B":
            return self._decode_binary(payload)
        if tag == "L":
            return [self.decode(element) for element in payload]
        if tag == "M":
            return {key: self.decode(element) for key, element in payload.items()}
        if tag == "SS":
            return set(payload)
        if tag == "NS":
            return {Decimal(n) for n in payload}
        if tag == "BS":
            return {self._decode_binary(b) for b in payload}

        raise EncodingError(f"Unknown attribute tag: {tag}")

    def decode_item(self, item: Mapping) -> Dict[str, Any]:
        """Decode every attribute of a wire-format item."""
        return {name: self.decode(value) for name, value in item.items()}

    def _decode_binary(self, payload: Any) -> bytes:
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, TypeError) as e:
            raise EncodingError(f"Invalid base64 payload: {e}") from e


class ItemEncoder:
    """
    Builds PutItem request bodies from scanned items.

    Each attribute's declared type comes from the source table's registry;
    attributes without a declaration (typically everything but the keys) are
    inferred from their values.
    """

    def __init__(self, value_encoder: Optional[ValueEncoder] = None):
        self.value_encoder = value_encoder or ValueEncoder()

    @property
    def resolver(self) -> TypeResolver:
        return self.value_encoder.resolver

    def encode_item(
        self,
        item: Optional[Mapping],
        type_registry: Optional[Any],
        target_table: str,
    ) -> Dict[str, Any]:
        """
        Encode a full item into a PutItem body.

        Args:
            item: Attribute name -> plain value
            type_registry: Anything with ``get(name)`` returning a declared
                AttributeType or None (an AttributeTypeRegistry or a dict)
            target_table: Destination table name

        Returns:
            ``{"TableName": target_table, "Item": {name: encoded, ...}}``
        """
        if not target_table:
            raise InvalidArgumentError("TableName cannot be null or empty")
        if item is None:
            raise InvalidArgumentError("Item cannot be null")
        if not isinstance(item, Mapping):
            raise InvalidArgumentError(f"Item must be a mapping of attribute names, got {type(item).__name__}")

        encoded_item: Dict[str, Dict[str, Any]] = {}
        for name, value in item.items():
            declared = type_registry.get(name) if type_registry is not None else None
            attr_type = self.resolver.resolve(value, declared)
            encoded_item[name] = self.value_encoder.encode(value, attr_type)

        return {"TableName": target_table, "Item": encoded_item}

    @staticmethod
    def to_json(body: Dict[str, Any]) -> str:
        """Serialize a request body to compact wire JSON."""
        return json.dumps(body, separators=(",", ":"))
