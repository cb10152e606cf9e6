"""Encoding services for the migration toolkit."""

from .encoder import ItemEncoder, ValueDecoder, ValueEncoder
from .schema_registry import AttributeTypeRegistry
from .type_resolver import TypeResolver

__all__ = [
    "ItemEncoder",
    "ValueDecoder",
    "ValueEncoder",
    "AttributeTypeRegistry",
    "TypeResolver",
]
