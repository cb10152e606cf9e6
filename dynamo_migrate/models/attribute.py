"""Attribute type model for DynamoDB-compatible items."""

from enum import Enum

from ..errors import UnsupportedTypeError


class AttributeType(str, Enum):
    """Wire tags supported by the encoder."""
    STRING = "S"
    NUMBER = "N"
    BOOLEAN = "BOOL"
    BINARY = "B"
    NULL = "NULL"
    LIST = "L"
    MAP = "M"

    @classmethod
    def from_tag(cls, tag: str) -> "AttributeType":
        """Parse a wire tag such as the AttributeType of a DescribeTable definition."""
        try:
            return cls(tag.upper())
        except (AttributeError, ValueError):
            raise UnsupportedTypeError(f"Unsupported attribute type: {tag!r}") from None
