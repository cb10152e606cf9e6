"""Exception types raised by the migration toolkit."""

from typing import Optional


class MigrationError(Exception):
    """Base class for all toolkit errors."""


class ConfigurationError(MigrationError):
    """Configuration file is missing, unreadable or incomplete."""

    def __init__(self, message: str, section: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.section = section
        self.key = key


class SetupError(MigrationError):
    """A table mapping cannot start (fatal for that mapping only)."""


class TableNotFoundError(SetupError):
    """The destination table does not exist."""

    def __init__(self, table_name: str):
        super().__init__(f"Target table does not exist: {table_name}")
        self.table_name = table_name


class EncodingError(MigrationError):
    """An item could not be converted to the tagged wire format."""


class UnsupportedTypeError(EncodingError):
    """A value's runtime kind (or declared type) has no wire representation."""


class EncodingTooDeepError(EncodingError):
    """Nested lists/maps exceed the configured depth bound."""

    def __init__(self, max_depth: int):
        super().__init__(f"Value nesting exceeds maximum depth of {max_depth}")
        self.max_depth = max_depth


class InvalidArgumentError(MigrationError, ValueError):
    """A required argument was empty or missing."""


class NoFilterValuesError(MigrationError, ValueError):
    """A filtered delete was requested without candidate values."""


class TransportError(MigrationError):
    """The destination endpoint answered with a non-success status."""

    def __init__(self, operation: str, status_code: int, body: str):
        super().__init__(f"{operation} failed with HTTP {status_code}: {body}")
        self.operation = operation
        self.status_code = status_code
        self.body = body
