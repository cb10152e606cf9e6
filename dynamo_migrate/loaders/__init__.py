"""Destination writers."""

from .base import BaseLoader, WriteOutcome
from .http_loader import HttpLoader
from .table_loader import TableLoader

__all__ = [
    "BaseLoader",
    "WriteOutcome",
    "HttpLoader",
    "TableLoader",
]
