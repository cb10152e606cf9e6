"""Paginated item sources."""

from .base import BaseExtractor, ScanPage
from .table_scanner import TableScanExtractor

__all__ = [
    "BaseExtractor",
    "ScanPage",
    "TableScanExtractor",
]
