"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ScanPage:
    """One page of a paginated scan."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    cursor: Optional[Dict[str, Any]] = None  # LastEvaluatedKey, None on the last page
    page_number: int = 1
    scanned_count: Optional[int] = None

    @property
    def has_more(self) -> bool:
        return bool(self.cursor)


class BaseExtractor(ABC):
    """
    Base class for paginated item sources.

    Subclasses fetch a single page given the previous page's cursor;
    ``stream`` keeps asking for pages until the source reports no cursor.
    Items are never buffered beyond the current page.
    """

    def __init__(self, table_name: str, page_size: Optional[int] = None):
        """
        Initialize the extractor.

        Args:
            table_name: Source table name
            page_size: Optional per-page item limit passed to the source
        """
        self.table_name = table_name
        self.page_size = page_size
        self.pages_fetched = 0

    @abstractmethod
    def fetch_page(self, cursor: Optional[Dict[str, Any]] = None) -> ScanPage:
        """
        Fetch one page of items.

        Args:
            cursor: Continuation cursor from the previous page, None for the first

        Returns:
            ScanPage with the items and the next cursor
        """
        pass

    def stream(self) -> Iterator[ScanPage]:
        """
        Stream pages until the source is exhausted.

        Yields:
            ScanPage objects in source order
        """
        cursor = None
        while True:
            page = self.fetch_page(cursor)
            self.pages_fetched += 1
            page.page_number = self.pages_fetched
            logger.debug(
                f"Fetched page {page.page_number} of {self.table_name}: {len(page.items)} items"
            )
            yield page

            if not page.has_more:
                break
            cursor = page.cursor

    def iter_items(self) -> Iterator[Dict[str, Any]]:
        """Iterate over every item across all pages."""
        for page in self.stream():
            yield from page.items

    def reset(self) -> None:
        """Reset the extractor state."""
        self.pages_fetched = 0
