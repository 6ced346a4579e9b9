"""
Base fetcher abstraction for News Intelligence.

Defines the abstract interface that every source kind must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from newsintel.models.item import Item


@dataclass
class FetchResult:
    """
    Result of fetching (or fetching and saving) a source.

    Attributes:
        success: Whether the fetch completed.
        new_items: Number of items fetched (or saved, after ingestion).
        error: Error message when success is False.
        items: The normalized items.
    """
    success: bool
    new_items: int = 0
    error: Optional[str] = None
    items: List[Item] = field(default_factory=list)

    @classmethod
    def ok(cls, items: List[Item]) -> "FetchResult":
        return cls(success=True, new_items=len(items), items=items)

    @classmethod
    def failed(cls, error: str) -> "FetchResult":
        return cls(success=False, new_items=0, error=error)


class Fetcher(ABC):
    """
    Abstract base class for all source kinds.

    Each kind (GitHub repository, RSS feed, HTML page, README) implements
    this interface and is looked up by Source.kind.
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """
        Return the source kind handled by this fetcher.

        Must be one of newsintel.models.SOURCE_KINDS.
        """
        pass

    @abstractmethod
    def fetch(self, handle: str, limit: Optional[int] = None) -> FetchResult:
        """
        Fetch items for a source handle and return them normalized.

        Implementations should:
        - Respect the limit parameter (or use DEFAULT_LIMIT_PER_SOURCE if None)
        - Skip entries that cannot be normalized (missing title or URL)
        - Return FetchResult.failed(...) on network or parse failure
          instead of raising

        Args:
            handle: Source URL or identifier.
            limit: Maximum number of items to return.

        Returns:
            FetchResult with the normalized items.
        """
        pass

    def __str__(self) -> str:
        return f"Fetcher({self.kind})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.kind!r}>"
