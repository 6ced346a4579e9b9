"""
Base storage abstraction for News Intelligence.

Defines the abstract interface that all storage backends must implement.
This allows swapping between the hosted Supabase database and the
in-memory backend used in development and tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from newsintel.models import Category, DailyDigest, FetchRun, Item, Policy, Source


class StorageError(Exception):
    """Raised when the storage backend rejects or fails an operation."""


class Storage(ABC):
    """
    Abstract base class for all storage backends.

    Tables/collections: sources, categories, policies, items,
    fetch_runs, daily_digests.

    Items are unique per (source_id, url); digests per (source_id, date).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this storage backend (for logging)."""
        pass

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_sources(self, enabled_only: bool = False) -> List[Source]:
        """All sources, ordered by name."""
        pass

    @abstractmethod
    def get_source(self, source_id: str) -> Optional[Source]:
        pass

    @abstractmethod
    def save_source(self, source: Source) -> Source:
        """Insert or update a source by id."""
        pass

    @abstractmethod
    def delete_source(self, source_id: str) -> bool:
        """Delete a source. Returns False if it did not exist."""
        pass

    @abstractmethod
    def mark_source_fetched(self, source_id: str, when: datetime) -> None:
        pass

    # -------------------------------------------------------------------------
    # Categories & policies
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_categories(self) -> List[Category]:
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    def save_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    def delete_category(self, category_id: str) -> bool:
        pass

    @abstractmethod
    def list_policies(self) -> List[Policy]:
        pass

    @abstractmethod
    def get_policy(self, policy_id: str) -> Optional[Policy]:
        pass

    @abstractmethod
    def save_policy(self, policy: Policy) -> Policy:
        pass

    @abstractmethod
    def delete_policy(self, policy_id: str) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @abstractmethod
    def item_exists(self, source_id: str, url: str) -> bool:
        """Whether an item with this URL is already stored for the source."""
        pass

    @abstractmethod
    def insert_item(self, item: Item) -> Item:
        """
        Store a new item.

        Raises:
            StorageError: If the item cannot be stored.
        """
        pass

    @abstractmethod
    def list_items(
        self,
        source_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Item]:
        """
        Items ordered by published_at descending.

        Args:
            source_id: Restrict to one source.
            since: Inclusive lower bound on published_at.
            until: Exclusive upper bound on published_at.
            limit: Maximum number of items.
        """
        pass

    def get_recent_items(self, days: int = 7, limit: int = 200) -> List[Item]:
        """Items published in the last N days, newest first."""
        since = datetime.now(timezone.utc) - timedelta(days=days)
        return self.list_items(since=since, limit=limit)

    def search_items(
        self,
        query: str,
        limit: int = 50,
        source_id: Optional[str] = None,
    ) -> List[Item]:
        """
        Search for items whose title or content contains the query.

        Default implementation returns empty list. Override for backends
        that support text search.
        """
        return []

    # -------------------------------------------------------------------------
    # Fetch runs
    # -------------------------------------------------------------------------

    @abstractmethod
    def start_fetch_run(self, source_id: str) -> FetchRun:
        """Record the start of a fetch (ok=False until finished)."""
        pass

    @abstractmethod
    def finish_fetch_run(self, run: FetchRun) -> None:
        """Persist the final state of a fetch run."""
        pass

    @abstractmethod
    def list_fetch_runs(self, source_id: str, limit: int = 10) -> List[FetchRun]:
        """Most recent fetch runs for a source, newest first."""
        pass

    # -------------------------------------------------------------------------
    # Digests
    # -------------------------------------------------------------------------

    @abstractmethod
    def upsert_digest(self, digest: DailyDigest) -> None:
        """Insert or replace the digest for (source_id, date)."""
        pass

    @abstractmethod
    def get_digest(self, source_id: str, day: date) -> Optional[DailyDigest]:
        pass

    @abstractmethod
    def list_digests(self, source_id: Optional[str] = None, limit: int = 30) -> List[DailyDigest]:
        """Digests ordered by date descending."""
        pass

    def __str__(self) -> str:
        return f"Storage({self.name})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
