"""
In-memory storage backend.

Use this when Supabase is not configured or for testing.
Data is stored in memory and lost when the process ends.
"""

import threading
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from newsintel.models import Category, DailyDigest, FetchRun, Item, Policy, Source
from newsintel.storage.base import Storage, StorageError


def _item_sort_key(item: Item) -> datetime:
    return item.published_at or item.created_at


class MemoryStorage(Storage):
    """
    Dictionary-backed implementation of Storage.

    Enforces the same uniqueness rules as the database schema:
    items by (source_id, url), digests by (source_id, date).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sources: Dict[str, Source] = {}
        self._categories: Dict[str, Category] = {}
        self._policies: Dict[str, Policy] = {}
        self._items: Dict[str, Item] = {}
        self._item_keys: Dict[Tuple[str, str], str] = {}
        self._runs: Dict[str, FetchRun] = {}
        self._digests: Dict[Tuple[str, str], DailyDigest] = {}

    @property
    def name(self) -> str:
        return "memory"

    # Sources

    def list_sources(self, enabled_only: bool = False) -> List[Source]:
        sources = [s for s in self._sources.values() if s.enabled or not enabled_only]
        return sorted(sources, key=lambda s: s.name.lower())

    def get_source(self, source_id: str) -> Optional[Source]:
        return self._sources.get(source_id)

    def save_source(self, source: Source) -> Source:
        self._sources[source.id] = source
        return source

    def delete_source(self, source_id: str) -> bool:
        return self._sources.pop(source_id, None) is not None

    def mark_source_fetched(self, source_id: str, when: datetime) -> None:
        source = self._sources.get(source_id)
        if source is not None:
            source.last_fetched_at = when

    # Categories & policies

    def list_categories(self) -> List[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def save_category(self, category: Category) -> Category:
        self._categories[category.id] = category
        return category

    def delete_category(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None

    def list_policies(self) -> List[Policy]:
        return sorted(self._policies.values(), key=lambda p: p.name.lower())

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        return self._policies.get(policy_id)

    def save_policy(self, policy: Policy) -> Policy:
        self._policies[policy.id] = policy
        return policy

    def delete_policy(self, policy_id: str) -> bool:
        return self._policies.pop(policy_id, None) is not None

    # Items

    def item_exists(self, source_id: str, url: str) -> bool:
        return (source_id, url) in self._item_keys

    def insert_item(self, item: Item) -> Item:
        key = (item.source_id, item.url)
        with self._lock:
            if key in self._item_keys:
                raise StorageError(f"duplicate item for source {item.source_id}: {item.url}")
            self._items[item.id] = item
            self._item_keys[key] = item.id
        return item

    def list_items(
        self,
        source_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Item]:
        items = []
        for item in self._items.values():
            if source_id and item.source_id != source_id:
                continue
            when = _item_sort_key(item)
            if since and when < since:
                continue
            if until and when >= until:
                continue
            items.append(item)

        items.sort(key=_item_sort_key, reverse=True)
        return items[:limit]

    def search_items(
        self,
        query: str,
        limit: int = 50,
        source_id: Optional[str] = None,
    ) -> List[Item]:
        needle = (query or "").strip().lower()
        if not needle:
            return []

        matches = [
            item for item in self._items.values()
            if (not source_id or item.source_id == source_id)
            and (needle in item.title.lower() or needle in (item.content or "").lower())
        ]
        matches.sort(key=_item_sort_key, reverse=True)
        return matches[:limit]

    # Fetch runs

    def start_fetch_run(self, source_id: str) -> FetchRun:
        run = FetchRun(source_id=source_id)
        self._runs[run.id] = run
        return run

    def finish_fetch_run(self, run: FetchRun) -> None:
        self._runs[run.id] = run

    def list_fetch_runs(self, source_id: str, limit: int = 10) -> List[FetchRun]:
        runs = [r for r in self._runs.values() if r.source_id == source_id]
        runs.sort(key=lambda r: r.started_at, reverse=True)
        return runs[:limit]

    # Digests

    def upsert_digest(self, digest: DailyDigest) -> None:
        self._digests[digest.key] = digest

    def get_digest(self, source_id: str, day: date) -> Optional[DailyDigest]:
        return self._digests.get((source_id, day.isoformat()))

    def list_digests(self, source_id: Optional[str] = None, limit: int = 30) -> List[DailyDigest]:
        digests = [
            d for d in self._digests.values()
            if not source_id or d.source_id == source_id
        ]
        digests.sort(key=lambda d: (d.date, d.source_id), reverse=True)
        return digests[:limit]

    # Testing helpers

    def clear(self) -> None:
        """Clear all records (for testing)."""
        self.__init__()

    def count_items(self) -> int:
        """Return number of stored items (for testing)."""
        return len(self._items)
