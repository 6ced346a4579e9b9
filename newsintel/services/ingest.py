"""
Fetch-and-save: run a source's fetcher and persist the new items.

Every attempt is recorded as a FetchRun so the API can show fetch history.
"""

import logging
from typing import Dict, Optional, Set

from newsintel.fetchers import Fetcher, FetchResult, default_fetchers
from newsintel.models import FetchRun, Source
from newsintel.models.common import utcnow
from newsintel.storage.base import Storage, StorageError

logger = logging.getLogger(__name__)


class IngestService:
    """
    Fetches a source and saves items that are not already stored.

    Usage:
        service = IngestService(get_storage())
        result = service.fetch_and_save(source_id)
        print(result.new_items)

    Args:
        storage: Storage backend.
        fetchers: Map of source kind -> fetcher. Defaults to all kinds.
        dry_run: Fetch and dedupe only; nothing is written.
        limit: Maximum items requested from each fetcher.
    """

    def __init__(
        self,
        storage: Storage,
        fetchers: Optional[Dict[str, Fetcher]] = None,
        dry_run: bool = False,
        limit: Optional[int] = None,
    ):
        self.storage = storage
        self.fetchers = fetchers if fetchers is not None else default_fetchers()
        self.dry_run = dry_run
        self.limit = limit

    def fetch_and_save(self, source_id: str) -> FetchResult:
        """
        Fetch one source and store its new items.

        Returns:
            FetchResult whose new_items is the number of items saved
            (or that would be saved, in dry-run mode).
        """
        try:
            return self._fetch_and_save(source_id)
        except StorageError as e:
            logger.error("Fetch and save failed for source %s: %s", source_id, e)
            return FetchResult.failed(str(e))

    def _fetch_and_save(self, source_id: str) -> FetchResult:
        source = self.storage.get_source(source_id)
        if source is None:
            return FetchResult.failed("Source not found")

        run = None if self.dry_run else self.storage.start_fetch_run(source.id)

        try:
            return self._ingest(source, run)
        except StorageError:
            raise
        except Exception as e:
            logger.exception("Unexpected error fetching source %s", source.name)
            error = f"{type(e).__name__}: {e}"
            self._finish(run, ok=False, error=error)
            return FetchResult.failed(error)

    def _ingest(self, source: Source, run: Optional[FetchRun]) -> FetchResult:
        fetcher = self.fetchers.get(source.kind)
        if fetcher is None:
            error = f"Unsupported source type: {source.kind}"
            logger.warning("%s (source %s)", error, source.name)
            self._finish(run, ok=False, error=error)
            return FetchResult.failed(error)

        logger.info("Fetching %s source %r (%s)", source.kind, source.name, source.handle)
        fetched = fetcher.fetch(source.handle, limit=self.limit)

        if not fetched.success:
            logger.warning("Fetch failed for %s: %s", source.name, fetched.error)
            self._finish(run, ok=False, error=fetched.error)
            return FetchResult.failed(fetched.error or "Fetch failed")

        saved = []
        seen: Set[str] = set()
        for item in fetched.items:
            if item.url in seen or self.storage.item_exists(source.id, item.url):
                continue
            seen.add(item.url)

            item.source_id = source.id
            if item.published_at is None:
                item.published_at = item.created_at
            item.compute_sha()

            if self.dry_run:
                saved.append(item)
                continue

            try:
                self.storage.insert_item(item)
            except StorageError as e:
                logger.warning("Could not save item %s: %s", item.url, e)
                continue
            saved.append(item)

        self._finish(run, ok=True, new_items=len(saved))
        if not self.dry_run:
            self.storage.mark_source_fetched(source.id, utcnow())

        logger.info(
            "Source %r: %d fetched, %d new%s",
            source.name, len(fetched.items), len(saved), " (dry run)" if self.dry_run else "",
        )
        return FetchResult(success=True, new_items=len(saved), items=saved)

    def _finish(self, run, ok: bool, new_items: int = 0, error: Optional[str] = None) -> None:
        if run is None:
            return
        run.finish(ok=ok, new_items=new_items, error=error)
        self.storage.finish_fetch_run(run)
        logger.debug("Fetch run %s finished in %.2fs (ok=%s)", run.id, run.duration_seconds, ok)


def fetch_and_save(source_id: str, storage: Optional[Storage] = None) -> FetchResult:
    """Convenience wrapper using the shared storage backend."""
    if storage is None:
        from newsintel.storage import get_storage
        storage = get_storage()
    return IngestService(storage).fetch_and_save(source_id)
