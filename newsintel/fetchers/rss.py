"""
RSS/Atom feed fetcher.

Downloads the feed with the retrying HTTP client and parses it with
feedparser, which handles RSS 0.9x/1.0/2.0 and Atom uniformly.
"""

import calendar
import logging
from datetime import datetime, timezone
from typing import List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from newsintel import httpclient
from newsintel.config import DEFAULT_LIMIT_PER_SOURCE
from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.models.common import utcnow
from newsintel.models.item import Item
from newsintel.models.source import KIND_RSS

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8"


def html_to_text(value: str) -> str:
    """Reduce an HTML fragment to whitespace-normalized plain text."""
    if not value:
        return ""
    if "<" not in value:
        return " ".join(value.split())
    text = BeautifulSoup(value, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split())


def entry_datetime(entry) -> Optional[datetime]:
    """Published (or updated) time of a feedparser entry as aware UTC."""
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


class RSSFetcher(Fetcher):
    """
    Fetches entries from an RSS or Atom feed.

    Entries without a title or link are skipped. GitHub commit feeds
    (https://github.com/<owner>/<repo>/commits.atom) are tagged as commits.
    """

    @property
    def kind(self) -> str:
        return KIND_RSS

    def fetch(self, handle: str, limit: Optional[int] = None) -> FetchResult:
        if limit is None:
            limit = DEFAULT_LIMIT_PER_SOURCE

        try:
            response = httpclient.get(handle, headers={"Accept": FEED_ACCEPT})
        except requests.RequestException as e:
            logger.error("[%s] Error fetching feed %s: %s", self.kind, handle, e)
            return FetchResult.failed(f"Failed to fetch RSS: {e}")

        return self.parse(response.content, handle, limit)

    def parse(self, raw: bytes, feed_url: str, limit: Optional[int] = None) -> FetchResult:
        """Parse feed bytes (or text) into a FetchResult."""
        if limit is None:
            limit = DEFAULT_LIMIT_PER_SOURCE

        feed = feedparser.parse(raw)

        if feed.bozo and not feed.entries:
            error = feed.get("bozo_exception") or "unrecognized feed format"
            logger.error("[%s] Could not parse feed %s: %s", self.kind, feed_url, error)
            return FetchResult.failed(f"Failed to parse feed: {error}")

        feed_title = feed.feed.get("title", "")

        items: List[Item] = []
        for entry in feed.entries:
            if len(items) >= limit:
                break
            item = self._normalize_entry(entry, feed_url, feed_title)
            if item is not None:
                items.append(item)

        logger.info("[%s] Parsed %d items from %s", self.kind, len(items), feed_url)
        return FetchResult.ok(items)

    def _normalize_entry(self, entry, feed_url: str, feed_title: str) -> Optional[Item]:
        title = html_to_text(entry.get("title", ""))
        link = entry.get("link", "")
        if not title or not link:
            return None

        content = ""
        if entry.get("content"):
            content = html_to_text(entry["content"][0].get("value", ""))
        if not content:
            content = html_to_text(entry.get("summary", ""))
        if not content:
            content = title

        tags = [t.get("term") for t in entry.get("tags", []) if t.get("term")]
        if "github.com" in link and "/commit/" in link:
            tags = ["commit", "github"] + [t for t in tags if t not in ("commit", "github")]

        try:
            return Item(
                url=link,
                title=title,
                author=entry.get("author") or "Unknown",
                published_at=entry_datetime(entry) or utcnow(),
                content=content,
                tags=tags,
                metadata={
                    "type": "rss_item",
                    "feed_url": feed_url,
                    "feed_title": feed_title,
                    "guid": entry.get("id"),
                },
            )
        except ValueError as e:
            logger.debug("[%s] Skipping entry %r: %s", self.kind, title, e)
            return None
