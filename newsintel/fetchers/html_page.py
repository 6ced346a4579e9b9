"""
HTML page fetcher.

Scrapes a web page with BeautifulSoup. Pages that carry a latest-papers
section are split into paper items (same rules as README sources);
any other page becomes a single snapshot item whose URL carries a
content-hash fragment, so a changed page is picked up as new content.

GitHub blob pages for markdown files (github.com/<o>/<r>/blob/<ref>/X.md)
are fetched from raw.githubusercontent.com instead of scraping GitHub's UI.
"""

import logging
import re
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from newsintel import httpclient
from newsintel.config import DEFAULT_LIMIT_PER_SOURCE
from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.fetchers.readme import find_latest_section, parse_readme, snapshot_url
from newsintel.models.common import parse_datetime, utcnow
from newsintel.models.item import Item, compute_content_sha
from newsintel.models.source import KIND_HTML

logger = logging.getLogger(__name__)

# Maximum characters of page text kept in a snapshot item
PAGE_TEXT_MAX_CHARS = 5000

_BLOB_MD_RE = re.compile(
    r"^https?://github\.com/([^/]+)/([^/]+)/blob/([^/]+)/(.+\.(?:md|markdown))$",
    re.IGNORECASE,
)


def github_blob_to_raw(url: str) -> Optional[str]:
    """Map a GitHub markdown blob URL to its raw.githubusercontent.com URL."""
    match = _BLOB_MD_RE.match((url or "").split("#")[0].split("?")[0])
    if not match:
        return None
    owner, repo, ref, path = match.groups()
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{path}"


def _meta(soup: BeautifulSoup, *keys: str) -> str:
    """First non-empty <meta> content for the given name/property keys."""
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag and tag.get("content"):
            return tag["content"].strip()
    return ""


def extract_main_text(soup: BeautifulSoup) -> str:
    """Readable text of the page's main content area."""
    for tag in soup(["script", "style", "noscript", "nav", "header", "footer", "aside"]):
        tag.decompose()

    root = soup.find("article") or soup.find("main") or soup.body or soup

    # Keep list and heading structure so section parsing still works on text
    for heading in root.find_all(["h1", "h2", "h3"]):
        heading.replace_with(f"\n## {heading.get_text(' ', strip=True)}\n")
    for li in root.find_all("li"):
        li.replace_with(f"\n* {li.get_text(' ', strip=True)}\n")

    text = root.get_text("\n", strip=True)
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class HTMLPageFetcher(Fetcher):
    """Fetches a single web page and normalizes it into items."""

    @property
    def kind(self) -> str:
        return KIND_HTML

    def fetch(self, handle: str, limit: Optional[int] = None) -> FetchResult:
        if limit is None:
            limit = DEFAULT_LIMIT_PER_SOURCE

        raw_url = github_blob_to_raw(handle)
        target = raw_url or handle

        try:
            response = httpclient.get(target, headers={"Accept": "text/html,application/xhtml+xml,*/*;q=0.8"})
        except requests.RequestException as e:
            logger.error("[%s] Error fetching page %s: %s", self.kind, target, e)
            return FetchResult.failed(f"Failed to fetch HTML: {e}")

        try:
            if raw_url:
                match = _BLOB_MD_RE.match(handle.split("#")[0].split("?")[0])
                label = f"{match.group(1)}/{match.group(2)}" if match else handle
                items = parse_readme(response.text, handle, label, limit)
            else:
                items = self.parse(response.text, handle, limit)
        except ValueError as e:
            logger.error("[%s] Could not build items from %s: %s", self.kind, handle, e)
            return FetchResult.failed(f"Failed to parse HTML: {e}")

        logger.info("[%s] Parsed %d items from %s", self.kind, len(items), handle)
        return FetchResult.ok(items)

    def parse(self, html: str, page_url: str, limit: Optional[int] = None) -> List[Item]:
        """Normalize page HTML into items."""
        if limit is None:
            limit = DEFAULT_LIMIT_PER_SOURCE

        soup = BeautifulSoup(html or "", "html.parser")

        title = _meta(soup, "og:title", "twitter:title")
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()
        title = title or page_url

        author = _meta(soup, "author", "article:author") or "Unknown"
        published = parse_datetime(_meta(soup, "article:published_time", "date", "pubdate"))
        keywords = _meta(soup, "keywords", "news_keywords")
        tags = [k.strip() for k in keywords.split(",") if k.strip()]

        text = extract_main_text(soup)

        if find_latest_section(text) is not None:
            return parse_readme(text, page_url, title, limit)

        content = text[:PAGE_TEXT_MAX_CHARS] or _meta(soup, "description", "og:description")
        if not content:
            return []

        sha = compute_content_sha(page_url, title, content)
        return [Item(
            url=snapshot_url(page_url, sha),
            title=title,
            author=author,
            published_at=published or utcnow(),
            content=content,
            tags=tags,
            metadata={
                "type": "html_page",
                "page_url": page_url,
                "description": _meta(soup, "description", "og:description"),
            },
        )]
