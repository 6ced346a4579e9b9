"""
GitHub README fetcher.

Many curated "awesome"/paper-list repositories publish updates by editing
their README, typically under a heading such as:

    Papers last week, updated on 2024-05-20:
    * Paper title one [[paper]](https://...) [[code]](https://...)
    * Paper title two ...

This fetcher downloads the raw README markdown, extracts the latest-papers
section into one item per entry, and falls back to a single snapshot item
when no such section exists.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from urllib.parse import urldefrag

import requests

from newsintel import httpclient
from newsintel.config import DEFAULT_LIMIT_PER_SOURCE
from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.fetchers.github_repo import GH_REPO_URL, github_headers, parse_repo_handle
from newsintel.models.common import utcnow
from newsintel.models.item import Item, compute_content_sha
from newsintel.models.source import KIND_GITHUB_README

logger = logging.getLogger(__name__)

# Maximum characters of README kept in a snapshot item
SNAPSHOT_MAX_CHARS = 5000

_SECTION_END = r"(?=\n[ \t]*\n|\n#{2,3}[ \t]|$)"

SECTION_PATTERNS = [
    re.compile(r"Papers last week, updated on ([^:\n]+):[ \t]*\n*([\s\S]*?)" + _SECTION_END, re.IGNORECASE),
    re.compile(r"Latest papers([^:\n]*):[ \t]*\n*([\s\S]*?)" + _SECTION_END, re.IGNORECASE),
    re.compile(r"Recent papers([^:\n]*):[ \t]*\n*([\s\S]*?)" + _SECTION_END, re.IGNORECASE),
]

# Matches [text](url) and the [[text]](url) badge style used by paper lists
_LINK_RE = re.compile(r"\[{1,2}([^\[\]]+)\]{1,2}\(([^)\s]+)\)")
_ENTRY_SPLIT_RE = re.compile(r"\n[ \t]*[*-][ \t]+")
_DATE_FORMATS = ("%Y-%m-%d", "%Y.%m.%d", "%Y/%m/%d", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")


@dataclass
class LatestSection:
    """The latest-papers block of a README."""
    update_date: Optional[str]
    body: str


def find_latest_section(markdown: str) -> Optional[LatestSection]:
    """
    Locate the latest-papers section in README markdown.

    Returns None when no known heading is present or the section is empty.
    """
    for pattern in SECTION_PATTERNS:
        match = pattern.search(markdown or "")
        if match:
            body = match.group(2).strip()
            if not body:
                continue
            date_text = match.group(1).strip() if pattern is SECTION_PATTERNS[0] else None
            return LatestSection(update_date=date_text or None, body=body)
    return None


def parse_update_date(text: Optional[str]) -> Optional[datetime]:
    """Parse the "updated on" date in any of the common formats."""
    if not text:
        return None
    text = text.strip().rstrip(".")
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def extract_links(text: str) -> List[Tuple[str, str]]:
    """All markdown [text](url) links in a block, in order."""
    return _LINK_RE.findall(text or "")


def strip_markdown(text: str, drop_links: bool = False) -> str:
    """Plain-text version of a single markdown line."""
    text = _LINK_RE.sub("" if drop_links else r"\1", text)
    text = re.sub(r"[*_`]+|\[\s*\]", "", text)
    text = text.strip().lstrip("*-").strip()
    return " ".join(text.split())


def split_entries(body: str) -> List[str]:
    """Split a bulleted block into entry strings (bullets removed)."""
    parts = _ENTRY_SPLIT_RE.split("\n" + body)
    return [p.strip() for p in parts if p.strip()]


def snapshot_url(base_url: str, content_sha: str) -> str:
    """Page URL with a content-hash fragment so changed content gets a new URL."""
    url, _ = urldefrag(base_url)
    return f"{url}#sha-{content_sha[:12]}"


def parse_readme(
    markdown: str,
    page_url: str,
    label: str,
    limit: Optional[int] = None,
) -> List[Item]:
    """
    Normalize README markdown into items.

    Args:
        markdown: Raw README text.
        page_url: Human-facing URL of the README (used for anchors/snapshots).
        label: Repository label, e.g. "owner/repo".
        limit: Maximum number of paper items.

    Returns:
        One item per latest-paper entry, or a single snapshot item.
    """
    if limit is None:
        limit = DEFAULT_LIMIT_PER_SOURCE

    section = find_latest_section(markdown)
    items: List[Item] = []

    if section is not None:
        published = parse_update_date(section.update_date) or utcnow()
        base_url, _ = urldefrag(page_url)

        for index, entry in enumerate(split_entries(section.body)):
            if len(items) >= limit:
                break

            lines = [line for line in entry.splitlines() if line.strip()]
            title = ""
            if lines:
                title = strip_markdown(lines[0], drop_links=True) or strip_markdown(lines[0])
            if not title:
                continue

            links = extract_links(entry)
            web_links = [url for _, url in links if url.startswith(("http://", "https://"))]
            url = web_links[0] if web_links else f"{base_url}#paper-{index + 1}"

            try:
                items.append(Item(
                    url=url,
                    title=title,
                    author=label,
                    published_at=published,
                    content=entry,
                    tags=["paper", "readme"],
                    metadata={
                        "type": "readme_paper",
                        "update_date": section.update_date,
                        "links": [{"text": text, "url": href} for text, href in links],
                        "readme_url": base_url,
                    },
                ))
            except ValueError as e:
                logger.debug("Skipping README entry %r: %s", title, e)

        if items:
            return items

    content = (markdown or "").strip()[:SNAPSHOT_MAX_CHARS]
    if not content:
        return []

    title = f"README update: {label}"
    sha = compute_content_sha(page_url, title, content)
    return [Item(
        url=snapshot_url(page_url, sha),
        title=title,
        author=label,
        published_at=utcnow(),
        content=content,
        tags=["readme"],
        metadata={"type": "readme_snapshot", "readme_url": urldefrag(page_url)[0]},
    )]


class ReadmeFetcher(Fetcher):
    """
    Fetches a repository README through the GitHub API.

    The handle is a repository URL or "owner/repo".
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token

    @property
    def kind(self) -> str:
        return KIND_GITHUB_README

    def fetch(self, handle: str, limit: Optional[int] = None) -> FetchResult:
        parsed = parse_repo_handle(handle)
        if not parsed:
            return FetchResult.failed("Invalid GitHub repository URL")
        owner, repo = parsed

        url = GH_REPO_URL.format(owner=owner, repo=repo) + "/readme"
        try:
            response = httpclient.get(
                url,
                headers=github_headers(self.token, accept="application/vnd.github.raw+json"),
            )
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            logger.error("[%s] GitHub API error for %s/%s README: %s", self.kind, owner, repo, status)
            return FetchResult.failed(f"GitHub API error: {status}")
        except requests.RequestException as e:
            logger.error("[%s] Error fetching README for %s/%s: %s", self.kind, owner, repo, e)
            return FetchResult.failed(str(e))

        page_url = f"https://github.com/{owner}/{repo}#readme"
        try:
            items = parse_readme(response.text, page_url, f"{owner}/{repo}", limit)
        except ValueError as e:
            logger.error("[%s] Could not build items from %s/%s README: %s", self.kind, owner, repo, e)
            return FetchResult.failed(f"Failed to parse README: {e}")

        logger.info("[%s] Parsed %d items from %s/%s README", self.kind, len(items), owner, repo)
        return FetchResult.ok(items)
