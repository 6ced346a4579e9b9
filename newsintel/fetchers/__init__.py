"""
Fetchers module.

One fetcher per source kind: GitHub repository, RSS/Atom feed,
HTML page, GitHub README.
"""

from typing import Dict, Optional

from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.fetchers.github_repo import GitHubRepoFetcher, parse_repo_handle
from newsintel.fetchers.rss import RSSFetcher
from newsintel.fetchers.html_page import HTMLPageFetcher
from newsintel.fetchers.readme import ReadmeFetcher


def default_fetchers() -> Dict[str, Fetcher]:
    """Map of source kind -> fetcher instance."""
    fetchers = [
        GitHubRepoFetcher(),
        RSSFetcher(),
        HTMLPageFetcher(),
        ReadmeFetcher(),
    ]
    return {f.kind: f for f in fetchers}


def get_fetcher(kind: str) -> Optional[Fetcher]:
    """Return the fetcher for a source kind, or None if unsupported."""
    return default_fetchers().get(kind)


__all__ = [
    "Fetcher",
    "FetchResult",
    "GitHubRepoFetcher",
    "RSSFetcher",
    "HTMLPageFetcher",
    "ReadmeFetcher",
    "parse_repo_handle",
    "default_fetchers",
    "get_fetcher",
]
