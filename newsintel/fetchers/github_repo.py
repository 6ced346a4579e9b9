"""
GitHub repository fetcher.

Fetches repository details, recent commits and recent releases from the
GitHub REST API and normalizes them into items.

API Documentation: https://docs.github.com/en/rest
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

import requests

from newsintel import httpclient
from newsintel.config import DEFAULT_LIMIT_PER_SOURCE, GITHUB_TOKEN
from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.models.common import parse_datetime
from newsintel.models.item import Item
from newsintel.models.source import KIND_GITHUB_REPO

logger = logging.getLogger(__name__)


GH_API_BASE = "https://api.github.com"
GH_REPO_URL = GH_API_BASE + "/repos/{owner}/{repo}"

COMMITS_PER_PAGE = 10
RELEASES_PER_PAGE = 5

_GITHUB_URL_RE = re.compile(r"github\.com/([^/\s]+)/([^/\s#?]+)")
_SHORT_HANDLE_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")


def parse_repo_handle(handle: str) -> Optional[Tuple[str, str]]:
    """
    Extract (owner, repo) from a GitHub URL or an "owner/repo" handle.

    Extra path segments and a trailing ".git" are ignored.
    Returns None when the handle is not recognizable.
    """
    handle = (handle or "").strip()
    match = _GITHUB_URL_RE.search(handle) or _SHORT_HANDLE_RE.match(handle)
    if not match:
        return None

    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not owner or not repo:
        return None
    return owner, repo


def github_headers(token: Optional[str] = None, accept: str = "application/vnd.github+json") -> Dict[str, str]:
    """Headers for GitHub API requests (token optional)."""
    headers = {
        "Accept": accept,
        "User-Agent": httpclient.USER_AGENT,
    }
    token = GITHUB_TOKEN if token is None else token
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubRepoFetcher(Fetcher):
    """
    Fetches activity for a single GitHub repository.

    Produces:
    - one "Repository Update" item with description, topics and stats
    - one item per recent commit (up to COMMITS_PER_PAGE)
    - one item per recent release (up to RELEASES_PER_PAGE)

    The repository call is required; commits and releases are best-effort.
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token

    @property
    def kind(self) -> str:
        return KIND_GITHUB_REPO

    def fetch(self, handle: str, limit: Optional[int] = None) -> FetchResult:
        if limit is None:
            limit = DEFAULT_LIMIT_PER_SOURCE

        parsed = parse_repo_handle(handle)
        if not parsed:
            return FetchResult.failed("Invalid GitHub repository URL")
        owner, repo = parsed

        api_url = GH_REPO_URL.format(owner=owner, repo=repo)

        try:
            response = httpclient.get(api_url, headers=self._headers())
            repo_data = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            logger.error("[%s] GitHub API error for %s/%s: %s", self.kind, owner, repo, status)
            return FetchResult.failed(f"GitHub API error: {status}")
        except (requests.RequestException, ValueError) as e:
            logger.error("[%s] Error fetching %s/%s: %s", self.kind, owner, repo, e)
            return FetchResult.failed(str(e))

        items: List[Item] = []

        repo_item = self._normalize_repo(repo_data, owner)
        if repo_item is not None:
            items.append(repo_item)

        commits = self._get_optional_list(f"{api_url}/commits", {"per_page": COMMITS_PER_PAGE})
        for commit in commits:
            item = self._normalize_commit(commit)
            if item is not None:
                items.append(item)

        releases = self._get_optional_list(f"{api_url}/releases", {"per_page": RELEASES_PER_PAGE})
        for release in releases:
            item = self._normalize_release(release)
            if item is not None:
                items.append(item)

        items = items[:limit]
        logger.info("[%s] Fetched %d items from %s/%s", self.kind, len(items), owner, repo)
        return FetchResult.ok(items)

    def _headers(self) -> Dict[str, str]:
        return github_headers(self.token)

    def _get_optional_list(self, url: str, params: dict) -> List[dict]:
        """GET a JSON list, returning [] on any failure."""
        try:
            response = httpclient.get(url, headers=self._headers(), params=params)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("[%s] Skipping %s: %s", self.kind, url, e)
            return []
        return data if isinstance(data, list) else []

    def _normalize_repo(self, data: dict, owner: str) -> Optional[Item]:
        try:
            return Item(
                url=data.get("html_url") or "",
                title=f"Repository Update: {data.get('name', '')}",
                author=owner,
                published_at=parse_datetime(data.get("updated_at")),
                content=data.get("description") or "No description available",
                tags=list(data.get("topics") or []),
                metadata={
                    "stars": data.get("stargazers_count"),
                    "forks": data.get("forks_count"),
                    "language": data.get("language"),
                    "type": "repository_info",
                },
            )
        except ValueError as e:
            logger.warning("[%s] Invalid repository payload: %s", self.kind, e)
            return None

    def _normalize_commit(self, commit: dict) -> Optional[Item]:
        details = commit.get("commit") or {}
        message = details.get("message") or ""
        author = details.get("author") or {}

        try:
            return Item(
                url=commit.get("html_url") or "",
                title=f"Commit: {message.splitlines()[0] if message else commit.get('sha', '')[:7]}",
                author=author.get("name") or "Unknown",
                published_at=parse_datetime(author.get("date")),
                content=message,
                tags=["commit"],
                metadata={
                    "sha": commit.get("sha"),
                    "type": "commit",
                },
            )
        except ValueError as e:
            logger.debug("[%s] Skipping commit: %s", self.kind, e)
            return None

    def _normalize_release(self, release: dict) -> Optional[Item]:
        author = release.get("author") or {}

        try:
            return Item(
                url=release.get("html_url") or "",
                title=f"Release: {release.get('name') or release.get('tag_name') or ''}",
                author=author.get("login") or "Unknown",
                published_at=parse_datetime(release.get("published_at")),
                content=release.get("body") or "No release notes",
                tags=["release"],
                metadata={
                    "tag_name": release.get("tag_name"),
                    "type": "release",
                },
            )
        except ValueError as e:
            logger.debug("[%s] Skipping release: %s", self.kind, e)
            return None
