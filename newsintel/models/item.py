"""
Core data model for News Intelligence.

Defines the Item dataclass representing a single normalized unit of content
fetched from any source kind (GitHub repository, RSS/Atom feed, HTML page,
GitHub README).
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional
import hashlib

from newsintel.models.common import format_datetime, new_id, parse_datetime, utcnow


def compute_content_sha(url: str, title: str, content: str) -> str:
    """SHA-256 hex digest of url + title + content, used for change detection."""
    text = f"{url or ''}{title or ''}{content or ''}"
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass
class Item:
    """
    A single piece of content discovered from a source.

    This is the structure that flows through the ingestion path:
    fetcher -> dedupe -> storage -> analyzer -> digest.

    Attributes:
        url: Link to the original content. Used with source_id for dedup.
        title: Headline / commit message / release name.
        source_id: Owning Source record id (empty until ingested).
        author: Author name or login ("Unknown" when the feed has none).
        published_at: When the content was published on the origin platform.
        content: Body text (plain text or markdown).
        tags: Topic/category labels.
        metadata: Kind-specific extras (stars, sha, tag_name, ...).
        content_sha: SHA-256 of url + title + content.
    """

    # Required fields
    url: str
    title: str

    # Optional fields with defaults
    source_id: str = ""
    id: str = field(default_factory=new_id)
    author: str = "Unknown"
    published_at: Optional[datetime] = None
    content: str = ""
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    content_sha: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        """Validate fields after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate that required fields are present and valid.

        Raises:
            ValueError: If validation fails.
        """
        errors = []

        if not self.title or not self.title.strip():
            errors.append("title is required and cannot be empty")

        if not self.url or not self.url.strip():
            errors.append("url is required and cannot be empty")
        elif not (self.url.startswith("http://") or self.url.startswith("https://")):
            errors.append(f"url must start with http:// or https://, got {self.url}")

        if errors:
            raise ValueError(f"Item validation failed: {'; '.join(errors)}")

    def compute_sha(self) -> str:
        """Compute and store the content hash."""
        self.content_sha = compute_content_sha(self.url, self.title, self.content)
        return self.content_sha

    def to_dict(self) -> dict:
        """
        Convert Item to a plain dictionary for storage/serialization.

        Datetime fields are converted to ISO format strings.
        """
        data = asdict(self)
        data["published_at"] = format_datetime(self.published_at)
        data["created_at"] = format_datetime(self.created_at)
        return data

    def to_reference(self) -> dict:
        """Short {id, title, url} form stored alongside digests."""
        return {"id": self.id, "title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        """
        Create an Item from a dictionary (e.g., a database row).

        Unknown keys are ignored so extra columns don't break loading.
        """
        known = {f for f in cls.__dataclass_fields__}
        data = {k: v for k, v in data.items() if k in known}

        data["published_at"] = parse_datetime(data.get("published_at"))
        created_at = parse_datetime(data.pop("created_at", None))
        if created_at is not None:
            data["created_at"] = created_at

        for key in ("id", "tags", "metadata", "author", "source_id", "content_sha"):
            if data.get(key) is None:
                data.pop(key, None)
        if data.get("content") is None:
            data["content"] = ""

        return cls(**data)

    def __str__(self) -> str:
        return f"{self.title} <{self.url}>"

    def __repr__(self) -> str:
        return f"Item(id={self.id!r}, title={self.title!r}, source_id={self.source_id!r})"
