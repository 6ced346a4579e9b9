"""
Source and Category records.

A Source is a configured external feed that gets polled for new items.
Categories group sources for browsing.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional

from newsintel.models.common import format_datetime, new_id, parse_datetime, utcnow


# Supported source kinds
KIND_GITHUB_REPO = "github_repo"
KIND_RSS = "rss"
KIND_HTML = "html"
KIND_GITHUB_README = "github_readme"

SOURCE_KINDS = (KIND_GITHUB_REPO, KIND_RSS, KIND_HTML, KIND_GITHUB_README)


@dataclass
class Source:
    """
    A configured content source.

    Attributes:
        name: Display name (also used in LLM prompts).
        kind: One of SOURCE_KINDS.
        handle: Feed URL, page URL, or GitHub repository URL / "owner/repo".
        ai_focus: Free-text analysis focus passed to the LLM.
        category_ids: Categories this source belongs to.
        policy_id: Summarization policy applied to this source's digests.
        enabled: Disabled sources are skipped by pipeline runs.
        last_fetched_at: When a fetch last completed successfully.
    """

    name: str
    kind: str
    handle: str

    id: str = field(default_factory=new_id)
    ai_focus: Optional[str] = None
    category_ids: List[str] = field(default_factory=list)
    policy_id: Optional[str] = None
    enabled: bool = True
    created_at: datetime = field(default_factory=utcnow)
    last_fetched_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ValueError: If name/handle are missing or kind is unknown.
        """
        errors = []

        if not self.name or not self.name.strip():
            errors.append("name is required and cannot be empty")

        if not self.handle or not self.handle.strip():
            errors.append("handle is required and cannot be empty")

        if self.kind not in SOURCE_KINDS:
            errors.append(f"kind must be one of {', '.join(SOURCE_KINDS)}, got {self.kind!r}")

        if errors:
            raise ValueError(f"Source validation failed: {'; '.join(errors)}")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = format_datetime(self.created_at)
        data["last_fetched_at"] = format_datetime(self.last_fetched_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Source":
        known = {f for f in cls.__dataclass_fields__}
        data = {k: v for k, v in data.items() if k in known and v is not None}

        created_at = parse_datetime(data.pop("created_at", None))
        if created_at is not None:
            data["created_at"] = created_at
        if "last_fetched_at" in data:
            data["last_fetched_at"] = parse_datetime(data["last_fetched_at"])

        return cls(**data)

    def __str__(self) -> str:
        return f"[{self.kind}] {self.name}"


@dataclass
class Category:
    """A named grouping of sources."""

    name: str

    id: str = field(default_factory=new_id)
    description: str = ""
    color: str = ""
    source_ids: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Category validation failed: name is required and cannot be empty")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = format_datetime(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        known = {f for f in cls.__dataclass_fields__}
        data = {k: v for k, v in data.items() if k in known and v is not None}
        created_at = parse_datetime(data.pop("created_at", None))
        if created_at is not None:
            data["created_at"] = created_at
        return cls(**data)
