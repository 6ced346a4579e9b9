"""
Fetch run audit records and daily digests.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from newsintel.models.common import format_datetime, new_id, parse_datetime, utcnow


@dataclass
class FetchRun:
    """One fetch attempt for a source."""

    source_id: str

    id: str = field(default_factory=new_id)
    started_at: datetime = field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    ok: bool = False
    new_items: int = 0
    error: Optional[str] = None

    def finish(self, ok: bool, new_items: int = 0, error: Optional[str] = None) -> None:
        self.ended_at = utcnow()
        self.ok = ok
        self.new_items = new_items
        self.error = error

    @property
    def duration_seconds(self) -> float:
        if self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "started_at": format_datetime(self.started_at),
            "ended_at": format_datetime(self.ended_at),
            "ok": self.ok,
            "new_items": self.new_items,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FetchRun":
        return cls(
            id=data["id"],
            source_id=data["source_id"],
            started_at=parse_datetime(data.get("started_at")) or utcnow(),
            ended_at=parse_datetime(data.get("ended_at")),
            ok=bool(data.get("ok", False)),
            new_items=int(data.get("new_items") or 0),
            error=data.get("error"),
        )


@dataclass
class DailyDigest:
    """
    LLM-generated summary of one source's items for one day.

    Unique per (source_id, date).
    """

    source_id: str
    date: date
    summary_md: str
    insights_md: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> tuple:
        return (self.source_id, self.date.isoformat())

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "date": self.date.isoformat(),
            "summary_md": self.summary_md,
            "insights_md": self.insights_md,
            "items": list(self.items),
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyDigest":
        day = data["date"]
        if isinstance(day, str):
            day = date.fromisoformat(day[:10])
        return cls(
            source_id=data["source_id"],
            date=day,
            summary_md=data.get("summary_md") or "",
            insights_md=data.get("insights_md") or "",
            items=data.get("items") or [],
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
        )
