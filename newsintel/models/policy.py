"""
Summarization policies.

A Policy bundles the parameters that shape a digest: summary length and
style, which insight areas to focus on, what structured fields to extract,
and how many recommendations to give.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional

from newsintel.models.common import format_datetime, new_id, parse_datetime, utcnow


POLICY_SCOPES = ("global", "category", "source")

FOCUS_AREAS = (
    "trends",
    "impact",
    "risks",
    "opportunities",
    "competition",
    "regulation",
)


def _default_extraction_fields() -> Dict[str, List[str]]:
    return {
        "financial": ["amount", "currency", "round", "investors"],
        "research": ["dataset", "metrics", "model", "parameters"],
        "technology": ["product", "version", "features", "compatibility"],
    }


@dataclass
class SummarySettings:
    target_length: int = 150
    language: str = "english"
    style: str = "professional"
    include_references: bool = True
    uncertainty_handling: str = "explicit"


@dataclass
class InsightSettings:
    count: int = 4
    focus_areas: List[str] = field(
        default_factory=lambda: ["trends", "impact", "risks", "opportunities"]
    )
    include_quantitative: bool = True
    highlight_actionable: bool = True


@dataclass
class ExtractionSettings:
    schema: str = "default"
    confidence_threshold: float = 0.8
    fields: Dict[str, List[str]] = field(default_factory=_default_extraction_fields)


@dataclass
class ActionSettings:
    count: int = 3
    target_audience: str = "researchers"
    include_specific_steps: bool = True
    prioritize_by_importance: bool = True


@dataclass
class Policy:
    """
    A named summarization configuration.

    Attributes:
        name: Display name.
        scope: "global", "category" or "source".
        base_policy_id: Policy this one was derived from.
        summary / insights / extraction / actions: Settings blocks.
    """

    name: str

    id: str = field(default_factory=new_id)
    description: str = ""
    scope: str = "global"
    base_policy_id: Optional[str] = None
    summary: SummarySettings = field(default_factory=SummarySettings)
    insights: InsightSettings = field(default_factory=InsightSettings)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    actions: ActionSettings = field(default_factory=ActionSettings)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ValueError: On missing name or out-of-range settings.
        """
        errors = []

        if not self.name or not self.name.strip():
            errors.append("name is required and cannot be empty")

        if self.scope not in POLICY_SCOPES:
            errors.append(f"scope must be one of {', '.join(POLICY_SCOPES)}, got {self.scope!r}")

        if self.summary.target_length < 1:
            errors.append("summary.target_length must be positive")

        if self.insights.count < 1:
            errors.append("insights.count must be positive")

        unknown = [a for a in self.insights.focus_areas if a not in FOCUS_AREAS]
        if unknown:
            errors.append(f"unknown focus areas: {', '.join(unknown)}")

        if not (0.0 <= self.extraction.confidence_threshold <= 1.0):
            errors.append(
                "extraction.confidence_threshold must be between 0.0 and 1.0, "
                f"got {self.extraction.confidence_threshold}"
            )

        if self.actions.count < 0:
            errors.append("actions.count cannot be negative")

        if errors:
            raise ValueError(f"Policy validation failed: {'; '.join(errors)}")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = format_datetime(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Policy":
        known = {f for f in cls.__dataclass_fields__}
        data = {k: v for k, v in data.items() if k in known and v is not None}

        # Settings blocks arrive as JSON objects; form values may be strings
        if isinstance(data.get("summary"), dict):
            block = dict(data["summary"])
            if "target_length" in block:
                block["target_length"] = int(block["target_length"])
            data["summary"] = SummarySettings(**block)
        if isinstance(data.get("insights"), dict):
            block = dict(data["insights"])
            if "count" in block:
                block["count"] = int(block["count"])
            data["insights"] = InsightSettings(**block)
        if isinstance(data.get("extraction"), dict):
            block = dict(data["extraction"])
            if "confidence_threshold" in block:
                block["confidence_threshold"] = float(block["confidence_threshold"])
            data["extraction"] = ExtractionSettings(**block)
        if isinstance(data.get("actions"), dict):
            block = dict(data["actions"])
            if "count" in block:
                block["count"] = int(block["count"])
            data["actions"] = ActionSettings(**block)

        created_at = parse_datetime(data.pop("created_at", None))
        if created_at is not None:
            data["created_at"] = created_at

        return cls(**data)
