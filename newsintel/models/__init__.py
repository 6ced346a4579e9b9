"""
Data models module.

Defines data structures for sources, categories, policies, items,
fetch runs and digests.
"""

from newsintel.models.item import Item, compute_content_sha
from newsintel.models.source import (
    Category,
    Source,
    SOURCE_KINDS,
    KIND_GITHUB_REPO,
    KIND_RSS,
    KIND_HTML,
    KIND_GITHUB_README,
)
from newsintel.models.policy import (
    Policy,
    SummarySettings,
    InsightSettings,
    ExtractionSettings,
    ActionSettings,
    FOCUS_AREAS,
)
from newsintel.models.digest import DailyDigest, FetchRun

__all__ = [
    "Item",
    "compute_content_sha",
    "Category",
    "Source",
    "SOURCE_KINDS",
    "KIND_GITHUB_REPO",
    "KIND_RSS",
    "KIND_HTML",
    "KIND_GITHUB_README",
    "Policy",
    "SummarySettings",
    "InsightSettings",
    "ExtractionSettings",
    "ActionSettings",
    "FOCUS_AREAS",
    "DailyDigest",
    "FetchRun",
]
