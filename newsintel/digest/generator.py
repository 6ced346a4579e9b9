"""
Daily Digest Generator for News Intelligence.

Builds one DailyDigest per (source, day) from the items stored for that
source, using the AI analyzer for the narrative summary and plain
statistics for the insights section.

Output:
    - daily_digests row (upserted by source_id + date)
    - optional Markdown copy at <output_dir>/YYYY-MM-DD-<source-slug>.md
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from newsintel.config import DIGEST_OUTPUT_DIR
from newsintel.digest.stats import build_insights_markdown
from newsintel.models import DailyDigest, Item, Policy, Source
from newsintel.services.analyzer import AIAnalyzer, AnalysisResult, get_analyzer
from newsintel.storage.base import Storage, StorageError

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "No new content today"
EMPTY_INSIGHTS = "No insights yet"


# =============================================================================
# Digest Configuration
# =============================================================================

@dataclass
class DigestConfig:
    """
    Configuration for digest generation.

    Attributes:
        limit: Maximum number of items read for one day.
        output_dir: Directory for Markdown copies (None = don't write files).
        persist: Whether to upsert the digest into storage.
    """
    limit: int = 200
    output_dir: Optional[str] = DIGEST_OUTPUT_DIR
    persist: bool = True


# =============================================================================
# Digest Result
# =============================================================================

@dataclass
class DigestResult:
    """
    Result of digest generation.

    Attributes:
        success: Whether a digest was produced.
        source_id: Source the digest belongs to.
        digest: The generated digest.
        filepath: Path to the Markdown copy, if one was written.
        items_included: Number of items summarized.
        error: Error message if generation failed.
    """
    success: bool
    source_id: str = ""
    digest: Optional[DailyDigest] = None
    filepath: Optional[str] = None
    items_included: int = 0
    error: Optional[str] = None


def day_window(day: date):
    """[day 00:00 UTC, next day 00:00 UTC)"""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug or "source"


# =============================================================================
# Digest Generator
# =============================================================================

class DigestGenerator:
    """
    Generates daily digests from stored items.

    Usage:
        generator = DigestGenerator(get_storage())
        result = generator.generate(source_id, date.today())
        print(result.digest.summary_md)
    """

    def __init__(
        self,
        storage: Storage,
        analyzer: Optional[AIAnalyzer] = None,
        config: Optional[DigestConfig] = None,
    ):
        self.storage = storage
        self.analyzer = analyzer or get_analyzer()
        self.config = config or DigestConfig()

    def generate(self, source_id: str, day: Optional[date] = None) -> DigestResult:
        """
        Generate the digest for one source and day.

        Args:
            source_id: Source to summarize.
            day: Target day (UTC). Defaults to today.

        Returns:
            DigestResult; days without items yield the "no content" digest,
            which is not persisted.
        """
        if day is None:
            day = datetime.now(timezone.utc).date()

        try:
            since, until = day_window(day)
            items = self.storage.list_items(
                source_id=source_id, since=since, until=until, limit=self.config.limit,
            )
        except StorageError as e:
            logger.error("Could not load items for digest %s/%s: %s", source_id, day, e)
            return DigestResult(success=False, source_id=source_id, error=str(e))

        if not items:
            logger.info("No items for source %s on %s", source_id, day)
            digest = DailyDigest(
                source_id=source_id,
                date=day,
                summary_md=EMPTY_SUMMARY,
                insights_md=EMPTY_INSIGHTS,
            )
            return DigestResult(success=True, source_id=source_id, digest=digest)

        try:
            source = self.storage.get_source(source_id)
            policy = self._load_policy(source)
        except StorageError as e:
            logger.error("Could not load source %s: %s", source_id, e)
            return DigestResult(success=False, source_id=source_id, error=str(e))

        source_name = source.name if source else source_id
        ai_focus = source.ai_focus if source else None

        analysis = self.analyzer.analyze_content(items, source_name, ai_focus, policy)

        digest = DailyDigest(
            source_id=source_id,
            date=day,
            summary_md=render_summary_markdown(source_name, day, analysis),
            insights_md=build_insights_markdown(items),
            items=[item.to_reference() for item in items],
        )

        if self.config.persist:
            try:
                self.storage.upsert_digest(digest)
            except StorageError as e:
                logger.error("Failed to save digest %s/%s: %s", source_id, day, e)

        filepath = None
        if self.config.output_dir:
            filepath = str(self._write_file(digest, source_name))

        logger.info("Digest for %r on %s: %d items", source_name, day, len(items))
        return DigestResult(
            success=True,
            source_id=source_id,
            digest=digest,
            filepath=filepath,
            items_included=len(items),
        )

    def _load_policy(self, source: Optional[Source]) -> Optional[Policy]:
        if source is None or not source.policy_id:
            return None
        return self.storage.get_policy(source.policy_id)

    def _write_file(self, digest: DailyDigest, source_name: str) -> Path:
        """Write `<output_dir>/<date>-<slug>.md` and return its path."""
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        filepath = output_dir / f"{digest.date.isoformat()}-{slugify(source_name)}.md"
        content = "\n\n".join([digest.summary_md, digest.insights_md, _references(digest.items)])
        filepath.write_text(content + "\n", encoding="utf-8")
        return filepath


# =============================================================================
# Rendering
# =============================================================================

def _bullets(values: List[str]) -> List[str]:
    return [f"- {value}" for value in values] or ["- (none)"]


def render_summary_markdown(source_name: str, day: date, analysis: AnalysisResult) -> str:
    """Render an analysis as the digest's summary markdown."""
    lines = [
        f"# {source_name} - {day.isoformat()} Summary",
        "",
        "## 📋 Overview",
        "",
        analysis.summary,
        "",
        "## 💡 Key Insights",
        "",
        *_bullets(analysis.insights),
        "",
        "## 📈 Trend Analysis",
        "",
        *_bullets(analysis.trends),
        "",
        "## 🎯 Impact Assessment",
        "",
        analysis.impact,
        "",
        "## 🚀 Recommendations",
        "",
        *_bullets(analysis.recommendations),
        "",
        "## 🏷️ Key Entities",
        "",
        ", ".join(analysis.key_entities) or "(none)",
    ]
    return "\n".join(lines)


def _references(items: List[dict]) -> str:
    lines = ["## 🔗 Items", ""]
    lines.extend(f"- [{ref['title']}]({ref['url']})" for ref in items)
    return "\n".join(lines)


def generate_digest(
    storage: Storage,
    source_id: str,
    day: Optional[date] = None,
    output_dir: Optional[str] = DIGEST_OUTPUT_DIR,
) -> DigestResult:
    """
    Generate a digest with default settings.

    Convenience function for programmatic use.
    """
    generator = DigestGenerator(storage, config=DigestConfig(output_dir=output_dir))
    return generator.generate(source_id, day)
