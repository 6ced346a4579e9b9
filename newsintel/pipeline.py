"""
News Intelligence Pipeline - Core execution logic.

This module orchestrates a one-shot run:

    Sources → Fetchers → Dedupe → Storage → Daily digests → Summary

Steps:
1. Load enabled sources from storage (optionally filtered by id or kind)
2. Fetch and save each source (with error isolation)
3. Generate each source's daily digest for the target date
4. Print execution summary

Design principles:
- Error isolation: one source failure doesn't stop others
- Idempotency: items are deduplicated per (source, url), digests upserted
- Dry-run support: fetch without writes (`--dry-run`)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from newsintel.config import DEFAULT_LIMIT_PER_SOURCE, DIGEST_OUTPUT_DIR
from newsintel.digest import DigestConfig, DigestGenerator, DigestResult
from newsintel.fetchers import Fetcher
from newsintel.models import Source
from newsintel.services.analyzer import AIAnalyzer
from newsintel.services.ingest import IngestService
from newsintel.storage import get_storage
from newsintel.storage.base import Storage, StorageError

logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline Result Data Structures
# =============================================================================

@dataclass
class SourceResult:
    """Result of fetching from a single source."""
    source_id: str
    source_name: str
    new_items: int
    success: bool
    error: Optional[str] = None
    duration_ms: float = 0.0


@dataclass
class PipelineResult:
    """Complete result of a pipeline execution."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    digest_date: Optional[date] = None
    dry_run: bool = False

    source_results: List[SourceResult] = field(default_factory=list)
    digest_results: List[DigestResult] = field(default_factory=list)

    errors: List[str] = field(default_factory=list)

    @property
    def total_new_items(self) -> int:
        return sum(r.new_items for r in self.source_results)

    @property
    def sources_succeeded(self) -> int:
        """Number of sources that fetched successfully."""
        return sum(1 for r in self.source_results if r.success)

    @property
    def sources_failed(self) -> int:
        """Number of sources that failed."""
        return sum(1 for r in self.source_results if not r.success)

    @property
    def digests_generated(self) -> int:
        return sum(1 for r in self.digest_results if r.success and r.items_included)

    @property
    def duration_seconds(self) -> float:
        """Total pipeline duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    def to_summary(self) -> str:
        """Generate a human-readable summary."""
        lines = [
            "=" * 60,
            "PIPELINE EXECUTION SUMMARY",
            "=" * 60,
            f"Started:  {self.started_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
            f"Duration: {self.duration_seconds:.2f}s",
            f"Mode:     {'DRY RUN' if self.dry_run else 'LIVE'}",
            "",
            "Sources:",
        ]

        if not self.source_results:
            lines.append("  (no enabled sources)")

        for sr in self.source_results:
            status = "✓" if sr.success else "✗"
            lines.append(f"  {status} {sr.source_name}: {sr.new_items} new items ({sr.duration_ms:.0f}ms)")
            if sr.error:
                lines.append(f"      Error: {sr.error}")

        lines.extend([
            "",
            f"Total new items: {self.total_new_items}",
        ])

        if self.dry_run:
            lines.append("\nStorage: SKIPPED (dry-run mode)")
            lines.append("Digests: SKIPPED (dry-run mode)")
        elif self.digest_results:
            lines.extend(["", f"Digests ({self.digest_date.isoformat() if self.digest_date else 'today'}):"])
            for dr in self.digest_results:
                if not dr.success:
                    lines.append(f"  ✗ {dr.source_id}: {dr.error}")
                elif not dr.items_included:
                    lines.append(f"  - {dr.source_id}: no items")
                else:
                    where = f" -> {dr.filepath}" if dr.filepath else ""
                    lines.append(f"  ✓ {dr.source_id}: {dr.items_included} items{where}")

        if self.errors:
            lines.extend([
                "",
                "Errors:",
            ])
            for error in self.errors[:5]:  # Show first 5
                lines.append(f"  - {error}")

        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# Pipeline Configuration
# =============================================================================

@dataclass
class PipelineConfig:
    """
    Configuration for a pipeline run.

    CLI arguments override config file defaults.
    """
    limit_per_source: int = DEFAULT_LIMIT_PER_SOURCE
    dry_run: bool = False

    # Source selection (None = all enabled sources)
    source_ids: Optional[List[str]] = None
    kinds: Optional[List[str]] = None

    # Digest configuration
    digest_date: Optional[date] = None
    digest_output_dir: Optional[str] = DIGEST_OUTPUT_DIR
    skip_digest: bool = False

    @classmethod
    def from_args(cls, args) -> "PipelineConfig":
        """Create config from argparse namespace."""
        return cls(
            limit_per_source=getattr(args, "limit_per_source", None) or DEFAULT_LIMIT_PER_SOURCE,
            dry_run=getattr(args, "dry_run", False),
            source_ids=getattr(args, "sources", None) or None,
            kinds=getattr(args, "kinds", None) or None,
            digest_date=getattr(args, "date", None),
            digest_output_dir=getattr(args, "digest_dir", None) or DIGEST_OUTPUT_DIR,
            skip_digest=getattr(args, "skip_digest", False),
        )


# =============================================================================
# Pipeline Class
# =============================================================================

class NewsPipeline:
    """
    Fetches every selected source, then builds the day's digests.

    Usage:
        config = PipelineConfig(dry_run=True)
        pipeline = NewsPipeline(config)
        result = pipeline.run()
        print(result.to_summary())
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        storage: Optional[Storage] = None,
        fetchers: Optional[Dict[str, Fetcher]] = None,
        analyzer: Optional[AIAnalyzer] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration. Defaults to PipelineConfig().
            storage: Storage backend. Defaults to get_storage().
            fetchers: Kind -> fetcher map. Defaults to all kinds.
            analyzer: Analyzer for digests. Defaults to the shared analyzer.
        """
        self.config = config or PipelineConfig()
        self.storage = storage or get_storage()
        self.fetchers = fetchers
        self.analyzer = analyzer

    def _select_sources(self) -> List[Source]:
        """Enabled sources, filtered by config.source_ids and config.kinds."""
        sources = self.storage.list_sources(enabled_only=True)

        if self.config.source_ids:
            sources = [s for s in sources if s.id in self.config.source_ids]
        if self.config.kinds:
            sources = [s for s in sources if s.kind in self.config.kinds]

        return sources

    def _fetch_source(self, ingest: IngestService, source: Source) -> SourceResult:
        """Fetch and save one source with error isolation."""
        start_time = datetime.now(timezone.utc)

        try:
            fetched = ingest.fetch_and_save(source.id)
            success, new_items, error = fetched.success, fetched.new_items, fetched.error
        except Exception as e:
            logger.exception("Unexpected error fetching %s", source.name)
            success, new_items, error = False, 0, f"{type(e).__name__}: {e}"

        duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
        return SourceResult(
            source_id=source.id,
            source_name=source.name,
            new_items=new_items,
            success=success,
            error=error,
            duration_ms=duration_ms,
        )

    def _generate_digests(self, sources: List[Source], day: date) -> List[DigestResult]:
        generator = DigestGenerator(
            self.storage,
            analyzer=self.analyzer,
            config=DigestConfig(output_dir=self.config.digest_output_dir),
        )

        results = []
        for source in sources:
            logger.debug("Generating digest for %s on %s", source.name, day)
            results.append(generator.generate(source.id, day))
        return results

    def run(self) -> PipelineResult:
        """
        Execute the full pipeline.

        Returns:
            PipelineResult with execution details.
        """
        day = self.config.digest_date or datetime.now(timezone.utc).date()
        result = PipelineResult(
            started_at=datetime.now(timezone.utc),
            digest_date=day,
            dry_run=self.config.dry_run,
        )

        try:
            sources = self._select_sources()
            logger.info("Running pipeline over %d sources", len(sources))

            ingest = IngestService(
                self.storage,
                fetchers=self.fetchers,
                dry_run=self.config.dry_run,
                limit=self.config.limit_per_source,
            )

            for source in sources:
                source_result = self._fetch_source(ingest, source)
                result.source_results.append(source_result)
                if not source_result.success:
                    result.errors.append(f"{source.name}: {source_result.error}")

            if not self.config.dry_run and not self.config.skip_digest:
                result.digest_results = self._generate_digests(sources, day)
                result.errors.extend(
                    f"digest {dr.source_id}: {dr.error}"
                    for dr in result.digest_results if not dr.success
                )

        except StorageError as e:
            logger.error("Pipeline aborted: %s", e)
            result.errors.append(f"Pipeline error: {e}")

        result.finished_at = datetime.now(timezone.utc)
        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def run_pipeline(
    source_ids: Optional[List[str]] = None,
    kinds: Optional[List[str]] = None,
    dry_run: bool = False,
    digest_date: Optional[date] = None,
    skip_digest: bool = False,
    storage: Optional[Storage] = None,
) -> PipelineResult:
    """
    Run the pipeline with specified options.

    Convenience function for programmatic use.

    Args:
        source_ids: Source ids to run (None = all enabled).
        kinds: Source kinds to run (None = all).
        dry_run: If True, skip storage writes and digests.
        digest_date: Day to build digests for (default: today, UTC).
        skip_digest: If True, skip digest generation.
        storage: Storage backend (default: get_storage()).

    Returns:
        PipelineResult with execution details.
    """
    config = PipelineConfig(
        source_ids=source_ids,
        kinds=kinds,
        dry_run=dry_run,
        digest_date=digest_date,
        skip_digest=skip_digest,
    )
    return NewsPipeline(config, storage=storage).run()
