"""
Digest module.

Generates per-source daily digests from stored items.
"""

from newsintel.digest.generator import (
    DigestGenerator,
    DigestConfig,
    DigestResult,
    generate_digest,
    render_summary_markdown,
)
from newsintel.digest.stats import collect_entities

__all__ = [
    "DigestGenerator",
    "DigestConfig",
    "DigestResult",
    "generate_digest",
    "render_summary_markdown",
    "collect_entities",
]
