"""
Descriptive statistics over a day's items, used for the insights section.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from newsintel.models.item import Item

RICH_CONTENT_MIN_CHARS = 100


def top_authors(items: Sequence[Item], n: int = 3) -> List[Tuple[str, int]]:
    """Most frequent authors with their item counts."""
    counts = Counter(item.author or "Unknown" for item in items)
    return counts.most_common(n)


def top_tags(items: Sequence[Item], n: int = 5) -> List[Tuple[str, int]]:
    """Most frequent tags with their item counts."""
    counts = Counter(tag for item in items for tag in item.tags)
    return counts.most_common(n)


def analyze_time_trends(items: Sequence[Item]) -> Dict[str, Optional[int]]:
    """
    Publishing-hour distribution.

    Returns:
        {"peak_hour": hour (UTC) with most items or None, "peak_count": n}
    """
    hours = Counter(item.published_at.hour for item in items if item.published_at)
    if not hours:
        return {"peak_hour": None, "peak_count": 0}
    hour, count = hours.most_common(1)[0]
    return {"peak_hour": hour, "peak_count": count}


def assess_content_quality(items: Sequence[Item]) -> Dict[str, float]:
    """Average content length and the share of items with substantial content."""
    if not items:
        return {"avg_length": 0, "rich_ratio": 0.0}
    lengths = [len(item.content or "") for item in items]
    rich = sum(1 for length in lengths if length > RICH_CONTENT_MIN_CHARS)
    return {
        "avg_length": round(sum(lengths) / len(lengths)),
        "rich_ratio": rich / len(items),
    }


def collect_entities(items: Sequence[Item]) -> Dict[str, List[Dict[str, object]]]:
    """Authors and tags with counts, most frequent first."""
    authors = Counter(item.author for item in items if item.author and item.author != "Unknown")
    tags = Counter(tag for item in items for tag in item.tags)
    return {
        "authors": [{"name": name, "count": count} for name, count in authors.most_common()],
        "tags": [{"name": name, "count": count} for name, count in tags.most_common()],
    }


def build_insights_markdown(items: Sequence[Item]) -> str:
    """Render the statistics as the digest's insights markdown."""
    authors = top_authors(items)
    tags = top_tags(items)
    trends = analyze_time_trends(items)
    quality = assess_content_quality(items)

    lines = [
        "## 📊 Content Distribution",
        "",
        f"- **Total items:** {len(items)}",
        f"- **Top authors:** {', '.join(f'{a} ({c})' for a, c in authors) or '(none)'}",
        f"- **Top tags:** {', '.join(f'{t} ({c})' for t, c in tags) or '(none)'}",
        "",
        "## ⏰ Time Trends",
        "",
    ]

    if trends["peak_hour"] is None:
        lines.append("- **Peak publishing hour:** unknown")
    else:
        lines.append(
            f"- **Peak publishing hour:** {trends['peak_hour']:02d}:00 UTC "
            f"({trends['peak_count']} items)"
        )

    lines.extend([
        "",
        "## 📝 Content Quality",
        "",
        f"- **Average content length:** {quality['avg_length']} characters",
        f"- **Items with rich content (>{RICH_CONTENT_MIN_CHARS} chars):** {quality['rich_ratio']:.0%}",
    ])

    return "\n".join(lines)
