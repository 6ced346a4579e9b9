"""
AI analysis service using an OpenAI-compatible chat-completion API.

Builds prompts from fetched items, calls the LLM, and heuristically parses
the free-text reply into summary / insights / trends / impact /
recommendations / key entities. When no API key is configured, or the API
fails, a canned default analysis is returned so digests are still produced.
"""

import logging
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from newsintel import httpclient
from newsintel.config import LLM_MAX_ITEMS, OPENAI_API_KEY, OPENAI_API_URL, OPENAI_MODEL
from newsintel.models.item import Item
from newsintel.models.policy import Policy

logger = logging.getLogger(__name__)


DEFAULT_INSIGHTS = [
    "Frequent updates point to an active community",
    "Content spans several technical areas",
    "Discussions are detailed and technically substantive",
]

DEFAULT_TRENDS = [
    "Technology development keeps accelerating",
    "Open-source project activity is rising",
    "Cross-domain collaboration is increasing",
]

DEFAULT_IMPACT = "This content has a positive impact on the related technical fields."

DEFAULT_RECOMMENDATIONS = [
    "Keep following developments in this area",
    "Take part in community discussion and contribute",
    "Apply the new techniques in real projects",
]

DEFAULT_KEY_ENTITIES = ["Tech community", "Open-source projects", "Developers"]

# Reply-parsing keywords (English and Chinese)
SUMMARY_KEYWORDS = ("summary", "overview", "摘要", "总结")
TREND_KEYWORDS = ("trend", "development", "趋势", "发展")
IMPACT_KEYWORDS = ("impact", "significance", "影响", "意义")
RECOMMENDATION_KEYWORDS = ("recommend", "suggest", "建议", "推荐")
ENTITY_KEYWORDS = ("entit", "key ", "实体", "关键")

_BULLET_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s+")

README_MARKERS = ("Papers last week", "## ", "### ")


@dataclass
class AnalysisResult:
    """Structured result of analyzing a batch of items."""
    summary: str
    insights: List[str] = field(default_factory=list)
    trends: List[str] = field(default_factory=list)
    impact: str = ""
    recommendations: List[str] = field(default_factory=list)
    key_entities: List[str] = field(default_factory=list)
    model: Optional[str] = None
    tokens_used: int = 0
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SummaryResult:
    """Result of an AI summarization request."""
    success: bool
    summary: str
    error: Optional[str] = None
    model: Optional[str] = None
    tokens_used: int = 0


class LLMError(Exception):
    """The LLM API returned an unusable response."""


# =============================================================================
# Helpers (pure functions, shared with the digest generator)
# =============================================================================

def _get(item: Any, key: str, default: Any = "") -> Any:
    """Read a field from an Item or a plain dict."""
    if isinstance(item, dict):
        value = item.get(key, default)
    elif isinstance(item, Item):
        value = getattr(item, key, default)
    else:
        return default
    return default if value is None else value


def extract_key_entities(items: Iterable[Any], limit: int = 10) -> List[str]:
    """Distinct authors plus tags longer than two characters, in order seen."""
    entities: List[str] = []
    for item in items:
        author = _get(item, "author")
        if author and author not in entities:
            entities.append(author)
        for tag in _get(item, "tags", []) or []:
            if len(tag) > 2 and tag not in entities:
                entities.append(tag)
    return entities[:limit]


def _clean_line(line: str) -> str:
    line = _BULLET_RE.sub("", line)
    return line.replace("**", "").strip()


def _matching(lines: Sequence[str], keywords: Sequence[str]) -> List[str]:
    return [line for line in lines if any(k in line.lower() for k in keywords)]


def parse_analysis_response(text: str) -> AnalysisResult:
    """
    Turn a free-text LLM reply into an AnalysisResult.

    Line heuristics: keyword matches per field, bullet lines as insights,
    canned values for anything that comes back empty.
    """
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]

    summary_lines = _matching(lines, SUMMARY_KEYWORDS)
    summary = _clean_line(summary_lines[0]) if summary_lines else " ".join(_clean_line(l) for l in lines[:3])

    insights = [_clean_line(line) for line in lines if _BULLET_RE.match(line)]
    insights = [line for line in insights if line][:5]

    trends = [_clean_line(line) for line in _matching(lines, TREND_KEYWORDS)][:3]

    impact_lines = _matching(lines, IMPACT_KEYWORDS)
    impact = _clean_line(impact_lines[0]) if impact_lines else DEFAULT_IMPACT

    recommendations = [_clean_line(line) for line in _matching(lines, RECOMMENDATION_KEYWORDS)][:3]
    key_entities = [_clean_line(line) for line in _matching(lines, ENTITY_KEYWORDS)][:5]

    return AnalysisResult(
        summary=summary[:200],
        insights=insights or list(DEFAULT_INSIGHTS),
        trends=trends or list(DEFAULT_TRENDS),
        impact=impact[:150],
        recommendations=recommendations or list(DEFAULT_RECOMMENDATIONS),
        key_entities=key_entities or list(DEFAULT_KEY_ENTITIES),
    )


def default_analysis(items: Sequence[Any], source_name: str) -> AnalysisResult:
    """Canned analysis used when the LLM is unavailable."""
    return AnalysisResult(
        summary=(
            f"Fetched {len(items)} new items from {source_name} today, "
            "covering several notable topics."
        ),
        insights=list(DEFAULT_INSIGHTS),
        trends=list(DEFAULT_TRENDS),
        impact=DEFAULT_IMPACT,
        recommendations=list(DEFAULT_RECOMMENDATIONS),
        key_entities=extract_key_entities(items),
        fallback=True,
    )


def is_readme_content(items: Sequence[Any]) -> bool:
    """Whether a batch looks like README/markdown content."""
    for item in items:
        if "README" in _get(item, "title"):
            return True
        content = _get(item, "content")
        if any(marker in content for marker in README_MARKERS):
            return True
    return False


# =============================================================================
# Analyzer
# =============================================================================

class AIAnalyzer:
    """AI-powered analysis using an OpenAI-compatible chat-completion API."""

    SYSTEM_PERSONA = (
        "You are a professional news analyst who specializes in technical content "
        "and provides in-depth, objective insights."
    )

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        max_items: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self.api_url = api_url or OPENAI_API_URL
        self.max_items = max_items or LLM_MAX_ITEMS

    def is_available(self) -> bool:
        """Check if AI analysis is available (API key configured)."""
        return bool(self.api_key)

    def analyze_content(
        self,
        items: Sequence[Any],
        source_name: str,
        ai_focus: Optional[str] = None,
        policy: Optional[Policy] = None,
    ) -> AnalysisResult:
        """
        Analyze a batch of items from one source.

        Args:
            items: Items (or dicts with title/content/url/author/tags).
            source_name: Display name of the source.
            ai_focus: Free-text analysis focus configured on the source.
            policy: Optional summarization policy.

        Returns:
            AnalysisResult; the default analysis when the LLM is unavailable.
        """
        items = list(items)[: self.max_items]

        if not self.is_available():
            logger.info("No LLM API key configured, using default analysis for %s", source_name)
            return default_analysis(items, source_name)

        system_prompt = self.build_system_prompt(source_name, ai_focus, policy)
        user_prompt = self.build_user_prompt(items)

        try:
            text, tokens = self._call_api(system_prompt, user_prompt, max_tokens=1000, temperature=0.7)
        except (requests.RequestException, LLMError) as e:
            logger.warning("AI analysis failed for %s, using default analysis: %s", source_name, e)
            return default_analysis(items, source_name)

        result = parse_analysis_response(text)
        result.model = self.model
        result.tokens_used = tokens
        return result

    def summarize_item(self, title: str, content: str, source_kind: str = "") -> SummaryResult:
        """
        Generate a concise 2-3 sentence summary of a single item.

        Returns:
            SummaryResult with the generated summary or error.
        """
        if not self.is_available():
            return SummaryResult(
                success=False,
                summary="",
                error="AI summarization not configured. Add OPENAI_API_KEY to .env",
            )

        source_context = {
            "github_repo": "a GitHub repository update",
            "github_readme": "a paper-list README update",
            "rss": "a news/feed article",
            "html": "a web page",
        }.get(source_kind, "a piece of technical content")

        prompt = f"""Summarize {source_context} in 2-3 concise sentences. Focus on:
- What it is about
- Why it matters

Title: {title}

Content: {(content or '')[:1500]}

Write a clear, informative summary (no bullet points, just flowing text):"""

        try:
            text, tokens = self._call_api(
                "You are a concise tech analyst. Provide clear, informative summaries without fluff.",
                prompt,
                max_tokens=300,
                temperature=0.3,
            )
        except (requests.RequestException, LLMError) as e:
            return SummaryResult(success=False, summary="", error=f"API error: {e}")

        return SummaryResult(success=True, summary=text, model=self.model, tokens_used=tokens)

    # -------------------------------------------------------------------------
    # Prompts
    # -------------------------------------------------------------------------

    def build_system_prompt(
        self,
        source_name: str,
        ai_focus: Optional[str] = None,
        policy: Optional[Policy] = None,
    ) -> str:
        """Build the system prompt for a source."""
        base = f'{self.SYSTEM_PERSONA} You are analyzing content from "{source_name}".'

        lowered = source_name.lower()
        if "readme" in lowered or "github" in lowered:
            prompt = f"""{base}

**Analyzing GitHub README updates:**
You are reading the README of a GitHub repository. Focus on:

1. **Latest updates**: the newest papers and update dates marked in the README
2. **Paper list**: titles, authors and venues of newly added papers
3. **Technical trends**: research directions visible in the paper titles
4. **Key findings**: notable breakthroughs and progress
5. **Update digest**: what changed recently and why it matters

Be concise and focus on what is new."""
        elif ai_focus:
            prompt = f"""{base}

**Analysis focus:**
{ai_focus}

Tailor the analysis strictly to the focus above."""
        else:
            prompt = f"{base}\n\nProvide a comprehensive analysis of the content."

        if policy is not None:
            prompt += "\n\n" + self._policy_instructions(policy)

        return prompt

    def _policy_instructions(self, policy: Policy) -> str:
        s, i, e, a = policy.summary, policy.insights, policy.extraction, policy.actions

        lines = [
            f"**Policy: {policy.name}**",
            f"- Summary: about {s.target_length} words, {s.style} style, written in {s.language}.",
        ]
        if s.include_references:
            lines.append("- Reference the source items you draw on.")
        if s.uncertainty_handling == "explicit":
            lines.append("- State uncertainty explicitly instead of guessing.")

        lines.append(f"- Insights: {i.count}, covering {', '.join(i.focus_areas) or 'any area'}.")
        if i.include_quantitative:
            lines.append("- Include quantitative details where available.")
        if i.highlight_actionable:
            lines.append("- Highlight actionable insights.")

        if e.fields:
            groups = "; ".join(f"{name}: {', '.join(fields)}" for name, fields in e.fields.items())
            lines.append(
                f"- Extract these fields when present ({e.schema} schema, "
                f"confidence >= {e.confidence_threshold}): {groups}."
            )

        if a.count:
            lines.append(f"- Recommendations: {a.count} for {a.target_audience}.")
            if a.include_specific_steps:
                lines.append("- Give specific steps for each recommendation.")
            if a.prioritize_by_importance:
                lines.append("- Order recommendations by importance.")

        return "\n".join(lines)

    def build_user_prompt(self, items: Sequence[Any]) -> str:
        """Build the user prompt listing the items to analyze."""
        if is_readme_content(items):
            readme = _get(items[0], "content") if items else ""
            return f"""Analyze the following GitHub README content:

**README content:**
{readme[:2000]}...

**Focus on:**

1. **Latest updates** (100-150 words): the newest papers and updates marked in the README
2. **New papers** (3-5 entries): titles, authors and publication details
3. **Technical trends**: research directions suggested by the paper titles
4. **Breakthroughs**: important technical progress
5. **Update digest**: a short plain-language summary of what changed"""

        items_text = "\n".join(
            f"{index}. {_get(item, 'title')}\n"
            f"   {_get(item, 'content')[:200]}...\n"
            f"   URL: {_get(item, 'url')}\n"
            for index, item in enumerate(items, start=1)
        )

        return f"""Analyze the following latest content:

{items_text}

Provide:

1. **Summary** (100-150 words): the main content and trends of the day
2. **Key insights** (3-5 bullet points): important findings and trends
3. **Impact assessment**: the impact of this content on the field
4. **Recommendations** (3 items): concrete suggestions based on the analysis
5. **Key entities**: important people, organizations or projects mentioned

Stay professional and objective."""

    # -------------------------------------------------------------------------
    # API
    # -------------------------------------------------------------------------

    def _call_api(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> tuple:
        """
        Make a chat-completion call.

        Returns:
            (reply_text, total_tokens)

        Raises:
            requests.RequestException: Transport failure or HTTP error after retries.
            LLMError: Malformed response body.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        response = httpclient.post(self.api_url, headers=headers, json=payload)

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMError(f"Unexpected API response: {e}") from e

        tokens = (data.get("usage") or {}).get("total_tokens", 0)
        return text, tokens


# Singleton instance
_analyzer: Optional[AIAnalyzer] = None


def get_analyzer() -> AIAnalyzer:
    """Get the singleton AI analyzer instance."""
    global _analyzer
    if _analyzer is None:
        _analyzer = AIAnalyzer()
    return _analyzer
