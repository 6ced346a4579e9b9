"""
Pytest Configuration and Fixtures

This module provides:
- Timestamped result file generation
- Shared fixtures for all tests
- Isolation from real credentials (.env) and the network
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest
import requests

from newsintel.models import Item, Source
from newsintel.storage import MemoryStorage, set_storage
import newsintel.services.analyzer as analyzer_module


# =============================================================================
# TEST RESULT FILE CONFIGURATION
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
RESULTS_DIR = PROJECT_ROOT / "test_results"


class TestResultCollector:
    """Collects test results for the summary file."""

    __test__ = False

    def __init__(self):
        self.results: List[Dict[str, Any]] = []
        self.start_time = None
        self.end_time = None

    def add_result(self, nodeid: str, outcome: str, duration: float):
        module = nodeid.split("::")[0].split("/")[-1].replace(".py", "")
        self.results.append({
            "nodeid": nodeid,
            "module": module,
            "outcome": outcome,
            "duration": duration,
        })

    def get_summary(self) -> Dict[str, int]:
        outcomes = [r["outcome"] for r in self.results]
        return {
            "total": len(outcomes),
            "passed": outcomes.count("passed"),
            "failed": outcomes.count("failed"),
            "skipped": outcomes.count("skipped"),
        }


_collector = TestResultCollector()


def pytest_configure(config):
    _collector.start_time = datetime.now()


def pytest_runtest_logreport(report):
    if report.when == "call":
        _collector.add_result(report.nodeid, report.outcome, report.duration)


def pytest_sessionfinish(session, exitstatus):
    _collector.end_time = datetime.now()
    if not _collector.results:
        return

    summary = _collector.get_summary()
    lines = [
        "=" * 80,
        "NEWS INTELLIGENCE - TEST RESULTS REPORT",
        "=" * 80,
        f"Run Date:     {_collector.start_time.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Duration:     {(_collector.end_time - _collector.start_time).total_seconds():.2f} seconds",
        f"Total Tests:  {summary['total']}",
        f"Passed:       {summary['passed']} ✓",
        f"Failed:       {summary['failed']} ✗",
        f"Skipped:      {summary['skipped']} ○",
        "",
    ]
    for result in _collector.results:
        status = "✓" if result["outcome"] == "passed" else "✗" if result["outcome"] == "failed" else "○"
        lines.append(f"  {status} {result['nodeid']} ({result['duration'] * 1000:.0f}ms)")

    RESULTS_DIR.mkdir(exist_ok=True)
    filepath = RESULTS_DIR / f"test_results_{_collector.start_time.strftime('%Y%m%d_%H%M%S')}.txt"
    filepath.write_text("\n".join(lines) + "\n", encoding="utf-8")


# =============================================================================
# ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Every test starts with in-memory storage and no LLM key, so a developer
    .env never leads tests to Supabase or the OpenAI API.
    """
    monkeypatch.setattr(analyzer_module, "OPENAI_API_KEY", "")
    monkeypatch.setattr(analyzer_module, "_analyzer", None)
    monkeypatch.setattr("newsintel.fetchers.github_repo.GITHUB_TOKEN", "")
    monkeypatch.setattr("newsintel.httpclient.time.sleep", lambda seconds: None)
    set_storage(MemoryStorage())
    yield
    set_storage(None)


# =============================================================================
# SHARED FIXTURES
# =============================================================================

@pytest.fixture
def memory_storage():
    """A fresh MemoryStorage."""
    return MemoryStorage()


@pytest.fixture
def rss_source():
    return Source(
        id="src-rss",
        name="Tech Feed",
        kind="rss",
        handle="https://example.com/feed.xml",
        ai_focus="Focus on AI infrastructure news",
    )


@pytest.fixture
def sample_items():
    """Three items published on 2024-05-20."""
    return [
        Item(
            url="https://example.com/a",
            title="LLM inference gets faster",
            source_id="src-rss",
            author="alice",
            published_at=datetime(2024, 5, 20, 9, 15, tzinfo=timezone.utc),
            content="A detailed write-up on speculative decoding " * 5,
            tags=["llm", "inference"],
        ),
        Item(
            url="https://example.com/b",
            title="New vector database release",
            source_id="src-rss",
            author="bob",
            published_at=datetime(2024, 5, 20, 9, 45, tzinfo=timezone.utc),
            content="Short note",
            tags=["database", "llm"],
        ),
        Item(
            url="https://example.com/c",
            title="Kernel scheduling deep dive",
            source_id="src-rss",
            author="alice",
            published_at=datetime(2024, 5, 20, 18, 0, tzinfo=timezone.utc),
            content="Scheduling internals explained at length " * 4,
            tags=["os"],
        ),
    ]


def make_response(status_code: int = 200, json_data=None, text: str = "", content: bytes = None):
    """Build a Mock requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.content = content if content is not None else text.encode("utf-8")
    response.json.return_value = json_data

    if status_code >= 400:
        error = requests.HTTPError(f"{status_code} Error")
        error.response = response
        response.raise_for_status.side_effect = error
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def response_factory():
    """Factory for mock HTTP responses."""
    return make_response
