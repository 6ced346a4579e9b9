"""
Tests for data models: Item, Source, Category, Policy, FetchRun, DailyDigest.
"""

import hashlib
from datetime import date, datetime, timezone

import pytest

from newsintel.models import (
    Category,
    DailyDigest,
    FetchRun,
    Item,
    Policy,
    Source,
    compute_content_sha,
)


# =============================================================================
# Item
# =============================================================================

class TestItem:

    def test_minimal_item_defaults(self):
        item = Item(url="https://example.com/x", title="Hello")

        assert item.author == "Unknown"
        assert item.content == ""
        assert item.tags == []
        assert item.metadata == {}
        assert item.id

    def test_missing_title_rejected(self):
        with pytest.raises(ValueError, match="title is required"):
            Item(url="https://example.com/x", title="  ")

    def test_non_http_url_rejected(self):
        with pytest.raises(ValueError, match="url must start with"):
            Item(url="ftp://example.com/x", title="Hello")

    def test_compute_sha_is_sha256_of_url_title_content(self):
        item = Item(url="https://example.com/x", title="T", content="C")
        expected = hashlib.sha256(b"https://example.com/xTC").hexdigest()

        assert item.compute_sha() == expected
        assert item.content_sha == expected
        assert compute_content_sha("https://example.com/x", "T", "C") == expected

    def test_sha_changes_with_content(self):
        a = compute_content_sha("https://example.com", "T", "one")
        b = compute_content_sha("https://example.com", "T", "two")
        assert a != b

    def test_from_dict_ignores_unknown_columns_and_nulls(self):
        item = Item.from_dict({
            "id": "item-1",
            "url": "https://example.com/x",
            "title": "Hello",
            "author": None,
            "content": None,
            "tags": None,
            "published_at": "2024-05-20T09:00:00Z",
            "unexpected_column": 42,
        })

        assert item.id == "item-1"
        assert item.author == "Unknown"
        assert item.content == ""
        assert item.tags == []
        assert item.published_at == datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc)

    def test_from_dict_parses_postgres_timestamps(self):
        item = Item.from_dict({
            "url": "https://example.com/x",
            "title": "Hello",
            "published_at": "2024-05-20 09:00:00.5+00",
            "created_at": "2024-05-20T08:00:00.12345+00:00",
        })

        assert item.published_at == datetime(2024, 5, 20, 9, 0, 0, 500000, tzinfo=timezone.utc)
        assert item.created_at == datetime(2024, 5, 20, 8, 0, 0, 123450, tzinfo=timezone.utc)

    def test_from_dict_unparseable_created_at_keeps_default(self):
        item = Item.from_dict({"url": "https://example.com/x", "title": "Hello", "created_at": "soon"})

        assert item.created_at is not None
        assert item.created_at.tzinfo is not None

    def test_to_dict_serializes_datetimes(self):
        item = Item(
            url="https://example.com/x",
            title="Hello",
            published_at=datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc),
        )
        data = item.to_dict()

        assert data["published_at"] == "2024-05-20T09:00:00+00:00"
        assert isinstance(data["created_at"], str)

    def test_to_reference(self):
        item = Item(id="i1", url="https://example.com/x", title="Hello")
        assert item.to_reference() == {"id": "i1", "title": "Hello", "url": "https://example.com/x"}


# =============================================================================
# Source & Category
# =============================================================================

class TestSource:

    def test_valid_source(self):
        source = Source(name="Feed", kind="rss", handle="https://example.com/feed")
        assert source.enabled is True
        assert source.category_ids == []

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="kind must be one of"):
            Source(name="Feed", kind="twitter", handle="@someone")

    def test_missing_handle_rejected(self):
        with pytest.raises(ValueError, match="handle is required"):
            Source(name="Feed", kind="rss", handle="")

    def test_from_dict_parses_timestamps(self):
        source = Source.from_dict({
            "id": "s1",
            "name": "Repo",
            "kind": "github_repo",
            "handle": "octocat/hello",
            "ai_focus": None,
            "last_fetched_at": "2024-05-20T10:00:00+00:00",
        })

        assert source.ai_focus is None
        assert source.last_fetched_at == datetime(2024, 5, 20, 10, 0, tzinfo=timezone.utc)


class TestCategory:

    def test_name_required(self):
        with pytest.raises(ValueError):
            Category(name="")

    def test_dict_roundtrip_keeps_sources(self):
        category = Category(name="AI", source_ids=["s1", "s2"])
        restored = Category.from_dict(category.to_dict())
        assert restored.source_ids == ["s1", "s2"]
        assert restored.id == category.id


# =============================================================================
# Policy
# =============================================================================

class TestPolicy:

    def test_defaults(self):
        policy = Policy(name="Default")

        assert policy.scope == "global"
        assert policy.summary.target_length == 150
        assert policy.insights.count == 4
        assert policy.extraction.confidence_threshold == 0.8
        assert policy.actions.target_audience == "researchers"
        assert "research" in policy.extraction.fields

    def test_from_dict_coerces_form_strings(self):
        policy = Policy.from_dict({
            "name": "Strict",
            "summary": {"target_length": "200", "language": "chinese"},
            "insights": {"count": "3", "focus_areas": ["risks"]},
            "extraction": {"confidence_threshold": "0.9"},
            "actions": {"count": "2"},
        })

        assert policy.summary.target_length == 200
        assert policy.summary.language == "chinese"
        assert policy.insights.count == 3
        assert policy.extraction.confidence_threshold == 0.9
        assert policy.actions.count == 2

    def test_invalid_threshold_rejected(self):
        with pytest.raises(ValueError, match="confidence_threshold"):
            Policy.from_dict({"name": "Bad", "extraction": {"confidence_threshold": 1.5}})

    def test_unknown_focus_area_rejected(self):
        with pytest.raises(ValueError, match="unknown focus areas"):
            Policy.from_dict({"name": "Bad", "insights": {"focus_areas": ["astrology"]}})

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValueError, match="scope"):
            Policy(name="Bad", scope="planet")


# =============================================================================
# FetchRun & DailyDigest
# =============================================================================

class TestFetchRun:

    def test_starts_not_ok(self):
        run = FetchRun(source_id="s1")
        assert run.ok is False
        assert run.ended_at is None
        assert run.duration_seconds == 0.0

    def test_finish_records_outcome(self):
        run = FetchRun(source_id="s1")
        run.finish(ok=True, new_items=4)

        assert run.ok is True
        assert run.new_items == 4
        assert run.ended_at is not None
        assert run.duration_seconds >= 0

    def test_from_dict(self):
        run = FetchRun.from_dict({
            "id": "r1",
            "source_id": "s1",
            "started_at": "2024-05-20T10:00:00Z",
            "ended_at": "2024-05-20T10:00:05Z",
            "ok": False,
            "new_items": None,
            "error": "GitHub API error: 404",
        })

        assert run.new_items == 0
        assert run.error == "GitHub API error: 404"
        assert run.duration_seconds == 5.0


class TestDailyDigest:

    def test_key_is_source_and_date(self):
        digest = DailyDigest(source_id="s1", date=date(2024, 5, 20), summary_md="s", insights_md="i")
        assert digest.key == ("s1", "2024-05-20")

    def test_from_dict_accepts_timestamp_date(self):
        digest = DailyDigest.from_dict({
            "source_id": "s1",
            "date": "2024-05-20T00:00:00+00:00",
            "summary_md": None,
            "insights_md": "i",
            "items": None,
        })

        assert digest.date == date(2024, 5, 20)
        assert digest.summary_md == ""
        assert digest.items == []
