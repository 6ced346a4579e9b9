"""
Tests for fetch-and-save: dedupe, hashing, fetch-run bookkeeping, dry run.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from newsintel.fetchers.base import Fetcher, FetchResult
from newsintel.models import Item, Source, compute_content_sha
from newsintel.services.ingest import IngestService, fetch_and_save
from newsintel.storage import StorageError, set_storage


def make_items(*urls):
    return [
        Item(url=url, title=f"Title {url}", content="body",
             published_at=datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc))
        for url in urls
    ]


@pytest.fixture
def fake_fetcher():
    fetcher = Mock(spec=Fetcher)
    fetcher.kind = "rss"
    fetcher.fetch.return_value = FetchResult.ok(make_items("https://e.com/1", "https://e.com/2"))
    return fetcher


@pytest.fixture
def storage(memory_storage, rss_source):
    memory_storage.save_source(rss_source)
    return memory_storage


@pytest.fixture
def service(storage, fake_fetcher):
    return IngestService(storage, fetchers={"rss": fake_fetcher})


class TestFetchAndSave:

    def test_saves_new_items(self, service, storage, fake_fetcher):
        result = service.fetch_and_save("src-rss")

        assert result.success
        assert result.new_items == 2
        assert storage.count_items() == 2
        fake_fetcher.fetch.assert_called_once_with("https://example.com/feed.xml", limit=None)

    def test_items_get_source_and_sha(self, service, storage):
        service.fetch_and_save("src-rss")

        item = storage.list_items(source_id="src-rss")[0]
        assert item.source_id == "src-rss"
        assert item.content_sha == compute_content_sha(item.url, item.title, item.content)

    def test_second_run_skips_existing(self, service, storage, fake_fetcher):
        service.fetch_and_save("src-rss")
        fake_fetcher.fetch.return_value = FetchResult.ok(make_items("https://e.com/2", "https://e.com/3"))

        result = service.fetch_and_save("src-rss")

        assert result.new_items == 1
        assert storage.count_items() == 3

    def test_duplicates_within_batch_saved_once(self, service, storage, fake_fetcher):
        fake_fetcher.fetch.return_value = FetchResult.ok(make_items("https://e.com/1", "https://e.com/1"))

        result = service.fetch_and_save("src-rss")

        assert result.new_items == 1
        assert storage.count_items() == 1

    def test_records_successful_run(self, service, storage):
        service.fetch_and_save("src-rss")

        run = storage.list_fetch_runs("src-rss")[0]
        assert run.ok is True
        assert run.new_items == 2
        assert run.ended_at is not None
        assert run.duration_seconds >= 0
        assert storage.get_source("src-rss").last_fetched_at is not None

    def test_missing_published_at_defaults_to_created(self, service, storage, fake_fetcher):
        item = Item(url="https://e.com/undated", title="Undated")
        fake_fetcher.fetch.return_value = FetchResult.ok([item])

        service.fetch_and_save("src-rss")

        assert item.published_at == item.created_at


class TestFailures:

    def test_source_not_found(self, service):
        result = service.fetch_and_save("missing")

        assert not result.success
        assert result.error == "Source not found"

    def test_unsupported_kind(self, storage):
        storage.save_source(Source(id="src-html", name="Page", kind="html", handle="https://x.org"))
        service = IngestService(storage, fetchers={})

        result = service.fetch_and_save("src-html")

        assert result.error == "Unsupported source type: html"
        run = storage.list_fetch_runs("src-html")[0]
        assert run.ok is False
        assert run.error == "Unsupported source type: html"

    def test_fetch_failure_recorded(self, service, storage, fake_fetcher):
        fake_fetcher.fetch.return_value = FetchResult.failed("Failed to fetch RSS: timeout")

        result = service.fetch_and_save("src-rss")

        assert not result.success
        assert result.error == "Failed to fetch RSS: timeout"
        run = storage.list_fetch_runs("src-rss")[0]
        assert run.ok is False
        assert run.error == "Failed to fetch RSS: timeout"
        assert storage.get_source("src-rss").last_fetched_at is None

    def test_unexpected_fetcher_error_finishes_run(self, service, storage, fake_fetcher):
        fake_fetcher.fetch.side_effect = ValueError("url must start with http:// or https://")

        result = service.fetch_and_save("src-rss")

        assert not result.success
        assert result.error == "ValueError: url must start with http:// or https://"
        run = storage.list_fetch_runs("src-rss")[0]
        assert run.ok is False
        assert run.ended_at is not None
        assert run.error == result.error
        assert storage.get_source("src-rss").last_fetched_at is None

    def test_insert_failure_not_counted(self, service, storage):
        original = storage.insert_item
        calls = []

        def flaky_insert(item):
            calls.append(item.url)
            if item.url.endswith("/1"):
                raise StorageError("constraint violation")
            return original(item)

        storage.insert_item = flaky_insert

        result = service.fetch_and_save("src-rss")

        assert result.success
        assert result.new_items == 1
        assert len(calls) == 2

    def test_storage_outage_returns_failure(self, fake_fetcher):
        storage = Mock()
        storage.get_source.side_effect = StorageError("get sources failed: timeout")

        result = IngestService(storage, fetchers={"rss": fake_fetcher}).fetch_and_save("src-rss")

        assert not result.success
        assert "timeout" in result.error


class TestDryRun:

    def test_dry_run_writes_nothing(self, storage, fake_fetcher):
        service = IngestService(storage, fetchers={"rss": fake_fetcher}, dry_run=True)

        result = service.fetch_and_save("src-rss")

        assert result.success
        assert result.new_items == 2
        assert storage.count_items() == 0
        assert storage.list_fetch_runs("src-rss") == []
        assert storage.get_source("src-rss").last_fetched_at is None


class TestModuleFunction:

    def test_uses_shared_storage(self, storage, monkeypatch, fake_fetcher):
        set_storage(storage)
        monkeypatch.setattr(
            "newsintel.services.ingest.default_fetchers", lambda: {"rss": fake_fetcher},
        )

        result = fetch_and_save("src-rss")

        assert result.new_items == 2
