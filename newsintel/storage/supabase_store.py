"""
Supabase storage backend for News Intelligence.

Implements the Storage interface on a hosted Postgres database through the
supabase client (PostgREST under the hood).

=============================================================================
DATABASE SCHEMA
=============================================================================

| Table          | Key                     | Notes                                  |
|----------------|-------------------------|----------------------------------------|
| sources        | id (uuid)               | name, kind, handle, ai_focus,          |
|                |                         | category_ids jsonb, policy_id, enabled,|
|                |                         | created_at, last_fetched_at            |
| categories     | id (uuid)               | name, description, color,              |
|                |                         | source_ids jsonb                       |
| policies       | id (uuid)               | name, description, scope,              |
|                |                         | base_policy_id, summary/insights/      |
|                |                         | extraction/actions jsonb               |
| items          | id; unique(source_id,url)| title, author, published_at, content, |
|                |                         | content_sha, tags text[], metadata     |
| fetch_runs     | id (uuid)               | source_id, started_at, ended_at, ok,   |
|                |                         | new_items, error                       |
| daily_digests  | unique(source_id, date) | summary_md, insights_md, items jsonb   |

=============================================================================
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from newsintel.config import SUPABASE_KEY, SUPABASE_URL
from newsintel.models import Category, DailyDigest, FetchRun, Item, Policy, Source
from newsintel.storage.base import Storage, StorageError

logger = logging.getLogger(__name__)


# Characters with meaning inside a PostgREST or() filter
_FILTER_UNSAFE = str.maketrans({c: " " for c in ",()%*\\"})


class SupabaseStorage(Storage):
    """
    Supabase-backed storage implementation.

    Configuration is pulled from environment variables via newsintel.config:
    - SUPABASE_URL: Project URL (https://<ref>.supabase.co)
    - SUPABASE_KEY: Service-role key (or anon key)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
    ):
        """
        Initialize SupabaseStorage.

        Args:
            url: Project URL. Defaults to config.SUPABASE_URL.
            key: API key. Defaults to config.SUPABASE_KEY.
            client: Pre-built client (tests inject a mock here).
        """
        self.url = url if url is not None else SUPABASE_URL
        self.key = key if key is not None else SUPABASE_KEY
        self._client = client

    @property
    def name(self) -> str:
        return "supabase"

    @property
    def client(self) -> Client:
        if self._client is None:
            self._validate_config()
            self._client = create_client(self.url, self.key)
        return self._client

    def _validate_config(self) -> None:
        if not self.url:
            raise StorageError("SUPABASE_URL is not configured")
        if not self.key:
            raise StorageError("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_KEY is not configured")

    def _table(self, name: str):
        return self.client.table(name)

    def _run(self, description: str, build: Callable[[], Any]) -> List[dict]:
        """
        Execute a query built by `build` and return its rows.

        Raises:
            StorageError: On API or transport errors.
        """
        try:
            response = build().execute()
        except APIError as e:
            logger.error("Supabase %s failed: %s", description, e.message)
            raise StorageError(f"{description} failed: {e.message}") from e
        except httpx.HTTPError as e:
            logger.error("Supabase %s failed: %s", description, e)
            raise StorageError(f"{description} failed: {e}") from e
        return response.data or []

    def _get_one(self, table: str, record_id: str) -> Optional[dict]:
        rows = self._run(
            f"get {table}",
            lambda: self._table(table).select("*").eq("id", record_id).limit(1),
        )
        return rows[0] if rows else None

    def _delete(self, table: str, record_id: str) -> bool:
        rows = self._run(
            f"delete {table}",
            lambda: self._table(table).delete().eq("id", record_id),
        )
        return bool(rows)

    # =========================================================================
    # Sources
    # =========================================================================

    def list_sources(self, enabled_only: bool = False) -> List[Source]:
        def build():
            query = self._table("sources").select("*")
            if enabled_only:
                query = query.eq("enabled", True)
            return query.order("name")

        return [Source.from_dict(row) for row in self._run("list sources", build)]

    def get_source(self, source_id: str) -> Optional[Source]:
        row = self._get_one("sources", source_id)
        return Source.from_dict(row) if row else None

    def save_source(self, source: Source) -> Source:
        self._run("save source", lambda: self._table("sources").upsert(source.to_dict()))
        return source

    def delete_source(self, source_id: str) -> bool:
        return self._delete("sources", source_id)

    def mark_source_fetched(self, source_id: str, when: datetime) -> None:
        self._run(
            "update source",
            lambda: self._table("sources")
            .update({"last_fetched_at": when.isoformat()})
            .eq("id", source_id),
        )

    # =========================================================================
    # Categories & policies
    # =========================================================================

    def list_categories(self) -> List[Category]:
        rows = self._run("list categories", lambda: self._table("categories").select("*").order("name"))
        return [Category.from_dict(row) for row in rows]

    def get_category(self, category_id: str) -> Optional[Category]:
        row = self._get_one("categories", category_id)
        return Category.from_dict(row) if row else None

    def save_category(self, category: Category) -> Category:
        self._run("save category", lambda: self._table("categories").upsert(category.to_dict()))
        return category

    def delete_category(self, category_id: str) -> bool:
        return self._delete("categories", category_id)

    def list_policies(self) -> List[Policy]:
        rows = self._run("list policies", lambda: self._table("policies").select("*").order("name"))
        return [Policy.from_dict(row) for row in rows]

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        row = self._get_one("policies", policy_id)
        return Policy.from_dict(row) if row else None

    def save_policy(self, policy: Policy) -> Policy:
        self._run("save policy", lambda: self._table("policies").upsert(policy.to_dict()))
        return policy

    def delete_policy(self, policy_id: str) -> bool:
        return self._delete("policies", policy_id)

    # =========================================================================
    # Items
    # =========================================================================

    def item_exists(self, source_id: str, url: str) -> bool:
        rows = self._run(
            "check item",
            lambda: self._table("items")
            .select("id")
            .eq("source_id", source_id)
            .eq("url", url)
            .limit(1),
        )
        return bool(rows)

    def insert_item(self, item: Item) -> Item:
        self._run("insert item", lambda: self._table("items").insert(item.to_dict()))
        return item

    def list_items(
        self,
        source_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Item]:
        def build():
            query = self._table("items").select("*")
            if source_id:
                query = query.eq("source_id", source_id)
            if since:
                query = query.gte("published_at", since.isoformat())
            if until:
                query = query.lt("published_at", until.isoformat())
            return query.order("published_at", desc=True).limit(limit)

        return [Item.from_dict(row) for row in self._run("list items", build)]

    def search_items(
        self,
        query: str,
        limit: int = 50,
        source_id: Optional[str] = None,
    ) -> List[Item]:
        term = " ".join((query or "").translate(_FILTER_UNSAFE).split())
        if not term:
            return []

        def build():
            q = (
                self._table("items")
                .select("*")
                .or_(f"title.ilike.*{term}*,content.ilike.*{term}*")
            )
            if source_id:
                q = q.eq("source_id", source_id)
            return q.order("published_at", desc=True).limit(limit)

        return [Item.from_dict(row) for row in self._run("search items", build)]

    # =========================================================================
    # Fetch runs
    # =========================================================================

    def start_fetch_run(self, source_id: str) -> FetchRun:
        run = FetchRun(source_id=source_id)
        self._run("start fetch run", lambda: self._table("fetch_runs").insert(run.to_dict()))
        return run

    def finish_fetch_run(self, run: FetchRun) -> None:
        data = run.to_dict()
        payload = {k: data[k] for k in ("ended_at", "ok", "new_items", "error")}
        self._run(
            "finish fetch run",
            lambda: self._table("fetch_runs").update(payload).eq("id", run.id),
        )

    def list_fetch_runs(self, source_id: str, limit: int = 10) -> List[FetchRun]:
        rows = self._run(
            "list fetch runs",
            lambda: self._table("fetch_runs")
            .select("*")
            .eq("source_id", source_id)
            .order("started_at", desc=True)
            .limit(limit),
        )
        return [FetchRun.from_dict(row) for row in rows]

    # =========================================================================
    # Digests
    # =========================================================================

    def upsert_digest(self, digest: DailyDigest) -> None:
        self._run(
            "save digest",
            lambda: self._table("daily_digests").upsert(
                digest.to_dict(), on_conflict="source_id,date"
            ),
        )

    def get_digest(self, source_id: str, day: date) -> Optional[DailyDigest]:
        rows = self._run(
            "get digest",
            lambda: self._table("daily_digests")
            .select("*")
            .eq("source_id", source_id)
            .eq("date", day.isoformat())
            .limit(1),
        )
        return DailyDigest.from_dict(rows[0]) if rows else None

    def list_digests(self, source_id: Optional[str] = None, limit: int = 30) -> List[DailyDigest]:
        def build():
            query = self._table("daily_digests").select("*")
            if source_id:
                query = query.eq("source_id", source_id)
            return query.order("date", desc=True).limit(limit)

        return [DailyDigest.from_dict(row) for row in self._run("list digests", build)]
