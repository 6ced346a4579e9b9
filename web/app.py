"""
News Intelligence - JSON API

Flask API used by the dashboard: fetch triggers, AI analysis, sources,
categories, policies, digests, search and pipeline control.

Run with: python -m web.app
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from newsintel.config import (
    APP_ENV,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    SUPABASE_KEY,
    SUPABASE_URL,
    is_development,
    mask_secret,
)
from newsintel.digest import DigestConfig, DigestGenerator, collect_entities
from newsintel.models import Category, Policy, Source
from newsintel.pipeline import NewsPipeline, PipelineConfig
from newsintel.services.analyzer import get_analyzer
from newsintel.services.ingest import IngestService
from newsintel.storage import get_storage
from newsintel.storage.base import StorageError

logger = logging.getLogger(__name__)

app = Flask(__name__)


# =============================================================================
# Pipeline Status Tracking
# =============================================================================

@dataclass
class PipelineStatus:
    """Tracks the status of a pipeline run."""
    running: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    status: str = "idle"  # idle, starting, running, completed, failed
    message: str = ""
    result: Optional[dict] = None
    logs: list = field(default_factory=list)

    def log(self, message: str, level: str = "info"):
        """Add a log entry with timestamp."""
        self.logs.append({
            "time": datetime.now(timezone.utc).strftime("%H:%M:%S"),
            "level": level,  # info, success, warning, error
            "message": message,
        })


# Global pipeline status (simple in-memory tracking)
_pipeline_status = PipelineStatus()
_pipeline_lock = threading.Lock()


# =============================================================================
# Helpers
# =============================================================================

def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _parse_day(value: Optional[str]) -> date:
    """YYYY-MM-DD, or today (UTC) when missing. Raises ValueError (TypeError for non-strings)."""
    if not value:
        return datetime.now(timezone.utc).date()
    return date.fromisoformat(value)


@app.errorhandler(StorageError)
def handle_storage_error(e):
    logger.error("Storage error: %s", e)
    return _error(str(e), 500)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    # Routing errors (404, 405) keep their own status codes
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error in %s %s", request.method, request.path)
    return _error("Internal server error", 500)


# =============================================================================
# Fetch & analyze
# =============================================================================

@app.route("/api/fetch", methods=["POST"])
def api_fetch():
    """Fetch one source now and store its new items."""
    source_id = _json_body().get("sourceId")
    if not source_id:
        return _error("Source ID is required", 400)

    result = IngestService(get_storage()).fetch_and_save(source_id)

    if not result.success:
        return _error(result.error or "Fetch failed", 500)

    return jsonify({
        "success": True,
        "newItems": result.new_items,
        "message": f"Successfully fetched {result.new_items} new items",
    })


@app.route("/api/fetch", methods=["GET"])
def api_fetch_history():
    """Last 10 fetch runs of a source."""
    source_id = request.args.get("sourceId")
    if not source_id:
        return _error("Source ID is required", 400)

    runs = get_storage().list_fetch_runs(source_id, limit=10)
    return jsonify({
        "success": True,
        "fetchRuns": [{**run.to_dict(), "duration_seconds": run.duration_seconds} for run in runs],
    })


@app.route("/api/analyze", methods=["POST"])
def api_analyze():
    """Analyze a batch of items (default analysis when no LLM key)."""
    data = _json_body()
    items = data.get("items")

    if not items or not isinstance(items, list):
        return _error("Items array required", 400)
    if not all(isinstance(item, dict) for item in items):
        return _error("Each item must be an object", 400)

    policy = None
    if data.get("policyId"):
        policy = get_storage().get_policy(data["policyId"])
        if policy is None:
            return _error("Policy not found", 404)

    result = get_analyzer().analyze_content(
        items,
        data.get("sourceName") or "Custom selection",
        ai_focus=data.get("aiFocus"),
        policy=policy,
    )

    return jsonify({
        "summary": result.summary,
        "insights": result.insights,
        "trends": result.trends,
        "impact": result.impact,
        "recommendations": result.recommendations,
        "keyEntities": result.key_entities,
        "model": result.model,
        "fallback": result.fallback,
    })


@app.route("/api/debug-env")
def api_debug_env():
    """Environment overview with secrets masked."""
    storage = get_storage()
    return jsonify({
        "environment": APP_ENV,
        "openaiApiKey": mask_secret(OPENAI_API_KEY),
        "preferredProvider": "OpenAI" if OPENAI_API_KEY else "None",
        "model": OPENAI_MODEL,
        "supabaseUrl": SUPABASE_URL or "NOT SET",
        "supabaseKey": mask_secret(SUPABASE_KEY),
        "storage": storage.name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


# =============================================================================
# Sources, categories, policies
# =============================================================================

def _list_or_create(model, list_fn, save_fn, not_found=None):
    if request.method == "GET":
        return jsonify([record.to_dict() for record in list_fn()])

    try:
        record = model.from_dict(_json_body())
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    return jsonify(save_fn(record).to_dict()), 201


def _get_update_delete(model, record_id, get_fn, save_fn, delete_fn, label):
    existing = get_fn(record_id)
    if existing is None:
        return _error(f"{label} not found", 404)

    if request.method == "GET":
        return jsonify(existing.to_dict())

    if request.method == "DELETE":
        delete_fn(record_id)
        return jsonify({"success": True})

    merged = {**existing.to_dict(), **_json_body(), "id": record_id}
    try:
        record = model.from_dict(merged)
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    return jsonify(save_fn(record).to_dict())


@app.route("/api/sources", methods=["GET", "POST"])
def api_sources():
    storage = get_storage()
    return _list_or_create(Source, storage.list_sources, storage.save_source)


@app.route("/api/sources/<source_id>", methods=["GET", "PUT", "DELETE"])
def api_source(source_id):
    storage = get_storage()
    return _get_update_delete(
        Source, source_id, storage.get_source, storage.save_source, storage.delete_source, "Source",
    )


@app.route("/api/categories", methods=["GET", "POST"])
def api_categories():
    storage = get_storage()
    return _list_or_create(Category, storage.list_categories, storage.save_category)


@app.route("/api/categories/<category_id>", methods=["GET", "PUT", "DELETE"])
def api_category(category_id):
    storage = get_storage()
    return _get_update_delete(
        Category, category_id, storage.get_category, storage.save_category,
        storage.delete_category, "Category",
    )


@app.route("/api/policies", methods=["GET", "POST"])
def api_policies():
    storage = get_storage()
    return _list_or_create(Policy, storage.list_policies, storage.save_policy)


@app.route("/api/policies/<policy_id>", methods=["GET", "PUT", "DELETE"])
def api_policy(policy_id):
    storage = get_storage()
    return _get_update_delete(
        Policy, policy_id, storage.get_policy, storage.save_policy, storage.delete_policy, "Policy",
    )


# =============================================================================
# Digests, items, search
# =============================================================================

@app.route("/api/digests")
def api_digests():
    """List digests, newest first."""
    digests = get_storage().list_digests(
        source_id=request.args.get("sourceId") or None,
        limit=min(_int_arg("limit", 30), 100),
    )
    return jsonify([d.to_dict() for d in digests])


@app.route("/api/digests/<source_id>/<day>")
def api_digest(source_id, day):
    try:
        target = _parse_day(day)
    except ValueError:
        return _error("Invalid date, expected YYYY-MM-DD", 400)

    digest = get_storage().get_digest(source_id, target)
    if digest is None:
        return _error("Digest not found", 404)
    return jsonify(digest.to_dict())


@app.route("/api/digests/generate", methods=["POST"])
def api_digest_generate():
    """Build (and store) one source's digest for a day."""
    data = _json_body()
    source_id = data.get("sourceId")
    if not source_id:
        return _error("Source ID is required", 400)

    try:
        target = _parse_day(data.get("date"))
    except (TypeError, ValueError):
        return _error("Invalid date, expected YYYY-MM-DD", 400)

    generator = DigestGenerator(get_storage(), config=DigestConfig(output_dir=None))
    result = generator.generate(source_id, target)

    if not result.success:
        return _error(result.error or "Digest generation failed", 500)

    return jsonify({
        "success": True,
        "itemsIncluded": result.items_included,
        "digest": result.digest.to_dict(),
    })


@app.route("/api/items")
def api_items():
    """Recent items, optionally for one source."""
    days = _int_arg("days", 7)
    since = datetime.now(timezone.utc) - timedelta(days=days)
    items = get_storage().list_items(
        source_id=request.args.get("sourceId") or None,
        since=since,
        limit=min(_int_arg("limit", 100), 500),
    )
    return jsonify({"count": len(items), "items": [item.to_dict() for item in items]})


@app.route("/api/search")
def api_search():
    """Search items by title or content."""
    query = request.args.get("q", "").strip()
    source_id = request.args.get("sourceId") or None
    limit = min(_int_arg("limit", 50), 100)  # Cap at 100

    if not query:
        return _error("Query parameter 'q' is required", 400)

    items = get_storage().search_items(query=query, limit=limit, source_id=source_id)

    return jsonify({
        "success": True,
        "query": query,
        "count": len(items),
        "results": [item.to_dict() for item in items],
    })


@app.route("/api/entities")
def api_entities():
    """Authors and tags seen in recent items, with counts."""
    items = get_storage().get_recent_items(days=_int_arg("days", 7))
    return jsonify(collect_entities(items))


# =============================================================================
# AI
# =============================================================================

@app.route("/api/ai/status")
def api_ai_status():
    """Check if AI analysis is available."""
    analyzer = get_analyzer()
    return jsonify({
        "available": analyzer.is_available(),
        "model": analyzer.model if analyzer.is_available() else None,
    })


@app.route("/api/ai/summarize", methods=["POST"])
def api_summarize():
    """AI summary of a single item."""
    data = _json_body()

    title = data.get("title", "")
    content = data.get("content", "")
    kind = data.get("kind", "")

    if not title and not content:
        return _error("Title or content required", 400)

    analyzer = get_analyzer()

    if not analyzer.is_available():
        return jsonify({
            "error": "AI not configured",
            "message": "Add OPENAI_API_KEY to .env file",
        }), 503

    result = analyzer.summarize_item(title, content, kind)

    if result.success:
        return jsonify({
            "success": True,
            "summary": result.summary,
            "model": result.model,
            "tokens": result.tokens_used,
        })
    return jsonify({"success": False, "error": result.error}), 500


# =============================================================================
# Pipeline API Endpoints
# =============================================================================

def _run_pipeline_async(config: PipelineConfig):
    """Run pipeline in background thread, recording progress logs."""
    status = _pipeline_status

    try:
        status.status = "running"
        status.log("$ newsintel --run", "cmd")
        status.log(f"Config: kinds={config.kinds or 'all'}, dry_run={config.dry_run}", "info")
        status.message = "Fetching sources..."

        result = NewsPipeline(config).run()

        for sr in result.source_results:
            if sr.success:
                status.log(f"[{sr.source_name}] {sr.new_items} new items ({sr.duration_ms:.0f}ms)", "success")
            else:
                status.log(f"[{sr.source_name}] Failed: {sr.error}", "error")

        for dr in result.digest_results:
            if dr.success and dr.items_included:
                status.log(f"Digest for {dr.source_id}: {dr.items_included} items", "success")
            elif not dr.success:
                status.log(f"Digest for {dr.source_id} failed: {dr.error}", "warning")

        status.result = {
            "sources_succeeded": result.sources_succeeded,
            "sources_failed": result.sources_failed,
            "total_new_items": result.total_new_items,
            "digests_generated": result.digests_generated,
            "duration_seconds": result.duration_seconds,
            "errors": result.errors[:5],
        }

        status.log(f"Pipeline completed in {result.duration_seconds:.1f}s", "success")
        status.status = "completed"
        status.message = f"Saved {result.total_new_items} new items from {result.sources_succeeded} sources"

    except Exception as e:
        logger.exception("Background pipeline failed")
        status.log(f"Error: {e}", "error")
        status.status = "failed"
        status.message = f"Pipeline failed: {e}"
        status.result = {"error": str(e)}

    finally:
        status.running = False
        status.finished_at = datetime.now(timezone.utc)


@app.route("/api/pipeline/run", methods=["POST"])
def api_pipeline_run():
    """Trigger a pipeline run in the background."""
    global _pipeline_status

    data = _json_body()

    with _pipeline_lock:
        if _pipeline_status.running:
            return jsonify({
                "success": False,
                "error": "Pipeline is already running",
                "status": _pipeline_status.status,
            }), 409

        try:
            config = PipelineConfig(
                source_ids=data.get("sourceIds") or None,
                kinds=data.get("kinds") or None,
                digest_date=_parse_day(data.get("date")),
                skip_digest=bool(data.get("skipDigest", False)),
                digest_output_dir=None,
            )
        except (TypeError, ValueError):
            return _error("Invalid date, expected YYYY-MM-DD", 400)

        _pipeline_status = PipelineStatus(
            running=True,
            started_at=datetime.now(timezone.utc),
            status="starting",
            message="Initializing pipeline...",
        )

    thread = threading.Thread(target=_run_pipeline_async, args=(config,))
    thread.daemon = True
    thread.start()

    return jsonify({
        "success": True,
        "message": "Pipeline started",
        "status": "starting",
    })


@app.route("/api/pipeline/status")
def api_pipeline_status():
    """Get current pipeline status."""
    status = _pipeline_status

    response = {
        "running": status.running,
        "status": status.status,
        "message": status.message,
        "logs": status.logs,
    }

    if status.started_at:
        response["started_at"] = status.started_at.isoformat()

    if status.finished_at:
        response["finished_at"] = status.finished_at.isoformat()
        response["duration_seconds"] = (status.finished_at - status.started_at).total_seconds()

    if status.result:
        response["result"] = status.result

    return jsonify(response)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print("=" * 50)
    print("News Intelligence API")
    print("=" * 50)
    print("Listening on http://localhost:5001")
    print("Press Ctrl+C to stop")
    print("=" * 50)
    app.run(debug=is_development(), port=5001)
