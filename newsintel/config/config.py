"""
Configuration module for News Intelligence.

Loads environment variables from .env file and exposes them as typed configuration values.
Uses python-dotenv for loading and provides safe defaults where appropriate.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
# The .env file should be in the root directory (parent of newsintel/)
_project_root = Path(__file__).parent.parent.parent
_env_path = _project_root / ".env"
load_dotenv(_env_path)


# =============================================================================
# Application Environment
# =============================================================================

# Application environment: "development", "staging", or "production"
APP_ENV: str = os.getenv("APP_ENV", "development")

# Enable debug mode (Flask debug server, extra diagnostics)
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

# Root log level used when the CLI does not override it
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# =============================================================================
# Supabase (hosted Postgres) Configuration
# =============================================================================

SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")

# Service-role key is preferred for server-side writes; the anon key works
# for projects without row level security.
SUPABASE_KEY: str = (
    os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    or os.getenv("SUPABASE_KEY")
    or os.getenv("SUPABASE_ANON_KEY", "")
)


# =============================================================================
# LLM Configuration (OpenAI-compatible chat completions)
# =============================================================================

OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

OPENAI_API_URL: str = os.getenv(
    "OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"
)

OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

# Maximum number of items sent to the LLM for a single analysis
LLM_MAX_ITEMS: int = int(os.getenv("LLM_MAX_ITEMS", "10"))


# =============================================================================
# Fetching Configuration
# =============================================================================

# GitHub personal access token (for higher rate limits)
GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")

# HTTP request timeout in seconds
REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))

# Retries for transient HTTP failures (connection errors, 429, 5xx)
FETCH_MAX_RETRIES: int = int(os.getenv("FETCH_MAX_RETRIES", "3"))

# First backoff delay in seconds; doubles on every retry
FETCH_RETRY_BASE_DELAY: float = float(os.getenv("FETCH_RETRY_BASE_DELAY", "1.0"))

# Maximum number of items a single fetcher returns
DEFAULT_LIMIT_PER_SOURCE: int = int(os.getenv("DEFAULT_LIMIT_PER_SOURCE", "50"))


# =============================================================================
# Digest Configuration
# =============================================================================

# Directory for Markdown copies of generated digests (empty = don't write)
DIGEST_OUTPUT_DIR: str = os.getenv("DIGEST_OUTPUT_DIR", "digests")


# =============================================================================
# Helper Functions
# =============================================================================

def is_production() -> bool:
    """Check if running in production environment."""
    return APP_ENV == "production"


def is_development() -> bool:
    """Check if running in development environment."""
    return APP_ENV == "development"


def is_supabase_configured() -> bool:
    """Check if the hosted database is configured."""
    return bool(SUPABASE_URL and SUPABASE_KEY)


def mask_secret(value: str, visible: int = 6) -> str:
    """Mask a secret for display, keeping only a short prefix."""
    if not value:
        return "NOT SET"
    return f"{value[:visible]}..."


def validate_config() -> list[str]:
    """
    Validate that required configuration is present for production.

    Returns:
        List of missing or invalid configuration keys (empty if all valid).
    """
    errors = []

    if is_production():
        if not SUPABASE_URL:
            errors.append("SUPABASE_URL is required in production")
        if not SUPABASE_KEY:
            errors.append("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_KEY is required in production")

    if REQUEST_TIMEOUT < 1:
        errors.append("REQUEST_TIMEOUT must be at least 1 second")

    if FETCH_MAX_RETRIES < 0:
        errors.append("FETCH_MAX_RETRIES cannot be negative")

    if FETCH_RETRY_BASE_DELAY < 0:
        errors.append("FETCH_RETRY_BASE_DELAY cannot be negative")

    if LLM_MAX_ITEMS < 1:
        errors.append("LLM_MAX_ITEMS must be at least 1")

    if DEFAULT_LIMIT_PER_SOURCE < 1:
        errors.append("DEFAULT_LIMIT_PER_SOURCE must be at least 1")

    return errors


def print_config_summary() -> None:
    """Print a summary of current configuration (safe for logs, no secrets)."""
    print(f"  APP_ENV: {APP_ENV}")
    print(f"  DEBUG: {DEBUG}")
    print(f"  LOG_LEVEL: {LOG_LEVEL}")
    print(f"  SUPABASE_URL: {SUPABASE_URL or '(not set)'}")
    print(f"  SUPABASE_KEY: {'***' if SUPABASE_KEY else '(not set)'}")
    print(f"  OPENAI_API_KEY: {'***' if OPENAI_API_KEY else '(not set)'}")
    print(f"  OPENAI_MODEL: {OPENAI_MODEL}")
    print(f"  GITHUB_TOKEN: {'***' if GITHUB_TOKEN else '(not set)'}")
    print(f"  REQUEST_TIMEOUT: {REQUEST_TIMEOUT}s")
    print(f"  FETCH_MAX_RETRIES: {FETCH_MAX_RETRIES}")
    print(f"  FETCH_RETRY_BASE_DELAY: {FETCH_RETRY_BASE_DELAY}s")
    print(f"  DEFAULT_LIMIT_PER_SOURCE: {DEFAULT_LIMIT_PER_SOURCE}")
    print(f"  DIGEST_OUTPUT_DIR: {DIGEST_OUTPUT_DIR or '(disabled)'}")
