"""
Configuration module.

Handles environment variables, API keys, and application settings.
"""

from newsintel.config.config import (
    APP_ENV,
    DEBUG,
    LOG_LEVEL,
    SUPABASE_URL,
    SUPABASE_KEY,
    OPENAI_API_KEY,
    OPENAI_API_URL,
    OPENAI_MODEL,
    LLM_MAX_ITEMS,
    GITHUB_TOKEN,
    REQUEST_TIMEOUT,
    FETCH_MAX_RETRIES,
    FETCH_RETRY_BASE_DELAY,
    DEFAULT_LIMIT_PER_SOURCE,
    DIGEST_OUTPUT_DIR,
    is_production,
    is_development,
    is_supabase_configured,
    mask_secret,
    validate_config,
    print_config_summary,
)

__all__ = [
    "APP_ENV",
    "DEBUG",
    "LOG_LEVEL",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "OPENAI_API_KEY",
    "OPENAI_API_URL",
    "OPENAI_MODEL",
    "LLM_MAX_ITEMS",
    "GITHUB_TOKEN",
    "REQUEST_TIMEOUT",
    "FETCH_MAX_RETRIES",
    "FETCH_RETRY_BASE_DELAY",
    "DEFAULT_LIMIT_PER_SOURCE",
    "DIGEST_OUTPUT_DIR",
    "is_production",
    "is_development",
    "is_supabase_configured",
    "mask_secret",
    "validate_config",
    "print_config_summary",
]
