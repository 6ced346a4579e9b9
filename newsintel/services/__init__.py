"""
Services module.

Contains the LLM analysis integration and the fetch-and-save service.
"""

from newsintel.services.analyzer import (
    AIAnalyzer,
    AnalysisResult,
    LLMError,
    SummaryResult,
    default_analysis,
    extract_key_entities,
    get_analyzer,
    parse_analysis_response,
)
from newsintel.services.ingest import IngestService, fetch_and_save

__all__ = [
    "AIAnalyzer",
    "AnalysisResult",
    "LLMError",
    "SummaryResult",
    "default_analysis",
    "extract_key_entities",
    "get_analyzer",
    "parse_analysis_response",
    "IngestService",
    "fetch_and_save",
]
