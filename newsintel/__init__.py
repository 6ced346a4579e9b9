"""
News Intelligence - fetch, deduplicate and summarize technical news sources.
"""

__version__ = "1.0.0"
