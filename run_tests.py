#!/usr/bin/env python3
"""
Test Runner Script for News Intelligence

This script provides a convenient way to run tests with formatted output
and automatic result file generation.

Usage:
    python run_tests.py                      # Run all tests
    python run_tests.py --category fetchers  # Run specific category
    python run_tests.py --quick              # Stop on first failure
    python run_tests.py --verbose            # Verbose output
    python run_tests.py --list               # List available categories
"""

import argparse
import subprocess
import sys
from datetime import datetime
from pathlib import Path

# Test categories mapping
TEST_CATEGORIES = {
    "config": "tests/test_config.py",
    "models": "tests/test_models.py",
    "http": "tests/test_httpclient.py",
    "fetchers": "tests/test_fetchers.py",
    "storage": "tests/test_storage.py",
    "analyzer": "tests/test_analyzer.py",
    "ingest": "tests/test_ingest.py",
    "digest": "tests/test_digest.py",
    "pipeline": "tests/test_pipeline.py",
    "api": "tests/test_web_app.py",
    "cli": "tests/test_cli.py",
}

CATEGORY_DESCRIPTIONS = {
    "config": "Configuration - env vars, secret masking, validation",
    "models": "Models - validation, serialization, content hashing",
    "http": "HTTP client - retries, backoff, timeouts",
    "fetchers": "Fetchers - GitHub, RSS, HTML and README parsing",
    "storage": "Storage - memory and Supabase backends",
    "analyzer": "AI analysis - prompts, reply parsing, default fallback",
    "ingest": "Fetch and save - dedupe, fetch runs, dry-run",
    "digest": "Digests - statistics, rendering, persistence",
    "pipeline": "Pipeline orchestration - selection, error isolation",
    "api": "JSON API - all endpoints",
    "cli": "CLI behavior - argument parsing, exit codes",
}


def list_categories():
    """Print available test categories."""
    print("\n" + "=" * 60)
    print("AVAILABLE TEST CATEGORIES")
    print("=" * 60)

    for key, desc in CATEGORY_DESCRIPTIONS.items():
        print(f"  {key:10} - {desc}")

    print("\n" + "=" * 60)
    print("Usage examples:")
    print("  python run_tests.py --category fetchers")
    print("  python run_tests.py --category pipeline,cli")
    print("  python run_tests.py  # Run all")
    print("=" * 60)


def run_tests(categories=None, verbose=False, quick=False):
    """Run tests with specified options."""

    cmd = [sys.executable, "-m", "pytest"]

    paths = [TEST_CATEGORIES[cat] for cat in categories or [] if cat in TEST_CATEGORIES]
    cmd.extend(paths or ["tests/"])

    if verbose:
        cmd.append("-v")
    else:
        cmd.append("--tb=short")

    if quick:
        cmd.extend(["-x", "--ff"])  # Stop on first failure, failed first

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print("\n" + "=" * 60)
    print("NEWS INTELLIGENCE TEST RUNNER")
    print("=" * 60)
    print(f"Started:    {timestamp}")
    print(f"Categories: {', '.join(categories) if categories else 'ALL'}")
    print(f"Options:    {'verbose' if verbose else 'standard'}{', quick' if quick else ''}")
    print("=" * 60 + "\n")

    result = subprocess.run(cmd, cwd=Path(__file__).parent)

    return result.returncode


def main():
    parser = argparse.ArgumentParser(
        description="Run News Intelligence tests with formatted output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py                         # Run all tests
  python run_tests.py --category storage      # Run storage tests only
  python run_tests.py --category cli,digest   # Run multiple categories
  python run_tests.py --quick                 # Stop on first failure
  python run_tests.py --list                  # Show available categories
        """
    )

    parser.add_argument(
        "--category", "-c",
        type=str,
        help="Test category to run (comma-separated for multiple)",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show verbose output",
    )

    parser.add_argument(
        "--quick", "-q",
        action="store_true",
        help="Quick mode - stop on first failure",
    )

    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="List available test categories",
    )

    args = parser.parse_args()

    if args.list:
        list_categories()
        return 0

    categories = None
    if args.category:
        categories = [c.strip() for c in args.category.split(",")]

    return run_tests(
        categories=categories,
        verbose=args.verbose,
        quick=args.quick,
    )


if __name__ == "__main__":
    sys.exit(main())
