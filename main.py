#!/usr/bin/env python3
"""
News Intelligence - fetch sources and build daily digests.

Command-line entry point for a one-shot run:
  - Fetch every enabled source (GitHub repos, RSS feeds, HTML pages, READMEs)
  - Store new items to Supabase (or in-memory storage in dev)
  - Generate each source's daily digest with the LLM analyzer
  - Print execution summary

Usage:
    python main.py                      # Run full pipeline
    python main.py --dry-run            # Fetch only, no storage
    python main.py --kinds rss          # Only RSS sources
    python main.py --date 2024-05-01    # Build digests for a given day
    python main.py --verbose            # Show detailed progress

Examples:
    # Development run
    python main.py --dry-run --verbose

    # Production run (cron)
    python main.py --quiet
"""

import argparse
import logging
import sys
from datetime import date

from newsintel import __version__
from newsintel.config import (
    DEFAULT_LIMIT_PER_SOURCE,
    LOG_LEVEL,
    print_config_summary,
    validate_config,
)
from newsintel.models import SOURCE_KINDS
from newsintel.pipeline import NewsPipeline, PipelineConfig, PipelineResult

logger = logging.getLogger("newsintel")


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="newsintel",
        description="Fetch news sources, store new items, and build daily digests.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                           Run full pipeline with defaults
  %(prog)s --dry-run                 Fetch only, skip storage and digests
  %(prog)s --sources <id> <id>       Only run specific sources
  %(prog)s --kinds rss html          Only run RSS and HTML sources
  %(prog)s --date 2024-05-01         Build digests for 2024-05-01
  %(prog)s --skip-digest             Fetch and store without digests
  %(prog)s -v --dry-run              Verbose dry-run
        """,
    )

    # Core options
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Fetch and deduplicate items but skip storage (no writes)",
    )

    parser.add_argument(
        "--limit-per-source", "-l",
        type=int,
        default=None,
        metavar="N",
        help=f"Maximum items to fetch per source (default: {DEFAULT_LIMIT_PER_SOURCE})",
    )

    parser.add_argument(
        "--sources",
        nargs="+",
        metavar="ID",
        help="Only run the sources with these ids (default: all enabled)",
    )

    parser.add_argument(
        "--kinds",
        nargs="+",
        choices=SOURCE_KINDS,
        metavar="KIND",
        help=f"Only run sources of these kinds ({', '.join(SOURCE_KINDS)})",
    )

    # Digest options
    parser.add_argument(
        "--date",
        type=parse_date,
        default=None,
        metavar="YYYY-MM-DD",
        help="Day to build digests for (default: today, UTC)",
    )

    parser.add_argument(
        "--skip-digest",
        action="store_true",
        help="Skip digest generation (storage only)",
    )

    parser.add_argument(
        "--digest-dir",
        default=None,
        metavar="DIR",
        help="Directory for Markdown digest copies (default: digests)",
    )

    # Output options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed progress and debug info",
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only show errors and final summary",
    )

    # Info options
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and exit",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stdout with timestamps."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = getattr(logging, LOG_LEVEL, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        force=True,
    )


def show_config() -> None:
    """Display current configuration."""
    print("=" * 60)
    print("News Intelligence Configuration")
    print("=" * 60)
    print_config_summary()

    errors = validate_config()
    if errors:
        print("\nConfiguration warnings:")
        for error in errors:
            print(f"  ⚠️  {error}")
    else:
        print("\n✓ Configuration valid")
    print("=" * 60)


def main(argv: list = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command-line arguments (default: sys.argv[1:]).

    Returns:
        Exit code (0 = success, 1 = error, 130 = interrupted).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.show_config:
        show_config()
        return 0

    configure_logging(args.verbose, args.quiet)

    config = PipelineConfig.from_args(args)

    if not args.quiet:
        print("=" * 60)
        print("News Intelligence Pipeline")
        print("=" * 60)
        if config.dry_run:
            print("Mode: DRY RUN (no storage writes)")
        print("Settings:")
        print(f"  Limit per source: {config.limit_per_source}")
        print(f"  Sources: {config.source_ids or 'all enabled'}")
        print(f"  Kinds: {config.kinds or 'all'}")
        print(f"  Digest date: {config.digest_date or 'today'}")
        print(f"  Skip digest: {config.skip_digest}")
        print()

    try:
        result = NewsPipeline(config).run()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logger.exception("Pipeline error")
        print(f"\n❌ Pipeline error: {e}")
        return 1

    print(result.to_summary())
    return exit_code(result)


def exit_code(result: PipelineResult) -> int:
    """0 on success; 1 when every source failed or the run aborted."""
    if result.sources_failed > 0 and result.sources_succeeded == 0:
        return 1
    if any(e.startswith("Pipeline error") for e in result.errors):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
