"""
CLI entry point for grantpilot-scraper.

Usage:
    python -m grantpilot_scraper --mode sweep --store data/store.json
    python -m grantpilot_scraper --mode source --source-id 3
    python -m grantpilot_scraper --mode cleanup
    python -m grantpilot_scraper --mode schedule
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[list[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Web3 grant scraping and extraction pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape all active sources once
  python -m grantpilot_scraper --mode sweep --store data/store.json

  # Scrape a single source
  python -m grantpilot_scraper --mode source --source-id 3 --store data/store.json

  # Close grants not updated for 14+ days
  python -m grantpilot_scraper --mode cleanup --store data/store.json

  # Run the daily/weekly scheduler until interrupted
  python -m grantpilot_scraper --mode schedule --store data/store.json
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["sweep", "source", "cleanup", "sources", "logs", "schedule"],
        default="sweep",
        help="What to run (default: sweep)",
    )

    parser.add_argument(
        "--source-id",
        type=int,
        help="Source id for --mode source",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Number of log entries for --mode logs (default: 100)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to sources.yml config file",
    )

    parser.add_argument(
        "--store",
        type=str,
        help="JSON store file (in-memory when omitted)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    args = parser.parse_args(argv)
    if args.mode == "source" and args.source_id is None:
        parser.error("--mode source requires --source-id")
    return args


async def build_service(config_path: Optional[str] = None, store_path: Optional[str] = None):
    """Wire store, fetcher, extractor and orchestrator from config."""
    from .config.loader import load_settings, load_sources, seed_sources
    from .core.store import InMemoryStore, JsonFileStore
    from .extraction.extractor import GrantExtractor
    from .extraction.llm import LLMClient
    from .fetchers.content_fetcher import ContentFetcher
    from .orchestrator import ScraperService

    settings = load_settings(config_path)
    store = JsonFileStore(store_path) if store_path else InMemoryStore()
    await seed_sources(store, load_sources(config_path))

    llm = LLMClient(
        provider=settings.llm_provider,
        model=settings.llm_model,
        timeout=settings.llm_timeout_s,
    )

    return ScraperService(
        store=store,
        fetcher=ContentFetcher(settings),
        extractor=GrantExtractor(llm, settings),
        settings=settings,
    )


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


async def run_schedule(service) -> None:
    from .scheduler import create_scheduler

    scheduler = create_scheduler(service)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


async def main_async(args) -> int:
    """Async main function."""
    logger = structlog.get_logger(__name__)
    logger.info("starting_grantpilot_scraper", mode=args.mode, store=args.store)

    service = await build_service(args.config, args.store)

    # Shared HTTP client stays open for the whole run
    async with service.fetcher:
        if args.mode == "sweep":
            result = await service.scrape_all_sources()
            _print_json(result.to_dict())
        elif args.mode == "source":
            result = await service.scrape_source(args.source_id)
            _print_json(result.to_dict())
        elif args.mode == "cleanup":
            affected = await service.deactivate_stale_grants()
            _print_json({"affected": affected})
        elif args.mode == "sources":
            _print_json([s.to_dict() for s in await service.get_all_sources()])
        elif args.mode == "logs":
            _print_json([entry.to_dict() for entry in await service.get_recent_logs(args.limit)])
        elif args.mode == "schedule":
            await run_schedule(service)

    return 0


def main():
    """Main entry point."""
    args = parse_args()

    # Version check
    if args.version:
        from . import __version__
        print(f"grantpilot-scraper {__version__}")
        sys.exit(0)

    setup_logging(args.log_level, args.json_logs)

    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
