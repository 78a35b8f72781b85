"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
This file has ONE job: wire all the pieces together and run the app.

It does NOT contain any business logic. It just:
  1. Reads configuration from the environment (.env) and the command line
  2. Creates concrete implementations of each interface
  3. Injects them into the classes that need them
  4. Calls the top-level use case (SpiderApplicationService.execute)
  5. Reports the result and exits

Dependency graph (what depends on what):
                         main.py  (wires everything)
                            │
              ┌─────────────┼──────────────┐
              ▼             ▼              ▼
  SpiderApplicationService  │         CsvExporter
              │             │        (IRepoExporter)
              ▼             ▼
       SearchCollector  GitHubSearchClient
                         (IPageFetcher)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

import httpx

# Application layer
from repo_spider.application.collector import SearchCollector
from repo_spider.application.spider_service import SpiderApplicationService
from repo_spider.config import ConfigError, Settings, load_settings
from repo_spider.domain.entities import SearchQuery

# Infrastructure layer
from repo_spider.infrastructure.csv_exporter import CsvExporter
from repo_spider.infrastructure.github_client import GitHubSearchClient

log = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------

async def build_and_run(settings: Settings, query: SearchQuery) -> int:
    """
    Wires all dependencies together and executes the spider use case.
    Returns the process exit code.
    """
    async with httpx.AsyncClient() as client:
        # Infrastructure implementations
        fetcher = GitHubSearchClient(
            client     = client,       # injected, GitHubSearchClient doesn't create this
            api_url    = settings.api_url,
            user_agent = settings.user_agent,
        )
        exporter = CsvExporter()

        # Application services (receive infrastructure via injection)
        collector = SearchCollector(
            fetcher                = fetcher,
            rate_limit_sleep       = settings.rate_limit_sleep,
            courtesy_delay         = settings.courtesy_delay,
            max_rate_limit_retries = settings.max_rate_limit_retries,
        )
        service = SpiderApplicationService(
            collector  = collector,
            exporter   = exporter,
            output_dir = settings.output_dir,
        )

        result = await service.execute(query)

    if result.status == "success":
        log.info(
            "✅ Collected %d repositories, saved to %s (stopped: %s, %.0fs)",
            result.total_repos,
            result.output_file,
            result.stop_reason.value,
            result.elapsed_secs,
        )
        return 0

    if result.status == "empty":
        log.info("No repositories matched the search (stopped: %s)", result.stop_reason.value)
        return 0

    log.error(
        "❌ Failed | %d repos collected before failure | error: %s",
        result.total_repos,
        result.error_message,
    )
    return 1


def parse_args(settings: Settings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search GitHub repositories by keyword and star count, export them to CSV"
    )
    parser.add_argument("--keyword", default=settings.keyword, help=f"Search keyword (default: {settings.keyword})")
    parser.add_argument("--min-stars", type=int, default=settings.min_stars, help=f"Only repos with more stars than this (default: {settings.min_stars})")
    parser.add_argument("--max-results", type=int, default=settings.max_results, help=f"Maximum repos to collect (default: {settings.max_results})")
    parser.add_argument("--timeout", type=float, default=settings.timeout_secs, help=f"Overall search timeout in seconds (default: {settings.timeout_secs:.0f})")
    parser.add_argument("--output-dir", default=settings.output_dir, help="Directory for the CSV report")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        _setup_logging("INFO")
        log.error("Invalid configuration: %s", exc)
        return 1

    args = parse_args(settings, argv)
    _setup_logging(args.log_level)

    try:
        query = SearchQuery(
            keyword      = args.keyword,
            min_stars    = args.min_stars,
            max_results  = args.max_results,
            timeout_secs = args.timeout,
        )
    except ValueError as exc:
        log.error("Invalid arguments: %s", exc)
        return 1

    settings = replace(settings, output_dir=args.output_dir, log_level=args.log_level)

    log.info("GitHub spider starting …")
    try:
        return asyncio.run(build_and_run(settings, query))
    except Exception as exc:
        log.error("Run failed: %s", exc, exc_info=True)
        return 1
    finally:
        log.info("Done")


if __name__ == "__main__":
    sys.exit(main())
