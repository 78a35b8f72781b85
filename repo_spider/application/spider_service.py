from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from repo_spider.application.collector import SearchCollector
from repo_spider.domain.entities import ExportError, SearchQuery, SpiderRunResult
from repo_spider.domain.interfaces import IRepoExporter

log = logging.getLogger(__name__)

FILENAME_PREFIX = "github_repositories"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def report_filename(when: datetime) -> str:
    return f"{FILENAME_PREFIX}_{when.strftime(TIMESTAMP_FORMAT)}.csv"


class SpiderApplicationService:
    """
    The top-level use case: search GitHub and export the matches to CSV.

    Receives all dependencies via constructor injection.
    Knows about the sequence of operations but not the implementation details.
    """

    def __init__(self, collector: SearchCollector, exporter: IRepoExporter, output_dir: str | Path = ".", clock: Callable[[], datetime] = datetime.now) -> None:
        self._collector  = collector
        self._exporter   = exporter
        self._output_dir = Path(output_dir)
        self._clock      = clock

    async def execute(self, query: SearchQuery) -> SpiderRunResult:
        """
        Run one search for `query` and write the report.

        Zero matches is not a failure: nothing is written and the status
        is "empty". An export failure yields status "failed".
        """
        started_at = datetime.now(tz=timezone.utc)
        log.info("SpiderApplicationService | keyword=%r | target: %d", query.keyword, query.max_results)

        collected = await self._collector.collect(
            query.keyword,
            query.min_stars,
            query.max_results,
            query.timeout_secs,
        )
        repos = collected.records

        if collected.is_partial:
            log.warning("Search ended early (%s), continuing with %d repos", collected.stop_reason.value, len(repos))

        if not repos:
            elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
            log.info("No repositories matched keyword=%r with stars>%d", query.keyword, query.min_stars)
            return SpiderRunResult(
                total_repos  = 0,
                status       = "empty",
                stop_reason  = collected.stop_reason,
                elapsed_secs = elapsed,
            )

        output_file = self._output_dir / report_filename(self._clock())
        try:
            self._exporter.export(repos, output_file)
        except ExportError as exc:
            elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
            log.error("Export failed: %s", exc, exc_info=True)
            return SpiderRunResult(
                total_repos   = len(repos),
                status        = "failed",
                stop_reason   = collected.stop_reason,
                elapsed_secs  = elapsed,
                error_message = str(exc),
            )

        elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
        log.info("Run complete | %d repos | %.0fs | %s", len(repos), elapsed, output_file)
        return SpiderRunResult(
            total_repos  = len(repos),
            status       = "success",
            stop_reason  = collected.stop_reason,
            elapsed_secs = elapsed,
            output_file  = str(output_file),
        )
