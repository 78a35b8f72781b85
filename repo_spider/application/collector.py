from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable
from repo_spider.application.query_builder import MAX_PAGE_SIZE, build_page_params
from repo_spider.domain.entities import CollectionResult, FetchOutcome, Repository, StopReason
from repo_spider.domain.interfaces import IPageFetcher

log = logging.getLogger(__name__)

RATE_LIMIT_SLEEP       = 60
COURTESY_DELAY         = 2
MAX_RATE_LIMIT_RETRIES = 10

Sleep = Callable[[float], Awaitable[object]]

# Outcomes that end the run, mapped to the reason reported to the caller
_TERMINAL_OUTCOMES = {
    FetchOutcome.TIMED_OUT:       StopReason.DEADLINE,
    FetchOutcome.HTTP_ERROR:      StopReason.HTTP_ERROR,
    FetchOutcome.DECODE_ERROR:    StopReason.DECODE_ERROR,
    FetchOutcome.TRANSPORT_ERROR: StopReason.TRANSPORT_ERROR,
}


@dataclass
class _LoopState:
    page:          int = 1
    pages_fetched: int = 0
    total_count:   int | None = None


class SearchCollector:
    """
    Walks the search endpoint page by page, strictly sequentially.

    All dependencies are injected; this class creates NOTHING itself:
      - IPageFetcher → how to talk to GitHub (injected)
      - sleep        → how to wait (injected, asyncio.sleep by default)

    In tests you pass a FakePageFetcher and an instant sleep and exercise
    the stop / retry / backoff policy without any real network or delay.
    """

    def __init__(
        self,
        fetcher: IPageFetcher,
        sleep: Sleep = asyncio.sleep,
        page_size: int = MAX_PAGE_SIZE,
        rate_limit_sleep: float = RATE_LIMIT_SLEEP,
        courtesy_delay: float = COURTESY_DELAY,
        max_rate_limit_retries: int | None = MAX_RATE_LIMIT_RETRIES,
    ) -> None:
        self._fetcher                = fetcher
        self._sleep                  = sleep
        self._page_size              = max(1, min(page_size, MAX_PAGE_SIZE))
        self._rate_limit_sleep       = rate_limit_sleep
        self._courtesy_delay         = courtesy_delay
        self._max_rate_limit_retries = max_rate_limit_retries

    async def collect(self, keyword: str, min_stars: int, max_results: int, timeout_secs: float) -> CollectionResult:
        """
        Collect up to `max_results` repositories within `timeout_secs`.

        Never raises for page-level problems: whatever has been accumulated
        when the loop stops is returned together with the stop reason.
        """
        out: list[Repository] = []
        state = _LoopState()

        if max_results <= 0:
            return CollectionResult(records=out, stop_reason=StopReason.CAP_REACHED, pages_fetched=0)

        loop     = asyncio.get_running_loop()
        deadline = loop.time() + timeout_secs

        log.info(
            "Starting search | keyword=%r | stars>%d | cap=%d | timeout=%.0fs",
            keyword, min_stars, max_results, timeout_secs,
        )

        try:
            stop_reason = await asyncio.wait_for(
                self._run_pages(keyword, min_stars, max_results, deadline, out, state),
                timeout=timeout_secs,
            )
        except asyncio.TimeoutError:
            log.warning("Overall timeout of %.0fs reached, keeping %d repos collected so far", timeout_secs, len(out))
            stop_reason = StopReason.DEADLINE

        if len(out) >= max_results:
            stop_reason = StopReason.CAP_REACHED

        log.info(
            "Search stopped | reason=%s | pages=%d | repos=%d/%d",
            stop_reason.value, state.pages_fetched, len(out), max_results,
        )
        return CollectionResult(
            records       = out,
            stop_reason   = stop_reason,
            pages_fetched = state.pages_fetched,
            total_count   = state.total_count,
        )

    async def _run_pages(
        self,
        keyword: str,
        min_stars: int,
        max_results: int,
        deadline: float,
        out: list[Repository],
        state: _LoopState,
    ) -> StopReason:
        """
        The pagination loop. Appends into `out` in place so that a
        cancellation by the deadline still leaves the partial results behind.
        """
        loop = asyncio.get_running_loop()
        rate_limit_hits = 0

        while len(out) < max_results:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return StopReason.DEADLINE

            params = build_page_params(keyword, min_stars, state.page, self._page_size)
            log.info("Searching page %d …", state.page)
            try:
                result = await self._fetcher.fetch_page(params, timeout=remaining)
            except Exception:
                log.exception("Unexpected error while fetching page %d, keeping %d repos", state.page, len(out))
                return StopReason.UNEXPECTED

            if result.outcome is FetchOutcome.RATE_LIMITED:
                rate_limit_hits += 1
                if self._max_rate_limit_retries is not None and rate_limit_hits > self._max_rate_limit_retries:
                    log.error(
                        "Still rate limited on page %d after %d retries, giving up",
                        state.page, self._max_rate_limit_retries,
                    )
                    return StopReason.RATE_LIMITED
                log.warning(
                    "Rate limited on page %d (hit %d), sleeping %ds before retrying the same page …",
                    state.page, rate_limit_hits, self._rate_limit_sleep,
                )
                await self._sleep(self._rate_limit_sleep)
                continue

            if result.outcome in _TERMINAL_OUTCOMES:
                reason = _TERMINAL_OUTCOMES[result.outcome]
                log.warning(
                    "Page %d failed (%s, status=%s): %s",
                    state.page, result.outcome.value, result.status_code, result.detail,
                )
                return reason

            rate_limit_hits = 0
            state.pages_fetched += 1
            state.total_count = result.total_count

            if not result.repos:
                log.info("Page %d is empty (total_count=%s), no more results", state.page, result.total_count)
                return StopReason.EMPTY_PAGE

            room = max_results - len(out)
            out.extend(result.repos[:room])
            log.info(
                "Page %d | +%d repos | total %d/%d | upstream total_count=%s",
                state.page, min(room, len(result.repos)), len(out), max_results, result.total_count,
            )
            for repo in result.repos[:room]:
                log.debug("Found %s (stars: %d)", repo.full_name, repo.star_count)

            if len(out) >= max_results:
                log.info("Reached the limit of %d repos", max_results)
                return StopReason.CAP_REACHED

            state.page += 1
            await self._sleep(self._courtesy_delay)

        return StopReason.CAP_REACHED
