from __future__ import annotations

import json
import logging

import httpx

from repo_spider.domain.entities import FetchOutcome, PageResult, Repository
from repo_spider.domain.interfaces import IPageFetcher

log = logging.getLogger(__name__)

GITHUB_SEARCH_URL  = "https://api.github.com/search/repositories"
DEFAULT_USER_AGENT = "GitHub-Spider-App"
RATE_LIMIT_STATUS  = 403
DETAIL_EXCERPT     = 500


class MalformedPageError(ValueError):
    """Raised inside the anti-corruption layer when a page has the wrong shape."""
    pass


class GitHubSearchClient(IPageFetcher):
    """
    Concrete implementation of IPageFetcher for GitHub's REST search API.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. This lets callers control the client lifecycle
    and makes testing trivial: just pass in a client built on
    httpx.MockTransport.
    """

    def __init__(self, client: httpx.AsyncClient, api_url: str = GITHUB_SEARCH_URL, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._client  = client
        self._api_url = api_url
        self._headers = {
            "Accept":     "application/vnd.github+json",
            "User-Agent": user_agent,
        }

    # Anti-Corruption Layer
    @staticmethod
    def _count(item: dict, key: str) -> int:
        value = item.get(key, 0)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedPageError(f"{key} is not an integer: {value!r}")
        return value

    @staticmethod
    def _text(item: dict, key: str) -> str:
        value = item.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise MalformedPageError(f"{key} is not a string: {value!r}")
        return value

    def _parse_item(self, item: object) -> Repository:
        """
        ANTI-CORRUPTION LAYER — translates one raw search item into our
        Repository domain object.

        GitHub sends:            We store as:
          "full_name"         →  full_name
          "stargazers_count"  →  star_count
          "forks_count"       →  fork_count

        A wrong-typed item spoils the whole page; there is no partial salvage.
        """
        if not isinstance(item, dict):
            raise MalformedPageError(f"search item is not an object: {type(item).__name__}")
        return Repository(
            full_name   = self._text(item, "full_name"),
            html_url    = self._text(item, "html_url"),
            star_count  = self._count(item, "stargazers_count"),
            fork_count  = self._count(item, "forks_count"),
            description = self._text(item, "description"),
        )

    def _parse_page(self, data: object) -> tuple[list[Repository], int]:
        if not isinstance(data, dict):
            raise MalformedPageError(f"search response is not an object: {type(data).__name__}")
        items = data.get("items")
        if items is None:
            items = []
        if not isinstance(items, list):
            raise MalformedPageError("items is not a list")
        return [self._parse_item(item) for item in items], self._count(data, "total_count")

    # IPageFetcher implementation
    async def fetch_page(self, params: dict[str, str | int], timeout: float | None = None) -> PageResult:
        """
        Fetch one page of search results and translate it into a PageResult.

        403 is GitHub's rate-limit signal; every other non-2xx status is a
        plain HTTP error. Nothing is retried here; that is the collector's call.
        """
        try:
            response = await self._client.get(
                self._api_url,
                params  = params,
                headers = self._headers,
                timeout = timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as exc:
            log.warning("Search request timed out: %s", exc)
            return PageResult(FetchOutcome.TIMED_OUT, detail=str(exc))
        except httpx.RequestError as exc:
            log.error("Network error during search: %s", exc)
            return PageResult(FetchOutcome.TRANSPORT_ERROR, detail=str(exc))

        if not response.is_success:
            body = response.text[:DETAIL_EXCERPT]
            log.warning("HTTP error: %d %s: %s", response.status_code, response.reason_phrase, body)
            outcome = FetchOutcome.RATE_LIMITED if response.status_code == RATE_LIMIT_STATUS else FetchOutcome.HTTP_ERROR
            return PageResult(outcome, status_code=response.status_code, detail=body)

        log.debug("API response JSON length: %d chars", len(response.content))
        try:
            repos, total_count = self._parse_page(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError, MalformedPageError) as exc:
            log.error("Could not decode search response: %s", exc)
            return PageResult(FetchOutcome.DECODE_ERROR, status_code=response.status_code, detail=str(exc))

        return PageResult(
            FetchOutcome.SUCCESS,
            repos       = repos,
            total_count = total_count,
            status_code = response.status_code,
        )
