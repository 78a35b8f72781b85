"""Tests for the GitHub search client, driven through httpx.MockTransport."""
import httpx
import pytest

from repo_spider.application.query_builder import build_page_params
from repo_spider.domain.entities import FetchOutcome, Repository
from repo_spider.infrastructure.github_client import GitHubSearchClient

API_URL = "https://api.github.test/search/repositories"

ITEM = {
    "full_name": "EpicGames/UnrealEngine",
    "html_url": "https://github.com/EpicGames/UnrealEngine",
    "stargazers_count": 20000,
    "forks_count": 8000,
    "description": "Unreal Engine source",
    "language": "C++",
}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _fetch(handler, page: int = 1):
    async with _client(handler) as client:
        fetcher = GitHubSearchClient(client, api_url=API_URL, user_agent="test-agent")
        return await fetcher.fetch_page(build_page_params("unreal", 100, page), timeout=5)


class TestFetchPage:

    @pytest.mark.asyncio
    async def test_success_translates_items(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"total_count": 1234, "items": [ITEM, {**ITEM, "description": None}]})

        result = await _fetch(handler, page=3)

        assert result.outcome is FetchOutcome.SUCCESS
        assert result.total_count == 1234
        assert result.repos == [
            Repository("EpicGames/UnrealEngine", "https://github.com/EpicGames/UnrealEngine", 20000, 8000, "Unreal Engine source"),
            Repository("EpicGames/UnrealEngine", "https://github.com/EpicGames/UnrealEngine", 20000, 8000, ""),
        ]

        request = seen["request"]
        assert request.headers["User-Agent"] == "test-agent"
        assert request.url.params["q"] == "unreal in:name,description,topic stars:>100"
        assert request.url.params["sort"] == "stars"
        assert request.url.params["order"] == "desc"
        assert request.url.params["page"] == "3"
        assert request.url.params["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_missing_items_is_an_empty_page(self) -> None:
        result = await _fetch(lambda request: httpx.Response(200, json={"total_count": 0}))

        assert result.outcome is FetchOutcome.SUCCESS
        assert result.repos == []

    @pytest.mark.asyncio
    async def test_forbidden_is_rate_limited(self) -> None:
        result = await _fetch(lambda request: httpx.Response(403, json={"message": "API rate limit exceeded"}))

        assert result.outcome is FetchOutcome.RATE_LIMITED
        assert result.status_code == 403
        assert "rate limit" in result.detail

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 422, 429, 500, 503])
    async def test_other_statuses_are_http_errors(self, status: int) -> None:
        result = await _fetch(lambda request: httpx.Response(status, text="nope"))

        assert result.outcome is FetchOutcome.HTTP_ERROR
        assert result.status_code == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            b"<html>not json</html>",
            b"[1, 2, 3]",
            b'{"items": "nope"}',
            b'{"items": [42]}',
            b'{"items": [{"full_name": "a/b", "stargazers_count": "many"}]}',
            b'{"items": [{"full_name": ["a", "b"]}]}',
        ],
    )
    async def test_malformed_body_is_decode_error(self, body: bytes) -> None:
        result = await _fetch(lambda request: httpx.Response(200, content=body))

        assert result.outcome is FetchOutcome.DECODE_ERROR
        assert result.repos == []

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await _fetch(handler)

        assert result.outcome is FetchOutcome.TIMED_OUT

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _fetch(handler)

        assert result.outcome is FetchOutcome.TRANSPORT_ERROR
        assert "connection refused" in result.detail

    @pytest.mark.asyncio
    async def test_too_deeply_nested_body_is_decode_error(self) -> None:
        body = b'{"items": ' + b"[" * 100_000 + b"]" * 100_000 + b"}"

        result = await _fetch(lambda request: httpx.Response(200, content=body))

        assert result.outcome is FetchOutcome.DECODE_ERROR

    @pytest.mark.asyncio
    async def test_escaped_lone_surrogate_is_kept_for_the_exporter(self) -> None:
        body = b'{"total_count": 1, "items": [{"full_name": "a/b", "description": "half \\ud83d"}]}'

        result = await _fetch(lambda request: httpx.Response(200, content=body))

        assert result.outcome is FetchOutcome.SUCCESS
        assert result.repos[0].description == "half \ud83d"
