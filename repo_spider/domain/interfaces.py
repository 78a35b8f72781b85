"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
These are ABSTRACT definitions of what the infrastructure must provide.
The domain layer defines the shape; the infrastructure layer implements it.

The collector depends on IPageFetcher, the application service on
IRepoExporter. Tests pass fakes for both without touching a network
socket or the file system.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from .entities import PageResult, Repository


class IPageFetcher(ABC):
    """
    Contract that any search API client must fulfil.
    The collector depends on THIS, not on the concrete GitHubSearchClient.
    """

    @abstractmethod
    async def fetch_page(self, params: dict[str, str | int], timeout: float | None = None) -> PageResult:
        """
        Fetch and decode one page of search results.

        Never raises for HTTP, transport or decode problems; those are
        reported through PageResult.outcome.
        """
        ...


class IRepoExporter(ABC):
    """
    Contract for anything that persists the collected repositories.
    """

    @abstractmethod
    def export(self, repos: list[Repository], filename: str | Path) -> Path:
        """Write every repo to `filename`. Raises ExportError on I/O failure."""
        ...
