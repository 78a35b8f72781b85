from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class ExportError(Exception):
    """Raised when the CSV report cannot be written."""
    pass


@dataclass(frozen=True)
class Repository:
    """
    Immutable domain entity representing one matched GitHub repository.

    Field names are OURS (snake_case), not GitHub's.
    The translation happens in the anti-corruption layer of the search
    client, not here.
    """
    full_name:   str
    html_url:    str
    star_count:  int
    fork_count:  int
    description: str = ""


@dataclass(frozen=True)
class SearchQuery:
    """
    What the caller asked for: keyword, star threshold, result cap and
    the overall time budget for the collection phase.
    """
    keyword:      str
    min_stars:    int
    max_results:  int
    timeout_secs: float

    def __post_init__(self) -> None:
        if not self.keyword or not self.keyword.strip():
            raise ValueError("keyword must not be blank")
        if self.min_stars < 0:
            raise ValueError(f"min_stars must be >= 0, got {self.min_stars}")
        if self.max_results <= 0:
            raise ValueError(f"max_results must be > 0, got {self.max_results}")
        if self.timeout_secs <= 0:
            raise ValueError(f"timeout_secs must be > 0, got {self.timeout_secs}")


class FetchOutcome(Enum):
    """Every way a single page fetch can end."""
    SUCCESS         = "success"
    RATE_LIMITED    = "rate_limited"
    HTTP_ERROR      = "http_error"
    DECODE_ERROR    = "decode_error"
    TRANSPORT_ERROR = "transport_error"
    TIMED_OUT       = "timed_out"


@dataclass(frozen=True)
class PageResult:
    """
    Value object returned by a page fetcher instead of raising.
    The collector matches on `outcome` to decide continue / retry / stop.
    """
    outcome:     FetchOutcome
    repos:       list[Repository] = field(default_factory=list)
    total_count: int | None = None
    status_code: int | None = None
    detail:      str | None = None


class StopReason(Enum):
    """Why the collector left its loop."""
    CAP_REACHED     = "cap_reached"
    DEADLINE        = "deadline"
    HTTP_ERROR      = "http_error"
    RATE_LIMITED    = "rate_limited"
    DECODE_ERROR    = "decode_error"
    TRANSPORT_ERROR = "transport_error"
    EMPTY_PAGE      = "empty_page"
    UNEXPECTED      = "unexpected_error"


@dataclass(frozen=True)
class CollectionResult:
    """
    Immutable value object returned by the collector.
    `records` keeps fetch order: pages in the order they were requested,
    items in the order GitHub returned them.
    """
    records:       list[Repository]
    stop_reason:   StopReason
    pages_fetched: int
    total_count:   int | None = None

    @property
    def is_partial(self) -> bool:
        """True when collection ended for any reason other than cap or exhaustion."""
        return self.stop_reason not in (StopReason.CAP_REACHED, StopReason.EMPTY_PAGE)


@dataclass(frozen=True)
class SpiderRunResult:
    """
    Immutable value object summarising a completed spider run.
    Returned by the application service when the run finishes.
    """
    total_repos:   int
    status:        str
    stop_reason:   StopReason
    elapsed_secs:  float
    output_file:   str | None = None
    error_message: str | None = None
