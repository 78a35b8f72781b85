from __future__ import annotations
import logging

log = logging.getLogger(__name__)

# GitHub search allows max 100 results per page
MAX_PAGE_SIZE = 100
SEARCH_FIELDS = ("name", "description", "topic")


def build_search_string(keyword: str, min_stars: int) -> str:
    """
    Build the `q` qualifier string, e.g.

        unreal in:name,description,topic stars:>100
    """
    return f"{keyword.strip()} in:{','.join(SEARCH_FIELDS)} stars:>{min_stars}"


def build_page_params(keyword: str, min_stars: int, page: int, per_page: int = MAX_PAGE_SIZE) -> dict[str, str | int]:
    """Query parameters for one page, most-starred first."""
    if page < 1:
        raise ValueError(f"page numbers start at 1, got {page}")

    params: dict[str, str | int] = {
        "q":        build_search_string(keyword, min_stars),
        "sort":     "stars",
        "order":    "desc",
        "page":     page,
        "per_page": max(1, min(per_page, MAX_PAGE_SIZE)),
    }
    log.debug("Page %d params: %s", page, params)
    return params
