"""Shared page/limit parsing and the paginated result envelope."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from vidshare.errors import InvalidInput

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class PageParams:
    """A validated pagination window (1-based page)."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel):
    """Paginated result envelope returned by every list operation."""

    data: list[dict[str, Any]]
    page: int
    limit: int
    has_more: bool


def parse_page(
    page: int | str | None = None,
    limit: int | str | None = None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int | None = None,
) -> PageParams:
    """Parse raw page/limit values into a PageParams.

    Missing values fall back to defaults; a limit above ``max_limit`` is capped.

    Raises:
        InvalidInput: If either value is not an integer >= 1
    """
    try:
        page_num = DEFAULT_PAGE if page is None else int(page)
        limit_num = default_limit if limit is None else int(limit)
    except (TypeError, ValueError):
        raise InvalidInput("page and limit must be integers")

    if page_num < 1:
        raise InvalidInput("page must be at least 1")
    if limit_num < 1:
        raise InvalidInput("limit must be at least 1")
    if max_limit is not None:
        limit_num = min(limit_num, max_limit)

    return PageParams(page=page_num, limit=limit_num)


def make_page(rows: list[dict[str, Any]], params: PageParams) -> Page:
    """Build the envelope from a window fetched with one extra row.

    ``rows`` is expected to hold up to ``limit + 1`` records starting at the
    window offset; the extra record only signals that more results exist.
    """
    return Page(
        data=rows[: params.limit],
        page=params.page,
        limit=params.limit,
        has_more=len(rows) > params.limit,
    )
