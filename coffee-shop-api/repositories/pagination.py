"""
Pagination helpers for list queries.

Pages are 1-based. PostgREST ranges are inclusive on both ends, hence
`range_end = offset + limit - 1`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _coerce_positive(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


@dataclass(frozen=True, slots=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_query(cls, page: Optional[Any] = None, limit: Optional[Any] = None) -> "PageParams":
        """
        Build page parameters from untrusted query values.

        Invalid or non-positive values fall back to the defaults; limit is
        capped at MAX_LIMIT.
        """
        return cls(
            page=_coerce_positive(page, DEFAULT_PAGE),
            limit=min(_coerce_positive(limit, DEFAULT_LIMIT), MAX_LIMIT),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def range_end(self) -> int:
        return self.offset + self.limit - 1


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


@dataclass(frozen=True, slots=True)
class Page:
    """One page of results plus the total row count."""

    items: list
    total: int
    params: PageParams

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.params.limit)


__all__ = ["DEFAULT_LIMIT", "MAX_LIMIT", "Page", "PageParams", "total_pages"]
