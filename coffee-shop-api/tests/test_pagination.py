"""
Tests for `repositories/pagination.py`.
"""

from __future__ import annotations

import pytest

from repositories.pagination import MAX_LIMIT, Page, PageParams, total_pages


def test_offset_and_inclusive_range_end() -> None:
    params = PageParams(page=3, limit=20)

    assert params.offset == 40
    assert params.range_end == 59


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (None, None, (1, 10)),
        ("2", "25", (2, 25)),
        (0, -5, (1, 10)),
        ("abc", "xyz", (1, 10)),
        (4, 1000, (4, MAX_LIMIT)),
    ],
)
def test_from_query_falls_back_to_defaults(page, limit, expected) -> None:
    params = PageParams.from_query(page, limit)
    assert (params.page, params.limit) == expected


@pytest.mark.parametrize("total,limit,expected", [(0, 10, 0), (10, 10, 1), (11, 10, 2), (5, 0, 0)])
def test_total_pages(total: int, limit: int, expected: int) -> None:
    assert total_pages(total, limit) == expected


def test_page_total_pages_uses_its_limit() -> None:
    page = Page(items=[], total=45, params=PageParams(page=1, limit=20))
    assert page.total_pages == 3
