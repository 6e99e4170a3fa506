"""
Pytest configuration.

Adds the coffee-shop-api directory to the Python path so that tests can
import domain, repositories, services and api, and provides shared fixtures:
an in-memory sale store seeded with a small catalog, and a fake Supabase
client for the read-side repositories.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Add the coffee-shop-api directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.memory_sale_store import InMemorySaleStore  # noqa: E402


class FakeQuery:
    """
    Stand-in for a PostgREST query builder.

    Every builder method is recorded in `calls` and returns the query itself;
    `execute()` returns the canned response for the table.
    """

    def __init__(self, table: str, response: SimpleNamespace) -> None:
        self.table = table
        self.calls: List[tuple] = []
        self._response = response

    def __getattr__(self, name: str):
        def _record(*args: Any, **kwargs: Any) -> "FakeQuery":
            self.calls.append((name, args, kwargs))
            return self
        return _record

    def execute(self) -> SimpleNamespace:
        return self._response

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeSupabase:
    """
    Minimal Supabase client: `table(name)` hands out FakeQuery objects.

    Responses are queued per table and consumed in order, so a function that
    queries the same table twice gets two different results.
    """

    def __init__(self) -> None:
        self._responses: Dict[str, List[SimpleNamespace]] = {}
        self.queries: List[FakeQuery] = []

    def respond(
        self,
        table: str,
        data: Optional[list] = None,
        count: Optional[int] = None,
        error: Any = None,
    ) -> "FakeSupabase":
        self._responses.setdefault(table, []).append(
            SimpleNamespace(data=data or [], count=count, error=error)
        )
        return self

    def table(self, name: str) -> FakeQuery:
        queue = self._responses.get(name) or []
        response = queue.pop(0) if queue else SimpleNamespace(data=[], count=0, error=None)
        query = FakeQuery(name, response)
        self.queries.append(query)
        return query


@pytest.fixture
def store() -> InMemorySaleStore:
    return InMemorySaleStore()


@pytest.fixture
def catalog(store: InMemorySaleStore) -> SimpleNamespace:
    """Three products: two active with stock, one inactive."""

    return SimpleNamespace(
        latte=store.add_product("Latte", "4.50", 10),
        croissant=store.add_product("Croissant", "3.25", 5),
        retired=store.add_product("Old Blend", "9.99", 20, is_active=False),
    )


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
