"""
FastAPI dependencies.

Routers get their collaborators through `Depends`, so tests can swap them with
`app.dependency_overrides` (an InMemorySaleStore, a fake Supabase client).
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import get_supabase
from repositories.database import get_engine
from repositories.postgres_sale_store import PostgresSaleStore
from repositories.sale_store import SaleStore
from repositories.settings import get_settings


@lru_cache(maxsize=1)
def _postgres_sale_store() -> PostgresSaleStore:
    return PostgresSaleStore(get_engine(), lock_timeout_ms=get_settings().db_lock_timeout_ms)


def get_sale_store() -> SaleStore:
    """Transactional store used for sales and restocks."""
    return _postgres_sale_store()


def get_supabase_client() -> Client:
    """Supabase client used by the read-side repositories."""
    return get_supabase()


__all__ = ["get_sale_store", "get_supabase_client"]
