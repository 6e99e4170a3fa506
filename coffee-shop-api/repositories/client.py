"""
Supabase client initialization.

This module contains *only* the Supabase connection setup. Read-side
repositories call `get_supabase()`; the client is created on first use from
SUPABASE_URL / SUPABASE_KEY (use a server-side key only on the backend).

Sale transactions do not go through this client: PostgREST runs one statement
per request, so the transactional path uses a direct Postgres connection
(see repositories.database).
"""

from __future__ import annotations

from functools import lru_cache

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from repositories.settings import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""

    settings = get_settings()
    return create_client(
        settings.require("supabase_url"),
        settings.require("supabase_key"),
    )


__all__ = ["get_supabase"]
