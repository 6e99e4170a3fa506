"""
Direct Postgres connection for transactional work.

Supabase exposes the project's Postgres instance directly; DATABASE_URL points
at it. The engine is created lazily and shared per process.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from repositories.settings import get_settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the shared SQLAlchemy engine."""

    settings = get_settings()
    return create_engine(
        settings.require("database_url"),
        pool_pre_ping=True,
        future=True,
    )


__all__ = ["get_engine"]
