from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from learnpath.config.settings import get_settings


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for the SQL catalog backend.

    - SQLite (local development and tests): default pool, no pool sizing.
    - Postgres (direct or Supabase pooler): small pool with pre-ping.
    """
    database_url = database_url or get_settings().DATABASE_URL

    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False)

    # Heuristic: any Supabase pooler URL contains either ".supabase." or ".pooler."
    using_pooler = ".supabase." in database_url or ".pooler." in database_url

    if using_pooler:
        # Session pooler: keep pool small (each connection holds a backend)
        pool_size = 3
        max_overflow = 2
        pool_recycle = 1800
    else:
        pool_size = 10
        max_overflow = 10
        pool_recycle = 3600

    return create_async_engine(
        database_url,
        echo=False,  # Set True for SQL debugging
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        pool_use_lifo=True,
    )
