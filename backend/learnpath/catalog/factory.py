"""Catalog store factory for creating the configured backend."""

import logging

from learnpath.catalog.protocols import CatalogStore
from learnpath.catalog.sql_store import SqlCatalogStore
from learnpath.catalog.supabase_store import SupabaseCatalogStore
from learnpath.config.settings import Settings, get_settings
from learnpath.database.session import make_session_maker


logger = logging.getLogger(__name__)


async def create_catalog_store(settings: Settings | None = None) -> CatalogStore:
    """Create the catalog store selected by ``CATALOG_BACKEND``.

    Raises
    ------
        ValueError: If the backend is unknown or its configuration is incomplete.
    """
    settings = settings or get_settings()
    backend = settings.CATALOG_BACKEND.lower()

    if backend == "supabase":
        logger.info("Using Supabase catalog store")
        return await SupabaseCatalogStore.connect(settings)

    if backend == "sql":
        logger.info("Using SQL catalog store")
        return SqlCatalogStore(make_session_maker())

    msg = f"Unknown CATALOG_BACKEND: {settings.CATALOG_BACKEND}"
    raise ValueError(msg)
