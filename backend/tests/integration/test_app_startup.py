"""Application startup against a fresh SQL database."""

from pathlib import Path

import pytest

from learnpath.catalog.sql_store import SqlCatalogStore
from learnpath.config.settings import get_settings
from learnpath.database.session import get_engine
from learnpath.main import create_app


@pytest.fixture
def sql_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CATALOG_BACKEND", "sql")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
    get_settings.cache_clear()
    get_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()


@pytest.mark.asyncio
@pytest.mark.usefixtures("sql_environment")
async def test_startup_creates_tables_for_sql_backend() -> None:
    app = create_app()

    async with app.router.lifespan_context(app):
        registry = app.state.registry
        assert isinstance(registry.store, SqlCatalogStore)

        engine = await registry.get("user-1")
        assert engine.state == "fresh"
        assert await engine.get_course("missing") is None
