import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
BACKEND_DIR = Path(__file__).parent.parent
ENV_PATH = BACKEND_DIR / ".env"
load_dotenv(ENV_PATH)

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .catalog.exceptions import StoreError
from .catalog.factory import create_catalog_store
from .catalog.protocols import CatalogStore
from .config.logging import setup_logging
from .config.settings import get_settings
from .database.base import create_all_tables
from .database.session import dispose_engine, get_engine
from .exceptions import ProgressWriteError, ResourceNotFoundError, ValidationError
from .middleware.error_handlers import (
    handle_not_found_errors,
    handle_store_errors,
    handle_validation_errors,
)
from .progress.registry import EngineRegistry
from .progress.router import router as progress_router


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup: a store injected through create_app() wins
    if getattr(app.state, "registry", None) is None:
        settings = get_settings()
        if settings.CATALOG_BACKEND.lower() == "sql":
            await create_all_tables(get_engine())
            logger.info("Database tables ready")
        store = await create_catalog_store(settings)
        app.state.registry = EngineRegistry(store, settings)
        logger.info("Catalog store initialized")

    yield

    # Shutdown
    logger.info("Starting graceful shutdown...")
    try:
        await dispose_engine()
    except Exception as e:
        logger.warning(f"Error disposing database engine: {e}")
    logger.info("Shutdown complete")


def create_app(store: CatalogStore | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Learnpath API",
        description="Lesson progress tracking and sequential unlocking",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.registry = EngineRegistry(store, settings) if store is not None else None

    app.include_router(progress_router)

    @app.exception_handler(ResourceNotFoundError)
    async def resource_not_found_handler(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
        return await handle_not_found_errors(request, exc)

    @app.exception_handler(ValidationError)
    async def custom_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return await handle_validation_errors(request, exc)

    @app.exception_handler(ProgressWriteError)
    async def progress_write_handler(request: Request, exc: ProgressWriteError) -> JSONResponse:
        return await handle_store_errors(request, exc)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        return await handle_store_errors(request, exc)

    return app
