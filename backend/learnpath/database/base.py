from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all tables in the database."""
    # Register the catalog tables on the metadata
    from learnpath.catalog import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
