from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings - only define what needs validation."""

    ENVIRONMENT: str = "development"  # "development", "production", "test"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Catalog store backend: "supabase" (hosted tables) or "sql" (SQLAlchemy)
    CATALOG_BACKEND: str = "supabase"

    # Supabase (backend only, never ship the secret key to clients)
    SUPABASE_URL: str = ""
    SUPABASE_SECRET_KEY: str = ""

    # SQL backend
    DATABASE_URL: str = "sqlite+aiosqlite:///./learnpath.db"

    # Upper bound for every catalog store round trip, in seconds
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Signed-in users kept in memory before the least recently used is evicted
    MAX_ACTIVE_USERS: int = 1000

    # Table names
    PROGRESS_TABLE: str = "user_progress"
    LESSONS_TABLE: str = "lessons"
    MODULES_TABLE: str = "modules"
    COURSES_TABLE: str = "courses"

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if settings.STORE_TIMEOUT_SECONDS <= 0:
        msg = "STORE_TIMEOUT_SECONDS must be positive"
        raise ValueError(msg)
    if settings.MAX_ACTIVE_USERS < 1:
        msg = "MAX_ACTIVE_USERS must be at least 1"
        raise ValueError(msg)
    return settings
