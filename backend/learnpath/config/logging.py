import logging
import logging.config
from typing import Any

from .settings import get_settings


def setup_logging(level: str | None = None) -> dict[str, Any]:
    """Configure logging for the application."""
    log_level = (level or get_settings().LOG_LEVEL).upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level,
            },
        },
        "root": {"level": log_level, "handlers": ["console"]},
    }

    logging.config.dictConfig(config)
    return config
