"""Mapping of raw store rows onto pydantic models."""

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from learnpath.catalog.exceptions import StoreDataError


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_rows(model: type[ModelT], rows: Iterable[Any], what: str) -> list[ModelT]:
    """Validate every row as ``model``.

    Raises
    ------
        StoreDataError: If any row is malformed, so callers treat it like a failed read.
    """
    try:
        return [model.model_validate(row) for row in rows]
    except PydanticValidationError as e:
        logger.warning(f"Malformed row in {what}: {e}")
        msg = f"Malformed row in {what}"
        raise StoreDataError(msg) from e


def parse_row(model: type[ModelT], row: Any, what: str) -> ModelT | None:
    """Validate a single optional row. ``None`` stays ``None``."""
    if row is None:
        return None
    return parse_rows(model, [row], what)[0]
