"""Catalog module: course structure models and store backends."""

from learnpath.catalog.cache import CatalogCache
from learnpath.catalog.exceptions import StoreDataError, StoreError, StoreUnavailableError
from learnpath.catalog.models import ContentKind, Course, Lesson, Module
from learnpath.catalog.protocols import CatalogStore


__all__ = [
    "CatalogCache",
    "CatalogStore",
    "ContentKind",
    "Course",
    "Lesson",
    "Module",
    "StoreDataError",
    "StoreError",
    "StoreUnavailableError",
]
