"""Catalog store contract.

Backends return ``None`` for missing rows and raise
``StoreUnavailableError`` for transport or query failures.
"""

from collections.abc import Sequence
from typing import Protocol

from learnpath.catalog.models import Course, Lesson, Module
from learnpath.progress.models import ProgressRecord


class CatalogStore(Protocol):
    """Read interface over the course catalog plus read/write over progress."""

    async def get_progress_records(self, user_id: str) -> list[ProgressRecord]:
        """Get every progress record belonging to ``user_id``."""
        ...

    async def get_course(self, course_id: str) -> Course | None:
        """Get a single course."""
        ...

    async def get_module(self, module_id: str) -> Module | None:
        """Get a single module."""
        ...

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        """Get a single lesson."""
        ...

    async def get_modules_by_course(self, course_id: str) -> list[Module]:
        """Get the modules of a course sorted by ``order`` ascending."""
        ...

    async def get_lessons_by_module(self, module_id: str) -> list[Lesson]:
        """Get the lessons of a module sorted by ``order`` ascending."""
        ...

    async def count_lessons(self, module_ids: Sequence[str]) -> int:
        """Count lessons across the given modules."""
        ...

    async def upsert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        """Update ``record`` when it has an id, insert it otherwise."""
        ...
