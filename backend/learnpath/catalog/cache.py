"""Ordering metadata cache in front of a catalog store.

Course structure changes far less often than progress, so modules and
lessons are kept in memory once loaded and the accessibility walk can be
answered without a round trip per check.
"""

import logging
from collections.abc import Sequence

from learnpath.catalog.models import Course, Lesson, Module
from learnpath.catalog.protocols import CatalogStore
from learnpath.catalog.timeouts import bounded


logger = logging.getLogger(__name__)


class CatalogCache:
    """Caches lessons, modules and their ordered listings.

    Misses are never cached, and neither are store failures: both fall
    through to the store on the next lookup.
    """

    def __init__(self, store: CatalogStore, timeout: float) -> None:
        self.store = store
        self.timeout = timeout
        self._lessons: dict[str, Lesson] = {}
        self._modules: dict[str, Module] = {}
        self._modules_by_course: dict[str, list[Module]] = {}
        self._lessons_by_module: dict[str, list[Lesson]] = {}

    async def get_course(self, course_id: str) -> Course | None:
        return await bounded(self.store.get_course(course_id), self.timeout, f"course {course_id}")

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        lesson = self._lessons.get(lesson_id)
        if lesson is None:
            lesson = await bounded(self.store.get_lesson(lesson_id), self.timeout, f"lesson {lesson_id}")
            if lesson is not None:
                self._lessons[lesson.id] = lesson
        return lesson

    async def get_module(self, module_id: str) -> Module | None:
        module = self._modules.get(module_id)
        if module is None:
            module = await bounded(self.store.get_module(module_id), self.timeout, f"module {module_id}")
            if module is not None:
                self._modules[module.id] = module
        return module

    async def get_modules_by_course(self, course_id: str) -> list[Module]:
        modules = self._modules_by_course.get(course_id)
        if modules is None:
            fetched = await bounded(
                self.store.get_modules_by_course(course_id), self.timeout, f"modules of course {course_id}"
            )
            # Stores promise ascending order; sort anyway so the walk never depends on it
            modules = sorted(fetched, key=lambda m: m.order)
            self._modules_by_course[course_id] = modules
            self._modules.update({m.id: m for m in modules})
        return list(modules)

    async def get_lessons_by_module(self, module_id: str) -> list[Lesson]:
        lessons = self._lessons_by_module.get(module_id)
        if lessons is None:
            fetched = await bounded(
                self.store.get_lessons_by_module(module_id), self.timeout, f"lessons of module {module_id}"
            )
            lessons = sorted(fetched, key=lambda lesson: lesson.order)
            self._lessons_by_module[module_id] = lessons
            self._lessons.update({lesson.id: lesson for lesson in lessons})
        return list(lessons)

    async def count_lessons(self, module_ids: Sequence[str]) -> int:
        """Count lessons straight from the store, bypassing the cache."""
        return await bounded(self.store.count_lessons(module_ids), self.timeout, "lesson count")

    async def prefetch_course(self, course_id: str) -> None:
        """Load every module of a course and every lesson of those modules."""
        modules = await self.get_modules_by_course(course_id)
        for module in modules:
            await self.get_lessons_by_module(module.id)
        logger.debug(f"Prefetched {len(modules)} modules for course {course_id}")

    def invalidate(self, course_id: str | None = None) -> None:
        """Drop cached ordering metadata for one course, or everything."""
        if course_id is None:
            self._lessons.clear()
            self._modules.clear()
            self._modules_by_course.clear()
            self._lessons_by_module.clear()
            return

        module_ids = {m.id for m in self._modules_by_course.pop(course_id, [])}
        module_ids.update(m_id for m_id, m in self._modules.items() if m.course_id == course_id)
        for module_id in module_ids:
            self._modules.pop(module_id, None)
            self._lessons_by_module.pop(module_id, None)

        stale_lessons = [l_id for l_id, lesson in self._lessons.items() if lesson.module_id in module_ids]
        for lesson_id in stale_lessons:
            del self._lessons[lesson_id]
