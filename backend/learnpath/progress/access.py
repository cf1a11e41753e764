"""Linear unlock rules for lessons.

A lesson opens once the lesson before it in its module is completed. The
first lesson of a module opens once every lesson of the previous module is
completed, and the first lesson of the first module is always open.
Predecessors are found by position in the ``order``-sorted listing, never
by arithmetic on ``order`` (values need not be contiguous).
"""

import logging

from learnpath.catalog.cache import CatalogCache
from learnpath.catalog.exceptions import StoreUnavailableError
from learnpath.catalog.models import Lesson, Module
from learnpath.progress.cache import ProgressCache


logger = logging.getLogger(__name__)


def _position(items: list, item_id: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return -1


class AccessEvaluator:
    """Decides whether a lesson may be opened, failing closed on any doubt."""

    def __init__(self, progress: ProgressCache, catalog: CatalogCache) -> None:
        self.progress = progress
        self.catalog = catalog

    async def is_accessible(self, lesson_id: str) -> bool:
        """Check whether ``lesson_id`` is unlocked for the cached progress.

        Never raises: lookups that miss or fail deny access.
        """
        if not lesson_id:
            return False

        # A completed lesson can always be reopened
        if self.progress.is_completed(lesson_id):
            return True

        try:
            return await self._evaluate(lesson_id)
        except StoreUnavailableError as e:
            logger.warning(f"Denying access to lesson {lesson_id}, catalog unavailable: {e}")
            return False

    async def _evaluate(self, lesson_id: str) -> bool:
        lesson = await self.catalog.get_lesson(lesson_id)
        if lesson is None:
            logger.warning(f"Lesson {lesson_id} not found, denying access")
            return False

        module = await self.catalog.get_module(lesson.module_id)
        if module is None:
            logger.warning(f"Module {lesson.module_id} of lesson {lesson_id} not found, denying access")
            return False

        if lesson.order == 1:
            if module.order == 1:
                return True
            return await self._previous_module_completed(module)

        return await self._previous_lesson_completed(lesson)

    async def _previous_module_completed(self, module: Module) -> bool:
        modules = await self.catalog.get_modules_by_course(module.course_id)
        index = _position(modules, module.id)
        if index <= 0:
            logger.error(f"Could not find the module before {module.id} in course {module.course_id}")
            return False

        previous = modules[index - 1]
        lessons = await self.catalog.get_lessons_by_module(previous.id)
        return all(self.progress.is_completed(lesson.id) for lesson in lessons)

    async def _previous_lesson_completed(self, lesson: Lesson) -> bool:
        lessons = await self.catalog.get_lessons_by_module(lesson.module_id)
        index = _position(lessons, lesson.id)
        if index <= 0:
            logger.error(f"Could not find the lesson before {lesson.id} in module {lesson.module_id}")
            return False

        return self.progress.is_completed(lessons[index - 1].id)

    async def next_lesson(self, course_id: str, module_id: str, lesson_id: str) -> Lesson | None:
        """Find the lesson that follows ``lesson_id`` in course order.

        After the last lesson of a module (or a lesson missing from its module)
        this is the first lesson of the next module. Returns ``None`` at the end
        of the course, when the module cannot be located, or when the catalog
        is unavailable.
        """
        try:
            lessons = await self.catalog.get_lessons_by_module(module_id)
            index = _position(lessons, lesson_id)
            if 0 <= index < len(lessons) - 1:
                return lessons[index + 1]

            modules = await self.catalog.get_modules_by_course(course_id)
            module_index = _position(modules, module_id)
            if module_index == -1 or module_index == len(modules) - 1:
                return None

            following = await self.catalog.get_lessons_by_module(modules[module_index + 1].id)
        except StoreUnavailableError as e:
            logger.warning(f"Could not resolve the lesson after {lesson_id}: {e}")
            return None

        return following[0] if following else None
