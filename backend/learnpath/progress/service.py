"""Session-scoped progress and access engine.

One ``ProgressEngine`` serves one signed-in user. Completion state and
completed-counts are answered from memory; totals and accessibility need
catalog metadata and are asynchronous. Every write goes to the store first
and is followed by a full refresh, so the cache only ever holds what the
store returned.
"""

import asyncio
import logging
from collections import defaultdict

from learnpath.catalog.cache import CatalogCache
from learnpath.catalog.exceptions import StoreUnavailableError
from learnpath.catalog.models import Course, Lesson
from learnpath.catalog.protocols import CatalogStore
from learnpath.catalog.timeouts import bounded
from learnpath.config.settings import Settings, get_settings
from learnpath.exceptions import ProgressWriteError, ValidationError
from learnpath.progress.access import AccessEvaluator
from learnpath.progress.cache import CacheState, ProgressCache
from learnpath.progress.models import ProgressRecord
from learnpath.progress.schemas import LessonStatus, ProgressSummary


logger = logging.getLogger(__name__)


def _percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, completed * 100 // total)


class ProgressEngine:
    """Progress cache, unlock rules and write path for one user."""

    def __init__(
        self,
        user_id: str,
        store: CatalogStore,
        settings: Settings | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            user_id: Signed-in user whose progress this engine owns
            store: Catalog store backend
            settings: Settings override (defaults to the cached settings)
            timeout: Per-call store timeout override, in seconds
        """
        settings = settings or get_settings()
        self.user_id = user_id
        self.store = store
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS
        self.cache = ProgressCache()
        self.catalog = CatalogCache(store, self.timeout)
        self.access = AccessEvaluator(self.cache, self.catalog)
        self._write_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def state(self) -> CacheState:
        return self.cache.state

    @property
    def is_stale(self) -> bool:
        return self.cache.state is CacheState.STALE

    # ============================================================================
    # PROGRESS CACHE
    # ============================================================================

    async def refresh(self) -> CacheState:
        """Reload every progress record of the user from the store.

        A failed read is logged and leaves the previous snapshot in place,
        marked stale. It never raises.
        """
        try:
            records = await bounded(
                self.store.get_progress_records(self.user_id), self.timeout, f"progress of user {self.user_id}"
            )
        except StoreUnavailableError:
            logger.exception(f"Error fetching progress for user {self.user_id}")
            self.cache.mark_stale()
            return self.cache.state

        self.cache.replace(records)
        logger.debug(f"Loaded {len(self.cache)} progress records for user {self.user_id}")
        return self.cache.state

    def is_completed(self, lesson_id: str) -> bool:
        if not lesson_id:
            return False
        return self.cache.is_completed(lesson_id)

    def completed_in_module(self, module_id: str) -> int:
        if not module_id:
            return 0
        return self.cache.completed_in_module(module_id)

    def completed_in_course(self, course_id: str) -> int:
        if not course_id:
            return 0
        return self.cache.completed_in_course(course_id)

    async def total_in_module(self, module_id: str) -> int:
        """Count lessons in a module, asking the store. Failures count as 0."""
        if not module_id:
            return 0
        try:
            return await self.catalog.count_lessons([module_id])
        except StoreUnavailableError:
            logger.exception(f"Error fetching lesson count for module {module_id}")
            return 0

    async def total_in_course(self, course_id: str) -> int:
        """Count lessons across every module of a course, asking the store."""
        if not course_id:
            return 0
        try:
            modules = await bounded(
                self.store.get_modules_by_course(course_id), self.timeout, f"modules of course {course_id}"
            )
            if not modules:
                return 0
            return await self.catalog.count_lessons([m.id for m in modules])
        except StoreUnavailableError:
            logger.exception(f"Error fetching lesson count for course {course_id}")
            return 0

    def last_accessed_course_id(self) -> str | None:
        return self.cache.last_accessed_course_id()

    # ============================================================================
    # ACCESS RULES
    # ============================================================================

    async def is_accessible(self, lesson_id: str) -> bool:
        return await self.access.is_accessible(lesson_id)

    async def next_lesson(self, course_id: str, module_id: str, lesson_id: str) -> Lesson | None:
        return await self.access.next_lesson(course_id, module_id, lesson_id)

    async def prefetch_course(self, course_id: str) -> bool:
        """Warm the ordering cache for a course. Returns False if the catalog was unavailable."""
        try:
            await self.catalog.prefetch_course(course_id)
        except StoreUnavailableError as e:
            logger.warning(f"Could not prefetch course {course_id}: {e}")
            return False
        return True

    def invalidate_catalog(self, course_id: str | None = None) -> None:
        self.catalog.invalidate(course_id)

    # ============================================================================
    # SUMMARIES
    # ============================================================================

    async def lesson_status(self, lesson_id: str) -> LessonStatus:
        return LessonStatus(
            lesson_id=lesson_id,
            completed=self.is_completed(lesson_id),
            progress=self.cache.progress_of(lesson_id),
            accessible=await self.is_accessible(lesson_id),
        )

    async def get_course(self, course_id: str) -> Course | None:
        """Look up a course. Store failures propagate as ``StoreUnavailableError``."""
        return await self.catalog.get_course(course_id)

    async def course_progress(self, course_id: str) -> ProgressSummary:
        completed = self.completed_in_course(course_id)
        total = await self.total_in_course(course_id)
        return ProgressSummary(
            scope="course",
            id=course_id,
            completed_lessons=completed,
            total_lessons=total,
            progress_percentage=_percentage(completed, total),
        )

    async def module_progress(self, module_id: str) -> ProgressSummary:
        completed = self.completed_in_module(module_id)
        total = await self.total_in_module(module_id)
        return ProgressSummary(
            scope="module",
            id=module_id,
            completed_lessons=completed,
            total_lessons=total,
            progress_percentage=_percentage(completed, total),
        )

    # ============================================================================
    # WRITE PATH
    # ============================================================================

    async def mark_completed(self, course_id: str, module_id: str, lesson_id: str) -> ProgressRecord:
        """Mark a lesson completed (progress 100), creating its record if needed.

        Raises
        ------
            ProgressWriteError: If the store rejects or cannot take the write.
        """
        async with self._write_locks[lesson_id]:
            existing = self.cache.get(lesson_id)
            base = existing or self._new_record(course_id, module_id, lesson_id)
            record = base.touched(completed=True, progress=100)

            saved = await self._write(record)
            logger.info(f"Marked lesson {lesson_id} completed for user {self.user_id}")

            await self.refresh()
            return self.cache.get(lesson_id) or saved

    async def update_progress(
        self, course_id: str, module_id: str, lesson_id: str, progress: int
    ) -> ProgressRecord:
        """Raise the stored progress of a lesson.

        A value not above the cached one is ignored: nothing is written and
        the cached record is returned as is.

        Raises
        ------
            ValidationError: If ``progress`` is outside 0-100.
            ProgressWriteError: If the store rejects or cannot take the write.
        """
        if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
            msg = f"Progress must be an integer between 0 and 100, got {progress!r}"
            raise ValidationError(msg)

        async with self._write_locks[lesson_id]:
            existing = self.cache.get(lesson_id)
            if existing is not None:
                if progress <= existing.progress:
                    logger.debug(
                        f"Ignoring progress {progress}% for lesson {lesson_id}, already at {existing.progress}%"
                    )
                    return existing
                record = existing.touched(progress=progress)
            else:
                record = self._new_record(course_id, module_id, lesson_id).touched(progress=progress)

            saved = await self._write(record)
            logger.info(f"Updated progress for lesson {lesson_id}: {progress}%")

            await self.refresh()
            return self.cache.get(lesson_id) or saved

    def sign_out(self) -> None:
        """Discard the cached progress and catalog data held for the user.

        Write locks are kept so a write still in flight stays serialised
        against any write that starts after sign-out.
        """
        self.cache.clear()
        self.catalog.invalidate()

    def _new_record(self, course_id: str, module_id: str, lesson_id: str) -> ProgressRecord:
        return ProgressRecord(
            user_id=self.user_id,
            course_id=course_id,
            module_id=module_id,
            lesson_id=lesson_id,
        )

    async def _write(self, record: ProgressRecord) -> ProgressRecord:
        try:
            return await bounded(
                self.store.upsert_progress_record(record), self.timeout, f"progress write for lesson {record.lesson_id}"
            )
        except StoreUnavailableError as e:
            logger.exception(f"Error saving progress for lesson {record.lesson_id}")
            raise ProgressWriteError(record.lesson_id, str(e)) from e
