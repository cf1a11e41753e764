"""Shared fixtures: an in-memory catalog store and ready-made engines."""

import asyncio
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime

import pytest
import pytest_asyncio

from learnpath.catalog.exceptions import StoreUnavailableError
from learnpath.catalog.models import Course, Lesson, Module
from learnpath.config.settings import Settings
from learnpath.progress.models import ProgressRecord
from learnpath.progress.service import ProgressEngine


USER_ID = "user-1"


class InMemoryCatalogStore:
    """CatalogStore fake with call counting, failure switches and latency."""

    def __init__(self) -> None:
        self.courses: dict[str, Course] = {}
        self.modules: dict[str, Module] = {}
        self.lessons: dict[str, Lesson] = {}
        self.progress: dict[str, ProgressRecord] = {}
        self.calls: Counter[str] = Counter()
        self.fail_reads = False
        self.fail_writes = False
        self.read_delay = 0.0
        self.write_delay = 0.0
        self._next_id = 0

    def add_course(self, course_id: str, modules: dict[str, list[str]], orders: dict[str, int] | None = None) -> None:
        """Add a course; ``modules`` maps module id to its lesson ids in order.

        ``orders`` overrides the ``order`` value of any module or lesson id.
        """
        orders = orders or {}
        self.courses[course_id] = Course(id=course_id, title=course_id.upper())
        for m_pos, (module_id, lesson_ids) in enumerate(modules.items(), start=1):
            self.modules[module_id] = Module(id=module_id, course_id=course_id, order=orders.get(module_id, m_pos))
            for l_pos, lesson_id in enumerate(lesson_ids, start=1):
                self.lessons[lesson_id] = Lesson(id=lesson_id, module_id=module_id, order=orders.get(lesson_id, l_pos))

    def records_for(self, lesson_id: str) -> list[ProgressRecord]:
        return [r for r in self.progress.values() if r.lesson_id == lesson_id]

    async def _read(self, name: str) -> None:
        self.calls[name] += 1
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self.fail_reads:
            msg = f"{name} unavailable"
            raise StoreUnavailableError(msg)

    async def get_progress_records(self, user_id: str) -> list[ProgressRecord]:
        await self._read("get_progress_records")
        return [r.model_copy() for r in self.progress.values() if r.user_id == user_id]

    async def get_course(self, course_id: str) -> Course | None:
        await self._read("get_course")
        return self.courses.get(course_id)

    async def get_module(self, module_id: str) -> Module | None:
        await self._read("get_module")
        return self.modules.get(module_id)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        await self._read("get_lesson")
        return self.lessons.get(lesson_id)

    async def get_modules_by_course(self, course_id: str) -> list[Module]:
        await self._read("get_modules_by_course")
        return sorted((m for m in self.modules.values() if m.course_id == course_id), key=lambda m: m.order)

    async def get_lessons_by_module(self, module_id: str) -> list[Lesson]:
        await self._read("get_lessons_by_module")
        return sorted((lesson for lesson in self.lessons.values() if lesson.module_id == module_id), key=lambda x: x.order)

    async def count_lessons(self, module_ids: Sequence[str]) -> int:
        await self._read("count_lessons")
        return sum(1 for lesson in self.lessons.values() if lesson.module_id in module_ids)

    async def upsert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        self.calls["upsert_progress_record"] += 1
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            msg = "write rejected"
            raise StoreUnavailableError(msg)

        now = datetime.now(UTC)
        if record.id and record.id in self.progress:
            stored = self.progress[record.id].model_copy(
                update={"completed": record.completed, "progress": record.progress, "updated_at": record.updated_at or now}
            )
        else:
            self._next_id += 1
            stored = record.model_copy(
                update={
                    "id": f"progress-{self._next_id}",
                    "created_at": record.created_at or now,
                    "updated_at": record.updated_at or now,
                }
            )
        self.progress[stored.id] = stored
        return stored.model_copy()

    def seed(self, lesson_id: str, *, completed: bool = False, progress: int = 0, **fields: object) -> ProgressRecord:
        """Put a progress record straight into the store."""
        lesson = self.lessons[lesson_id]
        module = self.modules[lesson.module_id]
        self._next_id += 1
        record = ProgressRecord(
            id=f"progress-{self._next_id}",
            user_id=fields.pop("user_id", USER_ID),
            course_id=module.course_id,
            module_id=module.id,
            lesson_id=lesson_id,
            completed=completed,
            progress=progress,
            **fields,
        )
        self.progress[record.id] = record
        return record


@pytest.fixture
def settings() -> Settings:
    return Settings(ENVIRONMENT="test", STORE_TIMEOUT_SECONDS=1.0)


@pytest.fixture
def store() -> InMemoryCatalogStore:
    """Course C: M1 (L1, L2) and M2 (L3)."""
    catalog = InMemoryCatalogStore()
    catalog.add_course("C", {"M1": ["L1", "L2"], "M2": ["L3"]})
    return catalog


@pytest_asyncio.fixture
async def engine(store: InMemoryCatalogStore, settings: Settings) -> ProgressEngine:
    progress_engine = ProgressEngine(USER_ID, store, settings)
    await progress_engine.refresh()
    return progress_engine
