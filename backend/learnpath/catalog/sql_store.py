"""Catalog store backed by SQLAlchemy async sessions."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnpath.catalog.db_models import CourseRow, LessonRow, ModuleRow, UserProgressRow
from learnpath.catalog.exceptions import StoreUnavailableError
from learnpath.catalog.models import Course, Lesson, Module
from learnpath.catalog.rows import parse_row, parse_rows
from learnpath.progress.models import ProgressRecord


logger = logging.getLogger(__name__)


class SqlCatalogStore:
    """Catalog store over the ``courses``/``modules``/``lessons``/``user_progress`` tables."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def get_progress_records(self, user_id: str) -> list[ProgressRecord]:
        query = select(UserProgressRow).where(UserProgressRow.user_id == user_id)
        what = f"progress of user {user_id}"
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            msg = f"Failed to fetch {what}"
            raise StoreUnavailableError(msg) from e
        return parse_rows(ProgressRecord, rows, what)

    async def get_course(self, course_id: str) -> Course | None:
        row = await self._get(CourseRow, course_id)
        return parse_row(Course, row, f"course {course_id}")

    async def get_module(self, module_id: str) -> Module | None:
        row = await self._get(ModuleRow, module_id)
        return parse_row(Module, row, f"module {module_id}")

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        row = await self._get(LessonRow, lesson_id)
        return parse_row(Lesson, row, f"lesson {lesson_id}")

    async def get_modules_by_course(self, course_id: str) -> list[Module]:
        query = select(ModuleRow).where(ModuleRow.course_id == course_id).order_by(ModuleRow.order.asc())
        what = f"modules of course {course_id}"
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            msg = f"Failed to fetch {what}"
            raise StoreUnavailableError(msg) from e
        return parse_rows(Module, rows, what)

    async def get_lessons_by_module(self, module_id: str) -> list[Lesson]:
        query = select(LessonRow).where(LessonRow.module_id == module_id).order_by(LessonRow.order.asc())
        what = f"lessons of module {module_id}"
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            msg = f"Failed to fetch {what}"
            raise StoreUnavailableError(msg) from e
        return parse_rows(Lesson, rows, what)

    async def count_lessons(self, module_ids: Sequence[str]) -> int:
        if not module_ids:
            return 0

        query = select(func.count(LessonRow.id)).where(LessonRow.module_id.in_(list(module_ids)))
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                return result.scalar() or 0
        except SQLAlchemyError as e:
            msg = "Failed to count lessons"
            raise StoreUnavailableError(msg) from e

    async def upsert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        """Write ``record``, merging into the user's existing row for the lesson.

        A merge never lowers progress or clears completion, so a write built
        from an out-of-date cache cannot undo what the store already holds.
        """
        try:
            try:
                return await self._save(record)
            except IntegrityError:
                # Another writer inserted the (user, lesson) row between our lookup and commit
                logger.info(f"Progress row for lesson {record.lesson_id} already exists, merging into it")
                return await self._save(record)
        except SQLAlchemyError as e:
            logger.warning(f"Progress write for lesson {record.lesson_id} failed: {e}")
            msg = f"Failed to save progress for lesson {record.lesson_id}"
            raise StoreUnavailableError(msg) from e

    async def _save(self, record: ProgressRecord) -> ProgressRecord:
        now = datetime.now(UTC)
        async with self.session_maker() as session:
            row = await session.get(UserProgressRow, record.id) if record.id else None
            if row is None:
                result = await session.execute(
                    select(UserProgressRow)
                    .where(
                        UserProgressRow.user_id == record.user_id,
                        UserProgressRow.lesson_id == record.lesson_id,
                    )
                    .limit(1)
                )
                row = result.scalars().first()

            if row is None:
                row = UserProgressRow(
                    id=record.id or str(uuid4()),
                    user_id=record.user_id,
                    course_id=record.course_id,
                    module_id=record.module_id,
                    lesson_id=record.lesson_id,
                    created_at=record.created_at or record.updated_at or now,
                    completed=record.completed,
                    progress=record.progress,
                )
                session.add(row)
            else:
                row.completed = bool(row.completed) or record.completed
                row.progress = 100 if row.completed else max(row.progress or 0, record.progress)

            row.updated_at = record.updated_at or now

            await session.commit()
            await session.refresh(row)
            return parse_rows(ProgressRecord, [row], f"progress write for lesson {record.lesson_id}")[0]

    async def _get(self, model: type, entity_id: str) -> object | None:
        try:
            async with self.session_maker() as session:
                return await session.get(model, entity_id)
        except SQLAlchemyError as e:
            msg = f"Failed to fetch {model.__tablename__} row {entity_id}"
            raise StoreUnavailableError(msg) from e
