"""Catalog store backed by Supabase tables through the async supabase client."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from learnpath.catalog.exceptions import StoreUnavailableError
from learnpath.catalog.models import Course, Lesson, Module
from learnpath.catalog.rows import parse_row, parse_rows
from learnpath.config.settings import Settings, get_settings
from learnpath.progress.models import ProgressRecord


logger = logging.getLogger(__name__)

_STORE_ERRORS = (APIError, httpx.HTTPError)


class SupabaseCatalogStore:
    """Read courses/modules/lessons and read/write progress rows in Supabase."""

    def __init__(self, client: AsyncClient, settings: Settings | None = None) -> None:
        """Initialize the store with an already connected client."""
        self.client = client
        self.settings = settings or get_settings()

    @classmethod
    async def connect(cls, settings: Settings | None = None) -> "SupabaseCatalogStore":
        """Create a client from settings and wrap it."""
        settings = settings or get_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_SECRET_KEY:
            error_msg = "Supabase configuration missing"
            raise ValueError(error_msg)

        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SECRET_KEY)
        return cls(client, settings)

    async def _rows(self, query: Any, what: str) -> list[dict[str, Any]]:
        try:
            response = await query.execute()
        except _STORE_ERRORS as e:
            logger.warning(f"Supabase query for {what} failed: {e}")
            msg = f"Failed to fetch {what}"
            raise StoreUnavailableError(msg) from e
        return list(response.data or [])

    async def _first(self, query: Any, what: str) -> dict[str, Any] | None:
        rows = await self._rows(query.limit(1), what)
        return rows[0] if rows else None

    async def get_progress_records(self, user_id: str) -> list[ProgressRecord]:
        query = self.client.table(self.settings.PROGRESS_TABLE).select("*").eq("user_id", user_id)
        what = f"progress of user {user_id}"
        return parse_rows(ProgressRecord, await self._rows(query, what), what)

    async def get_course(self, course_id: str) -> Course | None:
        query = self.client.table(self.settings.COURSES_TABLE).select("*").eq("id", course_id)
        what = f"course {course_id}"
        return parse_row(Course, await self._first(query, what), what)

    async def get_module(self, module_id: str) -> Module | None:
        query = self.client.table(self.settings.MODULES_TABLE).select("*").eq("id", module_id)
        what = f"module {module_id}"
        return parse_row(Module, await self._first(query, what), what)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        query = self.client.table(self.settings.LESSONS_TABLE).select("*").eq("id", lesson_id)
        what = f"lesson {lesson_id}"
        return parse_row(Lesson, await self._first(query, what), what)

    async def get_modules_by_course(self, course_id: str) -> list[Module]:
        query = (
            self.client.table(self.settings.MODULES_TABLE)
            .select("*")
            .eq("course_id", course_id)
            .order("order", desc=False)
        )
        what = f"modules of course {course_id}"
        return parse_rows(Module, await self._rows(query, what), what)

    async def get_lessons_by_module(self, module_id: str) -> list[Lesson]:
        query = (
            self.client.table(self.settings.LESSONS_TABLE)
            .select("*")
            .eq("module_id", module_id)
            .order("order", desc=False)
        )
        what = f"lessons of module {module_id}"
        return parse_rows(Lesson, await self._rows(query, what), what)

    async def count_lessons(self, module_ids: Sequence[str]) -> int:
        if not module_ids:
            return 0

        query = (
            self.client.table(self.settings.LESSONS_TABLE)
            .select("id", count="exact")
            .in_("module_id", list(module_ids))
        )
        try:
            response = await query.execute()
        except _STORE_ERRORS as e:
            msg = "Failed to count lessons"
            raise StoreUnavailableError(msg) from e

        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def upsert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        table = self.client.table(self.settings.PROGRESS_TABLE)
        updated_at = (record.updated_at or datetime.now(UTC)).isoformat()

        if record.id:
            payload = {
                "completed": record.completed,
                "progress": record.progress,
                "updated_at": updated_at,
            }
            query = table.update(payload).eq("id", record.id)
        else:
            payload = {
                "user_id": record.user_id,
                "course_id": record.course_id,
                "module_id": record.module_id,
                "lesson_id": record.lesson_id,
                "completed": record.completed,
                "progress": record.progress,
                "created_at": (record.created_at.isoformat() if record.created_at else updated_at),
                "updated_at": updated_at,
            }
            query = table.insert(payload)

        what = f"progress write for lesson {record.lesson_id}"
        rows = await self._rows(query, what)
        if not rows:
            # Row-level security can hide the written row from the response
            return record
        return parse_rows(ProgressRecord, rows[:1], what)[0]
