"""In-memory snapshot of one user's progress records."""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import StrEnum

from learnpath.progress.models import ProgressRecord


class CacheState(StrEnum):
    """Whether the snapshot reflects the store."""

    EMPTY = "empty"  # never loaded
    FRESH = "fresh"  # last refresh succeeded
    STALE = "stale"  # last refresh failed, holding whatever was loaded before


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps come back from SQLite; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ProgressCache:
    """Progress records indexed by lesson id.

    All queries are synchronous and never touch the store.
    """

    def __init__(self) -> None:
        self._by_lesson: dict[str, ProgressRecord] = {}
        self.state = CacheState.EMPTY

    def __len__(self) -> int:
        return len(self._by_lesson)

    def replace(self, records: Iterable[ProgressRecord]) -> None:
        """Swap in a freshly fetched set of records."""
        by_lesson: dict[str, ProgressRecord] = {}
        for record in records:
            current = by_lesson.get(record.lesson_id)
            # Legacy duplicates: keep the most advanced row for the lesson
            if current is None or _rank(record) > _rank(current):
                by_lesson[record.lesson_id] = record
        self._by_lesson = by_lesson
        self.state = CacheState.FRESH

    def mark_stale(self) -> None:
        self.state = CacheState.STALE

    def clear(self) -> None:
        self._by_lesson = {}
        self.state = CacheState.EMPTY

    def get(self, lesson_id: str) -> ProgressRecord | None:
        return self._by_lesson.get(lesson_id)

    def records(self) -> list[ProgressRecord]:
        return list(self._by_lesson.values())

    def is_completed(self, lesson_id: str) -> bool:
        record = self._by_lesson.get(lesson_id)
        return record is not None and record.completed

    def progress_of(self, lesson_id: str) -> int:
        record = self._by_lesson.get(lesson_id)
        return record.progress if record else 0

    def completed_in_module(self, module_id: str) -> int:
        return sum(1 for r in self._by_lesson.values() if r.module_id == module_id and r.completed)

    def completed_in_course(self, course_id: str) -> int:
        return sum(1 for r in self._by_lesson.values() if r.course_id == course_id and r.completed)

    def last_accessed_course_id(self) -> str | None:
        """Course of the most recently updated record, ignoring records without a timestamp."""
        dated = [r for r in self._by_lesson.values() if r.updated_at is not None]
        if not dated:
            return None
        latest = max(dated, key=lambda r: _as_utc(r.updated_at))
        return latest.course_id


def _rank(record: ProgressRecord) -> tuple[bool, int, datetime]:
    stamp = _as_utc(record.updated_at) if record.updated_at else datetime.min.replace(tzinfo=UTC)
    return (record.completed, record.progress, stamp)
