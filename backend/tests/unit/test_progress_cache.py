"""Tests for the in-memory progress snapshot."""

from datetime import UTC, datetime, timedelta

from learnpath.progress.cache import CacheState, ProgressCache
from learnpath.progress.models import ProgressRecord


def _record(lesson_id: str, **fields: object) -> ProgressRecord:
    defaults = {"user_id": "u", "course_id": "C", "module_id": "M1", "lesson_id": lesson_id}
    defaults.update(fields)
    return ProgressRecord(**defaults)


def test_new_cache_is_empty() -> None:
    cache = ProgressCache()

    assert cache.state is CacheState.EMPTY
    assert len(cache) == 0
    assert not cache.is_completed("L1")
    assert cache.last_accessed_course_id() is None


def test_completion_and_counts() -> None:
    cache = ProgressCache()
    cache.replace(
        [
            _record("L1", completed=True),
            _record("L2", progress=40),
            _record("L3", module_id="M2", completed=True),
            _record("X1", course_id="D", module_id="N1", completed=True),
        ]
    )

    assert cache.state is CacheState.FRESH
    assert cache.is_completed("L1")
    assert not cache.is_completed("L2")
    assert not cache.is_completed("unknown")
    assert cache.completed_in_module("M1") == 1
    assert cache.completed_in_module("M2") == 1
    assert cache.completed_in_course("C") == 2
    assert cache.completed_in_course("D") == 1
    assert cache.progress_of("L2") == 40
    assert cache.progress_of("unknown") == 0


def test_completed_record_always_has_full_progress() -> None:
    record = _record("L1", completed=True, progress=30)

    assert record.progress == 100


def test_duplicate_rows_keep_the_completed_one() -> None:
    cache = ProgressCache()
    cache.replace([_record("L1", id="a", progress=80), _record("L1", id="b", completed=True)])

    assert len(cache) == 1
    assert cache.is_completed("L1")
    assert cache.get("L1").id == "b"


def test_last_accessed_course_uses_latest_update() -> None:
    now = datetime.now(UTC)
    cache = ProgressCache()
    cache.replace(
        [
            _record("L1", course_id="C", updated_at=now - timedelta(hours=2)),
            _record("L2", course_id="D", updated_at=now),
            _record("L3", course_id="E"),
        ]
    )

    assert cache.last_accessed_course_id() == "D"


def test_last_accessed_course_mixes_naive_and_aware_timestamps() -> None:
    cache = ProgressCache()
    cache.replace(
        [
            _record("L1", course_id="C", updated_at=datetime(2024, 1, 1, 12, 0)),
            _record("L2", course_id="D", updated_at=datetime(2024, 1, 2, 12, 0, tzinfo=UTC)),
        ]
    )

    assert cache.last_accessed_course_id() == "D"


def test_last_accessed_course_without_timestamps() -> None:
    cache = ProgressCache()
    cache.replace([_record("L1"), _record("L2")])

    assert cache.last_accessed_course_id() is None


def test_stale_keeps_records_and_clear_drops_them() -> None:
    cache = ProgressCache()
    cache.replace([_record("L1", completed=True)])

    cache.mark_stale()
    assert cache.state is CacheState.STALE
    assert cache.is_completed("L1")

    cache.clear()
    assert cache.state is CacheState.EMPTY
    assert not cache.is_completed("L1")
