"""Schemas for progress API and engine summaries."""

from typing import Literal

from pydantic import BaseModel, Field

from learnpath.catalog.models import Lesson
from learnpath.progress.cache import CacheState


class ProgressUpdate(BaseModel):
    """Schema for reporting partial progress on a lesson."""

    course_id: str
    module_id: str
    progress: int = Field(..., ge=0, le=100, description="Percentage watched/read, 0-100")


class CompletionRequest(BaseModel):
    """Schema for marking a lesson completed."""

    course_id: str
    module_id: str


class LessonStatus(BaseModel):
    """Completion, progress and unlock state of one lesson."""

    lesson_id: str
    completed: bool
    progress: int
    accessible: bool


class ProgressSummary(BaseModel):
    """Completed versus total lessons for a course or a module."""

    scope: Literal["course", "module"]
    id: str
    completed_lessons: int
    total_lessons: int
    progress_percentage: int


class RefreshResponse(BaseModel):
    """Outcome of a cache refresh."""

    state: CacheState
    records: int


class LastAccessedResponse(BaseModel):
    course_id: str | None


class NextLessonResponse(BaseModel):
    lesson: Lesson | None
