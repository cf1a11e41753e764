"""Progress tracking API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Response, status

from learnpath.exceptions import ResourceNotFoundError

from .dependencies import Engine, Registry
from .models import ProgressRecord
from .schemas import (
    CompletionRequest,
    LastAccessedResponse,
    LessonStatus,
    NextLessonResponse,
    ProgressSummary,
    ProgressUpdate,
    RefreshResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users/{user_id}/progress", tags=["progress"])


@router.post("/refresh")
async def refresh_progress(engine: Engine) -> RefreshResponse:
    """Reload the user's progress from the store."""
    state = await engine.refresh()
    return RefreshResponse(state=state, records=len(engine.cache))


@router.get("/lessons/{lesson_id}")
async def get_lesson_status(lesson_id: str, engine: Engine) -> LessonStatus:
    """Get completion, progress and unlock state of a lesson."""
    return await engine.lesson_status(lesson_id)


@router.post("/lessons/{lesson_id}/complete")
async def complete_lesson(lesson_id: str, request: CompletionRequest, engine: Engine) -> ProgressRecord:
    """Mark a lesson completed."""
    return await engine.mark_completed(request.course_id, request.module_id, lesson_id)


@router.put("/lessons/{lesson_id}")
async def update_lesson_progress(lesson_id: str, update: ProgressUpdate, engine: Engine) -> ProgressRecord:
    """Report partial progress on a lesson. Lower or equal values are ignored."""
    return await engine.update_progress(update.course_id, update.module_id, lesson_id, update.progress)


@router.get("/lessons/{lesson_id}/next")
async def get_next_lesson(lesson_id: str, course_id: str, module_id: str, engine: Engine) -> NextLessonResponse:
    """Get the lesson following ``lesson_id`` in course order."""
    lesson = await engine.next_lesson(course_id, module_id, lesson_id)
    return NextLessonResponse(lesson=lesson)


@router.get("/courses/{course_id}")
async def get_course_progress(course_id: str, engine: Engine) -> ProgressSummary:
    """Get completed versus total lessons for a course."""
    if await engine.get_course(course_id) is None:
        raise ResourceNotFoundError("Course", course_id)
    return await engine.course_progress(course_id)


@router.get("/modules/{module_id}")
async def get_module_progress(module_id: str, engine: Engine) -> ProgressSummary:
    """Get completed versus total lessons for a module."""
    return await engine.module_progress(module_id)


@router.get("/last-accessed")
async def get_last_accessed(engine: Engine) -> LastAccessedResponse:
    """Get the course the user touched most recently."""
    return LastAccessedResponse(course_id=engine.last_accessed_course_id())


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user_id: str, registry: Registry) -> Response:
    """Discard the user's cached progress."""
    if not registry.sign_out(user_id):
        logger.info(f"Sign-out requested for user {user_id} without an active session")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active session for user {user_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
