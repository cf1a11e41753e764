"""Database models for the SQL catalog backend."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from learnpath.database.base import Base


def _new_id() -> str:
    return str(uuid4())


class CourseRow(Base):
    """Published course."""

    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False, default="")
    description = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_premium = Column(Boolean, nullable=False, default=False)


class ModuleRow(Base):
    """Module of a course; ``order`` is unique within the course."""

    __tablename__ = "modules"
    __table_args__ = (UniqueConstraint("course_id", "order", name="uq_module_order"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)
    title = Column(String, nullable=False, default="")


class LessonRow(Base):
    """Lesson of a module; ``order`` is unique within the module."""

    __tablename__ = "lessons"
    __table_args__ = (UniqueConstraint("module_id", "order", name="uq_lesson_order"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    module_id = Column(String(36), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)
    content_type = Column(String(16), nullable=False, default="text")
    title = Column(String, nullable=False, default="")


class UserProgressRow(Base):
    """Per-user, per-lesson completion and progress."""

    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    course_id = Column(String(36), nullable=False, index=True)
    module_id = Column(String(36), nullable=False, index=True)
    lesson_id = Column(String(36), nullable=False, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    progress = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
