"""Progress record model for per-lesson completion tracking."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProgressRecord(BaseModel):
    """One user's completion and percentage progress for one lesson."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str | None = None
    user_id: str
    course_id: str
    module_id: str
    lesson_id: str
    completed: bool = False
    progress: int = Field(default=0, ge=0, le=100)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "user_id", "course_id", "module_id", "lesson_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> object:
        if v is None:
            return v
        return str(v)

    @field_validator("progress", mode="before")
    @classmethod
    def coerce_progress(cls, v: object) -> object:
        # Some backends hand back numeric columns as floats
        if isinstance(v, float):
            return int(v)
        return v

    @model_validator(mode="after")
    def completed_implies_full_progress(self) -> "ProgressRecord":
        if self.completed and self.progress != 100:
            self.progress = 100
        return self

    def touched(self, **changes: object) -> "ProgressRecord":
        """Return a copy with ``changes`` applied and ``updated_at`` set to now."""
        now = datetime.now(UTC)
        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = now
        if data.get("created_at") is None:
            data["created_at"] = now
        return ProgressRecord.model_validate(data)
