"""Read-only catalog entities: courses, modules and lessons."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


ContentKind = Literal["video", "text", "quiz"]


class Course(BaseModel):
    """A course as published in the catalog."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    title: str = ""
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_premium: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: object) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return list(v)


class Module(BaseModel):
    """A module inside a course, positioned by ``order`` (1-based)."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    course_id: str
    order: int
    title: str = ""

    @field_validator("id", "course_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> str:
        return str(v)


class Lesson(BaseModel):
    """A lesson inside a module, positioned by ``order`` (1-based)."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    module_id: str
    order: int
    content_type: ContentKind = "text"
    title: str = ""

    @field_validator("id", "module_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> str:
        return str(v)
