"""Pydantic request schemas used by the API.

Schemas keep API input shapes stable and provide validation for
controller handlers and tests. Update schemas are sparse: only fields
the client actually sent are applied (`model_dump(exclude_unset=True)`).
"""

from typing import Optional

from pydantic import BaseModel, Field

from .models import Semester


class DepartmentIn(BaseModel):
    """Payload for creating a department; the slug is derived from `title`."""
    title: str = Field(min_length=1, max_length=128)
    description: str = ""


class DepartmentPatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None


class CourseIn(BaseModel):
    """Payload for creating a course inside a department."""
    course_id: str = Field(min_length=1, max_length=16)
    title: str = Field(min_length=1, max_length=128)
    units: Optional[float] = Field(default=None, ge=0)
    semester: Semester
    level: Optional[str] = None
    url: Optional[str] = None


class CoursePatch(BaseModel):
    course_id: Optional[str] = Field(default=None, min_length=1, max_length=16)
    title: Optional[str] = Field(default=None, min_length=1, max_length=128)
    units: Optional[float] = Field(default=None, ge=0)
    semester: Optional[Semester] = None
    level: Optional[str] = None
    url: Optional[str] = None
