"""SQLModel data models.

Catalog records are plain (non-table) SQLModel classes: the schema
itself lives in the SQL scripts under `sql/`, and these classes only
validate rows coming back from the database. Construction goes through
`catalog.mappers`, which guarantees that a record is either fully
populated or not produced at all.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from .utils.slugify import slugify


class Semester(str, Enum):
    """Teaching period a course is offered in."""
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"
    YEAR_ROUND = "Year-round"


class Department(SQLModel):
    """A department of the university.

    `slug` is derived from `title` when the department is created and is
    never changed afterwards.
    """
    id: int
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: str
    created: datetime
    updated: datetime


class Course(SQLModel):
    """A course offered by exactly one `Department`.

    `course_id` is the external catalog code (e.g. `TOL101`), not the
    database primary key.
    """
    id: int
    course_id: str = Field(min_length=1)
    department_id: int
    title: str = Field(min_length=1)
    units: Optional[float] = Field(default=None, ge=0)
    semester: Semester
    level: Optional[str] = None
    url: Optional[str] = None
    created: datetime
    updated: datetime


@dataclass
class DepartmentImport:
    """One manifest entry: a department plus the file listing its courses."""
    title: str
    description: str
    csv: str

    @property
    def slug(self) -> str:
        return slugify(self.title)


@dataclass
class CourseImport:
    """A course line parsed from a course-list file."""
    course_id: str
    title: str
    units: float
    semester: Semester
    level: Optional[str] = None
    url: Optional[str] = None
