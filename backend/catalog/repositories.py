"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (departments,
courses). Repositories run one parameterized statement per call through
the injected `Database`, map the result with `catalog.mappers` and
return catalog records. `None`, `False` and `[]` mean "no matching
data"; storage failures surface as `StorageError`.
"""

from typing import Any, List, Mapping, Optional

from . import mappers, models
from .database import Database
from .errors import InvalidInputError
from .utils.conditional_update import Table, conditional_update


class DepartmentRepository:
    """CRUD operations for `Department` records."""
    def __init__(self, db: Database):
        self.db = db

    async def get(self, department_id: int) -> Optional[models.Department]:
        """Fetch a department by primary key."""
        result = await self.db.query("SELECT * FROM department WHERE id = :id", {"id": department_id})
        return mappers.department_mapper(result.first())

    async def get_by_slug(self, slug: str) -> Optional[models.Department]:
        """Return a department by slug or `None` if not found."""
        result = await self.db.query("SELECT * FROM department WHERE slug = :slug", {"slug": slug})
        return mappers.department_mapper(result.first())

    async def list(self) -> List[models.Department]:
        """Return every department ordered by id."""
        result = await self.db.query("SELECT * FROM department ORDER BY id")
        return mappers.departments_mapper(result.rows)

    async def create(self, title: str, slug: str, description: str) -> Optional[models.Department]:
        """Insert a department; id and timestamps are assigned by the database."""
        result = await self.db.query(
            """
            INSERT INTO department (title, slug, description)
            VALUES (:title, :slug, :description)
            RETURNING *
            """,
            {"title": title, "slug": slug, "description": description},
        )
        return mappers.department_mapper(result.first())

    async def update(self, department_id: int, changes: Mapping[str, Any]) -> Optional[models.Department]:
        """Apply a partial update.

        With nothing to update the current record is returned unchanged.
        """
        outcome = await conditional_update(
            self.db, Table.DEPARTMENT, department_id, list(changes.keys()), list(changes.values())
        )
        if not outcome.attempted:
            return await self.get(department_id)
        return mappers.department_mapper(outcome.row)

    async def delete(self, department_id: int) -> bool:
        """Delete by id; True only if a row was removed."""
        result = await self.db.query("DELETE FROM department WHERE id = :id", {"id": department_id})
        return result.rowcount > 0

    async def delete_by_slug(self, slug: str) -> bool:
        result = await self.db.query("DELETE FROM department WHERE slug = :slug", {"slug": slug})
        return result.rowcount > 0


class CourseRepository:
    """CRUD operations for `Course` records."""
    def __init__(self, db: Database):
        self.db = db

    async def get(self, course_pk: int) -> Optional[models.Course]:
        result = await self.db.query("SELECT * FROM course WHERE id = :id", {"id": course_pk})
        return mappers.course_mapper(result.first())

    async def get_by_course_id(self, department_id: int, course_id: str) -> Optional[models.Course]:
        """Look up a course by its catalog code within one department."""
        result = await self.db.query(
            "SELECT * FROM course WHERE department_id = :department_id AND course_id = :course_id",
            {"department_id": department_id, "course_id": course_id},
        )
        return mappers.course_mapper(result.first())

    async def list(self) -> List[models.Course]:
        result = await self.db.query("SELECT * FROM course ORDER BY id")
        return mappers.courses_mapper(result.rows)

    async def list_for_department(self, department_id: int) -> List[models.Course]:
        """Return all courses of `department_id` in insertion order."""
        result = await self.db.query(
            "SELECT * FROM course WHERE department_id = :department_id ORDER BY id",
            {"department_id": department_id},
        )
        return mappers.courses_mapper(result.rows)

    async def create(
        self,
        department_id: int,
        course_id: str,
        title: str,
        semester: Any,
        units: Optional[float] = None,
        level: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Optional[models.Course]:
        """Insert a course for `department_id`.

        Raises `InvalidInputError` if `semester` is not a known value.
        """
        try:
            semester = models.Semester(semester)
        except ValueError:
            raise InvalidInputError(f"invalid semester value: {semester!r}")
        result = await self.db.query(
            """
            INSERT INTO course (course_id, department_id, title, units, semester, level, url)
            VALUES (:course_id, :department_id, :title, :units, :semester, :level, :url)
            RETURNING *
            """,
            {
                "course_id": course_id,
                "department_id": department_id,
                "title": title,
                "units": units,
                "semester": semester.value,
                "level": level,
                "url": url,
            },
        )
        return mappers.course_mapper(result.first())

    async def update(self, course_pk: int, changes: Mapping[str, Any]) -> Optional[models.Course]:
        """Apply a partial update; see `DepartmentRepository.update`."""
        changes = dict(changes)
        if isinstance(changes.get("semester"), models.Semester):
            changes["semester"] = changes["semester"].value
        outcome = await conditional_update(
            self.db, Table.COURSE, course_pk, list(changes.keys()), list(changes.values())
        )
        if not outcome.attempted:
            return await self.get(course_pk)
        return mappers.course_mapper(outcome.row)

    async def delete(self, course_pk: int) -> bool:
        result = await self.db.query("DELETE FROM course WHERE id = :id", {"id": course_pk})
        return result.rowcount > 0
