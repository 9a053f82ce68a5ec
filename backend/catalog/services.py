"""Business logic services used by the setup script and HTTP controllers.

`ImportService` seeds the catalog: it drops and recreates the schema,
reads the manifest and loads every department with its courses through
the repositories. It is a single pass with no rollback. Schema failures
are fatal; a bad department or course line is logged, counted and
skipped.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from . import repositories
from .database import Database
from .errors import FatalSetupError, StorageError
from .models import DepartmentImport
from .utils.parsers import parse_course_file, parse_manifest, read_course_file

logger = logging.getLogger("catalog.import")

MANIFEST_NAME = "index.json"
DROP_SCRIPT = "drop.sql"
SCHEMA_SCRIPT = "schema.sql"


@dataclass
class DepartmentReport:
    """Outcome of importing one manifest entry."""
    title: str
    slug: str
    department_id: Optional[int] = None
    valid: int = 0
    invalid: int = 0
    error: Optional[str] = None


class ImportService:
    """Seed the database from a manifest and its course files."""
    def __init__(
        self,
        db: Database,
        data_dir: Path,
        sql_dir: Path,
        encoding: str = "latin-1",
        concurrency: int = 1,
    ):
        self.db = db
        self.data_dir = Path(data_dir)
        self.sql_dir = Path(sql_dir)
        self.encoding = encoding
        self.concurrency = max(1, concurrency)
        self.dept_repo = repositories.DepartmentRepository(db)
        self.course_repo = repositories.CourseRepository(db)

    def _script(self, name: str) -> Path:
        """Prefer `<sql_dir>/<dialect>/<name>`, fall back to `<sql_dir>/<name>`."""
        dialect_path = self.sql_dir / self.db.dialect / name
        if dialect_path.exists():
            return dialect_path
        return self.sql_dir / name

    async def drop_schema(self) -> None:
        await self._run_schema_script(DROP_SCRIPT, "dropped")

    async def create_schema(self) -> None:
        await self._run_schema_script(SCHEMA_SCRIPT, "created")

    async def _run_schema_script(self, name: str, verb: str) -> None:
        path = self._script(name)
        try:
            await self.db.execute_script(path)
        except StorageError as e:
            logger.error("schema not %s, exiting", verb)
            raise FatalSetupError(f"schema not {verb}: {path}") from e
        logger.info("schema %s", verb)

    def load_manifest(self) -> List[DepartmentImport]:
        """Read `index.json` from the data directory."""
        path = self.data_dir / MANIFEST_NAME
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("unable to read manifest %s: %s", path, e)
            return []
        return parse_manifest(text)

    async def import_department(self, item: DepartmentImport) -> DepartmentReport:
        """Insert one department and its courses; never raises for bad data."""
        slug = item.slug
        report = DepartmentReport(title=item.title, slug=slug)
        if not slug:
            logger.warning("title %r yields no slug, skipping", item.title)
            report.error = "empty slug"
            return report

        try:
            department = await self.dept_repo.create(item.title, slug, item.description)
        except StorageError:
            department = None
        if department is None:
            logger.error("unable to insert department %s", item)
            report.error = "department not inserted"
            return report
        report.department_id = department.id

        try:
            text = read_course_file(self.data_dir / item.csv, encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("unable to read course file %s: %s", item.csv, e)
            report.error = "course file unreadable"
            return report
        courses, report.invalid = parse_course_file(text)

        for course in courses:
            try:
                created = await self.course_repo.create(
                    department.id,
                    course.course_id,
                    course.title,
                    course.semester,
                    units=course.units,
                    level=course.level,
                    url=course.url,
                )
            except StorageError:
                created = None
            if created:
                report.valid += 1
            else:
                logger.warning("unable to insert course %s for %s", course.course_id, slug)
                report.invalid += 1

        logger.info(
            "Created department %s with %d courses and %d invalid courses",
            item.title, report.valid, report.invalid,
        )
        return report

    async def import_departments(self, items: List[DepartmentImport]) -> List[DepartmentReport]:
        """Import departments, at most `concurrency` at a time.

        Reports come back in manifest order whatever the concurrency.
        """
        if self.concurrency == 1:
            return [await self.import_department(item) for item in items]
        sem = asyncio.Semaphore(self.concurrency)

        async def _bounded(item: DepartmentImport) -> DepartmentReport:
            async with sem:
                return await self.import_department(item)

        return list(await asyncio.gather(*(_bounded(item) for item in items)))

    async def run(self) -> List[DepartmentReport]:
        """Drop, create, load manifest, import. Raises `FatalSetupError`."""
        await self.drop_schema()
        await self.create_schema()
        items = self.load_manifest()
        logger.info("manifest lists %d departments", len(items))
        return await self.import_departments(items)
