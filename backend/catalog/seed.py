"""Seed the catalog database from the bundled manifest and course files.

Drops and recreates the schema, then imports every department listed in
`<DATA_DIR>/index.json`. A schema failure exits with status 1; bad
departments or course lines are reported and skipped.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import get_settings
from .database import Database
from .errors import FatalSetupError
from .services import DepartmentReport, ImportService

logger = logging.getLogger("catalog.import")


async def run_setup(settings, data_dir: Optional[Path] = None, concurrency: Optional[int] = None) -> List[DepartmentReport]:
    """Create a pool, run the import and always tear the pool down."""
    db = Database.from_settings(settings)
    try:
        svc = ImportService(
            db,
            data_dir=data_dir or settings.DATA_DIR,
            sql_dir=settings.SQL_DIR,
            encoding=settings.COURSE_FILE_ENCODING,
            concurrency=concurrency or settings.IMPORT_CONCURRENCY,
        )
        return await svc.run()
    finally:
        await db.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Drop, recreate and seed the catalog database.")
    parser.add_argument("--data-dir", type=Path, help="Directory holding index.json and the course files")
    parser.add_argument("--concurrency", type=int, help="Departments imported at once (default: IMPORT_CONCURRENCY)")
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except RuntimeError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(level=settings.LOG_LEVEL)

    try:
        reports = asyncio.run(run_setup(settings, data_dir=args.data_dir, concurrency=args.concurrency))
    except FatalSetupError as e:
        logger.error("setup aborted: %s", e)
        return 1

    total_valid = 0
    total_invalid = 0
    for r in reports:
        if r.error and r.department_id is None:
            print(f"Skipped {r.title}: {r.error}")
            continue
        total_valid += r.valid
        total_invalid += r.invalid
        print(f"Imported {r.title} ({r.slug}): {r.valid} courses, {r.invalid} invalid")
    print(f"Total courses: {total_valid}, invalid {total_invalid}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
