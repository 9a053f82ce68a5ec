"""File parsing utilities for the catalog import.

Two inputs are supported: the JSON manifest (`index.json`) listing
departments and their course files, and the semicolon-delimited
course-list files themselves. Malformed entries are logged and skipped;
neither parser raises for a single bad record.
"""

import json
import logging
import re
from typing import List, Optional, Tuple

from ..models import CourseImport, DepartmentImport, Semester

logger = logging.getLogger("catalog.import")

COURSE_FIELD_SEPARATOR = ";"

# Labels used by the older Icelandic exports
SEMESTER_ALIASES = {
    "spring": Semester.SPRING,
    "vor": Semester.SPRING,
    "summer": Semester.SUMMER,
    "sumar": Semester.SUMMER,
    "fall": Semester.FALL,
    "autumn": Semester.FALL,
    "haust": Semester.FALL,
    "year-round": Semester.YEAR_ROUND,
    "heilsárs": Semester.YEAR_ROUND,
}

_UNITS_RE = re.compile(r"\d+(?:,\d+)?")


def parse_manifest(text: str) -> List[DepartmentImport]:
    """Parse the JSON manifest into `DepartmentImport` entries.

    Entries lacking `title`, `description` or `csv` are skipped with a
    warning. Invalid JSON or a non-array document yields an empty list.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("error parsing manifest JSON: %s", e)
        return []
    if not isinstance(data, list):
        logger.error("manifest must be a JSON array, got %s", type(data).__name__)
        return []
    out = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning("manifest entry %d is not an object, skipping", idx)
            continue
        title, description, csv_name = item.get("title"), item.get("description"), item.get("csv")
        if not all(isinstance(v, str) and v.strip() for v in (title, description, csv_name)):
            logger.warning("manifest entry %d missing title, description or csv: %s", idx, item)
            continue
        out.append(DepartmentImport(title=title.strip(), description=description, csv=csv_name.strip()))
    return out


def parse_units(raw: Optional[str]) -> Optional[float]:
    """Parse a units field such as `6` or `7,5` (decimal comma).

    The value must already be written in its shortest form: `06`, `6,0`
    and `7,50` are rejected, as is anything with a decimal point.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not _UNITS_RE.fullmatch(raw):
        return None
    value = float(raw.replace(",", "."))
    canonical = repr(value)
    if canonical.endswith(".0"):
        canonical = canonical[:-2]
    if canonical.replace(".", ",") != raw:
        return None
    return value


def parse_semester(raw: Optional[str]) -> Optional[Semester]:
    if not raw:
        return None
    return SEMESTER_ALIASES.get(raw.strip().lower())


def parse_course_line(line: str) -> Optional[CourseImport]:
    """Parse `code;title;units;semester;level;url` or return `None`."""
    parts = [p.strip() for p in line.split(COURSE_FIELD_SEPARATOR)]
    parts += [""] * (6 - len(parts))
    code, title, raw_units, raw_semester, level, url = parts[:6]
    if not code or not title:
        return None
    units = parse_units(raw_units)
    if units is None:
        return None
    semester = parse_semester(raw_semester)
    if semester is None:
        return None
    return CourseImport(
        course_id=code,
        title=title,
        units=units,
        semester=semester,
        level=level or None,
        url=url or None,
    )


def parse_course_file(text: str) -> Tuple[List[CourseImport], int]:
    """Parse a whole course-list file.

    Returns the valid courses in file order and the number of rejected
    lines. Blank lines are ignored and not counted.
    """
    courses = []
    invalid = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        course = parse_course_line(line)
        if course is None:
            logger.debug("invalid course line %d: %r", lineno, line)
            invalid += 1
            continue
        courses.append(course)
    return courses, invalid


def read_course_file(path, encoding: str = "latin-1") -> str:
    """Read a course-list file using the legacy single-byte encoding."""
    with open(path, "r", encoding=encoding, newline="") as fh:
        return fh.read()
