"""Row mappers converting raw database rows into catalog records.

A mapper either returns a fully validated record or `None`. A row that
is missing any required column, has a timestamp that cannot be parsed
or fails model validation maps to `None`; it never yields a partially
filled object. Collection mappers drop such rows and keep the order of
the rest.
"""

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .models import Course, Department

DEPARTMENT_FIELDS = ("id", "title", "slug", "description", "created", "updated")
COURSE_FIELDS = (
    "id", "course_id", "department_id", "title", "units",
    "semester", "level", "url", "created", "updated",
)
TIMESTAMP_FIELDS = ("created", "updated")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _prepare(row: Optional[Mapping[str, Any]], required: Iterable[str]) -> Optional[dict]:
    """Check presence of every required column and parse timestamps."""
    if not row:
        return None
    data = dict(row)
    if any(name not in data for name in required):
        return None
    for name in TIMESTAMP_FIELDS:
        parsed = _parse_timestamp(data[name])
        if parsed is None:
            return None
        data[name] = parsed
    return data


def department_mapper(row: Optional[Mapping[str, Any]]) -> Optional[Department]:
    data = _prepare(row, DEPARTMENT_FIELDS)
    if data is None:
        return None
    # nullable columns only exist on Course; here every column must hold a value
    if any(data[name] is None for name in DEPARTMENT_FIELDS):
        return None
    try:
        return Department.model_validate(data)
    except ValidationError:
        return None


def departments_mapper(rows: Iterable[Mapping[str, Any]]) -> List[Department]:
    return [d for d in (department_mapper(r) for r in rows) if d is not None]


def course_mapper(row: Optional[Mapping[str, Any]]) -> Optional[Course]:
    """Map a `course` row; `units`, `level` and `url` may be NULL but must be present."""
    data = _prepare(row, COURSE_FIELDS)
    if data is None:
        return None
    try:
        return Course.model_validate(data)
    except ValidationError:
        return None


def courses_mapper(rows: Iterable[Mapping[str, Any]]) -> List[Course]:
    return [c for c in (course_mapper(r) for r in rows) if c is not None]
