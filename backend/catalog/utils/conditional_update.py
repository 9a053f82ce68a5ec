"""Partial UPDATE builder for catalog tables.

Only the fields a caller actually supplied are written. Column names
cannot be bound as parameters, so they are interpolated into the SQL
text; every surviving name is checked against `ALLOWED_COLUMNS` first.
"""

from dataclasses import dataclass
from enum import Enum
from itertools import zip_longest
from typing import Any, Dict, List, Optional, Sequence

from ..errors import InvalidInputError


class Table(str, Enum):
    DEPARTMENT = "department"
    COURSE = "course"


ALLOWED_COLUMNS = {
    Table.DEPARTMENT: frozenset({"title", "description"}),
    Table.COURSE: frozenset({"course_id", "title", "units", "semester", "level", "url"}),
}

_MISSING = object()


@dataclass
class UpdateOutcome:
    """`attempted` is False when nothing survived filtering and no query ran."""
    attempted: bool
    row: Optional[Dict[str, Any]] = None


def _is_bindable(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return value is None or isinstance(value, (str, int, float))


def filter_fields(fields: Sequence[Any], values: Sequence[Any]):
    """Drop pairs whose name is not a string or whose value is not str/number/None."""
    kept_fields: List[str] = []
    kept_values: List[Any] = []
    for name, value in zip_longest(fields, values, fillvalue=_MISSING):
        if name is not _MISSING and not isinstance(name, str):
            continue
        if value is not _MISSING and not _is_bindable(value):
            continue
        if name is not _MISSING:
            kept_fields.append(name)
        if value is not _MISSING:
            kept_values.append(value)
    return kept_fields, kept_values


def build_update(table: Table, record_id: int, fields: Sequence[Any], values: Sequence[Any]):
    """Return `(statement, params)` or `None` when there is nothing to update.

    The identifier is bound first as `:p0`; each field follows as
    `:p1..:pN` in the order given.
    """
    try:
        table = Table(table)
    except ValueError:
        raise InvalidInputError(f"unknown table: {table!r}")
    kept_fields, kept_values = filter_fields(fields, values)
    if not kept_fields:
        return None
    if len(kept_fields) != len(kept_values):
        raise InvalidInputError("fields and values must have the same length")
    allowed = ALLOWED_COLUMNS[table]
    for name in kept_fields:
        if name not in allowed:
            raise InvalidInputError(f"column not updatable on {table.value}: {name!r}")
    updates = [f"{name} = :p{i}" for i, name in enumerate(kept_fields, start=1)]
    updates.append("updated = CURRENT_TIMESTAMP")
    statement = f"UPDATE {table.value} SET {', '.join(updates)} WHERE id = :p0 RETURNING *"
    params = {"p0": record_id}
    params.update({f"p{i}": value for i, value in enumerate(kept_values, start=1)})
    return statement, params


async def conditional_update(db, table: Table, record_id: int, fields: Sequence[Any], values: Sequence[Any]) -> UpdateOutcome:
    """Run a partial update and return the updated row, if any matched."""
    built = build_update(table, record_id, fields, values)
    if built is None:
        return UpdateOutcome(attempted=False)
    statement, params = built
    result = await db.query(statement, params)
    return UpdateOutcome(attempted=True, row=result.first())
