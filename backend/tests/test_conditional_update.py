import pytest

from catalog.database import QueryResult
from catalog.errors import InvalidInputError
from catalog.utils.conditional_update import Table, build_update, conditional_update, filter_fields


class RecordingDb:
    """Stand-in for `Database` that records statements instead of running them."""

    def __init__(self, rows=None):
        self.calls = []
        self.rows = rows or []

    async def query(self, statement, params=None):
        self.calls.append((statement, params))
        return QueryResult(rows=list(self.rows), rowcount=len(self.rows))


def test_build_update_binds_id_first():
    statement, params = build_update(Table.COURSE, 5, ["title", "units"], ["New title", 6])
    assert statement == (
        "UPDATE course SET title = :p1, units = :p2, updated = CURRENT_TIMESTAMP "
        "WHERE id = :p0 RETURNING *"
    )
    assert params == {"p0": 5, "p1": "New title", "p2": 6}


def test_build_update_accepts_table_name_and_null_values():
    statement, params = build_update("department", 1, ["description"], [None])
    assert statement.startswith("UPDATE department SET description = :p1")
    assert params == {"p0": 1, "p1": None}


def test_filter_drops_invalid_pairs():
    fields, values = filter_fields(["title", 3, "description", "units"], ["A", "B", {"x": 1}, True])
    assert fields == ["title"]
    assert values == ["A"]


def test_nothing_to_update_returns_none():
    assert build_update(Table.COURSE, 1, [], []) is None
    assert build_update(Table.COURSE, 1, [None], ["x"]) is None
    assert build_update(Table.COURSE, 1, ["units"], [object()]) is None


def test_mismatched_lengths_raise():
    with pytest.raises(InvalidInputError):
        build_update(Table.DEPARTMENT, 1, ["title", "description"], ["A"])


def test_column_outside_allow_list_raises():
    with pytest.raises(InvalidInputError):
        build_update(Table.DEPARTMENT, 1, ["slug"], ["new-slug"])
    with pytest.raises(InvalidInputError):
        build_update(Table.COURSE, 1, ["title; DROP TABLE course"], ["x"])


def test_unknown_table_raises():
    with pytest.raises(InvalidInputError):
        build_update("users", 1, ["title"], ["x"])


@pytest.mark.anyio
async def test_conditional_update_noop_issues_no_statement():
    db = RecordingDb()
    outcome = await conditional_update(db, Table.COURSE, 1, [None, 2], ["x", "y"])
    assert outcome.attempted is False
    assert outcome.row is None
    assert db.calls == []


@pytest.mark.anyio
async def test_conditional_update_returns_row():
    db = RecordingDb(rows=[{"id": 3, "title": "T"}])
    outcome = await conditional_update(db, Table.DEPARTMENT, 3, ["title"], ["T"])
    assert outcome.attempted is True
    assert outcome.row == {"id": 3, "title": "T"}
    assert len(db.calls) == 1
    assert db.calls[0][1] == {"p0": 3, "p1": "T"}
