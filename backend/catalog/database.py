"""Database engine and helpers.

This module wraps a SQLAlchemy async engine (and therefore its
connection pool) in a small `Database` object. One is created per
process, or per test, and handed to repositories and services
explicitly rather than living in a module global.

Every helper acquires a pooled connection for exactly one unit of work
and releases it on every exit path. Driver and connection failures are
logged with the offending statement and re-raised as `StorageError`, so
empty results always mean "no matching data", never "storage failed".
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .errors import StorageError

logger = logging.getLogger("catalog.db")


@dataclass
class QueryResult:
    """Materialized result of one statement."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine/pool used by every data-access call."""

    def __init__(self, url: str, echo: bool = False, pool_size: int = 5, engine: Optional[AsyncEngine] = None):
        self.url = url
        if engine is None:
            kwargs: Dict[str, Any] = {"echo": echo}
            if not url.startswith("sqlite"):
                kwargs["pool_size"] = pool_size
                kwargs["pool_pre_ping"] = True
            engine = create_async_engine(url, **kwargs)
        self.engine = engine
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_size=settings.DB_POOL_SIZE)

    @property
    def dialect(self) -> str:
        """Dialect name (`sqlite`, `postgresql`), used to pick schema scripts."""
        return self.engine.dialect.name

    async def query(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Execute one parameterized statement in its own transaction.

        Rows are fetched before the connection is returned to the pool.
        Raises `StorageError` on any connection or statement failure.
        """
        bound = dict(params or {})
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(statement), bound)
                rows = [dict(r) for r in result.mappings()] if result.returns_rows else []
                return QueryResult(rows=rows, rowcount=result.rowcount)
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "unable to query %s",
                json.dumps({"statement": " ".join(statement.split()), "params": bound, "error": str(exc)}, default=str),
            )
            raise StorageError() from exc

    async def execute_script(self, path: Path) -> None:
        """Run an SQL script verbatim on the driver connection.

        The script goes to the driver as one piece of text, so trigger and
        function bodies keep their inner semicolons. aiosqlite runs it with
        `executescript`; asyncpg runs a parameterless multi-statement
        `execute` in one implicit transaction.
        """
        try:
            sql = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("unable to read sql script %s: %s", path, exc)
            raise StorageError(f"unable to read sql script {path}") from exc
        try:
            async with self.engine.connect() as conn:
                raw = await conn.get_raw_connection()
                driver = raw.driver_connection
                if self.dialect == "sqlite":
                    await driver.executescript(sql)
                else:
                    await driver.execute(sql)
        except Exception as exc:
            # driver errors (sqlite3.Error, asyncpg.PostgresError) are not wrapped by SQLAlchemy here
            logger.error("unable to run sql script %s: %s", path, exc)
            raise StorageError() from exc

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
