from pathlib import Path

import anyio
import pytest
from fastapi.testclient import TestClient

from catalog.config import Settings
from catalog.database import Database
from catalog.main import create_app

BACKEND = Path(__file__).resolve().parents[1]
SQL_DIR = BACKEND / "sql"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a fresh SQLite file database for each test."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'catalog.db'}")
    monkeypatch.setenv("SQL_DIR", str(SQL_DIR))
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    monkeypatch.setenv("IMPORT_CONCURRENCY", "1")
    return Settings()


async def create_schema(url: str):
    db = Database(url)
    try:
        await db.execute_script(SQL_DIR / "sqlite" / "drop.sql")
        await db.execute_script(SQL_DIR / "sqlite" / "schema.sql")
    finally:
        await db.dispose()


@pytest.fixture
async def db(settings, anyio_backend):
    """A `Database` with the catalog schema created."""
    await create_schema(settings.DATABASE_URL)
    database = Database.from_settings(settings)
    yield database
    await database.dispose()


@pytest.fixture
def client(settings):
    anyio.run(create_schema, settings.DATABASE_URL)
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
