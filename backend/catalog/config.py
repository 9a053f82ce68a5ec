"""Application settings and validation."""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

BASE = Path(__file__).resolve().parent.parent


def _normalize_database_url(url: str) -> str:
    """Point plain driver URLs at the async drivers used by the engine."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


class Settings:
    ENV: str
    DATABASE_URL: str
    LOG_LEVEL: str
    SQL_ECHO: bool
    DB_POOL_SIZE: int
    DATA_DIR: Path
    SQL_DIR: Path
    COURSE_FILE_ENCODING: str
    IMPORT_CONCURRENCY: int
    ALLOW_DEV_CORS: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = _normalize_database_url(os.getenv("DATABASE_URL", "").strip())
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE / "data"))).expanduser()
        self.SQL_DIR = Path(os.getenv("SQL_DIR", str(BASE / "sql"))).expanduser()
        # Older course exports are not UTF-8
        self.COURSE_FILE_ENCODING = os.getenv("COURSE_FILE_ENCODING", "latin-1")
        self.IMPORT_CONCURRENCY = int(os.getenv("IMPORT_CONCURRENCY", "1"))
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self._validate()

    def _validate(self):
        if not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL must be set (environment or .env)")
        if self.DB_POOL_SIZE < 1:
            raise RuntimeError("DB_POOL_SIZE must be >= 1")
        if self.IMPORT_CONCURRENCY < 1:
            raise RuntimeError("IMPORT_CONCURRENCY must be >= 1")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load `.env` once and return the process-wide settings."""
    load_dotenv()
    return Settings()
