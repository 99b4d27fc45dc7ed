"""Database connection management."""

import logging
from pathlib import Path

import aiosqlite

from project_ledger.config import get_database_url, get_db_path, get_pg_command_timeout
from project_ledger.db.backend import Database
from project_ledger.db.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str | None = None) -> Database:
    """Create and initialize a database connection.

    Dispatches to SQLite or PostgreSQL based on PL_DATABASE_URL.
    For in-memory SQLite databases, pass ":memory:".
    """
    # Explicit ":memory:" always uses SQLite (used by tests)
    if db_path == ":memory:":
        return await _create_sqlite(":memory:")
    url = get_database_url()
    if url and url.startswith("postgresql"):
        return await _create_postgres(url)
    return await _create_sqlite(db_path or get_db_path())


def _unicode_lower(value: str | None) -> str | None:
    return value.lower() if isinstance(value, str) else value


async def _create_sqlite(db_path: Path | str) -> Database:
    """Create a SQLite backend and apply the schema."""
    db_path = str(db_path)

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row

    # Enable WAL mode for better concurrent read performance
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.execute("PRAGMA busy_timeout=5000")
    # SQLite's built-in lower() folds ASCII only
    await conn.create_function("lower", 1, _unicode_lower, deterministic=True)

    db = SQLiteBackend(conn)
    await db.apply_schema()
    logger.debug("SQLite database ready at %s", db_path)
    return db


async def _create_postgres(url: str) -> Database:
    """Create a PostgreSQL backend and apply the schema."""
    from project_ledger.db.postgres_backend import PostgresBackend

    db = await PostgresBackend.create(url, command_timeout=get_pg_command_timeout())
    await db.apply_schema()
    return db
