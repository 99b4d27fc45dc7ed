"""PostgreSQL implementation of the Database protocol.

Uses asyncpg for async access. All application SQL uses ``?``
placeholders; this backend translates them to ``$N`` at execute time.
Per-project serialization uses transaction-scoped advisory locks, so
appends to different projects never wait on each other.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import asyncpg

from project_ledger.errors import ConcurrencyConflictError, StorageError

if TYPE_CHECKING:
    from project_ledger.db.backend import Cursor, Row

logger = logging.getLogger(__name__)

# Pre-compiled regex for placeholder translation
_PLACEHOLDER_RE = re.compile(r"\?")

_CONFLICT_ERRORS: tuple[type[Exception], ...] = (
    asyncpg.exceptions.UniqueViolationError,
    asyncpg.exceptions.SerializationError,
    asyncpg.exceptions.DeadlockDetectedError,
)

_STORAGE_ERRORS: tuple[type[Exception], ...] = (
    asyncpg.exceptions.QueryCanceledError,
    asyncpg.exceptions.LockNotAvailableError,
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.PostgresConnectionError,
    TimeoutError,
    OSError,
)


def _translate_placeholders(sql: str) -> str:
    """Convert ``?`` placeholders to ``$1, $2, ...`` for asyncpg."""
    counter = 0

    def _replace(_match: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        return f"${counter}"

    return _PLACEHOLDER_RE.sub(_replace, sql)


def _translate_error(exc: Exception) -> Exception:
    """Map driver errors onto ledger errors. Unknown errors pass through."""
    if isinstance(exc, _CONFLICT_ERRORS):
        return ConcurrencyConflictError(f"Conflicting write: {exc}")
    if isinstance(exc, _STORAGE_ERRORS):
        return StorageError(f"PostgreSQL unavailable: {exc}")
    return exc


class PostgresRow:
    """Wraps asyncpg.Record to satisfy the Row protocol."""

    def __init__(self, record: asyncpg.Record) -> None:
        """Initialize with an asyncpg Record."""
        self._record = record

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        return self._record[key]

    def keys(self) -> list[str]:
        """Return column names."""
        return list(self._record.keys())


class PostgresCursor:
    """Wraps a list of asyncpg.Record as a Cursor.

    asyncpg returns results eagerly, with no server-side cursor for
    simple queries. This wraps the result list to match the Cursor protocol.
    """

    def __init__(self, rows: list[asyncpg.Record], status: str | None = None) -> None:
        """Initialize with result rows and optional status string."""
        self._rows = rows
        self._index = 0
        self._rowcount = self._parse_rowcount(status)

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        return self._rowcount

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._index >= len(self._rows):
            return None
        row = PostgresRow(self._rows[self._index])
        self._index += 1
        return row

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        remaining: list[Row] = [PostgresRow(r) for r in self._rows[self._index :]]
        self._index = len(self._rows)
        return remaining

    @staticmethod
    def _parse_rowcount(status: str | None) -> int:
        """Parse affected row count from asyncpg status string.

        Examples: "INSERT 0 1" → 1, "UPDATE 3" → 3, "DELETE 0" → 0.
        """
        if not status:
            return -1
        parts = status.split()
        if len(parts) >= 2:
            try:
                return int(parts[-1])
            except ValueError:
                pass
        return -1


async def _run(
    conn: asyncpg.Connection, sql: str, params: tuple[Any, ...] | list[Any]
) -> PostgresCursor:
    """Execute one statement on ``conn``, translating driver errors."""
    pg_sql = _translate_placeholders(sql)
    try:
        # asyncpg.fetch returns list of Records for SELECT
        # asyncpg.execute returns status string for INSERT/UPDATE/DELETE
        stmt = await conn.prepare(pg_sql)
        if stmt.get_attributes():
            rows = await conn.fetch(pg_sql, *params)
            return PostgresCursor(rows)
        status = await conn.execute(pg_sql, *params)
        return PostgresCursor([], status=status)
    except Exception as e:
        translated = _translate_error(e)
        if translated is e:
            raise
        logger.warning("PostgreSQL statement failed: %s", e)
        raise translated from e


class PostgresTransaction:
    """Statements bound to one pooled connection with an open transaction."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        """Initialize with the connection that owns the transaction."""
        self._conn = conn

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement inside the transaction."""
        return await _run(self._conn, sql, params)

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        if not params_seq:
            return
        try:
            await self._conn.executemany(_translate_placeholders(sql), params_seq)
        except Exception as e:
            translated = _translate_error(e)
            if translated is e:
                raise
            raise translated from e

    async def lock(self, key: str) -> None:
        """Take a transaction-scoped advisory lock keyed on ``key``."""
        await _run(self._conn, "SELECT pg_advisory_xact_lock(hashtext(?))", (key,))


class PostgresBackend:
    """PostgreSQL implementation of the Database protocol.

    Each ``execute()`` call acquires a connection from the pool, translates
    ``?`` → ``$N`` placeholders, and releases the connection after.
    ``commit()`` is a no-op: asyncpg auto-commits each statement outside
    ``transaction()``.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """Initialize with an asyncpg connection pool."""
        self._pool = pool

    @classmethod
    async def create(cls, url: str, *, command_timeout: float = 30.0) -> PostgresBackend:
        """Create a PostgresBackend from a connection URL."""
        try:
            pool = await asyncpg.create_pool(
                url, min_size=2, max_size=10, command_timeout=command_timeout
            )
        except _STORAGE_ERRORS as e:
            raise StorageError(f"Could not connect to PostgreSQL: {e}") from e
        return cls(pool)

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        async with self._pool.acquire() as conn:
            return await _run(conn, sql, params)

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        pg_sql = _translate_placeholders(sql)
        async with self._pool.acquire() as conn:
            await conn.executemany(pg_sql, params_seq)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements."""
        async with self._pool.acquire() as conn:
            await conn.execute(sql)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresTransaction]:
        """Open a transaction on a dedicated pooled connection."""
        async with self._pool.acquire() as conn:
            tx = conn.transaction()
            try:
                await tx.start()
            except Exception as e:
                translated = _translate_error(e)
                if translated is e:
                    raise
                raise translated from e
            try:
                yield PostgresTransaction(conn)
            except BaseException:
                await tx.rollback()
                raise
            else:
                try:
                    await tx.commit()
                except Exception as e:
                    translated = _translate_error(e)
                    if translated is e:
                        raise
                    raise translated from e

    async def commit(self) -> None:
        """No-op: asyncpg auto-commits each statement."""

    async def close(self) -> None:
        """Close the connection pool."""
        await self._pool.close()

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply all PostgreSQL DDL."""
        async with self._pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER NOT NULL
                )
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS project_heads (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL
                )
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS project_revisions (
                    project_id TEXT NOT NULL REFERENCES project_heads(id) ON DELETE CASCADE,
                    version INTEGER NOT NULL CHECK (version >= 1),
                    effective_at TEXT NOT NULL,
                    author_id TEXT NOT NULL,
                    am_id TEXT NOT NULL,
                    client_id TEXT NOT NULL,
                    market_id INTEGER NOT NULL,
                    name VARCHAR(255) NOT NULL,
                    status_id INTEGER NOT NULL,
                    value_cents BIGINT NOT NULL,
                    margin_cents BIGINT NOT NULL,
                    probability_percent INTEGER NOT NULL
                        CHECK (probability_percent BETWEEN 0 AND 100),
                    due_quarter VARCHAR(10) NOT NULL,
                    invoice_month VARCHAR(7),
                    payment_quarter VARCHAR(10) NOT NULL,
                    vendor_id TEXT NOT NULL,
                    architecture_id INTEGER NOT NULL,
                    comment TEXT,
                    is_canceled INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (project_id, version)
                )
            """)

            # Indexes
            for idx_sql in [
                "CREATE INDEX IF NOT EXISTS idx_revisions_effective"
                " ON project_revisions(effective_at)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_project_effective"
                " ON project_revisions(project_id, effective_at)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_status ON project_revisions(status_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_market ON project_revisions(market_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_am ON project_revisions(am_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_client ON project_revisions(client_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_vendor ON project_revisions(vendor_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_architecture"
                " ON project_revisions(architecture_id)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_canceled"
                " ON project_revisions(is_canceled)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_due ON project_revisions(due_quarter)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_invoice"
                " ON project_revisions(invoice_month)",
            ]:
                await conn.execute(idx_sql)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS project_participants (
                    project_id TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    user_id TEXT NOT NULL,
                    is_owner INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (project_id, version, user_id),
                    FOREIGN KEY (project_id, version)
                        REFERENCES project_revisions(project_id, version) ON DELETE CASCADE
                )
            """)
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_participants_user"
                " ON project_participants(user_id)"
            )

            # Immutability triggers
            await conn.execute("""
                CREATE OR REPLACE FUNCTION reject_change() RETURNS trigger AS $$
                BEGIN
                    RAISE EXCEPTION '% rows are immutable', TG_TABLE_NAME;
                END
                $$ LANGUAGE plpgsql
            """)
            for table in ("project_revisions", "project_participants"):
                await conn.execute(f"DROP TRIGGER IF EXISTS {table}_immutable ON {table}")
                await conn.execute(f"""
                    CREATE TRIGGER {table}_immutable BEFORE UPDATE OR DELETE
                    ON {table} FOR EACH ROW
                    EXECUTE FUNCTION reject_change()
                """)

            await conn.execute("""
                CREATE OR REPLACE VIEW projects_current AS
                SELECT * FROM (
                    SELECT r.*,
                        ROW_NUMBER() OVER (
                            PARTITION BY r.project_id
                            ORDER BY r.effective_at DESC, r.version DESC
                        ) AS rn
                    FROM project_revisions r
                ) ranked
                WHERE rn = 1
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS project_statuses (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    auto_probability_percent INTEGER
                )
            """)

            # Schema version init
            row = await conn.fetchrow("SELECT version FROM schema_version")
            if row is None:
                await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", 1)
