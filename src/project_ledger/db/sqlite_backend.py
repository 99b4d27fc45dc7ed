"""SQLite implementation of the Database protocol.

Thin wrapper around aiosqlite.Connection. No SQL translation is needed
since application code already uses SQLite-flavored SQL.

A single connection cannot run two transactions at once, so every
statement and every transaction goes through one ``asyncio.Lock``. A
reader therefore never observes another task's uncommitted rows.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from project_ledger.errors import ConcurrencyConflictError, StorageError

if TYPE_CHECKING:
    import aiosqlite

    from project_ledger.db.backend import Cursor, Row

logger = logging.getLogger(__name__)


def _translate_error(exc: sqlite3.Error) -> Exception:
    """Map driver errors onto ledger errors. Unknown errors pass through."""
    message = str(exc)
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in message:
        return ConcurrencyConflictError(f"Conflicting write: {message}")
    if isinstance(exc, sqlite3.OperationalError) and (
        "locked" in message or "busy" in message
    ):
        return StorageError(f"SQLite unavailable: {message}")
    return exc


class SQLiteCursor:
    """Eager cursor over rows fetched while the connection lock was held."""

    def __init__(self, rows: list[Row], rowcount: int | None = None) -> None:
        """Initialize with fetched rows and the driver's rowcount."""
        self._rows = rows
        self._index = 0
        self._rowcount = rowcount if rowcount is not None else -1

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        return self._rowcount

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._index >= len(self._rows):
            return None
        row = self._rows[self._index]
        self._index += 1
        return row

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        remaining = self._rows[self._index :]
        self._index = len(self._rows)
        return remaining


async def _run(
    conn: aiosqlite.Connection, sql: str, params: tuple[Any, ...] | list[Any]
) -> SQLiteCursor:
    """Execute one statement and drain its rows."""
    try:
        cursor = await conn.execute(sql, params)
        rows = list(await cursor.fetchall()) if cursor.description else []
        rowcount = cursor.rowcount
        await cursor.close()
    except sqlite3.Error as e:
        translated = _translate_error(e)
        if translated is e:
            raise
        logger.warning("SQLite statement failed: %s", e)
        raise translated from e
    return SQLiteCursor(rows, rowcount)


async def _run_many(
    conn: aiosqlite.Connection, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]
) -> None:
    """Execute one statement per parameter set."""
    if not params_seq:
        return
    try:
        await conn.executemany(sql, params_seq)
    except sqlite3.Error as e:
        translated = _translate_error(e)
        if translated is e:
            raise
        logger.warning("SQLite batch failed: %s", e)
        raise translated from e


class SQLiteTransaction:
    """Statements inside one ``BEGIN IMMEDIATE`` transaction."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Initialize with the connection that owns the open transaction."""
        self._conn = conn

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement inside the transaction."""
        return await _run(self._conn, sql, params)

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        await _run_many(self._conn, sql, params_seq)

    async def lock(self, key: str) -> None:
        """No-op: BEGIN IMMEDIATE already holds the database write lock."""


class SQLiteBackend:
    """SQLite implementation of the Database protocol.

    Passes all calls through to the underlying aiosqlite.Connection.
    The raw connection is exposed as ``_conn`` for SQLite-specific
    operations (PRAGMA, etc.) that only run during connection setup.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Initialize with an aiosqlite connection."""
        self._conn = conn
        self._lock = asyncio.Lock()

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        async with self._lock:
            return await _run(self._conn, sql, params)

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        async with self._lock:
            await _run_many(self._conn, sql, params_seq)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations)."""
        async with self._lock:
            await self._conn.executescript(sql)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteTransaction]:
        """Open a ``BEGIN IMMEDIATE`` transaction on the shared connection."""
        async with self._lock:
            # Flush an implicit transaction left open by a standalone write
            if self._conn.in_transaction:
                await self._conn.commit()
            try:
                await self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                raise StorageError(f"Could not begin transaction: {e}") from e
            try:
                yield SQLiteTransaction(self._conn)
            except BaseException:
                await self._conn.rollback()
                raise
            else:
                try:
                    await self._conn.commit()
                except sqlite3.Error as e:
                    await self._conn.rollback()
                    translated = _translate_error(e)
                    if translated is e:
                        raise
                    raise translated from e

    async def commit(self) -> None:
        """Commit the current transaction."""
        async with self._lock:
            await self._conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply all SQLite DDL: tables, view, immutability triggers."""
        from project_ledger.db.schema import apply_schema

        await apply_schema(self)
