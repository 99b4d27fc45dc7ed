"""Storage protocols the ledger is written against.

Stores and read models only see ``Database`` and ``Transaction``; the
SQLite and PostgreSQL backends differ in placeholders and locking, and
each translates its own driver errors.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Row(Protocol):
    """One result row, addressable by column name or index."""

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        ...

    def keys(self) -> Any:
        """Column names in select order."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Fully materialized result of one statement."""

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        ...

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        ...

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        ...


@runtime_checkable
class Transaction(Protocol):
    """Statements bound to one open transaction.

    Obtained from ``Database.transaction()``. The transaction commits when
    the context exits normally and rolls back on any exception, so a
    partially written unit of work is never visible to other readers.
    """

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement inside the transaction."""
        ...

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        ...

    async def lock(self, key: str) -> None:
        """Hold an exclusive lock on ``key`` until the transaction ends."""
        ...


@runtime_checkable
class Database(Protocol):
    """Async database backend.

    All application SQL uses ``?`` placeholders and SQLite-flavored syntax.
    Non-SQLite backends translate at execute time (``?`` → ``$N``).
    Driver errors surface as ``ConcurrencyConflictError`` (unique-key,
    serialization, deadlock) or ``StorageError`` (timeouts, transport).
    """

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        ...

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        ...

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations)."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """Open an atomic unit of work."""
        ...

    async def commit(self) -> None:
        """Commit the current implicit transaction."""
        ...

    async def close(self) -> None:
        """Close the database connection."""
        ...
