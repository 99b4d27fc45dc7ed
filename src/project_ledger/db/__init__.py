"""Database connection and schema management."""

from project_ledger.db.backend import Cursor, Database, Row, Transaction
from project_ledger.db.sqlite_backend import SQLiteBackend

try:
    from project_ledger.db.postgres_backend import PostgresBackend
except ImportError:
    PostgresBackend = None  # type: ignore[assignment,misc]

__all__ = ["Cursor", "Database", "PostgresBackend", "Row", "SQLiteBackend", "Transaction"]
