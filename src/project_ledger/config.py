"""Environment-variable-based configuration."""

import os
from pathlib import Path
from uuid import UUID

# Author recorded when the caller supplies no identity
NIL_ACTOR = UUID(int=0)


def get_db_path() -> Path:
    """Return the database file path from PL_DB_PATH."""
    raw = os.environ.get("PL_DB_PATH", "~/.local/share/project_ledger/ledger.db")
    return Path(raw).expanduser()


def get_database_url() -> str | None:
    """Return the PostgreSQL URL from PL_DATABASE_URL, if set."""
    return os.environ.get("PL_DATABASE_URL") or None


def get_pg_command_timeout() -> float:
    """Return the PostgreSQL statement timeout in seconds from PL_PG_COMMAND_TIMEOUT."""
    return float(os.environ.get("PL_PG_COMMAND_TIMEOUT", "30.0"))


def get_log_level() -> str:
    """Return the logging level from PL_LOG_LEVEL."""
    return os.environ.get("PL_LOG_LEVEL", "WARNING")


def get_status_source() -> str:
    """Return where status auto-probabilities come from: 'static' or 'database'."""
    return os.environ.get("PL_STATUS_SOURCE", "static").lower()


def get_status_probabilities() -> dict[int, int]:
    """Parse PL_STATUS_PROBABILITIES, e.g. ``"1=10,2=50,7=100"``."""
    raw = os.environ.get("PL_STATUS_PROBABILITIES", "")
    mapping: dict[int, int] = {}
    for item in raw.split(","):
        if not item.strip():
            continue
        status, _, probability = item.partition("=")
        if not probability.strip():
            raise ValueError(f"PL_STATUS_PROBABILITIES entry {item!r} is not 'status=percent'")
        mapping[int(status)] = int(probability)
    return mapping


def get_system_actor() -> UUID:
    """Return the fallback author id from PL_SYSTEM_ACTOR."""
    raw = os.environ.get("PL_SYSTEM_ACTOR")
    return UUID(raw) if raw else NIL_ACTOR
