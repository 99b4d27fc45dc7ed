"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from project_ledger.config import (
    get_db_path,
    get_log_level,
    get_status_probabilities,
    get_status_source,
    get_system_actor,
)
from project_ledger.db.backend import Database
from project_ledger.db.connection import create_connection
from project_ledger.dictionaries import DatabaseStatusLookup, StaticStatusLookup, StatusLookup
from project_ledger.store.revision_store import RevisionStore
from project_ledger.store.version_store import VersionStore
from project_ledger.tools.project_create import register_project_create
from project_ledger.tools.project_get import register_project_get
from project_ledger.tools.project_history import register_project_history
from project_ledger.tools.project_list import register_project_list
from project_ledger.tools.project_revise import register_project_revise
from project_ledger.tools.project_summary import register_project_summary


def _create_status_lookup(source: str, db: Database) -> StatusLookup:
    """Create the status dictionary for the configured source."""
    if source == "database":
        return DatabaseStatusLookup(db)
    if source == "static":
        return StaticStatusLookup(get_status_probabilities())
    raise ValueError(f"PL_STATUS_SOURCE must be 'static' or 'database' (got {source!r})")


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage the database connection and the stores built on it."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level().upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    try:
        source = get_status_source()
        status_lookup = _create_status_lookup(source, db)
        logger.info("Status probabilities from %s dictionary", source)

        store = RevisionStore(db, status_lookup=status_lookup, system_actor=get_system_actor())
        versions = VersionStore(db)

        yield {
            "db": db,
            "store": store,
            "versions": versions,
            "status_lookup": status_lookup,
        }
    finally:
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server keeps an append-only revision log of sales projects. Every \
change is a new numbered version with its own effective time; nothing is \
edited in place.

WRITING:
- project_create: Start a project. Returns its id; the state becomes v1.
- project_revise: Record a new version. Pass the full state. Omit \
participants to carry the previous version's set forward. Use effective_at \
to back-date or schedule a change.

READING:
- project_list: Current version of every project, filtered and paged. \
Pass as_of for the versions that were in force at a past instant.
- project_get: Full detail of one project (current, a version number, or as_of).
- project_history: All versions of one project in order.
- project_summary: Count, value, margin and weighted margin totals for the \
same filters as project_list.

Quarters are 'YYYY QN' ('2025-q1' is normalized), months are 'YYYY-MM'. \
Money is decimal text with two places. Canceled projects are hidden from \
lists unless hide_canceled is false.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "project-ledger",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_project_create(mcp)
    register_project_revise(mcp)
    register_project_list(mcp)
    register_project_get(mcp)
    register_project_history(mcp)
    register_project_summary(mcp)

    return mcp
