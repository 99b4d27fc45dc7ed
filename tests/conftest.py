"""Shared test fixtures."""

import pytest
import pytest_asyncio

from project_ledger.db.connection import create_connection
from project_ledger.dictionaries import StaticStatusLookup
from project_ledger.store.revision_store import RevisionStore
from project_ledger.store.version_store import VersionStore
from tests.helpers import AUTO_STATUS, make_state


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def status_lookup():
    """Static status dictionary with one auto-probability status."""
    return StaticStatusLookup({AUTO_STATUS: 100})


@pytest_asyncio.fixture
async def store(db, status_lookup):
    """Revision store backed by in-memory DB."""
    return RevisionStore(db, status_lookup=status_lookup)


@pytest_asyncio.fixture
async def versions(db):
    """Version store backed by in-memory DB."""
    return VersionStore(db)


@pytest.fixture
def state_factory():
    """Factory for valid raw project states."""
    return make_state
