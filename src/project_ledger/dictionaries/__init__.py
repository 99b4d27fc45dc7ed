"""Status dictionary lookups."""

from project_ledger.dictionaries.database import DatabaseStatusLookup
from project_ledger.dictionaries.provider import StatusLookup
from project_ledger.dictionaries.static import NullStatusLookup, StaticStatusLookup

__all__ = ["DatabaseStatusLookup", "NullStatusLookup", "StaticStatusLookup", "StatusLookup"]
