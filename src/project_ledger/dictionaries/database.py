"""Status lookup backed by the ``project_statuses`` dictionary table."""

import logging

from project_ledger.db.backend import Database

logger = logging.getLogger(__name__)


class DatabaseStatusLookup:
    """Reads auto-probabilities from ``project_statuses``.

    The table is maintained outside the ledger. A status's
    auto-probability applies whether or not the status is still active.
    """

    def __init__(self, db: Database) -> None:
        """Initialize with a database connection."""
        self.db = db

    async def auto_probability(self, status_id: int) -> int | None:
        """Return the status's auto-probability, if it has one."""
        cursor = await self.db.execute(
            "SELECT auto_probability_percent FROM project_statuses WHERE id = ?",
            (status_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            logger.debug("Status %d not in dictionary", status_id)
            return None
        return row["auto_probability_percent"]
