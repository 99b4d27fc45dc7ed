"""Version history operations."""

from uuid import UUID

from project_ledger.db.backend import Database
from project_ledger.db.queries import REVISION_COLUMNS, get_revisions, row_to_version
from project_ledger.errors import NotFoundError
from project_ledger.models.project import ProjectVersion
from project_ledger.store.participants import get_snapshot, get_snapshots


class VersionStore:
    """Read access to project version history."""

    def __init__(self, db: Database):
        """Initialize with a database connection."""
        self.db = db

    async def get_history(self, project_id: UUID) -> list[ProjectVersion]:
        """All versions of a project in ascending version order, with participants.

        Raises NotFoundError when the project has no versions.
        """
        revisions = await get_revisions(self.db, project_id)
        if not revisions:
            raise NotFoundError(project_id)
        snapshots = await get_snapshots(self.db, [(project_id, r.version) for r in revisions])
        return [
            r.model_copy(update={"participants": snapshots[(project_id, r.version)]})
            for r in revisions
        ]

    async def get_version(self, project_id: UUID, version: int) -> ProjectVersion:
        """One specific version of a project, with participants."""
        cursor = await self.db.execute(
            f"SELECT {REVISION_COLUMNS} FROM project_revisions"  # noqa: S608
            " WHERE project_id = ? AND version = ?",
            (str(project_id), version),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(project_id, f"Project {project_id} has no version {version}")
        participants = await get_snapshot(self.db, project_id, version)
        return row_to_version(row, participants)

    async def get_current_one(self, project_id: UUID) -> ProjectVersion:
        """The current version of one project, canceled or not."""
        cursor = await self.db.execute(
            f"SELECT {REVISION_COLUMNS} FROM projects_current WHERE project_id = ?",  # noqa: S608
            (str(project_id),),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(project_id)
        participants = await get_snapshot(self.db, project_id, row["version"])
        return row_to_version(row, participants)
