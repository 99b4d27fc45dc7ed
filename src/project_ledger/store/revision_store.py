"""Append-only revision log for projects."""

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from project_ledger.config import NIL_ACTOR
from project_ledger.db.backend import Database
from project_ledger.db.queries import insert_head, insert_revision, max_version
from project_ledger.dictionaries.provider import StatusLookup
from project_ledger.dictionaries.static import NullStatusLookup
from project_ledger.errors import NotFoundError, ValidationError
from project_ledger.models.project import ProjectState
from project_ledger.store.participants import ParticipantInput, write_snapshot

logger = logging.getLogger(__name__)


class RevisionStore:
    """Writes project heads and their immutable, numbered versions.

    Every write is one transaction: the version row and its participant
    snapshot either commit together or not at all.
    """

    def __init__(
        self,
        db: Database,
        status_lookup: StatusLookup | None = None,
        system_actor: UUID = NIL_ACTOR,
    ):
        """Initialize with a database connection and a status dictionary."""
        self.db = db
        self.status_lookup = status_lookup or NullStatusLookup()
        self.system_actor = system_actor

    async def _prepare(self, state: ProjectState | dict[str, Any]) -> ProjectState:
        """Validate input and apply the status-driven probability."""
        parsed = ProjectState.parse(state)
        auto = await self.status_lookup.auto_probability(parsed.status_id)
        if auto is None:
            return parsed
        if not 0 <= auto <= 100:
            raise ValidationError(
                f"Status {parsed.status_id} auto-probability {auto} is outside 0-100"
            )
        return parsed.model_copy(update={"probability_percent": auto})

    async def create_project(
        self,
        state: ProjectState | dict[str, Any],
        effective_at: datetime | None = None,
        author_id: UUID | None = None,
        participants: Iterable[ParticipantInput] | None = None,
    ) -> UUID:
        """Create a project head with version 1 and its participant snapshot."""
        prepared = await self._prepare(state)
        # A new project always starts live
        prepared = prepared.model_copy(update={"is_canceled": False})

        project_id = uuid.uuid4()
        now = datetime.now(UTC)
        async with self.db.transaction() as tx:
            await insert_head(tx, project_id, now)
            await insert_revision(
                tx,
                project_id,
                1,
                prepared,
                effective_at=effective_at or now,
                author_id=author_id or self.system_actor,
                created_at=now,
            )
            await write_snapshot(tx, project_id, 1, participants)

        logger.info("Created project %s: %s", project_id, prepared.name)
        return project_id

    async def append_revision(
        self,
        project_id: UUID,
        state: ProjectState | dict[str, Any],
        effective_at: datetime | None = None,
        author_id: UUID | None = None,
        participants: Iterable[ParticipantInput] | None = None,
    ) -> int:
        """Append the next version to an existing project.

        Reading the current maximum, inserting ``max + 1`` and writing the
        snapshot happen under one per-project lock, so concurrent appends
        get distinct, gap-free numbers.
        """
        prepared = await self._prepare(state)

        now = datetime.now(UTC)
        async with self.db.transaction() as tx:
            await tx.lock(f"project:{project_id}")
            last = await max_version(tx, project_id)
            if last == 0:
                raise NotFoundError(project_id)
            new_version = last + 1
            await insert_revision(
                tx,
                project_id,
                new_version,
                prepared,
                effective_at=effective_at or now,
                author_id=author_id or self.system_actor,
                created_at=now,
            )
            await write_snapshot(tx, project_id, new_version, participants)

        logger.info("Appended v%d to project %s", new_version, project_id)
        return new_version
