"""Participant snapshots: the actors attached to one specific version.

A snapshot is written once, alongside its version, and never changed.
When a revision supplies no participants, the previous version's rows
are cloned under the new version key inside the same transaction.
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from project_ledger.db.backend import Database, Transaction
from project_ledger.models.project import Participant

logger = logging.getLogger(__name__)

ParticipantInput = UUID | str | Participant

_INSERT_SQL = (
    "INSERT INTO project_participants (project_id, version, user_id, is_owner)"
    " VALUES (?, ?, ?, ?)"
)


def dedupe_participants(explicit: Iterable[ParticipantInput]) -> list[Participant]:
    """Collapse repeated actors, keeping first-seen order.

    An actor listed more than once is an owner if any listing says so.
    """
    merged: dict[UUID, bool] = {}
    for item in explicit:
        if isinstance(item, Participant):
            user_id, is_owner = item.user_id, item.is_owner
        else:
            user_id, is_owner = (item if isinstance(item, UUID) else UUID(item)), False
        merged[user_id] = merged.get(user_id, False) or is_owner
    return [Participant(user_id=uid, is_owner=owner) for uid, owner in merged.items()]


async def _insert_rows(
    tx: Transaction, project_id: UUID, version: int, participants: list[Participant]
) -> None:
    await tx.executemany(
        _INSERT_SQL,
        [(str(project_id), version, str(p.user_id), int(p.is_owner)) for p in participants],
    )


async def get_snapshot(
    db: Database | Transaction, project_id: UUID, version: int
) -> list[Participant]:
    """Participants of one version."""
    cursor = await db.execute(
        "SELECT user_id, is_owner FROM project_participants"
        " WHERE project_id = ? AND version = ? ORDER BY is_owner DESC, user_id",
        (str(project_id), version),
    )
    return [
        Participant(user_id=UUID(row["user_id"]), is_owner=bool(row["is_owner"]))
        for row in await cursor.fetchall()
    ]


async def get_snapshots(
    db: Database, keys: Iterable[tuple[UUID, int]]
) -> dict[tuple[UUID, int], list[Participant]]:
    """Participants for many ``(project_id, version)`` keys in one query."""
    wanted = set(keys)
    if not wanted:
        return {}
    project_ids = sorted({str(pid) for pid, _ in wanted})
    placeholders = ",".join("?" for _ in project_ids)
    cursor = await db.execute(
        "SELECT project_id, version, user_id, is_owner FROM project_participants"  # noqa: S608
        " WHERE project_id IN (" + placeholders + ")"
        " ORDER BY project_id, version, is_owner DESC, user_id",
        project_ids,
    )
    snapshots: dict[tuple[UUID, int], list[Participant]] = {key: [] for key in wanted}
    for row in await cursor.fetchall():
        key = (UUID(row["project_id"]), row["version"])
        if key in snapshots:
            snapshots[key].append(
                Participant(user_id=UUID(row["user_id"]), is_owner=bool(row["is_owner"]))
            )
    return snapshots


async def clone_snapshot(
    tx: Transaction, project_id: UUID, from_version: int, to_version: int
) -> list[Participant]:
    """Copy one version's rows verbatim under a new version key."""
    previous = await get_snapshot(tx, project_id, from_version)
    await _insert_rows(tx, project_id, to_version, previous)
    logger.debug(
        "Copied %d participant(s) of %s from v%d to v%d",
        len(previous),
        project_id,
        from_version,
        to_version,
    )
    return previous


async def write_snapshot(
    tx: Transaction,
    project_id: UUID,
    version: int,
    explicit: Iterable[ParticipantInput] | None = None,
) -> list[Participant]:
    """Write the participant snapshot for a newly inserted version.

    A non-empty ``explicit`` set is written deduplicated. Otherwise the
    previous version's snapshot is copied forward; version 1 with no
    explicit set gets an empty snapshot.
    """
    participants = dedupe_participants(explicit or [])
    if participants:
        await _insert_rows(tx, project_id, version, participants)
        return participants
    if version > 1:
        return await clone_snapshot(tx, project_id, version - 1, version)
    return []
