"""Query helpers for common database operations."""

from datetime import UTC, datetime
from uuid import UUID

from project_ledger.db.backend import Database, Row, Transaction
from project_ledger.models.project import (
    Participant,
    ProjectHead,
    ProjectState,
    ProjectVersion,
    from_cents,
    to_cents,
)

REVISION_COLUMNS = (
    "project_id, version, effective_at, author_id, am_id, client_id, market_id, name,"
    " status_id, value_cents, margin_cents, probability_percent, due_quarter,"
    " invoice_month, payment_quarter, vendor_id, architecture_id, comment,"
    " is_canceled, created_at"
)


def to_iso(ts: datetime) -> str:
    """Fixed-width UTC ISO-8601 text; lexical order is chronological order.

    Naive datetimes are taken to be UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="microseconds")


def from_iso(raw: str) -> datetime:
    """Parse a stored timestamp."""
    return datetime.fromisoformat(raw)


def row_to_version(row: Row, participants: list[Participant] | None = None) -> ProjectVersion:
    """Convert a revision row to a ProjectVersion."""
    return ProjectVersion(
        project_id=UUID(row["project_id"]),
        version=row["version"],
        effective_at=from_iso(row["effective_at"]),
        author_id=UUID(row["author_id"]),
        am_id=UUID(row["am_id"]),
        client_id=UUID(row["client_id"]),
        market_id=row["market_id"],
        name=row["name"],
        status_id=row["status_id"],
        value=from_cents(row["value_cents"]),
        margin=from_cents(row["margin_cents"]),
        probability_percent=row["probability_percent"],
        due_quarter=row["due_quarter"],
        invoice_month=row["invoice_month"],
        payment_quarter=row["payment_quarter"],
        vendor_id=UUID(row["vendor_id"]),
        architecture_id=row["architecture_id"],
        comment=row["comment"],
        is_canceled=bool(row["is_canceled"]),
        created_at=from_iso(row["created_at"]),
        participants=participants or [],
    )


async def insert_head(tx: Transaction, project_id: UUID, created_at: datetime) -> None:
    """Insert a project head."""
    await tx.execute(
        "INSERT INTO project_heads (id, created_at) VALUES (?, ?)",
        (str(project_id), to_iso(created_at)),
    )


async def get_head(db: Database | Transaction, project_id: UUID) -> ProjectHead | None:
    """Get a project head by ID."""
    cursor = await db.execute(
        "SELECT id, created_at FROM project_heads WHERE id = ?", (str(project_id),)
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    return ProjectHead(id=UUID(row["id"]), created_at=from_iso(row["created_at"]))


async def max_version(tx: Database | Transaction, project_id: UUID) -> int:
    """Highest version number written for a project, 0 if none."""
    cursor = await tx.execute(
        "SELECT MAX(version) AS max_version FROM project_revisions WHERE project_id = ?",
        (str(project_id),),
    )
    row = await cursor.fetchone()
    if row is None or row["max_version"] is None:
        return 0
    return int(row["max_version"])


async def insert_revision(
    tx: Transaction,
    project_id: UUID,
    version: int,
    state: ProjectState,
    *,
    effective_at: datetime,
    author_id: UUID,
    created_at: datetime,
) -> None:
    """Insert one immutable revision row."""
    await tx.execute(
        f"INSERT INTO project_revisions ({REVISION_COLUMNS})"  # noqa: S608
        " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            str(project_id),
            version,
            to_iso(effective_at),
            str(author_id),
            str(state.am_id),
            str(state.client_id),
            state.market_id,
            state.name,
            state.status_id,
            to_cents(state.value),
            to_cents(state.margin),
            state.probability_percent,
            state.due_quarter,
            state.invoice_month,
            state.payment_quarter,
            str(state.vendor_id),
            state.architecture_id,
            state.comment,
            int(state.is_canceled),
            to_iso(created_at),
        ),
    )


async def get_revisions(db: Database, project_id: UUID) -> list[ProjectVersion]:
    """All revisions of a project ordered by version, without participants."""
    cursor = await db.execute(
        f"SELECT {REVISION_COLUMNS} FROM project_revisions"  # noqa: S608
        " WHERE project_id = ? ORDER BY version",
        (str(project_id),),
    )
    return [row_to_version(row) for row in await cursor.fetchall()]
