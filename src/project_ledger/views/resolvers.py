"""Read models: one resolved version per project.

A read model is a strategy that produces a SQL relation holding exactly
one revision row per project. The current view and the as-of view differ
only in that relation; filtering, paging, participant loading and
aggregation are written once against the ``ReadModel`` protocol.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from project_ledger.db.backend import Database
from project_ledger.db.queries import REVISION_COLUMNS, row_to_version, to_iso
from project_ledger.models.filters import Page, ProjectFilter
from project_ledger.models.project import ProjectVersion
from project_ledger.store.participants import get_snapshots

logger = logging.getLogger(__name__)

_ORDER_BY = " ORDER BY v.effective_at DESC, v.version DESC, v.project_id"


@runtime_checkable
class ReadModel(Protocol):
    """Produces the one-row-per-project relation a query runs over."""

    def source(self) -> tuple[str, list[Any]]:
        """SQL for the relation and its parameters."""
        ...


class CurrentView:
    """Latest ``effective_at`` per project, ties broken by version."""

    def source(self) -> tuple[str, list[Any]]:
        """The ``projects_current`` view."""
        return "projects_current", []

    async def resolve(
        self, db: Database, flt: ProjectFilter | None = None, page: Page | None = None
    ) -> list[ProjectVersion]:
        """Current versions matching the filter."""
        return await resolve_versions(db, self, flt, page)

    async def resolve_one(self, db: Database, project_id: UUID) -> ProjectVersion | None:
        """Current version of one project, canceled or not."""
        return await resolve_version(db, self, project_id)

    def __repr__(self) -> str:
        return "CurrentView()"


class AsOfView:
    """The version that was current at instant ``at``.

    Among versions with ``effective_at <= at``, the latest, ties broken by
    version. Projects with nothing effective by then are absent.
    """

    def __init__(self, at: datetime | None = None) -> None:
        """Initialize with the instant to resolve at (default: now)."""
        self.at = at or datetime.now(UTC)

    def source(self) -> tuple[str, list[Any]]:
        """Ranked subquery over versions effective at or before ``at``."""
        sql = (
            "(SELECT * FROM ("
            " SELECT r.*, ROW_NUMBER() OVER ("
            "  PARTITION BY r.project_id ORDER BY r.effective_at DESC, r.version DESC"
            " ) AS rn"
            " FROM project_revisions r WHERE r.effective_at <= ?"
            ") ranked WHERE rn = 1)"
        )
        return sql, [to_iso(self.at)]

    async def resolve(
        self, db: Database, flt: ProjectFilter | None = None, page: Page | None = None
    ) -> list[ProjectVersion]:
        """Versions current at ``at`` matching the filter."""
        return await resolve_versions(db, self, flt, page)

    async def resolve_one(self, db: Database, project_id: UUID) -> ProjectVersion | None:
        """Version of one project current at ``at``."""
        return await resolve_version(db, self, project_id)

    def __repr__(self) -> str:
        return f"AsOfView(at={self.at.isoformat()})"


def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so the search text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_filter(flt: ProjectFilter, alias: str = "v") -> tuple[str, list[Any]]:
    """Build a WHERE clause (without the keyword) for a filter.

    Returns ``("1=1", [])`` for a filter that matches everything.
    """
    clauses: list[str] = []
    params: list[Any] = []

    if flt.hide_canceled:
        clauses.append(f"{alias}.is_canceled = 0")

    equalities: list[tuple[str, Any]] = [
        ("am_id", str(flt.am_id) if flt.am_id else None),
        ("market_id", flt.market_id),
        ("status_id", flt.status_id),
        ("client_id", str(flt.client_id) if flt.client_id else None),
        ("vendor_id", str(flt.vendor_id) if flt.vendor_id else None),
        ("architecture_id", flt.architecture_id),
        ("due_quarter", flt.due_quarter),
        ("invoice_month", flt.invoice_month),
    ]
    for column, value in equalities:
        if value is not None:
            clauses.append(f"{alias}.{column} = ?")
            params.append(value)

    if flt.search:
        clauses.append(f"LOWER({alias}.name) LIKE ? ESCAPE '\\'")
        params.append(f"%{_escape_like(flt.search.lower())}%")

    if flt.participant_id:
        clauses.append(
            "EXISTS (SELECT 1 FROM project_participants p"
            f" WHERE p.project_id = {alias}.project_id AND p.version = {alias}.version"
            " AND p.user_id = ?)"
        )
        params.append(str(flt.participant_id))

    if not clauses:
        return "1=1", []
    return " AND ".join(clauses), params


async def resolve_versions(
    db: Database,
    model: ReadModel,
    flt: ProjectFilter | None = None,
    page: Page | None = None,
) -> list[ProjectVersion]:
    """Filtered, paged versions from a read model, with participants."""
    flt = flt or ProjectFilter()
    page = page or Page()
    source, source_params = model.source()
    where, where_params = compile_filter(flt)

    columns = ", ".join(f"v.{c.strip()}" for c in REVISION_COLUMNS.split(","))
    sql = (
        f"SELECT {columns} FROM {source} v WHERE {where}"  # noqa: S608
        + _ORDER_BY
        + " LIMIT ? OFFSET ?"
    )
    logger.debug("Resolving %r with %s", model, where)
    cursor = await db.execute(sql, [*source_params, *where_params, page.take, page.skip])
    versions = [row_to_version(row) for row in await cursor.fetchall()]
    return await attach_participants(db, versions)


async def resolve_version(
    db: Database, model: ReadModel, project_id: UUID
) -> ProjectVersion | None:
    """One project's version from a read model, ignoring list filters."""
    source, source_params = model.source()
    sql = f"SELECT {REVISION_COLUMNS} FROM {source} v WHERE v.project_id = ?"  # noqa: S608
    cursor = await db.execute(sql, [*source_params, str(project_id)])
    row = await cursor.fetchone()
    if row is None:
        return None
    [version] = await attach_participants(db, [row_to_version(row)])
    return version


async def attach_participants(
    db: Database, versions: list[ProjectVersion]
) -> list[ProjectVersion]:
    """Load each version's participant snapshot in one extra query."""
    if not versions:
        return versions
    snapshots = await get_snapshots(db, [(v.project_id, v.version) for v in versions])
    return [
        v.model_copy(update={"participants": snapshots.get((v.project_id, v.version), [])})
        for v in versions
    ]


async def get_current(
    db: Database, flt: ProjectFilter | None = None, page: Page | None = None
) -> list[ProjectVersion]:
    """Current versions matching the filter."""
    return await CurrentView().resolve(db, flt, page)


async def get_as_of(
    db: Database, at: datetime, flt: ProjectFilter | None = None, page: Page | None = None
) -> list[ProjectVersion]:
    """Versions in force at ``at`` matching the filter."""
    return await AsOfView(at).resolve(db, flt, page)
