"""Summary aggregates over a read model."""

import logging
from datetime import datetime
from decimal import Decimal

from project_ledger.db.backend import Database
from project_ledger.models.filters import ProjectFilter, ProjectSummary
from project_ledger.views.resolvers import AsOfView, CurrentView, ReadModel, compile_filter

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")
_FOUR_PLACES = Decimal("0.0001")


async def aggregate(
    db: Database, model: ReadModel, flt: ProjectFilter | None = None
) -> ProjectSummary:
    """Count and sum the versions a read model resolves under a filter.

    The filter runs in SQL; the sums run in Python over the selected
    integer cents, so totals past the 64-bit range of the database's
    integer arithmetic stay exact. The weighted margin is summed as
    ``margin_cents * probability_percent`` and divided once at the end,
    so no per-row rounding leaks into the total.
    """
    flt = flt or ProjectFilter()
    source, source_params = model.source()
    where, where_params = compile_filter(flt)
    sql = (
        "SELECT v.value_cents, v.margin_cents, v.probability_percent"
        f" FROM {source} v WHERE {where}"  # noqa: S608
    )
    cursor = await db.execute(sql, [*source_params, *where_params])

    count = value_cents = margin_cents = weighted = 0
    for row in await cursor.fetchall():
        count += 1
        value_cents += int(row["value_cents"])
        margin_cents += int(row["margin_cents"])
        weighted += int(row["margin_cents"]) * int(row["probability_percent"])

    summary = ProjectSummary(
        count=count,
        value_sum=(Decimal(value_cents) / 100).quantize(_TWO_PLACES),
        margin_sum=(Decimal(margin_cents) / 100).quantize(_TWO_PLACES),
        weighted_margin_sum=(Decimal(weighted) / 10000).quantize(_FOUR_PLACES),
    )
    logger.debug("Aggregated %r: %d project(s)", model, summary.count)
    return summary


async def get_summary(
    db: Database, flt: ProjectFilter | None = None, as_of: datetime | None = None
) -> ProjectSummary:
    """Aggregate the current view, or the as-of view when ``as_of`` is given."""
    model: ReadModel = AsOfView(as_of) if as_of is not None else CurrentView()
    return await aggregate(db, model, flt)
