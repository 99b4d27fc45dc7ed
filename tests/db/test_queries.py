"""Tests for query helpers."""

import uuid
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from project_ledger.db.queries import (
    from_iso,
    get_head,
    get_revisions,
    insert_head,
    insert_revision,
    max_version,
    to_iso,
)
from project_ledger.models.project import ProjectState
from tests.helpers import AM, make_state, ts


class TestTimestamps:
    def test_fixed_width_utc(self):
        assert to_iso(ts(2025, 1, 1)) == "2025-01-01T00:00:00.000000+00:00"

    def test_naive_taken_as_utc(self):
        assert to_iso(datetime(2025, 1, 1)) == "2025-01-01T00:00:00.000000+00:00"

    def test_offset_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        assert to_iso(datetime(2025, 1, 1, 2, tzinfo=plus_two)) == to_iso(ts(2025, 1, 1))

    def test_lexical_order_is_chronological(self):
        earlier = to_iso(datetime(2025, 1, 1, 0, 0, 0, 999, tzinfo=UTC))
        later = to_iso(datetime(2025, 1, 1, 0, 0, 1, tzinfo=UTC))
        assert earlier < later

    def test_round_trip(self):
        moment = datetime(2025, 6, 30, 12, 34, 56, 789, tzinfo=UTC)
        assert from_iso(to_iso(moment)) == moment


@pytest.mark.asyncio
async def test_head_and_revision_round_trip(db):
    project_id = uuid.uuid4()
    state = ProjectState.parse(make_state(invoice_month="2025-03", comment="first"))
    async with db.transaction() as tx:
        await insert_head(tx, project_id, ts(2025, 1, 1))
        await insert_revision(
            tx,
            project_id,
            1,
            state,
            effective_at=ts(2025, 1, 2),
            author_id=AM,
            created_at=ts(2025, 1, 1),
        )

    head = await get_head(db, project_id)
    assert head is not None
    assert head.created_at == ts(2025, 1, 1)

    [revision] = await get_revisions(db, project_id)
    assert revision.version == 1
    assert revision.effective_at == ts(2025, 1, 2)
    assert revision.margin == Decimal("10000.00")
    assert revision.invoice_month == "2025-03"
    assert revision.comment == "first"
    assert revision.state == state


@pytest.mark.asyncio
async def test_get_head_missing(db):
    assert await get_head(db, uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_max_version_unknown_project(db):
    assert await max_version(db, uuid.uuid4()) == 0


@pytest.mark.asyncio
async def test_max_version_after_appends(store, db):
    project_id = await store.create_project(make_state())
    await store.append_revision(project_id, make_state())
    assert await max_version(db, project_id) == 2
