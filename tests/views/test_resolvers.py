"""Tests for the current and as-of read models."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from project_ledger.models.filters import Page, ProjectFilter
from project_ledger.views.resolvers import (
    AsOfView,
    CurrentView,
    ReadModel,
    compile_filter,
    get_as_of,
    get_current,
)
from tests.helpers import ALICE, BOB, CLIENT, make_state, ts


@pytest.mark.asyncio
async def test_revision_scenario(store, versions, db):
    """Create at 25%, revise to 80%, read current, history and as-of."""
    project_id = await store.create_project(
        make_state(margin=Decimal("10000.00"), probability_percent=25),
        effective_at=ts(2025, 1, 1),
    )
    [v1] = await get_current(db)
    assert v1.weighted_margin == Decimal("2500.00")

    await store.append_revision(
        project_id,
        make_state(margin=Decimal("10000.00"), probability_percent=80),
        effective_at=ts(2025, 2, 1),
    )
    history = await versions.get_history(project_id)
    assert [v.version for v in history] == [1, 2]

    [current] = await get_current(db)
    assert current.version == 2
    assert current.weighted_margin == Decimal("8000.00")

    [between] = await get_as_of(db, ts(2025, 1, 15))
    assert between.version == 1


@pytest.mark.asyncio
async def test_as_of_before_first_effective_excludes(store, db):
    await store.create_project(make_state(), effective_at=ts(2025, 6, 1))
    assert await get_as_of(db, ts(2025, 5, 31)) == []
    assert len(await get_as_of(db, ts(2025, 6, 1))) == 1


@pytest.mark.asyncio
async def test_current_equals_as_of_now(store, db):
    for i in range(3):
        pid = await store.create_project(make_state(name=f"P{i}"), effective_at=ts(2025, 1, i + 1))
        await store.append_revision(pid, make_state(name=f"P{i}b"), effective_at=ts(2025, 3, i + 1))
    current = await get_current(db)
    as_of_now = await get_as_of(db, datetime.now(UTC))
    assert [(v.project_id, v.version) for v in current] == [
        (v.project_id, v.version) for v in as_of_now
    ]


@pytest.mark.asyncio
async def test_future_dated_version_is_current_but_not_as_of_now(store, db):
    pid = await store.create_project(make_state(), effective_at=ts(2025, 1, 1))
    await store.append_revision(
        pid, make_state(status_id=9), effective_at=datetime.now(UTC) + timedelta(days=30)
    )
    assert (await get_current(db))[0].version == 2
    assert (await get_as_of(db, datetime.now(UTC)))[0].version == 1


@pytest.mark.asyncio
async def test_ordering_newest_effective_first(store, db):
    old = await store.create_project(make_state(name="Old"), effective_at=ts(2024, 1, 1))
    new = await store.create_project(make_state(name="New"), effective_at=ts(2025, 1, 1))
    assert [v.project_id for v in await get_current(db)] == [new, old]


@pytest.mark.asyncio
async def test_paging(store, db):
    for i in range(5):
        await store.create_project(make_state(name=f"P{i}"), effective_at=ts(2025, 1, i + 1))
    page = await get_current(db, page=Page(skip=1, take=2))
    assert [v.name for v in page] == ["P3", "P2"]


@pytest.mark.asyncio
async def test_versions_carry_participants(store, db):
    await store.create_project(make_state(), participants=[ALICE])
    [current] = await get_current(db)
    assert current.participant_ids == {ALICE}


class TestFilters:
    @pytest.mark.asyncio
    async def test_hide_canceled_default(self, store, db):
        pid = await store.create_project(make_state(name="Gone"))
        await store.append_revision(pid, make_state(name="Gone", is_canceled=True))
        assert await get_current(db) == []
        shown = await get_current(db, ProjectFilter(hide_canceled=False))
        assert [v.name for v in shown] == ["Gone"]

    @pytest.mark.asyncio
    async def test_canceled_then_restored(self, store, db):
        pid = await store.create_project(make_state(), effective_at=ts(2025, 1, 1))
        await store.append_revision(pid, make_state(is_canceled=True), effective_at=ts(2025, 2, 1))
        await store.append_revision(pid, make_state(), effective_at=ts(2025, 3, 1))
        assert len(await get_current(db)) == 1
        assert await get_as_of(db, ts(2025, 2, 15)) == []

    @pytest.mark.asyncio
    async def test_filter_applies_to_resolved_version_only(self, store, db):
        pid = await store.create_project(make_state(status_id=1), effective_at=ts(2025, 1, 1))
        await store.append_revision(pid, make_state(status_id=2), effective_at=ts(2025, 2, 1))
        assert await get_current(db, ProjectFilter(status_id=1)) == []
        assert len(await get_current(db, ProjectFilter(status_id=2))) == 1
        assert len(await get_as_of(db, ts(2025, 1, 15), ProjectFilter(status_id=1))) == 1

    @pytest.mark.asyncio
    async def test_equality_filters(self, store, db):
        other_client = uuid.uuid4()
        await store.create_project(make_state(name="A", market_id=1, architecture_id=3))
        await store.create_project(
            make_state(name="B", market_id=2, client_id=other_client, due_quarter="2026 Q1")
        )
        assert [v.name for v in await get_current(db, ProjectFilter(market_id=2))] == ["B"]
        assert [v.name for v in await get_current(db, ProjectFilter(architecture_id=3))] == ["A"]
        assert [v.name for v in await get_current(db, ProjectFilter(client_id=CLIENT))] == ["A"]
        assert [v.name for v in await get_current(db, ProjectFilter(client_id=other_client))] == [
            "B"
        ]

    @pytest.mark.asyncio
    async def test_am_and_vendor(self, store, db):
        am, vendor = uuid.uuid4(), uuid.uuid4()
        await store.create_project(make_state(name="Mine", am_id=am, vendor_id=vendor))
        await store.create_project(make_state(name="Theirs"))
        assert [v.name for v in await get_current(db, ProjectFilter(am_id=am))] == ["Mine"]
        assert [v.name for v in await get_current(db, ProjectFilter(vendor_id=vendor))] == [
            "Mine"
        ]

    @pytest.mark.asyncio
    async def test_due_quarter_filter_normalized(self, store, db):
        await store.create_project(make_state(due_quarter="2025 Q3"))
        assert len(await get_current(db, ProjectFilter(due_quarter="2025-q3"))) == 1
        assert await get_current(db, ProjectFilter(due_quarter="2025 Q4")) == []

    @pytest.mark.asyncio
    async def test_invoice_month_filter(self, store, db):
        await store.create_project(make_state(name="March", invoice_month="2025-03"))
        await store.create_project(make_state(name="None"))
        found = await get_current(db, ProjectFilter(invoice_month=" 2025-03 "))
        assert [v.name for v in found] == ["March"]

    @pytest.mark.asyncio
    async def test_search_case_insensitive(self, store, db):
        await store.create_project(make_state(name="Cloud Migration"))
        await store.create_project(make_state(name="Data Lake"))
        found = await get_current(db, ProjectFilter(search="MIGRAT"))
        assert [v.name for v in found] == ["Cloud Migration"]

    @pytest.mark.asyncio
    async def test_search_folds_non_ascii_case(self, store, db):
        await store.create_project(make_state(name="ŁÓDŹ Expansion"))
        await store.create_project(make_state(name="Kraków Rollout"))
        found = await get_current(db, ProjectFilter(search="łódź"))
        assert [v.name for v in found] == ["ŁÓDŹ Expansion"]
        found = await get_current(db, ProjectFilter(search="KRAKÓW"))
        assert [v.name for v in found] == ["Kraków Rollout"]

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, store, db):
        await store.create_project(make_state(name="100% uptime"))
        await store.create_project(make_state(name="1000 users"))
        assert [v.name for v in await get_current(db, ProjectFilter(search="0%"))] == [
            "100% uptime"
        ]
        assert await get_current(db, ProjectFilter(search="_")) == []

    @pytest.mark.asyncio
    async def test_participant_membership_uses_resolved_snapshot(self, store, db):
        pid = await store.create_project(
            make_state(), participants=[ALICE], effective_at=ts(2025, 1, 1)
        )
        await store.append_revision(
            pid, make_state(), participants=[BOB], effective_at=ts(2025, 2, 1)
        )
        assert await get_current(db, ProjectFilter(participant_id=ALICE)) == []
        assert len(await get_current(db, ProjectFilter(participant_id=BOB))) == 1
        as_of_jan = await get_as_of(db, ts(2025, 1, 15), ProjectFilter(participant_id=ALICE))
        assert len(as_of_jan) == 1


class TestCompileFilter:
    def test_empty_filter(self):
        where, params = compile_filter(ProjectFilter(hide_canceled=False))
        assert where == "1=1"
        assert params == []

    def test_default_hides_canceled(self):
        where, params = compile_filter(ProjectFilter())
        assert where == "v.is_canceled = 0"
        assert params == []

    def test_params_follow_clause_order(self):
        where, params = compile_filter(ProjectFilter(market_id=4, search="x", hide_canceled=False))
        assert where.index("market_id") < where.index("LIKE")
        assert params == [4, "%x%"]


class TestReadModels:
    def test_both_satisfy_protocol(self):
        assert isinstance(CurrentView(), ReadModel)
        assert isinstance(AsOfView(ts(2025)), ReadModel)

    def test_as_of_source_binds_instant(self):
        _, params = AsOfView(ts(2025, 1, 1)).source()
        assert params == ["2025-01-01T00:00:00.000000+00:00"]

    @pytest.mark.asyncio
    async def test_resolve_one_ignores_canceled_filter(self, store, db):
        pid = await store.create_project(make_state(), effective_at=ts(2025, 1, 1))
        await store.append_revision(pid, make_state(is_canceled=True), effective_at=ts(2025, 2, 1))
        current = await CurrentView().resolve_one(db, pid)
        assert current is not None
        assert current.is_canceled is True
        earlier = await AsOfView(ts(2025, 1, 15)).resolve_one(db, pid)
        assert earlier is not None
        assert earlier.version == 1
        assert await AsOfView(ts(2024, 1, 1)).resolve_one(db, pid) is None
