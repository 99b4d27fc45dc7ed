"""Tests for version history reads."""

import uuid

import pytest

from project_ledger.errors import NotFoundError
from tests.helpers import ALICE, BOB, make_state, ts


@pytest.mark.asyncio
async def test_history_ascending_with_participants(store, versions):
    project_id = await store.create_project(make_state(), participants=[ALICE])
    await store.append_revision(project_id, make_state(), participants=[BOB])
    history = await versions.get_history(project_id)
    assert [v.version for v in history] == [1, 2]
    assert history[0].participant_ids == {ALICE}
    assert history[1].participant_ids == {BOB}


@pytest.mark.asyncio
async def test_history_unknown_project(versions):
    with pytest.raises(NotFoundError):
        await versions.get_history(uuid.uuid4())


@pytest.mark.asyncio
async def test_get_version(store, versions):
    project_id = await store.create_project(make_state(name="Before"))
    await store.append_revision(project_id, make_state(name="After"))
    assert (await versions.get_version(project_id, 1)).name == "Before"
    assert (await versions.get_version(project_id, 2)).name == "After"


@pytest.mark.asyncio
async def test_get_version_missing(store, versions):
    project_id = await store.create_project(make_state())
    with pytest.raises(NotFoundError, match="no version 5"):
        await versions.get_version(project_id, 5)


@pytest.mark.asyncio
async def test_current_one_latest_effective(store, versions):
    project_id = await store.create_project(make_state(), effective_at=ts(2025, 1, 1))
    await store.append_revision(project_id, make_state(status_id=2), effective_at=ts(2025, 2, 1))
    current = await versions.get_current_one(project_id)
    assert current.version == 2
    assert current.status_id == 2


@pytest.mark.asyncio
async def test_current_one_tie_broken_by_version(store, versions):
    project_id = await store.create_project(make_state(), effective_at=ts(2025, 1, 1))
    await store.append_revision(project_id, make_state(status_id=2), effective_at=ts(2025, 1, 1))
    assert (await versions.get_current_one(project_id)).version == 2


@pytest.mark.asyncio
async def test_current_one_includes_canceled(store, versions):
    project_id = await store.create_project(make_state())
    await store.append_revision(project_id, make_state(is_canceled=True))
    assert (await versions.get_current_one(project_id)).is_canceled is True


@pytest.mark.asyncio
async def test_current_one_unknown(versions):
    with pytest.raises(NotFoundError):
        await versions.get_current_one(uuid.uuid4())
