"""End-to-end tests for the project_* MCP tools over the in-memory client."""

from unittest.mock import patch

import pytest
import pytest_asyncio
from fastmcp import Client

from project_ledger.server import create_server
from tests.helpers import ALICE, AM, BOB, CLIENT, VENDOR

STATE = {
    "am_id": str(AM),
    "client_id": str(CLIENT),
    "market_id": 1,
    "name": "Data platform",
    "status_id": 1,
    "value": "40000.00",
    "margin": "10000.00",
    "probability_percent": 25,
    "due_quarter": "2025-q1",
    "payment_quarter": "2025 Q2",
    "vendor_id": str(VENDOR),
    "architecture_id": 1,
}


@pytest_asyncio.fixture
async def client(tmp_path):
    """MCP client connected to a server over a temporary SQLite file."""
    env = {"PL_DB_PATH": str(tmp_path / "ledger.db"), "PL_STATUS_PROBABILITIES": "7=100"}
    with patch.dict("os.environ", env, clear=True):
        async with Client(create_server()) as c:
            yield c


async def _call(client, tool: str, /, **arguments) -> str:
    result = await client.call_tool(tool, arguments)
    return result.content[0].text


async def _create(client, **overrides) -> str:
    text = await _call(client, "project_create", **{**STATE, **overrides})
    assert text.startswith("Created project "), text
    return text.split()[2]


@pytest.mark.asyncio
async def test_create_and_get(client):
    project_id = await _create(client, owners=[str(ALICE)], effective_at="2025-01-01T00:00:00")
    text = await _call(client, "project_get", project_id=project_id)
    assert f"[{project_id}] v1 | Data platform" in text
    assert "due 2025 Q1" in text
    assert f"participants: {ALICE}*" in text


@pytest.mark.asyncio
async def test_revise_and_history(client):
    project_id = await _create(client, effective_at="2025-01-01T00:00:00")
    text = await _call(
        client,
        "project_revise",
        project_id=project_id,
        **{**STATE, "probability_percent": 80},
        effective_at="2025-02-01T00:00:00",
    )
    assert text == f"Revised project {project_id} (v2)"

    history = await _call(client, "project_history", project_id=project_id)
    assert "2 version(s)" in history
    assert "v1 2025-01-01" in history
    assert "v2 2025-02-01" in history

    as_of = await _call(client, "project_get", project_id=project_id, as_of="2025-01-15")
    assert "v1 |" in as_of
    specific = await _call(client, "project_get", project_id=project_id, version=2)
    assert "@ 80% = 8,000.00" in specific


@pytest.mark.asyncio
async def test_revise_unknown_project(client):
    text = await _call(
        client, "project_revise", project_id="00000000-0000-0000-0000-00000000abcd", **STATE
    )
    assert text.startswith("Error: Project")
    assert "not found" in text


@pytest.mark.asyncio
async def test_create_invalid_quarter(client):
    text = await _call(client, "project_create", **{**STATE, "due_quarter": "2025 Q9"})
    assert text.startswith("Error: Invalid project state")
    assert "due_quarter" in text


@pytest.mark.asyncio
async def test_list_filters_and_as_of(client):
    await _create(client, name="Alpha", participants=[str(BOB)], effective_at="2025-01-01")
    await _create(client, name="Beta", effective_at="2025-03-01")

    everything = await _call(client, "project_list")
    assert "2 result(s)" in everything
    assert everything.index("Beta") < everything.index("Alpha")

    by_participant = await _call(client, "project_list", participant_id=str(BOB))
    assert "1 result(s)" in by_participant
    assert "Alpha" in by_participant

    early = await _call(client, "project_list", as_of="2025-02-01T00:00:00")
    assert early.startswith("As of 2025-02-01")
    assert "Alpha" in early
    assert "Beta" not in early

    none = await _call(client, "project_list", search="gamma")
    assert none == "No results found."


@pytest.mark.asyncio
async def test_list_bad_as_of(client):
    text = await _call(client, "project_list", as_of="last week")
    assert text.startswith("Error: as_of")


@pytest.mark.asyncio
async def test_summary(client):
    await _create(client, margin="10000.00", probability_percent=25)
    await _create(client, margin="1000.00", probability_percent=40, status_id=7)
    text = await _call(client, "project_summary")
    assert text.startswith("2 project(s) (current)")
    assert "margin: 11,000.00" in text
    # Status 7 forces 100%
    assert "weighted margin: 3,500.0000" in text


@pytest.mark.asyncio
async def test_history_unknown(client):
    text = await _call(
        client, "project_history", project_id="00000000-0000-0000-0000-00000000abcd"
    )
    assert text.startswith("Error:")
