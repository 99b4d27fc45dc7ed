"""Test data helpers shared across test modules."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

AM = uuid.UUID("11111111-1111-1111-1111-111111111111")
CLIENT = uuid.UUID("22222222-2222-2222-2222-222222222222")
VENDOR = uuid.UUID("33333333-3333-3333-3333-333333333333")
ALICE = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
BOB = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")

# Status 7 ("won") forces 100%
AUTO_STATUS = 7


def ts(year: int, month: int = 1, day: int = 1, hour: int = 0) -> datetime:
    """UTC timestamp shorthand."""
    return datetime(year, month, day, hour, tzinfo=UTC)


def make_state(**overrides: Any) -> dict[str, Any]:
    """A valid raw project state, with overrides."""
    state: dict[str, Any] = {
        "am_id": AM,
        "client_id": CLIENT,
        "market_id": 1,
        "name": "Data platform",
        "status_id": 1,
        "value": Decimal("40000.00"),
        "margin": Decimal("10000.00"),
        "probability_percent": 25,
        "due_quarter": "2025 Q1",
        "payment_quarter": "2025 Q2",
        "invoice_month": None,
        "vendor_id": VENDOR,
        "architecture_id": 1,
        "comment": None,
    }
    state.update(overrides)
    return state
