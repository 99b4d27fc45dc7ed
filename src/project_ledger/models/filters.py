"""Filter and summary models shared by every read model."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from project_ledger.normalize.buckets import normalize_quarter, normalize_year_month

MAX_TAKE = 500
DEFAULT_TAKE = 100


class ProjectFilter(BaseModel):
    """Predicate over a resolved version and its participant snapshot."""

    am_id: UUID | None = None
    participant_id: UUID | None = None
    market_id: int | None = None
    status_id: int | None = None
    client_id: UUID | None = None
    vendor_id: UUID | None = None
    architecture_id: int | None = None
    due_quarter: str | None = None
    invoice_month: str | None = None
    hide_canceled: bool = True
    search: str | None = None

    @field_validator("due_quarter", mode="before")
    @classmethod
    def _normalize_quarter(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        return normalize_quarter(str(v))

    @field_validator("invoice_month", mode="before")
    @classmethod
    def _normalize_month(cls, v: str | None) -> str | None:
        return normalize_year_month(v)

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class Page(BaseModel):
    """Offset pagination for list reads."""

    skip: int = Field(default=0, ge=0)
    take: int = DEFAULT_TAKE

    @field_validator("skip", mode="before")
    @classmethod
    def _floor_skip(cls, v: int) -> int:
        return max(0, int(v))

    @field_validator("take", mode="before")
    @classmethod
    def _clamp_take(cls, v: int) -> int:
        return min(max(int(v), 1), MAX_TAKE)


class ProjectSummary(BaseModel):
    """Aggregates over one read model.

    ``weighted_margin_sum`` is the exact sum of unrounded
    margin x probability / 100, not a sum of rounded row values.
    """

    count: int = 0
    value_sum: Decimal = Decimal("0.00")
    margin_sum: Decimal = Decimal("0.00")
    weighted_margin_sum: Decimal = Decimal("0.0000")
