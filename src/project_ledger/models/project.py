"""Project state, version and participant models."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

import pydantic
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from project_ledger.errors import BucketFormatError, ValidationError
from project_ledger.normalize.buckets import clean_quarter, clean_year_month

CENT = Decimal("0.01")
# numeric(18,2): sixteen integer digits
MAX_AMOUNT = Decimal("9999999999999999.99")


def quantize_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a cent-precision amount to integer cents for storage."""
    return int(quantize_money(amount) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert stored integer cents back to a 2-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def compute_weighted_margin(margin: Decimal, probability_percent: int) -> Decimal:
    """Margin weighted by probability, rounded half-up to cents for display."""
    return quantize_money(margin * probability_percent / 100)


class Participant(BaseModel):
    """One actor in a version's participant snapshot."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    is_owner: bool = False


class ProjectState(BaseModel):
    """The business state written by one revision.

    Bucket fields are normalized before they are validated, so
    ``"2025-q 3"`` is accepted and stored as ``"2025 Q3"``.
    """

    model_config = ConfigDict(frozen=True)

    am_id: UUID
    client_id: UUID
    market_id: int
    name: str = Field(min_length=1, max_length=255)
    status_id: int

    value: Decimal
    margin: Decimal
    probability_percent: int = Field(ge=0, le=100)

    due_quarter: str
    invoice_month: str | None = None
    payment_quarter: str

    vendor_id: UUID
    architecture_id: int

    comment: str | None = None
    is_canceled: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("due_quarter", "payment_quarter", mode="before")
    @classmethod
    def _clean_quarter(cls, v: Any, info: pydantic.ValidationInfo) -> str:
        if v is not None and not isinstance(v, str):
            raise BucketFormatError(info.field_name or "quarter", repr(v), "YYYY QN")
        return clean_quarter(v, info.field_name or "quarter")

    @field_validator("invoice_month", mode="before")
    @classmethod
    def _clean_month(cls, v: Any, info: pydantic.ValidationInfo) -> str | None:
        if v is not None and not isinstance(v, str):
            raise BucketFormatError(info.field_name or "month", repr(v), "YYYY-MM")
        return clean_year_month(v, info.field_name or "month")

    @field_validator("value", "margin")
    @classmethod
    def _cents(cls, v: Decimal) -> Decimal:
        v = quantize_money(v)
        if abs(v) > MAX_AMOUNT:
            raise ValueError(f"amount {v} exceeds {MAX_AMOUNT}")
        return v

    @classmethod
    def parse(cls, data: "ProjectState | dict[str, Any]") -> "ProjectState":
        """Build a state from raw input, raising the ledger's ValidationError."""
        if isinstance(data, ProjectState):
            return data
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic("project state", e) from e

    @computed_field  # type: ignore[prop-decorator]
    @property
    def weighted_margin(self) -> Decimal:
        """margin x probability / 100, rounded to cents."""
        return compute_weighted_margin(self.margin, self.probability_percent)


class ProjectHead(BaseModel):
    """The permanent identity of a project."""

    id: UUID
    created_at: datetime


class ProjectVersion(ProjectState):
    """One immutable, effective-dated version of a project."""

    project_id: UUID
    version: int = Field(ge=1)
    effective_at: datetime
    author_id: UUID
    created_at: datetime
    participants: list[Participant] = Field(default_factory=list)

    @property
    def participant_ids(self) -> set[UUID]:
        """Actor ids in this version's snapshot."""
        return {p.user_id for p in self.participants}

    @property
    def state(self) -> ProjectState:
        """The business state without version metadata."""
        return ProjectState.model_validate(
            self.model_dump(include=set(ProjectState.model_fields))
        )
