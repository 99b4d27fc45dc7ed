"""Shared MCP tool parameters and their conversion to core types."""

from datetime import UTC, datetime
from typing import Annotated, Any
from uuid import UUID

import pydantic
from pydantic import Field

from project_ledger.errors import ValidationError
from project_ledger.models.filters import ProjectFilter
from project_ledger.models.project import Participant

ProjectId = Annotated[str, Field(description="Project id, UUID")]
AmId = Annotated[str, Field(description="Account manager (owner) user id, UUID")]
ClientId = Annotated[str, Field(description="Client id, UUID")]
MarketId = Annotated[int, Field(description="Market dictionary id")]
Name = Annotated[str, Field(description="Project name (1-255 chars)")]
StatusId = Annotated[int, Field(description="Status dictionary id")]
Value = Annotated[str, Field(description="Contract value, decimal string e.g. '10000.00'")]
Margin = Annotated[str, Field(description="Margin, decimal string e.g. '2500.00'")]
Probability = Annotated[
    int,
    Field(
        description=(
            "Win probability 0-100. Replaced by the status's auto-probability if it has one"
        ),
        ge=0,
        le=100,
    ),
]
DueQuarter = Annotated[
    str, Field(description="Due quarter, 'YYYY QN' (e.g. '2025-q1' is accepted)")
]
PaymentQuarter = Annotated[str, Field(description="Payment quarter, 'YYYY QN'")]
InvoiceMonth = Annotated[str | None, Field(description="Invoice month, 'YYYY-MM'")]
VendorId = Annotated[str, Field(description="Vendor id, UUID")]
ArchitectureId = Annotated[int, Field(description="Architecture dictionary id")]
Comment = Annotated[str | None, Field(description="Free-text comment")]
IsCanceled = Annotated[bool, Field(description="Mark the project canceled from this version on")]
EffectiveAt = Annotated[
    str | None,
    Field(description="Business time the version takes effect, ISO-8601 (default: now)"),
]
AuthorId = Annotated[str | None, Field(description="User id recorded as author, UUID")]
Participants = Annotated[
    list[str] | None,
    Field(description="Participant user ids. Omit to copy the previous version's set"),
]
Owners = Annotated[
    list[str] | None,
    Field(description="Participant user ids flagged as owners (added to participants)"),
]


def parse_uuid(raw: str, field: str) -> UUID:
    """Parse a UUID argument."""
    try:
        return UUID(raw)
    except (ValueError, AttributeError, TypeError) as e:
        raise ValidationError(f"{field} is not a valid UUID: {raw!r}") from e


def parse_optional_uuid(raw: str | None, field: str) -> UUID | None:
    """Parse an optional UUID argument; blank means absent."""
    if raw is None or not raw.strip():
        return None
    return parse_uuid(raw.strip(), field)


def parse_datetime(raw: str | None, field: str) -> datetime | None:
    """Parse an ISO-8601 argument; naive values are taken as UTC."""
    if raw is None or not raw.strip():
        return None
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError as e:
        raise ValidationError(f"{field} is not an ISO-8601 timestamp: {raw!r}") from e
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def build_participants(
    participants: list[str] | None, owners: list[str] | None
) -> list[Participant] | None:
    """Combine participant and owner id lists; None when both are empty."""
    if not participants and not owners:
        return None
    result = [Participant(user_id=parse_uuid(p, "participants")) for p in participants or []]
    result.extend(Participant(user_id=parse_uuid(o, "owners"), is_owner=True) for o in owners or [])
    return result


def build_state(
    *,
    am_id: str,
    client_id: str,
    market_id: int,
    name: str,
    status_id: int,
    value: str,
    margin: str,
    probability_percent: int,
    due_quarter: str,
    payment_quarter: str,
    vendor_id: str,
    architecture_id: int,
    invoice_month: str | None = None,
    comment: str | None = None,
    is_canceled: bool = False,
) -> dict[str, Any]:
    """Raw state dict; validation happens in the store."""
    return {
        "am_id": am_id,
        "client_id": client_id,
        "market_id": market_id,
        "name": name,
        "status_id": status_id,
        "value": value,
        "margin": margin,
        "probability_percent": probability_percent,
        "due_quarter": due_quarter,
        "payment_quarter": payment_quarter,
        "vendor_id": vendor_id,
        "architecture_id": architecture_id,
        "invoice_month": invoice_month,
        "comment": comment,
        "is_canceled": is_canceled,
    }


FilterAmId = Annotated[str | None, Field(description="Only projects owned by this account manager")]
FilterParticipantId = Annotated[
    str | None, Field(description="Only projects whose resolved version lists this participant")
]
FilterMarketId = Annotated[int | None, Field(description="Filter by market id")]
FilterStatusId = Annotated[int | None, Field(description="Filter by status id")]
FilterClientId = Annotated[str | None, Field(description="Filter by client id")]
FilterVendorId = Annotated[str | None, Field(description="Filter by vendor id")]
FilterArchitectureId = Annotated[int | None, Field(description="Filter by architecture id")]
FilterDueQuarter = Annotated[str | None, Field(description="Filter by due quarter, 'YYYY QN'")]
FilterInvoiceMonth = Annotated[str | None, Field(description="Filter by invoice month, 'YYYY-MM'")]
HideCanceled = Annotated[bool, Field(description="Exclude canceled projects (default true)")]
Search = Annotated[str | None, Field(description="Case-insensitive substring of the name")]
AsOf = Annotated[
    str | None,
    Field(description="Resolve versions as of this ISO-8601 instant instead of now"),
]


def build_filter(**kwargs: Any) -> ProjectFilter:
    """Build a ProjectFilter from tool arguments, raising the ledger's ValidationError."""
    try:
        return ProjectFilter.model_validate(
            {k: v for k, v in kwargs.items() if not (isinstance(v, str) and not v.strip())}
        )
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic("filter", e) from e
