"""project_create MCP tool — start a new project at version 1."""

import logging

from fastmcp import FastMCP
from fastmcp.server.context import Context

from project_ledger.errors import LedgerError
from project_ledger.store.revision_store import RevisionStore
from project_ledger.tools import params as p

logger = logging.getLogger(__name__)


def register_project_create(mcp: FastMCP) -> None:
    """Register the project_create tool with the MCP server."""

    @mcp.tool()
    async def project_create(
        am_id: p.AmId,
        client_id: p.ClientId,
        market_id: p.MarketId,
        name: p.Name,
        status_id: p.StatusId,
        value: p.Value,
        margin: p.Margin,
        probability_percent: p.Probability,
        due_quarter: p.DueQuarter,
        payment_quarter: p.PaymentQuarter,
        vendor_id: p.VendorId,
        architecture_id: p.ArchitectureId,
        invoice_month: p.InvoiceMonth = None,
        comment: p.Comment = None,
        effective_at: p.EffectiveAt = None,
        author_id: p.AuthorId = None,
        participants: p.Participants = None,
        owners: p.Owners = None,
        ctx: Context | None = None,
    ) -> str:
        """Create a project and its first version.

        The project gets a permanent id; version 1 records the given state.
        Later changes go through project_revise, which appends versions
        and never edits earlier ones.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: RevisionStore = ctx.lifespan_context["store"]

        try:
            state = p.build_state(
                am_id=am_id,
                client_id=client_id,
                market_id=market_id,
                name=name,
                status_id=status_id,
                value=value,
                margin=margin,
                probability_percent=probability_percent,
                due_quarter=due_quarter,
                payment_quarter=payment_quarter,
                vendor_id=vendor_id,
                architecture_id=architecture_id,
                invoice_month=invoice_month,
                comment=comment,
            )
            project_id = await store.create_project(
                state,
                effective_at=p.parse_datetime(effective_at, "effective_at"),
                author_id=p.parse_optional_uuid(author_id, "author_id"),
                participants=p.build_participants(participants, owners),
            )
        except LedgerError as e:
            return f"Error: {e}"

        return f"Created project {project_id} (v1)"
