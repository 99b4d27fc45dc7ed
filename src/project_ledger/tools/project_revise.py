"""project_revise MCP tool — append a version to an existing project."""

import logging

from fastmcp import FastMCP
from fastmcp.server.context import Context

from project_ledger.errors import LedgerError
from project_ledger.store.revision_store import RevisionStore
from project_ledger.tools import params as p

logger = logging.getLogger(__name__)


def register_project_revise(mcp: FastMCP) -> None:
    """Register the project_revise tool with the MCP server."""

    @mcp.tool()
    async def project_revise(
        project_id: p.ProjectId,
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
        is_canceled: p.IsCanceled = False,
        effective_at: p.EffectiveAt = None,
        author_id: p.AuthorId = None,
        participants: p.Participants = None,
        owners: p.Owners = None,
        ctx: Context | None = None,
    ) -> str:
        """Record a new version of a project.

        Pass the complete state as of effective_at; nothing is merged from
        the previous version except the participant set, which is copied
        forward when participants and owners are both omitted.
        Back-dated versions are allowed and change as-of reads only for
        instants after their effective_at.
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
                is_canceled=is_canceled,
            )
            pid = p.parse_uuid(project_id, "project_id")
            version = await store.append_revision(
                pid,
                state,
                effective_at=p.parse_datetime(effective_at, "effective_at"),
                author_id=p.parse_optional_uuid(author_id, "author_id"),
                participants=p.build_participants(participants, owners),
            )
        except LedgerError as e:
            return f"Error: {e}"

        return f"Revised project {pid} (v{version})"
