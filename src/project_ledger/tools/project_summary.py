"""project_summary MCP tool — count and money totals over a filtered view."""

import logging

from fastmcp import FastMCP
from fastmcp.server.context import Context

from project_ledger.errors import LedgerError
from project_ledger.tools import params as p
from project_ledger.tools.formatters import format_summary
from project_ledger.views.aggregation import get_summary

logger = logging.getLogger(__name__)


def register_project_summary(mcp: FastMCP) -> None:
    """Register the project_summary tool with the MCP server."""

    @mcp.tool()
    async def project_summary(
        am_id: p.FilterAmId = None,
        participant_id: p.FilterParticipantId = None,
        market_id: p.FilterMarketId = None,
        status_id: p.FilterStatusId = None,
        client_id: p.FilterClientId = None,
        vendor_id: p.FilterVendorId = None,
        architecture_id: p.FilterArchitectureId = None,
        due_quarter: p.FilterDueQuarter = None,
        invoice_month: p.FilterInvoiceMonth = None,
        hide_canceled: p.HideCanceled = True,
        search: p.Search = None,
        as_of: p.AsOf = None,
        ctx: Context | None = None,
    ) -> str:
        """Totals over the projects project_list would return (unpaged).

        Weighted margin is the exact sum of margin x probability / 100.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        db = ctx.lifespan_context["db"]

        try:
            flt = p.build_filter(
                am_id=am_id,
                participant_id=participant_id,
                market_id=market_id,
                status_id=status_id,
                client_id=client_id,
                vendor_id=vendor_id,
                architecture_id=architecture_id,
                due_quarter=due_quarter,
                invoice_month=invoice_month,
                hide_canceled=hide_canceled,
                search=search,
            )
            at = p.parse_datetime(as_of, "as_of")
            summary = await get_summary(db, flt, as_of=at)
        except LedgerError as e:
            return f"Error: {e}"

        label = f"as of {at.isoformat()}" if at is not None else "current"
        return format_summary(summary, label)
