"""project_list MCP tool — filtered listing of current or as-of versions."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from project_ledger.errors import LedgerError
from project_ledger.models.filters import DEFAULT_TAKE, MAX_TAKE, Page
from project_ledger.tools import params as p
from project_ledger.tools.formatters import format_result_list, format_version_compact
from project_ledger.views.resolvers import AsOfView, CurrentView, ReadModel

logger = logging.getLogger(__name__)


def register_project_list(mcp: FastMCP) -> None:
    """Register the project_list tool with the MCP server."""

    @mcp.tool()
    async def project_list(
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
        skip: Annotated[int, Field(description="Results to skip", ge=0)] = 0,
        take: Annotated[
            int, Field(description=f"Results to return (1-{MAX_TAKE})", ge=1, le=MAX_TAKE)
        ] = DEFAULT_TAKE,
        ctx: Context | None = None,
    ) -> str:
        """List projects, one resolved version each, newest effective first.

        Without as_of, each project shows its current version. With as_of,
        each shows the version in force at that instant, and projects with
        nothing effective by then are left out.
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
            model: ReadModel = AsOfView(at) if at is not None else CurrentView()
            versions = await model.resolve(db, flt, Page(skip=skip, take=take))
        except LedgerError as e:
            return f"Error: {e}"

        header = f"As of {at.isoformat()}" if at is not None else None
        return format_result_list([format_version_compact(v) for v in versions], header=header)
