"""project_history MCP tool — every version of a project, oldest first."""

import logging

from fastmcp import FastMCP
from fastmcp.server.context import Context

from project_ledger.errors import LedgerError
from project_ledger.store.version_store import VersionStore
from project_ledger.tools import params as p
from project_ledger.tools.formatters import format_history_line

logger = logging.getLogger(__name__)


def register_project_history(mcp: FastMCP) -> None:
    """Register the project_history tool with the MCP server."""

    @mcp.tool()
    async def project_history(
        project_id: p.ProjectId,
        ctx: Context | None = None,
    ) -> str:
        """List all versions of a project in version order.

        Version numbers are gap-free from 1. Effective times need not be
        increasing: a back-dated revision still gets the next number.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        versions: VersionStore = ctx.lifespan_context["versions"]

        try:
            history = await versions.get_history(p.parse_uuid(project_id, "project_id"))
        except LedgerError as e:
            return f"Error: {e}"

        lines = [f"{history[-1].name} ({len(history)} version(s))"]
        lines.extend(f"  {format_history_line(v)}" for v in history)
        return "\n".join(lines)
