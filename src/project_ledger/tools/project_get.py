"""project_get MCP tool — full detail of one project version."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from project_ledger.errors import LedgerError
from project_ledger.store.version_store import VersionStore
from project_ledger.tools import params as p
from project_ledger.tools.formatters import format_version_full
from project_ledger.views.resolvers import AsOfView

logger = logging.getLogger(__name__)


def register_project_get(mcp: FastMCP) -> None:
    """Register the project_get tool with the MCP server."""

    @mcp.tool()
    async def project_get(
        project_id: p.ProjectId,
        version: Annotated[
            int | None, Field(description="Specific version number (default: current)", ge=1)
        ] = None,
        as_of: p.AsOf = None,
        ctx: Context | None = None,
    ) -> str:
        """Retrieve one project's version with participants.

        Returns the current version by default, a specific version when
        version is given, or the version in force at as_of. Canceled
        projects are returned too.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        versions: VersionStore = ctx.lifespan_context["versions"]

        try:
            pid = p.parse_uuid(project_id, "project_id")
            at = p.parse_datetime(as_of, "as_of")
            if version is not None:
                found = await versions.get_version(pid, version)
            elif at is not None:
                resolved = await AsOfView(at).resolve_one(versions.db, pid)
                if resolved is None:
                    return f"[{pid}] has no version effective at {at.isoformat()}"
                found = resolved
            else:
                found = await versions.get_current_one(pid)
        except LedgerError as e:
            return f"Error: {e}"

        return format_version_full(found)
