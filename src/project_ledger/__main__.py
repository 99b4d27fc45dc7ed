"""Entry point for the project-ledger MCP server."""

from project_ledger.server import create_server


def main() -> None:
    """Run the project-ledger MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
