"""Entry point for the context-suggest MCP server."""

from context_suggest.server import create_server


def main() -> None:
    """Run the context-suggest MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
