"""register_project MCP tool: register a project root and list projects."""

import logging
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.store.repositories import SQLiteProjectRepository
from context_suggest.tools.formatters import format_project

logger = logging.getLogger(__name__)


def register_register_project(mcp: FastMCP) -> None:
    """Register the register_project and list_projects tools with the MCP server."""

    @mcp.tool()
    async def register_project(
        path: Annotated[str, Field(description="Absolute path of the project root directory")],
        name: Annotated[
            str | None, Field(description="Display name (defaults to the directory name)")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Register a project directory so its files and prompts can be suggested.

        Re-registering an already known path returns the existing project.
        Run sync_project afterwards to index the project's files.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        projects: SQLiteProjectRepository = ctx.lifespan_context["projects"]

        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            return f"Error: {root} is not a directory"

        project = await projects.create(name or root.name, str(root))
        return f"Registered {format_project(project)}"

    @mcp.tool()
    async def list_projects(ctx: Context | None = None) -> str:
        """List every registered project with its id."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        projects: SQLiteProjectRepository = ctx.lifespan_context["projects"]

        registered = await projects.list()
        if not registered:
            return "No projects registered."
        return "\n".join(format_project(p) for p in registered)
