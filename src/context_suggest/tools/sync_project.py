"""sync_project MCP tool: index a project's files."""

import logging
from typing import Annotated

import aiosqlite
from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.store.repositories import SQLiteProjectRepository
from context_suggest.store.sync import sync_project_files
from context_suggest.tools.formatters import format_sync_report

logger = logging.getLogger(__name__)


def register_sync_project(mcp: FastMCP) -> None:
    """Register the sync_project tool with the MCP server."""

    @mcp.tool()
    async def sync_project(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        ctx: Context | None = None,
    ) -> str:
        """Scan the project directory and refresh the stored file index.

        Skips ignored directories, lockfiles, secrets, binaries and oversized
        files. Files that disappeared from disk are removed from the index.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        db: aiosqlite.Connection = lifespan["db"]
        projects: SQLiteProjectRepository = lifespan["projects"]

        project = await projects.get(project_id)
        if project is None:
            return f"Error: project {project_id} not found"

        report = await sync_project_files(db, project)
        return format_sync_report(project, report)
