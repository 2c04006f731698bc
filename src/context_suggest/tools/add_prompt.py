"""add_prompt MCP tool: store a reusable prompt for a project."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.store.repositories import SQLiteProjectRepository, SQLitePromptRepository
from context_suggest.tools.formatters import format_prompt

logger = logging.getLogger(__name__)


def register_add_prompt(mcp: FastMCP) -> None:
    """Register the add_prompt tool with the MCP server."""

    @mcp.tool()
    async def add_prompt(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        title: Annotated[str, Field(description="Short title describing what the prompt does")],
        content: Annotated[str, Field(description="Full prompt text")],
        tags: Annotated[
            list[str] | None, Field(description="Freeform tags for categorization")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Store a reusable prompt so suggest_prompts can find it later."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        projects: SQLiteProjectRepository = lifespan["projects"]
        prompts: SQLitePromptRepository = lifespan["prompts"]

        if not title.strip():
            return "Error: title is required"
        if await projects.get(project_id) is None:
            return f"Error: project {project_id} not found"

        prompt = await prompts.create(project_id, title.strip(), content, tags)
        return f"Created {format_prompt(prompt)}"
