"""select_directories MCP tool: pick the directories worth reading for a request."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.models.strategy import ModelTier
from context_suggest.models.suggestion import DirectorySelectionOptions
from context_suggest.store.repositories import SQLiteFileRepository, SQLiteProjectRepository
from context_suggest.suggest.directories import build_file_tree
from context_suggest.suggest.factory import SuggestionServices
from context_suggest.tools.formatters import format_directory_result

logger = logging.getLogger(__name__)


def register_select_directories(mcp: FastMCP) -> None:
    """Register the select_directories tool with the MCP server."""

    @mcp.tool()
    async def select_directories(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        query: Annotated[str, Field(description="What you are working on, in plain words")],
        max_directories: Annotated[
            int, Field(description="Maximum directories to return", ge=1, le=50)
        ] = 5,
        min_confidence: Annotated[
            float, Field(description="Drop picks below this confidence", ge=0.0, le=1.0)
        ] = 0.3,
        ai_model: Annotated[
            ModelTier, Field(description="Model tier: medium or high")
        ] = ModelTier.MEDIUM,
        user_context: Annotated[str | None, Field(description="Extra context")] = None,
        ctx: Context | None = None,
    ) -> str:
        """Select the project directories most likely to hold files for a request.

        Falls back to the top-level directories when the model is unavailable.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        services: SuggestionServices = lifespan["services"]
        projects: SQLiteProjectRepository = lifespan["projects"]
        files: SQLiteFileRepository = lifespan["files"]

        project = await projects.get(project_id)
        if project is None:
            return f"Error: project {project_id} not found"

        stored = await files.get_by_project(project_id)
        tree = build_file_tree((f.path for f in stored), root_name=project.name)
        options = DirectorySelectionOptions(
            max_directories=max_directories,
            min_confidence=min_confidence,
            ai_model=ai_model,
            user_context=user_context,
        )
        result = await services.directories.select_relevant_directories(tree, query, options)
        return format_directory_result(result)
