"""suggest_files MCP tool: rank a project's files for a request."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.errors import SuggestionError
from context_suggest.models.strategy import Strategy, recommend_strategy
from context_suggest.models.suggestion import SuggestionOptions
from context_suggest.store.repositories import SQLiteFileRepository
from context_suggest.suggest.factory import SuggestionServices
from context_suggest.tools.formatters import format_suggestions

logger = logging.getLogger(__name__)


def register_suggest_files(mcp: FastMCP) -> None:
    """Register the suggest_files tool with the MCP server."""

    @mcp.tool()
    async def suggest_files(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        query: Annotated[str, Field(description="What you are working on, in plain words")],
        strategy: Annotated[
            Strategy | None,
            Field(
                description=(
                    "fast (heuristics only), balanced, or thorough. "
                    "Defaults to a recommendation based on project size"
                )
            ),
        ] = None,
        max_results: Annotated[
            int, Field(description="Maximum number of files to return", ge=1, le=100)
        ] = 10,
        user_context: Annotated[
            str | None, Field(description="Extra context such as the current file or task")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Suggest the files most relevant to a request inside a project.

        Combines keyword relevance, fuzzy search, path heuristics and (for
        balanced and thorough) an AI rerank. Large projects first narrow down
        to relevant directories and rank files from their first lines.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        services: SuggestionServices = lifespan["services"]
        files: SQLiteFileRepository = lifespan["files"]

        stored = await files.get_by_project(project_id)
        chosen = strategy or recommend_strategy(len(stored))
        options = SuggestionOptions(
            strategy=chosen, max_results=max_results, user_context=user_context
        )
        try:
            response = await services.files.suggest_items_for_query(project_id, query, options)
        except SuggestionError as e:
            return f"Error: {e}"

        labels = {f.id: f.path for f in stored}
        return format_suggestions(response, labels)
