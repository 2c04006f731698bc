"""suggest_prompts MCP tool: rank a project's stored prompts for a request."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.errors import SuggestionError
from context_suggest.models.strategy import Strategy
from context_suggest.models.suggestion import SuggestionOptions
from context_suggest.store.repositories import SQLitePromptRepository
from context_suggest.suggest.factory import SuggestionServices
from context_suggest.tools.formatters import format_suggestions

logger = logging.getLogger(__name__)


def register_suggest_prompts(mcp: FastMCP) -> None:
    """Register the suggest_prompts tool with the MCP server."""

    @mcp.tool()
    async def suggest_prompts(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        query: Annotated[str, Field(description="What you want to do, in plain words")],
        strategy: Annotated[
            Strategy, Field(description="fast (heuristics only), balanced, or thorough")
        ] = Strategy.BALANCED,
        max_results: Annotated[
            int, Field(description="Maximum number of prompts to return", ge=1, le=100)
        ] = 10,
        user_context: Annotated[
            str | None, Field(description="Extra context such as the current task")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Suggest stored prompts relevant to a request.

        With no matching prompt, returns the most recently updated ones.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        services: SuggestionServices = lifespan["services"]
        prompts: SQLitePromptRepository = lifespan["prompts"]

        options = SuggestionOptions(
            strategy=strategy, max_results=max_results, user_context=user_context
        )
        try:
            response = await services.prompts.suggest_items_for_query(project_id, query, options)
        except SuggestionError as e:
            return f"Error: {e}"

        labels = {p.id: p.title for p in await prompts.get_by_project(project_id)}
        return format_suggestions(response, labels)
