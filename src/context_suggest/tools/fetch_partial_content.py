"""fetch_partial_content MCP tool: read the first lines of files under directories."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_suggest.errors import SuggestionError
from context_suggest.models.partial import FetchOptions
from context_suggest.suggest.factory import SuggestionServices
from context_suggest.tools.formatters import format_partial_result

logger = logging.getLogger(__name__)


def register_fetch_partial_content(mcp: FastMCP) -> None:
    """Register the fetch_partial_content tool with the MCP server."""

    @mcp.tool()
    async def fetch_partial_content(
        project_id: Annotated[int, Field(description="Project id from register_project")],
        directories: Annotated[
            list[str], Field(description="Project-relative directories, e.g. ['src/auth']")
        ],
        line_count: Annotated[
            int, Field(description="Lines to read from the top of each file", ge=1, le=2000)
        ] = 50,
        include_extensions: Annotated[
            list[str] | None, Field(description="Only these extensions, e.g. ['.ts', '.py']")
        ] = None,
        exclude_extensions: Annotated[
            list[str] | None, Field(description="Skip these extensions")
        ] = None,
        max_total_files: Annotated[
            int, Field(description="Maximum files returned across all directories", ge=1)
        ] = 100,
        max_files_per_directory: Annotated[
            int, Field(description="Maximum files returned per directory", ge=1)
        ] = 20,
        max_file_size: Annotated[
            int, Field(description="Skip files larger than this many bytes", ge=1)
        ] = 1024 * 1024,
        ctx: Context | None = None,
    ) -> str:
        """Return the first lines of every file under the given project directories.

        Directories must stay inside the project root; absolute paths and
        ``..`` escapes are rejected before anything is read.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        services: SuggestionServices = ctx.lifespan_context["services"]

        options = FetchOptions(
            line_count=line_count,
            include_extensions=include_extensions,
            exclude_extensions=exclude_extensions,
            max_total_files=max_total_files,
            max_files_per_directory=max_files_per_directory,
            max_file_size=max_file_size,
        )
        try:
            result = await services.fetcher.fetch_partial_content(project_id, directories, options)
        except SuggestionError as e:
            return f"Error: {e}"
        return format_partial_result(result)
