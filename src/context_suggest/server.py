"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from context_suggest.config import get_db_path, get_log_level
from context_suggest.db.connection import create_connection
from context_suggest.llm import (
    AnthropicLLMClient,
    LLMProvider,
    ModelTierResolver,
    OllamaLLMClient,
    StructuredOutputGateway,
)
from context_suggest.models.strategy import ModelTier
from context_suggest.store.repositories import (
    SQLiteFileRepository,
    SQLiteProjectRepository,
    SQLitePromptRepository,
)
from context_suggest.store.search import SQLiteFuzzySearch
from context_suggest.suggest.factory import create_suggestion_services
from context_suggest.tools.add_prompt import register_add_prompt
from context_suggest.tools.fetch_partial_content import register_fetch_partial_content
from context_suggest.tools.register_project import register_register_project
from context_suggest.tools.select_directories import register_select_directories
from context_suggest.tools.suggest_files import register_suggest_files
from context_suggest.tools.suggest_prompts import register_suggest_prompts
from context_suggest.tools.sync_project import register_sync_project


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage database connection and LLM client lifecycle."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    providers: dict[str, LLMProvider] = {
        "ollama": OllamaLLMClient(),
        "anthropic": AnthropicLLMClient(),
    }
    tiers = ModelTierResolver()
    gateway = StructuredOutputGateway(providers)

    # Pre-check the providers the tiers resolve to (non-blocking, just logs)
    for tier in ModelTier:
        options = tiers.resolve(tier)
        provider = providers.get(options.provider)
        if provider is not None and await provider.is_available():
            logger.info("Tier %s: %s/%s", tier.value, options.provider, options.model)
        else:
            logger.warning(
                "Tier %s provider %s unavailable, AI stages will fall back to heuristics",
                tier.value,
                options.provider,
            )

    projects = SQLiteProjectRepository(db)
    files = SQLiteFileRepository(db)
    prompts = SQLitePromptRepository(db)
    services = create_suggestion_services(
        projects=projects,
        files=files,
        prompts=prompts,
        file_search=SQLiteFuzzySearch(db, kind="files"),
        prompt_search=SQLiteFuzzySearch(db, kind="prompts"),
        gateway=gateway,
        tiers=tiers,
    )

    try:
        yield {
            "db": db,
            "projects": projects,
            "files": files,
            "prompts": prompts,
            "services": services,
        }
    finally:
        for provider in providers.values():
            await provider.close()
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server suggests the files and stored prompts most relevant to what you \
are about to do inside a registered project.

SETUP:
- register_project: Register a project root once; note the returned id.
- sync_project: Index the project's files. Re-run after large changes.
- add_prompt: Store reusable prompts for the project.

SUGGESTING:
- suggest_files: Ranked files for a request. Use before opening files blindly.
- suggest_prompts: Ranked stored prompts for a request.
- select_directories: Only the directories worth reading, for large projects.
- fetch_partial_content: First lines of files under chosen directories.

Strategies: fast (heuristics only, no model calls), balanced, thorough \
(stronger model, more candidates). Model failures never fail a call; the \
heuristic ranking is returned instead.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "context-suggest",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_register_project(mcp)
    register_sync_project(mcp)
    register_add_prompt(mcp)
    register_suggest_files(mcp)
    register_suggest_prompts(mcp)
    register_select_directories(mcp)
    register_fetch_partial_content(mcp)

    return mcp
