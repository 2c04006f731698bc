"""SQLite implementations of the repository protocols."""

import logging

import aiosqlite

from context_suggest.db.queries import (
    get_files_by_project,
    get_project,
    get_prompts_by_project,
    insert_project,
    insert_prompt,
    list_projects,
)
from context_suggest.models.items import FileItem, Project, PromptItem

logger = logging.getLogger(__name__)


class SQLiteProjectRepository:
    """Registered projects stored in the ``projects`` table."""

    def __init__(self, db: aiosqlite.Connection):
        """Initialize with a database connection."""
        self.db = db

    async def get(self, project_id: int) -> Project | None:
        return await get_project(self.db, project_id)

    async def create(self, name: str, path: str) -> Project:
        """Register a project root. Re-registering a path returns the existing project."""
        project = await insert_project(self.db, name, path)
        logger.info("Registered project %d: %s (%s)", project.id, project.name, project.path)
        return project

    async def list(self) -> list[Project]:
        return await list_projects(self.db)


class SQLiteFileRepository:
    """Snapshot reads of the ``project_files`` table."""

    def __init__(self, db: aiosqlite.Connection):
        """Initialize with a database connection."""
        self.db = db

    async def get_by_project(self, project_id: int) -> list[FileItem]:
        return await get_files_by_project(self.db, project_id)


class SQLitePromptRepository:
    """Prompts stored in the ``prompts`` table."""

    def __init__(self, db: aiosqlite.Connection):
        """Initialize with a database connection."""
        self.db = db

    async def get_by_project(self, project_id: int) -> list[PromptItem]:
        return await get_prompts_by_project(self.db, project_id)

    async def create(
        self,
        project_id: int,
        title: str,
        content: str,
        tags: list[str] | None = None,
    ) -> PromptItem:
        """Store a new prompt for the project."""
        prompt = await insert_prompt(self.db, project_id, title, content, tags)
        logger.info("Created prompt %s: %s", prompt.id, title)
        return prompt
