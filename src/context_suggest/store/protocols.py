"""Collaborator protocols the suggestion services depend on.

The services never touch the database directly; the SQLite repositories in
this package are the default implementations and tests swap in fakes.
"""

from typing import Protocol, runtime_checkable

from context_suggest.models.items import FileItem, Project, PromptItem


@runtime_checkable
class ProjectRepository(Protocol):
    """Lookup of registered projects."""

    async def get(self, project_id: int) -> Project | None:
        """Return the project, or None when it does not exist."""
        ...


@runtime_checkable
class FileRepository(Protocol):
    """Point-in-time snapshot of a project's files."""

    async def get_by_project(self, project_id: int) -> list[FileItem]:
        """Return every stored file of the project."""
        ...


@runtime_checkable
class PromptRepository(Protocol):
    """Point-in-time snapshot of a project's prompts."""

    async def get_by_project(self, project_id: int) -> list[PromptItem]:
        """Return every prompt of the project."""
        ...
