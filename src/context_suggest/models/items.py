"""Candidate item models: projects, files, prompts, and directory trees."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Project(BaseModel):
    """A registered project rooted at a directory on disk."""

    id: int
    name: str
    path: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FileImport(BaseModel):
    """An import statement detected in a source file."""

    source: str


class FileItem(BaseModel):
    """A project file as seen by the ranking pipeline."""

    id: str
    project_id: int
    path: str  # project-relative, forward slashes
    name: str
    extension: str = ""
    content: str | None = None
    size: int = 0
    tags: list[str] = Field(default_factory=list)
    imports: list[FileImport] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def title(self) -> str:
        """Display title used by descriptors."""
        return self.path


class PromptItem(BaseModel):
    """A reusable prompt stored for a project."""

    id: str
    project_id: int
    title: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FileTreeNode(BaseModel):
    """A node in a project's directory tree."""

    name: str
    path: str
    type: Literal["file", "directory"]
    children: list["FileTreeNode"] = Field(default_factory=list)
