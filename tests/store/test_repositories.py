"""Tests for the SQLite repositories."""

import pytest

from context_suggest.store.protocols import FileRepository, ProjectRepository, PromptRepository
from context_suggest.store.repositories import (
    SQLiteFileRepository,
    SQLiteProjectRepository,
    SQLitePromptRepository,
)


@pytest.mark.asyncio
async def test_project_repository(db):
    projects = SQLiteProjectRepository(db)
    created = await projects.create("demo", "/work/demo")
    assert await projects.get(created.id) == created
    assert await projects.get(created.id + 1) is None
    assert await projects.list() == [created]


@pytest.mark.asyncio
async def test_prompt_repository_scoped_by_project(db):
    projects = SQLiteProjectRepository(db)
    one = await projects.create("one", "/work/one")
    two = await projects.create("two", "/work/two")
    prompts = SQLitePromptRepository(db)
    await prompts.create(one.id, "Auth Flow", "login", ["auth"])
    await prompts.create(two.id, "Deploy", "ship it")
    titles = [p.title for p in await prompts.get_by_project(one.id)]
    assert titles == ["Auth Flow"]


@pytest.mark.asyncio
async def test_file_repository_empty(db):
    project = await SQLiteProjectRepository(db).create("demo", "/work/demo")
    assert await SQLiteFileRepository(db).get_by_project(project.id) == []


@pytest.mark.asyncio
async def test_repositories_conform_to_protocols(db):
    assert isinstance(SQLiteProjectRepository(db), ProjectRepository)
    assert isinstance(SQLiteFileRepository(db), FileRepository)
    assert isinstance(SQLitePromptRepository(db), PromptRepository)
