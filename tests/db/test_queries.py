"""Tests for database query helpers."""

from datetime import UTC, datetime

import pytest

from context_suggest.db.queries import (
    delete_files,
    get_files_by_project,
    get_project,
    insert_project,
    insert_prompt,
    list_projects,
    upsert_file,
)

MTIME = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_insert_project_is_idempotent_by_path(db):
    first = await insert_project(db, "demo", "/work/demo")
    again = await insert_project(db, "renamed", "/work/demo")
    assert again.id == first.id
    assert again.name == "demo"
    assert [p.id for p in await list_projects(db)] == [first.id]
    assert await get_project(db, 999) is None


@pytest.mark.asyncio
async def test_upsert_file_roundtrip(db):
    project = await insert_project(db, "demo", "/work/demo")
    await upsert_file(
        db,
        project.id,
        "src/auth/Login.TS",
        content="import x from './session'",
        size=25,
        tags=["ts", "auth"],
        imports=["./session"],
        modified_at=MTIME,
    )
    await db.commit()
    [stored] = await get_files_by_project(db, project.id)
    assert stored.name == "Login.TS"
    assert stored.extension == ".ts"
    assert stored.tags == ["ts", "auth"]
    assert [i.source for i in stored.imports] == ["./session"]
    assert stored.updated_at == MTIME
    assert isinstance(stored.id, str)


@pytest.mark.asyncio
async def test_upsert_updates_in_place(db):
    project = await insert_project(db, "demo", "/work/demo")
    for content in ("v1", "version two"):
        await upsert_file(
            db,
            project.id,
            "README.md",
            content=content,
            size=len(content),
            tags=["md"],
            imports=[],
            modified_at=MTIME,
        )
    await db.commit()
    files = await get_files_by_project(db, project.id)
    assert len(files) == 1
    assert files[0].content == "version two"


@pytest.mark.asyncio
async def test_delete_files(db):
    project = await insert_project(db, "demo", "/work/demo")
    for path in ("a.py", "b.py"):
        await upsert_file(
            db, project.id, path, content="x", size=1, tags=[], imports=[], modified_at=MTIME
        )
    await delete_files(db, project.id, ["a.py"])
    await db.commit()
    assert [f.path for f in await get_files_by_project(db, project.id)] == ["b.py"]


@pytest.mark.asyncio
async def test_insert_prompt(db):
    project = await insert_project(db, "demo", "/work/demo")
    prompt = await insert_prompt(db, project.id, "Auth Flow", "Implement login", ["auth", "api"])
    assert prompt.title == "Auth Flow"
    assert prompt.tags == ["auth", "api"]
    assert prompt.created_at is not None
