"""Tests for FTS5 trigram fuzzy search."""

from datetime import UTC, datetime

import pytest

from context_suggest.db.queries import insert_project, insert_prompt, upsert_file
from context_suggest.store.search import SQLiteFuzzySearch, _escape_fts_query

MTIME = datetime(2025, 3, 1, tzinfo=UTC)


async def _store_file(db, project_id: int, path: str, content: str) -> None:
    await upsert_file(
        db,
        project_id,
        path,
        content=content,
        size=len(content),
        tags=[],
        imports=[],
        modified_at=MTIME,
    )


def test_escape_fts_query():
    assert _escape_fts_query("auth login") == '"auth" OR "login"'
    assert _escape_fts_query('say "hi" now') == '"say" OR """hi""" OR "now"'
    assert _escape_fts_query("a is ok") == ""


@pytest.mark.asyncio
async def test_file_search_filters_by_project(db):
    one = await insert_project(db, "one", "/work/one")
    two = await insert_project(db, "two", "/work/two")
    await _store_file(db, one.id, "src/auth/login.ts", "export function authenticate() {}")
    await _store_file(db, one.id, "src/ui/button.tsx", "export const Button = 1")
    await _store_file(db, two.id, "src/auth/other.ts", "authenticate elsewhere")
    await db.commit()

    search = SQLiteFuzzySearch(db, kind="files")
    hits = await search.search(one.id, "authent", 10)
    assert len(hits) == 1
    item_id, score = hits[0]
    assert isinstance(item_id, str)
    assert score > 0


@pytest.mark.asyncio
async def test_trigram_matches_substrings_in_paths(db):
    project = await insert_project(db, "demo", "/work/demo")
    await _store_file(db, project.id, "src/services/suggestion-engine.ts", "")
    await db.commit()
    hits = await SQLiteFuzzySearch(db).search(project.id, "suggest", 5)
    assert len(hits) == 1


@pytest.mark.asyncio
async def test_prompt_search_ranks_better_match_first(db):
    project = await insert_project(db, "demo", "/work/demo")
    weak = await insert_prompt(db, project.id, "Deploy", "mentions login once")
    strong = await insert_prompt(
        db, project.id, "Login Flow", "login login form with login validation", ["login"]
    )
    hits = await SQLiteFuzzySearch(db, kind="prompts").search(project.id, "login", 10)
    assert [h[0] for h in hits] == [strong.id, weak.id]
    assert hits[0][1] >= hits[1][1]


@pytest.mark.asyncio
async def test_short_tokens_return_nothing(db):
    project = await insert_project(db, "demo", "/work/demo")
    await insert_prompt(db, project.id, "UI", "ui ux")
    assert await SQLiteFuzzySearch(db, kind="prompts").search(project.id, "ui ux", 10) == []


@pytest.mark.asyncio
async def test_limit_respected(db):
    project = await insert_project(db, "demo", "/work/demo")
    for i in range(5):
        await _store_file(db, project.id, f"src/handler{i}.py", "def handler(): pass")
    await db.commit()
    hits = await SQLiteFuzzySearch(db).search(project.id, "handler", 3)
    assert len(hits) == 3
