"""Query helpers for projects, project files and prompts."""

import json
from datetime import UTC, datetime

import aiosqlite

from context_suggest.models.items import FileImport, FileItem, Project, PromptItem


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _parse_tags(raw: str | None) -> list[str]:
    """Tags are stored space-separated so FTS can index them."""
    return raw.split() if raw else []


def _parse_ts(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


def row_to_project(row: aiosqlite.Row) -> Project:
    """Convert a database row to a Project."""
    return Project(
        id=row["id"],
        name=row["name"],
        path=row["path"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def row_to_file(row: aiosqlite.Row) -> FileItem:
    """Convert a database row to a FileItem."""
    return FileItem(
        id=str(row["id"]),
        project_id=row["project_id"],
        path=row["path"],
        name=row["name"],
        extension=row["extension"],
        content=row["content"],
        size=row["size"],
        tags=_parse_tags(row["tags"]),
        imports=[FileImport(source=s) for s in json.loads(row["imports"])],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def row_to_prompt(row: aiosqlite.Row) -> PromptItem:
    """Convert a database row to a PromptItem."""
    return PromptItem(
        id=str(row["id"]),
        project_id=row["project_id"],
        title=row["title"],
        content=row["content"],
        tags=_parse_tags(row["tags"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


async def insert_project(db: aiosqlite.Connection, name: str, path: str) -> Project:
    """Insert a project, or return the existing one registered at ``path``."""
    existing = await get_project_by_path(db, path)
    if existing is not None:
        return existing
    now = _now_iso()
    cursor = await db.execute(
        "INSERT INTO projects (name, path, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (name, path, now, now),
    )
    await db.commit()
    project = await get_project(db, cursor.lastrowid or 0)
    if project is None:
        raise RuntimeError(f"Project insert for {path} did not persist")
    return project


async def get_project(db: aiosqlite.Connection, project_id: int) -> Project | None:
    """Get a single project by ID."""
    cursor = await db.execute("SELECT * FROM projects WHERE id = ?", (project_id,))
    row = await cursor.fetchone()
    return row_to_project(row) if row else None


async def get_project_by_path(db: aiosqlite.Connection, path: str) -> Project | None:
    """Get a single project by its root path."""
    cursor = await db.execute("SELECT * FROM projects WHERE path = ?", (path,))
    row = await cursor.fetchone()
    return row_to_project(row) if row else None


async def list_projects(db: aiosqlite.Connection) -> list[Project]:
    """All registered projects, oldest first."""
    cursor = await db.execute("SELECT * FROM projects ORDER BY id")
    return [row_to_project(r) for r in await cursor.fetchall()]


async def get_files_by_project(db: aiosqlite.Connection, project_id: int) -> list[FileItem]:
    """All stored files of a project, ordered by path."""
    cursor = await db.execute(
        "SELECT * FROM project_files WHERE project_id = ? ORDER BY path", (project_id,)
    )
    return [row_to_file(r) for r in await cursor.fetchall()]


async def upsert_file(
    db: aiosqlite.Connection,
    project_id: int,
    path: str,
    *,
    content: str,
    size: int,
    tags: list[str],
    imports: list[str],
    modified_at: datetime,
) -> None:
    """Insert or update a project file by path. FTS is synced via triggers."""
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    extension = name[dot:].lower() if dot > 0 else ""
    await db.execute(
        """INSERT INTO project_files
        (project_id, path, name, extension, content, size, tags, imports, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(project_id, path) DO UPDATE SET
            content=excluded.content, size=excluded.size, tags=excluded.tags,
            imports=excluded.imports, updated_at=excluded.updated_at""",
        (
            project_id,
            path,
            name,
            extension,
            content,
            size,
            " ".join(tags),
            json.dumps(imports),
            _now_iso(),
            modified_at.isoformat(),
        ),
    )


async def delete_files(db: aiosqlite.Connection, project_id: int, paths: list[str]) -> None:
    """Delete project files by path."""
    await db.executemany(
        "DELETE FROM project_files WHERE project_id = ? AND path = ?",
        [(project_id, p) for p in paths],
    )


async def get_prompts_by_project(db: aiosqlite.Connection, project_id: int) -> list[PromptItem]:
    """All prompts of a project, oldest first."""
    cursor = await db.execute(
        "SELECT * FROM prompts WHERE project_id = ? ORDER BY id", (project_id,)
    )
    return [row_to_prompt(r) for r in await cursor.fetchall()]


async def insert_prompt(
    db: aiosqlite.Connection,
    project_id: int,
    title: str,
    content: str,
    tags: list[str] | None = None,
) -> PromptItem:
    """Insert a prompt. FTS is auto-synced via triggers."""
    now = _now_iso()
    cursor = await db.execute(
        """INSERT INTO prompts (project_id, title, content, tags, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (project_id, title, content, " ".join(tags or []), now, now),
    )
    await db.commit()
    cursor = await db.execute("SELECT * FROM prompts WHERE id = ?", (cursor.lastrowid,))
    row = await cursor.fetchone()
    if row is None:
        raise RuntimeError("Prompt insert did not persist")
    return row_to_prompt(row)
