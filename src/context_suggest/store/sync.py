"""Project sync: mirror a project's text files into the project_files table."""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from context_suggest.config import get_sync_max_file_size
from context_suggest.db.queries import delete_files, upsert_file
from context_suggest.models.items import Project
from context_suggest.ranking.rules import IGNORED_DIR_NAMES, is_ignored_path

logger = logging.getLogger(__name__)

# Extensions we can meaningfully rank as text
_ALLOWED_EXTENSIONS: set[str] = {
    ".md",
    ".markdown",
    ".txt",
    ".rst",
    ".py",
    ".pyi",
    ".js",
    ".mjs",
    ".cjs",
    ".ts",
    ".jsx",
    ".tsx",
    ".vue",
    ".svelte",
    ".rb",
    ".go",
    ".rs",
    ".java",
    ".kt",
    ".c",
    ".cpp",
    ".h",
    ".hpp",
    ".cs",
    ".swift",
    ".php",
    ".sh",
    ".bash",
    ".yaml",
    ".yml",
    ".toml",
    ".ini",
    ".cfg",
    ".json",
    ".xml",
    ".html",
    ".css",
    ".scss",
    ".sql",
    ".graphql",
    ".proto",
    ".tf",
}

# Also allow files with no extension that have known names
_ALLOWED_NAMES: set[str] = {
    "Dockerfile",
    "Makefile",
    "Procfile",
    "README",
    "CHANGELOG",
}

# Directory names that become tags when they appear in a file's path
_CATEGORY_SEGMENTS: set[str] = {
    "api",
    "auth",
    "components",
    "config",
    "db",
    "docs",
    "hooks",
    "lib",
    "models",
    "routes",
    "scripts",
    "services",
    "test",
    "tests",
    "utils",
}

_IMPORT_PATTERNS: list[re.Pattern[str]] = [
    # import x from "y" / export ... from "y" / import "y"
    re.compile(r"""^\s*(?:import|export)\b[^'"\n]*?['"]([^'"\n]+)['"]""", re.MULTILINE),
    # require("y")
    re.compile(r"""\brequire\(\s*['"]([^'"\n]+)['"]\s*\)"""),
    # Python: from x import y / import x
    re.compile(r"^\s*from\s+([\w.]+)\s+import\b", re.MULTILINE),
    re.compile(r"^\s*import\s+([\w.]+)\s*$", re.MULTILINE),
]


@dataclass
class SyncReport:
    """Result of syncing a project directory."""

    scanned: int = 0
    stored: int = 0
    skipped: int = 0
    removed: int = 0
    errors: list[str] = field(default_factory=list)


def _is_allowed_file(path: Path) -> bool:
    """Check if a file is in the allowlist for sync."""
    if path.name in _ALLOWED_NAMES:
        return True
    return path.suffix.lower() in _ALLOWED_EXTENSIONS


def detect_imports(content: str) -> list[str]:
    """Import sources referenced by a file, in first-seen order."""
    found: list[str] = []
    for pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(content):
            source = match.group(1)
            if source not in found:
                found.append(source)
    return found


def derive_tags(rel_path: str) -> list[str]:
    """Tags from the file extension and well-known directory names."""
    parts = rel_path.lower().split("/")
    tags: list[str] = []
    suffix = Path(parts[-1]).suffix
    if suffix:
        tags.append(suffix[1:])
    for part in parts[:-1]:
        if part in _CATEGORY_SEGMENTS and part not in tags:
            tags.append(part)
    return tags


def _walk(root: Path, report: SyncReport) -> tuple[list[Path], list[str]]:
    """Every file under root, pruning ignored directories.

    Directories that cannot be listed are recorded in ``report.errors`` and
    returned as root-relative paths.
    """
    found: list[Path] = []
    unreadable: list[str] = []
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            children = sorted(current.iterdir())
        except OSError as e:
            rel_dir = current.relative_to(root).as_posix()
            report.errors.append(f"{rel_dir}: {e}")
            unreadable.append(rel_dir)
            continue
        for child in children:
            if child.is_symlink():
                continue
            if child.is_dir():
                if child.name not in IGNORED_DIR_NAMES:
                    stack.append(child)
            elif child.is_file():
                found.append(child)
    return found, unreadable


def _under_any(rel_path: str, directories: list[str]) -> bool:
    return any(d == "." or rel_path.startswith(f"{d}/") for d in directories)


async def sync_project_files(db: aiosqlite.Connection, project: Project) -> SyncReport:
    """Walk the project root and upsert eligible files; remove rows for vanished ones."""
    report = SyncReport()
    root = Path(project.path)
    if not root.is_dir():
        report.errors.append(f"Not a directory: {project.path}")
        return report

    max_size = get_sync_max_file_size()
    seen: set[str] = set()

    paths, unreadable = _walk(root, report)
    for path in paths:
        rel_path = path.relative_to(root).as_posix()
        report.scanned += 1

        if is_ignored_path(rel_path) or not _is_allowed_file(path):
            report.skipped += 1
            continue

        try:
            stat = path.stat()
            if stat.st_size > max_size:
                report.skipped += 1
                continue
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            report.errors.append(f"{rel_path}: {e}")
            continue

        await upsert_file(
            db,
            project.id,
            rel_path,
            content=content,
            size=stat.st_size,
            tags=derive_tags(rel_path),
            imports=detect_imports(content),
            modified_at=datetime.fromtimestamp(stat.st_mtime, UTC),
        )
        seen.add(rel_path)
        report.stored += 1

    cursor = await db.execute("SELECT path FROM project_files WHERE project_id = ?", (project.id,))
    # Rows under unlistable directories are kept until they can be read again
    vanished = [
        row[0]
        for row in await cursor.fetchall()
        if row[0] not in seen and not _under_any(row[0], unreadable)
    ]
    if vanished:
        await delete_files(db, project.id, vanished)
    report.removed = len(vanished)
    await db.commit()

    logger.info(
        "Synced project %d: %d stored, %d skipped, %d removed",
        project.id,
        report.stored,
        report.skipped,
        report.removed,
    )
    return report
