"""Sandboxed partial content fetching for the two-stage file flow."""

import logging
import math
import time
from pathlib import Path

from context_suggest.errors import InvalidDirectoryError, ProjectNotFoundError
from context_suggest.models.items import FileItem
from context_suggest.models.partial import (
    FetchOptions,
    PartialFetchMetadata,
    PartialFetchResult,
    PartialFileContent,
)
from context_suggest.store.protocols import FileRepository, ProjectRepository

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token cost: four characters per token, rounded up."""
    return math.ceil(len(text) / 4)


def head_lines(content: str, line_count: int) -> tuple[str, int, int, bool]:
    """First ``line_count`` lines of content.

    Returns (partial text, lines kept, total lines, truncated). Content
    without a newline counts as one line.
    """
    lines = content.splitlines()
    total = len(lines)
    kept = lines[:line_count]
    return "\n".join(kept), len(kept), total, total > line_count


def resolve_within_root(root: Path, directory: str) -> str:
    """Resolve a directory against the project root.

    Returns the project-relative POSIX path. Raises InvalidDirectoryError
    unless the result lies strictly inside the root.
    """
    resolved_root = root.resolve()
    candidate = (resolved_root / directory).resolve()
    if candidate == resolved_root or resolved_root not in candidate.parents:
        raise InvalidDirectoryError(directory)
    return candidate.relative_to(resolved_root).as_posix()


def _normalize_extensions(extensions: list[str] | None) -> set[str] | None:
    if extensions is None:
        return None
    return {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}


def _file_extension(file: FileItem) -> str:
    ext = file.extension or Path(file.path).suffix
    ext = ext.lower()
    return ext if not ext or ext.startswith(".") else f".{ext}"


class PartialContentFetcher:
    """Reads the head of every file under a set of project directories."""

    def __init__(self, projects: ProjectRepository, files: FileRepository) -> None:
        """Initialize with project and file repositories."""
        self._projects = projects
        self._files = files

    async def fetch_partial_content(
        self,
        project_id: int,
        directories: list[str],
        options: FetchOptions | None = None,
    ) -> PartialFetchResult:
        """Fetch partial contents for files under ``directories``.

        Every directory is validated against the project root before any file
        is read. Files past the caps or failing the filters are counted as
        skipped.
        """
        opts = options or FetchOptions()
        started = time.perf_counter()

        project = await self._projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        root = Path(project.path)
        selected: list[str] = []
        for directory in directories:
            relative = resolve_within_root(root, directory)
            if relative not in selected:
                selected.append(relative)

        include = _normalize_extensions(opts.include_extensions)
        exclude = _normalize_extensions(opts.exclude_extensions)

        groups: dict[str, list[FileItem]] = {d: [] for d in selected}
        for file in sorted(await self._files.get_by_project(project_id), key=lambda f: f.path):
            path = file.path.lstrip("/")
            for directory in selected:
                if path.startswith(f"{directory}/"):
                    groups[directory].append(file)
                    break

        partial_files: list[PartialFileContent] = []
        total_found = sum(len(g) for g in groups.values())
        skipped = 0
        tokens = 0
        for directory in selected:
            kept_here = 0
            for file in groups[directory]:
                ext = _file_extension(file)
                content = file.content or ""
                size = file.size or len(content.encode("utf-8"))
                if (
                    not content
                    or size > opts.max_file_size
                    or (include is not None and ext not in include)
                    or (exclude is not None and ext in exclude)
                ):
                    skipped += 1
                    continue
                if (
                    kept_here >= opts.max_files_per_directory
                    or len(partial_files) >= opts.max_total_files
                ):
                    skipped += 1
                    continue

                partial, line_count, total_lines, truncated = head_lines(content, opts.line_count)
                tokens += estimate_tokens(partial)
                kept_here += 1
                partial_files.append(
                    PartialFileContent(
                        file_id=file.id,
                        path=file.path,
                        extension=ext,
                        partial_content=partial,
                        line_count=line_count,
                        total_lines=total_lines,
                        truncated=truncated,
                        size=size,
                    )
                )

        average = (
            round(sum(f.line_count for f in partial_files) / len(partial_files))
            if partial_files
            else 0
        )
        elapsed = (time.perf_counter() - started) * 1000
        logger.debug(
            "Fetched %d partial files from %d directories (%d skipped) in %.1fms",
            len(partial_files),
            len(selected),
            skipped,
            elapsed,
        )
        return PartialFetchResult(
            partial_files=partial_files,
            metadata=PartialFetchMetadata(
                total_files_in_directories=total_found,
                files_returned=len(partial_files),
                files_skipped=skipped,
                average_line_count=average,
                total_tokens_estimate=tokens,
                processing_time_ms=elapsed,
            ),
        )
