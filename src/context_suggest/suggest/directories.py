"""Directory selection: narrow a large project to the directories worth reading."""

import logging
import posixpath
import time
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel, Field

from context_suggest.errors import StructuredOutputError
from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.tiers import ModelTierResolver
from context_suggest.models.items import FileTreeNode
from context_suggest.models.suggestion import (
    DirectorySelection,
    DirectorySelectionMetadata,
    DirectorySelectionOptions,
    DirectorySelectionResult,
)
from context_suggest.ranking.rules import IGNORED_DIR_NAMES

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASON = "fallback"
FALLBACK_STRATEGY = "fallback-root-dirs"

_SYSTEM_PROMPT = """\
You are a senior engineer navigating an unfamiliar codebase. Given a user \
request and the project's directory list, pick the directories most likely \
to contain the files needed for the request.

Rules:
- Only choose paths that appear in the directory list.
- Prefer specific directories over their parents when the request is narrow.
- Give each pick a confidence between 0 and 1 and a one-line reason.\
"""


class DirectoryPick(BaseModel):
    """One directory chosen by the model."""

    path: str
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str = ""


class DirectorySelectionResponse(BaseModel):
    """Structured response expected from the directory selection model."""

    directories: list[DirectoryPick] = Field(default_factory=list, max_length=50)


@dataclass
class DirectoryEntry:
    """A flattened directory with how many files sit under it."""

    path: str
    depth: int
    file_count: int


def normalize_directory_path(path: str) -> str | None:
    """Project-relative form without leading slash, or None if it escapes the root.

    The root itself also yields None: it is never a useful selection.
    """
    cleaned = path.strip().replace("\\", "/")
    cleaned = cleaned.lstrip("/")
    if not cleaned:
        return None
    normalized = posixpath.normpath(cleaned)
    if normalized in (".", "") or normalized == ".." or normalized.startswith("../"):
        return None
    return normalized


def _count_files(node: FileTreeNode) -> int:
    if node.type == "file":
        return 1
    return sum(_count_files(c) for c in node.children)


def flatten_directories(root: FileTreeNode, max_depth: int) -> list[DirectoryEntry]:
    """Depth-first list of directories below the root, bounded by ``max_depth``."""
    entries: list[DirectoryEntry] = []

    def walk(node: FileTreeNode, depth: int) -> None:
        for child in node.children:
            if child.type != "directory" or child.name in IGNORED_DIR_NAMES:
                continue
            path = normalize_directory_path(child.path)
            if path is None:
                continue
            entries.append(DirectoryEntry(path=path, depth=depth, file_count=_count_files(child)))
            if depth < max_depth:
                walk(child, depth + 1)

    walk(root, 1)
    return entries


def build_file_tree(paths: Iterable[str], root_name: str = "root") -> FileTreeNode:
    """Build a directory tree from project-relative file paths."""
    root = FileTreeNode(name=root_name, path="/", type="directory")
    dirs: dict[str, FileTreeNode] = {"": root}
    for raw in sorted(set(paths)):
        parts = [p for p in raw.replace("\\", "/").split("/") if p]
        if not parts:
            continue
        parent = root
        prefix = ""
        for name in parts[:-1]:
            prefix = f"{prefix}/{name}"
            node = dirs.get(prefix)
            if node is None:
                node = FileTreeNode(name=name, path=prefix, type="directory")
                dirs[prefix] = node
                parent.children.append(node)
            parent = node
        parent.children.append(
            FileTreeNode(name=parts[-1], path=f"{prefix}/{parts[-1]}", type="file")
        )
    return root


def root_directory_selections(tree: FileTreeNode, max_directories: int) -> list[DirectorySelection]:
    """The project's root-level subdirectories at fixed fallback confidence."""
    selections: list[DirectorySelection] = []
    for child in tree.children:
        if child.type != "directory" or child.name in IGNORED_DIR_NAMES:
            continue
        path = normalize_directory_path(child.path)
        if path is None:
            continue
        selections.append(
            DirectorySelection(path=path, confidence=FALLBACK_CONFIDENCE, reason=FALLBACK_REASON)
        )
        if len(selections) >= max_directories:
            break
    return selections


def _format_directory_list(entries: list[DirectoryEntry]) -> str:
    return "\n".join(
        f"{i}. {e.path}/ ({e.file_count} files)" for i, e in enumerate(entries, start=1)
    )


class DirectorySelector:
    """Picks the directories of a project tree most relevant to a query."""

    def __init__(self, gateway: StructuredOutputGateway, tiers: ModelTierResolver) -> None:
        """Initialize with the structured-output gateway and tier resolver."""
        self._gateway = gateway
        self._tiers = tiers

    async def select_relevant_directories(
        self,
        tree: FileTreeNode,
        query: str,
        options: DirectorySelectionOptions | None = None,
    ) -> DirectorySelectionResult:
        """Select up to ``max_directories`` directories for the query.

        An empty tree returns an empty selection without calling the model.
        Model failure falls back to the root-level subdirectories.
        """
        opts = options or DirectorySelectionOptions()
        started = time.perf_counter()
        entries = flatten_directories(tree, opts.max_depth)
        strategy = f"directory-selection-{opts.ai_model.value}"

        def result(selections: list[DirectorySelection], strategy: str) -> DirectorySelectionResult:
            return DirectorySelectionResult(
                selected_directories=[s.path for s in selections],
                all_selections=selections,
                metadata=DirectorySelectionMetadata(
                    total_directories=len(entries),
                    ai_model=opts.ai_model,
                    strategy=strategy,
                    processing_time_ms=(time.perf_counter() - started) * 1000,
                ),
            )

        if not entries:
            return result([], strategy)

        prompt_lines = [f"User Request: {query}"]
        if opts.user_context:
            prompt_lines.append(f"Additional Context: {opts.user_context}")
        prompt_lines.extend(
            [
                "",
                "Project directories:",
                _format_directory_list(entries),
                "",
                f"Select up to {opts.max_directories} directories most relevant to the request.",
            ]
        )

        try:
            response = await self._gateway.generate(
                "\n".join(prompt_lines),
                _SYSTEM_PROMPT,
                DirectorySelectionResponse,
                self._tiers.resolve(opts.ai_model),
            )
        except StructuredOutputError as e:
            logger.warning("Directory selection failed, using root directories: %s", e)
            return result(root_directory_selections(tree, opts.max_directories), FALLBACK_STRATEGY)
        except Exception:
            logger.warning("Directory selection raised unexpectedly", exc_info=True)
            return result(root_directory_selections(tree, opts.max_directories), FALLBACK_STRATEGY)

        known = {e.path for e in entries}
        selections: list[DirectorySelection] = []
        seen: set[str] = set()
        for pick in response.directories:
            path = normalize_directory_path(pick.path)
            if path is None or path not in known or path in seen:
                continue
            if pick.confidence < opts.min_confidence:
                continue
            seen.add(path)
            selections.append(
                DirectorySelection(path=path, confidence=pick.confidence, reason=pick.reason)
            )
            if len(selections) >= opts.max_directories:
                break

        if not selections:
            logger.warning("Directory selection returned no usable directories, using roots")
            return result(root_directory_selections(tree, opts.max_directories), FALLBACK_STRATEGY)
        return result(selections, strategy)
