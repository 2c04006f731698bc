"""Heuristic relevance scoring for files and prompts."""

import logging
import posixpath
import re
from collections.abc import Sequence
from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator

from context_suggest.models.items import FileItem, PromptItem
from context_suggest.models.scores import RelevanceScoreResult
from context_suggest.ranking.keywords import tokenize
from context_suggest.ranking.recency import recency_score

logger = logging.getLogger(__name__)

PROMPT_CONTENT_SAMPLE = 400

_PATH_SPLIT_RE = re.compile(r"[/\\._\-]+")

# Keyword → file suffixes it hints at
TYPE_ASSOCIATIONS: dict[str, tuple[str, ...]] = {
    "component": ("tsx", "jsx", "vue", "svelte"),
    "style": ("css", "scss", "sass", "less"),
    "test": ("test.ts", "test.js", "spec.ts", "spec.js", "_test.py", "_test.go"),
    "config": ("json", "yaml", "yml", "toml", "env", "ini"),
    "api": ("ts", "js", "py", "go"),
    "route": ("ts", "js", "tsx", "jsx", "py"),
    "service": ("ts", "js", "py"),
    "hook": ("ts", "tsx", "js", "jsx"),
    "schema": ("ts", "zod.ts", "py", "json"),
    "model": ("ts", "js", "py"),
    "database": ("sql", "prisma", "ts", "py"),
    "documentation": ("md", "mdx", "txt", "rst"),
}

# Partial path overlap thresholds: (min ratio, credit)
PATH_OVERLAP_CREDITS: tuple[tuple[float, float], ...] = ((0.9, 0.8), (0.6, 0.4), (0.4, 0.2))


def clamp01(value: float) -> float:
    """Clamp to the unit interval; NaN becomes 0."""
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


class RelevanceWeights(BaseModel, frozen=True):
    """Weight vector for combining sub-scores. Weights sum to at most 1."""

    title: float = Field(default=0.0, ge=0.0, le=1.0)
    content: float = Field(default=0.0, ge=0.0, le=1.0)
    tags: float = Field(default=0.0, ge=0.0, le=1.0)
    path: float = Field(default=0.0, ge=0.0, le=1.0)
    type: float = Field(default=0.0, ge=0.0, le=1.0)
    recency: float = Field(default=0.0, ge=0.0, le=1.0)
    imports: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "RelevanceWeights":
        total = self.title + self.content + self.tags + self.path + self.type
        total += self.recency + self.imports
        if total > 1.0 + 1e-9:
            raise ValueError(f"relevance weights sum to {total:.3f}, expected <= 1")
        return self


FILE_WEIGHTS = RelevanceWeights(
    title=0.2, content=0.2, tags=0.05, path=0.25, type=0.1, recency=0.1, imports=0.1
)
PROMPT_WEIGHTS = RelevanceWeights(title=0.4, content=0.3, tags=0.2, recency=0.1)


def _prefix_ratio(a: str, b: str) -> float:
    """Length of the shared prefix relative to the longer string."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    shared = 0
    for ca, cb in zip(a, b, strict=False):
        if ca != cb:
            break
        shared += 1
    return shared / longest


def title_score(title: str, keywords: Sequence[str]) -> float:
    """Fraction of keywords appearing as substrings of the title."""
    if not keywords:
        return 0.0
    lowered = title.lower()
    hits = sum(1 for k in keywords if k in lowered)
    return clamp01(hits / len(keywords))


def content_score(content: str, keywords: Sequence[str]) -> float:
    """Substring hits over the content, half credit for partial token matches."""
    if not keywords or not content:
        return 0.0
    lowered = content.lower()
    words: set[str] | None = None
    hits = 0.0
    for keyword in keywords:
        if keyword in lowered:
            hits += 1.0
            continue
        if words is None:
            words = {w for w in tokenize(lowered) if len(w) >= 3}
        if any(w in keyword or _prefix_ratio(w, keyword) >= 0.6 for w in words):
            hits += 0.5
    return clamp01(hits / len(keywords))


def tag_score(tags: Sequence[str], keywords: Sequence[str]) -> float:
    """Exact tag match = 1, partial substring overlap = 0.5, per keyword."""
    if not keywords or not tags:
        return 0.0
    lowered = [t.lower() for t in tags]
    hits = 0.0
    for keyword in keywords:
        if keyword in lowered:
            hits += 1.0
        elif any(keyword in t or t in keyword for t in lowered if t):
            hits += 0.5
    return clamp01(hits / len(keywords))


def path_segments(path: str) -> list[str]:
    """Split a path into lowercase segments on separators, dots, dashes and underscores."""
    return [p for p in _PATH_SPLIT_RE.split(path.lower()) if p]


def _segment_credit(keyword: str, segment: str) -> float:
    if segment == keyword:
        return 1.0
    if keyword in segment or segment in keyword:
        return 0.5
    ratio = _prefix_ratio(keyword, segment)
    for threshold, credit in PATH_OVERLAP_CREDITS:
        if ratio >= threshold:
            return credit
    return 0.0


def path_score(path: str, keywords: Sequence[str]) -> float:
    """Best per-keyword credit across path segments, averaged over keywords."""
    if not keywords:
        return 0.0
    segments = path_segments(path)
    if not segments:
        return 0.0
    total = sum(max(_segment_credit(k, s) for s in segments) for k in keywords)
    return clamp01(total / len(keywords))


def type_score(path: str, keywords: Sequence[str]) -> float:
    """Keywords whose associated file suffixes match this path."""
    if not keywords:
        return 0.0
    lowered = path.lower()
    hits = 0
    for keyword in keywords:
        suffixes = TYPE_ASSOCIATIONS.get(keyword)
        if suffixes and lowered.endswith(suffixes):
            hits += 1
    return clamp01(hits / len(keywords))


def _import_stem(source: str) -> str:
    name = posixpath.basename(source.rstrip("/"))
    stem, _ext = posixpath.splitext(name)
    return stem.lower() or name.lower()


def import_scores(files: Sequence[FileItem]) -> dict[str, float]:
    """How widely each file is imported by the rest of the project.

    Files imported by many others are likely central. The importer count is
    normalized by a tenth of the project size (at least 1).
    """
    importers: dict[str, set[str]] = {}
    for f in files:
        for imp in f.imports:
            importers.setdefault(_import_stem(imp.source), set()).add(f.id)

    norm = max(len(files) * 0.1, 1.0)
    scores: dict[str, float] = {}
    for f in files:
        stem, _ext = posixpath.splitext(f.name.lower())
        count = len(importers.get(stem, set()) - {f.id})
        scores[f.id] = clamp01(count / norm)
    return scores


class FileRelevanceScorer:
    """Scores project files against query keywords.

    Low scorers are kept: path and code-location boosts in the composite
    stage may still lift them.
    """

    def __init__(self, weights: RelevanceWeights = FILE_WEIGHTS) -> None:
        """Initialize with a weight vector."""
        self._weights = weights

    def score(
        self,
        files: Sequence[FileItem],
        keywords: Sequence[str],
        now: datetime | None = None,
    ) -> list[RelevanceScoreResult]:
        """Score every file, sorted by total descending (stable)."""
        if now is None:
            now = datetime.now(UTC)
        imports = import_scores(files)
        w = self._weights
        results: list[RelevanceScoreResult] = []
        for f in files:
            t = title_score(f.name, keywords)
            c = content_score(f.content or "", keywords)
            g = tag_score(f.tags, keywords)
            p = path_score(f.path, keywords)
            ty = type_score(f.path, keywords)
            r = recency_score(f.updated_at or f.created_at, now)
            i = imports.get(f.id, 0.0)
            total = (
                t * w.title
                + c * w.content
                + g * w.tags
                + p * w.path
                + ty * w.type
                + r * w.recency
                + i * w.imports
            )
            results.append(
                RelevanceScoreResult(
                    item_id=f.id,
                    total_score=clamp01(total),
                    title_score=t,
                    content_score=c,
                    tag_score=g,
                    path_score=p,
                    type_score=ty,
                    recency_score=r,
                    import_score=i,
                )
            )
        results.sort(key=lambda s: s.total_score, reverse=True)
        return results


class PromptRelevanceScorer:
    """Scores prompts against query keywords, dropping those below ``min_score``."""

    def __init__(
        self,
        weights: RelevanceWeights = PROMPT_WEIGHTS,
        min_score: float = 0.1,
        content_sample: int = PROMPT_CONTENT_SAMPLE,
    ) -> None:
        """Initialize with a weight vector and score floor."""
        self._weights = weights
        self._min_score = min_score
        self._content_sample = content_sample

    def score(
        self,
        prompts: Sequence[PromptItem],
        keywords: Sequence[str],
        now: datetime | None = None,
    ) -> list[RelevanceScoreResult]:
        """Score prompts above the floor, sorted by total descending (stable)."""
        if now is None:
            now = datetime.now(UTC)
        w = self._weights
        results: list[RelevanceScoreResult] = []
        dropped = 0
        for p in prompts:
            t = title_score(p.title, keywords)
            c = content_score(p.content[: self._content_sample], keywords)
            g = tag_score(p.tags, keywords)
            r = recency_score(p.updated_at or p.created_at, now)
            total = clamp01(t * w.title + c * w.content + g * w.tags + r * w.recency)
            if total < self._min_score:
                dropped += 1
                continue
            results.append(
                RelevanceScoreResult(
                    item_id=p.id,
                    total_score=total,
                    title_score=t,
                    content_score=c,
                    tag_score=g,
                    recency_score=r,
                )
            )
        if dropped:
            logger.debug("Dropped %d prompts below min score %.2f", dropped, self._min_score)
        results.sort(key=lambda s: s.total_score, reverse=True)
        return results
