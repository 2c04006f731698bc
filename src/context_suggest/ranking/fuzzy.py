"""Fuzzy candidate expansion over a full-text search backend."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from context_suggest.ranking.keywords import build_fuzzy_query, build_variant_queries
from context_suggest.ranking.relevance import clamp01

logger = logging.getLogger(__name__)


@runtime_checkable
class FuzzySearchBackend(Protocol):
    """Approximate search over one project's items.

    Returns ``(item_id, score)`` pairs, higher is better. Scores need not be
    bounded; the expander normalizes them per response.
    """

    async def search(self, project_id: int, query: str, limit: int) -> list[tuple[str, float]]:
        """Run one query. May raise on backend failure."""
        ...


@dataclass
class SearchOutcome:
    """Result of one backend query: hits, or the error that made it ignored."""

    query: str
    hits: list[tuple[str, float]] = field(default_factory=list)
    error: str | None = None

    @property
    def ignored(self) -> bool:
        """True when the query failed and contributes nothing."""
        return self.error is not None


@dataclass
class FuzzyExpansion:
    """Merged fuzzy scores across the base query and its variants."""

    scores: dict[str, float] = field(default_factory=dict)
    queries: list[str] = field(default_factory=list)
    ignored_queries: list[str] = field(default_factory=list)


def normalize_hits(hits: list[tuple[str, float]]) -> dict[str, float]:
    """Map raw backend scores into [0,1], keeping the best score per item."""
    if not hits:
        return {}
    best = max(score for _, score in hits)
    scale = best if best > 1.0 else 1.0
    normalized: dict[str, float] = {}
    for item_id, score in hits:
        value = clamp01(score / scale)
        if value > normalized.get(item_id, -1.0):
            normalized[item_id] = value
    return normalized


class FuzzyExpander:
    """Issues the fuzzy query and its phrase variants concurrently."""

    def __init__(self, backend: FuzzySearchBackend) -> None:
        """Initialize with a search backend."""
        self._backend = backend

    async def _run(self, project_id: int, query: str, limit: int) -> SearchOutcome:
        try:
            hits = await self._backend.search(project_id, query, limit)
        except Exception as e:
            logger.warning("Fuzzy query %r failed, ignoring: %s", query, e)
            return SearchOutcome(query=query, error=str(e) or type(e).__name__)
        return SearchOutcome(query=query, hits=list(hits))

    async def expand(
        self, project_id: int, keywords: list[str], max_results: int
    ) -> FuzzyExpansion:
        """Run base and variant queries and merge their normalized scores by max."""
        base = build_fuzzy_query(keywords)
        if not base:
            return FuzzyExpansion()

        requests = [(base, max(max_results * 10, 50))]
        variant_limit = max(max_results * 5, 25)
        requests.extend((v, variant_limit) for v in build_variant_queries(keywords))

        outcomes = await asyncio.gather(
            *(self._run(project_id, query, limit) for query, limit in requests)
        )

        expansion = FuzzyExpansion(queries=[q for q, _ in requests])
        for outcome in outcomes:
            if outcome.ignored:
                expansion.ignored_queries.append(outcome.query)
                continue
            for item_id, score in normalize_hits(outcome.hits).items():
                if score > expansion.scores.get(item_id, -1.0):
                    expansion.scores[item_id] = score
        logger.debug(
            "Fuzzy expansion: %d queries, %d ignored, %d items",
            len(requests),
            len(expansion.ignored_queries),
            len(expansion.scores),
        )
        return expansion
