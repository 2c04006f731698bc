"""Prompt suggestion orchestrator."""

import logging
import time
from collections.abc import Sequence

from context_suggest.errors import ProjectNotFoundError
from context_suggest.models.items import PromptItem
from context_suggest.models.scores import CompositeScore
from context_suggest.models.strategy import STRATEGIES
from context_suggest.models.suggestion import (
    SuggestionMetadata,
    SuggestionOptions,
    SuggestionResponse,
)
from context_suggest.ranking.composite import candidate_pool_size, rank_prompt_candidates
from context_suggest.ranking.fuzzy import FuzzyExpander
from context_suggest.ranking.keywords import extract_keywords
from context_suggest.ranking.recency import most_recent_ids
from context_suggest.ranking.relevance import PromptRelevanceScorer
from context_suggest.ranking.rerank import AiReranker, RerankCandidate, attach_selections
from context_suggest.store.protocols import ProjectRepository, PromptRepository

logger = logging.getLogger(__name__)


def backfill_ids(
    prompts: Sequence[PromptItem], chosen: Sequence[str], max_results: int
) -> list[str]:
    """Most recent prompts not already chosen, up to the remaining slots.

    Prompts with no keyword hit fall under the relevance floor on recency
    alone, so a short ranked list is topped up from the rest of the project.
    """
    missing = max_results - len(chosen)
    if missing <= 0:
        return []
    taken = set(chosen)
    rest = [p for p in prompts if p.id not in taken]
    if not rest:
        return []
    return most_recent_ids(rest, missing)


class PromptSuggestionService:
    """Ranks a project's prompts for a free-text request."""

    def __init__(
        self,
        projects: ProjectRepository,
        prompts: PromptRepository,
        expander: FuzzyExpander,
        reranker: AiReranker,
        scorer: PromptRelevanceScorer | None = None,
    ) -> None:
        """Initialize with repositories, fuzzy expander and reranker."""
        self._projects = projects
        self._prompts = prompts
        self._expander = expander
        self._reranker = reranker
        self._scorer = scorer or PromptRelevanceScorer()

    async def suggest_items_for_query(
        self,
        project_id: int,
        query: str,
        options: SuggestionOptions | None = None,
    ) -> SuggestionResponse:
        """Suggest prompts for the query. Raises ProjectNotFoundError for unknown projects."""
        opts = options or SuggestionOptions()
        config = STRATEGIES[opts.strategy]
        started = time.perf_counter()

        if await self._projects.get(project_id) is None:
            raise ProjectNotFoundError(project_id)

        def respond(
            ids: list[str], scores: list[CompositeScore], analyzed: int, **meta: object
        ) -> SuggestionResponse:
            return SuggestionResponse(
                suggestions=ids,
                scores=scores,
                metadata=SuggestionMetadata(
                    total_items=len(prompts),
                    analyzed_items=analyzed,
                    strategy=opts.strategy,
                    processing_time_ms=(time.perf_counter() - started) * 1000,
                    **meta,
                ),
            )

        prompts = await self._prompts.get_by_project(project_id)
        if not prompts:
            return respond([], [], 0)

        keywords = extract_keywords(query)
        scoring_keywords = extract_keywords(f"{query} {opts.user_context or ''}")
        relevance = self._scorer.score(prompts, scoring_keywords)
        expansion = await self._expander.expand(project_id, keywords, opts.max_results)

        by_id = {p.id: p for p in prompts}
        composite = rank_prompt_candidates(
            by_id,
            relevance,
            expansion.scores,
            keywords,
            candidate_pool_size(config.max_pre_filter_items, opts.max_results),
        )

        if not composite:
            ids = most_recent_ids(prompts, opts.max_results)
            logger.debug("No prompt candidates for %r, returning %d recent", query, len(ids))
            return respond(ids, [CompositeScore(item_id=i) for i in ids], 0, pipeline="recent")

        outcome = await self._reranker.rerank(
            [
                RerankCandidate(
                    id=s.item_id,
                    title=by_id[s.item_id].title,
                    score=s,
                    tags=by_id[s.item_id].tags,
                    updated_at=by_id[s.item_id].updated_at,
                )
                for s in composite
            ],
            query=query,
            keywords=keywords,
            config=config,
            max_results=opts.max_results,
            user_context=opts.user_context,
        )

        ids = outcome.ids + backfill_ids(prompts, outcome.ids, opts.max_results)
        composite_by_id = {s.item_id: s for s in composite}
        scores = attach_selections(ids, composite_by_id, outcome.selections)
        logger.info(
            "Suggested %d prompts for project %d (strategy=%s, ai=%s)",
            len(ids),
            project_id,
            opts.strategy.value,
            outcome.ai_stage.value,
        )
        return respond(
            ids,
            scores,
            len(composite),
            ai_selections=outcome.selections,
            ai_stage=outcome.ai_stage,
        )
