"""File suggestion orchestrator: composite ranking and the two-stage flow."""

import logging
import math
import time

from context_suggest.config import get_large_project_threshold
from context_suggest.errors import InvalidDirectoryError, ProjectNotFoundError
from context_suggest.models.items import FileItem
from context_suggest.models.partial import FetchOptions, PartialFileContent
from context_suggest.models.scores import AiSelection, CompositeScore, ReasonTag
from context_suggest.models.strategy import STRATEGIES
from context_suggest.models.suggestion import (
    AiStage,
    DirectorySelectionOptions,
    FileRankingMetadata,
    FileRankingOptions,
    FileRankingResult,
    SuggestionMetadata,
    SuggestionOptions,
    SuggestionResponse,
    TwoStageMetadata,
    TwoStageOptions,
    TwoStageResult,
)
from context_suggest.ranking.composite import candidate_pool_size, rank_file_candidates
from context_suggest.ranking.fuzzy import FuzzyExpander
from context_suggest.ranking.keywords import extract_keywords
from context_suggest.ranking.recency import most_recent_ids
from context_suggest.ranking.relevance import FileRelevanceScorer
from context_suggest.ranking.rerank import AiReranker, RerankCandidate, attach_selections
from context_suggest.ranking.rules import is_ignored_path, is_suppressed
from context_suggest.store.protocols import FileRepository, ProjectRepository
from context_suggest.suggest.directories import (
    DirectorySelector,
    build_file_tree,
    flatten_directories,
    root_directory_selections,
)
from context_suggest.suggest.file_suggester import AiFileSuggester, heuristic_rank, tokens_saved
from context_suggest.suggest.partial import PartialContentFetcher

logger = logging.getLogger(__name__)

# Rough per-file token costs: whole file vs. the descriptor the model sees
FULL_FILE_TOKENS = 500
DESCRIPTOR_TOKENS = 100


def composite_tokens_saved(total_files: int, analyzed: int) -> int:
    """Tokens avoided by sending descriptors for the analyzed pool instead of every file."""
    full = math.ceil(total_files * FULL_FILE_TOKENS / 4)
    return max(full - math.ceil(analyzed * DESCRIPTOR_TOKENS / 4), 0)


def rankable_partial_files(
    partial_files: list[PartialFileContent], keywords: list[str]
) -> list[PartialFileContent]:
    """Drop fetched files that the ignore or suppress rules keep out of ranking."""
    kept = [
        f
        for f in partial_files
        if not is_ignored_path(f.path) and not is_suppressed(f.path, keywords)
    ]
    if len(kept) < len(partial_files):
        logger.debug("Filtered %d fetched files by path rules", len(partial_files) - len(kept))
    return kept


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class FileSuggestionService:
    """Ranks a project's files for a free-text request.

    Large projects on an AI strategy go through directory selection, partial
    content fetching and AI file ranking first; the composite pipeline runs
    when that yields nothing.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        files: FileRepository,
        expander: FuzzyExpander,
        reranker: AiReranker,
        directory_selector: DirectorySelector,
        fetcher: PartialContentFetcher,
        file_suggester: AiFileSuggester,
        scorer: FileRelevanceScorer | None = None,
        large_project_threshold: int | None = None,
    ) -> None:
        """Initialize with repositories and the pipeline stages."""
        self._projects = projects
        self._files = files
        self._expander = expander
        self._reranker = reranker
        self._directory_selector = directory_selector
        self._fetcher = fetcher
        self._file_suggester = file_suggester
        self._scorer = scorer or FileRelevanceScorer()
        self._large_project_threshold = (
            large_project_threshold
            if large_project_threshold is not None
            else get_large_project_threshold()
        )

    async def suggest_items_for_query(
        self,
        project_id: int,
        query: str,
        options: SuggestionOptions | None = None,
    ) -> SuggestionResponse:
        """Suggest files for the query. Raises ProjectNotFoundError for unknown projects."""
        opts = options or SuggestionOptions()
        config = STRATEGIES[opts.strategy]
        started = time.perf_counter()

        if await self._projects.get(project_id) is None:
            raise ProjectNotFoundError(project_id)

        files = await self._files.get_by_project(project_id)
        if not files:
            return SuggestionResponse(
                metadata=SuggestionMetadata(
                    strategy=opts.strategy, processing_time_ms=_elapsed_ms(started)
                )
            )

        if config.use_ai and len(files) > self._large_project_threshold:
            two_stage = await self._try_two_stage(project_id, query, opts, files)
            if two_stage is not None and two_stage.suggestions:
                return self._two_stage_response(two_stage, opts, len(files), started)
            logger.info("Two-stage flow empty for project %d, using composite", project_id)

        return await self._composite(project_id, query, opts, files, started)

    async def _composite(
        self,
        project_id: int,
        query: str,
        opts: SuggestionOptions,
        files: list[FileItem],
        started: float,
    ) -> SuggestionResponse:
        config = STRATEGIES[opts.strategy]
        keywords = extract_keywords(query)
        scoring_keywords = extract_keywords(f"{query} {opts.user_context or ''}")
        relevance = self._scorer.score(files, scoring_keywords)
        expansion = await self._expander.expand(project_id, keywords, opts.max_results)

        by_id = {f.id: f for f in files}
        composite = rank_file_candidates(
            by_id,
            relevance,
            expansion.scores,
            keywords,
            candidate_pool_size(config.max_pre_filter_items, opts.max_results),
        )

        if not composite:
            ids = most_recent_ids(files, opts.max_results)
            logger.debug("No file candidates for %r, returning %d recent files", query, len(ids))
            return SuggestionResponse(
                suggestions=ids,
                scores=[CompositeScore(item_id=i) for i in ids],
                metadata=SuggestionMetadata(
                    total_items=len(files),
                    strategy=opts.strategy,
                    processing_time_ms=_elapsed_ms(started),
                    pipeline="recent",
                ),
            )

        outcome = await self._reranker.rerank(
            [
                RerankCandidate(
                    id=s.item_id,
                    title=by_id[s.item_id].path,
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

        composite_by_id = {s.item_id: s for s in composite}
        scores = attach_selections(outcome.ids, composite_by_id, outcome.selections)
        logger.info(
            "Suggested %d files for project %d (strategy=%s, ai=%s)",
            len(outcome.ids),
            project_id,
            opts.strategy.value,
            outcome.ai_stage.value,
        )
        return SuggestionResponse(
            suggestions=outcome.ids,
            scores=scores,
            metadata=SuggestionMetadata(
                total_items=len(files),
                analyzed_items=len(composite),
                strategy=opts.strategy,
                processing_time_ms=_elapsed_ms(started),
                tokens_saved=composite_tokens_saved(len(files), len(composite)),
                ai_selections=outcome.selections,
                ai_stage=outcome.ai_stage,
            ),
        )

    async def _try_two_stage(
        self, project_id: int, query: str, opts: SuggestionOptions, files: list[FileItem]
    ) -> TwoStageResult | None:
        try:
            return await self._run_two_stage(
                project_id,
                query,
                TwoStageOptions(
                    strategy=opts.strategy,
                    max_results=opts.max_results,
                    user_context=opts.user_context,
                ),
                files,
            )
        except InvalidDirectoryError as e:
            logger.warning("Two-stage flow rejected a directory, using composite: %s", e)
            return None

    @staticmethod
    def _two_stage_response(
        result: TwoStageResult, opts: SuggestionOptions, total_files: int, started: float
    ) -> SuggestionResponse:
        used_fallback = any(ReasonTag.FALLBACK in f.reasons for f in result.suggested_files)
        selections = (
            []
            if used_fallback
            else [
                AiSelection(id=f.file_id, confidence=f.confidence, reasons=f.reasons[:3])
                for f in result.suggested_files
            ]
        )
        scores = [
            CompositeScore(
                item_id=f.file_id,
                total_score=f.relevance,
                relevance_total=f.relevance,
                ai_confidence=None if used_fallback else f.confidence,
                ai_reasons=None if used_fallback else list(f.reasons),
            )
            for f in result.suggested_files
        ]
        return SuggestionResponse(
            suggestions=result.suggestions,
            scores=scores,
            metadata=SuggestionMetadata(
                total_items=total_files,
                analyzed_items=result.metadata.analyzed_files,
                strategy=opts.strategy,
                processing_time_ms=_elapsed_ms(started),
                tokens_saved=result.metadata.tokens_saved,
                ai_selections=selections,
                ai_stage=AiStage.FALLBACK if used_fallback else AiStage.APPLIED,
                pipeline="two-stage",
            ),
        )

    async def suggest_files_two_stage(
        self,
        project_id: int,
        query: str,
        options: TwoStageOptions | None = None,
    ) -> TwoStageResult:
        """Directory selection, then partial content fetch, then file ranking.

        Explicit ``directories`` skip selection and are sandbox-checked by the
        fetcher. Non-AI strategies use root directories and heuristic ranking.
        """
        if await self._projects.get(project_id) is None:
            raise ProjectNotFoundError(project_id)
        files = await self._files.get_by_project(project_id)
        return await self._run_two_stage(project_id, query, options or TwoStageOptions(), files)

    async def _run_two_stage(
        self,
        project_id: int,
        query: str,
        opts: TwoStageOptions,
        files: list[FileItem],
    ) -> TwoStageResult:
        config = STRATEGIES[opts.strategy]
        started = time.perf_counter()
        tree = build_file_tree(f.path for f in files)

        # Stage 1: directories
        stage_started = time.perf_counter()
        total_directories = len(flatten_directories(tree, DirectorySelectionOptions().max_depth))
        if opts.directories:
            directories = list(opts.directories)
        elif opts.skip_directory_selection or not config.use_ai:
            directories = [
                s.path for s in root_directory_selections(tree, config.max_directories)
            ]
        else:
            selection = await self._directory_selector.select_relevant_directories(
                tree,
                query,
                DirectorySelectionOptions(
                    max_directories=config.max_directories,
                    min_confidence=config.min_directory_confidence,
                    ai_model=config.ai_model_tier,
                    user_context=opts.user_context,
                ),
            )
            directories = selection.selected_directories
            total_directories = selection.metadata.total_directories
        directory_ms = _elapsed_ms(stage_started)

        # Stage 2: partial content
        stage_started = time.perf_counter()
        line_count = opts.line_count or config.line_count
        fetched = None
        if directories:
            fetched = await self._fetcher.fetch_partial_content(
                project_id,
                directories,
                FetchOptions(
                    line_count=line_count,
                    max_total_files=max(config.max_pre_filter_items, opts.max_results * 3),
                ),
            )
        fetch_ms = _elapsed_ms(stage_started)
        partial_files = rankable_partial_files(
            fetched.partial_files if fetched else [], extract_keywords(query)
        )

        # Stage 3: ranking
        stage_started = time.perf_counter()
        ranking_opts = FileRankingOptions(
            max_results=opts.max_results,
            ai_model=config.ai_model_tier,
            strategy=opts.strategy,
            user_context=opts.user_context,
        )
        if config.use_ai:
            ranking = await self._file_suggester.suggest_files_from_partial_content(
                partial_files, query, ranking_opts
            )
        else:
            ranking = FileRankingResult(
                suggested_files=heuristic_rank(partial_files, query, opts.max_results),
                metadata=FileRankingMetadata(
                    total_candidates=len(partial_files),
                    files_analyzed=len(partial_files),
                    ai_model=config.ai_model_tier,
                    tokens_saved=tokens_saved(partial_files),
                    strategy=f"heuristic-file-suggestion-{opts.strategy.value}",
                    used_fallback=True,
                ),
            )
        suggestion_ms = _elapsed_ms(stage_started)

        suggested = ranking.suggested_files
        logger.debug(
            "Two-stage for project %d: %d dirs, %d files, %d suggestions "
            "(dirs %.1fms, fetch %.1fms, rank %.1fms)",
            project_id,
            len(directories),
            len(partial_files),
            len(suggested),
            directory_ms,
            fetch_ms,
            suggestion_ms,
        )
        return TwoStageResult(
            suggestions=[f.file_id for f in suggested],
            suggested_files=suggested,
            metadata=TwoStageMetadata(
                strategy=opts.strategy,
                total_files=len(files),
                analyzed_files=len(partial_files),
                selected_directories=directories,
                total_directories=total_directories,
                files_from_directories=(
                    fetched.metadata.total_files_in_directories if fetched else 0
                ),
                line_count_per_file=line_count,
                ai_model=config.ai_model_tier,
                tokens_saved=ranking.metadata.tokens_saved,
                directory_selection_time_ms=directory_ms,
                file_fetch_time_ms=fetch_ms,
                suggestion_time_ms=suggestion_ms,
                processing_time_ms=_elapsed_ms(started),
            ),
        )
