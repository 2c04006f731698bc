"""AI file ranking over partial file contents."""

import logging
import math
import time
from collections.abc import Sequence

from pydantic import BaseModel, Field, field_validator

from context_suggest.errors import StructuredOutputError
from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.tiers import ModelTierResolver
from context_suggest.models.partial import PartialFileContent
from context_suggest.models.scores import MODEL_REASON_TAGS, ReasonTag
from context_suggest.models.suggestion import (
    FileRankingMetadata,
    FileRankingOptions,
    FileRankingResult,
    SuggestedFile,
)
from context_suggest.ranking.keywords import extract_keywords
from context_suggest.ranking.relevance import clamp01, content_score, path_score
from context_suggest.suggest.partial import estimate_tokens

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are a senior engineer choosing which files a developer should open for a \
task. Each candidate shows its id, path and first lines. Judge relevance from \
the path and the visible content only.

Rules:
- Only use file ids from the candidate list.
- confidence: how sure you are the file matters (0 to 1).
- relevance: how central the file is to the task (0 to 1).
- reasons: one to three tags from the valid reason tags.\
"""


class FileSuggestionPick(BaseModel):
    """One file chosen by the model."""

    file_id: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    reasons: list[ReasonTag] = Field(min_length=1, max_length=3)

    @field_validator("reasons")
    @classmethod
    def _no_fallback(cls, value: list[ReasonTag]) -> list[ReasonTag]:
        if ReasonTag.FALLBACK in value:
            raise ValueError("'fallback' is not a valid model reason")
        return value


class FileSuggestionResponse(BaseModel):
    """Structured response expected from the file ranking model."""

    suggestions: list[FileSuggestionPick] = Field(default_factory=list, max_length=50)


def build_file_prompt(
    files: Sequence[PartialFileContent], query: str, user_context: str | None, max_results: int
) -> str:
    """Lay out each partial file as a fenced block under its id and path."""
    lines = [f"User Request: {query}"]
    if user_context:
        lines.append(f"Additional Context: {user_context}")
    lines.append("")
    lines.append("Candidate files:")
    for f in files:
        lines.append(f"### [{f.file_id}] {f.path} (first {f.line_count} of {f.total_lines} lines)")
        lines.append("```")
        lines.append(f.partial_content)
        lines.append("```")
    lines.append("")
    lines.append(f"Choose up to {max_results} files that best address the request.")
    lines.append(f"Valid reason tags: {', '.join(t.value for t in MODEL_REASON_TAGS)}")
    return "\n".join(lines)


def tokens_saved(files: Sequence[PartialFileContent]) -> int:
    """Tokens avoided by sending file heads instead of whole files."""
    saved = sum(math.ceil(f.size / 4) - estimate_tokens(f.partial_content) for f in files)
    return max(saved, 0)


def _suggested(
    f: PartialFileContent, confidence: float, relevance: float, reasons: list[ReasonTag]
) -> SuggestedFile:
    return SuggestedFile(
        file_id=f.file_id,
        path=f.path,
        extension=f.extension,
        confidence=confidence,
        relevance=relevance,
        reasons=reasons,
        line_count=f.line_count,
        total_lines=f.total_lines,
    )


def heuristic_rank(
    files: Sequence[PartialFileContent], query: str, max_results: int
) -> list[SuggestedFile]:
    """Path and content keyword scoring used when the model is unavailable."""
    keywords = extract_keywords(query)
    scored: list[SuggestedFile] = []
    for f in files:
        relevance = clamp01(
            0.6 * path_score(f.path, keywords) + 0.4 * content_score(f.partial_content, keywords)
        )
        if relevance > 0:
            scored.append(_suggested(f, relevance, relevance, [ReasonTag.FALLBACK]))
    scored.sort(key=lambda s: s.relevance, reverse=True)
    return scored[:max_results]


class AiFileSuggester:
    """Ranks partial file contents with a structured-output model."""

    def __init__(self, gateway: StructuredOutputGateway, tiers: ModelTierResolver) -> None:
        """Initialize with the structured-output gateway and tier resolver."""
        self._gateway = gateway
        self._tiers = tiers

    async def suggest_files_from_partial_content(
        self,
        partial_files: Sequence[PartialFileContent],
        query: str,
        options: FileRankingOptions | None = None,
    ) -> FileRankingResult:
        """Rank files by relevance to the query.

        Unknown or repeated ids from the model are discarded. Model failure
        falls back to heuristic scoring with reason ``fallback``.
        """
        opts = options or FileRankingOptions()
        started = time.perf_counter()
        by_id = {f.file_id: f for f in partial_files}
        used_fallback = False

        if not partial_files:
            suggestions: list[SuggestedFile] = []
        else:
            try:
                response = await self._gateway.generate(
                    build_file_prompt(partial_files, query, opts.user_context, opts.max_results),
                    _SYSTEM_PROMPT,
                    FileSuggestionResponse,
                    self._tiers.resolve(opts.ai_model),
                )
                suggestions = self._accept(response, by_id, opts)
            except StructuredOutputError as e:
                logger.warning("AI file ranking failed, using heuristic ranking: %s", e)
                suggestions = heuristic_rank(partial_files, query, opts.max_results)
                used_fallback = True
            except Exception:
                logger.warning("AI file ranking raised unexpectedly", exc_info=True)
                suggestions = heuristic_rank(partial_files, query, opts.max_results)
                used_fallback = True

        return FileRankingResult(
            suggested_files=suggestions,
            metadata=FileRankingMetadata(
                total_candidates=len(partial_files),
                files_analyzed=len(partial_files),
                processing_time_ms=(time.perf_counter() - started) * 1000,
                ai_model=opts.ai_model,
                tokens_saved=tokens_saved(partial_files),
                strategy=f"ai-file-suggestion-{opts.strategy.value}",
                used_fallback=used_fallback,
            ),
        )

    @staticmethod
    def _accept(
        response: FileSuggestionResponse,
        by_id: dict[str, PartialFileContent],
        opts: FileRankingOptions,
    ) -> list[SuggestedFile]:
        accepted: list[SuggestedFile] = []
        seen: set[str] = set()
        discarded = 0
        for pick in response.suggestions:
            f = by_id.get(pick.file_id)
            if f is None or pick.file_id in seen:
                discarded += 1
                continue
            seen.add(pick.file_id)
            if pick.confidence < opts.min_confidence:
                continue
            accepted.append(_suggested(f, pick.confidence, pick.relevance, pick.reasons))
        if discarded:
            logger.warning("Discarded %d unknown or repeated file ids from model", discarded)
        accepted.sort(key=lambda s: s.relevance, reverse=True)
        return accepted[: opts.max_results]
