"""AI listwise reranking of the composite candidate pool."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from context_suggest.errors import StructuredOutputError
from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.tiers import ModelTierResolver
from context_suggest.models.scores import MODEL_REASON_TAGS, AiSelection, CompositeScore, ReasonTag
from context_suggest.models.strategy import CompactLevel, StrategyConfig
from context_suggest.models.suggestion import AiStage
from context_suggest.ranking.recency import recency_signal

logger = logging.getLogger(__name__)

MIN_SELECTIONS = 3
MAX_SELECTIONS = 10
MAX_DESCRIPTOR_TAGS = 4
MAX_HINTS = 3

_UNSAFE_RE = re.compile(r"[|\r\n]")
_SPACE_RE = re.compile(r"\s+")

ItemKind = Literal["prompt", "file"]

_SYSTEM_PROMPTS: dict[str, str] = {
    "prompt": (
        "You are a product engineer selecting the most relevant reusable prompts for a "
        "coding task. Review each candidate descriptor carefully and return the strongest "
        "matches along with confidence scores and succinct reason tags."
    ),
    "file": (
        "You are a senior engineer selecting the source files most relevant to a coding "
        "task. Review each candidate descriptor carefully and return the strongest matches "
        "along with confidence scores and succinct reason tags."
    ),
}


class RerankSelection(BaseModel):
    """One pick in the model's response."""

    id: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[ReasonTag] = Field(min_length=1, max_length=3)

    @field_validator("reasons")
    @classmethod
    def _no_fallback(cls, value: list[ReasonTag]) -> list[ReasonTag]:
        if ReasonTag.FALLBACK in value:
            raise ValueError("'fallback' is not a valid model reason")
        return value


class RerankResponse(BaseModel):
    """Structured response expected from the reranking model."""

    selections: list[RerankSelection] = Field(default_factory=list, max_length=MAX_SELECTIONS)


@dataclass
class RerankCandidate:
    """An item as the reranker sees it: display fields plus its composite score."""

    id: str
    title: str
    score: CompositeScore
    tags: list[str] = field(default_factory=list)
    updated_at: datetime | None = None


@dataclass
class RerankOutcome:
    """Final ordering plus what the AI stage did."""

    ids: list[str]
    selections: list[AiSelection]
    ai_stage: AiStage


def sanitize(value: str) -> str:
    """Make a value safe for a pipe-delimited descriptor line."""
    return _SPACE_RE.sub(" ", _UNSAFE_RE.sub(" ", value)).strip()


def truncate_middle(value: str, max_length: int) -> str:
    """Keep the head and tail of a long value around an ellipsis."""
    if len(value) <= max_length:
        return value
    head = value[: int(max_length * 0.6)]
    tail_len = max(0, max_length - len(head) - 3)
    tail = value[-tail_len:] if tail_len else ""
    return f"{head}...{tail}"


def format_score(value: float | None) -> str:
    if value is None or value != value:
        return "0.00"
    return f"{max(0.0, min(1.0, value)):.2f}"


def infer_category(tags: Sequence[str]) -> str:
    """Coarse category from tags: auth, test, api, ui, docs or general."""
    lowered = [t.lower() for t in tags]
    if any("auth" in t for t in lowered):
        return "auth"
    if any("test" in t for t in lowered):
        return "test"
    if any("api" in t for t in lowered):
        return "api"
    if any("ui" in t or "frontend" in t for t in lowered):
        return "ui"
    if any("docs" in t for t in lowered):
        return "docs"
    return "general"


def derive_hints(candidate: RerankCandidate, keywords: Sequence[str]) -> list[str]:
    """Up to three short tokens explaining why a candidate scored."""
    hints: list[str] = []

    def add(hint: str) -> None:
        if hint not in hints:
            hints.append(hint)

    title = candidate.title.lower()
    for keyword in keywords:
        if len(keyword) >= 3 and keyword in title:
            add(f"kw:{keyword}")

    tags = {t.lower() for t in candidate.tags}
    if "auth" in tags:
        add("auth")
    if "api" in tags:
        add("api")
    if tags & {"test", "testing"}:
        add("test")
    if tags & {"ui", "frontend"}:
        add("ui")
    if tags & {"db", "database"}:
        add("db")
    if candidate.score.tag_score > 0.5:
        add("tags")
    if candidate.score.content_score > 0.6:
        add("content")
    return hints[:MAX_HINTS]


def build_descriptor(
    candidate: RerankCandidate, rank: int, level: CompactLevel, keywords: Sequence[str]
) -> str:
    """Render one candidate as a single pipe-delimited line."""
    score = candidate.score
    max_title = 68 if level is CompactLevel.ULTRA else 92
    parts = [
        sanitize(candidate.id),
        sanitize(truncate_middle(candidate.title or "Untitled", max_title)),
        f"category:{infer_category(candidate.tags)}",
        f"rank:{rank}",
        f"score:{format_score(score.total_score)}",
        f"rec:{format_score(score.recency_score or recency_signal(candidate.updated_at))}",
    ]
    tags = [sanitize(t) for t in candidate.tags[:MAX_DESCRIPTOR_TAGS]]
    if tags:
        parts.append(f"tags:[{','.join(tags)}]")
    hints = derive_hints(candidate, keywords)
    if hints:
        parts.append(f"hints:[{','.join(hints)}]")
    if level is CompactLevel.STANDARD:
        parts.append(f"title:{format_score(score.title_score)}")
        parts.append(f"content:{format_score(score.content_score)}")
    return "|".join(sanitize(p) for p in parts)


def build_rerank_prompt(
    query: str,
    user_context: str | None,
    descriptors: Sequence[str],
    top_k: int,
    kind: ItemKind,
) -> str:
    """Assemble the listwise ranking instructions."""
    plural = f"{kind}s"
    lines = [f"User Request: {query or 'None provided.'}"]
    if user_context:
        lines.append(f"Additional Context: {user_context}")
    lines.extend(
        [
            "",
            f"Candidate {plural} (one per line):",
            f"<{kind}Id>|<title>|category:<type>|rank:<n>|score:<0-1>|rec:<0-1>"
            "|tags:[...]|hints:[...]",
            *descriptors,
            "",
            f"Choose up to {top_k} {plural} that best address the request.",
            "Evaluation rubric (priority order):",
            "1) Direct alignment to user intent and keywords",
            "2) Coverage of the technical domain (API/UI/Auth/etc.) indicated by context or tags",
            f"3) Recency and specificity, prefer newer {plural} for bugfixes or active work",
            f"4) Diversity across {kind} types if multiple are needed",
            f"Valid reason tags: {', '.join(t.value for t in MODEL_REASON_TAGS)}",
            "Respond strictly with JSON matching selections[{id, confidence, reasons[]}].",
        ]
    )
    return "\n".join(lines)


def merge_selections(
    offered_ids: Sequence[str],
    composite_ids: Sequence[str],
    selections: Sequence[RerankSelection],
    max_results: int,
) -> tuple[list[str], list[AiSelection], int]:
    """Accepted selections in model order, then the rest in composite order.

    Ids that were not offered to the model and repeats are discarded. Returns
    the final ids, the selections that made it into them, and the number of
    usable selections the model returned.
    """
    offered = set(offered_ids)
    placed: list[AiSelection] = []
    ids: list[str] = []
    seen: set[str] = set()
    usable = 0
    for selection in selections:
        if selection.id not in offered or selection.id in seen:
            continue
        seen.add(selection.id)
        usable += 1
        if len(ids) < max_results:
            ids.append(selection.id)
            placed.append(
                AiSelection(
                    id=selection.id, confidence=selection.confidence, reasons=selection.reasons
                )
            )
    for item_id in composite_ids:
        if len(ids) >= max_results:
            break
        if item_id not in seen:
            seen.add(item_id)
            ids.append(item_id)
    return ids, placed, usable


class AiReranker:
    """Listwise reranking through the structured-output gateway.

    Never raises for model trouble: failures and thin responses fall back to
    composite order and are reported through ``RerankOutcome.ai_stage``.
    """

    def __init__(
        self,
        gateway: StructuredOutputGateway,
        tiers: ModelTierResolver,
        kind: ItemKind = "prompt",
    ) -> None:
        """Initialize with the gateway, tier resolver and the kind of item ranked."""
        self._gateway = gateway
        self._tiers = tiers
        self._kind = kind

    async def rerank(
        self,
        candidates: Sequence[RerankCandidate],
        *,
        query: str,
        keywords: Sequence[str],
        config: StrategyConfig,
        max_results: int,
        user_context: str | None = None,
    ) -> RerankOutcome:
        """Rerank composite-ordered candidates."""
        composite_ids = [c.id for c in candidates]
        fallback_ids = composite_ids[:max_results]

        if not config.use_ai or config.max_ai_items == 0 or len(candidates) <= max_results:
            return RerankOutcome(ids=fallback_ids, selections=[], ai_stage=AiStage.NOT_RUN)

        offered: list[RerankCandidate] = []
        seen: set[str] = set()
        for candidate in candidates[: config.max_ai_items]:
            if candidate.id not in seen:
                seen.add(candidate.id)
                offered.append(candidate)

        descriptors = [
            build_descriptor(c, rank, config.compact_level, keywords)
            for rank, c in enumerate(offered, start=1)
        ]
        # Ask for at least MIN_SELECTIONS so small max_results can still apply.
        top_k = max(MIN_SELECTIONS, min(max_results, MAX_SELECTIONS))
        prompt = build_rerank_prompt(query, user_context, descriptors, top_k, self._kind)

        try:
            response = await self._gateway.generate(
                prompt,
                _SYSTEM_PROMPTS[self._kind],
                RerankResponse,
                self._tiers.resolve(config.ai_model_tier),
            )
        except StructuredOutputError as e:
            logger.warning("AI rerank failed, using composite order: %s", e)
            return RerankOutcome(ids=fallback_ids, selections=[], ai_stage=AiStage.FALLBACK)
        except Exception:
            logger.warning("AI rerank raised unexpectedly, using composite order", exc_info=True)
            return RerankOutcome(ids=fallback_ids, selections=[], ai_stage=AiStage.FALLBACK)

        ids, placed, usable = merge_selections(
            [c.id for c in offered], composite_ids, response.selections, max_results
        )
        if usable < MIN_SELECTIONS:
            logger.warning(
                "AI rerank returned %d usable selections (< %d), using composite order",
                usable,
                MIN_SELECTIONS,
            )
            return RerankOutcome(ids=fallback_ids, selections=[], ai_stage=AiStage.FALLBACK)

        logger.debug("AI rerank accepted %d of %d selections", usable, len(response.selections))
        return RerankOutcome(ids=ids, selections=placed, ai_stage=AiStage.APPLIED)


def attach_selections(
    ids: Sequence[str], composite: dict[str, CompositeScore], selections: Sequence[AiSelection]
) -> list[CompositeScore]:
    """Per-id composite scores with the model's confidence and reasons merged in."""
    by_id = {s.id: s for s in selections}
    scores: list[CompositeScore] = []
    for item_id in ids:
        base = composite.get(item_id) or CompositeScore(item_id=item_id)
        selection = by_id.get(item_id)
        if selection is not None:
            base = base.model_copy(
                update={
                    "ai_confidence": selection.confidence,
                    "ai_reasons": list(selection.reasons),
                }
            )
        scores.append(base)
    return scores
