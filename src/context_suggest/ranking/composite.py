"""Composite ranking: blends relevance, fuzzy similarity, boosts and penalties."""

import logging
from collections.abc import Mapping, Sequence

from context_suggest.models.items import FileItem, PromptItem
from context_suggest.models.scores import CompositeScore, RelevanceScoreResult
from context_suggest.ranking.relevance import clamp01, path_segments, tag_score
from context_suggest.ranking.rules import (
    code_location_boost,
    domain_boost,
    is_ignored_path,
    is_suppressed,
    total_penalty,
)

logger = logging.getLogger(__name__)

# Relevance results taken per pre-filter slot
POOL_MULTIPLIER = 4

FILE_BLEND = {
    "base": 0.55,
    "fuzzy": 0.20,
    "path_tokens": 0.15,
    "code_location": 0.10,
    "domain": 0.10,
}
PROMPT_BLEND = {
    "base": 0.70,
    "fuzzy": 0.20,
    "tags": 0.10,
    "content": 0.10,
}


def candidate_pool_size(max_pre_filter_items: int, max_results: int) -> int:
    """How many top relevance results enter the composite stage."""
    return max(max_pre_filter_items * POOL_MULTIPLIER, max_results * 10)


def candidate_ids(
    relevance: Sequence[RelevanceScoreResult],
    fuzzy_scores: Mapping[str, float],
    pool_size: int,
    known_ids: Mapping[str, object],
) -> list[str]:
    """Top relevance ids, then fuzzy-only hits in first-seen order.

    Ids the repository does not know are dropped.
    """
    ids: list[str] = []
    seen: set[str] = set()
    for score in relevance[:pool_size]:
        if score.item_id in known_ids and score.item_id not in seen:
            seen.add(score.item_id)
            ids.append(score.item_id)
    for item_id in fuzzy_scores:
        if item_id in known_ids and item_id not in seen:
            seen.add(item_id)
            ids.append(item_id)
    return ids


def path_token_boost(path: str, keywords: Sequence[str]) -> float:
    """Fraction of keywords that appear as whole path segments."""
    if not keywords:
        return 0.0
    segments = set(path_segments(path))
    return clamp01(sum(1 for k in keywords if k in segments) / len(keywords))


def content_hint(content: str, keywords: Sequence[str]) -> float:
    """Substring hits in the content, 0.3 for a word whose stem prefixes a keyword."""
    if not content or not keywords:
        return 0.0
    lowered = content.lower()
    words = lowered.split()
    hits = 0.0
    for keyword in keywords:
        if keyword in lowered:
            hits += 1.0
            continue
        for word in words:
            stem = word[: max(3, -(-len(word) * 7 // 10))]
            if keyword.startswith(stem):
                hits += 0.3
                break
    return clamp01(hits / len(keywords))


def _zero(item_id: str) -> RelevanceScoreResult:
    return RelevanceScoreResult(item_id=item_id)


def _sorted(scores: list[CompositeScore]) -> list[CompositeScore]:
    # list.sort is stable: ties keep candidate order
    scores.sort(key=lambda s: s.total_score, reverse=True)
    return scores


def rank_file_candidates(
    files: Mapping[str, FileItem],
    relevance: Sequence[RelevanceScoreResult],
    fuzzy_scores: Mapping[str, float],
    keywords: Sequence[str],
    pool_size: int,
) -> list[CompositeScore]:
    """Build and rank the composite file pool.

    Ignored and suppressed paths are dropped before blending.
    """
    by_id = {s.item_id: s for s in relevance}
    results: list[CompositeScore] = []
    dropped = 0
    for item_id in candidate_ids(relevance, fuzzy_scores, pool_size, files):
        path = files[item_id].path
        if is_ignored_path(path) or is_suppressed(path, keywords):
            dropped += 1
            continue
        base = by_id.get(item_id) or _zero(item_id)
        fuzzy = fuzzy_scores.get(item_id, 0.0)
        boost = (
            FILE_BLEND["path_tokens"] * path_token_boost(path, keywords)
            + FILE_BLEND["code_location"] * code_location_boost(path, keywords)
            + FILE_BLEND["domain"] * domain_boost(path, keywords)
        )
        penalty = total_penalty(path, keywords)
        blended = (
            FILE_BLEND["base"] * base.total_score + FILE_BLEND["fuzzy"] * fuzzy + boost - penalty
        )
        results.append(
            CompositeScore(
                **base.model_dump(exclude={"total_score"}),
                total_score=clamp01(blended),
                relevance_total=base.total_score,
                fuzzy_score=fuzzy,
                boost=boost,
                penalty=penalty,
            )
        )
    if dropped:
        logger.debug("Dropped %d ignored or suppressed file candidates", dropped)
    return _sorted(results)


def rank_prompt_candidates(
    prompts: Mapping[str, PromptItem],
    relevance: Sequence[RelevanceScoreResult],
    fuzzy_scores: Mapping[str, float],
    keywords: Sequence[str],
    pool_size: int,
) -> list[CompositeScore]:
    """Build and rank the composite prompt pool."""
    by_id = {s.item_id: s for s in relevance}
    results: list[CompositeScore] = []
    for item_id in candidate_ids(relevance, fuzzy_scores, pool_size, prompts):
        prompt = prompts[item_id]
        base = by_id.get(item_id) or _zero(item_id)
        fuzzy = fuzzy_scores.get(item_id, 0.0)
        boost = PROMPT_BLEND["tags"] * tag_score(prompt.tags, keywords) + PROMPT_BLEND[
            "content"
        ] * content_hint(prompt.content, keywords)
        blended = PROMPT_BLEND["base"] * base.total_score + PROMPT_BLEND["fuzzy"] * fuzzy + boost
        results.append(
            CompositeScore(
                **base.model_dump(exclude={"total_score"}),
                total_score=clamp01(blended),
                relevance_total=base.total_score,
                fuzzy_score=fuzzy,
                boost=boost,
            )
        )
    return _sorted(results)
