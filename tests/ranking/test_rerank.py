"""Tests for AI listwise reranking."""

import pytest

from context_suggest.models.scores import AiSelection, CompositeScore, ReasonTag
from context_suggest.models.strategy import STRATEGIES, CompactLevel, Strategy
from context_suggest.models.suggestion import AiStage
from context_suggest.ranking.rerank import (
    AiReranker,
    RerankCandidate,
    RerankSelection,
    attach_selections,
    build_descriptor,
    build_rerank_prompt,
    merge_selections,
    sanitize,
    truncate_middle,
)
from tests.conftest import TEST_TIERS, FakeLLM, RaisingLLM, make_gateway

BALANCED = STRATEGIES[Strategy.BALANCED]


def _candidates(n: int) -> list[RerankCandidate]:
    return [
        RerankCandidate(
            id=f"p{i}",
            title=f"Prompt {i}",
            score=CompositeScore(item_id=f"p{i}", total_score=1.0 - i * 0.1),
            tags=["auth"] if i == 0 else [],
        )
        for i in range(n)
    ]


def _selections(*ids: str) -> dict:
    return {
        "selections": [
            {"id": item_id, "confidence": 0.9, "reasons": ["DirectMatch"]} for item_id in ids
        ]
    }


async def _rerank(llm: FakeLLM, candidates, config=BALANCED, max_results=3, kind="prompt"):
    reranker = AiReranker(make_gateway(llm), TEST_TIERS, kind=kind)
    return await reranker.rerank(
        candidates,
        query="implement auth login",
        keywords=["implement", "auth", "login"],
        config=config,
        max_results=max_results,
    )


def test_sanitize_strips_delimiters():
    assert sanitize("a|b\nc\r  d") == "a b c d"


def test_truncate_middle():
    value = "src/" + "x" * 100 + "/final.ts"
    out = truncate_middle(value, 40)
    assert len(out) == 40
    assert out.startswith("src/")
    assert out.endswith("final.ts")
    assert "..." in out
    assert truncate_middle("short", 40) == "short"


def test_descriptor_fields():
    candidate = RerankCandidate(
        id="p1",
        title="Auth | Flow",
        score=CompositeScore(item_id="p1", total_score=0.8, recency_score=1.0, title_score=0.5),
        tags=["auth", "backend"],
    )
    line = build_descriptor(candidate, 1, CompactLevel.COMPACT, ["auth"])
    fields = line.split("|")
    assert fields[0] == "p1"
    assert fields[1] == "Auth Flow"
    assert "category:auth" in fields
    assert "rank:1" in fields
    assert "score:0.80" in fields
    assert "rec:1.00" in fields
    assert "tags:[auth,backend]" in fields
    assert "hints:[kw:auth,auth]" in fields
    assert not any(f.startswith("title:") for f in fields)

    standard = build_descriptor(candidate, 1, CompactLevel.STANDARD, ["auth"])
    assert "title:0.50" in standard.split("|")


def test_prompt_mentions_top_k_and_reason_tags():
    prompt = build_rerank_prompt("fix login", "on the web app", ["p1|x"], 5, "file")
    assert "User Request: fix login" in prompt
    assert "Additional Context: on the web app" in prompt
    assert "Choose up to 5 files" in prompt
    assert "DirectMatch" in prompt
    assert "fallback" not in prompt


def test_merge_selections_discards_unoffered_and_repeats():
    ids, placed, usable = merge_selections(
        ["a", "b", "c"],
        ["a", "b", "c", "d"],
        [
            _sel("c"),
            _sel("ghost"),
            _sel("c"),
            _sel("d"),
            _sel("a"),
        ],
        3,
    )
    assert ids == ["c", "a", "b"]
    assert [s.id for s in placed] == ["c", "a"]
    assert usable == 2


def test_merge_selections_reports_only_placed_picks():
    ids, placed, usable = merge_selections(
        ["a", "b", "c", "d"],
        ["a", "b", "c", "d"],
        [_sel("d"), _sel("c"), _sel("b"), _sel("a")],
        2,
    )
    assert ids == ["d", "c"]
    assert [s.id for s in placed] == ["d", "c"]
    assert usable == 4


def _sel(item_id: str) -> RerankSelection:
    return RerankSelection(id=item_id, confidence=0.5, reasons=[ReasonTag.API])


@pytest.mark.asyncio
async def test_fast_strategy_never_calls_model():
    llm = FakeLLM()
    outcome = await _rerank(llm, _candidates(10), config=STRATEGIES[Strategy.FAST])
    assert outcome.ai_stage is AiStage.NOT_RUN
    assert outcome.ids == ["p0", "p1", "p2"]
    assert llm.generate_count == 0


@pytest.mark.asyncio
async def test_small_pool_skips_model():
    llm = FakeLLM()
    outcome = await _rerank(llm, _candidates(3), max_results=5)
    assert outcome.ai_stage is AiStage.NOT_RUN
    assert llm.generate_count == 0


@pytest.mark.asyncio
async def test_applied_selections_lead():
    llm = FakeLLM()
    llm.respond_with(_selections("p4", "p2", "p5"))
    outcome = await _rerank(llm, _candidates(8), max_results=4)
    assert outcome.ai_stage is AiStage.APPLIED
    assert outcome.ids == ["p4", "p2", "p5", "p0"]
    assert [s.id for s in outcome.selections] == ["p4", "p2", "p5"]
    assert llm.last_options is not None
    assert llm.last_options.model == "fake-medium"


@pytest.mark.asyncio
async def test_small_max_results_still_applies():
    llm = FakeLLM()
    llm.respond_with(_selections("p5", "p4", "p3", "p2"))
    outcome = await _rerank(llm, _candidates(8), max_results=2)
    assert outcome.ai_stage is AiStage.APPLIED
    assert outcome.ids == ["p5", "p4"]
    assert [s.id for s in outcome.selections] == outcome.ids
    assert "Choose up to 3 prompts" in llm.last_prompt


@pytest.mark.asyncio
async def test_thorough_uses_high_tier():
    llm = FakeLLM()
    llm.respond_with(_selections("p1", "p2", "p3"))
    await _rerank(llm, _candidates(8), config=STRATEGIES[Strategy.THOROUGH])
    assert llm.last_options.model == "fake-high"


@pytest.mark.asyncio
async def test_too_few_known_selections_fall_back():
    llm = FakeLLM()
    llm.respond_with(_selections("p1", "ghost-1", "ghost-2"))
    outcome = await _rerank(llm, _candidates(8))
    assert outcome.ai_stage is AiStage.FALLBACK
    assert outcome.ids == ["p0", "p1", "p2"]
    assert outcome.selections == []


@pytest.mark.asyncio
async def test_model_fallback_reason_rejected():
    llm = FakeLLM()
    payload = _selections("p1", "p2", "p3")
    payload["selections"][0]["reasons"] = ["fallback"]
    llm.respond_with(payload)
    outcome = await _rerank(llm, _candidates(8))
    assert outcome.ai_stage is AiStage.FALLBACK


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [None, "not json at all", '{"selections": "nope"}'])
async def test_bad_responses_fall_back(response):
    llm = FakeLLM(response=response)
    outcome = await _rerank(llm, _candidates(8))
    assert outcome.ai_stage is AiStage.FALLBACK
    assert outcome.ids == ["p0", "p1", "p2"]


@pytest.mark.asyncio
async def test_provider_exception_falls_back():
    llm = RaisingLLM()
    outcome = await _rerank(llm, _candidates(8))
    assert outcome.ai_stage is AiStage.FALLBACK
    assert llm.generate_count == 1


@pytest.mark.asyncio
async def test_fallback_is_idempotent():
    llm = FakeLLM(response="garbage")
    first = await _rerank(llm, _candidates(8))
    second = await _rerank(llm, _candidates(8))
    assert first.ids == second.ids


def test_attach_selections():
    composite = {"a": CompositeScore(item_id="a", total_score=0.5)}
    scores = attach_selections(
        ["a", "b"], composite, [AiSelection(id="a", confidence=0.7, reasons=[ReasonTag.AUTH])]
    )
    assert scores[0].ai_confidence == 0.7
    assert scores[0].ai_reasons == [ReasonTag.AUTH]
    assert scores[0].total_score == 0.5
    assert scores[1].item_id == "b"
    assert scores[1].ai_confidence is None
