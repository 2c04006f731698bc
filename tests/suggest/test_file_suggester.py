"""Tests for AI file ranking over partial content."""

import pytest

from context_suggest.models.partial import PartialFileContent
from context_suggest.models.scores import ReasonTag
from context_suggest.models.strategy import ModelTier, Strategy
from context_suggest.models.suggestion import FileRankingOptions
from context_suggest.suggest.file_suggester import (
    AiFileSuggester,
    build_file_prompt,
    heuristic_rank,
    tokens_saved,
)
from tests.conftest import TEST_TIERS, FakeLLM, RaisingLLM, make_gateway


def _partial(file_id: str, path: str, content: str, size: int = 4000) -> PartialFileContent:
    lines = content.count("\n") + 1
    return PartialFileContent(
        file_id=file_id,
        path=path,
        extension="." + path.rsplit(".", 1)[-1],
        partial_content=content,
        line_count=lines,
        total_lines=lines * 4,
        truncated=True,
        size=size,
    )


FILES = [
    _partial("f1", "src/auth/session.ts", "export const sessionTimeout = 30;\nrefresh()"),
    _partial("f2", "src/api/users.ts", "export function listUsers() {}"),
    _partial("f3", "docs/changelog.md", "release notes"),
]


def _picks(*entries: tuple[str, float, float]) -> dict:
    return {
        "suggestions": [
            {"file_id": fid, "confidence": conf, "relevance": rel, "reasons": ["DirectMatch"]}
            for fid, conf, rel in entries
        ]
    }


def test_prompt_lists_partial_files():
    prompt = build_file_prompt(FILES, "session timeout", "backend only", 5)
    assert "User Request: session timeout" in prompt
    assert "Additional Context: backend only" in prompt
    assert "### [f1] src/auth/session.ts (first 2 of 8 lines)" in prompt
    assert "Choose up to 5 files" in prompt
    assert "fallback" not in prompt


def test_tokens_saved_never_negative():
    assert tokens_saved(FILES) > 0
    tiny = _partial("t", "a.ts", "x" * 400, size=10)
    assert tokens_saved([tiny]) == 0


def test_heuristic_rank_marks_fallback():
    ranked = heuristic_rank(FILES, "session timeout", 10)
    assert [f.file_id for f in ranked] == ["f1"]
    assert ranked[0].reasons == [ReasonTag.FALLBACK]
    assert ranked[0].confidence == ranked[0].relevance


@pytest.mark.asyncio
async def test_accepts_known_ids_sorted_by_relevance():
    llm = FakeLLM()
    llm.respond_with(
        _picks(("f2", 0.8, 0.5), ("f1", 0.9, 0.95), ("ghost", 0.9, 0.9), ("f1", 0.7, 0.1))
    )
    suggester = AiFileSuggester(make_gateway(llm), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(FILES, "session timeout")
    assert [f.file_id for f in result.suggested_files] == ["f1", "f2"]
    assert result.suggested_files[0].confidence == 0.9
    assert result.metadata.used_fallback is False
    assert result.metadata.files_analyzed == 3
    assert result.metadata.strategy == "ai-file-suggestion-balanced"
    assert result.metadata.tokens_saved == tokens_saved(FILES)


@pytest.mark.asyncio
async def test_min_confidence_and_max_results():
    llm = FakeLLM()
    llm.respond_with(_picks(("f1", 0.9, 0.9), ("f2", 0.2, 0.8), ("f3", 0.6, 0.3)))
    suggester = AiFileSuggester(make_gateway(llm), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(
        FILES, "session", FileRankingOptions(min_confidence=0.5, max_results=1)
    )
    assert [f.file_id for f in result.suggested_files] == ["f1"]


@pytest.mark.asyncio
async def test_high_tier_and_strategy_label():
    llm = FakeLLM()
    llm.respond_with(_picks(("f1", 0.9, 0.9)))
    suggester = AiFileSuggester(make_gateway(llm), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(
        FILES,
        "session",
        FileRankingOptions(ai_model=ModelTier.HIGH, strategy=Strategy.THOROUGH),
    )
    assert llm.last_options is not None
    assert llm.last_options.model == "fake-high"
    assert result.metadata.strategy == "ai-file-suggestion-thorough"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", ["no json", '{"suggestions": [{"file_id": "f1"}]}'])
async def test_bad_response_uses_heuristic(response):
    suggester = AiFileSuggester(make_gateway(FakeLLM(response=response)), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(FILES, "session timeout")
    assert result.metadata.used_fallback is True
    assert [f.file_id for f in result.suggested_files] == ["f1"]
    assert result.suggested_files[0].reasons == [ReasonTag.FALLBACK]


@pytest.mark.asyncio
async def test_fallback_reason_from_model_is_rejected():
    llm = FakeLLM()
    pick = {"file_id": "f1", "confidence": 1, "relevance": 1, "reasons": ["fallback"]}
    llm.respond_with({"suggestions": [pick]})
    suggester = AiFileSuggester(make_gateway(llm), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(FILES, "session")
    assert result.metadata.used_fallback is True


@pytest.mark.asyncio
async def test_provider_exception_uses_heuristic():
    suggester = AiFileSuggester(make_gateway(RaisingLLM()), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content(FILES, "session timeout")
    assert result.metadata.used_fallback is True


@pytest.mark.asyncio
async def test_empty_input_skips_model():
    llm = FakeLLM()
    suggester = AiFileSuggester(make_gateway(llm), TEST_TIERS)
    result = await suggester.suggest_files_from_partial_content([], "session")
    assert result.suggested_files == []
    assert result.metadata.total_candidates == 0
    assert llm.generate_count == 0
