"""Tests for composite candidate ranking."""

import pytest

from context_suggest.models.scores import RelevanceScoreResult
from context_suggest.ranking.composite import (
    candidate_ids,
    candidate_pool_size,
    content_hint,
    path_token_boost,
    rank_file_candidates,
    rank_prompt_candidates,
)
from context_suggest.ranking.relevance import FileRelevanceScorer, PromptRelevanceScorer
from tests.conftest import make_file, make_prompt


def _rel(item_id: str, total: float) -> RelevanceScoreResult:
    return RelevanceScoreResult(item_id=item_id, total_score=total)


def test_pool_size():
    assert candidate_pool_size(30, 10) == 120
    assert candidate_pool_size(5, 20) == 200


def test_candidate_ids_relevance_then_fuzzy_only():
    known = {"a": 1, "b": 1, "c": 1, "d": 1}
    relevance = [_rel("b", 0.9), _rel("a", 0.5), _rel("c", 0.1)]
    fuzzy = {"d": 0.7, "a": 0.3, "ghost": 1.0}
    assert candidate_ids(relevance, fuzzy, 2, known) == ["b", "a", "d"]


def test_path_token_boost():
    assert path_token_boost("src/auth/login.ts", ["auth", "login"]) == 1.0
    assert path_token_boost("src/auth/login.ts", ["auth", "billing"]) == 0.5


def test_content_hint_stem_credit():
    assert content_hint("login flow", ["login"]) == 1.0
    assert content_hint("authenticating users", ["authentication"]) == pytest.approx(0.3)
    assert content_hint("", ["login"]) == 0.0


def _rank_files(files, keywords, fuzzy=None):
    by_id = {f.id: f for f in files}
    relevance = FileRelevanceScorer().score(files, keywords)
    return rank_file_candidates(by_id, relevance, fuzzy or {}, keywords, 120)


def test_ignored_and_suppressed_files_dropped():
    files = [
        make_file("1", "src/auth/login.ts", "login"),
        make_file("2", "node_modules/auth/index.js", "login"),
        make_file("3", ".github/workflows/auth.yml", "login"),
    ]
    ranked = _rank_files(files, ["auth", "login"], fuzzy={"2": 1.0, "3": 1.0})
    assert [s.item_id for s in ranked] == ["1"]


def test_test_files_penalized_below_source():
    files = [
        make_file("1", "src/auth/login.test.ts", "login auth"),
        make_file("2", "src/auth/login.ts", "login auth"),
    ]
    ranked = _rank_files(files, ["auth", "login"])
    assert [s.item_id for s in ranked] == ["2", "1"]
    assert ranked[1].penalty == pytest.approx(0.25)


def test_fuzzy_only_candidates_enter_pool():
    files = [make_file("1", "a/b.py"), make_file("2", "c/d.py")]
    by_id = {f.id: f for f in files}
    ranked = rank_file_candidates(by_id, [], {"2": 1.0}, ["zzz"], 120)
    assert [s.item_id for s in ranked] == ["2"]
    assert ranked[0].fuzzy_score == 1.0
    assert ranked[0].relevance_total == 0.0


def test_scores_bounded():
    files = [
        make_file(str(i), f"src/auth/mcp/login{i}.ts", "auth login mcp " * 20)
        for i in range(5)
    ]
    fuzzy = {str(i): 1.0 for i in range(5)}
    ranked = _rank_files(files, ["implement", "auth", "login", "mcp"], fuzzy)
    for s in ranked:
        assert 0.0 <= s.total_score <= 1.0


def test_prompt_ranking_rewards_tags():
    prompts = [
        make_prompt("1", "Routes", tags=["api"]),
        make_prompt("2", "Routes", tags=["auth"]),
    ]
    by_id = {p.id: p for p in prompts}
    keywords = ["auth"]
    relevance = PromptRelevanceScorer(min_score=0.0).score(prompts, keywords)
    ranked = rank_prompt_candidates(by_id, relevance, {}, keywords, 120)
    assert ranked[0].item_id == "2"
    assert ranked[0].boost > ranked[1].boost


def test_ranking_deterministic():
    files = [make_file(str(i), f"src/mod{i}/auth.ts", "auth") for i in range(6)]
    first = [s.item_id for s in _rank_files(files, ["auth"])]
    second = [s.item_id for s in _rank_files(files, ["auth"])]
    assert first == second
