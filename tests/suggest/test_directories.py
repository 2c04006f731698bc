"""Tests for directory selection."""

import pytest

from context_suggest.models.items import FileTreeNode
from context_suggest.models.strategy import ModelTier
from context_suggest.models.suggestion import DirectorySelectionOptions
from context_suggest.suggest.directories import (
    FALLBACK_CONFIDENCE,
    FALLBACK_STRATEGY,
    DirectorySelector,
    build_file_tree,
    flatten_directories,
    normalize_directory_path,
)
from tests.conftest import TEST_TIERS, FakeLLM, RaisingLLM, make_gateway

PATHS = [
    "src/auth/login.ts",
    "src/auth/session.ts",
    "src/api/users.ts",
    "docs/readme.md",
    "node_modules/lib/index.js",
    "package.json",
]


@pytest.fixture
def tree() -> FileTreeNode:
    return build_file_tree(PATHS, root_name="demo")


def _picks(*entries: tuple[str, float]) -> dict:
    return {
        "directories": [
            {"path": path, "confidence": confidence, "reason": "matches request"}
            for path, confidence in entries
        ]
    }


def test_build_file_tree_shape(tree):
    assert tree.name == "demo"
    names = [c.name for c in tree.children]
    assert names == ["docs", "node_modules", "package.json", "src"]
    src = next(c for c in tree.children if c.name == "src")
    assert src.path == "/src"
    assert [c.path for c in src.children] == ["/src/api", "/src/auth"]


def test_flatten_skips_ignored_and_counts_files(tree):
    entries = {e.path: e for e in flatten_directories(tree, max_depth=4)}
    assert set(entries) == {"docs", "src", "src/api", "src/auth"}
    assert entries["src"].file_count == 3
    assert entries["src/auth"].depth == 2


def test_flatten_respects_max_depth(tree):
    paths = [e.path for e in flatten_directories(tree, max_depth=1)]
    assert paths == ["docs", "src"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("/src/auth/", "src/auth"),
        ("src\\api", "src/api"),
        ("src/./auth", "src/auth"),
        ("/", None),
        ("", None),
        ("../etc", None),
        ("src/../../etc", None),
    ],
)
def test_normalize_directory_path(raw, expected):
    assert normalize_directory_path(raw) == expected


@pytest.mark.asyncio
async def test_empty_tree_skips_model():
    llm = FakeLLM()
    selector = DirectorySelector(make_gateway(llm), TEST_TIERS)
    result = await selector.select_relevant_directories(
        FileTreeNode(name="empty", path="/", type="directory"), "auth"
    )
    assert result.selected_directories == []
    assert result.metadata.total_directories == 0
    assert llm.generate_count == 0


@pytest.mark.asyncio
async def test_selection_filters_and_caps(tree):
    llm = FakeLLM()
    llm.respond_with(
        _picks(
            ("src/auth", 0.9),
            ("/src/auth/", 0.8),  # duplicate after normalization
            ("lib/unknown", 0.9),  # not in the tree
            ("docs", 0.1),  # under min_confidence
            ("src/api", 0.6),
            ("src", 0.5),
        )
    )
    selector = DirectorySelector(make_gateway(llm), TEST_TIERS)
    result = await selector.select_relevant_directories(
        tree,
        "fix the login session bug",
        DirectorySelectionOptions(max_directories=2, min_confidence=0.3, user_context="backend"),
    )
    assert result.selected_directories == ["src/auth", "src/api"]
    assert [s.confidence for s in result.all_selections] == [0.9, 0.6]
    assert result.metadata.strategy == "directory-selection-medium"
    assert result.metadata.total_directories == 4
    assert llm.last_prompt is not None
    assert "Additional Context: backend" in llm.last_prompt
    assert "src/auth/ (2 files)" in llm.last_prompt


@pytest.mark.asyncio
async def test_high_tier_model_is_used(tree):
    llm = FakeLLM()
    llm.respond_with(_picks(("src/auth", 0.9)))
    selector = DirectorySelector(make_gateway(llm), TEST_TIERS)
    result = await selector.select_relevant_directories(
        tree, "auth", DirectorySelectionOptions(ai_model=ModelTier.HIGH)
    )
    assert llm.last_options is not None
    assert llm.last_options.model == "fake-high"
    assert result.metadata.ai_model == ModelTier.HIGH


@pytest.mark.asyncio
async def test_malformed_response_falls_back_to_root_dirs(tree):
    selector = DirectorySelector(make_gateway(FakeLLM(response="not json")), TEST_TIERS)
    result = await selector.select_relevant_directories(tree, "auth")
    assert result.selected_directories == ["docs", "src"]
    assert all(s.confidence == FALLBACK_CONFIDENCE for s in result.all_selections)
    assert all(s.reason == "fallback" for s in result.all_selections)
    assert result.metadata.strategy == FALLBACK_STRATEGY


@pytest.mark.asyncio
async def test_provider_exception_falls_back(tree):
    selector = DirectorySelector(make_gateway(RaisingLLM()), TEST_TIERS)
    result = await selector.select_relevant_directories(
        tree, "auth", DirectorySelectionOptions(max_directories=1)
    )
    assert result.selected_directories == ["docs"]
    assert result.metadata.strategy == FALLBACK_STRATEGY


@pytest.mark.asyncio
async def test_no_usable_picks_falls_back(tree):
    llm = FakeLLM()
    llm.respond_with(_picks(("../../etc", 0.9), ("vendor", 0.9)))
    selector = DirectorySelector(make_gateway(llm), TEST_TIERS)
    result = await selector.select_relevant_directories(tree, "auth")
    assert result.metadata.strategy == FALLBACK_STRATEGY
    assert result.selected_directories == ["docs", "src"]
