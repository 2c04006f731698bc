"""Tests for keyword extraction and fuzzy query construction."""

from context_suggest.ranking.keywords import (
    MAX_KEYWORDS,
    build_fuzzy_query,
    build_variant_queries,
    extract_keywords,
    tokenize,
)


def test_stop_words_removed():
    keywords = extract_keywords("the quick brown fox is jumping")
    assert "the" not in keywords
    assert "is" not in keywords
    assert "quick" in keywords
    assert "brown" in keywords


def test_first_seen_order_and_dedup():
    assert extract_keywords("Auth login auth LOGIN flow") == ["auth", "login", "flow"]


def test_empty_and_whitespace():
    assert extract_keywords("") == []
    assert extract_keywords("   \n\t") == []
    assert extract_keywords(None) == []


def test_punctuation_split():
    assert tokenize("src/auth-service.ts") == ["src", "auth", "service", "ts"]


def test_short_tokens_kept_only_when_meaningful():
    assert extract_keywords("ui db x go") == ["ui", "db", "go"]


def test_digits_dropped():
    assert extract_keywords("upgrade to version 2 2024") == ["upgrade", "version"]


def test_typo_correction():
    assert extract_keywords("sugest promts") == ["suggest", "prompts"]


def test_generic_file_tokens_dropped_without_search_intent():
    assert extract_keywords("open the config files") == ["open", "config"]


def test_generic_file_tokens_kept_with_search_intent():
    assert extract_keywords("suggest files for me") == ["suggest", "files"]


def test_capped():
    text = " ".join(f"word{chr(97 + i)}xx" for i in range(25))
    assert len(extract_keywords(text)) == MAX_KEYWORDS


def test_fuzzy_query_uses_leading_keywords():
    assert build_fuzzy_query(["alpha", "beta", "gamma", "delta"]) == "alpha beta gamma"
    assert build_fuzzy_query([]) == ""


def test_variant_queries_triggered():
    variants = build_variant_queries(["suggest", "files"])
    assert variants == ["suggest-files", "suggestions", "suggestFiles"]


def test_variant_queries_never_repeat_base():
    variants = build_variant_queries(["auth"])
    assert "auth" not in variants
    assert variants == ["authentication", "login"]


def test_variant_queries_dedup_across_rules():
    variants = build_variant_queries(["suggest", "file", "files"])
    assert len(variants) == len(set(variants))


def test_no_variants_for_plain_query():
    assert build_variant_queries(["database", "schema"]) == []
