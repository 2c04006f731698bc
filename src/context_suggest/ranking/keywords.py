"""Keyword extraction and fuzzy query construction."""

import re

MAX_KEYWORDS = 15
FUZZY_QUERY_TOKENS = 3

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "is", "at", "which", "on", "and", "a", "an", "as", "are", "was", "were",
        "been", "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "must", "shall", "can", "to", "of", "in",
        "for", "with", "by", "from", "up", "about", "into", "through", "during",
        "before", "after", "above", "below", "between", "under", "again", "further",
        "then", "once", "this", "that", "these", "those", "it", "its", "or", "but",
        "not", "so", "if", "there", "their", "them", "they", "we", "our", "you",
        "your", "me", "my", "i", "he", "she", "his", "her", "what", "when", "where",
        "how", "why", "who", "all", "any", "some", "each", "also", "just", "only",
        "very", "too", "than", "out", "over", "such", "own", "same", "both", "more",
        "most", "other", "please", "want", "need", "like", "get", "make", "use",
        "using", "let", "lets",
    }
)  # fmt: skip

# Two-letter tokens that carry meaning in code queries
SHORT_TOKENS: frozenset[str] = frozenset(
    {"ui", "ux", "db", "ci", "cd", "ai", "js", "ts", "go", "qa", "io", "id", "os"}
)

TYPO_CORRECTIONS: dict[str, str] = {
    "sugest": "suggest",
    "suggets": "suggest",
    "sugestion": "suggestion",
    "sugestions": "suggestions",
    "serach": "search",
    "seach": "search",
    "fiel": "file",
    "fiels": "files",
    "flie": "file",
    "flies": "files",
    "promt": "prompt",
    "promts": "prompts",
    "authetication": "authentication",
    "authentification": "authentication",
    "databse": "database",
    "compnent": "component",
    "componet": "component",
    "fucntion": "function",
    "funtion": "function",
    "workfow": "workflow",
    "confg": "config",
}

# Stripped by default, kept only when the query is about searching/suggesting
GENERIC_TOKENS: frozenset[str] = frozenset({"file", "files"})
SEARCH_INTENT_TOKENS: frozenset[str] = frozenset(
    {"suggest", "suggestion", "suggestions", "search", "manager", "picker", "finder", "selector"}
)

# (required tokens, variant queries); every required token must be present
VARIANT_RULES: list[tuple[frozenset[str], tuple[str, ...]]] = [
    (frozenset({"suggest", "files"}), ("suggest-files", "suggestions", "suggestFiles")),
    (frozenset({"suggest", "file"}), ("suggest-files", "suggestions", "suggestFiles")),
    (frozenset({"suggest", "prompts"}), ("suggest-prompts", "suggestions", "suggestPrompts")),
    (frozenset({"mcp"}), ("mcp", "mcp-server", "model context protocol")),
    (frozenset({"workflow"}), ("workflow", "workflows", "flow")),
    (frozenset({"auth"}), ("auth", "authentication", "login")),
]


def tokenize(text: str) -> list[str]:
    """Lowercase and split on anything that is not a letter, digit or space."""
    return _NON_ALNUM_RE.sub(" ", text.lower()).split()


def _is_content_token(token: str) -> bool:
    if token in STOP_WORDS or token.isdigit():
        return False
    return len(token) >= 3 or token in SHORT_TOKENS


def extract_keywords(text: str | None) -> list[str]:
    """Normalize free text into an ordered, deduplicated keyword list.

    Returns at most ``MAX_KEYWORDS`` tokens in first-seen order. Empty or
    whitespace-only input yields an empty list.
    """
    if not text:
        return []

    keywords: list[str] = []
    seen: set[str] = set()
    for raw in tokenize(text):
        token = TYPO_CORRECTIONS.get(raw, raw)
        if token in seen or not _is_content_token(token):
            continue
        seen.add(token)
        keywords.append(token)

    if not seen & SEARCH_INTENT_TOKENS:
        keywords = [k for k in keywords if k not in GENERIC_TOKENS]

    return keywords[:MAX_KEYWORDS]


def build_fuzzy_query(tokens: list[str]) -> str:
    """Short fuzzy query from the leading keywords."""
    return " ".join(tokens[:FUZZY_QUERY_TOKENS])


def build_variant_queries(tokens: list[str]) -> list[str]:
    """Known phrase variants triggered by the keyword set.

    Never repeats the base fuzzy query and never returns duplicates.
    """
    present = set(tokens)
    base = build_fuzzy_query(tokens)
    variants: list[str] = []
    for required, phrases in VARIANT_RULES:
        if not required <= present:
            continue
        for phrase in phrases:
            if phrase != base and phrase not in variants:
                variants.append(phrase)
    return variants
