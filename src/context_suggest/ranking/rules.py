"""Path heuristics for file ranking: ignore lists, suppression, penalties, boosts.

Every rule is plain data with an ``applies`` check so it can be tested on
its own. Paths are project-relative with forward slashes.
"""

import fnmatch
import posixpath
from collections.abc import Iterable
from dataclasses import dataclass

# Directories whose contents are never candidates
IGNORED_DIR_NAMES: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        ".hg",
        ".svn",
        "dist",
        "build",
        "out",
        ".next",
        ".nuxt",
        ".turbo",
        "coverage",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".venv",
        "venv",
        ".cache",
        "target",
        "vendor",
    }
)

# File name patterns that are never candidates
IGNORED_PATH_PATTERNS: list[str] = [
    # Logs and temp files
    "*.log",
    "*.tmp",
    "*.swp",
    "*.bak",
    ".DS_Store",
    # Lockfiles and generated bundles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "poetry.lock",
    "uv.lock",
    "Cargo.lock",
    "*.min.js",
    "*.map",
    # Secrets, keys and certificates
    ".env",
    ".env.*",
    "*.env",
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    "*.crt",
    "id_rsa",
    "id_rsa.*",
    "id_ed25519",
    "id_ed25519.*",
    "credentials.json",
    "token.json",
    # Binaries and databases
    "*.pyc",
    "*.so",
    "*.dll",
    "*.exe",
    "*.sqlite",
    "*.sqlite3",
    "*.db",
]

# Query words that signal the user wants source code, not docs or schema
CODE_INTENT_WORDS: frozenset[str] = frozenset(
    {
        "feature",
        "route",
        "routes",
        "api",
        "service",
        "services",
        "endpoint",
        "handler",
        "component",
        "hook",
        "function",
        "implement",
        "implementation",
        "logic",
        "bug",
        "fix",
        "refactor",
        "module",
        "class",
    }
)

# Directory names recognized as holding application source
CODE_LOCATION_DIRS: frozenset[str] = frozenset(
    {
        "src",
        "lib",
        "app",
        "apps",
        "packages",
        "server",
        "client",
        "api",
        "routes",
        "services",
        "components",
        "hooks",
    }
)


def _lower_parts(path: str) -> tuple[str, list[str]]:
    lowered = path.lower().strip("/")
    return lowered, [p for p in lowered.split("/") if p]


def _match_any(path: str, patterns: Iterable[str]) -> bool:
    lowered, parts = _lower_parts(path)
    name = parts[-1] if parts else ""
    return any(fnmatch.fnmatch(lowered, p) or fnmatch.fnmatch(name, p) for p in patterns)


def _mentions(keywords: Iterable[str], words: frozenset[str]) -> bool:
    return any(k in words for k in keywords)


def is_ignored_path(path: str) -> bool:
    """Check whether a path sits in an ignored directory or matches an ignored pattern."""
    _lowered, parts = _lower_parts(path)
    if any(p in IGNORED_DIR_NAMES for p in parts[:-1]):
        return True
    name = posixpath.basename(path)
    lowered = name.lower()
    return any(
        fnmatch.fnmatch(name, p) or fnmatch.fnmatch(lowered, p) for p in IGNORED_PATH_PATTERNS
    )


def has_code_intent(keywords: Iterable[str]) -> bool:
    """Check whether the query signals it is after source code."""
    return _mentions(keywords, CODE_INTENT_WORDS)


@dataclass(frozen=True)
class SuppressRule:
    """Drops matching paths unless the query mentions one of ``overrides``."""

    name: str
    patterns: tuple[str, ...]
    overrides: frozenset[str]

    def applies(self, path: str, keywords: Iterable[str]) -> bool:
        """True when the path should be dropped for this query."""
        keywords = list(keywords)
        return _match_any(path, self.patterns) and not _mentions(keywords, self.overrides)


@dataclass(frozen=True)
class PenaltyRule:
    """Subtracts ``weight`` from matching paths unless the query mentions an override."""

    name: str
    patterns: tuple[str, ...]
    weight: float
    overrides: frozenset[str]
    code_intent_extra: float = 0.0

    def applies(self, path: str, keywords: Iterable[str]) -> bool:
        """True when the penalty fires for this path and query."""
        keywords = list(keywords)
        return _match_any(path, self.patterns) and not _mentions(keywords, self.overrides)

    def penalty(self, path: str, keywords: Iterable[str]) -> float:
        """Penalty contributed by this rule alone."""
        keywords = list(keywords)
        if not self.applies(path, keywords):
            return 0.0
        extra = self.code_intent_extra if has_code_intent(keywords) else 0.0
        return self.weight + extra


@dataclass(frozen=True)
class DomainBoost:
    """Lifts paths containing a domain marker when the query names that domain."""

    name: str
    triggers: frozenset[str]
    markers: tuple[str, ...]

    def applies(self, path: str, keywords: Iterable[str]) -> bool:
        """True when the query names the domain and the path carries a marker."""
        if not _mentions(keywords, self.triggers):
            return False
        lowered = path.lower()
        return any(m in lowered for m in self.markers)


_WORKFLOW_PATTERNS: tuple[str, ...] = (
    ".github/workflows/*",
    "*/.github/workflows/*",
    ".gitlab-ci.yml",
    ".circleci/*",
)

SUPPRESS_RULES: list[SuppressRule] = [
    SuppressRule(
        name="ci-workflow",
        patterns=_WORKFLOW_PATTERNS,
        overrides=frozenset(
            {"workflow", "workflows", "ci", "deploy", "release", "github", "action", "actions"}
        ),
    ),
]

PENALTY_RULES: list[PenaltyRule] = [
    PenaltyRule(
        name="test",
        patterns=(
            "*.test.*",
            "*.spec.*",
            "test_*.py",
            "*_test.py",
            "*_test.go",
            "test/*",
            "*/test/*",
            "tests/*",
            "*/tests/*",
            "__tests__/*",
            "*/__tests__/*",
            "e2e/*",
            "*/e2e/*",
        ),
        weight=0.25,
        overrides=frozenset({"test", "tests", "spec", "testing", "e2e"}),
    ),
    PenaltyRule(
        name="migration",
        patterns=(
            "*.sql",
            "migrations/*",
            "*/migrations/*",
            "*/migration/*",
            "drizzle/*",
            "*/drizzle/*",
        ),
        weight=0.2,
        overrides=frozenset(
            {"migration", "migrations", "migrate", "database", "db", "sql", "schema"}
        ),
        code_intent_extra=0.1,
    ),
    PenaltyRule(
        name="docs",
        patterns=("*.md", "*.mdx", "*.rst", "readme*", "docs/*", "*/docs/*"),
        weight=0.15,
        overrides=frozenset({"doc", "docs", "documentation", "readme"}),
        code_intent_extra=0.1,
    ),
    PenaltyRule(
        name="ci-workflow",
        patterns=_WORKFLOW_PATTERNS,
        weight=0.3,
        overrides=frozenset({"workflow", "workflows", "ci", "deploy"}),
    ),
]

DOMAIN_BOOSTS: list[DomainBoost] = [
    DomainBoost(
        name="mcp",
        triggers=frozenset({"mcp"}),
        markers=("mcp",),
    ),
    DomainBoost(
        name="auth",
        triggers=frozenset({"auth", "authentication", "login", "logout", "session", "oauth"}),
        markers=("auth", "login", "session", "oauth", "jwt"),
    ),
    DomainBoost(
        name="prompt",
        triggers=frozenset({"prompt", "prompts"}),
        markers=("prompt",),
    ),
    DomainBoost(
        name="suggest",
        triggers=frozenset({"suggest", "suggestion", "suggestions"}),
        markers=("suggest",),
    ),
]


def is_suppressed(path: str, keywords: Iterable[str]) -> bool:
    """Check every suppress rule against a path."""
    keywords = list(keywords)
    return any(rule.applies(path, keywords) for rule in SUPPRESS_RULES)


def total_penalty(path: str, keywords: Iterable[str]) -> float:
    """Sum of every penalty rule that fires for the path."""
    keywords = list(keywords)
    return sum(rule.penalty(path, keywords) for rule in PENALTY_RULES)


def code_location_boost(path: str, keywords: Iterable[str]) -> float:
    """1.0 when the query signals code intent and the path sits in a source directory."""
    if not has_code_intent(keywords):
        return 0.0
    _lowered, parts = _lower_parts(path)
    return 1.0 if any(p in CODE_LOCATION_DIRS for p in parts[:-1]) else 0.0


def domain_boost(path: str, keywords: Iterable[str]) -> float:
    """1.0 when any domain boost applies to the path."""
    keywords = list(keywords)
    return 1.0 if any(b.applies(path, keywords) for b in DOMAIN_BOOSTS) else 0.0
