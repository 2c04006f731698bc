"""Environment-variable-based configuration."""

import os
from pathlib import Path

# Per-tier defaults: provider, model, temperature, max tokens
_TIER_DEFAULTS: dict[str, tuple[str, str, float, int]] = {
    "medium": ("ollama", "qwen3:8b", 0.3, 4096),
    "high": ("anthropic", "claude-sonnet-4-5", 0.2, 8192),
}


def get_db_path() -> Path:
    """Return the database file path from CS_DB_PATH."""
    raw = os.environ.get("CS_DB_PATH", "~/.local/share/context_suggest/projects.db")
    return Path(raw).expanduser()


def get_ollama_url() -> str:
    """Return the Ollama API URL from CS_OLLAMA_URL."""
    return os.environ.get("CS_OLLAMA_URL", "http://localhost:11434")


def get_llm_timeout() -> float:
    """Return the Ollama generation timeout in seconds from CS_LLM_TIMEOUT."""
    return float(os.environ.get("CS_LLM_TIMEOUT", "60.0"))


def get_anthropic_timeout() -> float:
    """Return the Anthropic request timeout in seconds from CS_ANTHROPIC_TIMEOUT."""
    return float(os.environ.get("CS_ANTHROPIC_TIMEOUT", "30.0"))


def get_log_level() -> str:
    """Return the logging level from CS_LOG_LEVEL."""
    return os.environ.get("CS_LOG_LEVEL", "WARNING").upper()


def _tier_env(tier: str, key: str) -> str | None:
    return os.environ.get(f"CS_{tier.upper()}_{key}")


def get_tier_provider(tier: str) -> str:
    """Return the provider for a model tier from CS_<TIER>_PROVIDER."""
    return _tier_env(tier, "PROVIDER") or _TIER_DEFAULTS[tier][0]


def get_tier_model(tier: str) -> str:
    """Return the model name for a model tier from CS_<TIER>_MODEL."""
    return _tier_env(tier, "MODEL") or _TIER_DEFAULTS[tier][1]


def get_tier_temperature(tier: str) -> float:
    """Return the sampling temperature for a model tier from CS_<TIER>_TEMPERATURE."""
    raw = _tier_env(tier, "TEMPERATURE")
    return float(raw) if raw is not None else _TIER_DEFAULTS[tier][2]


def get_tier_max_tokens(tier: str) -> int:
    """Return the output token limit for a model tier from CS_<TIER>_MAX_TOKENS."""
    raw = _tier_env(tier, "MAX_TOKENS")
    return int(raw) if raw is not None else _TIER_DEFAULTS[tier][3]


def get_large_project_threshold() -> int:
    """Return the file count above which the two-stage file flow runs first."""
    return int(os.environ.get("CS_LARGE_PROJECT_THRESHOLD", "200"))


def get_sync_max_file_size() -> int:
    """Return the max file size in bytes stored by project sync from CS_SYNC_MAX_FILE_SIZE."""
    return int(os.environ.get("CS_SYNC_MAX_FILE_SIZE", str(512 * 1024)))
