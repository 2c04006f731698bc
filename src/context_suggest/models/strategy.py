"""Suggestion strategy presets."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Strategy(StrEnum):
    """Named suggestion presets, ordered by cost."""

    FAST = "fast"
    BALANCED = "balanced"
    THOROUGH = "thorough"


class ModelTier(StrEnum):
    """Logical model capability tiers resolved to concrete models at call time."""

    MEDIUM = "medium"
    HIGH = "high"


class CompactLevel(StrEnum):
    """How much detail candidate descriptors carry."""

    ULTRA = "ultra"
    COMPACT = "compact"
    STANDARD = "standard"


class StrategyConfig(BaseModel, frozen=True):
    """Static per-call configuration for one strategy."""

    max_pre_filter_items: int = Field(ge=1)
    max_ai_items: int = Field(ge=0)
    use_ai: bool
    ai_model_tier: ModelTier
    compact_level: CompactLevel
    line_count: int = Field(ge=1)  # lines per file in the two-stage flow
    max_directories: int = Field(ge=1)
    min_directory_confidence: float = Field(ge=0.0, le=1.0)


STRATEGIES: dict[Strategy, StrategyConfig] = {
    Strategy.FAST: StrategyConfig(
        max_pre_filter_items=30,
        max_ai_items=0,
        use_ai=False,
        ai_model_tier=ModelTier.MEDIUM,
        compact_level=CompactLevel.ULTRA,
        line_count=30,
        max_directories=3,
        min_directory_confidence=0.4,
    ),
    Strategy.BALANCED: StrategyConfig(
        max_pre_filter_items=50,
        max_ai_items=50,
        use_ai=True,
        ai_model_tier=ModelTier.MEDIUM,
        compact_level=CompactLevel.COMPACT,
        line_count=50,
        max_directories=5,
        min_directory_confidence=0.3,
    ),
    Strategy.THOROUGH: StrategyConfig(
        max_pre_filter_items=100,
        max_ai_items=100,
        use_ai=True,
        ai_model_tier=ModelTier.HIGH,
        compact_level=CompactLevel.STANDARD,
        line_count=100,
        max_directories=8,
        min_directory_confidence=0.2,
    ),
}


def recommend_strategy(file_count: int) -> Strategy:
    """Pick a strategy from project size: small projects rank cheaply."""
    if file_count < 100:
        return Strategy.FAST
    if file_count < 500:
        return Strategy.BALANCED
    return Strategy.THOROUGH
