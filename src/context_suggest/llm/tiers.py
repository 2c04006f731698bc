"""Model tier resolution: logical tiers to concrete provider settings."""

from pydantic import BaseModel, Field

from context_suggest.config import (
    get_tier_max_tokens,
    get_tier_model,
    get_tier_provider,
    get_tier_temperature,
)
from context_suggest.models.strategy import ModelTier


class ModelOptions(BaseModel, frozen=True):
    """Concrete settings for one model call."""

    provider: str
    model: str
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1)


class ModelTierResolver:
    """Maps ``medium``/``high`` to provider, model, temperature and token limit.

    Reads the environment on every call so tests and long-running servers
    pick up changes.
    """

    def __init__(self, overrides: dict[ModelTier, ModelOptions] | None = None) -> None:
        """Initialize with optional fixed options per tier."""
        self._overrides = overrides or {}

    def resolve(self, tier: ModelTier) -> ModelOptions:
        """Return the model options for a tier."""
        if tier in self._overrides:
            return self._overrides[tier]
        name = tier.value
        return ModelOptions(
            provider=get_tier_provider(name),
            model=get_tier_model(name),
            temperature=get_tier_temperature(name),
            max_tokens=get_tier_max_tokens(name),
        )
