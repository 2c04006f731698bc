"""LLM provider protocol for pluggable language model backends."""

from typing import Any, Protocol, runtime_checkable

from context_suggest.llm.tiers import ModelOptions


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for language model providers with graceful degradation."""

    async def is_available(self) -> bool:
        """Check if the LLM backend is reachable."""
        ...

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        options: ModelOptions | None = None,
        json_schema: dict[str, Any] | None = None,
    ) -> str | None:
        """Generate text from a prompt. Returns None if unavailable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
