"""Anthropic LLM client with graceful degradation."""

from __future__ import annotations

import logging
import os
from typing import Any

from context_suggest.config import get_anthropic_timeout, get_tier_max_tokens, get_tier_model
from context_suggest.llm.tiers import ModelOptions

logger = logging.getLogger(__name__)


class AnthropicLLMClient:
    """Generates text via the Anthropic Messages API."""

    def __init__(self) -> None:
        """Initialize with lazy client creation."""
        self._client: Any = None
        self._available: bool | None = None

    async def is_available(self) -> bool:
        """Check availability. Only caches success, retries on failure."""
        if self._available is True:
            return True
        if not os.environ.get("ANTHROPIC_API_KEY"):
            logger.warning("ANTHROPIC_API_KEY not set, Anthropic LLM disabled")
            return False
        try:
            client = self._get_client()
        except Exception:
            logger.warning("Anthropic client could not be created", exc_info=True)
            return False
        # Key is set; the first generate() confirms and caches availability
        return client is not None

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        options: ModelOptions | None = None,
        json_schema: dict[str, Any] | None = None,
    ) -> str | None:
        """Generate text from a prompt. Returns None if unavailable.

        The Messages API has no schema-constrained mode here; the caller
        embeds the schema in the system prompt, so ``json_schema`` is unused.
        """
        try:
            client = self._get_client()
            if client is None:
                return None

            kwargs: dict[str, Any] = {
                "model": options.model if options else get_tier_model("high"),
                "max_tokens": options.max_tokens if options else get_tier_max_tokens("high"),
                "messages": [{"role": "user", "content": prompt}],
            }
            if options is not None:
                kwargs["temperature"] = options.temperature
            if system is not None:
                kwargs["system"] = system

            response = await client.messages.create(
                **kwargs,
                timeout=get_anthropic_timeout(),
            )
            result: str = response.content[0].text
            self._available = True
            return result
        except Exception:
            logger.warning("Anthropic generation failed", exc_info=True)
            self._available = None
            return None

    def _get_client(self) -> Any:
        """Lazily create the AsyncAnthropic client. Returns None if SDK missing."""
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic

                self._client = AsyncAnthropic()
            except ImportError:
                logger.warning("anthropic package not installed, Anthropic LLM disabled")
                return None
        return self._client

    async def close(self) -> None:
        """Close the Anthropic client if open."""
        if self._client is not None:
            await self._client.close()
            self._client = None
