"""LLM provider module."""

from context_suggest.llm.anthropic import AnthropicLLMClient
from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.ollama import OllamaLLMClient
from context_suggest.llm.provider import LLMProvider
from context_suggest.llm.tiers import ModelOptions, ModelTierResolver

__all__ = [
    "AnthropicLLMClient",
    "LLMProvider",
    "ModelOptions",
    "ModelTierResolver",
    "OllamaLLMClient",
    "StructuredOutputGateway",
]
