"""Structured-output gateway: prompt in, schema-validated pydantic model out."""

import json
import logging
import re
from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from context_suggest.errors import StructuredOutputError
from context_suggest.llm.provider import LLMProvider
from context_suggest.llm.tiers import ModelOptions

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(raw: str) -> dict[str, object]:
    """Pull one JSON object out of a model response.

    Raises StructuredOutputError when there is none.
    """
    # Strip markdown fences if present
    fence_match = _FENCE_RE.search(raw)
    if fence_match:
        raw = fence_match.group(1)

    obj_match = _JSON_OBJECT_RE.search(raw)
    if not obj_match:
        raise StructuredOutputError("No JSON object found in model response")

    try:
        data = json.loads(obj_match.group(0))
    except json.JSONDecodeError as e:
        raise StructuredOutputError(f"Malformed JSON in model response: {e}") from e

    if not isinstance(data, dict):
        raise StructuredOutputError("Model response JSON is not an object")
    return data


class StructuredOutputGateway:
    """Routes a structured-output request to the provider named in the model options.

    Every failure mode (unknown provider, unavailable provider, no JSON,
    schema violation) raises StructuredOutputError so callers catch one
    exception type and fall back.
    """

    def __init__(self, providers: Mapping[str, LLMProvider]) -> None:
        """Initialize with providers keyed by name ("ollama", "anthropic", ...)."""
        self._providers = dict(providers)

    async def generate(
        self,
        prompt: str,
        system_message: str,
        schema: type[T],
        model_options: ModelOptions,
    ) -> T:
        """Ask the model for a response matching ``schema`` and validate it."""
        provider = self._providers.get(model_options.provider)
        if provider is None:
            raise StructuredOutputError(f"No LLM provider named {model_options.provider!r}")

        json_schema = schema.model_json_schema()
        system = (
            f"{system_message}\n\n"
            "Respond with a single JSON object that matches this JSON schema, "
            "with no other text:\n"
            f"{json.dumps(json_schema)}"
        )
        raw = await provider.generate(
            prompt, system=system, options=model_options, json_schema=json_schema
        )
        if raw is None:
            raise StructuredOutputError(f"Provider {model_options.provider!r} returned no output")

        data = extract_json_object(raw)
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "Model response failed %s validation: %d errors", schema.__name__, e.error_count()
            )
            raise StructuredOutputError(f"Response does not match {schema.__name__}") from e
