"""Score models produced by the ranking stages."""

from enum import StrEnum

from pydantic import BaseModel, Field

_UNIT = {"ge": 0.0, "le": 1.0}


class ReasonTag(StrEnum):
    """Machine-checkable reasons a model may give for a selection."""

    DIRECT_MATCH = "DirectMatch"
    PATH_MATCH = "PathMatch"
    API = "API"
    UI = "UI"
    AUTH = "Auth"
    TEST = "Test"
    CONFIG = "Config"
    SCHEMA = "Schema"
    DEPENDENCY = "Dependency"
    RECENCY = "Recency"
    # Never offered to the model; marks heuristic substitutes
    FALLBACK = "fallback"


MODEL_REASON_TAGS: tuple[ReasonTag, ...] = tuple(
    t for t in ReasonTag if t is not ReasonTag.FALLBACK
)


class RelevanceScoreResult(BaseModel):
    """Heuristic relevance of one item for one query.

    Sub-scores that do not apply to a domain (path/type/import for prompts)
    stay at 0.
    """

    item_id: str
    total_score: float = Field(default=0.0, **_UNIT)
    title_score: float = Field(default=0.0, **_UNIT)
    content_score: float = Field(default=0.0, **_UNIT)
    tag_score: float = Field(default=0.0, **_UNIT)
    path_score: float = Field(default=0.0, **_UNIT)
    type_score: float = Field(default=0.0, **_UNIT)
    recency_score: float = Field(default=0.0, **_UNIT)
    import_score: float = Field(default=0.0, **_UNIT)


class CompositeScore(RelevanceScoreResult):
    """Relevance blended with fuzzy similarity, boosts and penalties."""

    relevance_total: float = Field(default=0.0, **_UNIT)
    fuzzy_score: float = Field(default=0.0, **_UNIT)
    boost: float = Field(default=0.0, ge=0.0)
    penalty: float = Field(default=0.0, ge=0.0)
    ai_confidence: float | None = Field(default=None, **_UNIT)
    ai_reasons: list[ReasonTag] | None = None


class AiSelection(BaseModel):
    """One item picked by the reranking model."""

    id: str
    confidence: float = Field(**_UNIT)
    reasons: list[ReasonTag] = Field(default_factory=list, max_length=3)
