"""Request and response models for the suggestion orchestrators."""

from enum import StrEnum

from pydantic import BaseModel, Field

from context_suggest.models.scores import AiSelection, CompositeScore, ReasonTag
from context_suggest.models.strategy import ModelTier, Strategy


class AiStage(StrEnum):
    """What happened to the AI reranking stage on one call."""

    NOT_RUN = "not_run"  # strategy disabled it or the pool was small enough
    APPLIED = "applied"
    FALLBACK = "fallback"  # model failed or returned too few usable picks


class SuggestionOptions(BaseModel):
    """Caller options for ``suggest_items_for_query``."""

    strategy: Strategy = Strategy.BALANCED
    max_results: int = Field(default=10, ge=1, le=100)
    user_context: str | None = None


class SuggestionMetadata(BaseModel):
    """Diagnostics returned with every suggestion list."""

    total_items: int = 0
    analyzed_items: int = 0
    strategy: Strategy
    processing_time_ms: float = 0.0
    tokens_saved: int = 0
    ai_selections: list[AiSelection] = Field(default_factory=list)
    ai_stage: AiStage = AiStage.NOT_RUN
    pipeline: str = "composite"  # "composite", "two-stage" or "recent"


class SuggestionResponse(BaseModel):
    """Ordered item ids plus per-item scores and metadata."""

    suggestions: list[str] = Field(default_factory=list)
    scores: list[CompositeScore] = Field(default_factory=list)
    metadata: SuggestionMetadata


# --- Directory selection ---


class DirectorySelection(BaseModel):
    """A project-relative directory picked as likely to hold relevant files."""

    path: str
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class DirectorySelectionOptions(BaseModel):
    """Options for ``select_relevant_directories``."""

    max_directories: int = Field(default=5, ge=1, le=50)
    min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    ai_model: ModelTier = ModelTier.MEDIUM
    user_context: str | None = None
    max_depth: int = Field(default=4, ge=1, le=16)


class DirectorySelectionMetadata(BaseModel):
    """Diagnostics for one directory selection."""

    total_directories: int = 0
    ai_model: ModelTier
    strategy: str
    processing_time_ms: float = 0.0


class DirectorySelectionResult(BaseModel):
    """Selected directory paths plus the full selections behind them."""

    selected_directories: list[str] = Field(default_factory=list)
    all_selections: list[DirectorySelection] = Field(default_factory=list)
    metadata: DirectorySelectionMetadata


# --- AI file ranking over partial content ---


class FileRankingOptions(BaseModel):
    """Options for ranking partial file contents with a model."""

    max_results: int = Field(default=10, ge=1, le=100)
    min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    ai_model: ModelTier = ModelTier.MEDIUM
    strategy: Strategy = Strategy.BALANCED
    user_context: str | None = None


class SuggestedFile(BaseModel):
    """A ranked file with the model's judgement attached."""

    file_id: str
    path: str
    extension: str
    confidence: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    reasons: list[ReasonTag] = Field(default_factory=list)
    line_count: int = 0
    total_lines: int = 0


class FileRankingMetadata(BaseModel):
    """Diagnostics for one partial-content ranking."""

    total_candidates: int = 0
    files_analyzed: int = 0
    processing_time_ms: float = 0.0
    ai_model: ModelTier
    tokens_saved: int = 0
    strategy: str
    used_fallback: bool = False


class FileRankingResult(BaseModel):
    """Ranked files from partial content."""

    suggested_files: list[SuggestedFile] = Field(default_factory=list)
    metadata: FileRankingMetadata


# --- Two-stage file flow ---


class TwoStageOptions(BaseModel):
    """Options for the directory → partial content → ranking flow."""

    strategy: Strategy = Strategy.BALANCED
    max_results: int = Field(default=10, ge=1, le=100)
    user_context: str | None = None
    directories: list[str] | None = None
    skip_directory_selection: bool = False
    line_count: int | None = Field(default=None, ge=1, le=2000)


class TwoStageMetadata(BaseModel):
    """Diagnostics for the two-stage flow, per stage."""

    strategy: Strategy
    total_files: int = 0
    analyzed_files: int = 0
    selected_directories: list[str] = Field(default_factory=list)
    total_directories: int = 0
    files_from_directories: int = 0
    line_count_per_file: int = 0
    ai_model: ModelTier
    tokens_saved: int = 0
    directory_selection_time_ms: float = 0.0
    file_fetch_time_ms: float = 0.0
    suggestion_time_ms: float = 0.0
    processing_time_ms: float = 0.0


class TwoStageResult(BaseModel):
    """File ids plus the ranked partial-content files behind them."""

    suggestions: list[str] = Field(default_factory=list)
    suggested_files: list[SuggestedFile] = Field(default_factory=list)
    metadata: TwoStageMetadata
