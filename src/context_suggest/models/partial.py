"""Partial file content models for the two-stage file flow."""

from pydantic import BaseModel, Field


class FetchOptions(BaseModel):
    """Limits applied when fetching the head of files in selected directories."""

    line_count: int = Field(default=50, ge=1, le=2000)
    include_extensions: list[str] | None = None
    exclude_extensions: list[str] | None = None
    max_file_size: int = Field(default=1024 * 1024, ge=1)
    max_total_files: int = Field(default=100, ge=1)
    max_files_per_directory: int = Field(default=20, ge=1)


class PartialFileContent(BaseModel):
    """The first lines of one file."""

    file_id: str
    path: str
    extension: str
    partial_content: str
    line_count: int = Field(ge=0)
    total_lines: int = Field(ge=0)
    truncated: bool
    size: int = Field(ge=0)


class PartialFetchMetadata(BaseModel):
    """Aggregate statistics for one fetch call."""

    total_files_in_directories: int = 0
    files_returned: int = 0
    files_skipped: int = 0
    average_line_count: int = 0
    total_tokens_estimate: int = 0
    processing_time_ms: float = 0.0


class PartialFetchResult(BaseModel):
    """Partial contents plus fetch statistics."""

    partial_files: list[PartialFileContent] = Field(default_factory=list)
    metadata: PartialFetchMetadata = Field(default_factory=PartialFetchMetadata)
