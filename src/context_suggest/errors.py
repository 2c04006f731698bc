"""Exceptions raised across the suggestion pipeline.

Only input validation failures (unknown project, out-of-root directory)
propagate to callers. Structured-output failures are caught by the stage
that made the model call and turned into its fallback.
"""


class SuggestionError(Exception):
    """Base class for context-suggest errors."""


class ProjectNotFoundError(SuggestionError, LookupError):
    """The requested project id does not exist."""

    def __init__(self, project_id: int) -> None:
        """Initialize with the missing project id."""
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class InvalidDirectoryError(SuggestionError, ValueError):
    """A requested directory resolves outside the project root."""

    def __init__(self, directory: str) -> None:
        """Initialize with the offending directory argument."""
        super().__init__(f"Invalid directory {directory!r}: expected path within project root")
        self.directory = directory


class StructuredOutputError(SuggestionError):
    """The model gateway could not produce a schema-valid response."""
