"""Suggestion orchestrators and the two-stage file flow."""

from context_suggest.suggest.directories import DirectorySelector, build_file_tree
from context_suggest.suggest.factory import SuggestionServices, create_suggestion_services
from context_suggest.suggest.file_suggester import AiFileSuggester
from context_suggest.suggest.files import FileSuggestionService
from context_suggest.suggest.partial import PartialContentFetcher
from context_suggest.suggest.prompts import PromptSuggestionService

__all__ = [
    "AiFileSuggester",
    "DirectorySelector",
    "FileSuggestionService",
    "PartialContentFetcher",
    "PromptSuggestionService",
    "SuggestionServices",
    "build_file_tree",
    "create_suggestion_services",
]
