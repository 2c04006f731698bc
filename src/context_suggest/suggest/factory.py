"""Wiring for the suggestion services."""

from dataclasses import dataclass

from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.tiers import ModelTierResolver
from context_suggest.ranking.fuzzy import FuzzyExpander, FuzzySearchBackend
from context_suggest.ranking.rerank import AiReranker
from context_suggest.store.protocols import FileRepository, ProjectRepository, PromptRepository
from context_suggest.suggest.directories import DirectorySelector
from context_suggest.suggest.file_suggester import AiFileSuggester
from context_suggest.suggest.files import FileSuggestionService
from context_suggest.suggest.partial import PartialContentFetcher
from context_suggest.suggest.prompts import PromptSuggestionService


@dataclass
class SuggestionServices:
    """Everything the server exposes, built around one set of collaborators."""

    files: FileSuggestionService
    prompts: PromptSuggestionService
    directories: DirectorySelector
    fetcher: PartialContentFetcher


def create_suggestion_services(
    *,
    projects: ProjectRepository,
    files: FileRepository,
    prompts: PromptRepository,
    file_search: FuzzySearchBackend,
    prompt_search: FuzzySearchBackend,
    gateway: StructuredOutputGateway,
    tiers: ModelTierResolver | None = None,
    large_project_threshold: int | None = None,
) -> SuggestionServices:
    """Build the file and prompt orchestrators with their stages."""
    tiers = tiers or ModelTierResolver()
    directories = DirectorySelector(gateway, tiers)
    fetcher = PartialContentFetcher(projects, files)
    return SuggestionServices(
        files=FileSuggestionService(
            projects=projects,
            files=files,
            expander=FuzzyExpander(file_search),
            reranker=AiReranker(gateway, tiers, kind="file"),
            directory_selector=directories,
            fetcher=fetcher,
            file_suggester=AiFileSuggester(gateway, tiers),
            large_project_threshold=large_project_threshold,
        ),
        prompts=PromptSuggestionService(
            projects=projects,
            prompts=prompts,
            expander=FuzzyExpander(prompt_search),
            reranker=AiReranker(gateway, tiers, kind="prompt"),
        ),
        directories=directories,
        fetcher=fetcher,
    )
