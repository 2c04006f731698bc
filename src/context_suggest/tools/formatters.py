"""Compact output formatters for MCP tool responses."""

from context_suggest.models.items import Project, PromptItem
from context_suggest.models.partial import PartialFetchResult
from context_suggest.models.scores import CompositeScore
from context_suggest.models.suggestion import DirectorySelectionResult, SuggestionResponse
from context_suggest.store.sync import SyncReport


def format_project(project: Project) -> str:
    """Format: [3] my-app | /home/me/src/my-app."""
    return f"[{project.id}] {project.name} | {project.path}"


def format_sync_report(project: Project, report: SyncReport) -> str:
    """Counts line plus any per-file errors."""
    lines = [
        f"Synced {format_project(project)}",
        f"Files: {report.scanned} scanned, {report.stored} stored, "
        f"{report.skipped} skipped, {report.removed} removed",
    ]
    for error in report.errors:
        lines.append(f"  error: {error}")
    return "\n".join(lines)


def format_prompt(prompt: PromptItem) -> str:
    """Format: [12] Title #tag1 #tag2."""
    line = f"[{prompt.id}] {prompt.title}"
    if prompt.tags:
        line += " " + " ".join(f"#{t}" for t in prompt.tags)
    return line


def format_score(score: CompositeScore) -> str:
    """Format: 0.82 (ai 90% DirectMatch,API)."""
    line = f"{score.total_score:.2f}"
    if score.ai_confidence is not None:
        reasons = ",".join(r.value for r in score.ai_reasons or [])
        line += f" (ai {score.ai_confidence:.0%}{' ' + reasons if reasons else ''})"
    return line


def format_suggestions(response: SuggestionResponse, labels: dict[str, str]) -> str:
    """Numbered suggestion list with a one-line metadata footer.

    ``labels`` maps item ids to display text (file path or prompt title).
    """
    if not response.suggestions:
        return "No suggestions found."

    scores = {s.item_id: s for s in response.scores}
    lines: list[str] = []
    for rank, item_id in enumerate(response.suggestions, start=1):
        line = f"{rank}. [{item_id}] {labels.get(item_id, item_id)}"
        score = scores.get(item_id)
        if score is not None:
            line += f"  {format_score(score)}"
        lines.append(line)

    meta = response.metadata
    lines.append("")
    lines.append(
        f"{meta.strategy.value} | {meta.pipeline} | ai {meta.ai_stage.value} | "
        f"{meta.analyzed_items}/{meta.total_items} analyzed | "
        f"{meta.processing_time_ms:.0f}ms | ~{meta.tokens_saved} tokens saved"
    )
    return "\n".join(lines)


def format_directory_result(result: DirectorySelectionResult) -> str:
    """One line per selected directory with confidence and reason."""
    if not result.all_selections:
        return "No directories selected."
    lines = [
        f"{sel.path} ({sel.confidence:.0%}) {sel.reason}" for sel in result.all_selections
    ]
    meta = result.metadata
    lines.append("")
    lines.append(
        f"{meta.strategy} | {meta.total_directories} directories | "
        f"{meta.processing_time_ms:.0f}ms"
    )
    return "\n".join(lines)


def format_partial_result(result: PartialFetchResult) -> str:
    """File heads separated by path headers."""
    meta = result.metadata
    lines = [
        f"{meta.files_returned} files returned, {meta.files_skipped} skipped "
        f"(~{meta.total_tokens_estimate} tokens)"
    ]
    for partial in result.partial_files:
        marker = " (truncated)" if partial.truncated else ""
        lines.append("")
        counts = f"{partial.line_count}/{partial.total_lines} lines"
        lines.append(f"--- {partial.path} [{counts}]{marker}")
        lines.append(partial.partial_content)
    return "\n".join(lines)
