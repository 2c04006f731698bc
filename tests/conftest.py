"""Shared test fixtures."""

import json
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from context_suggest.db.connection import create_connection
from context_suggest.llm.gateway import StructuredOutputGateway
from context_suggest.llm.tiers import ModelOptions, ModelTierResolver
from context_suggest.models.items import FileImport, FileItem, Project, PromptItem
from context_suggest.models.strategy import ModelTier

# Scorers read the wall clock, so fixture timestamps are relative to it
NOW = datetime.now(UTC)


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


class FakeLLM:
    """Controllable fake LLM for testing."""

    def __init__(self, response: str | None = "{}", available: bool = True):
        self.response = response
        self._available = available
        self.last_prompt: str | None = None
        self.last_system: str | None = None
        self.last_options: ModelOptions | None = None
        self.generate_count = 0

    async def is_available(self) -> bool:
        return self._available

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        options: ModelOptions | None = None,
        json_schema: dict | None = None,
    ) -> str | None:
        self.last_prompt = prompt
        self.last_system = system
        self.last_options = options
        self.generate_count += 1
        if not self._available:
            return None
        return self.response

    def respond_with(self, payload: dict) -> None:
        self.response = json.dumps(payload)

    async def close(self) -> None:
        pass


class RaisingLLM(FakeLLM):
    """Fake LLM whose generate raises, like a provider bug."""

    async def generate(self, prompt: str, **kwargs) -> str | None:
        self.generate_count += 1
        raise RuntimeError("provider exploded")


TEST_TIERS = ModelTierResolver(
    overrides={
        ModelTier.MEDIUM: ModelOptions(provider="fake", model="fake-medium"),
        ModelTier.HIGH: ModelOptions(provider="fake", model="fake-high", temperature=0.1),
    }
)


def make_gateway(llm: FakeLLM) -> StructuredOutputGateway:
    return StructuredOutputGateway({"fake": llm})


class FakeProjects:
    """In-memory project repository."""

    def __init__(self, *projects: Project):
        self.projects = {p.id: p for p in projects}

    async def get(self, project_id: int) -> Project | None:
        return self.projects.get(project_id)


class FakeFiles:
    """In-memory file repository."""

    def __init__(self, files: list[FileItem] | None = None):
        self.files = files or []
        self.calls = 0

    async def get_by_project(self, project_id: int) -> list[FileItem]:
        self.calls += 1
        return [f for f in self.files if f.project_id == project_id]


class FakePrompts:
    """In-memory prompt repository."""

    def __init__(self, prompts: list[PromptItem] | None = None):
        self.prompts = prompts or []

    async def get_by_project(self, project_id: int) -> list[PromptItem]:
        return [p for p in self.prompts if p.project_id == project_id]


class FakeSearch:
    """Fuzzy search backend returning canned hits per query."""

    def __init__(
        self,
        hits: dict[str, list[tuple[str, float]]] | None = None,
        fail_on: set[str] | None = None,
    ):
        self.hits = hits or {}
        self.fail_on = fail_on or set()
        self.queries: list[tuple[str, int]] = []

    async def search(self, project_id: int, query: str, limit: int) -> list[tuple[str, float]]:
        self.queries.append((query, limit))
        if query in self.fail_on:
            raise RuntimeError(f"search backend down for {query!r}")
        return self.hits.get(query, [])


def make_file(
    file_id: str,
    path: str,
    content: str = "",
    *,
    project_id: int = 1,
    tags: list[str] | None = None,
    imports: list[str] | None = None,
    age_days: float = 0.0,
    size: int | None = None,
) -> FileItem:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return FileItem(
        id=file_id,
        project_id=project_id,
        path=path,
        name=name,
        extension=name[dot:] if dot > 0 else "",
        content=content,
        size=size if size is not None else len(content.encode()),
        tags=tags or [],
        imports=[FileImport(source=s) for s in imports or []],
        created_at=NOW - timedelta(days=age_days),
        updated_at=NOW - timedelta(days=age_days),
    )


def make_prompt(
    prompt_id: str,
    title: str,
    content: str = "",
    *,
    project_id: int = 1,
    tags: list[str] | None = None,
    age_days: float | None = 0.0,
) -> PromptItem:
    """Build a prompt; ``age_days=None`` leaves both timestamps unset."""
    stamp = None if age_days is None else NOW - timedelta(days=age_days)
    return PromptItem(
        id=prompt_id,
        project_id=project_id,
        title=title,
        content=content,
        tags=tags or [],
        created_at=stamp,
        updated_at=stamp,
    )


@pytest.fixture
def fake_llm():
    """Controllable fake LLM client."""
    return FakeLLM()


@pytest.fixture
def project(tmp_path):
    """A project rooted at a temporary directory."""
    return Project(id=1, name="demo", path=str(tmp_path))
