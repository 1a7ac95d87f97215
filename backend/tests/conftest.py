"""Pytest fixtures for testing."""

import json
import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LLM_ENABLED", "false")

from src.api.deps import (
    get_enhancement_client,
    get_key_value_storage,
    get_narrative_service,
    get_project_directory,
    get_store,
)
from src.core.config import Settings, get_settings
from src.core.questionnaire import QuestionnaireSchema
from src.main import app
from src.services.assessment_store import AssessmentStateStore
from src.services.enhancement_client import EnhancementClient
from src.services.llm_service import LlmService
from src.services.narrative_service import NarrativeService
from src.services.project_directory import ProjectDirectoryClient
from src.services.storage_service import InMemoryStorage

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def build_scenario_schema() -> QuestionnaireSchema:
    """22 required user fields in four sections plus 6 auto-section slots."""
    sizes = {1: 4, 2: 6, 4: 5, 7: 7}
    user_sections = [
        {
            "number": number,
            "title": f"Section {number}",
            "fields": [{"id": f"s{number}q{i}"} for i in range(1, size + 1)],
        }
        for number, size in sizes.items()
    ]
    auto_sections = [
        {"number": n, "title": f"Auto {n}"} for n in (3, 5, 6, 8, 9, 10)
    ]
    return QuestionnaireSchema.from_table(user_sections, auto_sections)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        storage_backend="memory",
        llm_enabled=False,
        enhancement_base_url="http://enhancer.test",
        project_directory_base_url="http://directory.test",
        save_indicator_seconds=1.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage: InMemoryStorage, settings: Settings, clock: FakeClock) -> AssessmentStateStore:
    return AssessmentStateStore(storage, settings=settings, clock=clock)


@pytest.fixture
def scenario_schema() -> QuestionnaireSchema:
    return build_scenario_schema()


@pytest.fixture
def scenario_store(
    storage: InMemoryStorage, scenario_schema: QuestionnaireSchema, settings: Settings, clock: FakeClock
) -> AssessmentStateStore:
    return AssessmentStateStore(storage, schema=scenario_schema, settings=settings, clock=clock)


@pytest.fixture
def directory_models() -> list[dict]:
    """Model records the fake project directory reports; tests may append."""
    return []


@pytest.fixture
def directory_transport(directory_models: list[dict]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/projects/"):
            project_id = path.removeprefix("/projects/")
            return httpx.Response(
                200,
                json={
                    "project_id": project_id,
                    "project_name": "Credit Scoring Model",
                    "description": "Scores consumer lending applications",
                    "project_type": "classification",
                    "project_status": "active",
                    "version": "1.0",
                },
            )
        if path.endswith("/models/list"):
            return httpx.Response(200, json=directory_models)
        return httpx.Response(404, json={"detail": "Not found"})

    return httpx.MockTransport(handler)


@pytest.fixture
def enhancement_handler():
    """Default fake enhancement service; tests may replace ``handler.responder``."""

    def responder(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/enhance-answer"):
            payload = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "enhanced_text": f"Enhanced: {payload['user_input']}",
                    "original_text": payload["user_input"],
                    "enhancement_style": payload["enhancement_style"],
                    "confidence": 0.9,
                    "improvements": ["clarity"],
                },
            )
        if path.endswith("/get-suggestions"):
            return httpx.Response(
                200,
                json={
                    "suggestions": ["First", "Second", "Third"],
                    "question": "q",
                    "context": "",
                    "count": 3,
                },
            )
        if path.endswith("/analyze-compliance"):
            return httpx.Response(
                200,
                json={
                    "analysis": "Looks compliant",
                    "question": "q",
                    "answer": "a",
                    "timestamp": "2026-01-15T12:00:00Z",
                },
            )
        if path.endswith("/health"):
            return httpx.Response(
                200, json={"status": "healthy", "service": "enhancer", "test_result": "ok"}
            )
        return httpx.Response(404, json={"detail": "Not found"})

    class Handler:
        def __init__(self):
            self.responder = responder
            self.requests: list[httpx.Request] = []

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.responder(request)

    return Handler()


@pytest_asyncio.fixture(scope="function")
async def client(
    store: AssessmentStateStore,
    storage: InMemoryStorage,
    settings: Settings,
    directory_transport: httpx.MockTransport,
    enhancement_handler,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with in-memory storage and fake remote services.

    Yields:
        AsyncClient configured for testing
    """
    narrative_service = NarrativeService(llm_service=LlmService(settings), schema=store.schema)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_key_value_storage] = lambda: storage
    app.dependency_overrides[get_narrative_service] = lambda: narrative_service
    app.dependency_overrides[get_project_directory] = lambda: ProjectDirectoryClient(
        settings=settings, transport=directory_transport
    )
    app.dependency_overrides[get_enhancement_client] = lambda: EnhancementClient(
        settings=settings, transport=httpx.MockTransport(enhancement_handler)
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
