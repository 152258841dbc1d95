"""Shared pytest fixtures for all test suites."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from backend.tenderwriter.api.dependencies import ServiceContainer, build_container, get_container
from backend.tenderwriter.config import Settings
from backend.tenderwriter.db.inmemory import InMemoryDocumentRepository
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.main import app
from tests.fakes import RecordingCompletionClient, SleepRecorder


@pytest.fixture
def settings() -> Settings:
    """Offline settings: in-memory storage, stub providers, small chunks."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        openai_api_key=None,
        chunk_size=200,
        chunk_overlap=40,
        index_batch_size=2,
        retry_base_delay_ms=10,
        max_upload_bytes=64 * 1024,
    )


@pytest.fixture
def completion() -> RecordingCompletionClient:
    return RecordingCompletionClient()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def container(
    settings: Settings, completion: RecordingCompletionClient, sleeps: SleepRecorder
) -> ServiceContainer:
    """Fully wired container with a recording completion client and no real sleeps."""
    return build_container(
        settings,
        repository=InMemoryDocumentRepository(),
        completion=completion,
        retry_policy=RetryPolicy(max_retries=3, base_delay_s=0.01, sleep=sleeps),
    )


@pytest.fixture
def client(container: ServiceContainer) -> Generator[TestClient, None, None]:
    """Test client with the container dependency overridden."""

    async def override_get_container() -> ServiceContainer:
        await container.start()
        return container

    app.dependency_overrides[get_container] = override_get_container
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
