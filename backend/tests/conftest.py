"""Shared pytest fixtures for Context Viewer tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from ctxview.importer.registry import default_registry
from ctxview.main import app
from ctxview.pipeline.orchestrator import PipelineOrchestrator
from ctxview.pipeline.router import get_orchestrator
from tests.fixtures import FakeCollaborator, WordCounter


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def counter():
    return WordCounter()


@pytest.fixture
def orchestrator(registry, counter):
    """Orchestrator without a collaborator: parse and token-count only."""
    return PipelineOrchestrator(registry, counter)


@pytest.fixture
async def client():
    """Async test client; tests override get_orchestrator as needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def use_orchestrator():
    """Install an orchestrator into the app's dependency overrides."""

    def install(orchestrator: PipelineOrchestrator) -> PipelineOrchestrator:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return orchestrator

    return install


@pytest.fixture
def fake_collaborator():
    return FakeCollaborator()
