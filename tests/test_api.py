"""Tests for API routes."""
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import PLAN_JSON, FailingProvider, FakeProvider
from deepsearch.api.deps import get_provider, provider_for_model
from deepsearch.config import settings
from deepsearch.llm_client import OpenRouterProvider
from deepsearch.main import app
from deepsearch.services.retrieval import WebRetrievalEngine
from deepsearch.tools.content_synthesizer import synthesize_fallback


class FallbackSynthesizer:
    async def synthesize(self, url):
        return synthesize_fallback(url)


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """sse-starlette keeps a module-level exit event bound to the first event loop."""
    from sse_starlette import sse

    app_status = getattr(sse, "AppStatus", None)
    if app_status is not None:
        app_status.should_exit_event = None
    yield
    if app_status is not None:
        app_status.should_exit_event = None


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(provider, monkeypatch):
    # No network: every fetch degrades to generated content.
    monkeypatch.setattr(
        "deepsearch.agents.orchestrator.WebRetrievalEngine",
        lambda fast_mode=False: WebRetrievalEngine(synthesizer=FallbackSynthesizer(), fast_mode=fast_mode),
    )
    app.dependency_overrides[get_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "deepsearch"}


def test_list_models(client):
    response = client.get("/api/models")
    assert response.status_code == 200
    models = response.json()["models"]
    assert len(models) >= 3
    defaults = [m["id"] for m in models if m["default"]]
    assert defaults == ["openai/gpt-4o-mini"]


def test_web_search(client, provider):
    provider.responses = ["Summary of black holes."]
    response = client.post("/api/research", json={"query": "black holes", "maxSources": 3})

    assert response.status_code == 200
    data = response.json()
    assert data["summary"] == "Summary of black holes."
    assert data["totalPages"] == 3
    assert len(data["sources"]) == 3
    assert "error" not in data


def test_deep_research(client, provider):
    provider.responses = [PLAN_JSON, "a", "b", "c", "# Introduction\nReport"]
    response = client.post("/api/research", json={"query": "energy storage", "deepResearch": True})

    assert response.status_code == 200
    assert "Introduction" in response.json()["response"]


def test_summary_mode(client, provider):
    provider.responses = ["Short summary"]
    payload = {
        "query": "energy",
        "summaryMode": True,
        "searchMode": "quick",
        "searchResults": {
            "sources": [{"title": "A", "url": "https://a.example", "snippet": "alpha"}],
        },
    }
    response = client.post("/api/research", json=payload)

    assert response.status_code == 200
    assert response.json()["summary"] == "Short summary"
    assert provider.max_tokens == [600]


def test_empty_query_is_bad_request(client):
    response = client.post("/api/research", json={"query": "  ", "deepResearch": True})
    assert response.status_code == 400
    assert response.json()["error"]


def test_planning_failure_is_bad_gateway(client, provider):
    provider.responses = ["not a plan"]
    response = client.post("/api/research", json={"query": "energy", "deepResearch": True})

    assert response.status_code == 502
    body = response.json()
    assert "Failed to generate research plan" in body["error"]
    assert body["summary"]


def test_provider_failure_is_service_unavailable(client):
    app.dependency_overrides[get_provider] = lambda: FailingProvider("no key")
    response = client.post("/api/research", json={"query": "energy", "deepResearch": True})
    assert response.status_code == 503


def test_summary_failure_keeps_sources(client):
    app.dependency_overrides[get_provider] = lambda: FailingProvider("no key")
    response = client.post("/api/research", json={"query": "black holes", "maxSources": 2})

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "no key"
    assert len(data["sources"]) == 2
    assert "limited" in data["summary"]


def test_pipeline_timeout_is_gateway_timeout(client, monkeypatch):
    class SlowProvider(FakeProvider):
        async def invoke(self, prompt, *, max_tokens=None):
            await asyncio.sleep(5)
            return "late"

    monkeypatch.setattr(settings, "pipeline_timeout_seconds", 0.05)
    app.dependency_overrides[get_provider] = lambda: SlowProvider()
    response = client.post("/api/research", json={"query": "energy", "deepResearch": True})
    assert response.status_code == 504


def test_invalid_max_sources_is_rejected(client):
    response = client.post("/api/research", json={"query": "energy", "maxSources": 0})
    assert response.status_code == 422


def test_chat(client, provider):
    provider.responses = ["Hello again"]
    response = client.post(
        "/api/chat",
        json={"query": "hi", "chatHistory": [{"isUser": True, "content": "earlier question"}]},
    )

    assert response.status_code == 200
    assert response.json() == {"response": "Hello again"}
    assert "User: earlier question" in provider.prompts[0]


def test_stream_research(client, provider):
    provider.responses = [PLAN_JSON, "a", "b", "c", "# Introduction\nReport"]
    response = client.post("/api/research/stream", json={"query": "energy storage"})

    assert response.status_code == 200
    assert "text/event-stream" in response.headers["content-type"]
    body = response.text
    assert "event: plan_created" in body
    assert body.count("event: subtask_completed") == 3
    assert "event: research_complete" in body


def test_model_override_builds_dedicated_provider(provider):
    assert provider_for_model(None, provider) is provider
    assert provider_for_model(provider.model, provider) is provider

    other = provider_for_model("google/gemini-2.0-flash-001", provider)
    assert isinstance(other, OpenRouterProvider)
    assert other.model == "google/gemini-2.0-flash-001"


def test_stream_closes_after_terminal_event(client, provider, monkeypatch):
    closed = []
    monkeypatch.setattr(
        "deepsearch.api.routes.research.log_service.log_event",
        lambda **fields: closed.append(fields),
    )
    provider.responses = ["not a plan"]
    response = client.post("/api/research/stream", json={"query": "energy storage"})

    assert response.status_code == 200
    assert response.text.count("event: error") == 1
    assert [entry["outcome"] for entry in closed] == ["error"]
