from __future__ import annotations

import os

# Keep test runs from writing daily log files.
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from deepsearch.exceptions import ProviderError


class FakeProvider:
    """Scripted stand-in for the language-model provider.

    ``responses`` are consumed in order; an exception instance is raised
    instead of returned. Once exhausted, ``default`` is returned.
    """

    def __init__(self, responses=None, *, default="ok", model="test/model"):
        self.model = model
        self.responses = list(responses or [])
        self.default = default
        self.prompts: list[str] = []
        self.max_tokens: list[int | None] = []

    async def invoke(self, prompt: str, *, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        self.max_tokens.append(max_tokens)
        if self.responses:
            response = self.responses.pop(0)
        else:
            response = self.default
        if isinstance(response, BaseException):
            raise response
        return response


class FailingProvider(FakeProvider):
    def __init__(self, message="upstream unavailable"):
        super().__init__()
        self.message = message

    async def invoke(self, prompt: str, *, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        raise ProviderError(self.message)


PLAN_JSON = (
    '[{"id": "1", "description": "Review existing literature"},'
    ' {"id": "2", "description": "Gather data"},'
    ' {"id": "3", "description": "Analyse the data"}]'
)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture(autouse=True)
def no_pacing(monkeypatch):
    """Skip the inter-subtask pause unless a test asks for it."""
    from deepsearch.config import settings

    monkeypatch.setattr(settings, "subtask_delay_seconds", 0.0)
