from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIError

from conftest import FailingProvider, FakeProvider
from deepsearch.agents.base import BaseAgent
from deepsearch.exceptions import ProviderError
from deepsearch.llm_client import OpenRouterProvider


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5),
    )


def _client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


@pytest.mark.asyncio
async def test_invoke_returns_stripped_text():
    create = AsyncMock(return_value=_completion("  answer  "))
    provider = OpenRouterProvider(model="test/model", api_key="sk-test", client=_client(create))

    assert await provider.invoke("question", max_tokens=600) == "answer"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "test/model"
    assert kwargs["max_tokens"] == 600
    assert kwargs["messages"] == [{"role": "user", "content": "question"}]


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_upstream():
    create = AsyncMock()
    provider = OpenRouterProvider(api_key="  ", client=_client(create))

    with pytest.raises(ProviderError, match="API key"):
        await provider.invoke("question")
    create.assert_not_awaited()


@pytest.mark.asyncio
async def test_api_error_becomes_provider_error():
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    create = AsyncMock(side_effect=APIError("rate limited", request, body=None))
    provider = OpenRouterProvider(api_key="sk-test", client=_client(create))

    with pytest.raises(ProviderError, match="rate limited"):
        await provider.invoke("question")


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "   "])
async def test_empty_completion_is_an_error(content):
    create = AsyncMock(return_value=_completion(content))
    provider = OpenRouterProvider(api_key="sk-test", client=_client(create))

    with pytest.raises(ProviderError, match="No content"):
        await provider.invoke("question")


class EchoAgent(BaseAgent):
    name = "echo"


@pytest.mark.asyncio
async def test_agent_logs_successful_call():
    with patch("deepsearch.agents.base.log_service.log_llm_call") as log_call:
        text = await EchoAgent(FakeProvider(default="pong")).invoke("ping")

    assert text == "pong"
    kwargs = log_call.call_args.kwargs
    assert kwargs["caller"] == "echo"
    assert kwargs["model"] == "test/model"
    assert kwargs["response_chars"] == 4


@pytest.mark.asyncio
async def test_agent_logs_and_reraises_provider_error():
    with patch("deepsearch.agents.base.log_service.log_llm_call") as log_call:
        with pytest.raises(ProviderError):
            await EchoAgent(FailingProvider("down")).invoke("ping")

    kwargs = log_call.call_args.kwargs
    assert kwargs["status"] == "error"
    assert kwargs["error"] == "down"
