"""Language-model provider capability backed by OpenRouter's OpenAI-compatible API.

The pipeline only depends on :class:`LLMProvider`; ``OpenRouterProvider`` is the
concrete backend used when nothing else is injected.
"""
from __future__ import annotations

from typing import Any, Protocol

from loguru import logger
from openai import APIError, AsyncOpenAI

from deepsearch.config import settings
from deepsearch.exceptions import ProviderError


class LLMProvider(Protocol):
    model: str

    async def invoke(self, prompt: str, *, max_tokens: int | None = None) -> str:
        ...


def get_client(api_key: str | None = None, base_url: str | None = None) -> AsyncOpenAI:
    """Get an OpenRouter client via the OpenAI-compatible SDK."""
    resolved_base = (base_url if base_url is not None else settings.openrouter_base_url).strip()
    return AsyncOpenAI(
        api_key=api_key if api_key is not None else settings.openrouter_api_key,
        base_url=resolved_base or "https://openrouter.ai/api/v1",
        timeout=settings.llm_request_timeout_seconds,
        max_retries=0,
    )


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


class OpenRouterProvider:
    """Single-prompt completion against an OpenRouter chat model."""

    def __init__(
        self,
        *,
        model: str | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: Any | None = None,
    ):
        self.model = model or get_model()
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = get_client(api_key=self.api_key)
        return self._client

    async def invoke(self, prompt: str, *, max_tokens: int | None = None) -> str:
        if not self.api_key.strip():
            raise ProviderError("OpenRouter API key is not set")

        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature,
            )
        except APIError as exc:
            raise ProviderError(f"{self.model} request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        text = getattr(choices[0].message, "content", None) if choices else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(f"No content received from {self.model}")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"{self.model} usage: prompt={getattr(usage, 'prompt_tokens', 0)} "
                f"completion={getattr(usage, 'completion_tokens', 0)}"
            )
        return text.strip()


_provider: OpenRouterProvider | None = None


def get_provider() -> OpenRouterProvider:
    """Get or create the process-wide provider."""
    global _provider
    if _provider is None:
        _provider = OpenRouterProvider()
    return _provider
