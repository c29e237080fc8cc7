from __future__ import annotations

import time

from deepsearch.exceptions import ProviderError
from deepsearch.llm_client import LLMProvider, get_provider
from deepsearch.services import logger as log_service


class BaseAgent:
    """Base for pipeline stages that talk to the language-model provider.

    Subclasses set ``name`` and call :meth:`invoke`; every call is timed and
    written to the LLM call log whether it succeeds or not.
    """

    name: str = "base"

    def __init__(self, provider: LLMProvider | None = None):
        self.provider = provider or get_provider()

    @property
    def model(self) -> str:
        return getattr(self.provider, "model", type(self.provider).__name__)

    async def invoke(self, prompt: str, *, max_tokens: int | None = None) -> str:
        t0 = time.monotonic()
        try:
            text = await self.provider.invoke(prompt, max_tokens=max_tokens)
        except ProviderError as exc:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                prompt_chars=len(prompt),
                status="error",
                error=str(exc),
            )
            raise

        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            duration_ms=int((time.monotonic() - t0) * 1000),
            prompt_chars=len(prompt),
            response_chars=len(text),
        )
        return text
