from __future__ import annotations

from deepsearch.config import settings
from deepsearch.llm_client import LLMProvider, OpenRouterProvider, get_model
from deepsearch.llm_client import get_provider as _shared_provider


def get_provider() -> LLMProvider:
    """FastAPI dependency: the process-wide provider (overridden in tests)."""
    return _shared_provider()


def provider_for_model(model: str | None, default: LLMProvider) -> LLMProvider:
    """Use a dedicated provider when the request names a different model."""
    if not model or model == getattr(default, "model", None):
        return default
    return OpenRouterProvider(model=model)


def get_available_models() -> list[dict[str, object]]:
    """Return the models a request may select."""
    active = get_model()
    models = settings.available_model_list
    if active not in models:
        models = [active, *models]
    return [{"id": model_id, "default": model_id == active} for model_id in models]
