from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from deepsearch.agents.orchestrator import ResearchOrchestrator
from deepsearch.api.deps import get_available_models, get_provider, provider_for_model
from deepsearch.exceptions import (
    DeepSearchError,
    InputError,
    PipelineTimeoutError,
    PlanningError,
    ProviderError,
)
from deepsearch.llm_client import LLMProvider
from deepsearch.models.schemas import ErrorResponse, ModelsResponse, ResearchRequest, SearchResult
from deepsearch.services import logger as log_service

router = APIRouter(prefix="/api", tags=["research"])

_STATUS_BY_ERROR: tuple[tuple[type[DeepSearchError], int], ...] = (
    (InputError, 400),
    (PlanningError, 502),
    (ProviderError, 503),
    (PipelineTimeoutError, 504),
)


def _status_for(exc: DeepSearchError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def _error_response(exc: DeepSearchError, query: str) -> JSONResponse:
    topic = query.strip() or "this topic"
    body = ErrorResponse(
        error=str(exc),
        summary=f'We could not research "{topic}" right now. {str(exc)}',
    )
    return JSONResponse(status_code=_status_for(exc), content=body.model_dump(by_alias=True))


def _orchestrator(request: ResearchRequest, provider: LLMProvider) -> ResearchOrchestrator:
    return ResearchOrchestrator(provider=provider_for_model(request.model, provider))


@router.post("/research")
async def run_research(request: ResearchRequest, provider: LLMProvider = Depends(get_provider)):
    """Deep research, web search, or summary-only, selected by the request flags."""
    orchestrator = _orchestrator(request, provider)
    try:
        result = await orchestrator.handle(request)
    except DeepSearchError as exc:
        log_service.log_event(
            event_type="research_failed",
            message="Research request failed",
            error=str(exc),
            error_type=type(exc).__name__,
            query=request.query[:100],
        )
        return _error_response(exc, request.query)

    payload = result.model_dump(by_alias=True, exclude_none=True)
    if isinstance(result, SearchResult) and result.error:
        return JSONResponse(status_code=503, content=payload)
    return payload


@router.post("/research/stream")
async def stream_research(request: ResearchRequest, provider: LLMProvider = Depends(get_provider)):
    """Deep research as server-sent progress events."""
    orchestrator = _orchestrator(request, provider)

    async def event_generator():
        async for event in orchestrator.research(request.query):
            yield event.as_message()
            if event.is_terminal:
                log_service.log_event(
                    event_type="research_stream_closed",
                    message="Research stream finished",
                    outcome=event.event.value,
                    query=request.query[:100],
                )
                break

    return EventSourceResponse(event_generator())


@router.post("/chat")
async def chat(request: ResearchRequest, provider: LLMProvider = Depends(get_provider)):
    orchestrator = _orchestrator(request, provider)
    try:
        result = await orchestrator.handle_chat(request)
    except DeepSearchError as exc:
        return _error_response(exc, request.query)
    return result.model_dump(by_alias=True)


@router.get("/models", response_model=ModelsResponse)
async def list_models():
    return ModelsResponse(models=get_available_models())
