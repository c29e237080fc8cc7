from __future__ import annotations

import asyncio
import time
from typing import AsyncGenerator, Awaitable, TypeVar

from loguru import logger

from deepsearch.agents.chat import ChatAgent
from deepsearch.agents.compiler import ReportCompiler
from deepsearch.agents.executor import TaskExecutor
from deepsearch.agents.planner import ResearchPlanner
from deepsearch.agents.summarizer import SearchSummarizer, fallback_summary
from deepsearch.config import settings
from deepsearch.exceptions import DeepSearchError, InputError, PipelineTimeoutError, ProviderError
from deepsearch.llm_client import LLMProvider, get_provider
from deepsearch.models.events import EventType, SSEEvent
from deepsearch.models.research_plan import ResearchStage, SubtaskResult
from deepsearch.models.schemas import (
    ChatResponse,
    ChatTurn,
    DeepResearchResponse,
    ResearchRequest,
    SearchMode,
    SearchResult,
)
from deepsearch.services import logger as log_service
from deepsearch.services import streaming
from deepsearch.services.retrieval import WebRetrievalEngine
from deepsearch.tools.web_utils import clean_query, truncate

T = TypeVar("T")


class ResearchOrchestrator:
    """Wires the pipeline stages into the externally visible modes.

    Modes:
      - deep research: plan -> execute (sequential) -> compile, returns a report
      - web search: retrieve (concurrent batches) -> summarize
      - summary only: summarize caller-supplied search results
      - chat: one prompt over recent chat turns

    One instance serves one request; nothing is shared between requests.
    """

    def __init__(
        self,
        provider: LLMProvider | None = None,
        *,
        planner: ResearchPlanner | None = None,
        executor: TaskExecutor | None = None,
        compiler: ReportCompiler | None = None,
        summarizer: SearchSummarizer | None = None,
        chat_agent: ChatAgent | None = None,
        retrieval: WebRetrievalEngine | None = None,
        pipeline_timeout: float | None = None,
        session_id: str | None = None,
    ):
        self.provider = provider or get_provider()
        self.planner = planner or ResearchPlanner(self.provider)
        self.executor = executor or TaskExecutor(self.provider)
        self.compiler = compiler or ReportCompiler(self.provider)
        self.summarizer = summarizer or SearchSummarizer(self.provider)
        self.chat_agent = chat_agent or ChatAgent(self.provider)
        self._retrieval = retrieval
        self.pipeline_timeout = (
            settings.pipeline_timeout_seconds if pipeline_timeout is None else pipeline_timeout
        )
        self.session_id = session_id
        self.stage: ResearchStage | None = None

    # --- deadline handling ---

    def _deadline(self) -> float:
        return time.monotonic() + self.pipeline_timeout

    def _timeout_error(self) -> PipelineTimeoutError:
        where = f" while {self.stage.value}" if self.stage else ""
        return PipelineTimeoutError(
            f"Research exceeded the {self.pipeline_timeout:g}s time budget{where}"
        )

    def _remaining(self, deadline: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise self._timeout_error()
        return remaining

    async def _bounded(self, awaitable: Awaitable[T], deadline: float) -> T:
        try:
            remaining = self._remaining(deadline)
        except PipelineTimeoutError:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise self._timeout_error() from exc

    def _enter(self, stage: ResearchStage, **data) -> None:
        self.stage = stage
        log_service.log_research_step(self.session_id, stage.value, "started", data or None)

    # --- deep research ---

    async def _run_deep_research(self, topic: str) -> AsyncGenerator[SSEEvent, None]:
        started = time.monotonic()
        deadline = self._deadline()

        self._enter(ResearchStage.PLANNING, topic=topic[:100])
        subtasks = await self._bounded(self.planner.plan(topic), deadline)
        yield streaming.plan_created(topic, subtasks)

        self._enter(ResearchStage.EXECUTING, subtasks=len(subtasks))
        results: list[SubtaskResult] = []
        total = len(subtasks)
        # Each step of the executor's loop (pause + subtask call) is bounded.
        steps = self.executor.iter_results(subtasks)
        try:
            for index, subtask in enumerate(subtasks):
                yield streaming.subtask_started(subtask, index, total)
                result = await self._bounded(anext(steps), deadline)
                results.append(result)
                yield streaming.subtask_completed(result, index, total)
        finally:
            await steps.aclose()
        failed = sum(1 for r in results if r.failed)

        self._enter(ResearchStage.COMPILING, results=len(results), failed=failed)
        yield streaming.compilation_started(len(results))
        report = await self._bounded(self.compiler.compile(topic, results), deadline)

        runtime_ms = int((time.monotonic() - started) * 1000)
        self._enter(ResearchStage.DONE, runtime_ms=runtime_ms)
        logger.info(
            f"Deep research complete for '{topic[:80]}': {total} subtasks "
            f"({failed} failed), {runtime_ms}ms"
        )
        yield streaming.research_complete(report, subtasks_failed=failed, runtime_ms=runtime_ms)

    async def deep_research(self, topic: str) -> str:
        """Run plan -> execute -> compile and return the final report.

        Planning and compilation failures propagate; subtask failures do not.
        """
        topic = clean_query(topic, field="topic")
        report = ""
        try:
            async for event in self._run_deep_research(topic):
                if event.event is EventType.RESEARCH_COMPLETE:
                    report = event.data["report"]
        except DeepSearchError as exc:
            log_service.log_research_step(
                self.session_id,
                (self.stage or ResearchStage.PLANNING).value,
                "failed",
                {"error": str(exc)},
            )
            self.stage = ResearchStage.FAILED
            raise
        return report

    async def research(self, topic: str) -> AsyncGenerator[SSEEvent, None]:
        """Streaming deep research; fatal errors become a final error event."""
        try:
            topic = clean_query(topic, field="topic")
            async for event in self._run_deep_research(topic):
                yield event
        except DeepSearchError as exc:
            failed_stage = self.stage
            self.stage = ResearchStage.FAILED
            logger.warning(
                f"Deep research failed during {failed_stage.value if failed_stage else 'validation'}: {exc}"
            )
            yield streaming.error(str(exc), stage=failed_stage.value if failed_stage else None)

    # --- web search / summary ---

    def retrieval_engine(self, *, fast_mode: bool = False) -> WebRetrievalEngine:
        return self._retrieval or WebRetrievalEngine(fast_mode=fast_mode)

    async def summarize(
        self,
        query: str,
        search_results: SearchResult,
        *,
        search_mode: SearchMode = "comprehensive",
        deadline: float | None = None,
    ) -> SearchResult:
        """Summarize already-collected sources.

        A failed or timed-out model call degrades to a fallback summary and
        sets ``error`` instead of raising.
        """
        query = clean_query(query)
        sources = [
            source.model_copy(update={"snippet": truncate(source.snippet, settings.snippet_max_chars)})
            for source in search_results.sources
        ]
        deadline = deadline if deadline is not None else self._deadline()
        try:
            summary = await self._bounded(
                self.summarizer.summarize(query, sources, search_mode=search_mode),
                deadline,
            )
        except (ProviderError, PipelineTimeoutError) as exc:
            logger.warning(f"Summary unavailable for '{query[:80]}': {exc}")
            return SearchResult(
                summary=fallback_summary(query, sources),
                sources=sources,
                error=str(exc),
            )
        return SearchResult(summary=summary, sources=sources)

    async def web_search(
        self,
        query: str,
        *,
        search_mode: SearchMode = "comprehensive",
        max_sources: int | None = None,
        fast_mode: bool = False,
    ) -> SearchResult:
        query = clean_query(query)
        deadline = self._deadline()
        engine = self.retrieval_engine(fast_mode=fast_mode)
        sources = await engine.retrieve(query, max_sources or engine.max_sources)
        return await self.summarize(
            query,
            SearchResult(sources=sources),
            search_mode=search_mode,
            deadline=deadline,
        )

    # --- chat ---

    async def chat(self, query: str, history: list[ChatTurn] | None = None) -> str:
        query = clean_query(query)
        return await self._bounded(self.chat_agent.reply(query, history or []), self._deadline())

    # --- request envelope ---

    async def handle(self, request: ResearchRequest) -> DeepResearchResponse | SearchResult:
        """Dispatch one request envelope to the mode it selects."""
        if request.summary_mode:
            if request.search_results is None:
                raise InputError("searchResults is required when summaryMode is set")
            return await self.summarize(
                request.query,
                request.search_results,
                search_mode=request.search_mode,
            )

        if request.deep_research:
            return DeepResearchResponse(response=await self.deep_research(request.query))

        return await self.web_search(
            request.query,
            search_mode=request.search_mode,
            max_sources=request.max_sources,
            fast_mode=request.fast_mode,
        )

    async def handle_chat(self, request: ResearchRequest) -> ChatResponse:
        return ChatResponse(response=await self.chat(request.query, request.chat_history))
