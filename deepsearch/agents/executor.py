from __future__ import annotations

import asyncio
from typing import AsyncGenerator

from loguru import logger

from deepsearch.agents.base import BaseAgent
from deepsearch.config import settings
from deepsearch.exceptions import SubtaskError
from deepsearch.llm_client import LLMProvider
from deepsearch.models.research_plan import Subtask, SubtaskResult
from deepsearch.services.prompt_store import render_prompt


class TaskExecutor(BaseAgent):
    """Runs subtasks one at a time with a fixed pause after each."""

    name = "executor"

    def __init__(self, provider: LLMProvider | None = None, *, delay_seconds: float | None = None):
        super().__init__(provider)
        self.delay_seconds = settings.subtask_delay_seconds if delay_seconds is None else delay_seconds

    async def run_subtask(self, subtask: Subtask) -> str:
        prompt = render_prompt(
            "executor.subtask",
            task_id=subtask.id,
            description=subtask.description,
        )
        try:
            content = await self.invoke(prompt)
        except Exception as exc:
            raise SubtaskError(subtask.id, str(exc) or type(exc).__name__) from exc
        return content.strip()

    async def run_one(self, subtask: Subtask) -> SubtaskResult:
        """Run a single subtask; a failure is recorded as the result's content."""
        try:
            content = await self.run_subtask(subtask)
        except SubtaskError as exc:
            logger.warning(f"Subtask {subtask.id} failed: {exc.reason}")
            return SubtaskResult(task_id=subtask.id, content=str(exc), failed=True)
        return SubtaskResult(task_id=subtask.id, content=content)

    async def pace(self) -> None:
        await asyncio.sleep(self.delay_seconds)

    async def iter_results(self, subtasks: list[Subtask]) -> AsyncGenerator[SubtaskResult, None]:
        """Yield one result per subtask, in order; the pause follows each result."""
        for subtask in subtasks:
            yield await self.run_one(subtask)
            await self.pace()

    async def execute(self, subtasks: list[Subtask]) -> list[SubtaskResult]:
        return [result async for result in self.iter_results(subtasks)]
