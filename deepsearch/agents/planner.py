from __future__ import annotations

from loguru import logger

from deepsearch.agents.base import BaseAgent
from deepsearch.exceptions import PlanningError, PlanParseError
from deepsearch.models.research_plan import Subtask
from deepsearch.services.plan_parser import parse_subtask_list
from deepsearch.services.prompt_store import render_prompt
from deepsearch.tools.web_utils import clean_query


class ResearchPlanner(BaseAgent):
    """Decomposes a research topic into an ordered list of subtasks.

    One model call, no retry: a plan that cannot be parsed aborts the run.
    """

    name = "planner"

    async def plan(self, topic: str) -> list[Subtask]:
        topic = clean_query(topic, field="topic")
        response = await self.invoke(render_prompt("planner.plan", topic=topic))

        try:
            subtasks = parse_subtask_list(response)
        except PlanParseError as exc:
            logger.warning(f"Unparseable research plan for '{topic[:80]}': {exc}")
            raise PlanningError("Failed to generate research plan. Please try again.") from exc

        logger.info(f"Research plan for '{topic[:80]}' has {len(subtasks)} subtasks")
        return subtasks
