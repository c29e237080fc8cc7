from __future__ import annotations

from deepsearch.agents.base import BaseAgent
from deepsearch.models.research_plan import SubtaskResult
from deepsearch.services.prompt_store import render_prompt


def format_findings(results: list[SubtaskResult]) -> str:
    return "\n\n".join(f"Task {result.task_id} Findings: {result.content}" for result in results)


class ReportCompiler(BaseAgent):
    name = "compiler"

    async def compile(self, topic: str, results: list[SubtaskResult]) -> str:
        """Synthesize all subtask findings into one narrative report."""
        prompt = render_prompt(
            "compiler.report",
            topic=topic.strip(),
            findings=format_findings(results),
        )
        report = await self.invoke(prompt)
        return report.strip()
