from __future__ import annotations

from deepsearch.agents.base import BaseAgent
from deepsearch.models.schemas import SearchMode, SourceRecord
from deepsearch.services.prompt_store import render_prompt

# Output token budget per analysis depth; wording comes from the prompt catalog.
DEPTH_TOKEN_BUDGET: dict[str, int] = {
    "quick": 600,
    "comprehensive": 1500,
    "exploratory": 2000,
}


def format_sources(sources: list[SourceRecord]) -> str:
    return "\n\n".join(
        f"[{index}] {source.title} ({source.url})\n{source.snippet}"
        for index, source in enumerate(sources, 1)
    )


def fallback_summary(query: str, sources: list[SourceRecord]) -> str:
    return render_prompt(
        "summarizer.fallback",
        query=query.strip(),
        source_count=len(sources),
    )


class SearchSummarizer(BaseAgent):
    """Single model call over the concatenated source snippets."""

    name = "summarizer"

    async def summarize(
        self,
        query: str,
        sources: list[SourceRecord],
        *,
        search_mode: SearchMode = "comprehensive",
    ) -> str:
        depth = search_mode if search_mode in DEPTH_TOKEN_BUDGET else "comprehensive"
        prompt = render_prompt(
            "summarizer.summary",
            query=query.strip(),
            depth_instruction=render_prompt(f"summarizer.depth.{depth}"),
            sources=format_sources(sources) or "(no sources were collected)",
        )
        summary = await self.invoke(prompt, max_tokens=DEPTH_TOKEN_BUDGET[depth])
        return summary.strip()
