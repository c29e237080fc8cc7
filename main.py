"""DeepSearch - topic research from the command line.

Runs a summarized web search by default, or a streamed deep research
report with ``--deep``.
"""

import argparse
import asyncio
import sys

from deepsearch.agents.orchestrator import ResearchOrchestrator
from deepsearch.exceptions import DeepSearchError
from deepsearch.llm_client import OpenRouterProvider


async def run_deep_research(orchestrator: ResearchOrchestrator, query: str) -> int:
    """Stream deep research progress to stdout."""
    print(f"Research topic: {query}")
    print("-" * 50)

    status = 0
    async for event in orchestrator.research(query):
        event_type = event.event.value
        data = event.data

        if event_type == "plan_created":
            subtasks = data.get("subtasks", [])
            print(f"\n[*] Research Plan ({len(subtasks)} subtasks):")
            for subtask in subtasks:
                print(f"  {subtask.get('id')}. {subtask.get('description', '')[:80]}")

        elif event_type == "subtask_started":
            print(f"\n[~] Subtask {data.get('index', 0) + 1}/{data.get('total')}...", end="", flush=True)

        elif event_type == "subtask_completed":
            print(" done" if data.get("success") else " failed")

        elif event_type == "compilation_started":
            print("\n[+] Compiling report...")

        elif event_type == "research_complete":
            print("\n[*] Research Complete!")
            print(f"   Runtime: {data.get('runtime_ms')}ms")
            print(f"   Failed subtasks: {data.get('subtasks_failed', 0)}")
            print(f"\n{'='*50}")
            print("REPORT:")
            print(f"{'='*50}")
            print(data.get("report", ""))

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('message', 'Unknown error')}")
            status = 1
    return status


async def run_web_search(
    orchestrator: ResearchOrchestrator,
    query: str,
    *,
    mode: str,
    fast: bool,
    max_sources: int | None,
) -> int:
    print(f"Search query: {query}")
    print("-" * 50)

    try:
        result = await orchestrator.web_search(
            query, search_mode=mode, max_sources=max_sources, fast_mode=fast
        )
    except DeepSearchError as exc:
        print(f"[!] Error: {exc}")
        return 1

    print(f"\n{result.summary}\n")
    print(f"Sources ({result.total_pages}):")
    for i, source in enumerate(result.sources, 1):
        marker = " (generated)" if source.synthetic else ""
        print(f"  [{i}] {source.title}{marker}")
        print(f"      {source.url}")
    if result.error:
        print(f"\n[!] Summary unavailable: {result.error}")
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(description="DeepSearch research tool")
    parser.add_argument("--query", "-q", required=True, help="Research topic or search query")
    parser.add_argument("--deep", action="store_true", help="Run plan/execute/compile deep research")
    parser.add_argument(
        "--mode",
        choices=["quick", "comprehensive", "exploratory"],
        default="comprehensive",
        help="Summary depth for web search",
    )
    parser.add_argument("--fast", action="store_true", help="Smaller batches and shorter fetch timeouts")
    parser.add_argument("--max-sources", type=int, help="Number of sources to return (capped at 10)")
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")

    args = parser.parse_args()

    provider = OpenRouterProvider(model=args.model) if args.model else None
    orchestrator = ResearchOrchestrator(provider=provider)

    if args.deep:
        status = asyncio.run(run_deep_research(orchestrator, args.query))
    else:
        status = asyncio.run(
            run_web_search(
                orchestrator,
                args.query,
                mode=args.mode,
                fast=args.fast,
                max_sources=args.max_sources,
            )
        )
    sys.exit(status)


if __name__ == "__main__":
    main()
