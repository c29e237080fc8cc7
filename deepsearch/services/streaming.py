from __future__ import annotations

from typing import Any

from deepsearch.models.events import EventType, SSEEvent
from deepsearch.models.research_plan import Subtask, SubtaskResult


def plan_created(topic: str, subtasks: list[Subtask]) -> SSEEvent:
    return SSEEvent(
        event=EventType.PLAN_CREATED,
        data={
            "topic": topic,
            "subtasks": [{"id": s.id, "description": s.description} for s in subtasks],
        },
    )


def subtask_started(subtask: Subtask, index: int, total: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.SUBTASK_STARTED,
        data={
            "task_id": subtask.id,
            "description": subtask.description,
            "index": index,
            "total": total,
        },
    )


def subtask_completed(result: SubtaskResult, index: int, total: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.SUBTASK_COMPLETED,
        data={
            "task_id": result.task_id,
            "success": not result.failed,
            "content_preview": result.content[:200],
            "index": index,
            "total": total,
        },
    )


def compilation_started(results_count: int) -> SSEEvent:
    return SSEEvent(event=EventType.COMPILATION_STARTED, data={"results_count": results_count})


def research_complete(
    report: str,
    *,
    subtasks_failed: int = 0,
    runtime_ms: int | None = None,
) -> SSEEvent:
    data: dict[str, Any] = {"report": report, "subtasks_failed": subtasks_failed}
    if runtime_ms is not None:
        data["runtime_ms"] = runtime_ms
    return SSEEvent(event=EventType.RESEARCH_COMPLETE, data=data)


def error(message: str, stage: str | None = None) -> SSEEvent:
    data: dict[str, Any] = {"message": message}
    if stage:
        data["stage"] = stage
    return SSEEvent(event=EventType.ERROR, data=data)
