from __future__ import annotations

import json

from deepsearch.models.events import EventType
from deepsearch.models.research_plan import Subtask, SubtaskResult
from deepsearch.models.schemas import ResearchRequest, SearchResult, SourceRecord
from deepsearch.services import streaming


def test_search_result_serializes_camel_case_with_page_count():
    result = SearchResult(
        summary="s",
        sources=[SourceRecord(title="A", url="https://a.example", snippet="a", synthetic=True)],
    )
    data = result.model_dump(by_alias=True, exclude_none=True)

    assert data["totalPages"] == 1
    assert data["sources"][0]["synthetic"] is True
    assert "error" not in data


def test_request_defaults():
    request = ResearchRequest.model_validate({"query": "energy"})
    assert request.search_mode == "comprehensive"
    assert not request.deep_research
    assert not request.summary_mode
    assert request.chat_history == []


def test_subtask_result_accepts_either_name():
    assert SubtaskResult(taskId="1", content="x").task_id == "1"
    assert SubtaskResult(task_id="1", content="x").model_dump(by_alias=True)["taskId"] == "1"


def test_event_message_is_json():
    event = streaming.subtask_completed(SubtaskResult(task_id="2", content="y" * 500), 1, 3)
    message = event.as_message()

    assert message["event"] == "subtask_completed"
    data = json.loads(message["data"])
    assert data["success"] is True
    assert len(data["content_preview"]) == 200
    assert not event.is_terminal


def test_error_and_complete_events_are_terminal():
    assert streaming.error("boom", stage="planning").is_terminal
    complete = streaming.research_complete("report", subtasks_failed=1, runtime_ms=12)
    assert complete.event is EventType.RESEARCH_COMPLETE
    assert complete.is_terminal
    assert complete.data == {"report": "report", "subtasks_failed": 1, "runtime_ms": 12}


def test_plan_created_lists_subtasks():
    event = streaming.plan_created("t", [Subtask(id="1", description="d")])
    assert event.data["subtasks"] == [{"id": "1", "description": "d"}]
