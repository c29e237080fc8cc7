"""Boundary between free-text model output and a structured subtask list."""
from __future__ import annotations

import json
import re
from typing import Any, Iterator

from deepsearch.exceptions import PlanParseError
from deepsearch.models.research_plan import Subtask

_LIST_START = re.compile(r"\[")


def _iter_json_lists(text: str) -> Iterator[list[Any]]:
    """Yield every JSON array embedded in ``text``, leftmost first."""
    decoder = json.JSONDecoder()
    for match in _LIST_START.finditer(text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            yield value


def _to_subtask(item: Any, position: int) -> Subtask:
    if not isinstance(item, dict):
        raise PlanParseError(f"Subtask {position} is not an object")

    raw_id = item.get("id")
    description = item.get("description")
    if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)):
        raise PlanParseError(f"Subtask {position} has no usable 'id'")
    if not isinstance(description, str) or not description.strip():
        raise PlanParseError(f"Subtask {position} has no 'description'")

    task_id = str(raw_id).strip()
    if not task_id:
        raise PlanParseError(f"Subtask {position} has an empty 'id'")
    return Subtask(id=task_id, description=" ".join(description.split()))


def parse_subtask_list(text: str) -> list[Subtask]:
    """Extract the first well-formed, non-empty ``[{id, description}, ...]`` list.

    The model may wrap the list in prose or markdown fences; lists that do not
    hold subtask objects (a ``[1]`` citation, say) are skipped.
    """
    if not text or not text.strip():
        raise PlanParseError("Model returned an empty plan")

    last_error: PlanParseError | None = None
    for candidate in _iter_json_lists(text):
        if not candidate:
            last_error = PlanParseError("Model returned an empty subtask list")
            continue
        try:
            return [_to_subtask(item, index + 1) for index, item in enumerate(candidate)]
        except PlanParseError as exc:
            last_error = exc

    if last_error is not None:
        raise last_error
    raise PlanParseError("No JSON array found in model output")
