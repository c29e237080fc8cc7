from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResearchStage(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPILING = "compiling"
    DONE = "done"
    FAILED = "failed"


class Subtask(BaseModel):
    """One decomposed unit of a research topic."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str


class SubtaskResult(BaseModel):
    """Outcome of one subtask: the model's answer or a readable error string."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    task_id: str = Field(alias="taskId")
    content: str
    failed: bool = False
