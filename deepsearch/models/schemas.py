from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

SearchMode = Literal["quick", "comprehensive", "exploratory"]


class _Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Shared records ---


class SourceRecord(_Envelope):
    title: str
    url: str
    snippet: str
    synthetic: bool = False


class SearchResult(_Envelope):
    summary: str = ""
    sources: list[SourceRecord] = Field(default_factory=list)
    error: str | None = None

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        return len(self.sources)


class ChatTurn(_Envelope):
    is_user: bool
    content: str


# --- Requests ---


class ResearchRequest(_Envelope):
    query: str = ""
    search_mode: SearchMode = "comprehensive"
    max_sources: int | None = Field(default=None, ge=1)
    fast_mode: bool = False
    deep_research: bool = False
    summary_mode: bool = False
    search_results: SearchResult | None = None
    chat_history: list[ChatTurn] = Field(default_factory=list)
    model: str | None = None


# --- Responses ---


class DeepResearchResponse(_Envelope):
    response: str


class ChatResponse(_Envelope):
    response: str


class ErrorResponse(_Envelope):
    error: str
    summary: str


class ModelInfo(_Envelope):
    id: str
    default: bool = False


class ModelsResponse(_Envelope):
    models: list[ModelInfo]
