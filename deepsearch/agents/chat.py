from __future__ import annotations

from deepsearch.agents.base import BaseAgent
from deepsearch.config import settings
from deepsearch.llm_client import LLMProvider
from deepsearch.models.schemas import ChatTurn
from deepsearch.services.prompt_store import render_prompt


class ChatAgent(BaseAgent):
    """Plain chat: persona + recent turns + the new query, as one prompt."""

    name = "chat"

    def __init__(self, provider: LLMProvider | None = None, *, history_limit: int | None = None):
        super().__init__(provider)
        self.history_limit = settings.chat_history_limit if history_limit is None else history_limit

    def build_prompt(self, query: str, history: list[ChatTurn]) -> str:
        turns = [turn for turn in history if turn.content and turn.content.strip()]
        recent = turns[-self.history_limit:] if self.history_limit > 0 else []
        lines = [
            f"{'User' if turn.is_user else 'Assistant'}: {turn.content.strip()}"
            for turn in recent
        ]
        return render_prompt(
            "chat.prompt",
            system=render_prompt("chat.system"),
            history="\n".join(lines),
            query=query.strip(),
        )

    async def reply(self, query: str, history: list[ChatTurn]) -> str:
        return (await self.invoke(self.build_prompt(query, history))).strip()
