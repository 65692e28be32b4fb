from __future__ import annotations

import asyncio
import json
import logging

from pagechat.core.config import settings
from pagechat.core.models import ChatTurn, PageContent
from pagechat.services.gateway_service import ModelGateway

logger = logging.getLogger(__name__)

EMPTY_ANSWER = "I'm not sure how to respond to that."


class ChatBusyError(RuntimeError):
    pass


def fallback_context(page: PageContent, max_chars: int | None = None) -> str:
    """JSON form of the page content, text capped at the fallback ceiling.

    The ceiling is never smaller than the chunk size, so anything a single chunk
    could hold also fits here.
    """
    limit = max(max_chars or settings.FALLBACK_CONTEXT_MAX_CHARS, settings.MAX_CHUNK_LENGTH)
    payload = page.model_dump()
    payload["text"] = (page.text or "")[:limit]
    return json.dumps(payload, ensure_ascii=False)


def build_chat_prompt(question: str, summary: str, context: str) -> str:
    # The summary is the primary grounding; the raw page only backs it up.
    system = (
        "You are a helpful assistant. Answer the user's question based on the provided summary of a webpage. "
        "If the summary does not contain the answer, you may refer to the full content JSON as a fallback."
    )
    return f"""{system}

--- SUMMARY CONTEXT ---
{summary}
-----------------------

--- FULL TEXT (FALLBACK ONLY) ---
{context}
---------------------------------

User Question: "{question}"

Your Answer:"""


async def answer(
    question: str,
    summary: str,
    context: str,
    model_id: str,
    gateway: ModelGateway | None = None,
) -> str:
    if gateway is None:
        from pagechat.services.llm_factory import get_gateway
        gateway = get_gateway()
    out = await gateway.complete(build_chat_prompt(question, summary, context), model_id)
    return out or EMPTY_ANSWER


class ChatSession:
    """Ordered transcript for one page view; one question in flight at a time."""

    def __init__(self, summary: str, page: PageContent, gateway: ModelGateway | None = None):
        self.summary = summary
        self.context = fallback_context(page)
        self.turns: list[ChatTurn] = []
        self._gateway = gateway
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def ask(self, question: str, model_id: str) -> ChatTurn:
        if self._lock.locked():
            raise ChatBusyError("Please wait for the current answer before asking again.")
        async with self._lock:
            # Earlier turns are not fed back; each question is answered on its own.
            text = await answer(question, self.summary, self.context, model_id, gateway=self._gateway)
            turn = ChatTurn(question=question, answer=text)
            self.turns.append(turn)
            return turn
