"""Single integration point with the text-generation service.

Every completion goes through `ModelGateway`. Transport and decoding failures
never escape it: callers get a `Completion(ok=False)` (or, through the string
API, the `GATEWAY_ERROR` sentinel) so one failed call cannot abort a pipeline.
Successful output runs through the gateway's filter chain before anyone sees it.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Sequence

import httpx

from pagechat.adapters.llm.base import LLM
from pagechat.core.models import Completion

logger = logging.getLogger(__name__)

GATEWAY_ERROR = "Error: Could not connect to the AI model."

OutputFilter = Callable[[str], str]

_THINK_BLOCK_RE = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)
_THINK_TAG_RE = re.compile(r"<\s*/?\s*think\s*>", re.IGNORECASE)


def strip_reasoning(text: str) -> str:
    """Drop <think>...</think> traces some local models leak into their answers."""
    without_blocks = _THINK_BLOCK_RE.sub("", text)
    return _THINK_TAG_RE.sub("", without_blocks).strip()


DEFAULT_FILTERS: tuple[OutputFilter, ...] = (strip_reasoning,)


def is_gateway_error(text: str | None) -> bool:
    return text == GATEWAY_ERROR


class ModelGateway:
    def __init__(self, llm: LLM, filters: Sequence[OutputFilter] | None = None):
        self.llm = llm
        self.filters = tuple(DEFAULT_FILTERS if filters is None else filters)

    def _apply_filters(self, text: str) -> str:
        for f in self.filters:
            text = f(text)
        return text

    async def complete_result(self, prompt: str, model_id: str, timeout: float | None = None) -> Completion:
        try:
            raw = await self.llm.generate(prompt, model_id, timeout=timeout)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # ValueError covers undecodable JSON bodies as well as missing or mistyped fields.
            logger.warning("Error calling model %s: %s", model_id, e)
            return Completion(ok=False, text=GATEWAY_ERROR, error=str(e) or e.__class__.__name__)
        if not isinstance(raw, str):
            logger.warning("Model %s returned %s instead of text", model_id, type(raw).__name__)
            return Completion(ok=False, text=GATEWAY_ERROR, error="non-text completion")
        return Completion(ok=True, text=self._apply_filters(raw))

    async def complete(self, prompt: str, model_id: str, timeout: float | None = None) -> str:
        return (await self.complete_result(prompt, model_id, timeout=timeout)).text

    async def list_models(self) -> list[str]:
        return await self.llm.list_models()
