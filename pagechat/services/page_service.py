"""Page views and the summarize-then-chat pipeline behind each one.

A page view starts when a tab lands on a new URL (fragment changes do not
count) and ends when the next one for the same tab starts. Work still running
for a replaced view is left to finish; its results are simply not published.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Literal
from urllib.parse import urldefrag

from pagechat.core.models import PageContent, SummaryResult
from pagechat.services.chat_service import ChatSession
from pagechat.services.extract_service import ContentUnavailableError, get_page_content
from pagechat.services.gateway_service import ModelGateway
from pagechat.services.model_service import NO_MODELS_MESSAGE, ModelSelection
from pagechat.services.summarize_service import summarize

logger = logging.getLogger(__name__)

PageStatus = Literal["loading", "ready", "content_unavailable", "no_model"]


def normalize_url(url: str | None) -> str:
    # hash changes don't reload the page content
    return urldefrag(url or "")[0]


class PageView:
    def __init__(self, tab_id: int, url: str | None = None):
        self.tab_id = tab_id
        self.url = url
        self.title: str | None = None
        self.status: PageStatus = "loading"
        self.message: str | None = None
        self.content: PageContent | None = None
        self.result: SummaryResult | None = None
        self.chat: ChatSession | None = None
        self.started_at = datetime.now(timezone.utc)

    @property
    def chat_enabled(self) -> bool:
        return self.status == "ready" and self.chat is not None

    def to_dict(self) -> dict:
        result = self.result
        return {
            "tab_id": self.tab_id,
            "url": self.url,
            "title": self.title,
            "status": self.status,
            # the summary slot always has something to show
            "summary": result.summary if result else (self.message or ""),
            "model": result.model if result else None,
            "chat_enabled": self.chat_enabled,
            "chunks": len(result.chunks) if result else 0,
            "failed_chunks": result.failed_chunks if result else [],
        }


class PageRegistry:
    def __init__(self):
        self._views: dict[int, PageView] = {}
        self._urls: dict[int, str] = {}

    def navigate(self, tab_id: int, url: str) -> bool:
        """Record a URL change for a tab; True when it amounts to a new page."""
        new_url = normalize_url(url)
        if self._urls.get(tab_id) == new_url:
            return False
        logger.info("URL changed in tab %s: %s", tab_id, new_url)
        self._urls[tab_id] = new_url
        return True

    def open(self, tab_id: int, url: str | None = None) -> PageView:
        if url:
            self._urls[tab_id] = normalize_url(url)
        view = PageView(tab_id, url)
        self._views[tab_id] = view
        return view

    def current(self, tab_id: int) -> PageView | None:
        return self._views.get(tab_id)

    def is_current(self, view: PageView) -> bool:
        return self._views.get(view.tab_id) is view

    def close(self, tab_id: int) -> None:
        self._views.pop(tab_id, None)
        self._urls.pop(tab_id, None)


async def run_page_view(
    registry: PageRegistry,
    view: PageView,
    selection: ModelSelection,
    gateway: ModelGateway | None = None,
    text: str | None = None,
    title: str | None = None,
) -> PageView:
    if gateway is None:
        from pagechat.services.llm_factory import get_gateway
        gateway = get_gateway()

    # 1) page content
    try:
        page = await asyncio.to_thread(get_page_content, view.url, text, title)
    except ContentUnavailableError as e:
        view.status = "content_unavailable"
        view.message = str(e)
        return view
    view.content = page
    view.title = page.title
    logger.info("pageText length: %d", len(page.text))

    # 2) the model is read once, by value, for the whole run
    model_id = selection.get()
    if not model_id:
        view.status = "no_model"
        view.message = NO_MODELS_MESSAGE
        return view

    # 3) summary
    result = await summarize(page.text, model_id, gateway=gateway)
    if not registry.is_current(view):
        logger.info("Discarding summary for replaced page view in tab %s", view.tab_id)
        return view

    view.result = result
    view.chat = ChatSession(result.summary, page, gateway=gateway)
    view.status = "ready"
    return view


_registry: PageRegistry | None = None

def get_registry() -> PageRegistry:
    global _registry
    if _registry is None:
        _registry = PageRegistry()
    return _registry
