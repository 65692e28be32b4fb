import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from pagechat.core.config import settings
from pagechat.core.logging import setup_logging
from pagechat.services.llm_factory import get_gateway
from pagechat.services.model_service import get_selection

from pagechat.api.routes_summary import router as summary_router
from pagechat.api.routes_chat import router as chat_router
from pagechat.api.routes_models import router as models_router
from pagechat.api.routes_pages import router as pages_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    selection = get_selection()
    try:
        await selection.initialize(get_gateway())
    except Exception:
        # Don't block startup; /health and /models expose the service state.
        logger.exception("Model selection init failed")

    # Pick up model changes made by other instances sharing the preference store.
    watcher = asyncio.create_task(selection.store.watch(settings.PREFS_POLL_INTERVAL))
    try:
        yield
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


def create_app():
    setup_logging()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    # Allow browser-based UIs (side panel / Streamlit) to call the API from localhost
    from fastapi.middleware.cors import CORSMiddleware
    origins = [o.strip() for o in (settings.CORS_ORIGINS or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(pages_router)
    app.include_router(summary_router)
    app.include_router(chat_router)
    app.include_router(models_router)

    @app.get("/health")
    async def health():
        checks = {"ollama": False}
        try:
            async with httpx.AsyncClient(timeout=3.0) as c:
                r = await c.get(f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/tags")
                checks["ollama"] = r.status_code == 200
        except httpx.HTTPError:
            pass

        ok = all(checks.values())
        return {
            "ok": ok,
            "app": settings.APP_NAME,
            "env": settings.ENV,
            "model": get_selection().get(),
            "deps": checks,
        }

    return app

app = create_app()
