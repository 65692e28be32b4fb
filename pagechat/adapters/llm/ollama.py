import logging

import httpx

from pagechat.core.config import settings
from pagechat.adapters.llm.base import LLM

logger = logging.getLogger(__name__)


class OllamaLLM(LLM):
    """Ollama HTTP backend.

    `transport` is handed to every httpx client this adapter opens, so tests can
    plug in an `httpx.MockTransport` instead of a running Ollama.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.OLLAMA_TIMEOUT
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def generate(self, prompt: str, model: str, timeout: float | None = None) -> str:
        async with self._client(timeout if timeout is not None else self.timeout) as client:
            r = await client.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": model,
                    "prompt": prompt,
                    "stream": False,
                },
            )
            r.raise_for_status()
            data = r.json()
        if not isinstance(data, dict) or "response" not in data:
            raise ValueError("Ollama response is missing the 'response' field")
        text = data.get("response")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise ValueError(f"Ollama response field is {type(text).__name__}, expected str")
        return text

    async def list_models(self) -> list[str]:
        """Names of the locally installed models, sorted.

        Ollama has exposed the listing under two paths:
        - documented: GET /api/tags -> {"models": [{"name": ...}, ...]}
        - older builds: GET /api/list
        Entries carry `name` or `model` depending on version; prefer `name`.
        """
        endpoints = [f"{self.base_url}/api/tags", f"{self.base_url}/api/list"]
        async with self._client(settings.OLLAMA_LIST_TIMEOUT) as client:
            for url in endpoints:
                try:
                    r = await client.get(url)
                    if r.status_code != 200:
                        continue
                    data = r.json()
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning("Model list fetch failed for %s: %s", url, e)
                    continue
                models = data.get("models") if isinstance(data, dict) else None
                if not isinstance(models, list):
                    continue
                names = []
                for m in models:
                    if not isinstance(m, dict):
                        continue
                    name = m.get("name") or m.get("model")
                    if name:
                        names.append(str(name))
                if names:
                    return sorted(set(names))
        return []
