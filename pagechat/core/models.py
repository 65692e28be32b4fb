from pydantic import BaseModel, Field
from typing import Any, Literal

class PageContent(BaseModel):
    """Readable text of one page view, as handed over by the content provider."""
    url: str | None = None
    title: str | None = None
    text: str = ""

class Chunk(BaseModel):
    index: int
    text: str
    start_char: int
    end_char: int

class Completion(BaseModel):
    ok: bool
    text: str
    error: str | None = None

class ChunkSummary(BaseModel):
    index: int
    status: Literal["ok", "failed", "empty"]
    text: str = ""

class SummaryResult(BaseModel):
    summary: str
    model: str
    chunks: list[ChunkSummary] = Field(default_factory=list)
    combined: bool = False

    @property
    def partials(self) -> list[str]:
        return [c.text for c in self.chunks if c.status == "ok"]

    @property
    def failed_chunks(self) -> list[int]:
        return [c.index for c in self.chunks if c.status == "failed"]

class ChatTurn(BaseModel):
    question: str
    answer: str

class PreferenceChange(BaseModel):
    namespace: str
    key: str
    old_value: Any = None
    new_value: Any = None
