"""Map-reduce summarization of one page's text.

Map: every chunk gets its own summary call, one after another (never in
parallel, a local model server only handles so much). Reduce: when more than
one partial summary came back, a final call merges them.
"""

from __future__ import annotations

import logging
from typing import Callable

from pagechat.core.config import settings
from pagechat.core.models import ChunkSummary, SummaryResult
from pagechat.services.chunk_service import chunk_text
from pagechat.services.gateway_service import ModelGateway

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "Could not generate a summary."

CHUNK_PLACEHOLDER = "{{CHUNK}}"
SUMMARIES_PLACEHOLDER = "{{SUMMARIES}}"
SUMMARY_SEPARATOR = "\n\n---\n\n"

SUMMARY_PROMPT_TEMPLATE = """You are an expert summarizer. Your task is to analyze a chunk of text from a webpage and extract only the most critical information.
Ignore navigational elements like menus, ads, headers, footers, and sidebars.
Ignore small thumbnail sections at the bottom.
If the given text contains such low information content, ignore it.
Focus on the main content.

Here is the text chunk:
---
{{CHUNK}}
---

Your summary of this chunk:"""

COMBINE_PROMPT_TEMPLATE = """You are a summarization bot. Only provide the summary and nothing else. Do not provide any conversational text, explanations, or prefaces.
The following are several summaries from different parts of the same document.
1. Combine them into a single, cohesive, and well-structured summary.
2. Remove any redundancies.
3. Summarize the key facts, findings, and conclusions as a series of concise list items (where appropriate) in markdown format.
4. Only output the direct summary, nothing else. Do not include explanations, meta commentary, or repeat my instructions.

---
{{SUMMARIES}}
---

Final cohesive summary:"""

ProgressCallback = Callable[[int, int], None]


def build_chunk_prompt(chunk: str) -> str:
    return SUMMARY_PROMPT_TEMPLATE.replace(CHUNK_PLACEHOLDER, chunk, 1)


def build_combine_prompt(partials: list[str]) -> str:
    return COMBINE_PROMPT_TEMPLATE.replace(SUMMARIES_PLACEHOLDER, SUMMARY_SEPARATOR.join(partials), 1)


async def summarize(
    text: str,
    model_id: str,
    gateway: ModelGateway | None = None,
    max_chunk_length: int | None = None,
    on_progress: ProgressCallback | None = None,
) -> SummaryResult:
    if gateway is None:
        from pagechat.services.llm_factory import get_gateway
        gateway = get_gateway()

    chunks = chunk_text(text, max_chunk_length or settings.MAX_CHUNK_LENGTH)
    results: list[ChunkSummary] = []

    # 1) map: one call per chunk, in order
    for c in chunks:
        logger.info("Summarizing chunk %d of %d...", c.index + 1, len(chunks))
        if on_progress is not None:
            on_progress(c.index, len(chunks))
        out = await gateway.complete_result(build_chunk_prompt(c.text), model_id)
        if not out.ok:
            # Failed chunks are dropped from the summary but stay visible in the result.
            results.append(ChunkSummary(index=c.index, status="failed"))
        elif not out.text.strip():
            results.append(ChunkSummary(index=c.index, status="empty"))
        else:
            results.append(ChunkSummary(index=c.index, status="ok", text=out.text))

    partials = [r.text for r in results if r.status == "ok"]
    if len(results) != len(partials):
        logger.warning("%d of %d chunks produced no summary", len(results) - len(partials), len(results))

    # 2) nothing usable
    if not partials:
        return SummaryResult(summary=SUMMARY_UNAVAILABLE, model=model_id, chunks=results)

    # 3) single chunk: its summary is the final one, verbatim
    if len(partials) == 1:
        return SummaryResult(summary=partials[0], model=model_id, chunks=results)

    # 4) reduce
    logger.info("Combining %d chunk summaries into a final report...", len(partials))
    combined = await gateway.complete(build_combine_prompt(partials), model_id)
    return SummaryResult(
        summary=combined or SUMMARY_UNAVAILABLE,
        model=model_id,
        chunks=results,
        combined=True,
    )
