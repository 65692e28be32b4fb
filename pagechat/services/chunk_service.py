from pagechat.core.config import settings
from pagechat.core.models import Chunk

def chunk_text(text: str, max_len: int | None = None) -> list[Chunk]:
    """Split `text` into consecutive, non-overlapping slices of at most `max_len` chars.

    Joining the chunk texts in index order gives back `text` exactly. Empty text
    yields no chunks; callers treat that as "nothing to summarize".
    """
    if max_len is None:
        max_len = settings.MAX_CHUNK_LENGTH
    if max_len <= 0:
        raise ValueError("max_len must be positive")

    chunks: list[Chunk] = []
    for i in range(0, len(text or ""), max_len):
        part = text[i:i + max_len]
        chunks.append(Chunk(index=len(chunks), text=part, start_char=i, end_char=i + len(part)))
    return chunks
