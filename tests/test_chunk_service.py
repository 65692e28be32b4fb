import math

import pytest

from pagechat.services.chunk_service import chunk_text


@pytest.mark.parametrize("length,max_len", [(1, 1), (9, 4), (25000, 10000), (10000, 10000), (10001, 10000), (37, 100)])
def test_chunks_rebuild_text_and_respect_limit(length, max_len):
    text = "".join(chr(ord("a") + (i * 7) % 26) for i in range(length))

    chunks = chunk_text(text, max_len)

    assert "".join(c.text for c in chunks) == text
    assert all(len(c.text) <= max_len for c in chunks)
    assert len(chunks) == math.ceil(length / max_len)
    assert [c.index for c in chunks] == list(range(len(chunks)))


def test_offsets_are_contiguous():
    text = "x" * 23
    chunks = chunk_text(text, 10)

    assert [(c.start_char, c.end_char) for c in chunks] == [(0, 10), (10, 20), (20, 23)]


def test_page_of_25000_chars_gives_three_chunks():
    chunks = chunk_text("p" * 25000, 10000)

    assert [len(c.text) for c in chunks] == [10000, 10000, 5000]


def test_empty_text_yields_no_chunks():
    assert chunk_text("", 10) == []


def test_default_limit_comes_from_settings(monkeypatch):
    from pagechat.core.config import settings

    monkeypatch.setattr(settings, "MAX_CHUNK_LENGTH", 4)
    assert [c.text for c in chunk_text("abcdefghij")] == ["abcd", "efgh", "ij"]


@pytest.mark.parametrize("max_len", [0, -5])
def test_non_positive_limit_is_rejected(max_len):
    with pytest.raises(ValueError):
        chunk_text("abc", max_len)
