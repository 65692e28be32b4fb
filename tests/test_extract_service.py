import httpx
import pytest

from pagechat.services.extract_service import (
    ContentUnavailableError,
    extract_readable_text,
    fetch_page,
    get_page_content,
)

HTML = """
<html><head><title> Zebra facts </title><style>p{}</style></head>
<body>
  <nav>Home | About</nav>
  <article><h1>Zebras</h1><p>Zebras   sleep standing.</p><script>track()</script></article>
  <footer>(c) 2024</footer>
</body></html>
"""


def test_extract_drops_markup_and_boilerplate():
    title, text = extract_readable_text(HTML)

    assert title == "Zebra facts"
    assert text == "Zebras\nZebras   sleep standing."


def test_fetch_page_returns_content():
    transport = httpx.MockTransport(lambda r: httpx.Response(200, html=HTML))

    page = fetch_page("https://example.org/zebras", transport=transport)

    assert page.title == "Zebra facts"
    assert "sleep standing" in page.text


def test_fetch_failure_is_content_unavailable():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(ContentUnavailableError):
        fetch_page("https://example.org", transport=httpx.MockTransport(handler))


def test_page_without_text_is_content_unavailable():
    transport = httpx.MockTransport(lambda r: httpx.Response(200, html="<html><body><script>x()</script></body></html>"))

    with pytest.raises(ContentUnavailableError):
        fetch_page("https://example.org", transport=transport)


def test_supplied_text_is_used_as_is():
    page = get_page_content(url="https://example.org", text="  raw  ", title="T")

    assert (page.url, page.title, page.text) == ("https://example.org", "T", "  raw  ")
