import logging

import httpx
from bs4 import BeautifulSoup

from pagechat.core.config import settings
from pagechat.core.models import PageContent

logger = logging.getLogger(__name__)

# page chrome that never carries the article itself
_BOILERPLATE_TAGS = ["script", "style", "noscript", "template", "nav", "header", "footer", "aside"]


class ContentUnavailableError(RuntimeError):
    pass


def extract_readable_text(html: str) -> tuple[str | None, str]:
    """Return (title, text) with markup and boilerplate stripped, one line per block."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.string.strip() if soup.title and soup.title.string else None
    for tag in soup(_BOILERPLATE_TAGS):
        tag.extract()
    root = soup.body or soup
    text = "\n".join([line.strip() for line in root.get_text("\n").splitlines() if line.strip()])
    return title, text


def fetch_page(url: str, transport: httpx.BaseTransport | None = None) -> PageContent:
    # lightweight: fetch + strip tags. Pages that need a browser to render are out of reach here.
    try:
        with httpx.Client(timeout=settings.FETCH_TIMEOUT, follow_redirects=True, transport=transport) as client:
            r = client.get(url)
            r.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Fetching %s failed: %s", url, e)
        raise ContentUnavailableError("Could not retrieve page content.") from e

    title, text = extract_readable_text(r.text)
    if not text:
        raise ContentUnavailableError("Could not retrieve page content.")
    return PageContent(url=url, title=title or url, text=text)


def get_page_content(url: str | None = None, text: str | None = None, title: str | None = None) -> PageContent:
    """Content for one page view: caller-supplied text wins, otherwise the URL is fetched."""
    if text is not None:
        return PageContent(url=url, title=title, text=text)
    if not url:
        raise ContentUnavailableError("Could not retrieve page content.")
    page = fetch_page(url)
    if title:
        page.title = title
    return page
