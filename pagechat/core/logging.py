import logging
from pagechat.core.config import settings

def setup_logging():
    level = logging.DEBUG if settings.ENV != "prod" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx logs every request at INFO; the gateway already reports failures.
    logging.getLogger("httpx").setLevel(logging.WARNING)
