"""PDF link discovery in a local HTML page."""

import logging
from typing import List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .errors import SetupError
from .models import DocumentLink

logger = logging.getLogger("jfk_scraper")


def load_html(path: str) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise SetupError(f"Error opening file {path}: {e}") from e


def validate_base_url(base_url: str) -> str:
    try:
        parsed = urlparse(base_url)
    except ValueError as e:
        raise SetupError(f"Error parsing base URL {base_url}: {e}") from e
    if not parsed.scheme or not parsed.netloc:
        raise SetupError(f"Error parsing base URL {base_url}: missing scheme or host")
    return base_url


def extract_pdf_links(html: str, base_url: str, extension: str = ".pdf") -> List[DocumentLink]:
    """Return absolute URLs of anchors whose href ends with extension.

    Links come back in document order and are not deduplicated. Relative hrefs
    are resolved against base_url following RFC 3986.
    """
    soup = BeautifulSoup(html, "html.parser")
    links = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if not href.endswith(extension):
            continue
        try:
            links.append(urljoin(base_url, href))
        except ValueError as e:
            logger.warning(f"Error parsing URL {href}: {e}")

    return links
