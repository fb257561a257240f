import logging
import sys
from pathlib import Path

import fitz
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jfk_scraper.extractor import TextExtractor  # noqa: E402


def build_pdf(pages):
    """Return PDF bytes with one page per entry; None makes an image-only (blank) page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf(tmp_path):
    def _make(name, pages, directory=None):
        path = Path(directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_pdf(pages))
        return path

    return _make


@pytest.fixture
def fake_tesseract(monkeypatch):
    """Pretend tesseract is installed; OCR output comes from calls.responses."""

    class Calls:
        count = 0
        responses = []

    def ocr_image(self, png):
        assert png.startswith(b"\x89PNG")
        Calls.count += 1
        if Calls.responses:
            result = Calls.responses.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return "scanned text"

    monkeypatch.setattr(TextExtractor, "_check_cmd", staticmethod(lambda cmd: True))
    monkeypatch.setattr(TextExtractor, "_ocr_image", ocr_image)
    return Calls


@pytest.fixture(autouse=True)
def _reset_scraper_logger():
    yield
    logger = logging.getLogger("jfk_scraper")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
