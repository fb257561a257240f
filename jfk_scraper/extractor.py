"""Text extraction from PDFs: PyMuPDF text layer first, tesseract OCR fallback.

OCR only runs for documents where no page has an extractable text layer. Each
text file is built in a temporary sibling and moved into place once the whole
document is done, so a failed conversion never leaves a text file behind.
"""

import logging
import os
import subprocess
import tempfile
from typing import Iterator, TextIO, Tuple

import fitz  # PyMuPDF

from .errors import ExtractionError, SetupError
from .models import ConversionSummary, ExtractionResult

logger = logging.getLogger("jfk_scraper")

PAGE_HEADER = "--- Page {page} ---\n"
OCR_PAGE_HEADER = "--- Page {page} (OCR) ---\n"

# Errors PyMuPDF raises for damaged documents and pages
_PDF_ERRORS = (RuntimeError, ValueError, OSError)
_OCR_ERRORS = _PDF_ERRORS + (subprocess.SubprocessError,)


class TextExtractor:
    OCR_TIMEOUT = 120

    def __init__(self, ocr_dpi: int = 300, tesseract_lang: str = "eng"):
        self.ocr_dpi = ocr_dpi
        self.tesseract_lang = tesseract_lang
        self._has_tesseract = self._check_cmd("tesseract")
        if not self._has_tesseract:
            logger.warning("tesseract not found, OCR fallback disabled")

    @staticmethod
    def _check_cmd(cmd: str) -> bool:
        try:
            subprocess.run([cmd, "--version"], capture_output=True, timeout=5)
            return True
        except (OSError, subprocess.TimeoutExpired):
            return False

    def extract(self, pdf_path: str, output_path: str) -> ExtractionResult:
        """Convert pdf_path to text at output_path.

        Raises ExtractionError when the PDF cannot be opened, the output cannot
        be written, or OCR is needed but tesseract is unavailable.
        """
        try:
            doc = fitz.open(pdf_path)
        except _PDF_ERRORS as e:
            raise ExtractionError(f"error opening PDF: {e}") from e

        with doc:
            out_dir = os.path.dirname(output_path) or "."
            try:
                os.makedirs(out_dir, exist_ok=True)
                tmp = tempfile.NamedTemporaryFile(
                    "w", encoding="utf-8", dir=out_dir, suffix=".part", delete=False,
                )
            except OSError as e:
                raise ExtractionError(f"error creating text file: {e}") from e

            try:
                with tmp:
                    result = self._write_text(doc, pdf_path, output_path, tmp)
                os.replace(tmp.name, output_path)
            except OSError as e:
                _discard(tmp.name)
                raise ExtractionError(f"error writing text file: {e}") from e
            except Exception:
                _discard(tmp.name)
                raise

        return result

    def _write_text(self, doc, pdf_path: str, output_path: str,
                    out: TextIO) -> ExtractionResult:
        page_count = doc.page_count
        text_pages = 0
        chars = 0

        for page_num, text in self._direct_pages(doc, pdf_path):
            if text.strip():
                text_pages += 1
                chars += out.write(PAGE_HEADER.format(page=page_num) + text + "\n\n")

        if text_pages:
            return ExtractionResult(pdf_path, output_path, page_count, text_pages, 0,
                                    chars, "direct")

        if not self._has_tesseract:
            raise ExtractionError("no text layer found and tesseract is not installed")

        logger.info(f"No text found in PDF, attempting OCR: {pdf_path}")
        out.seek(0)
        out.truncate()
        chars = 0
        ocr_pages = 0

        for index in range(page_count):
            page_num = index + 1
            try:
                text = self._ocr_page(doc.load_page(index))
            except _OCR_ERRORS as e:
                logger.warning(f"Error performing OCR on page {page_num} of {pdf_path}: {e}")
                continue
            ocr_pages += 1
            chars += out.write(OCR_PAGE_HEADER.format(page=page_num) + text + "\n\n")

        return ExtractionResult(pdf_path, output_path, page_count, ocr_pages, ocr_pages,
                                chars, "ocr")

    def _direct_pages(self, doc, pdf_path: str) -> Iterator[Tuple[int, str]]:
        """Yield (page_number, text) for every page with a readable text layer."""
        for index in range(doc.page_count):
            try:
                text = doc.load_page(index).get_text()
            except _PDF_ERRORS as e:
                logger.debug(f"Skipping unreadable page {index + 1} of {pdf_path}: {e}")
                continue
            yield index + 1, text

    def _ocr_page(self, page) -> str:
        """Rasterize a page to PNG and OCR it."""
        pix = page.get_pixmap(dpi=self.ocr_dpi)
        return self._ocr_image(pix.tobytes("png"))

    def _ocr_image(self, png: bytes) -> str:
        result = subprocess.run(
            ["tesseract", "stdin", "stdout", "-l", self.tesseract_lang],
            input=png, capture_output=True, timeout=self.OCR_TIMEOUT, check=True,
        )
        return result.stdout.decode("utf-8", errors="replace").strip()


def text_path_for(pdf_name: str, text_dir: str) -> str:
    stem = pdf_name[:-len(".pdf")] if pdf_name.endswith(".pdf") else pdf_name
    return os.path.join(text_dir, stem + ".txt")


def convert_directory(pdf_dir: str, text_dir: str,
                      extractor: TextExtractor) -> ConversionSummary:
    """Convert every PDF in pdf_dir that has no text file in text_dir yet."""
    try:
        names = sorted(os.listdir(pdf_dir))
    except OSError as e:
        raise SetupError(f"Error reading output directory {pdf_dir}: {e}") from e

    try:
        os.makedirs(text_dir, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Error creating text output directory {text_dir}: {e}") from e

    summary = ConversionSummary()
    for name in names:
        pdf_path = os.path.join(pdf_dir, name)
        if not name.endswith(".pdf") or not os.path.isfile(pdf_path):
            continue

        text_path = text_path_for(name, text_dir)
        if os.path.exists(text_path):
            summary.skipped += 1
            continue

        logger.info(f"Converting {name} to text...")
        try:
            result = extractor.extract(pdf_path, text_path)
        except ExtractionError as e:
            logger.error(f"Error converting {name}: {e}")
            summary.failed += 1
            continue

        summary.converted += 1
        if result.method == "ocr":
            summary.ocr_documents += 1
        logger.info(
            f"Converted {name}: {result.page_count} pages, "
            f"{result.char_count:,} chars, {result.ocr_pages} OCR pages"
        )

    return summary


def _discard(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial file {path}: {e}")
