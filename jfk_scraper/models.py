"""Data models for the scraper."""

from dataclasses import dataclass

# An absolute URL pointing at a downloadable document.
DocumentLink = str


@dataclass(frozen=True)
class DownloadTask:
    url: DocumentLink
    dest_path: str


@dataclass
class DownloadSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    bytes_written: int = 0


@dataclass(frozen=True)
class ExtractionResult:
    pdf_path: str
    output_path: str
    page_count: int
    text_pages: int
    ocr_pages: int
    char_count: int
    method: str  # direct, ocr


@dataclass
class ConversionSummary:
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    ocr_documents: int = 0
