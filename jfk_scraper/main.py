"""CLI entry point and orchestrator."""

import argparse
import logging
import os
import sys

from .config import AppConfig, apply_overrides, load_config
from .downloader import Downloader, plan_downloads
from .errors import SetupError
from .extractor import TextExtractor, convert_directory
from .links import extract_pdf_links, load_html, validate_base_url
from .logger import setup_logger
from .models import ConversionSummary, DownloadSummary

logger = logging.getLogger("jfk_scraper")


def run_downloads(config: AppConfig) -> dict:
    """Discover PDF links in the HTML file and download the missing ones."""
    html = load_html(config.html_file)
    base_url = validate_base_url(config.base_url)

    links = extract_pdf_links(html, base_url)
    logger.info(f"Found {len(links)} PDF links")

    try:
        os.makedirs(config.pdf_dir, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Error creating PDF output directory {config.pdf_dir}: {e}") from e

    tasks, skipped = plan_downloads(links, config.pdf_dir)
    logger.info(f"Downloading {len(tasks)} new PDFs")

    downloader = Downloader(config.download)
    try:
        summary = downloader.download_all(tasks)
    finally:
        downloader.close()

    logger.info("All downloads completed.")
    return {"found": len(links), "skipped": len(skipped), "downloads": summary}


def run_conversion(config: AppConfig) -> ConversionSummary:
    """Convert every downloaded PDF without a text file yet."""
    logger.info("Converting PDFs to text...")
    extractor = TextExtractor(
        ocr_dpi=config.extraction.ocr_dpi,
        tesseract_lang=config.extraction.tesseract_lang,
    )
    summary = convert_directory(config.pdf_dir, config.text_dir, extractor)
    logger.info("Text conversion completed.")
    return summary


def show_stats(found: int = None, skipped: int = None, downloads: DownloadSummary = None,
               conversion: ConversionSummary = None):
    """Log a run summary."""
    logger.info("=" * 60)
    if found is not None:
        logger.info(f"Links found:        {found}")
        logger.info(f"Already downloaded: {skipped}")
    if downloads is not None:
        logger.info(
            f"Downloads:          {downloads.succeeded}/{downloads.attempted} ok, "
            f"{downloads.failed} failed, {_format_bytes(downloads.bytes_written)}"
        )
    if conversion is not None:
        logger.info(
            f"Conversions:        {conversion.converted} converted "
            f"({conversion.ocr_documents} via OCR), {conversion.skipped} skipped, "
            f"{conversion.failed} failed"
        )
    logger.info("=" * 60)


def _format_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    elif n < 1024 ** 2:
        return f"{n / 1024:.1f} KB"
    elif n < 1024 ** 3:
        return f"{n / 1024 ** 2:.1f} MB"
    else:
        return f"{n / 1024 ** 3:.2f} GB"


def build_parser() -> argparse.ArgumentParser:
    # Flag defaults are None so that only explicit flags override the config file.
    parser = argparse.ArgumentParser(description="JFK Files PDF Downloader")
    parser.add_argument("--file", dest="html_file", default=None,
                        help="Path to the local HTML file to parse "
                             "(default: jfk-release-2025.html)")
    parser.add_argument("--base", dest="base_url", default=None,
                        help="Base URL for resolving relative links")
    parser.add_argument("--out", dest="pdf_dir", default=None,
                        help="Output directory for downloaded files (default: pdfs)")
    parser.add_argument("--textout", dest="text_dir", default=None,
                        help="Output directory for converted text files (default: text)")
    parser.add_argument("-c", "--concurrency", type=int, default=None,
                        help="Number of concurrent downloads (default: 5)")
    parser.add_argument("--ua", "--user-agent", dest="user_agent", default=None,
                        help="User Agent string for HTTP requests")
    parser.add_argument("--text", dest="convert_text", action="store_true", default=None,
                        help="Convert PDFs to text files")
    parser.add_argument("--extract-only", action="store_true",
                        help="Skip downloading; only convert PDFs already in the output directory")
    parser.add_argument("--config", type=str, default=None,
                        help="Optional YAML config file")
    parser.add_argument("--log-dir", dest="log_dir", default=None,
                        help="Directory for the rotating log file (default: logs)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(
            load_config(args.config),
            html_file=args.html_file,
            base_url=args.base_url,
            pdf_dir=args.pdf_dir,
            text_dir=args.text_dir,
            log_dir=args.log_dir,
            concurrency=args.concurrency,
            user_agent=args.user_agent,
            convert_text=True if args.extract_only else args.convert_text,
        ).validate()
    except SetupError as e:
        print(e, file=sys.stderr)
        return 1

    try:
        setup_logger(config.log_dir, logging.DEBUG if args.verbose else logging.INFO,
                     log_file=config.log_file)
    except OSError as e:
        print(f"Error creating log directory {config.log_dir}: {e}", file=sys.stderr)
        return 1

    stats = {}
    try:
        if not args.extract_only:
            stats.update(run_downloads(config))
        if config.extraction.enabled:
            stats["conversion"] = run_conversion(config)
    except SetupError as e:
        logger.error(str(e))
        return 1

    show_stats(**stats)
    logger.info("All operations completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
