"""YAML config loader with CLI overrides."""

import os
from dataclasses import dataclass, field, replace

import yaml

from .errors import SetupError

DEFAULT_HTML_FILE = "jfk-release-2025.html"
DEFAULT_BASE_URL = "https://www.archives.gov/research/jfk/release-2025"
DEFAULT_USER_AGENT = (
    "JFK-Files-Downloader/1.0 (Thank you President Trump for releasing these files!)"
)


@dataclass(frozen=True)
class DownloadConfig:
    concurrency: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = 120


@dataclass(frozen=True)
class ExtractionConfig:
    enabled: bool = False
    ocr_dpi: int = 300
    tesseract_lang: str = "eng"


@dataclass(frozen=True)
class AppConfig:
    html_file: str = DEFAULT_HTML_FILE
    base_url: str = DEFAULT_BASE_URL
    pdf_dir: str = "pdfs"
    text_dir: str = "text"
    log_dir: str = "logs"
    log_file: str = "jfk-scraper.log"
    download: DownloadConfig = field(default_factory=DownloadConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)

    def validate(self) -> "AppConfig":
        if self.download.concurrency < 1:
            raise SetupError(f"Concurrency must be at least 1, got {self.download.concurrency}")
        if self.extraction.ocr_dpi < 1:
            raise SetupError(f"OCR DPI must be at least 1, got {self.extraction.ocr_dpi}")
        return self


def _pick(cls, raw: dict) -> dict:
    return {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}


def load_config(config_path: str = None) -> AppConfig:
    """Build an AppConfig from defaults, optionally layered with a YAML file."""
    if config_path is None:
        return AppConfig()

    if not os.path.exists(config_path):
        raise SetupError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SetupError(f"Error reading config {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise SetupError(f"Config {config_path} must be a mapping, got {type(raw).__name__}")

    download = DownloadConfig(**_pick(DownloadConfig, raw.get("download") or {}))
    extraction = ExtractionConfig(**_pick(ExtractionConfig, raw.get("extraction") or {}))
    top = {k: v for k, v in _pick(AppConfig, raw).items() if k not in ("download", "extraction")}

    return AppConfig(download=download, extraction=extraction, **top)


def apply_overrides(config: AppConfig, *, html_file=None, base_url=None, pdf_dir=None,
                    text_dir=None, log_dir=None, concurrency=None, user_agent=None,
                    convert_text=None) -> AppConfig:
    """Return a copy of config with every non-None flag applied."""
    top = {
        "html_file": html_file,
        "base_url": base_url,
        "pdf_dir": pdf_dir,
        "text_dir": text_dir,
        "log_dir": log_dir,
    }
    dl = {"concurrency": concurrency, "user_agent": user_agent}
    ext = {"enabled": convert_text}

    download = replace(config.download, **{k: v for k, v in dl.items() if v is not None})
    extraction = replace(config.extraction, **{k: v for k, v in ext.items() if v is not None})
    return replace(
        config,
        download=download,
        extraction=extraction,
        **{k: v for k, v in top.items() if v is not None},
    )
