"""Exception hierarchy for the scraper.

Only two failure scopes ever surface as exceptions: setup failures, which end
the run, and per-document conversion failures, which the conversion loop
catches. Link, download, and page failures are logged where they happen.
"""


class ScraperError(RuntimeError):
    """Base exception for scraper failures."""


class SetupError(ScraperError):
    """Raised when the run cannot start or continue (input, config, output dirs)."""


class ExtractionError(ScraperError):
    """Raised when a single PDF cannot be converted to text."""
