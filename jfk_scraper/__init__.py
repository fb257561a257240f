"""Download the JFK release PDFs linked from an archives.gov page and convert them to text."""

__version__ = "1.0.0"
