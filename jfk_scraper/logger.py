"""Console + rotating-file logging for the scraper."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "jfk_scraper"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _scraper_handlers(log_path: str):
    # Per-task failures are reported on stdout alongside progress lines
    yield logging.StreamHandler(sys.stdout)
    yield RotatingFileHandler(log_path, maxBytes=MAX_LOG_BYTES,
                              backupCount=LOG_BACKUPS, encoding="utf-8")


def setup_logger(log_dir: str = "logs", level: int = logging.INFO,
                 log_file: str = "jfk-scraper.log") -> logging.Logger:
    """Attach stdout and <log_dir>/<log_file> handlers once; later calls only adjust the level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        os.makedirs(log_dir, exist_ok=True)
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        for handler in _scraper_handlers(os.path.join(log_dir, log_file)):
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
