"""HTTP download engine: existing-file filter plus a bounded concurrent scheduler."""

import logging
import os
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Tuple

import httpx

from .config import DownloadConfig
from .models import DocumentLink, DownloadSummary, DownloadTask

logger = logging.getLogger("jfk_scraper")


def filename_from_url(url: str) -> str:
    # Percent-escapes and query strings are kept as-is.
    return url.split("/")[-1]


def plan_downloads(urls: Iterable[DocumentLink],
                   pdf_dir: str) -> Tuple[List[DownloadTask], List[DocumentLink]]:
    """Split urls into tasks to fetch and urls whose file already exists."""
    tasks = []
    skipped = []
    for url in urls:
        dest_path = os.path.join(pdf_dir, filename_from_url(url))
        if os.path.exists(dest_path):
            logger.info(f"File {dest_path} already exists, skipping download")
            skipped.append(url)
        else:
            tasks.append(DownloadTask(url=url, dest_path=dest_path))
    return tasks, skipped


class Downloader:
    CHUNK_SIZE = 65536

    def __init__(self, config: DownloadConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()
        # Caps in-flight requests no matter how many threads call download_file
        self._slots = threading.BoundedSemaphore(config.concurrency)

    @property
    def client(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    timeout=httpx.Timeout(self.config.timeout, connect=30),
                    follow_redirects=True,
                    headers={"User-Agent": self.config.user_agent},
                    limits=httpx.Limits(max_connections=self.config.concurrency),
                    transport=self._transport,
                )
            return self._client

    def close(self):
        if self._client and not self._client.is_closed:
            self._client.close()

    def download_file(self, task: DownloadTask) -> Optional[int]:
        """Fetch one URL into task.dest_path.

        Returns the number of bytes written, or None when the download was
        abandoned. Failures are logged, never raised.
        """
        with self._slots:
            logger.info(f"Downloading {task.url}")
            try:
                return self._stream_download(task)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                # ValueError covers IDNA host errors raised while building the request
                logger.error(f"Error downloading {task.url}: {e}")
                return None

    def _stream_download(self, task: DownloadTask) -> Optional[int]:
        size = 0
        part_path = None

        with self.client.stream("GET", task.url) as resp:
            if resp.status_code != httpx.codes.OK:
                logger.error(f"Error: received status code {resp.status_code} for {task.url}")
                return None

            try:
                # One temp file per task; colliding filenames end last-writer-wins
                with tempfile.NamedTemporaryFile(
                    "wb", dir=os.path.dirname(task.dest_path) or ".",
                    prefix=os.path.basename(task.dest_path) + ".", suffix=".part",
                    delete=False,
                ) as f:
                    part_path = f.name
                    for chunk in resp.iter_bytes(chunk_size=self.CHUNK_SIZE):
                        f.write(chunk)
                        size += len(chunk)
                os.replace(part_path, task.dest_path)
            except (OSError, httpx.HTTPError) as e:
                logger.error(f"Error saving file {task.dest_path}: {e}")
                if part_path:
                    _discard_partial(part_path)
                return None

        logger.info(f"Saved {task.dest_path} ({size:,} bytes)")
        return size

    def download_all(self, tasks: List[DownloadTask]) -> DownloadSummary:
        """Download every task concurrently and return once all have finished."""
        summary = DownloadSummary(attempted=len(tasks))
        if not tasks:
            return summary

        with ThreadPoolExecutor(max_workers=self.config.concurrency,
                                thread_name_prefix="download") as pool:
            results = list(pool.map(self.download_file, tasks))

        for size in results:
            if size is None:
                summary.failed += 1
            else:
                summary.succeeded += 1
                summary.bytes_written += size
        return summary


def _discard_partial(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial file {path}: {e}")
