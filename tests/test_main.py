import functools

import httpx
import pytest

from jfk_scraper import main as cli
from jfk_scraper.downloader import Downloader
from jfk_scraper.extractor import TextExtractor

from .conftest import build_pdf

HTML = """
<html><body>
  <a href="doc1.pdf">Document 1</a>
  <a href="https://other.org/doc2.pdf">Document 2</a>
  <a href="index.html">Index</a>
</body></html>
"""


@pytest.fixture
def site(monkeypatch):
    """Serve doc1.pdf with a text layer and doc2.pdf as an image-only scan."""
    requests = []
    pages = {
        "https://archives.gov/x/doc1.pdf": build_pdf(["Memorandum for the record"]),
        "https://other.org/doc2.pdf": build_pdf([None]),
    }

    def handler(request):
        requests.append(str(request.url))
        body = pages.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(cli, "Downloader", functools.partial(Downloader, transport=transport))
    return requests


@pytest.fixture
def workdir(tmp_path):
    html = tmp_path / "release.html"
    html.write_text(HTML, encoding="utf-8")
    return tmp_path


def _argv(workdir, *extra):
    return [
        "--file", str(workdir / "release.html"),
        "--base", "https://archives.gov/x/",
        "--out", str(workdir / "pdfs"),
        "--textout", str(workdir / "text"),
        "--log-dir", str(workdir / "logs"),
        "-c", "2",
        *extra,
    ]


def test_end_to_end_download_and_convert(workdir, site, fake_tesseract):
    fake_tesseract.responses = ["Scanned cable"]

    assert cli.main(_argv(workdir, "--text")) == 0

    assert sorted(site) == ["https://archives.gov/x/doc1.pdf", "https://other.org/doc2.pdf"]
    assert (workdir / "pdfs" / "doc1.pdf").exists()
    assert (workdir / "pdfs" / "doc2.pdf").exists()

    doc1 = (workdir / "text" / "doc1.txt").read_text(encoding="utf-8")
    doc2 = (workdir / "text" / "doc2.txt").read_text(encoding="utf-8")
    assert "--- Page 1 ---\nMemorandum for the record" in doc1
    assert doc2 == "--- Page 1 (OCR) ---\nScanned cable\n\n"
    assert (workdir / "logs" / "jfk-scraper.log").exists()


def test_second_run_repeats_no_work(workdir, site, fake_tesseract, monkeypatch):
    assert cli.main(_argv(workdir, "--text")) == 0
    first_requests = list(site)

    def fail(*args, **kwargs):
        raise AssertionError("nothing should be reconverted")

    monkeypatch.setattr(TextExtractor, "extract", fail)
    assert cli.main(_argv(workdir, "--text")) == 0

    assert site == first_requests


def test_conversion_is_opt_in(workdir, site):
    assert cli.main(_argv(workdir)) == 0
    assert (workdir / "pdfs" / "doc1.pdf").exists()
    assert not (workdir / "text").exists()


def test_download_failures_do_not_change_exit_code(workdir, monkeypatch):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    monkeypatch.setattr(cli, "Downloader", functools.partial(Downloader, transport=transport))

    assert cli.main(_argv(workdir)) == 0
    assert list((workdir / "pdfs").iterdir()) == []


def test_extract_only_skips_html_and_downloads(workdir, fake_tesseract, make_pdf, monkeypatch):
    make_pdf("local.pdf", ["Already here"], directory=workdir / "pdfs")
    monkeypatch.setattr(cli, "Downloader", None)

    argv = _argv(workdir, "--extract-only")
    argv[1] = str(workdir / "missing.html")
    assert cli.main(argv) == 0

    assert (workdir / "text" / "local.txt").exists()


def test_missing_html_file_exits_nonzero(workdir, site):
    argv = _argv(workdir)
    argv[1] = str(workdir / "missing.html")
    assert cli.main(argv) == 1
    assert site == []


def test_bad_base_url_exits_nonzero(workdir, site):
    argv = _argv(workdir)
    argv[3] = "not-a-url"
    assert cli.main(argv) == 1


def test_zero_concurrency_exits_nonzero(workdir, site, capsys):
    assert cli.main(_argv(workdir, "-c", "0")) == 1
    assert "Concurrency" in capsys.readouterr().err


def test_unlistable_pdf_dir_for_conversion_exits_nonzero(workdir, fake_tesseract):
    argv = _argv(workdir, "--extract-only")
    assert cli.main(argv) == 1


def test_format_bytes():
    assert cli._format_bytes(512) == "512 B"
    assert cli._format_bytes(2048) == "2.0 KB"
    assert cli._format_bytes(5 * 1024 ** 2) == "5.0 MB"
    assert cli._format_bytes(3 * 1024 ** 3) == "3.00 GB"
