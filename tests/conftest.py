# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from orphan_import.logging.init import reset_logging
from orphan_import.models.photo_asset import FetchResponse
from orphan_import.models.upload import XLSX_MIME_TYPE, SpreadsheetUpload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

STANDARD_HEADERS = ["Orphan ID", "First Name", "Last Name", "Date of Birth", "Gender", "Photo"]


def make_workbook_bytes(rows: list[list[Any]]) -> bytes:
    """Write ``rows`` (header row first) to an in-memory .xlsx workbook."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Orphans", header=False, index=False)
    return buf.getvalue()


def make_upload(rows: list[list[Any]], name: str = "orphans.xlsx") -> SpreadsheetUpload:
    return SpreadsheetUpload(name=name, content_type=XLSX_MIME_TYPE, content=make_workbook_bytes(rows))


class FakeFetcher:
    """PhotoFetcher double with per-path call counters.

    ``responses`` maps a URL to either a FetchResponse or an exception
    instance to raise; unknown URLs answer 404.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.fetched: list[str] = []
        self.proxied: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.fetched) + len(self.proxied)

    def _answer(self, url: str) -> FetchResponse:
        answer = self.responses.get(url, FetchResponse(404, "text/html", b"not found"))
        if isinstance(answer, BaseException):
            raise answer
        return answer

    async def fetch(self, url: str) -> FetchResponse:
        self.fetched.append(url)
        return self._answer(url)

    async def fetch_via_proxy(self, original_url: str) -> FetchResponse:
        self.proxied.append(original_url)
        return self._answer(original_url)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("IMAGE_PROXY_URL", raising=False)
    monkeypatch.delenv("PHOTO_FETCH_TIMEOUT", raising=False)
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_file_size_mb: 5
logs_directory: logs
photo_fetch:
  enabled: true
  timeout_seconds: 2.5
  max_concurrency: 3
  proxy_url: https://api.example.org/api/orphans/proxy-image
header_synonyms:
  orphanId: [case number, beneficiary id]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def sample_sheet(temp_workdir: Path) -> Path:
    """Three data rows: one good, one without first name, one with a bad DOB."""
    rows = [
        STANDARD_HEADERS,
        ["ORF001", "Ahmed", "Hassan", "23/02/2000", "Male", None],
        ["ORF002", None, "Ali", "2001-05-04", "Female", None],
        ["ORF003", "Sara", "Omar", "2000/23/02", "Female", None],
    ]
    path = temp_workdir / "data" / "orphans.xlsx"
    path.write_bytes(make_workbook_bytes(rows))
    return path


@pytest.fixture()
def upload_factory():
    return make_upload


@pytest.fixture()
def workbook_factory():
    return make_workbook_bytes


@pytest.fixture()
def fetcher_factory():
    return FakeFetcher


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES
