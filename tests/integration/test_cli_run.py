from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from orphan_import.cli import main as cli_main
from orphan_import.models.photo_asset import FetchResponse
from orphan_import.services.pipeline import process_file

from conftest import PNG_BYTES, FakeFetcher, make_workbook_bytes

HEADERS = [
    "Orphan ID", "First Name", "Last Name", "Date of Birth", "Gender",
    "Father's Name", "Father Date of Death", "School Name", "Photo",
]


class _ContextFetcher(FakeFetcher):
    """FakeFetcher usable where the pipeline opens its own HttpPhotoFetcher."""

    def __init__(self, responses=None, **_kwargs):
        super().__init__(responses)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None


def _write_sheet(workdir: Path, rows, name: str = "orphans.xlsx") -> Path:
    path = workdir / "data" / name
    path.write_bytes(make_workbook_bytes(rows))
    return path


def test_run_success_writes_records(temp_workdir: Path, capsys):
    sheet = _write_sheet(temp_workdir, [
        HEADERS,
        ["ORF001", "Ahmed", "Hassan", "15/03/2015", "Male", "Hassan Ali", "2019-06-01", "Al Noor", None],
        ["ORF002", "Sara", "Omar", "2012-06-01", "Female", None, None, None, None],
    ])

    code = cli_main([str(sheet), "--output-dir", "out"])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY file=orphans.xlsx status=ok rows=2 parsed=2" in out
    assert "SUMMARY SUMMARY" not in out

    payload = json.loads((temp_workdir / "out" / "records.json").read_text(encoding="utf-8"))
    assert [r["orphanId"] for r in payload] == ["ORF001", "ORF002"]
    assert payload[0]["dob"] == "2015-03-15"
    assert payload[0]["familyInformation"]["fatherDateOfDeath"] == "2019-06-01"
    assert payload[0]["education"]["schoolName"] == "Al Noor"
    assert "familyInformation" not in payload[1]
    # エラーなし → エラーログは作られない
    assert list((temp_workdir / "logs").iterdir()) == []


def test_run_partial_failure(temp_workdir: Path, sample_sheet: Path, capsys):
    code = cli_main([str(sample_sheet)])

    out = capsys.readouterr().out
    assert code == 2
    assert "WARN Row 3: Skipped due to missing required fields" in out
    assert "ERROR Row 4: Invalid date format for date of birth: 2000/23/02" in out
    assert "status=failed rows=3 parsed=1 skipped=1 errored=1" in out

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    entries = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(e["row"], e["error_type"]) for e in entries] == [(4, "INVALID_DATE_OF_BIRTH")]


def test_run_downloads_photos(temp_workdir: Path, capsys):
    url = "https://cdn.example.org/photos/orf001.png"
    sheet = _write_sheet(temp_workdir, [
        HEADERS,
        ["ORF001", "Ahmed", "Hassan", "2015-03-15", "Male", None, None, None, url],
        ["ORF002", "Sara", "Omar", "2012-06-01", "Female", None, None, None, "N/A"],
    ])
    fetcher = _ContextFetcher({url: FetchResponse(200, "image/png", PNG_BYTES)})

    with patch("orphan_import.services.pipeline.HttpPhotoFetcher", return_value=fetcher) as mock_cls:
        code = cli_main([str(sheet), "--output-dir", "out"])

    out = capsys.readouterr().out
    assert code == 0
    mock_cls.assert_called_once_with(proxy_url=None)
    assert fetcher.fetched == [url]
    assert 'WARN Row 3: Skipping invalid photo value: "N/A"' in out
    assert (temp_workdir / "out" / "photos" / "orphan_ORF001_photo.png").read_bytes() == PNG_BYTES


def test_run_no_photos_flag(temp_workdir: Path, capsys):
    sheet = _write_sheet(temp_workdir, [
        HEADERS,
        ["ORF001", "Ahmed", "Hassan", "2015-03-15", "Male", None, None, None, "https://cdn.example.org/a.png"],
    ])
    with patch("orphan_import.services.pipeline.HttpPhotoFetcher") as mock_cls:
        code = cli_main([str(sheet), "--no-photos"])
    assert code == 0
    mock_cls.assert_not_called()
    assert "photos=0" in capsys.readouterr().out


def test_config_proxy_reaches_fetcher(temp_workdir: Path, write_config: Path, capsys):
    url = "https://drive.google.com/file/d/abc123/view"
    sheet = _write_sheet(temp_workdir, [
        HEADERS,
        ["ORF001", "Ahmed", "Hassan", "2015-03-15", "Male", None, None, None, url],
    ])
    fetcher = _ContextFetcher({url: FetchResponse(200, "image/jpeg", b"jpeg")})
    with patch("orphan_import.services.pipeline.HttpPhotoFetcher", return_value=fetcher) as mock_cls:
        code = cli_main([str(sheet)])
    assert code == 0
    mock_cls.assert_called_once_with(proxy_url="https://api.example.org/api/orphans/proxy-image")
    assert fetcher.proxied == [url]
    assert "photos=1" in capsys.readouterr().out


def test_inspect_data(temp_workdir: Path, sample_sheet: Path, capsys):
    code = cli_main([str(sample_sheet), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: orphans.xlsx rows=3" in out
    assert "'orphanId': 0" in out
    assert "'dob': 3" in out
    assert "SUMMARY" not in out


def test_extra_synonyms_from_config(temp_workdir: Path, write_config: Path, capsys):
    sheet = _write_sheet(temp_workdir, [
        ["Case Number", "First Name", "Last Name", "Birth Date"],
        ["C-9", "Mona", "Ali", "2010-10-10"],
    ])
    code = cli_main([str(sheet), "--output-dir", "out"])
    assert code == 0
    payload = json.loads((temp_workdir / "out" / "records.json").read_text(encoding="utf-8"))
    assert payload[0]["orphanId"] == "C-9"


def test_process_file(temp_workdir: Path, sample_sheet: Path):
    result = process_file(sample_sheet, fetcher=FakeFetcher(), show_progress=False)
    assert result.success is False
    assert [r.orphan_id for r in result.records] == ["ORF001"]
    assert result.records[0].dob == "2000-02-23"
    assert result.errors == ("Row 4: Invalid date format for date of birth: 2000/23/02",)


def test_template_option_writes_importable_sheet(temp_workdir: Path, capsys):
    code = cli_main(["--template", "out/orphan_upload_template.xlsx"])
    assert code == 0
    template = temp_workdir / "out" / "orphan_upload_template.xlsx"
    assert "INFO wrote template" in capsys.readouterr().out

    code = cli_main([str(template), "--output-dir", "out/records"])
    out = capsys.readouterr().out
    assert code == 0
    assert "status=ok rows=3 parsed=3" in out
    payload = json.loads((temp_workdir / "out" / "records" / "records.json").read_text(encoding="utf-8"))
    assert [r["orphanId"] for r in payload] == ["ORF001", "ORF002", "ORF003"]


def test_missing_file_argument(temp_workdir: Path, capsys):
    assert cli_main([]) == 1
    assert "ERROR no spreadsheet given" in capsys.readouterr().out
