from __future__ import annotations

import re
from pathlib import Path

from orphan_import.cli import main as cli_main

from conftest import make_workbook_bytes

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+file=(\S+)\s+status=(ok|failed)\s+rows=([0-9]+)\s+parsed=([0-9]+)\s+"
    r"skipped=([0-9]+)\s+errored=([0-9]+)\s+photos=([0-9]+)\s+warnings=([0-9]+)\s+"
    r"errors=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+throughput_rps=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY file=orphans.xlsx status=failed rows=3 parsed=1 skipped=1 errored=1 "
        "photos=0 warnings=1 errors=1 elapsed_sec=0.084 throughput_rps=35.714"
    )
    assert SUMMARY_PATTERN.match(line)


def test_cli_emits_exactly_one_summary_line(temp_workdir: Path, sample_sheet: Path, capsys):
    cli_main([str(sample_sheet)])
    lines = [ln for ln in capsys.readouterr().out.splitlines() if ln.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m, lines[0]
    assert m.group(1) == "orphans.xlsx"
    assert m.group(2) == "failed"
    rows, parsed, skipped, errored = (int(m.group(i)) for i in range(3, 7))
    assert rows == parsed + skipped + errored == 3


def test_summary_is_last_line(temp_workdir: Path, capsys):
    sheet = temp_workdir / "data" / "ok.xlsx"
    sheet.write_bytes(make_workbook_bytes([
        ["Orphan ID", "First Name", "Last Name", "DOB"],
        ["A1", "Ahmed", "Hassan", "2015-03-15"],
    ]))
    cli_main([str(sheet)])
    out = capsys.readouterr().out.strip().splitlines()
    assert out[-1].startswith("SUMMARY file=ok.xlsx status=ok")


def test_every_line_is_labeled(temp_workdir: Path, sample_sheet: Path, capsys):
    cli_main([str(sample_sheet)])
    for line in capsys.readouterr().out.splitlines():
        assert re.match(r"^(INFO|WARN|ERROR|SUMMARY) ", line), line
