from __future__ import annotations

import io
from pathlib import Path

import pandas as pd
import pytest

from orphan_import.excel.reader import read_grid
from orphan_import.excel.template import (
    DEFAULT_TEMPLATE_NAME,
    EXAMPLE_ROWS,
    INSTRUCTIONS_SHEET,
    ORPHAN_TEMPLATE,
    TEMPLATE_SHEET,
    build_template,
    template_headers,
    write_template,
)
from orphan_import.models.upload import XLSX_MIME_TYPE, SpreadsheetUpload
from orphan_import.parsing.headers import CANONICAL_FIELDS, map_headers
from orphan_import.services.pipeline import run_import


def test_every_template_header_maps_to_its_field():
    header_map = map_headers(template_headers())
    assert header_map == {c.field: i for i, c in enumerate(ORPHAN_TEMPLATE)}
    # テンプレートは全フィールドを網羅する
    assert set(header_map) == set(CANONICAL_FIELDS)


def test_example_rows_match_columns():
    for row in EXAMPLE_ROWS:
        assert len(row) == len(ORPHAN_TEMPLATE)
    required = [c.header for c in ORPHAN_TEMPLATE if c.required]
    assert required == ["Orphan ID", "First Name", "Last Name", "Date of Birth"]


def test_template_workbook_layout():
    content = build_template()
    with pd.ExcelFile(io.BytesIO(content)) as xls:
        assert xls.sheet_names == [TEMPLATE_SHEET, INSTRUCTIONS_SHEET]
    grid = read_grid(content)
    assert grid[0] == template_headers()
    assert len(grid) == 1 + len(EXAMPLE_ROWS)


@pytest.mark.asyncio
async def test_filled_template_imports_cleanly():
    upload = SpreadsheetUpload("orphan_upload_template.xlsx", XLSX_MIME_TYPE, build_template())
    result = await run_import(upload)
    assert result.success is True
    assert result.warnings == ()
    assert [r.orphan_id for r in result.records] == ["ORF001", "ORF002", "ORF003"]
    assert [r.dob for r in result.records] == ["2015-03-15", "2016-03-23", "2017-02-28"]
    assert result.records[2].family.mother_date_of_death == "2020-03-15"
    assert result.records[1].family.mother_date_of_death is None


def test_write_template_to_file_and_directory(tmp_path: Path):
    explicit = write_template(tmp_path / "out" / "blank.xlsx")
    assert explicit == tmp_path / "out" / "blank.xlsx"
    assert explicit.stat().st_size > 0

    into_dir = write_template(tmp_path)
    assert into_dir == tmp_path / DEFAULT_TEMPLATE_NAME
    assert read_grid(into_dir)[0] == template_headers()
