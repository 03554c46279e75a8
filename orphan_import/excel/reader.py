from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader: workbook bytes -> RawGrid.

Only the first worksheet is read. The first row of the grid is the header
row, the remaining rows are data rows. Cells are returned untyped: text stays
text (including placeholders such as "N/A" or "None", which pandas would
otherwise turn into NaN), date-formatted cells arrive as pandas Timestamps and
empty cells become None.
"""

__all__ = [
    "RawGrid",
    "SheetReadError",
    "read_grid",
]

RawGrid = list[list[Any]]


class SheetReadError(Exception):
    """Raised when the workbook cannot be opened or has no worksheet."""


def read_grid(source: bytes | Path) -> RawGrid:
    """Read the first worksheet of an .xlsx/.xls workbook into a RawGrid.

    Parameters
    ----------
    source: workbook bytes (upload content) or a path on disk
    """
    handle: Any = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        with pd.ExcelFile(handle) as xls:
            if not xls.sheet_names:
                raise SheetReadError("workbook contains no worksheets")
            # header=None: ヘッダ判定は HeaderMapper 側で行うため生のまま読む
            # keep_default_na=False: "N/A" / "None" 等の文字列を NaN 化しない
            df = xls.parse(
                xls.sheet_names[0],
                header=None,
                dtype=object,
                keep_default_na=False,
            )
    except SheetReadError:
        raise
    except Exception as e:
        raise SheetReadError(f"unable to read workbook: {e}") from e

    return [[_clean_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        # 空セルは openpyxl 経由で "" になる
        return value if value != "" else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value
