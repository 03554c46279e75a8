from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Structured error log for import runs.

Rows that fail the batch and uploads that are rejected outright are recorded
as ErrorRecord entries while the import runs. flush() appends them as JSON
Lines to ``<logs_dir>/errors-<UTC YYYYMMDD-HHMMSS>.log``. A run that records
nothing never creates the directory or the file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "DEFAULT_LOGS_DIR",
]

DEFAULT_LOGS_DIR = Path("logs")
_STAMP_FORMAT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one import run and writes them on flush().

    The log file name is fixed the first time it is needed, so repeated
    flushes within a run append to the same file.
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = DEFAULT_LOGS_DIR if logs_dir is None else logs_dir
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def records(self) -> tuple[ErrorRecord, ...]:
        """Records appended since the last flush."""
        return tuple(self._pending)

    @property
    def file_path(self) -> Path:
        if self._path is None:
            stamp = datetime.now(UTC).strftime(_STAMP_FORMAT)
            self._path = self._logs_dir / f"errors-{stamp}.log"
        return self._path

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def flush(self) -> Path | None:
        """Append pending records to the log file.

        Returns the log path, or None when this run has not logged anything yet.
        """
        if not self._pending:
            return self._path
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(f"{r.to_json_line()}\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(lines)
        self._pending.clear()
        return path
