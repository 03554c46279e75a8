from __future__ import annotations

from dataclasses import dataclass, field

from .photo_asset import PhotoAsset
from .record import ParsedRecord

"""Processing result models for the case-sheet importer.

ProcessingResult is the only artifact handed back to callers. It is built once
at the end of a run and never mutated afterwards; partial results (records,
warnings, photos) are returned even when success is False.
"""

__all__ = [
    "ImportStats",
    "ProcessingResult",
]


@dataclass(frozen=True)
class ImportStats:
    """Per-run counters used for the SUMMARY line."""
    total_rows: int = 0  # データ行数 (空行含む)
    parsed_rows: int = 0
    skipped_rows: int = 0
    errored_rows: int = 0
    blank_rows: int = 0  # 全セル空の行 (警告なしで無視)
    photos_resolved: int = 0
    elapsed_seconds: float = 0.0

    @property
    def throughput_rows_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_rows / self.elapsed_seconds


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated outcome of one spreadsheet import.

    success is True iff no row errored and the file itself was accepted.
    """
    success: bool
    records: tuple[ParsedRecord, ...] = ()
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    photos: dict[str, PhotoAsset] = field(default_factory=dict)
    stats: ImportStats = field(default_factory=ImportStats)

    @classmethod
    def rejected(cls, error: str) -> ProcessingResult:
        """File-level rejection: a single error and nothing else."""
        return cls(success=False, errors=(error,))
