from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .record import ParsedRecord

"""Per-row classification produced by the row parser.

Exactly one outcome exists per data row. Row numbers are spreadsheet row
numbers (header is row 1, first data row is row 2).
"""

__all__ = [
    "MISSING_REQUIRED_FIELD",
    "INVALID_DATE_OF_BIRTH",
    "Parsed",
    "Skipped",
    "Errored",
    "RowOutcome",
]

MISSING_REQUIRED_FIELD = "missing required field"
INVALID_DATE_OF_BIRTH = "invalid date of birth"


@dataclass(frozen=True)
class Parsed:
    record: ParsedRecord
    row_number: int
    warnings: tuple[str, ...] = field(default_factory=tuple)  # degraded optional fields


@dataclass(frozen=True)
class Skipped:
    reason: str
    row_number: int

    @property
    def message(self) -> str:
        if self.reason == MISSING_REQUIRED_FIELD:
            return f"Row {self.row_number}: Skipped due to missing required fields"
        return f"Row {self.row_number}: Skipped ({self.reason})"


@dataclass(frozen=True)
class Errored:
    reason: str
    row_number: int
    raw_value: Any = None

    @property
    def message(self) -> str:
        raw = "" if self.raw_value is None else str(self.raw_value)
        if self.reason == INVALID_DATE_OF_BIRTH:
            return f"Row {self.row_number}: Invalid date format for date of birth: {raw}"
        return f"Row {self.row_number}: {self.reason}: {raw}"


RowOutcome = Union[Parsed, Skipped, Errored]
