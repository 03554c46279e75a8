from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""SpreadsheetUpload model: the file handed to the importer.

Carries the raw bytes together with the declared MIME type, the way an upload
form or an HTTP multipart part presents it. Validation of type and size
happens in the pipeline before any cell is read.
"""

__all__ = [
    "XLSX_MIME_TYPE",
    "XLS_MIME_TYPE",
    "ACCEPTED_MIME_TYPES",
    "SpreadsheetUpload",
]

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME_TYPE = "application/vnd.ms-excel"
ACCEPTED_MIME_TYPES = frozenset({XLSX_MIME_TYPE, XLS_MIME_TYPE})

_SUFFIX_MIME_TYPES = {
    ".xlsx": XLSX_MIME_TYPE,
    ".xls": XLS_MIME_TYPE,
}


@dataclass(frozen=True)
class SpreadsheetUpload:
    name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> SpreadsheetUpload:
        """Build an upload from a local file, guessing the MIME type from the suffix.

        Unknown suffixes get ``application/octet-stream`` so that the pipeline
        rejects them with the usual file-type message.
        """
        if content_type is None:
            content_type = _SUFFIX_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
        return cls(name=path.name, content_type=content_type, content=path.read_bytes())
