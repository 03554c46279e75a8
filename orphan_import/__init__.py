"""Orphan case-sheet importer.

Reads beneficiary spreadsheets with loosely formatted headers and dates and
returns a validated, canonicalized record set plus the referenced photos.
"""

from .models import ProcessingResult, SpreadsheetUpload
from .services.pipeline import process_file, run_import

__version__ = "0.1.0"

__all__ = [
    "ProcessingResult",
    "SpreadsheetUpload",
    "process_file",
    "run_import",
]
