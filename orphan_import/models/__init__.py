"""Domain models for the case-sheet importer.

Records, per-row outcomes, photo assets and the aggregated processing result
all live here as frozen dataclasses.
"""

from .config_models import ImportConfig, PhotoFetchConfig
from .error_record import ErrorRecord
from .photo_asset import FetchResponse, PhotoAsset
from .processing_result import ImportStats, ProcessingResult
from .record import CanonicalDate, EducationInfo, FamilyInfo, ParsedRecord
from .row_outcome import Errored, Parsed, RowOutcome, Skipped
from .upload import SpreadsheetUpload

__all__ = [
    # Configuration models
    "ImportConfig",
    "PhotoFetchConfig",
    # Record models
    "CanonicalDate",
    "FamilyInfo",
    "EducationInfo",
    "ParsedRecord",
    # Processing models
    "Parsed",
    "Skipped",
    "Errored",
    "RowOutcome",
    "FetchResponse",
    "PhotoAsset",
    "ImportStats",
    "ProcessingResult",
    "ErrorRecord",
    "SpreadsheetUpload",
]
