from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..excel.reader import RawGrid, SheetReadError, read_grid
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord
from ..models.photo_asset import PhotoAsset
from ..models.processing_result import ImportStats, ProcessingResult
from ..models.record import ParsedRecord
from ..models.row_outcome import Errored, Parsed, RowOutcome, Skipped
from ..models.upload import ACCEPTED_MIME_TYPES, SpreadsheetUpload
from ..parsing.headers import HeaderMap, build_synonyms, get_cell, map_headers
from ..parsing.rows import is_blank_row, parse_row
from ..photos.classifier import PhotoKind, classify_photo
from ..photos.fetcher import HttpPhotoFetcher, PhotoFetcher
from ..photos.resolver import resolve_photo
from .progress import ProgressTracker

"""Ingestion pipeline: spreadsheet upload -> ProcessingResult.

Flow:
1. validate the upload (MIME type, size)         -> file-level rejection
2. read the first worksheet into a RawGrid        -> file-level rejection
3. map the header row once
4. parse every data row in order (RowOutcome per row)
5. download photos of parsed rows with a bounded worker pool
6. assemble records / warnings / errors / photos in row order

Only step 1-2 (and a sheet without data rows) abort the import. Everything
else is accumulated, and the result is built once at the end. run_import()
never raises: unexpected failures become a single file-level error.
"""

__all__ = [
    "FILE_TYPE_ERROR",
    "EMPTY_SHEET_ERROR",
    "validate_upload",
    "run_import",
    "process_file",
]

logger = logging.getLogger(__name__)

FILE_TYPE_ERROR = "Please select a valid Excel file (.xlsx or .xls)"
EMPTY_SHEET_ERROR = "Excel file appears to be empty or has no data rows"

# spreadsheet row number of grid[1] (header is row 1)
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class _RowSlot:
    row_number: int
    outcome: RowOutcome | None  # None = 空行 (集計のみ)
    photo_value: Any = None


def validate_upload(upload: SpreadsheetUpload, max_bytes: int) -> str | None:
    """Return the rejection message for an unacceptable upload, None if it is fine."""
    if upload.content_type not in ACCEPTED_MIME_TYPES:
        return FILE_TYPE_ERROR
    if upload.size > max_bytes:
        return f"File size must be less than {max_bytes // (1024 * 1024)}MB"
    return None


async def run_import(
    upload: SpreadsheetUpload,
    *,
    fetcher: PhotoFetcher | None = None,
    config: ImportConfig | None = None,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool | None = None,
) -> ProcessingResult:
    """Import one spreadsheet upload.

    Args:
        upload: the selected file
        fetcher: photo fetch capability; None creates an HttpPhotoFetcher for
            the duration of the photo phase (only when some row needs it)
        config: import settings (defaults when None)
        error_log: optional buffer receiving structured error records
        show_progress: force the tqdm bars on/off (None = TTY only)
    """
    cfg = config or ImportConfig()
    try:
        return await _run(upload, fetcher, cfg, error_log, show_progress)
    except Exception as e:
        logger.exception("import of %s failed unexpectedly", upload.name)
        return _reject(upload, f"Failed to process Excel file: {e}", "PROCESSING_ERROR", error_log)


def process_file(path: Path, **kwargs: Any) -> ProcessingResult:
    """Synchronous convenience wrapper around run_import() for a file on disk."""
    upload = SpreadsheetUpload.from_path(path)
    return asyncio.run(run_import(upload, **kwargs))


async def _run(
    upload: SpreadsheetUpload,
    fetcher: PhotoFetcher | None,
    cfg: ImportConfig,
    error_log: ErrorLogBuffer | None,
    show_progress: bool | None,
) -> ProcessingResult:
    start_time = datetime.now(UTC)

    rejection = validate_upload(upload, cfg.max_file_size_bytes)
    if rejection is not None:
        return _reject(upload, rejection, "FILE_REJECTED", error_log)

    try:
        grid = read_grid(upload.content)
    except SheetReadError as e:
        return _reject(upload, f"Failed to process Excel file: {e}", "UNREADABLE_FILE", error_log)

    if len(grid) < 2:
        return _reject(upload, EMPTY_SHEET_ERROR, "NO_DATA_ROWS", error_log)

    header_map = map_headers(grid[0], build_synonyms(cfg.header_synonyms))
    logger.info(
        "%s: %d data rows, mapped fields: %s",
        upload.name, len(grid) - 1, ", ".join(sorted(header_map)) or "(none)",
    )

    slots = _parse_rows(grid, header_map, show_progress)

    photo_results: dict[int, tuple[PhotoAsset | None, str | None]] = {}
    if cfg.photo_fetch.enabled and "photo" in header_map:
        photo_results = await _resolve_photos(slots, fetcher, cfg, show_progress)

    records: list[ParsedRecord] = []
    warnings: list[str] = []
    errors: list[str] = []
    photos: dict[str, PhotoAsset] = {}
    skipped = errored = blank = 0

    for slot in slots:
        outcome = slot.outcome
        if outcome is None:
            blank += 1
        elif isinstance(outcome, Parsed):
            records.append(outcome.record)
            warnings.extend(outcome.warnings)
            asset, photo_warning = photo_results.get(slot.row_number, (None, None))
            if asset is not None:
                photos[outcome.record.orphan_id] = asset
            if photo_warning is not None:
                warnings.append(photo_warning)
        elif isinstance(outcome, Skipped):
            skipped += 1
            warnings.append(outcome.message)
        elif isinstance(outcome, Errored):
            errored += 1
            errors.append(outcome.message)
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(upload.name, outcome.row_number, "INVALID_DATE_OF_BIRTH", outcome.message)
                )

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    stats = ImportStats(
        total_rows=len(slots),
        parsed_rows=len(records),
        skipped_rows=skipped,
        errored_rows=errored,
        blank_rows=blank,
        photos_resolved=len(photos),
        elapsed_seconds=elapsed,
    )
    return ProcessingResult(
        success=not errors,
        records=tuple(records),
        warnings=tuple(warnings),
        errors=tuple(errors),
        photos=photos,
        stats=stats,
    )


def _parse_rows(grid: RawGrid, header_map: HeaderMap, show_progress: bool | None) -> list[_RowSlot]:
    slots: list[_RowSlot] = []
    parsed = skipped = errored = 0
    with ProgressTracker(len(grid) - 1, description="Parsing rows", enabled=show_progress) as progress:
        for index, row in enumerate(grid[1:]):
            row_number = index + FIRST_DATA_ROW
            if is_blank_row(row):
                slots.append(_RowSlot(row_number, None))
                progress.advance()
                continue
            outcome = parse_row(row, header_map, row_number)
            if isinstance(outcome, Parsed):
                parsed += 1
            elif isinstance(outcome, Skipped):
                skipped += 1
            else:
                errored += 1
            slots.append(_RowSlot(row_number, outcome, get_cell(row, header_map, "photo")))
            progress.advance()
            progress.set_postfix(parsed=parsed, skipped=skipped, errored=errored)
    return slots


async def _resolve_photos(
    slots: Sequence[_RowSlot],
    fetcher: PhotoFetcher | None,
    cfg: ImportConfig,
    show_progress: bool | None,
) -> dict[int, tuple[PhotoAsset | None, str | None]]:
    """Resolve photos of parsed rows; result keyed by spreadsheet row number.

    Sentinel / malformed values are answered without touching the network.
    Fetches run concurrently, at most ``max_concurrency`` at a time; each
    result stays attached to its own row so ordering is decided later.
    """
    results: dict[int, tuple[PhotoAsset | None, str | None]] = {}
    pending: list[tuple[_RowSlot, str]] = []
    for slot in slots:
        if not isinstance(slot.outcome, Parsed):
            continue
        kind = classify_photo(slot.photo_value)
        value = "" if slot.photo_value is None else str(slot.photo_value).strip()
        if kind is PhotoKind.EMPTY:
            continue
        if kind is PhotoKind.SENTINEL:
            results[slot.row_number] = (None, f'Row {slot.row_number}: Skipping invalid photo value: "{value}"')
        elif kind is PhotoKind.INVALID:
            results[slot.row_number] = (None, f'Row {slot.row_number}: Invalid photo URL format: "{value}"')
        else:
            pending.append((slot, value))

    if not pending:
        return results

    if fetcher is None:
        async with HttpPhotoFetcher(proxy_url=cfg.photo_fetch.proxy_url) as http_fetcher:
            results.update(await _download_all(pending, http_fetcher, cfg, show_progress))
    else:
        results.update(await _download_all(pending, fetcher, cfg, show_progress))
    return results


async def _download_all(
    pending: Sequence[tuple[_RowSlot, str]],
    fetcher: PhotoFetcher,
    cfg: ImportConfig,
    show_progress: bool | None,
) -> dict[int, tuple[PhotoAsset | None, str | None]]:
    semaphore = asyncio.Semaphore(cfg.photo_fetch.max_concurrency)

    with ProgressTracker(len(pending), description="Downloading photos", unit="photo", enabled=show_progress) as progress:

        async def download(slot: _RowSlot, url: str) -> PhotoAsset | None:
            record = slot.outcome.record  # type: ignore[union-attr]
            try:
                async with semaphore:
                    return await resolve_photo(
                        url, record.orphan_id, fetcher, timeout=cfg.photo_fetch.timeout_seconds
                    )
            finally:
                progress.advance()

        done = await asyncio.gather(
            *(download(slot, url) for slot, url in pending), return_exceptions=True
        )

    results: dict[int, tuple[PhotoAsset | None, str | None]] = {}
    for (slot, url), asset in zip(pending, done):
        if isinstance(asset, BaseException):
            # 1 行の失敗は他の行に波及させない
            logger.debug("row %d: photo download raised %r", slot.row_number, asset)
            asset = None
        if asset is None:
            results[slot.row_number] = (None, f"Row {slot.row_number}: Failed to download photo from URL: {url}")
        else:
            logger.debug("row %d: downloaded photo %s", slot.row_number, asset.filename)
            results[slot.row_number] = (asset, None)
    return results


def _reject(
    upload: SpreadsheetUpload,
    message: str,
    error_type: str,
    error_log: ErrorLogBuffer | None,
) -> ProcessingResult:
    logger.debug("%s rejected: %s", upload.name, message)
    if error_log is not None:
        error_log.append(ErrorRecord.create(upload.name, FILE_LEVEL_ROW, error_type, message))
    return ProcessingResult.rejected(message)
