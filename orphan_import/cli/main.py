from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..excel.reader import SheetReadError, read_grid
from ..excel.template import write_template
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..models.processing_result import ProcessingResult
from ..models.upload import SpreadsheetUpload
from ..parsing.headers import build_synonyms, map_headers
from ..services.pipeline import run_import
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config (defaults when config/import.yml is absent)
- Import one spreadsheet, downloading referenced photos
- Print row warnings / errors with labels, then the SUMMARY line
- Optionally write records.json and photo files to --output-dir
- --template OUT writes a blank import template instead of importing

Exit codes: 0 success, 2 finished with row errors, 1 fatal (config / file rejected).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_ROW_ERRORS = 2


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv (IMAGE_PROXY_URL, PHOTO_FETCH_TIMEOUT)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="orphan-import", description="Orphan case-sheet importer")
    p.add_argument("file", type=Path, nargs="?", help="Spreadsheet to import (.xlsx / .xls)")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/import.yml)")
    p.add_argument("--output-dir", type=Path, default=None, help="Write records.json and photos here")
    p.add_argument("--no-photos", action="store_true", help="Do not download photos")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print header mapping & first rows then exit")
    p.add_argument(
        "--template", type=Path, default=None, metavar="OUT",
        help="Write a blank import template (.xlsx) to OUT then exit",
    )
    return p.parse_args(argv)


def _inspect_data(path: Path, cfg: ImportConfig) -> int:
    try:
        grid = read_grid(path)
    except SheetReadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not grid:
        print("inspect: empty sheet")
        return EXIT_SUCCESS
    header_map = map_headers(grid[0], build_synonyms(cfg.header_synonyms))
    print(f"FILE: {path.name} rows={len(grid) - 1}")
    print(f"  headers={[str(h) for h in grid[0]]}")
    print(f"  mapping={header_map}")
    for row in grid[1:4]:
        # datetime 含む場合 JSON 化失敗するため isoformat で文字列化
        print("    row=", [v.isoformat() if hasattr(v, "isoformat") else v for v in row])
    return EXIT_SUCCESS


def _write_output(output_dir: Path, result: ProcessingResult) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in result.records]
    (output_dir / "records.json").write_text(
        json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    if result.photos:
        photo_dir = output_dir / "photos"
        photo_dir.mkdir(exist_ok=True)
        for asset in result.photos.values():
            (photo_dir / asset.filename).write_bytes(asset.content)


def main(argv: list[str] | None = None) -> int:
    # NOTE: [] が渡された場合に sys.argv が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(Path(".env"))

    if args.template is not None:
        try:
            path = write_template(args.template)
        except OSError as e:
            logger.error(f"template: {e}")
            return EXIT_FATAL
        logger.info(f"wrote template {path}")
        return EXIT_SUCCESS

    if args.file is None:
        logger.error("no spreadsheet given (pass FILE or --template OUT)")
        return EXIT_FATAL

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.file, cfg)

    if args.no_photos:
        cfg = replace(cfg, photo_fetch=replace(cfg.photo_fetch, enabled=False))

    logger.info(f"Importing {args.file}")
    error_log = ErrorLogBuffer(Path(cfg.logs_directory))
    upload = SpreadsheetUpload.from_path(args.file)
    result = asyncio.run(run_import(upload, config=cfg, error_log=error_log))

    for w in result.warnings:
        logger.warning(w)
    for e in result.errors:
        logger.error(e)

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed to write error log: {e}")
        log_path = None
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    if args.output_dir is not None and result.records:
        _write_output(args.output_dir, result)
        logger.info(f"wrote {len(result.records)} records to {args.output_dir}")

    log_summary(render_summary_line(upload.name, result, with_label=False))

    if result.success:
        return EXIT_SUCCESS
    if result.stats.total_rows == 0:
        # ファイル単位の拒否 (型/サイズ/読込不可/データ行なし)
        return EXIT_FATAL
    return EXIT_ROW_ERRORS
