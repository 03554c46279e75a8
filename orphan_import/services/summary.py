from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering for the case-sheet importer."""

SUMMARY_LABEL = "SUMMARY"


def _format_number(value: float) -> str:
    # 指数表記を避け、整数値は小数点なしで出力
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(file_name: str, result: ProcessingResult, *, with_label: bool = True) -> str:
    """Render the SUMMARY line for one import.

    Format::

        SUMMARY file={name} status={ok|failed} rows={n} parsed={n} skipped={n}
        errored={n} photos={n} warnings={n} errors={n} elapsed_sec={s} throughput_rps={r}

    ``with_label=False`` drops the leading ``SUMMARY`` for callers whose log
    formatter adds the label itself.

    >>> from orphan_import.models import ImportStats, ProcessingResult
    >>> r = ProcessingResult(success=True, stats=ImportStats(total_rows=3, parsed_rows=3, elapsed_seconds=2.0))
    >>> render_summary_line("kids.xlsx", r)  # doctest: +ELLIPSIS
    'SUMMARY file=kids.xlsx status=ok rows=3 parsed=3 skipped=0 errored=0 photos=0 ... throughput_rps=1.5'
    >>> render_summary_line("kids.xlsx", r, with_label=False)  # doctest: +ELLIPSIS
    'file=kids.xlsx status=ok ...'
    """
    stats = result.stats
    body = (
        f"file={file_name} "
        f"status={'ok' if result.success else 'failed'} "
        f"rows={stats.total_rows} "
        f"parsed={stats.parsed_rows} "
        f"skipped={stats.skipped_rows} "
        f"errored={stats.errored_rows} "
        f"photos={len(result.photos)} "
        f"warnings={len(result.warnings)} "
        f"errors={len(result.errors)} "
        f"elapsed_sec={_format_number(stats.elapsed_seconds)} "
        f"throughput_rps={_format_number(stats.throughput_rows_per_sec)}"
    )
    return f"{SUMMARY_LABEL} {body}" if with_label else body
