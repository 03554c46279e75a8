from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

import pandas as pd
from dateutil import parser as date_parser

from ..models.record import CanonicalDate

"""Date disambiguation for human-authored spreadsheet cells.

parse_date() turns a raw cell value into a canonical ``YYYY-MM-DD`` string.
Strategies, tried in order on the trimmed text:

1. ISO ``YYYY-M-D``
2. slash separated three-part dates (ambiguous order resolved month-first)
3. dash separated three-part dates (ambiguous order resolved day-first)
4. dateutil fallback for everything else carrying a four-digit year
   (spelled-out, dotted, space separated, compact YYYYMMDD)

The slash and dash tie-breaks intentionally differ (existing behaviour of the
sheets already in circulation); see DESIGN.md before unifying them.

Nothing in here consults the current date, so results are deterministic.
"""

__all__ = [
    "MIN_YEAR",
    "MAX_YEAR",
    "InvalidDateError",
    "parse_date",
    "parse_optional_date",
    "parse_dates",
    "is_valid_date_format",
]

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100

_ISO_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")
_COMPACT_RE = re.compile(r"^\d{8}$")
_YEAR_TOKEN_RE = re.compile(r"(?<!\d)\d{4}(?!\d)")

# dateutil fills missing components from this; the year is always present in
# accepted input so only month/day can come from here.
_FALLBACK_DEFAULT = datetime(2000, 1, 1)


class InvalidDateError(ValueError):
    """Raised when a non-empty value cannot be read as a calendar date."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"could not parse date: {value!r}")


def parse_date(value: Any) -> CanonicalDate | None:
    """Parse a raw cell value into ``YYYY-MM-DD``.

    Returns None for empty input (None, NaN/NaT, blank text). Raises
    InvalidDateError for anything else that is not a valid date between
    1900 and 2100.

    >>> parse_date("23/02/2000")
    '2000-02-23'
    >>> parse_date("10/01/2025")
    '2025-10-01'
    >>> parse_date("") is None
    True
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and value != value:  # NaN
        return None

    # pandas.Timestamp is a datetime subclass
    if isinstance(value, (datetime, date)):
        result = _build(value.year, value.month, value.day)
        if result is None:
            raise InvalidDateError(value)
        return result

    text = str(value).strip()
    if not text:
        return None

    result = _try_parse(text)
    if result is None:
        logger.debug("could not parse date: %s", text)
        raise InvalidDateError(value)
    return result


def parse_optional_date(value: Any) -> CanonicalDate | None:
    """Like parse_date() but unparseable values degrade to None."""
    try:
        return parse_date(value)
    except InvalidDateError:
        return None


def parse_dates(values: Iterable[Any]) -> list[CanonicalDate | None]:
    """Batch helper: one entry per input, None where parsing failed or was empty."""
    return [parse_optional_date(v) for v in values]


def is_valid_date_format(value: Any) -> bool:
    """True when the value parses to a canonical date (empty input is not valid)."""
    return parse_optional_date(value) is not None


def _try_parse(text: str) -> CanonicalDate | None:
    if _ISO_RE.match(text):
        y, m, d = (int(p) for p in text.split("-"))
        # ISO 形に見えて不正な日付は他の戦略に回さない
        return _build(y, m, d)

    if "/" in text:
        return _parse_three_part(text.split("/"), month_first=True)

    if "-" in text:
        return _parse_three_part(text.split("-"), month_first=False)

    return _parse_fallback(text)


def _parse_three_part(parts: list[str], *, month_first: bool) -> CanonicalDate | None:
    """Resolve a three-part date whose component order is unknown.

    ``month_first`` only decides the fully ambiguous case where both leading
    components are <= 12.
    """
    if len(parts) != 3:
        return None
    nums = [_leading_int(p) for p in parts]
    if any(n is None for n in nums):
        return None
    a, b, c = nums  # type: ignore[misc]

    if a > MIN_YEAR:
        # Year-first is always YYYY/MM/DD. A middle component > 12 is an
        # overflowing month ("2025/13/01"), not a swapped day.
        year, month, day = a, b, c
    elif c > 31:
        year = _expand_two_digit_year(c)
        if a > 12:
            day, month = a, b
        elif b > 12:
            month, day = a, b
        elif month_first:
            month, day = a, b
        else:
            day, month = a, b
    else:
        # 年の位置を特定できない
        return None

    return _build(year, month, day)


def _parse_fallback(text: str) -> CanonicalDate | None:
    """Anything the separators above did not claim.

    Spelled-out ("5 March 2020"), dotted ("23.02.2000"), space separated
    ("2025 01 10") and compact YYYYMMDD values. A four-digit year must be
    present so the year never comes from the default date.
    """
    if not (_COMPACT_RE.match(text) or _YEAR_TOKEN_RE.search(text)):
        return None
    try:
        parsed = date_parser.parse(text, default=_FALLBACK_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return _build(parsed.year, parsed.month, parsed.day)


def _expand_two_digit_year(year: int) -> int:
    if year < 50:
        return 2000 + year
    if year < 100:
        return 1900 + year
    return year


def _leading_int(part: str) -> int | None:
    m = _LEADING_INT_RE.match(part)
    return int(m.group(1)) if m else None


def _build(year: int, month: int, day: int) -> CanonicalDate | None:
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        # 実カレンダーで検証 (2/30, 平年の 2/29 を弾く)
        date(year, month, day)
    except ValueError:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"
