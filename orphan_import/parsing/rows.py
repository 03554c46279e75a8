from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..models.record import EducationInfo, FamilyInfo, ParsedRecord
from ..models.row_outcome import (
    INVALID_DATE_OF_BIRTH,
    MISSING_REQUIRED_FIELD,
    Errored,
    Parsed,
    RowOutcome,
    Skipped,
)
from .dates import InvalidDateError, parse_date
from .headers import get_cell

"""Row parsing: one spreadsheet row -> RowOutcome.

- orphan id / last name / first name missing -> Skipped (warning only)
- date of birth missing or unparseable -> Errored (fails the batch)
- unparseable parent death dates -> field left empty, row-level warning
"""

__all__ = [
    "parse_row",
    "is_blank_row",
]

logger = logging.getLogger(__name__)

_OPTIONAL_DATE_LABELS = {
    "fatherDateOfDeath": "father date of death",
    "motherDateOfDeath": "mother date of death",
}


def is_blank_row(row: Sequence[Any]) -> bool:
    """True when no cell of the row carries a value."""
    for v in row:
        if v is None:
            continue
        if isinstance(v, float) and v != v:  # NaN
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return False
    return True


def _text(row: Sequence[Any], header_map: Mapping[str, int], field: str) -> str:
    value = get_cell(row, header_map, field)
    return "" if value is None else str(value)


def parse_row(row: Sequence[Any], header_map: Mapping[str, int], row_number: int) -> RowOutcome:
    """Parse one data row.

    Parameters:
        row: raw cells of the row
        header_map: canonical field -> column index (from map_headers)
        row_number: spreadsheet row number used in messages (first data row = 2)
    """
    orphan_id = _text(row, header_map, "orphanId")
    last_name = _text(row, header_map, "lastName")
    first_name = _text(row, header_map, "firstName")
    if not orphan_id or not last_name or not first_name:
        return Skipped(MISSING_REQUIRED_FIELD, row_number)

    dob_raw = get_cell(row, header_map, "dob")
    try:
        dob = parse_date(dob_raw)
    except InvalidDateError:
        dob = None
    if dob is None:
        logger.debug("row %d: invalid date of birth %r", row_number, dob_raw)
        return Errored(INVALID_DATE_OF_BIRTH, row_number, dob_raw)

    warnings: list[str] = []
    death_dates: dict[str, str | None] = {}
    for field, label in _OPTIONAL_DATE_LABELS.items():
        raw = get_cell(row, header_map, field)
        try:
            death_dates[field] = parse_date(raw)
        except InvalidDateError:
            death_dates[field] = None
            warnings.append(f"Row {row_number}: Invalid date for {label}: {raw}; left empty")

    father_name = _text(row, header_map, "fatherName")
    mother_name = _text(row, header_map, "motherName")
    guardian_name = _text(row, header_map, "guardianName")
    family = None
    if father_name or mother_name or guardian_name:
        family = FamilyInfo(
            father_name=father_name,
            father_date_of_death=death_dates["fatherDateOfDeath"],
            mother_name=mother_name,
            mother_status=_text(row, header_map, "motherStatus"),
            mother_date_of_death=death_dates["motherDateOfDeath"],
            guardian_name=guardian_name,
            relation_to_orphan=_text(row, header_map, "relationToOrphan"),
        )

    school_name = _text(row, header_map, "schoolName")
    grade_level = _text(row, header_map, "gradeLevel")
    education = None
    if school_name or grade_level:
        education = EducationInfo(
            school_name=school_name,
            grade_level=grade_level,
            favorite_subject=_text(row, header_map, "favoriteSubject"),
            school_performance=_text(row, header_map, "schoolPerformance"),
        )

    record = ParsedRecord(
        orphan_id=orphan_id,
        first_name=first_name,
        last_name=last_name,
        dob=dob,
        place_of_birth=_text(row, header_map, "placeOfBirth"),
        gender=_text(row, header_map, "gender"),
        location=_text(row, header_map, "location"),
        country=_text(row, header_map, "country"),
        health_status=_text(row, header_map, "healthStatus"),
        special_needs=_text(row, header_map, "specialNeeds"),
        family=family,
        education=education,
    )
    return Parsed(record=record, row_number=row_number, warnings=tuple(warnings))
