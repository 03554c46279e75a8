from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

"""Header mapping: fuzzy spreadsheet headers -> canonical field names.

Headers and synonyms are normalized the same way (lower-case, trimmed, runs of
whitespace / hyphens / underscores collapsed to a single underscore) and then
compared in three passes of decreasing specificity:

1. exact match                  ("school_performance")
2. ``synonym + "_"`` prefix     ("photo_url" -> photo)
3. bare prefix                  ("photograph" -> photo)

Inside a pass, fields are tried in dictionary order and the first match wins.
Running the passes per header keeps a short synonym such as "school" from
capturing "School Performance" before the exact "school_performance" synonym
is seen.
"""

__all__ = [
    "HeaderMap",
    "FIELD_SYNONYMS",
    "CANONICAL_FIELDS",
    "normalize_header",
    "build_synonyms",
    "map_headers",
    "get_cell",
]

HeaderMap = dict[str, int]

FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "orphanId": ("orphan_id", "orphanid", "id", "orphan id", "orphan-id"),
    "lastName": ("last_name", "lastname", "surname", "family_name", "last name", "family name"),
    "firstName": ("first_name", "firstname", "given_name", "first name", "given name"),
    "dob": ("dob", "date_of_birth", "birth_date", "birthdate", "date of birth", "birth date"),
    "placeOfBirth": ("place_of_birth", "birthplace", "birth_place", "place of birth", "birth place"),
    "gender": ("gender", "sex"),
    "location": ("location", "address", "city", "place"),
    "country": ("country", "nationality", "nation"),
    "healthStatus": ("health_status", "health", "medical_status", "health status", "medical status"),
    "specialNeeds": ("special_needs", "special needs", "medical_needs", "medical needs", "disabilities"),
    "photo": ("photo", "image", "picture", "avatar", "profile_photo", "profile_image", "profile_picture"),
    # family
    "fatherName": ("father_name", "father name", "father"),
    "fatherDateOfDeath": (
        "father_death_date", "father death date", "father_dod", "father date of death",
    ),
    "motherName": ("mother_name", "mother name", "mother"),
    "motherStatus": ("mother_status", "mother status"),
    "motherDateOfDeath": (
        "mother_death_date", "mother death date", "mother_dod", "mother date of death",
    ),
    "guardianName": ("guardian_name", "guardian name", "guardian"),
    "relationToOrphan": ("relation_to_orphan", "relation", "relationship"),
    # education
    "schoolName": ("school_name", "school name", "school"),
    "gradeLevel": ("grade_level", "grade", "class", "level"),
    "favoriteSubject": ("favorite_subject", "favorite subject", "subject"),
    "schoolPerformance": ("school_performance", "performance", "academic_performance"),
}

CANONICAL_FIELDS: tuple[str, ...] = tuple(FIELD_SYNONYMS)

_SEPARATORS_RE = re.compile(r"[_\s-]+")


def normalize_header(value: Any) -> str:
    return _SEPARATORS_RE.sub("_", str(value).lower().strip())


def build_synonyms(extra: Mapping[str, Sequence[str]] | None = None) -> dict[str, tuple[str, ...]]:
    """Normalized synonym table; ``extra`` entries are appended per field.

    Raises:
        KeyError: if ``extra`` names a field that is not canonical
    """
    table = {name: [normalize_header(s) for s in syns] for name, syns in FIELD_SYNONYMS.items()}
    for name, syns in (extra or {}).items():
        if name not in table:
            raise KeyError(f"unknown canonical field: {name}")
        table[name].extend(normalize_header(s) for s in syns)
    return {name: tuple(dict.fromkeys(syns)) for name, syns in table.items()}


def _matches_exact(header: str, synonym: str) -> bool:
    return header == synonym


def _matches_word_prefix(header: str, synonym: str) -> bool:
    return header.startswith(synonym + "_")


def _matches_prefix(header: str, synonym: str) -> bool:
    return header.startswith(synonym)


_PASSES = (_matches_exact, _matches_word_prefix, _matches_prefix)


def _match_field(header: str, synonyms: Mapping[str, Sequence[str]]) -> str | None:
    for matches in _PASSES:
        for name, syns in synonyms.items():
            if any(matches(header, s) for s in syns):
                return name
    return None


def map_headers(
    headers: Sequence[Any],
    synonyms: Mapping[str, Sequence[str]] | None = None,
) -> HeaderMap:
    """Map a raw header row to ``{canonical field: column index}``.

    Empty header cells, unmapped headers and canonical fields without a
    column are all legal. When two headers resolve to the same field the
    first column wins.
    """
    table = synonyms if synonyms is not None else build_synonyms()
    header_map: HeaderMap = {}
    for index, raw in enumerate(headers):
        if _is_empty(raw):
            continue
        header = normalize_header(raw)
        if not header:
            continue
        name = _match_field(header, table)
        if name is not None and name not in header_map:
            header_map[name] = index
    return header_map


def get_cell(row: Sequence[Any], header_map: Mapping[str, int], field: str) -> Any:
    """Value of ``field`` in ``row``: trimmed text, a native date, or None.

    None covers an unmapped field, a row shorter than the column index and an
    empty cell. Integral floats render without the trailing ``.0`` that pandas
    adds to integer columns containing blanks.
    """
    index = header_map.get(field)
    if index is None or index >= len(row):
        return None
    value = row[index]
    if _is_empty(value):
        return None
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()
