from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Orphan record models produced by the row parser.

A ParsedRecord is built once per valid spreadsheet row and never mutated
afterwards. The nested FamilyInfo / EducationInfo blocks are only attached when
the sheet supplied at least one of their identifying fields.
"""

__all__ = [
    "CanonicalDate",
    "FamilyInfo",
    "EducationInfo",
    "ParsedRecord",
]

# YYYY-MM-DD, year in [1900, 2100]
CanonicalDate = str


@dataclass(frozen=True)
class FamilyInfo:
    """Family block (present iff father, mother or guardian name was given)."""
    father_name: str = ""
    father_date_of_death: CanonicalDate | None = None
    mother_name: str = ""
    mother_status: str = ""
    mother_date_of_death: CanonicalDate | None = None
    guardian_name: str = ""
    relation_to_orphan: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "fatherName": self.father_name,
            "fatherDateOfDeath": self.father_date_of_death,
            "motherName": self.mother_name,
            "motherStatus": self.mother_status,
            "motherDateOfDeath": self.mother_date_of_death,
            "guardianName": self.guardian_name,
            "relationToOrphan": self.relation_to_orphan,
        }


@dataclass(frozen=True)
class EducationInfo:
    """Education block (present iff school name or grade level was given)."""
    school_name: str = ""
    grade_level: str = ""
    favorite_subject: str = ""
    school_performance: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "schoolName": self.school_name,
            "gradeLevel": self.grade_level,
            "favoriteSubject": self.favorite_subject,
            "schoolPerformance": self.school_performance,
        }


@dataclass(frozen=True)
class ParsedRecord:
    """Canonicalized beneficiary record for one spreadsheet row.

    Required fields are always non-empty; optional top-level text fields
    default to the empty string.
    """
    orphan_id: str
    first_name: str
    last_name: str
    dob: CanonicalDate
    place_of_birth: str = ""
    gender: str = ""
    location: str = ""
    country: str = ""
    health_status: str = ""
    special_needs: str = ""
    family: FamilyInfo | None = None
    education: EducationInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase payload expected by the remote record store."""
        payload: dict[str, Any] = {
            "orphanId": self.orphan_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dob": self.dob,
            "placeOfBirth": self.place_of_birth,
            "gender": self.gender,
            "location": self.location,
            "country": self.country,
            "healthStatus": self.health_status,
            "specialNeeds": self.special_needs,
        }
        if self.family is not None:
            payload["familyInformation"] = self.family.to_dict()
        if self.education is not None:
            payload["education"] = self.education.to_dict()
        return payload
