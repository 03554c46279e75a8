from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from openpyxl.utils import get_column_letter

"""Blank import template for case sheets.

The template is the sheet operators fill in and hand back to the importer:
one header row whose labels all resolve through the header mapper, followed
by example rows. A second worksheet lists every column with its meaning and
the accepted date formats. The importer only reads the first worksheet, so
the instructions never end up as data.
"""

__all__ = [
    "TemplateColumn",
    "ORPHAN_TEMPLATE",
    "EXAMPLE_ROWS",
    "SUPPORTED_DATE_FORMATS",
    "TEMPLATE_SHEET",
    "INSTRUCTIONS_SHEET",
    "DEFAULT_TEMPLATE_NAME",
    "template_headers",
    "build_template",
    "write_template",
]

TEMPLATE_SHEET = "Orphan Template"
INSTRUCTIONS_SHEET = "Instructions"
DEFAULT_TEMPLATE_NAME = "orphan_upload_template.xlsx"


@dataclass(frozen=True)
class TemplateColumn:
    header: str
    field: str  # canonical field the header maps to
    description: str
    example: str
    required: bool = False
    width: int = 15


ORPHAN_TEMPLATE: tuple[TemplateColumn, ...] = (
    TemplateColumn("Orphan ID", "orphanId", "Unique identifier for the orphan", "ORF001", True, 12),
    TemplateColumn("First Name", "firstName", "Orphan's first name", "Ahmed", True),
    TemplateColumn("Last Name", "lastName", "Orphan's last name", "Hassan", True),
    TemplateColumn(
        "Date of Birth", "dob",
        "Birth date, see the supported date formats below",
        "2015-03-15 or 15/03/2015 or 03/15/2015", True,
    ),
    TemplateColumn("Place of Birth", "placeOfBirth", "Where the orphan was born", "Cairo, Egypt", width=20),
    TemplateColumn("Gender", "gender", "Male or Female", "Male", width=10),
    TemplateColumn("Location", "location", "Current location/address", "Alexandria, Egypt", width=20),
    TemplateColumn("Country", "country", "Country of residence", "Egypt"),
    TemplateColumn("Health Status", "healthStatus", "General health condition", "Good"),
    TemplateColumn("Special Needs", "specialNeeds", "Any special medical or care needs", "None", width=20),
    TemplateColumn(
        "Photo", "photo",
        "Link to the photo (direct image URL, Google Drive, Google Photos or Dropbox)",
        "https://drive.google.com/file/d/<file id>/view", width=30,
    ),
    TemplateColumn("Father Name", "fatherName", "Father's full name", "Mohamed Hassan", width=20),
    TemplateColumn("Father Death Date", "fatherDateOfDeath", "Date of father's death", "2020-01-15 or 15/01/2020"),
    TemplateColumn("Mother Name", "motherName", "Mother's full name", "Fatima Hassan", width=20),
    TemplateColumn("Mother Status", "motherStatus", "Mother's current status", "Deceased"),
    TemplateColumn("Mother Death Date", "motherDateOfDeath", "Date of mother's death", "2021-05-20 or 20/05/2021"),
    TemplateColumn("Guardian Name", "guardianName", "Current guardian's name", "Uncle Ali Hassan", width=20),
    TemplateColumn("Relation to Orphan", "relationToOrphan", "Guardian's relationship to orphan", "Uncle"),
    TemplateColumn("School Name", "schoolName", "Name of school currently attending", "Al-Noor Primary School", width=25),
    TemplateColumn("Grade Level", "gradeLevel", "Current grade or class level", "Grade 5", width=12),
    TemplateColumn("Favorite Subject", "favoriteSubject", "Orphan's favorite school subject", "Mathematics", width=18),
    TemplateColumn("School Performance", "schoolPerformance", "Academic performance level", "Good", width=18),
)

# one entry per ORPHAN_TEMPLATE column, in the same order
EXAMPLE_ROWS: tuple[tuple[str, ...], ...] = (
    (
        "ORF001", "Ahmed", "Hassan", "2015-03-15", "Cairo, Egypt", "Male", "Alexandria, Egypt",
        "Egypt", "Good", "", "", "Mohamed Hassan", "2020-01-15", "Fatima Hassan", "Deceased",
        "2021-05-20", "Uncle Ali Hassan", "Uncle", "Al-Noor Primary School", "Grade 5",
        "Mathematics", "Good",
    ),
    (
        "ORF002", "Aisha", "Ali", "23/03/2016", "Giza, Egypt", "Female", "Cairo, Egypt",
        "Egypt", "Excellent", "", "", "Omar Ali", "15/01/2019", "Maryam Ali", "Alive",
        "", "Grandmother Khadija", "Grandmother", "Future Stars School", "Grade 4",
        "Arabic", "Excellent",
    ),
    (
        "ORF003", "Yusuf", "Mohamed", "02/28/2017", "Luxor, Egypt", "Male", "Aswan, Egypt",
        "Egypt", "Good", "Hearing aid required", "", "Ibrahim Mohamed", "2018-12-10",
        "Zahra Mohamed", "Deceased", "03/15/2020", "Aunt Safiya", "Aunt", "Hope Academy",
        "Grade 3", "Art", "Good",
    ),
)

SUPPORTED_DATE_FORMATS: tuple[str, ...] = (
    "YYYY-MM-DD (e.g., 2025-01-10)",
    "DD/MM/YYYY (e.g., 23/01/2025)",
    "MM/DD/YYYY (e.g., 01/23/2025)",
    "YYYY/MM/DD (e.g., 2025/01/10)",
    "DD-MM-YYYY (e.g., 23-01-2025)",
    "MM-DD-YYYY (e.g., 01-23-2025)",
    "DD.MM.YYYY (e.g., 23.01.2025)",
    "Spelled out (e.g., 10 January 2025)",
    "Ambiguous slash and dotted dates (10/01/2025) are read month first, ambiguous dash dates (10-01-2025) day first",
)


def template_headers() -> list[str]:
    return [c.header for c in ORPHAN_TEMPLATE]


def build_template() -> bytes:
    """Render the template workbook (.xlsx) into memory."""
    data = pd.DataFrame([list(r) for r in EXAMPLE_ROWS], columns=template_headers())
    instructions = pd.DataFrame(
        [
            [c.header, "yes" if c.required else "no", c.description, c.example]
            for c in ORPHAN_TEMPLATE
        ],
        columns=["Column", "Required", "Description", "Example"],
    )
    formats = pd.DataFrame({"Supported date formats": list(SUPPORTED_DATE_FORMATS)})

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        data.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        instructions.to_excel(writer, sheet_name=INSTRUCTIONS_SHEET, index=False)
        formats.to_excel(
            writer, sheet_name=INSTRUCTIONS_SHEET, index=False, startrow=len(instructions) + 2
        )

        sheet = writer.sheets[TEMPLATE_SHEET]
        for i, column in enumerate(ORPHAN_TEMPLATE, start=1):
            sheet.column_dimensions[get_column_letter(i)].width = column.width
        notes = writer.sheets[INSTRUCTIONS_SHEET]
        for letter, width in zip("ABCD", (20, 10, 60, 40)):
            notes.column_dimensions[letter].width = width
    return buf.getvalue()


def write_template(path: Path) -> Path:
    """Write the template to ``path`` (a directory gets the default file name)."""
    if path.is_dir():
        path = path / DEFAULT_TEMPLATE_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_template())
    return path
