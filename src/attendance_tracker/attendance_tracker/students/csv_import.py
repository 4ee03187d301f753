"""Parse a student roster CSV.

The header row decides which column is which; several spellings are accepted
for each field. Bad rows are skipped and reported, good rows are kept.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from ..common.validators import optional_email
from ..core.exceptions import ValidationError
from .model import NewStudent

COLUMN_SYNONYMS: Dict[str, tuple] = {
    "name": ("name", "student name", "student_name", "full name"),
    "roll_number": ("roll number", "roll_number", "roll no", "roll no.", "roll"),
    "email": ("email", "email address", "e-mail"),
    "semester": ("semester", "semester name", "semester_name"),
}

REQUIRED_COLUMNS = ("name", "roll_number", "semester")


@dataclass
class ParsedRoster:
    students: List[NewStudent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped: int = 0

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.warnings.append(message)


def _normalize_header(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (value or "").replace("\ufeff", "").strip().lower())


def map_columns(header: List[str]) -> Dict[str, str]:
    """field -> actual header text, for every field the header provides."""
    by_normalized = {_normalize_header(h): h for h in header}
    out: Dict[str, str] = {}
    for field_name, synonyms in COLUMN_SYNONYMS.items():
        for synonym in synonyms:
            if synonym in by_normalized:
                out[field_name] = by_normalized[synonym]
                break
    return out


def parse_students_csv(text: str, semester_ids_by_name: Mapping[str, int]) -> ParsedRoster:
    """``semester_ids_by_name`` keys must already be lower-cased."""
    reader = csv.DictReader(io.StringIO(text))
    columns = map_columns(list(reader.fieldnames or []))
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise ValidationError(
            "CSV header must include name, roll number and semester columns "
            f"(missing: {', '.join(m.replace('_', ' ') for m in missing)})."
        )

    parsed = ParsedRoster()
    for row in reader:
        line = reader.line_num

        def cell(key: str) -> str:
            header = columns.get(key)
            return (row.get(header) or "").strip() if header else ""

        name, roll_number, semester_name = cell("name"), cell("roll_number"), cell("semester")
        if not any(v for v in row.values() if isinstance(v, str) and v.strip()):
            continue
        if not name or not roll_number or not semester_name:
            parsed.skip(f"Row {line}: missing name, roll number or semester; skipped.")
            continue

        semester_id = semester_ids_by_name.get(semester_name.lower())
        if semester_id is None:
            parsed.skip(f"Row {line}: unknown semester '{semester_name}'; skipped.")
            continue

        try:
            email = optional_email(cell("email"))
        except ValidationError:
            parsed.skip(f"Row {line}: invalid email '{cell('email')}'; skipped.")
            continue

        parsed.students.append(NewStudent(name=name, roll_number=roll_number, semester_id=semester_id, email=email))

    return parsed
