from __future__ import annotations

import pytest

from src.attendance_tracker.attendance_tracker.core.exceptions import ValidationError
from src.attendance_tracker.attendance_tracker.students.csv_import import map_columns, parse_students_csv

SEMESTERS = {"1st semester": 1, "2nd semester": 2}


def test_header_synonyms_are_recognised():
    columns = map_columns(["Student Name", "Roll No", "E-mail", "Semester Name"])

    assert columns == {
        "name": "Student Name",
        "roll_number": "Roll No",
        "email": "E-mail",
        "semester": "Semester Name",
    }


def test_valid_rows_are_parsed_with_semester_ids():
    text = "name,roll_number,email,semester\nAsha,R01,asha@example.com,1st Semester\nBilal,R02,,2ND SEMESTER\n"

    parsed = parse_students_csv(text, SEMESTERS)

    assert [(s.name, s.roll_number, s.email, s.semester_id) for s in parsed.students] == [
        ("Asha", "R01", "asha@example.com", 1),
        ("Bilal", "R02", None, 2),
    ]
    assert parsed.skipped == 0
    assert parsed.warnings == []


def test_unknown_semester_is_skipped_but_other_rows_are_kept():
    text = "Student Name,Roll,Semester\nAsha,R01,1st Semester\nBilal,R02,9th Semester\n"

    parsed = parse_students_csv(text, SEMESTERS)

    assert [s.name for s in parsed.students] == ["Asha"]
    assert parsed.skipped == 1
    assert "Row 3" in parsed.warnings[0]
    assert "9th Semester" in parsed.warnings[0]


def test_rows_missing_required_fields_are_skipped():
    text = "name,roll number,semester\n,R01,1st Semester\nBilal,,1st Semester\n"

    parsed = parse_students_csv(text, SEMESTERS)

    assert parsed.students == []
    assert parsed.skipped == 2


def test_invalid_email_is_skipped():
    text = "name,roll,email,semester\nAsha,R01,not-an-email,1st Semester\n"

    parsed = parse_students_csv(text, SEMESTERS)

    assert parsed.students == []
    assert "invalid email" in parsed.warnings[0]


def test_blank_lines_are_ignored():
    text = "name,roll,semester\nAsha,R01,1st Semester\n,,\n"

    parsed = parse_students_csv(text, SEMESTERS)

    assert len(parsed.students) == 1
    assert parsed.skipped == 0


def test_missing_header_column_is_an_error():
    with pytest.raises(ValidationError) as exc:
        parse_students_csv("name,email\nAsha,a@example.com\n", SEMESTERS)
    assert "roll number" in str(exc.value)
