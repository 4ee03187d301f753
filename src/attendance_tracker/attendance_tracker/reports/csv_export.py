from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable

from .model import StudentSummary

SUMMARY_HEADERS = (
    "Roll Number",
    "Student Name",
    "Semester",
    "Total Periods Marked",
    "Periods Present",
    "Total Days Attendance Marked",
    "Days Present",
    "Overall Attendance %",
)


def summary_filename(start_date: date, end_date: date) -> str:
    return f"comprehensive_attendance_report_{start_date.isoformat()}_to_{end_date.isoformat()}.csv"


def write_summary_csv(summaries: Iterable[StudentSummary]) -> str:
    """Every field is quoted; embedded quotes are doubled."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(SUMMARY_HEADERS)
    for s in summaries:
        writer.writerow(
            [
                s.roll_number,
                s.student_name,
                s.semester_name,
                s.periods_marked,
                s.periods_present,
                s.days_marked,
                s.days_present,
                f"{s.percentage}%",
            ]
        )
    return out.getvalue()
