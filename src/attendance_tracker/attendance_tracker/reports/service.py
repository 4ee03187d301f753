from __future__ import annotations

import logging
from datetime import date
from typing import Tuple

from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceTier
from ..core.exceptions import NotFoundError, ValidationError
from ..semesters.model import Semester
from ..semesters.repository import SemesterRepository
from ..students.repository import StudentRepository
from .aggregator import build_student_matrix, daily_overview, summarize_by_student
from .csv_export import summary_filename, write_summary_csv
from .model import StudentReport, SummaryReport

logger = logging.getLogger(__name__)

TIER_BADGES = {
    AttendanceTier.GOOD: "bg-success",
    AttendanceTier.WARNING: "bg-warning text-dark",
    AttendanceTier.CRITICAL: "bg-danger",
}


def badge_class(tier: AttendanceTier) -> str:
    return TIER_BADGES[tier]


def _check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("Start date must not be after end date.", field="start")


class ReportService:
    def __init__(self, attendance: AttendanceRepository, semesters: SemesterRepository, students: StudentRepository):
        self._attendance = attendance
        self._semesters = semesters
        self._students = students

    def _semester(self, semester_id) -> Semester:
        try:
            semester = self._semesters.get_by_id(int(semester_id))
        except (TypeError, ValueError):
            semester = None
        if not semester:
            raise NotFoundError("Semester not found.")
        return semester

    def summary_report(self, *, semester_id, start_date: date, end_date: date) -> SummaryReport:
        _check_range(start_date, end_date)
        semester = self._semester(semester_id)
        rows = list(
            self._attendance.get_report_rows(
                semester_id=semester.semester_id, start_date=start_date, end_date=end_date
            )
        )
        return SummaryReport(
            semester=semester,
            start_date=start_date,
            end_date=end_date,
            students=summarize_by_student(rows),
            daily=daily_overview(rows),
        )

    def student_report(self, *, semester_id, student_id, start_date: date, end_date: date) -> StudentReport:
        _check_range(start_date, end_date)
        semester = self._semester(semester_id)
        try:
            student = self._students.get_by_id(int(student_id))
        except (TypeError, ValueError):
            student = None
        if not student or student.semester_id != semester.semester_id:
            raise NotFoundError("Student not found.")

        rows = self._attendance.get_report_rows(
            semester_id=semester.semester_id,
            start_date=start_date,
            end_date=end_date,
            student_id=student.student_id,
        )
        return StudentReport(
            semester=semester,
            student=student,
            start_date=start_date,
            end_date=end_date,
            matrix=build_student_matrix(rows),
        )

    def export_csv(self, *, semester_id, start_date: date, end_date: date) -> Tuple[str, str]:
        """(filename, csv text) for the summary report."""
        report = self.summary_report(semester_id=semester_id, start_date=start_date, end_date=end_date)
        if report.is_empty:
            raise ValidationError("No Data to Export: there is no attendance in the selected range.")
        logger.info("report export: semester=%s rows=%s", report.semester.semester_id, len(report.students))
        return summary_filename(start_date, end_date), write_summary_csv(report.students)
