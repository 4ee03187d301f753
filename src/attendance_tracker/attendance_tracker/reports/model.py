from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from ..core.enums import AttendanceTier
from ..semesters.model import Semester
from ..students.model import Student


@dataclass(frozen=True)
class StudentSummary:
    student_id: int
    student_name: str
    roll_number: str
    semester_name: str
    periods_marked: int
    periods_present: int
    days_marked: int
    days_present: int
    percentage: int
    tier: AttendanceTier


@dataclass(frozen=True)
class MatrixDay:
    """One date of a student's matrix.

    ``cells`` maps every period to True/False, or None when that period was
    not marked for the student.
    """

    on_date: date
    cells: Dict[int, Optional[bool]]
    marked: int
    present: int
    percentage: int


@dataclass(frozen=True)
class StudentMatrix:
    days: List[MatrixDay] = field(default_factory=list)
    periods_marked: int = 0
    periods_present: int = 0
    days_marked: int = 0
    days_present: int = 0
    percentage: int = 0
    tier: AttendanceTier = AttendanceTier.CRITICAL


@dataclass(frozen=True)
class DailyOverview:
    on_date: date
    present: int
    absent: int

    @property
    def total(self) -> int:
        return self.present + self.absent


@dataclass(frozen=True)
class SummaryReport:
    semester: Semester
    start_date: date
    end_date: date
    students: List[StudentSummary]
    daily: List[DailyOverview]

    @property
    def is_empty(self) -> bool:
        return not self.students


@dataclass(frozen=True)
class StudentReport:
    semester: Semester
    student: Student
    start_date: date
    end_date: date
    matrix: StudentMatrix
