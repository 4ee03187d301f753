from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, FrozenSet, List, Optional

from ..core.enums import SlotOwnership
from ..semesters.model import Semester
from ..students.model import Student


@dataclass(frozen=True)
class AttendanceEntry:
    """One stored row, joined with its author for ownership display."""

    record_id: int
    on_date: date
    period: int
    faculty_id: str
    semester_id: int
    student_id: int
    is_present: bool
    faculty_name: Optional[str] = None
    faculty_abbreviation: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def author_tag(self) -> str:
        return self.faculty_abbreviation or self.faculty_name or "another faculty member"


@dataclass(frozen=True)
class NewAttendanceRow:
    student_id: int
    is_present: bool


@dataclass(frozen=True)
class AttendanceReportRow:
    """Flat row consumed by the report aggregator."""

    student_id: int
    student_name: str
    roll_number: str
    semester_name: str
    on_date: date
    period: int
    is_present: bool


@dataclass(frozen=True)
class PeriodStatus:
    period: int
    ownership: SlotOwnership
    author_tag: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.ownership == SlotOwnership.OPEN


@dataclass(frozen=True)
class StudentMark:
    student: Student
    present: bool


@dataclass(frozen=True)
class AttendanceSheet:
    """Everything the attendance page needs for one slot."""

    semester: Semester
    on_date: date
    period: int
    marks: List[StudentMark]
    periods: Dict[int, PeriodStatus]
    locked: bool = False
    message: Optional[str] = None

    @property
    def current(self) -> PeriodStatus:
        return self.periods[self.period]

    @property
    def present_count(self) -> int:
        return sum(1 for m in self.marks if m.present)

    def with_present_ids(self, present_ids) -> "AttendanceSheet":
        marks = [StudentMark(student=m.student, present=m.student.student_id in present_ids) for m in self.marks]
        return replace(self, marks=marks)


@dataclass(frozen=True)
class SubmissionResult:
    stored: int
    present: int
    status: PeriodStatus
    exported: bool = False
    export_error: Optional[str] = None


@dataclass(frozen=True)
class CopyResult:
    present_ids: FrozenSet[int]
    copied: int = 0
    warning: Optional[str] = None


@dataclass(frozen=True)
class DeletionResult:
    deleted: int
    status: PeriodStatus
    warnings: List[str] = field(default_factory=list)
