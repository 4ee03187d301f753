from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import today_local
from ..core.constants import FIRST_PERIOD, LAST_PERIOD, PERIODS
from ..core.enums import SlotOwnership
from ..core.exceptions import AuthorizationError, ExportError, NotFoundError, ValidationError
from ..integrations.sheets_exporter import AttendanceExporter
from ..semesters.model import Semester
from ..semesters.repository import SemesterRepository
from ..students.repository import StudentRepository
from ..users.model import SessionUser
from .model import (
    AttendanceSheet,
    CopyResult,
    DeletionResult,
    NewAttendanceRow,
    PeriodStatus,
    StudentMark,
    SubmissionResult,
)
from .ownership import blocking_message, classify_periods
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _parse_period(period) -> int:
    try:
        value = int(period)
    except (TypeError, ValueError):
        raise ValidationError("Please select a period.", field="period")
    if value not in PERIODS:
        raise ValidationError(f"Period must be between {FIRST_PERIOD} and {LAST_PERIOD}.", field="period")
    return value


def _parse_ids(values: Iterable) -> set:
    out = set()
    for v in values or ():
        try:
            out.add(int(v))
        except (TypeError, ValueError):
            continue
    return out


class AttendanceService:
    """Per-period attendance: ownership gate, replace, copy, delete, export."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        semesters: SemesterRepository,
        *,
        exporter: Optional[AttendanceExporter] = None,
        today: Callable[[], date] = today_local,
    ):
        self._attendance = attendance
        self._students = students
        self._semesters = semesters
        self._exporter = exporter
        self._today = today

    def _semester(self, semester_id) -> Semester:
        try:
            semester = self._semesters.get_by_id(int(semester_id))
        except (TypeError, ValueError):
            semester = None
        if not semester:
            raise NotFoundError("Semester not found.")
        return semester

    def _roster(self, semester: Semester):
        roster = list(self._students.list_by_semester(semester.semester_id))
        if not roster:
            raise ValidationError(f"No students found in {semester.name}.")
        return roster

    def _statuses(self, actor: SessionUser, *, semester_id: int, on_date: date):
        records = self._attendance.list_for_date(on_date=on_date, semester_id=semester_id)
        return records, classify_periods(records, actor.user_id)

    @staticmethod
    def _gate(actor: SessionUser, status: PeriodStatus) -> None:
        if not actor.can_take_attendance():
            raise AuthorizationError("Your account is not allowed to take attendance.")
        if status.ownership == SlotOwnership.TAKEN_BY_OTHER and not actor.can_overwrite_attendance():
            raise AuthorizationError(blocking_message(status))

    def load_sheet(self, actor: SessionUser, *, semester_id, on_date: date, period) -> AttendanceSheet:
        """Roster with checkbox state for one slot; locked when someone else owns it."""
        semester = self._semester(semester_id)
        period_i = _parse_period(period)
        roster = self._roster(semester)

        records, periods = self._statuses(actor, semester_id=semester.semester_id, on_date=on_date)
        stored = {r.student_id: r.is_present for r in records if r.period == period_i}
        status = periods[period_i]

        locked = status.ownership == SlotOwnership.TAKEN_BY_OTHER and not actor.can_overwrite_attendance()
        message = blocking_message(status) if locked else None
        if status.ownership == SlotOwnership.TAKEN_BY_OTHER and not locked:
            message = f"Period {period_i} was taken by {status.author_tag}. Submitting will overwrite it."

        return AttendanceSheet(
            semester=semester,
            on_date=on_date,
            period=period_i,
            marks=[StudentMark(student=s, present=bool(stored.get(s.student_id, False))) for s in roster],
            periods=periods,
            locked=locked,
            message=message,
        )

    def submit(self, actor: SessionUser, *, semester_id, on_date: date, period, present_ids: Iterable) -> SubmissionResult:
        semester = self._semester(semester_id)
        period_i = _parse_period(period)
        roster = self._roster(semester)

        _, periods = self._statuses(actor, semester_id=semester.semester_id, on_date=on_date)
        self._gate(actor, periods[period_i])

        present = _parse_ids(present_ids)
        rows = [NewAttendanceRow(student_id=s.student_id, is_present=s.student_id in present) for s in roster]
        scope = None if actor.can_overwrite_attendance() else actor.user_id

        stored = self._attendance.replace_slot(
            on_date=on_date,
            period=period_i,
            semester_id=semester.semester_id,
            faculty_id=actor.user_id,
            rows=rows,
            scope_faculty_id=scope,
        )
        present_count = sum(1 for r in rows if r.is_present)
        logger.info(
            "attendance stored: semester=%s date=%s period=%s by=%s rows=%s",
            semester.semester_id, on_date.isoformat(), period_i, actor.user_id, stored,
        )

        status = PeriodStatus(period=period_i, ownership=SlotOwnership.TAKEN_BY_ME, author_tag=actor.display_tag)
        result = SubmissionResult(stored=stored, present=present_count, status=status)

        if on_date != self._today() or self._exporter is None:
            return result

        payload = {
            "date": on_date.isoformat(),
            "period": period_i,
            "semesterName": semester.name,
            "facultyName": actor.name,
            "studentsAttendance": [
                {
                    "rollNumber": s.roll_number,
                    "studentName": s.name,
                    "status": "Present" if s.student_id in present else "Absent",
                }
                for s in roster
            ],
        }
        try:
            self._exporter.export_attendance(payload)
        except ExportError as e:
            # The stored rows stay; the failure is only reported.
            logger.warning("attendance export failed: %s", e)
            return SubmissionResult(stored=stored, present=present_count, status=status, export_error=str(e))

        return SubmissionResult(stored=stored, present=present_count, status=status, exported=True)

    def mark_all(self, actor: SessionUser, *, semester_id, on_date: date, period, present: bool) -> AttendanceSheet:
        """Check or clear every box of the sheet in memory. Nothing is stored."""
        sheet = self.load_sheet(actor, semester_id=semester_id, on_date=on_date, period=period)
        self._gate(actor, sheet.current)
        ids = {m.student.student_id for m in sheet.marks} if present else set()
        return sheet.with_present_ids(ids)

    def copy_from_previous_period(
        self,
        actor: SessionUser,
        *,
        semester_id,
        on_date: date,
        period,
        current_present_ids: Iterable,
    ) -> CopyResult:
        """Fill the in-memory checkbox state from period N-1. Nothing is stored."""
        semester = self._semester(semester_id)
        period_i = _parse_period(period)
        current = frozenset(_parse_ids(current_present_ids))

        records, periods = self._statuses(actor, semester_id=semester.semester_id, on_date=on_date)
        self._gate(actor, periods[period_i])

        if period_i == FIRST_PERIOD:
            return CopyResult(present_ids=current, warning="There is no period before period 1 to copy from.")

        previous = [r for r in records if r.period == period_i - 1]
        if not previous:
            return CopyResult(
                present_ids=current,
                warning=f"No attendance found for period {period_i - 1} to copy.",
            )

        roster_ids = {s.student_id for s in self._roster(semester)}
        state = set(current)
        copied = 0
        for r in previous:
            if r.student_id not in roster_ids:
                continue
            copied += 1
            if r.is_present:
                state.add(r.student_id)
            else:
                state.discard(r.student_id)
        return CopyResult(present_ids=frozenset(state), copied=copied)

    def delete_slot(self, actor: SessionUser, *, semester_id, on_date: date, period) -> DeletionResult:
        semester = self._semester(semester_id)
        period_i = _parse_period(period)

        _, periods = self._statuses(actor, semester_id=semester.semester_id, on_date=on_date)
        status = periods[period_i]
        if status.is_open:
            raise ValidationError(f"No attendance recorded for period {period_i}.")
        self._gate(actor, status)

        scope = None if actor.can_overwrite_attendance() else actor.user_id
        deleted = self._attendance.delete_slot(
            on_date=on_date, period=period_i, semester_id=semester.semester_id, faculty_id=scope
        )
        logger.info(
            "attendance deleted: semester=%s date=%s period=%s by=%s rows=%s",
            semester.semester_id, on_date.isoformat(), period_i, actor.user_id, deleted,
        )

        _, after = self._statuses(actor, semester_id=semester.semester_id, on_date=on_date)
        warnings = []
        if not after[period_i].is_open:
            warnings.append(f"Rows recorded by {after[period_i].author_tag} remain for period {period_i}.")
        return DeletionResult(deleted=deleted, status=after[period_i], warnings=warnings)

    def delete_all(self, actor: SessionUser) -> int:
        if not actor.can_delete_all_attendance():
            raise AuthorizationError("Only administrators can delete all attendance.")
        deleted = self._attendance.delete_all()
        logger.warning("all attendance records deleted by %s (%s rows)", actor.user_id, deleted)
        return deleted
