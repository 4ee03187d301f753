from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import AttendanceEntry
from src.attendance_tracker.attendance_tracker.attendance.service import AttendanceService
from src.attendance_tracker.attendance_tracker.core.enums import Role, SlotOwnership, UserStatus
from src.attendance_tracker.attendance_tracker.core.exceptions import (
    AuthorizationError,
    ExportError,
    ValidationError,
)
from src.attendance_tracker.attendance_tracker.semesters.model import Semester
from src.attendance_tracker.attendance_tracker.students.model import Student
from src.attendance_tracker.attendance_tracker.users.model import SessionUser

DAY = date(2024, 3, 4)
TODAY = date(2024, 3, 5)


def _actor(user_id: str, *, role: Role = Role.FACULTY, status: UserStatus = UserStatus.ACTIVE, abbr: str = "") -> SessionUser:
    return SessionUser(
        user_id=user_id,
        name=f"User {user_id}",
        email=f"{user_id}@example.com",
        role=role,
        status=status,
        abbreviation=abbr or None,
    )


FACULTY_A = _actor("fac-a", abbr="FA")
FACULTY_B = _actor("fac-b", abbr="FB")
ADMIN = _actor("adm", role=Role.ADMIN, abbr="ADM")


class InMemorySemesters:
    def __init__(self, *semesters: Semester):
        self._by_id = {s.semester_id: s for s in semesters}

    def list_all(self):
        return list(self._by_id.values())

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        return self._by_id.get(semester_id)


class InMemoryStudents:
    def __init__(self, *students: Student):
        self._students = list(students)

    def list_by_semester(self, semester_id: int):
        return sorted((s for s in self._students if s.semester_id == semester_id), key=lambda s: s.roll_number)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return next((s for s in self._students if s.student_id == student_id), None)


class InMemoryAttendance:
    def __init__(self, authors: dict):
        self.rows: list[AttendanceEntry] = []
        self._authors = authors
        self._id = 0

    def _entry(self, *, on_date, period, semester_id, faculty_id, student_id, is_present) -> AttendanceEntry:
        self._id += 1
        name, abbr = self._authors.get(faculty_id, (None, None))
        return AttendanceEntry(
            record_id=self._id,
            on_date=on_date,
            period=period,
            faculty_id=faculty_id,
            semester_id=semester_id,
            student_id=student_id,
            is_present=is_present,
            faculty_name=name,
            faculty_abbreviation=abbr,
        )

    def slot(self, on_date, period, semester_id):
        return [r for r in self.rows if (r.on_date, r.period, r.semester_id) == (on_date, period, semester_id)]

    def list_for_date(self, *, on_date, semester_id):
        return [r for r in self.rows if r.on_date == on_date and r.semester_id == semester_id]

    def replace_slot(self, *, on_date, period, semester_id, faculty_id, rows, scope_faculty_id):
        self.delete_slot(on_date=on_date, period=period, semester_id=semester_id, faculty_id=scope_faculty_id)
        for r in rows:
            self.rows.append(
                self._entry(
                    on_date=on_date,
                    period=period,
                    semester_id=semester_id,
                    faculty_id=faculty_id,
                    student_id=r.student_id,
                    is_present=r.is_present,
                )
            )
        return len(rows)

    def delete_slot(self, *, on_date, period, semester_id, faculty_id):
        keep, gone = [], 0
        for r in self.rows:
            hit = (r.on_date, r.period, r.semester_id) == (on_date, period, semester_id)
            if hit and (faculty_id is None or r.faculty_id == faculty_id):
                gone += 1
            else:
                keep.append(r)
        self.rows = keep
        return gone

    def delete_all(self):
        n = len(self.rows)
        self.rows = []
        return n

    def seed(self, *, period, faculty_id, present, on_date=DAY, semester_id=1):
        for student_id, is_present in present.items():
            self.rows.append(
                self._entry(
                    on_date=on_date,
                    period=period,
                    semester_id=semester_id,
                    faculty_id=faculty_id,
                    student_id=student_id,
                    is_present=is_present,
                )
            )


class RecordingExporter:
    def __init__(self, *, fail: bool = False):
        self.payloads = []
        self._fail = fail

    def export_attendance(self, payload):
        self.payloads.append(payload)
        if self._fail:
            raise ExportError("Failed to export to Google Sheet: 500 - boom")
        return {"status": "ok"}


@pytest.fixture()
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance(
        {
            "fac-a": ("User fac-a", "FA"),
            "fac-b": ("User fac-b", "FB"),
            "adm": ("User adm", "ADM"),
        }
    )


def _service(attendance, *, exporter=None, students=None) -> AttendanceService:
    if students is None:
        students = InMemoryStudents(
            Student(1, "Asha", "R01", None, 1),
            Student(2, "Bilal", "R02", None, 1),
            Student(3, "Chen", "R03", None, 1),
            Student(9, "Other", "X01", None, 2),
        )
    return AttendanceService(
        attendance,
        students,
        InMemorySemesters(Semester(1, "1st Semester"), Semester(2, "2nd Semester"), Semester(3, "Empty")),
        exporter=exporter,
        today=lambda: TODAY,
    )


def test_submit_stores_one_row_per_roster_student(attendance):
    svc = _service(attendance)

    result = svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=2, present_ids=["1", "3"])

    rows = attendance.slot(DAY, 2, 1)
    assert result.stored == 3
    assert result.present == 2
    assert {r.student_id: r.is_present for r in rows} == {1: True, 2: False, 3: True}
    assert {r.faculty_id for r in rows} == {"fac-a"}
    assert result.status.ownership == SlotOwnership.TAKEN_BY_ME


def test_resubmitting_replaces_rows_instead_of_duplicating(attendance):
    svc = _service(attendance)

    svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=1, present_ids=[1])
    svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=1, present_ids=[1, 2, 3])

    rows = attendance.slot(DAY, 1, 1)
    assert len(rows) == 3
    assert all(r.is_present for r in rows)


def test_present_ids_outside_roster_are_ignored(attendance):
    svc = _service(attendance)

    result = svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=1, present_ids=["9", "abc", 2])

    assert result.present == 1
    assert 9 not in {r.student_id for r in attendance.slot(DAY, 1, 1)}


def test_faculty_cannot_submit_slot_taken_by_other(attendance):
    attendance.seed(period=3, faculty_id="fac-b", present={1: True, 2: True, 3: True})
    before = list(attendance.rows)
    svc = _service(attendance)

    with pytest.raises(AuthorizationError) as exc:
        svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=3, present_ids=[])

    assert "FB" in str(exc.value)
    assert attendance.rows == before


def test_admin_overwrites_slot_taken_by_other(attendance):
    attendance.seed(period=3, faculty_id="fac-b", present={1: True, 2: True, 3: True})
    svc = _service(attendance)

    svc.submit(ADMIN, semester_id=1, on_date=DAY, period=3, present_ids=[2])

    rows = attendance.slot(DAY, 3, 1)
    assert len(rows) == 3
    assert {r.faculty_id for r in rows} == {"adm"}
    assert [r.student_id for r in rows if r.is_present] == [2]


def test_inactive_account_cannot_submit(attendance):
    svc = _service(attendance)
    pending = _actor("fac-p", status=UserStatus.PENDING)

    with pytest.raises(AuthorizationError):
        svc.submit(pending, semester_id=1, on_date=DAY, period=1, present_ids=[])
    assert attendance.rows == []


@pytest.mark.parametrize("period", [0, 7, "x", None])
def test_period_outside_range_is_rejected(attendance, period):
    svc = _service(attendance)
    with pytest.raises(ValidationError):
        svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=period, present_ids=[])


def test_empty_roster_is_rejected(attendance):
    svc = _service(attendance)
    with pytest.raises(ValidationError):
        svc.submit(FACULTY_A, semester_id=3, on_date=DAY, period=1, present_ids=[])


def test_load_sheet_prefills_and_locks_for_other_owner(attendance):
    attendance.seed(period=2, faculty_id="fac-b", present={1: True, 2: False, 3: True})
    attendance.seed(period=1, faculty_id="fac-a", present={1: False, 2: True, 3: False})
    svc = _service(attendance)

    sheet = svc.load_sheet(FACULTY_A, semester_id=1, on_date=DAY, period=2)

    assert sheet.locked is True
    assert "FB" in sheet.message
    assert [m.present for m in sheet.marks] == [True, False, True]
    assert sheet.periods[1].ownership == SlotOwnership.TAKEN_BY_ME
    assert sheet.periods[2].ownership == SlotOwnership.TAKEN_BY_OTHER
    assert sheet.periods[4].ownership == SlotOwnership.OPEN


def test_load_sheet_for_admin_is_not_locked(attendance):
    attendance.seed(period=2, faculty_id="fac-b", present={1: True, 2: True, 3: True})
    svc = _service(attendance)

    sheet = svc.load_sheet(ADMIN, semester_id=1, on_date=DAY, period=2)

    assert sheet.locked is False
    assert sheet.message is not None


def test_copy_without_previous_records_keeps_state_and_warns(attendance):
    svc = _service(attendance)

    result = svc.copy_from_previous_period(
        FACULTY_A, semester_id=1, on_date=DAY, period=4, current_present_ids=["2"]
    )

    assert result.present_ids == frozenset({2})
    assert result.copied == 0
    assert "period 3" in result.warning
    assert attendance.rows == []


def test_copy_from_first_period_warns(attendance):
    svc = _service(attendance)

    result = svc.copy_from_previous_period(FACULTY_A, semester_id=1, on_date=DAY, period=1, current_present_ids=[])

    assert result.warning
    assert result.present_ids == frozenset()


def test_copy_takes_previous_period_values_without_storing(attendance):
    attendance.seed(period=1, faculty_id="fac-b", present={1: True, 2: False, 3: True})
    stored_before = len(attendance.rows)
    svc = _service(attendance)

    result = svc.copy_from_previous_period(
        FACULTY_A, semester_id=1, on_date=DAY, period=2, current_present_ids=[2]
    )

    assert result.warning is None
    assert result.copied == 3
    assert result.present_ids == frozenset({1, 3})
    assert len(attendance.rows) == stored_before


def test_delete_removes_own_rows_and_reopens_slot(attendance):
    attendance.seed(period=5, faculty_id="fac-a", present={1: True, 2: True, 3: False})
    attendance.seed(period=6, faculty_id="fac-a", present={1: True, 2: True, 3: False})
    svc = _service(attendance)

    result = svc.delete_slot(FACULTY_A, semester_id=1, on_date=DAY, period=5)

    assert result.deleted == 3
    assert result.status.ownership == SlotOwnership.OPEN
    assert attendance.slot(DAY, 5, 1) == []
    assert len(attendance.slot(DAY, 6, 1)) == 3


def test_faculty_cannot_delete_slot_taken_by_other(attendance):
    attendance.seed(period=5, faculty_id="fac-b", present={1: True, 2: True, 3: False})
    svc = _service(attendance)

    with pytest.raises(AuthorizationError):
        svc.delete_slot(FACULTY_A, semester_id=1, on_date=DAY, period=5)
    assert len(attendance.slot(DAY, 5, 1)) == 3


def test_admin_delete_removes_every_author(attendance):
    attendance.seed(period=5, faculty_id="fac-b", present={1: True, 2: True, 3: False})
    svc = _service(attendance)

    result = svc.delete_slot(ADMIN, semester_id=1, on_date=DAY, period=5)

    assert result.deleted == 3
    assert result.status.is_open


def test_deleting_open_slot_is_rejected(attendance):
    svc = _service(attendance)
    with pytest.raises(ValidationError):
        svc.delete_slot(FACULTY_A, semester_id=1, on_date=DAY, period=5)


def test_delete_all_requires_admin(attendance):
    attendance.seed(period=1, faculty_id="fac-a", present={1: True})
    svc = _service(attendance)

    with pytest.raises(AuthorizationError):
        svc.delete_all(FACULTY_A)
    assert svc.delete_all(ADMIN) == 1
    assert attendance.rows == []


def test_submission_for_today_is_exported(attendance):
    exporter = RecordingExporter()
    svc = _service(attendance, exporter=exporter)

    result = svc.submit(FACULTY_A, semester_id=1, on_date=TODAY, period=1, present_ids=[1])

    assert result.exported is True
    payload = exporter.payloads[0]
    assert payload["date"] == "2024-03-05"
    assert payload["semesterName"] == "1st Semester"
    assert payload["facultyName"] == "User fac-a"
    assert [s["status"] for s in payload["studentsAttendance"]] == ["Present", "Absent", "Absent"]


def test_export_failure_is_reported_and_rows_are_kept(attendance):
    svc = _service(attendance, exporter=RecordingExporter(fail=True))

    result = svc.submit(FACULTY_A, semester_id=1, on_date=TODAY, period=1, present_ids=[1])

    assert result.exported is False
    assert "500" in result.export_error
    assert len(attendance.slot(TODAY, 1, 1)) == 3


def test_past_dates_are_not_exported(attendance):
    exporter = RecordingExporter()
    svc = _service(attendance, exporter=exporter)

    result = svc.submit(FACULTY_A, semester_id=1, on_date=DAY, period=1, present_ids=[])

    assert exporter.payloads == []
    assert result.exported is False
    assert result.export_error is None


def test_mark_all_present_checks_every_roster_student_without_storing(attendance):
    svc = _service(attendance)

    sheet = svc.mark_all(FACULTY_A, semester_id=1, on_date=DAY, period=3, present=True)

    assert [m.present for m in sheet.marks] == [True, True, True]
    assert sheet.present_count == 3
    assert attendance.rows == []


def test_mark_all_absent_clears_prefilled_marks(attendance):
    attendance.seed(period=2, faculty_id="fac-a", present={1: True, 2: True, 3: False})
    svc = _service(attendance)

    sheet = svc.mark_all(FACULTY_A, semester_id=1, on_date=DAY, period=2, present=False)

    assert sheet.present_count == 0
    assert len(attendance.slot(DAY, 2, 1)) == 3


def test_mark_all_is_blocked_on_slot_taken_by_other(attendance):
    attendance.seed(period=2, faculty_id="fac-b", present={1: False, 2: False, 3: False})
    svc = _service(attendance)

    with pytest.raises(AuthorizationError):
        svc.mark_all(FACULTY_A, semester_id=1, on_date=DAY, period=2, present=True)
