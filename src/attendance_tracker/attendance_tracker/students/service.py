from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_email, require_name, require_non_empty
from ..core.constants import MAX_NAME_LENGTH, MIN_NAME_LENGTH
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..semesters.repository import SemesterRepository
from ..semesters.service import semester_ids_by_name
from ..users.model import SessionUser
from .csv_import import parse_students_csv
from .model import ImportResult, NewStudent, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: roster management (admin) and roster lookups (everyone)."""

    def __init__(self, students: StudentRepository, semesters: SemesterRepository):
        self._students = students
        self._semesters = semesters

    @staticmethod
    def _require_manager(actor: SessionUser) -> None:
        if not actor.can_manage_students():
            raise AuthorizationError("Only administrators can manage students.")

    def _validate(self, *, name: str, roll_number: str, email: Optional[str], semester_id) -> NewStudent:
        name = require_name(name, "Name", min_len=MIN_NAME_LENGTH, max_len=MAX_NAME_LENGTH, field="name")
        roll_number = require_non_empty(roll_number, "Roll number", field="roll_number")
        email_v = optional_email(email)

        try:
            semester_id_i = int(semester_id)
        except (TypeError, ValueError):
            raise ValidationError("Please select a semester.", field="semester_id")
        if not self._semesters.get_by_id(semester_id_i):
            raise ValidationError("Please select a semester.", field="semester_id")

        return NewStudent(name=name, roll_number=roll_number, semester_id=semester_id_i, email=email_v)

    def list_by_semester(self, semester_id: int) -> Sequence[Student]:
        return self._students.list_by_semester(int(semester_id))

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found.")
        return student

    def create(self, actor: SessionUser, *, name: str, roll_number: str, email: Optional[str], semester_id) -> int:
        self._require_manager(actor)
        student = self._validate(name=name, roll_number=roll_number, email=email, semester_id=semester_id)
        return self._students.create(student)

    def update(
        self,
        actor: SessionUser,
        student_id: int,
        *,
        name: str,
        roll_number: str,
        email: Optional[str],
        semester_id,
    ) -> None:
        self._require_manager(actor)
        existing = self.get(student_id)
        student = self._validate(name=name, roll_number=roll_number, email=email, semester_id=semester_id)
        self._students.update(existing.student_id, student)

    def delete(self, actor: SessionUser, student_id: int) -> None:
        """Removes the student and, with it, their attendance rows."""
        self._require_manager(actor)
        if not self._students.delete(int(student_id)):
            raise NotFoundError("Student not found.")

    def import_csv(self, actor: SessionUser, data: bytes) -> ImportResult:
        """Insert every valid row in one call; invalid rows become warnings."""
        self._require_manager(actor)
        if not data:
            raise ValidationError("Please select a CSV file to import.", field="file")
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("The file is not UTF-8 encoded CSV.", field="file")

        parsed = parse_students_csv(text, semester_ids_by_name(self._semesters.list_all()))

        imported = self._students.create_many(parsed.students) if parsed.students else 0
        logger.info("student import: %s imported, %s skipped", imported, parsed.skipped)
        return ImportResult(imported=imported, skipped=parsed.skipped, warnings=list(parsed.warnings))
