from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NewStudent, Student


class StudentRepository(Protocol):
    def list_by_semester(self, semester_id: int) -> Sequence[Student]:
        """Roster of one semester ordered by roll number."""

        raise NotImplementedError

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def create(self, student: NewStudent) -> int:
        raise NotImplementedError

    def create_many(self, students: Sequence[NewStudent]) -> int:
        """Bulk insert in one statement; returns the number of rows inserted."""

        raise NotImplementedError

    def update(self, student_id: int, student: NewStudent) -> bool:
        raise NotImplementedError

    def delete(self, student_id: int) -> bool:
        raise NotImplementedError
