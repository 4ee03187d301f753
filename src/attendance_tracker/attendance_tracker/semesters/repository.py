from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

from .model import Semester


class SemesterRepository(Protocol):
    def list_all(self) -> Sequence[Semester]:
        """Semesters ordered by id."""

        raise NotImplementedError

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        raise NotImplementedError

    def student_counts(self) -> Dict[int, int]:
        """semester_id -> number of students on the roster."""

        raise NotImplementedError
