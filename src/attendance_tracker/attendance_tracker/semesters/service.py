from __future__ import annotations

from typing import Dict, Iterable, Sequence

from ..core.exceptions import NotFoundError
from .model import Semester, SemesterCard
from .repository import SemesterRepository


def semester_ids_by_name(semesters: Iterable[Semester]) -> Dict[str, int]:
    """Case-insensitive name -> id map; keys are stripped and lower-cased."""
    return {s.name.strip().lower(): s.semester_id for s in semesters}


class SemesterService:
    def __init__(self, semesters: SemesterRepository):
        self._semesters = semesters

    def list_all(self) -> Sequence[Semester]:
        return self._semesters.list_all()

    def get(self, semester_id: int) -> Semester:
        semester = self._semesters.get_by_id(int(semester_id))
        if not semester:
            raise NotFoundError("Semester not found.")
        return semester

    def dashboard_cards(self) -> Sequence[SemesterCard]:
        counts = self._semesters.student_counts()
        return [
            SemesterCard(semester_id=s.semester_id, name=s.name, student_count=counts.get(s.semester_id, 0))
            for s in self._semesters.list_all()
        ]
