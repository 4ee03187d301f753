from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceEntry, AttendanceReportRow, NewAttendanceRow


class AttendanceRepository(Protocol):
    def list_for_date(self, *, on_date: date, semester_id: int) -> Sequence[AttendanceEntry]:
        """All periods of one day for one semester, with author names."""

        raise NotImplementedError

    def replace_slot(
        self,
        *,
        on_date: date,
        period: int,
        semester_id: int,
        faculty_id: str,
        rows: Sequence[NewAttendanceRow],
        scope_faculty_id: Optional[str],
    ) -> int:
        """Delete the slot's rows then insert ``rows``, as one transaction.

        ``scope_faculty_id`` limits the delete to that author's rows; None
        deletes every author's rows.
        """

        raise NotImplementedError

    def delete_slot(self, *, on_date: date, period: int, semester_id: int, faculty_id: Optional[str]) -> int:
        raise NotImplementedError

    def delete_all(self) -> int:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        semester_id: int,
        start_date: date,
        end_date: date,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
