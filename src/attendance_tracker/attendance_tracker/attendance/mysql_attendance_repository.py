from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_date, db_cursor, fetchall
from .model import AttendanceEntry, AttendanceReportRow, NewAttendanceRow
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_date(self, *, on_date: date, semester_id: int) -> Sequence[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.id, a.`date`, a.period, a.faculty_id, a.semester_id, a.student_id,
                       a.is_present, a.created_at, u.name AS faculty_name, u.abbreviation
                FROM attendance_records a
                LEFT JOIN users u ON u.id = a.faculty_id
                WHERE a.`date`=%s AND a.semester_id=%s
                ORDER BY a.period, a.student_id
                """,
                (on_date, int(semester_id)),
            )
            return [
                AttendanceEntry(
                    record_id=int(r["id"]),
                    on_date=as_date(r["date"]),
                    period=int(r["period"]),
                    faculty_id=str(r["faculty_id"]),
                    semester_id=int(r["semester_id"]),
                    student_id=int(r["student_id"]),
                    is_present=as_bool(r["is_present"]),
                    faculty_name=r.get("faculty_name"),
                    faculty_abbreviation=r.get("abbreviation"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

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
        with db_cursor(self._conn_factory) as (_, cur):
            self._delete(cur, on_date=on_date, period=period, semester_id=semester_id, faculty_id=scope_faculty_id)
            cur.executemany(
                """
                INSERT INTO attendance_records(`date`, period, faculty_id, semester_id, student_id, is_present)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                [(on_date, int(period), faculty_id, int(semester_id), int(r.student_id), 1 if r.is_present else 0) for r in rows],
            )
            return len(rows)

    def delete_slot(self, *, on_date: date, period: int, semester_id: int, faculty_id: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._delete(cur, on_date=on_date, period=period, semester_id=semester_id, faculty_id=faculty_id)

    @staticmethod
    def _delete(cur, *, on_date: date, period: int, semester_id: int, faculty_id: Optional[str]) -> int:
        sql = "DELETE FROM attendance_records WHERE `date`=%s AND period=%s AND semester_id=%s"
        params = [on_date, int(period), int(semester_id)]
        if faculty_id is not None:
            sql += " AND faculty_id=%s"
            params.append(faculty_id)
        cur.execute(sql, tuple(params))
        return int(cur.rowcount or 0)

    def delete_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records")
            return int(cur.rowcount or 0)

    def get_report_rows(
        self,
        *,
        semester_id: int,
        start_date: date,
        end_date: date,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        where = ["a.semester_id=%s", "a.`date` BETWEEN %s AND %s"]
        params = [int(semester_id), start_date, end_date]
        if student_id is not None:
            where.append("a.student_id=%s")
            params.append(int(student_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.student_id, s.name AS student_name, s.roll_number, sem.name AS semester_name,
                       a.`date`, a.period, a.is_present
                FROM attendance_records a
                JOIN students s ON s.id = a.student_id
                JOIN semesters sem ON sem.id = a.semester_id
                WHERE {' AND '.join(where)}
                ORDER BY a.`date`, a.period, s.roll_number
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    roll_number=str(r["roll_number"]),
                    semester_name=r["semester_name"],
                    on_date=as_date(r["date"]),
                    period=int(r["period"]),
                    is_present=as_bool(r["is_present"]),
                )
                for r in fetchall(cur)
            ]
