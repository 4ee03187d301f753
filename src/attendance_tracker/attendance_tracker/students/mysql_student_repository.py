from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewStudent, Student
from .repository import StudentRepository

_STUDENT_COLUMNS = "id, name, roll_number, email, semester_id, created_at, updated_at"


def _to_student(r: Dict[str, Any]) -> Student:
    return Student(
        student_id=int(r["id"]),
        name=r["name"],
        roll_number=r["roll_number"],
        email=r.get("email"),
        semester_id=int(r["semester_id"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_semester(self, semester_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students WHERE semester_id=%s ORDER BY roll_number",
                (int(semester_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def create(self, student: NewStudent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO students(name, roll_number, email, semester_id) VALUES(%s,%s,%s,%s)",
                (student.name, student.roll_number, student.email, int(student.semester_id)),
            )
            return int(cur.lastrowid)

    def create_many(self, students: Sequence[NewStudent]) -> int:
        if not students:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT INTO students(name, roll_number, email, semester_id) VALUES(%s,%s,%s,%s)",
                [(s.name, s.roll_number, s.email, int(s.semester_id)) for s in students],
            )
            return len(students)

    def update(self, student_id: int, student: NewStudent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET name=%s, roll_number=%s, email=%s, semester_id=%s, updated_at=CURRENT_TIMESTAMP
                WHERE id=%s
                """,
                (student.name, student.roll_number, student.email, int(student.semester_id), int(student_id)),
            )
            return cur.rowcount > 0

    def delete(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE id=%s", (int(student_id),))
            return cur.rowcount > 0
