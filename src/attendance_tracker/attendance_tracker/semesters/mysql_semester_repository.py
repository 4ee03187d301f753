from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Semester
from .repository import SemesterRepository


class MySQLSemesterRepository(SemesterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, created_at FROM semesters ORDER BY id")
            return [
                Semester(semester_id=int(r["id"]), name=r["name"], created_at=r.get("created_at"))
                for r in fetchall(cur)
            ]

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, created_at FROM semesters WHERE id=%s", (int(semester_id),))
            r = fetchone(cur)
            if not r:
                return None
            return Semester(semester_id=int(r["id"]), name=r["name"], created_at=r.get("created_at"))

    def student_counts(self) -> Dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT semester_id, COUNT(*) AS n FROM students GROUP BY semester_id")
            return {int(r["semester_id"]): int(r["n"]) for r in fetchall(cur)}
