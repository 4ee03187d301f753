from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_ACCESS_TOKEN_MINUTES, DEFAULT_EXPORT_TIMEOUT_SECONDS, DEFAULT_RESET_TOKEN_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .integrations.sheets_exporter import SheetsWebhookExporter
from .reports.service import ReportService
from .semesters.mysql_semester_repository import MySQLSemesterRepository
from .semesters.service import SemesterService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    semesters_repo: MySQLSemesterRepository
    students_repo: MySQLStudentRepository
    attendance_repo: MySQLAttendanceRepository

    tokens: TokenService
    sheets_exporter: SheetsWebhookExporter

    auth_service: AuthService
    user_service: UserService
    semester_service: SemesterService
    student_service: StudentService
    attendance_service: AttendanceService
    report_service: ReportService


def build_container(
    *,
    db_config: Mapping[str, object],
    secret_key: str,
    sheets_url: Optional[str] = None,
    export_timeout: float = DEFAULT_EXPORT_TIMEOUT_SECONDS,
    access_ttl_minutes: int = DEFAULT_ACCESS_TOKEN_MINUTES,
    reset_ttl_minutes: int = DEFAULT_RESET_TOKEN_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    users_repo = MySQLUserRepository(conn)
    semesters_repo = MySQLSemesterRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    tokens = TokenService(secret_key, access_ttl_minutes=access_ttl_minutes, reset_ttl_minutes=reset_ttl_minutes)
    sheets_exporter = SheetsWebhookExporter(sheets_url, timeout=export_timeout)

    auth_service = AuthService(users_repo, tokens)
    user_service = UserService(users_repo)
    semester_service = SemesterService(semesters_repo)
    student_service = StudentService(students_repo, semesters_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        students_repo,
        semesters_repo,
        # Submissions only export when a webhook is configured.
        exporter=sheets_exporter if sheets_exporter.configured else None,
    )
    report_service = ReportService(attendance_repo, semesters_repo, students_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        semesters_repo=semesters_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        sheets_exporter=sheets_exporter,
        auth_service=auth_service,
        user_service=user_service,
        semester_service=semester_service,
        student_service=student_service,
        attendance_service=attendance_service,
        report_service=report_service,
    )
