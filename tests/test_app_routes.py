from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import AttendanceEntry, AttendanceReportRow
from src.attendance_tracker.attendance_tracker.core.enums import Role, UserStatus
from src.attendance_tracker.attendance_tracker.main import create_app
from src.attendance_tracker.attendance_tracker.semesters.model import Semester
from src.attendance_tracker.attendance_tracker.students.model import Student
from src.attendance_tracker.attendance_tracker.users.model import User


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.extensions["attendance_tracker"]


def _account(role: str = "faculty", status: str = "active") -> User:
    return User(
        user_id="u-1",
        name="Dr. Rao",
        email="rao@example.com",
        password_hash="x",
        role=Role(role),
        status=UserStatus(status),
        abbreviation="RAO",
    )


def _login_as(client, monkeypatch, container, role: str, *, stored: Optional[User] = None) -> None:
    """Seed a session for ``role``; ``stored`` is what the account lookup returns now."""
    with client.session_transaction() as sess:
        sess.update(
            {
                "user_id": "u-1",
                "name": "Dr. Rao",
                "email": "rao@example.com",
                "role": role,
                "status": "active",
                "abbreviation": "RAO",
            }
        )
    account = stored if stored is not None else _account(role)
    monkeypatch.setattr(container.users_repo, "get_by_id", lambda user_id: account if user_id == account.user_id else None)


def _flashes(client):
    with client.session_transaction() as sess:
        return [message for _category, message in sess.get("_flashes", [])]


def test_index_redirects_to_login(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")


@pytest.mark.parametrize("path", ["/dashboard", "/reports", "/students", "/attendance/1", "/faculty"])
def test_protected_pages_redirect_to_login(client, path):
    resp = client.get(path)
    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]


def test_login_page_renders(client):
    resp = client.get("/login")
    assert resp.status_code == 200
    assert b"Forgot password?" in resp.data


def test_unknown_path_renders_not_found_page(client):
    resp = client.get("/no-such-page")
    assert resp.status_code == 404
    assert b"Page not found" in resp.data


def test_faculty_pages_are_forbidden_for_faculty(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    resp = client.get("/faculty")
    assert resp.status_code == 403


def test_function_endpoint_rejects_bad_body(client):
    resp = client.post("/functions/admin-update-user-password", data="not json", content_type="application/json")
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_function_endpoints_require_bearer_token(client):
    resp = client.post("/functions/admin-update-user-password", json={"userId": "x", "newPassword": "secret1"})
    assert resp.status_code == 401

    resp = client.post("/functions/export-attendance-to-sheets", json={"date": "2024-01-01"})
    assert resp.status_code == 401


def test_student_report_is_password_gated(client):
    resp = client.get("/student-report")
    assert resp.status_code == 200
    assert b"Access password" in resp.data

    resp = client.post("/student-report", data={"access_password": "wrong"})
    assert b"Incorrect access password." in resp.data

    resp = client.post("/student-report", data={"access_password": "student-pass"})
    assert resp.status_code == 302
    with client.session_transaction() as sess:
        assert sess["student_report_access"] is True


def test_demoted_admin_loses_admin_pages_on_next_request(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "admin", stored=_account("faculty"))

    resp = client.get("/faculty")

    assert resp.status_code == 403
    with client.session_transaction() as sess:
        assert sess["role"] == "faculty"


def test_deactivated_account_is_logged_out_on_next_request(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "admin", stored=_account("admin", "inactive"))

    resp = client.get("/faculty")

    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]
    with client.session_transaction() as sess:
        assert "user_id" not in sess


def _attendance_fixtures(monkeypatch, container, *, records=()):
    semester = Semester(1, "1st Semester")
    roster = [Student(1, "Asha", "R01", None, 1), Student(2, "Bilal", "R02", None, 1), Student(3, "Chen", "R03", None, 1)]
    monkeypatch.setattr(container.semesters_repo, "get_by_id", lambda semester_id: semester if semester_id == 1 else None)
    monkeypatch.setattr(container.students_repo, "list_by_semester", lambda semester_id: roster)
    monkeypatch.setattr(container.attendance_repo, "list_for_date", lambda **kw: list(records))


def test_mark_all_present_rerenders_every_box_checked(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    _attendance_fixtures(monkeypatch, container)

    resp = client.post("/attendance/1/mark-all", data={"date": "2024-03-04", "period": "2", "mark": "present"})

    assert resp.status_code == 200
    assert b"3 of 3 marked present." in resp.data
    assert b"Mark all absent" in resp.data


def test_mark_all_on_slot_of_other_faculty_is_refused(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    taken = [
        AttendanceEntry(
            record_id=1,
            on_date=date(2024, 3, 4),
            period=2,
            faculty_id="other",
            semester_id=1,
            student_id=1,
            is_present=True,
            faculty_name="Dr. Iyer",
            faculty_abbreviation="IYR",
        )
    ]
    _attendance_fixtures(monkeypatch, container, records=taken)

    resp = client.post("/attendance/1/mark-all", data={"date": "2024-03-04", "period": "2", "mark": "present"})

    assert resp.status_code == 302
    assert any("IYR" in m for m in _flashes(client))


def test_csv_export_without_semesters_flashes_instead_of_failing(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    monkeypatch.setattr(container.semesters_repo, "list_all", lambda: [])

    resp = client.get("/reports.csv?start=2024-03-01&end=2024-03-31")

    assert resp.status_code == 302
    assert _flashes(client) == ["Semester not found."]


def test_csv_export_of_empty_range_flashes_no_data(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    monkeypatch.setattr(container.semesters_repo, "get_by_id", lambda semester_id: Semester(1, "1st Semester"))
    monkeypatch.setattr(container.attendance_repo, "get_report_rows", lambda **kw: [])

    resp = client.get("/reports.csv?semester_id=1&start=2024-03-01&end=2024-03-31")

    assert resp.status_code == 302
    assert any(m.startswith("No Data to Export") for m in _flashes(client))


def test_csv_export_downloads_named_file(client, monkeypatch, container):
    _login_as(client, monkeypatch, container, "faculty")
    rows = [
        AttendanceReportRow(1, "Asha", "R01", "1st Semester", date(2024, 3, 4), 1, True),
        AttendanceReportRow(1, "Asha", "R01", "1st Semester", date(2024, 3, 4), 2, False),
    ]
    monkeypatch.setattr(container.semesters_repo, "get_by_id", lambda semester_id: Semester(1, "1st Semester"))
    monkeypatch.setattr(container.attendance_repo, "get_report_rows", lambda **kw: rows)

    resp = client.get("/reports.csv?semester_id=1&start=2024-03-01&end=2024-03-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert resp.headers["Content-Disposition"] == (
        "attachment; filename=comprehensive_attendance_report_2024-03-01_to_2024-03-31.csv"
    )
    body = resp.data.decode("utf-8-sig")
    assert body.splitlines()[1] == '"R01","Asha","1st Semester","2","1","1","1","50%"'
