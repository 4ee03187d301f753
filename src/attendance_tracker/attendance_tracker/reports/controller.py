from __future__ import annotations

import hmac
import logging

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.datetime_utils import today_local
from ..common.read_model import Resource, load_resource
from ..common.web import admin_required, current_user, date_arg, login_required
from ..core.constants import PERIODS
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .service import badge_class

logger = logging.getLogger(__name__)

STUDENT_REPORT_FLAG = "student_report_access"


def register(app: Flask, container: Container) -> None:
    app.jinja_env.globals["badge_class"] = badge_class

    def _range(values):
        today = today_local()
        start = date_arg(values.get("start"), today.replace(day=1), field="start")
        end = date_arg(values.get("end"), today, field="end")
        return start, end

    def _first_semester_id():
        semesters = container.semester_service.list_all()
        return semesters[0].semester_id if semesters else None

    @app.route("/reports", endpoint="reports")
    @login_required
    def reports():
        semesters = load_resource("semesters", container.semester_service.list_all)
        selected = request.args.get("semester_id", type=int)
        if selected is None and semesters.ready and semesters.data:
            selected = semesters.data[0].semester_id

        try:
            start, end = _range(request.args)
        except ValidationError as e:
            flash(str(e), "warning")
            start, end = _range({})

        report = Resource.idle()
        if selected is not None:
            report = load_resource(
                "report",
                lambda: container.report_service.summary_report(semester_id=selected, start_date=start, end_date=end),
            )
        return render_template(
            "reports.html",
            semesters=semesters,
            selected=selected,
            start=start,
            end=end,
            report=report,
            active_page="reports",
        )

    @app.route("/reports.csv", endpoint="reports_csv")
    @login_required
    def reports_csv():
        semester_id = request.args.get("semester_id", type=int)
        try:
            start, end = _range(request.args)
            if semester_id is None:
                semester_id = _first_semester_id()
            filename, text = container.report_service.export_csv(
                semester_id=semester_id, start_date=start, end_date=end
            )
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("reports", **request.args))
        except Exception:
            logger.exception("report export failed")
            flash("An unexpected error occurred while exporting the report.", "danger")
            return redirect(url_for("reports", **request.args))

        return app.response_class(
            text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/reports/delete-all", methods=["POST"], endpoint="reports_delete_all")
    @admin_required
    def reports_delete_all():
        if request.form.get("confirm") != "DELETE":
            flash("Type DELETE to confirm removing all attendance records.", "warning")
            return redirect(url_for("reports"))
        try:
            deleted = container.attendance_service.delete_all(current_user())
            flash(f"Deleted all attendance records ({deleted}).", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("delete all attendance failed")
            flash("An unexpected error occurred while deleting attendance.", "danger")
        return redirect(url_for("reports"))

    # ---- public student self-service ----

    @app.route("/student-report", methods=["GET", "POST"], endpoint="student_report")
    def student_report():
        expected = app.config.get("STUDENT_REPORT_PASSWORD") or ""
        if not expected:
            return render_template("student_report/public.html", enabled=False, granted=False)

        if request.method == "POST" and "access_password" in request.form:
            given = request.form.get("access_password", "")
            if hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8")):
                session[STUDENT_REPORT_FLAG] = True
                return redirect(url_for("student_report"))
            flash("Incorrect access password.", "danger")

        if not session.get(STUDENT_REPORT_FLAG):
            return render_template("student_report/public.html", enabled=True, granted=False)

        semesters = load_resource("semesters", container.semester_service.list_all)
        semester_id = request.args.get("semester_id", type=int)
        student_id = request.args.get("student_id", type=int)

        roster = Resource.idle()
        if semester_id is not None:
            roster = load_resource("students", lambda: container.student_service.list_by_semester(semester_id))

        report = Resource.idle()
        try:
            start, end = _range(request.args)
        except ValidationError as e:
            flash(str(e), "warning")
            start, end = _range({})
        if semester_id is not None and student_id is not None:
            report = load_resource(
                "student report",
                lambda: container.report_service.student_report(
                    semester_id=semester_id, student_id=student_id, start_date=start, end_date=end
                ),
            )

        return render_template(
            "student_report/public.html",
            enabled=True,
            granted=True,
            semesters=semesters,
            roster=roster,
            semester_id=semester_id,
            student_id=student_id,
            start=start,
            end=end,
            report=report,
            periods=PERIODS,
        )

    @app.route("/student-report/leave", methods=["POST"], endpoint="student_report_leave")
    def student_report_leave():
        session.pop(STUDENT_REPORT_FLAG, None)
        return redirect(url_for("student_report"))
