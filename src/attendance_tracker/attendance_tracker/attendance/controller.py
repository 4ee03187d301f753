from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import today_local
from ..common.read_model import Resource, load_resource
from ..common.web import current_user, date_arg, login_required
from ..core.constants import FIRST_PERIOD, PERIODS
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _slot_args(values):
        """(date, period) from a form or query string; bad dates fall back to today."""
        try:
            on_date = date_arg(values.get("date"), today_local())
        except ValidationError as e:
            flash(str(e), "warning")
            on_date = today_local()
        return on_date, values.get("period") or FIRST_PERIOD

    def _back(semester_id: int, on_date, period):
        return redirect(url_for("attendance", semester_id=semester_id, date=on_date.isoformat(), period=period))

    def _render(semester_id: int, sheet: Resource, on_date, period):
        return render_template(
            "attendance.html",
            semester_id=semester_id,
            sheet=sheet,
            on_date=on_date,
            period=period,
            periods=PERIODS,
            active_page="attendance",
        )

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        user = current_user()
        cards = load_resource("semesters", container.semester_service.dashboard_cards)
        pending = load_resource("pending accounts", container.user_service.pending_count) if user.is_admin else Resource.idle()
        return render_template("dashboard.html", cards=cards, pending=pending, active_page="dashboard")

    @app.route("/attendance/<int:semester_id>", endpoint="attendance")
    @login_required
    def attendance(semester_id: int):
        try:
            container.semester_service.get(semester_id)
        except NotFoundError:
            return render_template("404.html"), 404

        on_date, period = _slot_args(request.args)
        sheet = load_resource(
            "attendance",
            lambda: container.attendance_service.load_sheet(
                current_user(), semester_id=semester_id, on_date=on_date, period=period
            ),
        )
        return _render(semester_id, sheet, on_date, period)

    @app.route("/attendance/<int:semester_id>/submit", methods=["POST"], endpoint="attendance_submit")
    @login_required
    def attendance_submit(semester_id: int):
        on_date, period = _slot_args(request.form)
        try:
            result = container.attendance_service.submit(
                current_user(),
                semester_id=semester_id,
                on_date=on_date,
                period=period,
                present_ids=request.form.getlist("present"),
            )
            flash(
                f"Attendance for period {result.status.period} saved ({result.present} of {result.stored} present).",
                "success",
            )
            if result.export_error:
                flash(f"Attendance was saved, but the spreadsheet export failed: {result.export_error}", "warning")
            elif result.exported:
                flash("Attendance exported to Google Sheet.", "info")
        except (ValidationError, AuthorizationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("attendance submit failed")
            flash("An unexpected error occurred while saving attendance.", "danger")
        return _back(semester_id, on_date, period)

    @app.route("/attendance/<int:semester_id>/copy-previous", methods=["POST"], endpoint="attendance_copy_previous")
    @login_required
    def attendance_copy_previous(semester_id: int):
        on_date, period = _slot_args(request.form)
        actor = current_user()
        try:
            sheet = container.attendance_service.load_sheet(
                actor, semester_id=semester_id, on_date=on_date, period=period
            )
            result = container.attendance_service.copy_from_previous_period(
                actor,
                semester_id=semester_id,
                on_date=on_date,
                period=period,
                current_present_ids=request.form.getlist("present"),
            )
        except DomainError as e:
            flash(str(e), "danger")
            return _back(semester_id, on_date, period)
        except Exception:
            logger.exception("copy previous period failed")
            flash("An unexpected error occurred while copying attendance.", "danger")
            return _back(semester_id, on_date, period)

        if result.warning:
            flash(result.warning, "warning")
        else:
            flash(f"Copied {result.copied} students from period {sheet.period - 1}. Review and submit to save.", "info")

        return _render(semester_id, Resource.loaded(sheet.with_present_ids(result.present_ids)), on_date, sheet.period)

    @app.route("/attendance/<int:semester_id>/mark-all", methods=["POST"], endpoint="attendance_mark_all")
    @login_required
    def attendance_mark_all(semester_id: int):
        on_date, period = _slot_args(request.form)
        try:
            sheet = container.attendance_service.mark_all(
                current_user(),
                semester_id=semester_id,
                on_date=on_date,
                period=period,
                present=request.form.get("mark") == "present",
            )
        except DomainError as e:
            flash(str(e), "danger")
            return _back(semester_id, on_date, period)
        except Exception:
            logger.exception("mark all failed")
            flash("An unexpected error occurred while updating the sheet.", "danger")
            return _back(semester_id, on_date, period)

        return _render(semester_id, Resource.loaded(sheet), on_date, sheet.period)

    @app.route("/attendance/<int:semester_id>/delete", methods=["POST"], endpoint="attendance_delete")
    @login_required
    def attendance_delete(semester_id: int):
        on_date, period = _slot_args(request.form)
        try:
            result = container.attendance_service.delete_slot(
                current_user(), semester_id=semester_id, on_date=on_date, period=period
            )
            flash(f"Deleted {result.deleted} attendance records for period {result.status.period}.", "success")
            for w in result.warnings:
                flash(w, "warning")
        except (ValidationError, AuthorizationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("attendance delete failed")
            flash("An unexpected error occurred while deleting attendance.", "danger")
        return _back(semester_id, on_date, period)
