from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.read_model import Resource, load_resource
from ..common.web import admin_required, current_user, login_required
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..container import Container
from .csv_import import COLUMN_SYNONYMS

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _semesters():
        return load_resource("semesters", container.semester_service.list_all)

    def _to_list(semester_id):
        return redirect(url_for("students", semester_id=semester_id) if semester_id else url_for("students"))

    @app.route("/students", endpoint="students")
    @login_required
    def students():
        semesters = _semesters()
        selected = request.args.get("semester_id", type=int)
        if selected is None and semesters.ready and semesters.data:
            selected = semesters.data[0].semester_id

        roster = (
            load_resource("students", lambda: container.student_service.list_by_semester(selected))
            if selected is not None
            else Resource.idle()
        )
        return render_template(
            "students/list.html",
            semesters=semesters,
            selected=selected,
            roster=roster,
            active_page="students",
        )

    @app.route("/students/add", methods=["GET", "POST"], endpoint="student_add")
    @admin_required
    def student_add():
        form = request.form
        if request.method == "POST":
            try:
                container.student_service.create(
                    current_user(),
                    name=form.get("name", ""),
                    roll_number=form.get("roll_number", ""),
                    email=form.get("email", ""),
                    semester_id=form.get("semester_id"),
                )
                flash("Student added.", "success")
                return _to_list(form.get("semester_id"))
            except (ValidationError, AuthorizationError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("add student failed")
                flash("An unexpected error occurred while adding the student.", "danger")

        return render_template(
            "students/form.html",
            form=form,
            student=None,
            semesters=_semesters(),
            default_semester=request.args.get("semester_id", type=int),
            active_page="students",
        )

    @app.route("/students/<int:student_id>/edit", methods=["GET", "POST"], endpoint="student_edit")
    @admin_required
    def student_edit(student_id: int):
        try:
            student = container.student_service.get(student_id)
        except NotFoundError:
            return render_template("404.html"), 404

        form = request.form
        if request.method == "POST":
            try:
                container.student_service.update(
                    current_user(),
                    student.student_id,
                    name=form.get("name", ""),
                    roll_number=form.get("roll_number", ""),
                    email=form.get("email", ""),
                    semester_id=form.get("semester_id"),
                )
                flash("Student updated.", "success")
                return _to_list(form.get("semester_id"))
            except (ValidationError, AuthorizationError, NotFoundError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("edit student failed")
                flash("An unexpected error occurred while updating the student.", "danger")

        return render_template(
            "students/form.html",
            form=form,
            student=student,
            semesters=_semesters(),
            default_semester=student.semester_id,
            active_page="students",
        )

    @app.route("/students/<int:student_id>/delete", methods=["POST"], endpoint="student_delete")
    @admin_required
    def student_delete(student_id: int):
        try:
            container.student_service.delete(current_user(), student_id)
            flash("Student deleted.", "success")
        except (AuthorizationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("delete student failed")
            flash("An unexpected error occurred while deleting the student.", "danger")
        return _to_list(request.form.get("semester_id"))

    @app.route("/students/import", methods=["GET", "POST"], endpoint="student_import")
    @admin_required
    def student_import():
        result = None
        if request.method == "POST":
            upload = request.files.get("file")
            try:
                result = container.student_service.import_csv(current_user(), upload.read() if upload else b"")
                if result.imported:
                    flash(f"Imported {result.imported} students.", "success")
                if result.skipped:
                    flash(f"Skipped {result.skipped} rows. See the warnings below.", "warning")
                if not result.imported and not result.skipped:
                    flash("The file contained no student rows.", "warning")
            except (ValidationError, AuthorizationError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("student import failed")
                flash("An unexpected error occurred while importing students.", "danger")

        return render_template(
            "students/import.html",
            result=result,
            synonyms=COLUMN_SYNONYMS,
            semesters=_semesters(),
            active_page="students",
        )
